import logging
import uuid

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from .config import Config, build_request_schema
from .controllers.auth import bp as auth_bp
from .controllers.rentals import bp as rentals_bp
from .controllers.vehicles import bp as vehicles_bp
from .exceptions import RentariError
from .models.store import Store
from .services.sweeper import ReleaseSweeper
from .utils.constants import SESSION_COOKIE
from .utils.rate_limit import InMemoryRateLimiter

logger = logging.getLogger(__name__)


def create_app(config_overrides: dict | None = None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    store = Store.reset(app.config["DATA_PATH"]) if app.config["DATA_PATH"] else Store.instance()
    app.extensions["rentari"] = {
        "schema": build_request_schema(),
        "store": store,
        "limiters": {
            "global": InMemoryRateLimiter(*app.config["RATELIMIT_GLOBAL"]),
            "auth": InMemoryRateLimiter(*app.config["RATELIMIT_AUTH"]),
        },
    }

    _register_session_cookie(app)
    _register_rate_limits(app)
    _register_error_handlers(app)

    app.register_blueprint(auth_bp)
    app.register_blueprint(rentals_bp)
    app.register_blueprint(vehicles_bp)

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"})

    if app.config["SWEEPER_ENABLED"] and not app.config.get("TESTING"):
        sweeper = ReleaseSweeper(app.config["SWEEP_INTERVAL_SECONDS"])
        sweeper.start()
        app.extensions["rentari"]["sweeper"] = sweeper

    return app


def _register_session_cookie(app: Flask):
    """Every client gets an anonymous sessionId cookie that correlates its holds."""

    @app.before_request
    def load_session_id():
        sid = request.cookies.get(SESSION_COOKIE)
        g.new_session = not sid
        g.session_id = sid or str(uuid.uuid4())

    @app.after_request
    def set_session_id(response):
        if g.get("new_session"):
            production = app.config["APP_ENV"] == "production"
            response.set_cookie(
                SESSION_COOKIE,
                g.session_id,
                max_age=app.config["SESSION_COOKIE_MINUTES"] * 60,
                httponly=True,
                secure=production,
                samesite="None" if production else "Lax",
                path="/",
            )
        return response


def _register_rate_limits(app: Flask):
    """Global limit per client address, plus a stricter one on /usuarios (profile exempt)."""

    def too_many(message):
        resp = jsonify({"error": True, "message": message})
        resp.status_code = 429
        return resp

    @app.before_request
    def limit_requests():
        if not app.config["RATELIMIT_ENABLED"]:
            return None
        limiters = app.extensions["rentari"]["limiters"]
        client = request.remote_addr or "unknown"

        allowed, remaining = limiters["global"].hit(client)
        g.ratelimit = (limiters["global"].limit, remaining)
        if not allowed:
            return too_many("Too many requests from this IP, try again later.")

        if request.path.startswith("/usuarios") and request.path != "/usuarios/profile":
            allowed, remaining = limiters["auth"].hit(client)
            g.ratelimit = (limiters["auth"].limit, remaining)
            if not allowed:
                return too_many("Too many authentication attempts, try again in a few minutes.")
        return None

    @app.after_request
    def ratelimit_headers(response):
        if "ratelimit" in g:
            limit, remaining = g.ratelimit
            response.headers["RateLimit-Limit"] = str(limit)
            response.headers["RateLimit-Remaining"] = str(remaining)
        return response


def _register_error_handlers(app: Flask):
    """Render every failure as {"error": true, "message": ...} with the carried status."""

    @app.errorhandler(RentariError)
    def handle_rentari_error(exc: RentariError):
        if exc.status >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, exc.message)
        return jsonify({"error": True, "message": exc.message}), exc.status

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        if exc.code == 404:
            return jsonify({"error": True, "mensaje": "This route could not be found"}), 404
        return jsonify({"error": True, "message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unhandled exception while processing %s %s", request.method, request.path)
        return jsonify({"error": True, "message": "General error"}), 500
