from flask import Blueprint, g, jsonify, request

from ..exceptions import UnauthorizedError
from ..services.rental_service import RentalService
from ..utils.constants import HOLD_MINUTES
from ..utils.decorators import auth_required
from ..utils.validators import current_schema, validate_confirm, validate_create, validate_pending

bp = Blueprint("rentals", __name__, url_prefix="/rentings")

RENTED_TITLE = "The vehicle has been rented successfully!"
RENTED_BODY = (
    "Enjoy your new vehicle! You can check all your expenses, "
    "including the new vehicle, in your user profile."
)


def _same_account(requested):
    """A body may name the user, but only the one the token belongs to."""
    if requested is not None and requested != g.account_id:
        raise UnauthorizedError("You cannot rent on behalf of another user")


@bp.post("/pending")
def create_pending():
    """Hold a vehicle for the anonymous session (sessionId cookie)."""
    vehicle_id, terms = validate_pending(request.get_json(silent=True), current_schema())
    RentalService.place_hold(g.session_id, vehicle_id, terms)
    return jsonify({
        "ok": True,
        "messageTitle": "Reservation made.",
        "messageBody": (
            f"Log in or register to continue. You have about {HOLD_MINUTES} minutes to do it, "
            "otherwise the vehicle goes back on the market."
        ),
    })


@bp.get("/checkPendings")
def check_pendings():
    pending = RentalService.check_hold(g.session_id)
    message = (
        "You have a renting waiting for confirmation. Log in or register to confirm it."
        if pending else ""
    )
    return jsonify({"rentingsPendientes": pending, "message": message})


@bp.post("/confirm")
@auth_required
def confirm():
    """Turn the session's hold into a rental for the logged-in user."""
    _same_account(validate_confirm(request.get_json(silent=True), current_schema()))
    ok = RentalService.confirm(g.session_id, g.account_id)
    return jsonify({"ok": ok, "messageTitle": RENTED_TITLE, "messageBody": RENTED_BODY})


@bp.post("/create")
@auth_required
def create():
    """Direct rental for an authenticated user, no hold step."""
    vehicle_id, terms, requested = validate_create(request.get_json(silent=True), current_schema())
    _same_account(requested)
    ok = RentalService.create_direct(g.account_id, vehicle_id, terms)
    return jsonify({"ok": ok, "messageTitle": RENTED_TITLE, "messageBody": RENTED_BODY})
