import os
from dataclasses import dataclass

from dotenv import load_dotenv

from rentari.utils import constants

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Flask settings, read from the environment (and .env) at import time."""

    APP_ENV = os.getenv("APP_ENV", "development")
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    DATA_PATH = os.getenv("DATA_PATH", "")

    JWT_SECRET = os.getenv("JWT_SECRET", "dev-jwt-secret-change-me")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_DAYS = int(os.getenv("JWT_EXPIRE_DAYS", str(constants.JWT_EXPIRE_DAYS)))

    HOLD_MINUTES = constants.HOLD_MINUTES
    SESSION_COOKIE_MINUTES = int(os.getenv("SESSION_COOKIE_MINUTES", str(constants.SESSION_COOKIE_MINUTES)))

    SWEEPER_ENABLED = _flag("SWEEPER_ENABLED", "true")
    SWEEP_INTERVAL_SECONDS = int(os.getenv("SWEEP_INTERVAL_SECONDS", str(constants.SWEEP_INTERVAL_SECONDS)))

    RATELIMIT_ENABLED = _flag("RATELIMIT_ENABLED", "true")
    RATELIMIT_GLOBAL = (int(os.getenv("RATELIMIT_GLOBAL_LIMIT", "300")), 15 * 60)
    RATELIMIT_AUTH = (int(os.getenv("RATELIMIT_AUTH_LIMIT", "10")), 5 * 60)

    AUTH0_CLIENT_SECRET = os.getenv("AUTH0_CLIENT_SECRET", "")
    AUTH0_AUDIENCE = os.getenv("AUTH0_AUDIENCE", "")
    AUTH0_ISSUER = os.getenv("AUTH0_ISSUER", "")

    REQUIRE_EMAIL_VERIFICATION = _flag("REQUIRE_EMAIL_VERIFICATION")
    APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Europe/Madrid")
    SMTP_HOST = os.getenv("SMTP_HOST", "")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL", "")
    SMTP_USE_SSL = _flag("SMTP_USE_SSL")
    SMTP_USE_TLS = _flag("SMTP_USE_TLS", "true")
    SMTP_TIMEOUT = int(os.getenv("SMTP_TIMEOUT", "10"))


@dataclass(frozen=True)
class RequestSchema:
    """
    Allowed request keys per endpoint. Built once by the app factory and
    handed to the validators; bump `version` whenever a key set changes.
    """
    version: int
    pending: frozenset
    create: frozenset
    confirm: frozenset
    register: frozenset
    login: frozenset
    verification: frozenset
    federated: frozenset
    vehicle_filter: frozenset


def build_request_schema() -> RequestSchema:
    return RequestSchema(
        version=1,
        pending=frozenset({"idVehiculo", "meses", "cuota", "total"}),
        create=frozenset({"id_vehiculo", "idUsuario", "meses", "cuota", "total"}),
        confirm=frozenset({"idUsuario"}),
        register=frozenset({"correo", "contrasenya", "nombreUsuario", "codigo"}),
        login=frozenset({"correo", "contrasenya"}),
        verification=frozenset({"correo", "nombreUsuario"}),
        federated=frozenset({"idToken"}),
        vehicle_filter=frozenset({"buscadorVehiculos", "precio", "kilometros", "anyo", "orden"}),
    )
