"""
Request validation.

Every validator takes the request payload plus the immutable RequestSchema
built by the app factory, and either returns clean values or raises
ValidationError (400).
"""
import re
import uuid
from datetime import date

from flask import current_app

from rentari.config import RequestSchema
from rentari.exceptions import ValidationError
from rentari.utils.constants import SORT_ALIASES, SortOrder

# Compile once at module import
INJECTION_PATTERN = re.compile(
    r"('(?!\w)|`|/\*|\*/|´|\"|;|=|<|>|--|\b(SELECT|INSERT|UPDATE|DELETE|DROP|UNION|OR|AND)\b"
    r"|%|\(|\)|\*|\$|\.(?!\w)|\{|\}|\||\[|\]|\n|:)",
    re.IGNORECASE,
)
EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]{3,20}$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!¡%*&])[A-Za-z\d@$!¡%*&]{8,}$")

NOT_ALLOWED = "Parameters not allowed. Send valid parameters!"
BAD_DATA = "Invalid data! Send valid data!"


# -------- generic checks --------
def check_general(payload) -> dict:
    """Reject empty payloads, non-objects and keys that look like injection attempts."""
    if not isinstance(payload, dict) or not payload:
        raise ValidationError("Invalid request. Send a correct request!")
    if any(INJECTION_PATTERN.search(str(k)) for k in payload):
        raise ValidationError(NOT_ALLOWED)
    return payload


def check_keys(payload: dict, allowed: frozenset) -> None:
    if any(k not in allowed for k in payload):
        raise ValidationError(NOT_ALLOWED)


def _positive_int(value, label: str) -> int:
    if isinstance(value, bool) or isinstance(value, (dict, list)):
        raise ValidationError(f"{label} is not valid!")
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{label} is not valid!")
    if number <= 0:
        raise ValidationError(f"{label} is not valid!")
    return number


def _positive_float(value, label: str) -> float:
    if isinstance(value, bool) or isinstance(value, (dict, list)):
        raise ValidationError(f"{label} is not valid!")
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{label} is not valid!")
    if number <= 0:
        raise ValidationError(f"{label} is not valid!")
    return number


def _text(payload: dict, key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(BAD_DATA)
    return value.strip()


def valid_id(value) -> str:
    """Ids are UUID strings."""
    try:
        return str(uuid.UUID(str(value)))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError("Invalid id")


# -------- rentings --------
def _terms(payload: dict) -> dict:
    return {
        "months": _positive_int(payload.get("meses"), "Number of months"),
        "monthly_fee": _positive_float(payload.get("cuota"), "Monthly fee"),
        "total": _positive_float(payload.get("total"), "Total"),
    }


def validate_pending(payload, schema: RequestSchema) -> tuple[str, dict]:
    check_general(payload)
    check_keys(payload, schema.pending)
    return valid_id(payload.get("idVehiculo")), _terms(payload)


def validate_create(payload, schema: RequestSchema) -> tuple[str, dict, str | None]:
    check_general(payload)
    check_keys(payload, schema.create)
    account_id = payload.get("idUsuario")
    return (
        valid_id(payload.get("id_vehiculo")),
        _terms(payload),
        valid_id(account_id) if account_id is not None else None,
    )


def validate_confirm(payload, schema: RequestSchema) -> str | None:
    """The body is optional here; when present it may only name the user."""
    if payload is None or payload == {}:
        return None
    check_general(payload)
    check_keys(payload, schema.confirm)
    return valid_id(payload.get("idUsuario"))


# -------- users --------
def _email(payload: dict) -> str:
    email = _text(payload, "correo")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Email is not valid!")
    return email.lower()


def _username(payload: dict) -> str:
    username = _text(payload, "nombreUsuario")
    if not USERNAME_PATTERN.match(username):
        raise ValidationError("Username is not valid!")
    return username


def validate_register(payload, schema: RequestSchema) -> dict:
    check_general(payload)
    check_keys(payload, schema.register)
    password = payload.get("contrasenya")
    if not isinstance(password, str) or not PASSWORD_PATTERN.match(password):
        raise ValidationError(
            "Password must have at least 8 characters, including a-z, A-Z, 0-9 and one of @$!¡%*&"
        )
    code = payload.get("codigo")
    return {
        "username": _username(payload),
        "email": _email(payload),
        "password": password,
        "code": str(code) if code is not None else None,
    }


def validate_login(payload, schema: RequestSchema) -> tuple[str, str]:
    check_general(payload)
    check_keys(payload, schema.login)
    password = payload.get("contrasenya")
    if not isinstance(password, str) or not password:
        raise ValidationError(BAD_DATA)
    return _text(payload, "correo").lower(), password


def validate_verification(payload, schema: RequestSchema) -> tuple[str, str]:
    check_general(payload)
    check_keys(payload, schema.verification)
    return _username(payload), _email(payload)


def validate_federated(payload, schema: RequestSchema) -> str:
    check_general(payload)
    check_keys(payload, schema.federated)
    return _text(payload, "idToken")


# -------- vehicles --------
def _number_filter(value, label: str):
    if value in (None, ""):
        return None
    try:
        return float(value)
    except ValueError:
        raise ValidationError(f"The {label} value is not numeric")


def validate_filter(args: dict, schema: RequestSchema) -> dict:
    """Map the filter query string onto VehicleService.search keyword arguments."""
    check_general(args)
    check_keys(args, schema.vehicle_filter)

    text = args.get("buscadorVehiculos") or ""
    if text and INJECTION_PATTERN.search(text):
        raise ValidationError("The search text contains characters that are not allowed")

    year = args.get("anyo")
    if year not in (None, ""):
        try:
            year = int(year)
        except ValueError:
            raise ValidationError("The year value is not valid")
        if year != 0 and year > date.today().year:
            raise ValidationError("The year value is not valid")

    order = args.get("orden", "")
    if order not in SORT_ALIASES:
        raise ValidationError("Unknown sort order")

    return {
        "name_contains": text or None,
        "min_year": year or None,
        "max_price": _number_filter(args.get("precio"), "price"),
        "min_mileage": _number_filter(args.get("kilometros"), "mileage"),
        "sort_order": SORT_ALIASES.get(order, SortOrder.DEFAULT),
    }


def current_schema() -> RequestSchema:
    """The schema the running app was built with."""
    return current_app.extensions["rentari"]["schema"]
