"""
Unit tests for request validation. Validators only need the schema, so
they run without an application context.
"""

from datetime import date

import pytest

from rentari.config import build_request_schema
from rentari.exceptions import ValidationError
from rentari.utils import validators as v
from rentari.utils.constants import SortOrder

SCHEMA = build_request_schema()
VID = "3f2b8a9e-4c1d-4e5f-9a7b-1c2d3e4f5a6b"


def test_schema_is_immutable():
    with pytest.raises(Exception):
        SCHEMA.pending = frozenset()
    assert SCHEMA.version == 1


@pytest.mark.parametrize("payload", [None, {}, [], "text"])
def test_check_general_rejects_empty_or_non_objects(payload):
    with pytest.raises(ValidationError):
        v.check_general(payload)


@pytest.mark.parametrize("key", ["$where", "a;b", "x=1", "DROP", "a--"])
def test_check_general_rejects_suspicious_keys(key):
    with pytest.raises(ValidationError) as exc:
        v.check_general({key: 1})
    assert exc.value.message == v.NOT_ALLOWED


def test_validate_pending():
    vehicle_id, terms = v.validate_pending(
        {"idVehiculo": VID, "meses": "12", "cuota": 300, "total": "3600.50"}, SCHEMA
    )
    assert vehicle_id == VID
    assert terms == {"months": 12, "monthly_fee": 300.0, "total": 3600.5}


@pytest.mark.parametrize("payload", [
    {"idVehiculo": VID, "meses": 12, "cuota": 300, "total": 3600, "extra": 1},
    {"idVehiculo": "not-a-uuid", "meses": 12, "cuota": 300, "total": 3600},
    {"idVehiculo": VID, "meses": 0, "cuota": 300, "total": 3600},
    {"idVehiculo": VID, "meses": 12, "cuota": -1, "total": 3600},
    {"idVehiculo": VID, "meses": True, "cuota": 300, "total": 3600},
    {"idVehiculo": VID, "meses": 12, "cuota": 300},
])
def test_validate_pending_rejects(payload):
    with pytest.raises(ValidationError):
        v.validate_pending(payload, SCHEMA)


def test_validate_create_optional_user():
    vehicle_id, terms, account_id = v.validate_create(
        {"id_vehiculo": VID, "meses": 6, "cuota": 200, "total": 1200}, SCHEMA
    )
    assert (vehicle_id, account_id) == (VID, None)
    assert terms["months"] == 6

    _, _, account_id = v.validate_create(
        {"id_vehiculo": VID, "idUsuario": VID, "meses": 6, "cuota": 200, "total": 1200}, SCHEMA
    )
    assert account_id == VID


def test_validate_confirm():
    assert v.validate_confirm(None, SCHEMA) is None
    assert v.validate_confirm({}, SCHEMA) is None
    assert v.validate_confirm({"idUsuario": VID}, SCHEMA) == VID
    with pytest.raises(ValidationError):
        v.validate_confirm({"idVehiculo": VID}, SCHEMA)


def test_validate_register():
    data = v.validate_register(
        {"nombreUsuario": "alice", "correo": "Alice@Gmail.com", "contrasenya": "Secret12!"}, SCHEMA
    )
    assert data == {"username": "alice", "email": "alice@gmail.com", "password": "Secret12!", "code": None}


@pytest.mark.parametrize("password", ["short1!", "alllower12!", "NoDigits!!", "NoSymbol123"])
def test_validate_register_weak_password(password):
    with pytest.raises(ValidationError):
        v.validate_register(
            {"nombreUsuario": "alice", "correo": "alice@gmail.com", "contrasenya": password}, SCHEMA
        )


@pytest.mark.parametrize("field, value", [
    ("correo", "not-an-email"),
    ("nombreUsuario", "a b"),
    ("nombreUsuario", "x"),
])
def test_validate_register_bad_identity(field, value):
    payload = {"nombreUsuario": "alice", "correo": "alice@gmail.com", "contrasenya": "Secret12!"}
    payload[field] = value
    with pytest.raises(ValidationError):
        v.validate_register(payload, SCHEMA)


def test_validate_login():
    assert v.validate_login({"correo": "A@B.com", "contrasenya": "x"}, SCHEMA) == ("a@b.com", "x")
    with pytest.raises(ValidationError):
        v.validate_login({"correo": "a@b.com"}, SCHEMA)


def test_validate_filter_maps_aliases():
    options = v.validate_filter(
        {"buscadorVehiculos": "seat", "anyo": "2020", "precio": "400", "kilometros": "", "orden": "masKm"},
        SCHEMA,
    )
    assert options == {
        "name_contains": "seat",
        "min_year": 2020,
        "max_price": 400.0,
        "min_mileage": None,
        "sort_order": SortOrder.MILEAGE_DESC,
    }


@pytest.mark.parametrize("args", [
    {},
    {"orden": "cheapest"},
    {"anyo": str(date.today().year + 1)},
    {"anyo": "twenty"},
    {"precio": "cheap"},
    {"buscadorVehiculos": "seat' OR 1=1"},
    {"color": "red"},
])
def test_validate_filter_rejects(args):
    with pytest.raises(ValidationError):
        v.validate_filter(args, SCHEMA)


def test_valid_id():
    assert v.valid_id(VID.upper()) == VID
    with pytest.raises(ValidationError):
        v.valid_id("42")
