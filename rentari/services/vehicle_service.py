from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from rentari.exceptions import ConflictError, NotFoundError, ValidationError, wrap_error
from rentari.models.vehicle import Vehicle
from rentari.services.common import _lc, _now, _store, to_float_safe, to_int_safe
from rentari.utils.constants import HOLD_MINUTES, SortOrder, VehicleState

logger = logging.getLogger(__name__)

_SORT_KEYS = {
    SortOrder.NEWEST: (lambda v: v.year, True),
    SortOrder.MILEAGE_ASC: (lambda v: v.mileage, False),
    SortOrder.MILEAGE_DESC: (lambda v: v.mileage, True),
    SortOrder.FEE_ASC: (lambda v: v.price, False),
    SortOrder.FEE_DESC: (lambda v: v.price, True),
    SortOrder.DEFAULT: (lambda v: v.vehicle_id, False),
}


class VehicleService:
    """Vehicle directory: search, lookup and availability transitions."""

    @staticmethod
    def create_vehicle(payload: dict) -> str:
        """Insert an available vehicle and return its id."""
        name = (payload.get("name") or "").strip()
        price = to_float_safe(payload.get("price"))
        if not name or price is None or price <= 0:
            raise ValidationError("Invalid vehicle data")
        return _store().insert("vehicles", {
            "name": name,
            "year": to_int_safe(payload.get("year")) or 0,
            "horsepower": to_int_safe(payload.get("horsepower")) or 0,
            "mileage": to_int_safe(payload.get("mileage")) or 0,
            "fuel_type": _lc(payload.get("fuel_type")).strip(),
            "vehicle_type": _lc(payload.get("vehicle_type")).strip(),
            "price": price,
            "image_url": payload.get("image_url") or "",
            "owner": None,
            "state": VehicleState.AVAILABLE,
            "reserved_until": None,
        }, id_field="vehicle_id")

    @staticmethod
    def list_available() -> list[Vehicle]:
        """Every vehicle without an owner. An empty catalogue is reported as NotFound."""
        try:
            rows = _store().find("vehicles", owner=None)
        except Exception as exc:
            raise wrap_error(exc, "Could not list vehicles") from exc
        if not rows:
            raise NotFoundError("There are no vehicles registered")
        return [Vehicle.from_dict(d) for d in rows]

    @staticmethod
    def search(name_contains: Optional[str] = None,
               min_year=None,
               max_price=None,
               min_mileage=None,
               sort_order: str = SortOrder.DEFAULT) -> list[Vehicle]:
        """
        Filter searchable vehicles (no owner, state available).
        - name_contains: partial, case-insensitive match on the name
        - min_year / max_price / min_mileage: ignored when empty or invalid
        - sort_order: one of SortOrder; unknown values fall back to id order
        Zero matches raise NotFoundError rather than returning an empty list.
        """
        # 1. Resolve eligible vehicles
        vehicles = [v for v in map(Vehicle.from_dict, _store().find("vehicles")) if v.is_searchable()]

        # 2. Name filter
        kw = _lc(name_contains).strip()
        if kw:
            vehicles = [v for v in vehicles if kw in _lc(v.name)]

        # 3. Numeric filters (invalid values ignored)
        year = to_int_safe(min_year)
        if year:
            vehicles = [v for v in vehicles if v.year >= year]
        price = to_float_safe(max_price)
        if price:
            vehicles = [v for v in vehicles if v.price <= price]
        km = to_int_safe(min_mileage)
        if km:
            vehicles = [v for v in vehicles if v.mileage >= km]

        # 4. Sort
        key, reverse = _SORT_KEYS.get(sort_order, _SORT_KEYS[SortOrder.DEFAULT])
        vehicles.sort(key=key, reverse=reverse)

        if not vehicles:
            raise NotFoundError("No vehicles match the search filters")
        return vehicles

    @staticmethod
    def get_by_id(vehicle_id: str) -> Vehicle:
        """Return a vehicle by ID or raise NotFoundError."""
        d = _store().get("vehicles", vehicle_id)
        if d is None:
            raise NotFoundError(f"Vehicle '{vehicle_id}' not found")
        return Vehicle.from_dict(d)

    @staticmethod
    def reserve(vehicle_id: str) -> Vehicle:
        """Hold an available vehicle for HOLD_MINUTES. Conflict if it is gone or taken."""
        until = _now() + timedelta(minutes=HOLD_MINUTES)
        updated = _store().update_one(
            "vehicles",
            {"vehicle_id": str(vehicle_id), "state": VehicleState.AVAILABLE},
            {"state": VehicleState.RESERVED, "reserved_until": until},
        )
        if updated is None:
            raise ConflictError("The vehicle could not be reserved")
        logger.info("Vehicle %s reserved until %s", vehicle_id, until.isoformat())
        return Vehicle.from_dict(updated)

    @staticmethod
    def release_expired() -> int:
        """Return every reserved vehicle whose hold has lapsed to the market."""
        now = _now()

        def lapsed(d):
            until = d.get("reserved_until")
            return d.get("state") == VehicleState.RESERVED and until is not None and until <= now

        count = _store().update_many(
            "vehicles", lapsed,
            {"state": VehicleState.AVAILABLE, "reserved_until": None},
        )
        if count:
            logger.info("Released %d expired vehicle hold(s)", count)
        return count

    @staticmethod
    def rent_to(account_id: str, vehicle_id: str,
                expected_state: str = VehicleState.AVAILABLE) -> Vehicle:
        """
        Assign the vehicle to the account, only if it is currently in `expected_state`
        (AVAILABLE for a direct rental, RESERVED when confirming a hold).
        NotFound if missing; Conflict if it is rented (by anyone) or held by another session.
        """
        updated = _store().update_one(
            "vehicles",
            {"vehicle_id": str(vehicle_id), "state": expected_state},
            {"owner": str(account_id), "state": VehicleState.RENTED, "reserved_until": None},
        )
        if updated is not None:
            return Vehicle.from_dict(updated)

        current = _store().get("vehicles", vehicle_id)
        if current is None:
            raise NotFoundError(f"Vehicle '{vehicle_id}' not found")
        if current.get("state") == VehicleState.RENTED:
            raise ConflictError("The vehicle is already rented")
        raise ConflictError("The vehicle is reserved by another user")

    @staticmethod
    def release(account_id: str) -> int:
        """Unassign every vehicle owned by the account; return how many were freed."""
        return _store().update_many(
            "vehicles",
            lambda d: d.get("owner") == str(account_id),
            {"owner": None, "state": VehicleState.AVAILABLE, "reserved_until": None},
        )
