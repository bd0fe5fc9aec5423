from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum

from rentari.utils.constants import DEFAULT_KM_PER_YEAR
from rentari.utils.filters import add_months, to_iso


class RentalMode(Enum):
    """What an account's rental history looks like, for the deletion policy."""
    NONE = 0
    ACTIVE = 1
    PAST = 2


@dataclass
class RentalLineItem:
    """One committed rental in a budget ledger."""
    vehicle_id: str
    start_date: datetime
    end_date: datetime
    months: int
    monthly_fee: float
    total: float
    contracted_km_per_year: int = DEFAULT_KM_PER_YEAR
    extra_km: int = 0
    extra_costs: float = 0.0

    @classmethod
    def starting(cls, start: datetime, vehicle_id: str, months: int,
                 monthly_fee: float, total: float) -> "RentalLineItem":
        """Build an item whose end date is `months` calendar months after `start`."""
        return cls(
            vehicle_id=str(vehicle_id),
            start_date=start,
            end_date=add_months(start, months),
            months=int(months),
            monthly_fee=float(monthly_fee),
            total=float(total),
        )

    def to_dict(self) -> dict:
        return asdict(self)


def empty_ledger(account_id: str) -> dict:
    return {
        "account_id": str(account_id),
        "total_rentals": 0,
        "total_spend": 0.0,
        "monthly_spend": 0.0,
        "rentals": [],
        "last_rental_at": None,
    }


def ledger_to_public(ledger: dict) -> dict:
    """Ledger as returned by the profile endpoint (dates in ISO-8601)."""
    return {
        "idUsuario": ledger["account_id"],
        "totalRentings": ledger["total_rentals"],
        "gastoTotal": ledger["total_spend"],
        "gastoMensual": ledger["monthly_spend"],
        "fechaUltimoRenting": to_iso(ledger.get("last_rental_at")),
        "cochesRentados": [
            {k: to_iso(v) for k, v in item.items()} for item in ledger.get("rentals", [])
        ],
    }
