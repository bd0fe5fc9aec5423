from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from rentari.utils.constants import VehicleState
from rentari.utils.filters import to_iso


@dataclass
class Vehicle:
    """
    Vehicle record. The Store keeps raw dicts; this wrapper gives the
    availability rules and the public (wire) representation one home.
    """
    vehicle_id: str
    name: str
    year: int
    horsepower: int
    mileage: int
    fuel_type: str
    vehicle_type: str
    price: float  # monthly renting fee
    image_url: str = ""
    owner: Optional[str] = None
    state: str = VehicleState.AVAILABLE
    reserved_until: Optional[datetime] = field(default=None)

    @classmethod
    def from_dict(cls, d: dict) -> "Vehicle":
        return cls(
            vehicle_id=d["vehicle_id"],
            name=d.get("name", ""),
            year=int(d.get("year") or 0),
            horsepower=int(d.get("horsepower") or 0),
            mileage=int(d.get("mileage") or 0),
            fuel_type=d.get("fuel_type", ""),
            vehicle_type=d.get("vehicle_type", ""),
            price=float(d.get("price") or 0),
            image_url=d.get("image_url", ""),
            owner=d.get("owner"),
            state=d.get("state", VehicleState.AVAILABLE),
            reserved_until=d.get("reserved_until"),
        )

    def is_searchable(self) -> bool:
        """Only unowned vehicles that nobody holds show up in searches."""
        return self.owner is None and self.state == VehicleState.AVAILABLE

    def to_public(self) -> dict:
        return {
            "_id": self.vehicle_id,
            "nombre": self.name,
            "anyo": self.year,
            "precio": self.price,
            "kilometros": self.mileage,
            "cv": self.horsepower,
            "urlImagen": self.image_url,
            "tipoVehiculo": self.vehicle_type,
            "combustible": self.fuel_type,
            "estado": self.state,
            "reservadoHasta": to_iso(self.reserved_until),
        }
