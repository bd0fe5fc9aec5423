# rentari/utils/constants.py

"""
Global constants for roles, states, time windows and request field names.
These constants are imported by the store, the services and the controllers.
"""

import os

# Time windows
HOLD_MINUTES = int(os.getenv("HOLD_MINUTES", "15"))  # vehicle hold and pending-record TTL
SESSION_COOKIE_MINUTES = 20  # lifetime of the anonymous sessionId cookie
CODE_TTL_SECONDS = 15 * 60
SWEEP_INTERVAL_SECONDS = 15 * 60
JWT_EXPIRE_DAYS = 2

# Ledger defaults for a new line item
DEFAULT_KM_PER_YEAR = 20000

SESSION_COOKIE = "sessionId"


class Role:
    USER = "user"
    ADMIN = "admin"


class VehicleState:
    AVAILABLE = "available"
    RESERVED = "reserved"
    RENTED = "rented"


class SortOrder:
    NEWEST = "newest"
    MILEAGE_ASC = "mileage-asc"
    MILEAGE_DESC = "mileage-desc"
    FEE_ASC = "fee-asc"
    FEE_DESC = "fee-desc"
    DEFAULT = "default-by-id"


# Query-string values accepted by /search/vehiculos/filter
SORT_ALIASES = {
    "nuevosCoches": SortOrder.NEWEST,
    "menosKm": SortOrder.MILEAGE_ASC,
    "masKm": SortOrder.MILEAGE_DESC,
    "rentingsBajos": SortOrder.FEE_ASC,
    "rentingsAltos": SortOrder.FEE_DESC,
    "": SortOrder.DEFAULT,
}

FUEL_TYPES = {"gasolina", "diesel", "hibrido", "electrico"}
VEHICLE_TYPES = {"turismo", "suv", "furgoneta", "deportivo", "moto"}
