import os, sys, pathlib
from datetime import datetime, timedelta

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))
os.environ.setdefault("APP_ENV", "test")

import pytest
import pytz

from rentari import create_app


class FrozenClock:
    """Callable stand-in for filters.utcnow that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def app(tmp_path):
    """
    App wired to a throwaway pickle file, with the sweeper thread and the
    rate limiter switched off. Runs the test inside an app context so
    services that sign tokens work without a request.
    """
    app = create_app({
        "TESTING": True,
        "DATA_PATH": str(tmp_path / "data.pkl"),
        "SWEEPER_ENABLED": False,
        "RATELIMIT_ENABLED": False,
        "REQUIRE_EMAIL_VERIFICATION": False,
        "JWT_SECRET": "test-secret",
        "SMTP_HOST": "",
    })
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def store(app):
    """The Store singleton the app was built with."""
    return app.extensions["rentari"]["store"]


@pytest.fixture
def clock(monkeypatch):
    """Freeze the UTC clock used by services and TTL indexes."""
    from rentari.utils import filters

    frozen = FrozenClock(datetime(2026, 3, 10, 12, 0, tzinfo=pytz.utc))
    monkeypatch.setattr(filters, "utcnow", frozen)
    return frozen


@pytest.fixture
def make_vehicle(app):
    """Factory: insert an available vehicle and return its id."""
    from rentari.services.vehicle_service import VehicleService

    def _make(name="Seat Ibiza", year=2022, price=300.0, mileage=15000, **extra):
        payload = {
            "name": name,
            "year": year,
            "price": price,
            "mileage": mileage,
            "horsepower": extra.pop("horsepower", 95),
            "fuel_type": extra.pop("fuel_type", "gasolina"),
            "vehicle_type": extra.pop("vehicle_type", "turismo"),
        }
        return VehicleService.create_vehicle(payload)

    return _make


@pytest.fixture
def make_account(app, store):
    """Factory: register a user through the service and return its account id."""
    from rentari.services.user_service import UserService

    def _make(username="alice", email="alice@gmail.com", password="Secret12!"):
        UserService.register(username, email, password)
        return store.find_one("accounts", email=email)["account_id"]

    return _make


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
