from rentari import create_app
from rentari.services.common import _store
from rentari.services.user_service import UserService
from rentari.services.vehicle_service import VehicleService

DEMO_VEHICLES = [
    {"name": "Seat Ibiza", "year": 2022, "horsepower": 95, "mileage": 18000,
     "fuel_type": "gasolina", "vehicle_type": "turismo", "price": 289,
     "image_url": "/img/ibiza.jpg"},
    {"name": "Toyota C-HR", "year": 2023, "horsepower": 140, "mileage": 9000,
     "fuel_type": "hibrido", "vehicle_type": "suv", "price": 429,
     "image_url": "/img/chr.jpg"},
    {"name": "Tesla Model 3", "year": 2024, "horsepower": 283, "mileage": 3000,
     "fuel_type": "electrico", "vehicle_type": "turismo", "price": 599,
     "image_url": "/img/model3.jpg"},
    {"name": "Renault Trafic", "year": 2020, "horsepower": 120, "mileage": 61000,
     "fuel_type": "diesel", "vehicle_type": "furgoneta", "price": 379,
     "image_url": "/img/trafic.jpg"},
]


def main():
    app = create_app({"SWEEPER_ENABLED": False})
    with app.app_context():
        store = _store()

        # ---- Demo account (created only once) ----
        if not store.find_one("accounts", email="demo@gmail.com"):
            UserService.register("demo", "demo@gmail.com", "Demo123!")

        # ---- Demo vehicles (create only if none exist) ----
        if not store.count("vehicles"):
            for payload in DEMO_VEHICLES:
                VehicleService.create_vehicle(payload)

        store.save()

        print("Seed complete.")
        print("Demo login: demo@gmail.com / Demo123!")


if __name__ == "__main__":
    main()
