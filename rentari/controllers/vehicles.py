from flask import Blueprint, jsonify, request

from ..services.vehicle_service import VehicleService
from ..utils.validators import current_schema, valid_id, validate_filter

bp = Blueprint("vehicles", __name__, url_prefix="/search")


@bp.get("/vehiculos")
def list_vehicles():
    """Whole catalogue of vehicles nobody owns."""
    vehicles = VehicleService.list_available()
    return jsonify({"listadoVehiculos": [v.to_public() for v in vehicles]})


@bp.get("/vehiculo/<vehicle_id>")
def vehicle_detail(vehicle_id):
    vehicle = VehicleService.get_by_id(valid_id(vehicle_id))
    return jsonify({"vehiculoEncontrado": vehicle.to_public()})


@bp.get("/vehiculos/filter")
def filter_vehicles():
    """Filtered search over available vehicles; zero matches answer 404."""
    options = validate_filter(request.args.to_dict(), current_schema())
    vehicles = VehicleService.search(**options)
    return jsonify({"listadoVehiculos": [v.to_public() for v in vehicles]})
