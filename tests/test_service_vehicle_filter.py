"""
Unit tests for VehicleService.search: partial name matches, numeric
thresholds, sort orders and the not-found rule. Pure service tests, no
HTTP routes or authentication involved.
"""

import pytest

from rentari.exceptions import NotFoundError
from rentari.services.vehicle_service import VehicleService
from rentari.utils.constants import SortOrder


@pytest.fixture
def catalogue(make_vehicle):
    """Four available vehicles with distinct year, fee and mileage."""
    return {
        "ibiza": make_vehicle("Seat Ibiza", year=2021, price=289, mileage=30000),
        "leon": make_vehicle("Seat Leon", year=2023, price=349, mileage=12000),
        "model3": make_vehicle("Tesla Model 3", year=2024, price=599, mileage=3000),
        "trafic": make_vehicle("Renault Trafic", year=2019, price=379, mileage=61000),
    }


def _names(vehicles):
    return [v.name for v in vehicles]


def test_filter_by_partial_name(catalogue):
    """
    Searching 'seat' should match both Seat models, case-insensitively.
    """
    result = VehicleService.search(name_contains="sEaT")
    assert sorted(_names(result)) == ["Seat Ibiza", "Seat Leon"]


def test_numeric_thresholds(catalogue):
    """min_year, max_price and min_mileage are inclusive bounds."""
    assert _names(VehicleService.search(min_year=2023, sort_order=SortOrder.NEWEST)) == [
        "Tesla Model 3", "Seat Leon",
    ]
    assert sorted(_names(VehicleService.search(max_price=349))) == ["Seat Ibiza", "Seat Leon"]
    assert sorted(_names(VehicleService.search(min_mileage=30000))) == ["Renault Trafic", "Seat Ibiza"]


def test_invalid_numbers_are_ignored(catalogue):
    """Non-numeric thresholds behave as if they were not given."""
    assert len(VehicleService.search(min_year="abc", max_price="", min_mileage=None)) == 4


@pytest.mark.parametrize("order, expected_first", [
    (SortOrder.NEWEST, "Tesla Model 3"),
    (SortOrder.MILEAGE_ASC, "Tesla Model 3"),
    (SortOrder.MILEAGE_DESC, "Renault Trafic"),
    (SortOrder.FEE_ASC, "Seat Ibiza"),
    (SortOrder.FEE_DESC, "Tesla Model 3"),
])
def test_sort_orders(catalogue, order, expected_first):
    assert VehicleService.search(sort_order=order)[0].name == expected_first


def test_default_order_is_by_id(catalogue):
    result = VehicleService.search(sort_order="no-such-order")
    ids = [v.vehicle_id for v in result]
    assert ids == sorted(ids)


def test_no_match_raises_not_found(catalogue):
    with pytest.raises(NotFoundError):
        VehicleService.search(name_contains="ferrari")


def test_reserved_and_owned_vehicles_are_hidden(catalogue, store):
    """Only vehicles with no owner and state 'available' are searchable."""
    VehicleService.reserve(catalogue["ibiza"])
    VehicleService.rent_to("someone", catalogue["leon"])

    with pytest.raises(NotFoundError):
        VehicleService.search(name_contains="seat")
    assert sorted(_names(VehicleService.search())) == ["Renault Trafic", "Tesla Model 3"]


def test_list_available_excludes_owned(catalogue):
    VehicleService.rent_to("someone", catalogue["trafic"])
    names = _names(VehicleService.list_available())
    assert "Renault Trafic" not in names
    assert len(names) == 3


def test_list_available_empty_catalogue(app):
    with pytest.raises(NotFoundError):
        VehicleService.list_available()
