from __future__ import annotations

import math
from types import SimpleNamespace

import pytest

from opsmap.positions import coerce_coordinate, field_value, resolve_position


@pytest.mark.parametrize(
    "entity",
    [
        {"position": [-26.2, 28.04]},
        {"position": (-26.2, 28.04)},
        {"location": {"lat": -26.2, "lng": 28.04}},
        SimpleNamespace(position=[-26.2, 28.04]),
        SimpleNamespace(location={"lat": -26.2, "lng": 28.04}),
    ],
)
def test_encodings_resolve_to_the_same_pair(entity):
    assert resolve_position(entity) == (-26.2, 28.04)


@pytest.mark.parametrize(
    "entity",
    [
        None,
        {},
        {"position": "-26.2,28.04"},
        {"position": [-26.2]},
        {"position": [-26.2, 28.04, 10.0]},
        {"position": [math.nan, 28.0]},
        {"position": [-26.2, math.inf]},
        {"position": [True, False]},
        {"position": ["-26.2", "28.0"]},
        {"location": {"lat": None, "lng": 28.0}},
        {"location": {"lat": "abc", "lng": 28.0}},
        {"location": [-26.2, 28.0]},
    ],
)
def test_unresolvable_positions_return_none(entity):
    assert resolve_position(entity) is None


def test_invalid_position_falls_back_to_location():
    entity = {"position": [None, None], "location": {"lat": -25.0, "lng": 27.0}}

    assert resolve_position(entity) == (-25.0, 27.0)


def test_position_takes_precedence_over_location():
    entity = {"position": [1.0, 2.0], "location": {"lat": 3.0, "lng": 4.0}}

    assert resolve_position(entity) == (1.0, 2.0)


def test_out_of_range_coordinates_are_not_bounds_checked():
    assert resolve_position({"position": [123.0, 500.0]}) == (123.0, 500.0)


def test_integers_are_coerced_to_floats():
    lat, lng = resolve_position({"position": [-26, 28]})

    assert isinstance(lat, float) and isinstance(lng, float)


def test_coerce_coordinate_rejects_booleans():
    assert coerce_coordinate(True) is None
    assert coerce_coordinate(1) == 1.0


def test_field_value_reads_mappings_and_attributes():
    assert field_value({"id": 4}, "id") == 4
    assert field_value(SimpleNamespace(id=5), "id") == 5
    assert field_value(SimpleNamespace(), "id", "missing") == "missing"
