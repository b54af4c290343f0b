from __future__ import annotations

import math
from datetime import date

import pytest

from opsmap.formatting import (
    format_currency,
    format_date,
    format_datetime,
    format_one_decimal,
    render_address,
)


@pytest.mark.parametrize(
    "address, expected",
    [
        (None, "No address available"),
        ("", "No address available"),
        ("12 Long St, Cape Town", "12 Long St, Cape Town"),
        (
            {"streetAddress": "5 Oak Ave", "district": "Parkhurst", "locality": "Johannesburg", "zip": "2193"},
            "5 Oak Ave, Parkhurst, Johannesburg, 2193",
        ),
        (
            {"address1": "Unit 4", "province": "Gauteng", "countryName": "South Africa"},
            "Unit 4, Gauteng, South Africa",
        ),
        ({"street": "  ", "city": ""}, "Address details available"),
        ({"unrelated": "value"}, "Address details available"),
        (42, "Invalid address format"),
    ],
)
def test_render_address(address, expected):
    assert render_address(address) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        (1234.5, "R1,234.50"),
        ("99.999", "R100.00"),
        (-20, "-R20.00"),
        (None, "N/A"),
        ("abc", "N/A"),
        (math.nan, "N/A"),
        (True, "N/A"),
    ],
)
def test_format_currency(value, expected):
    assert format_currency(value) == expected


def test_format_one_decimal():
    assert format_one_decimal(12.345, " km") == "12.3 km"
    assert format_one_decimal(None) == "N/A"


def test_format_dates():
    assert format_date("2025-03-18T10:15:00Z") == "18 Mar 2025"
    assert format_date(date(2024, 12, 1)) == "01 Dec 2024"
    assert format_datetime("2025-03-18T10:15:00") == "18 Mar 2025 10:15"
    assert format_date("not a date") == "N/A"
    assert format_datetime(None) == "N/A"
