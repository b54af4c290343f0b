"""Display formatting with placeholders for missing or malformed values."""
from __future__ import annotations

import json
import math
from datetime import date, datetime
from typing import Any, Mapping, Optional

__all__ = [
    "ADDRESS_DETAILS_PLACEHOLDER",
    "NO_ADDRESS",
    "NOT_AVAILABLE",
    "UNKNOWN_STATUS",
    "format_currency",
    "format_date",
    "format_datetime",
    "format_one_decimal",
    "render_address",
]

NO_ADDRESS = "No address available"
ADDRESS_DETAILS_PLACEHOLDER = "Address details available"
UNKNOWN_STATUS = "Unknown Status"
NOT_AVAILABLE = "N/A"

_ADDRESS_FIELDS = (
    ("street", "streetAddress", "address1"),
    ("suburb", "district", "address2"),
    ("city", "locality"),
    ("state", "province", "region"),
    ("country", "countryName"),
    ("postalCode", "zipCode", "zip"),
)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, default=str)
    return str(value)


def render_address(address: Any) -> str:
    """Return a one-line address for a string or structured address.

    Structured addresses join street, suburb, city, state, country and postal
    code (each with its common aliases) with commas.
    """

    if not address:
        return NO_ADDRESS
    if isinstance(address, str):
        return address
    if isinstance(address, Mapping):
        parts = []
        for aliases in _ADDRESS_FIELDS:
            value = next((address[name] for name in aliases if address.get(name)), None)
            text = _as_text(value).strip()
            if text:
                parts.append(text)
        return ", ".join(parts) or ADDRESS_DETAILS_PLACEHOLDER
    return "Invalid address format"


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    number = float(value)
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def format_currency(value: Any, *, symbol: str = "R") -> str:
    """Format ``value`` as rand with two decimals, ``"N/A"`` when not numeric."""

    number = _number(value)
    if number is None:
        return NOT_AVAILABLE
    sign = "-" if number < 0 else ""
    return f"{sign}{symbol}{abs(number):,.2f}"


def format_one_decimal(value: Any, suffix: str = "") -> str:
    number = _number(value)
    if number is None:
        return NOT_AVAILABLE
    return f"{number:.1f}{suffix}"


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def format_date(value: Any) -> str:
    """Format an ISO date/datetime as ``"05 Mar 2025"``."""

    parsed = _parse_datetime(value)
    if parsed is None:
        return NOT_AVAILABLE
    return parsed.strftime("%d %b %Y")


def format_datetime(value: Any) -> str:
    parsed = _parse_datetime(value)
    if parsed is None:
        return NOT_AVAILABLE
    return parsed.strftime("%d %b %Y %H:%M")
