"""Resolve map positions from entity records of unknown shape."""
from __future__ import annotations

import math
import numbers
from collections.abc import Mapping, Sequence
from typing import Any, Optional, Tuple

__all__ = ["Position", "coerce_coordinate", "field_value", "resolve_position"]

Position = Tuple[float, float]


def field_value(entity: Any, name: str, default: Any = None) -> Any:
    """Return ``name`` from a mapping or attribute-style ``entity``."""

    if isinstance(entity, Mapping):
        return entity.get(name, default)
    return getattr(entity, name, default)


def coerce_coordinate(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float when it is a real number."""

    # bool is an int subclass; ``True`` is never a coordinate.
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return None
    number = float(value)
    if not math.isfinite(number):
        return None
    return number


def _pair(lat_value: Any, lng_value: Any) -> Optional[Position]:
    lat = coerce_coordinate(lat_value)
    lng = coerce_coordinate(lng_value)
    if lat is None or lng is None:
        return None
    return lat, lng


def resolve_position(entity: Any) -> Optional[Position]:
    """Return ``(lat, lng)`` for ``entity`` or ``None`` when unresolvable.

    A ``position`` holding exactly two finite numbers wins; otherwise a
    ``location`` mapping with finite numeric ``lat``/``lng`` is used. Bounds
    are not checked, so ``(123.0, 500.0)`` resolves as-is.
    """

    if entity is None:
        return None

    position = field_value(entity, "position")
    if (
        isinstance(position, Sequence)
        and not isinstance(position, (str, bytes))
        and len(position) == 2
    ):
        resolved = _pair(position[0], position[1])
        if resolved is not None:
            return resolved

    location = field_value(entity, "location")
    if isinstance(location, Mapping):
        return _pair(location.get("lat"), location.get("lng"))
    return None
