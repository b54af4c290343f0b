"""Client sphere-of-influence and competitor geofence circles."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from opsmap.entities import CLIENT, COMPETITOR, MapMarker
from opsmap.icons import MARKER_STYLES, client_colour
from opsmap.positions import Position, coerce_coordinate

__all__ = [
    "ACTIVE_CLIENT_RADIUS_M",
    "CLIENT_RADIUS_M",
    "InfluenceCircle",
    "influence_circle",
    "influence_circles",
]

ACTIVE_CLIENT_RADIUS_M = 1000.0
CLIENT_RADIUS_M = 500.0

_CLIENT_STROKE = {"weight": 2, "opacity": 0.4, "fill_opacity": 0.15, "dash_array": "3, 7"}
_COMPETITOR_STROKE = {"weight": 1, "opacity": 0.3, "fill_opacity": 0.1, "dash_array": "5, 5"}


@dataclass(frozen=True)
class InfluenceCircle:
    marker_key: str
    center: Position
    radius_m: float
    colour: str
    weight: int
    opacity: float
    fill_opacity: float
    dash_array: str

    def path_options(self) -> Dict[str, Any]:
        """Keyword arguments for :class:`folium.Circle`."""

        return {
            "color": self.colour,
            "fill_color": self.colour,
            "weight": self.weight,
            "opacity": self.opacity,
            "fill_opacity": self.fill_opacity,
            "dash_array": self.dash_array,
        }


def _radius(value: Any) -> Optional[float]:
    radius = coerce_coordinate(value)
    if radius is None or radius <= 0:
        return None
    return radius


def _geofence_radius(marker: MapMarker) -> Optional[float]:
    geofencing = marker.get("geofencing")
    if not isinstance(geofencing, Mapping) or not geofencing.get("enabled"):
        return None
    return _radius(geofencing.get("radius"))


def _client_radius(marker: MapMarker) -> float:
    radius = _geofence_radius(marker)
    if radius is not None:
        return radius
    radius = _radius(marker.get("geofenceRadius"))
    if radius is not None:
        return radius
    return ACTIVE_CLIENT_RADIUS_M if marker.status == "active" else CLIENT_RADIUS_M


def influence_circle(marker: MapMarker) -> Optional[InfluenceCircle]:
    """Return the circle drawn under ``marker``, if its type has one.

    Every client gets a circle; competitors only with geofencing enabled and
    a positive radius.
    """

    if marker.marker_type == CLIENT:
        return InfluenceCircle(
            marker_key=marker.key,
            center=marker.position,
            radius_m=_client_radius(marker),
            colour=client_colour(marker.record),
            **_CLIENT_STROKE,
        )

    if marker.marker_type == COMPETITOR:
        radius = _geofence_radius(marker)
        if radius is None:
            return None
        return InfluenceCircle(
            marker_key=marker.key,
            center=marker.position,
            radius_m=radius,
            colour=MARKER_STYLES[COMPETITOR].colour,
            **_COMPETITOR_STROKE,
        )

    return None


def influence_circles(markers: Iterable[MapMarker]) -> List[InfluenceCircle]:
    circles = []
    for marker in markers:
        circle = influence_circle(marker)
        if circle is not None:
            circles.append(circle)
    return circles
