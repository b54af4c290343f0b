"""Map configuration and environment-backed settings."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from opsmap.positions import Position, coerce_coordinate

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_CENTER",
    "DEFAULT_DATA_PATH",
    "DEFAULT_TILE_ATTRIBUTION",
    "DEFAULT_TILE_URL",
    "DEFAULT_ZOOM",
    "MapConfig",
    "OrgRegion",
    "data_path",
    "env_center",
    "env_zoom",
    "tile_settings",
]

# Johannesburg CBD.
DEFAULT_CENTER: Position = (-26.2041, 28.0473)
DEFAULT_ZOOM = 13

DEFAULT_DATA_PATH = "map_data.json"
DEFAULT_TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
DEFAULT_TILE_ATTRIBUTION = "&copy; OpenStreetMap contributors"


@dataclass(frozen=True)
class OrgRegion:
    name: str
    center: Position
    zoom: int


@dataclass(frozen=True)
class MapConfig:
    """Caller-supplied map settings (``mapConfig`` in the payload)."""

    default_center: Optional[Position] = None
    org_regions: Tuple[OrgRegion, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, payload: Optional[Mapping[str, Any]]) -> Optional["MapConfig"]:
        """Build a config from ``{"defaultCenter": {...}, "orgRegions": [...]}``."""

        if not isinstance(payload, Mapping):
            return None

        default_center = _lat_lng(payload.get("defaultCenter"))
        regions: List[OrgRegion] = []
        for entry in payload.get("orgRegions") or []:
            if not isinstance(entry, Mapping):
                continue
            center = _lat_lng(entry.get("center"))
            name = entry.get("name")
            if center is None or not name:
                logger.warning("Ignoring org region without name or centre: %r", entry)
                continue
            zoom = entry.get("zoom")
            regions.append(
                OrgRegion(
                    name=str(name),
                    center=center,
                    zoom=int(zoom) if isinstance(zoom, (int, float)) else DEFAULT_ZOOM,
                )
            )
        return cls(default_center=default_center, org_regions=tuple(regions))

    def region(self, name: str) -> Optional[OrgRegion]:
        for region in self.org_regions:
            if region.name == name:
                return region
        return None


def _lat_lng(value: Any) -> Optional[Position]:
    if not isinstance(value, Mapping):
        return None
    lat = coerce_coordinate(value.get("lat"))
    lng = coerce_coordinate(value.get("lng"))
    if lat is None or lng is None:
        return None
    return lat, lng


def _env_float(name: str, environ: Mapping[str, str]) -> Optional[float]:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return coerce_coordinate(float(raw))
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, raw)
        return None


def env_center(environ: Optional[Mapping[str, str]] = None) -> Optional[Position]:
    """Return the centre from ``OPSMAP_DEFAULT_LAT``/``OPSMAP_DEFAULT_LNG``."""

    env = os.environ if environ is None else environ
    lat = _env_float("OPSMAP_DEFAULT_LAT", env)
    lng = _env_float("OPSMAP_DEFAULT_LNG", env)
    if lat is None or lng is None:
        return None
    return lat, lng


def env_zoom(environ: Optional[Mapping[str, str]] = None) -> Optional[int]:
    env = os.environ if environ is None else environ
    raw = env.get("OPSMAP_DEFAULT_ZOOM")
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer OPSMAP_DEFAULT_ZOOM=%r", raw)
        return None


def data_path(environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    return env.get("OPSMAP_DATA", DEFAULT_DATA_PATH)


def tile_settings(environ: Optional[Mapping[str, str]] = None) -> Tuple[str, str]:
    """Return ``(tile_url, attribution)`` for the raster base layer."""

    env = os.environ if environ is None else environ
    return (
        env.get("OPSMAP_TILE_URL", DEFAULT_TILE_URL),
        env.get("OPSMAP_TILE_ATTRIBUTION", DEFAULT_TILE_ATTRIBUTION),
    )
