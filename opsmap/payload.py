"""Parse the upstream map payload into typed collections."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from opsmap.config import MapConfig

logger = logging.getLogger(__name__)

__all__ = ["PAYLOAD_COLLECTIONS", "MapPayload", "load_payload"]

# payload key -> normalizer keyword
PAYLOAD_COLLECTIONS: Dict[str, str] = {
    "workers": "workers",
    "clients": "clients",
    "competitors": "competitors",
    "quotations": "quotations",
    "leads": "leads",
    "journals": "journals",
    "tasks": "tasks",
    "checkIns": "check_ins",
    "shiftStarts": "shift_starts",
    "shiftEnds": "shift_ends",
    "breakStarts": "break_starts",
    "breakEnds": "break_ends",
}


def _records(section: Any, name: str) -> List[Any]:
    if section is None:
        return []
    if not isinstance(section, list):
        logger.warning("Ignoring payload section %s: expected a list, got %s", name, type(section).__name__)
        return []
    return section


def _mapping(section: Any, name: str) -> Optional[Mapping[str, Any]]:
    if section is None:
        return None
    if not isinstance(section, Mapping):
        logger.warning("Ignoring payload section %s: expected an object", name)
        return None
    return section


@dataclass
class MapPayload:
    """One snapshot of the map data returned by the reporting API."""

    collections: Dict[str, List[Any]] = field(default_factory=dict)
    all_markers: List[Any] = field(default_factory=list)
    events: List[Any] = field(default_factory=list)
    map_config: Optional[MapConfig] = None
    gps_analysis: Optional[Mapping[str, Any]] = None
    route_optimizations: Optional[Mapping[str, Any]] = None

    @classmethod
    def from_response(cls, response: Mapping[str, Any]) -> "MapPayload":
        """Build a payload from ``{"data": {...}}`` or the bare ``data`` object."""

        if not isinstance(response, Mapping):
            raise ValueError("Map payload must be a JSON object")
        data = response.get("data", response)
        if not isinstance(data, Mapping):
            raise ValueError("Map payload 'data' must be a JSON object")

        collections = {
            keyword: _records(data.get(name), name)
            for name, keyword in PAYLOAD_COLLECTIONS.items()
        }
        return cls(
            collections=collections,
            all_markers=_records(data.get("allMarkers"), "allMarkers"),
            events=_records(data.get("events"), "events"),
            map_config=MapConfig.from_payload(_mapping(data.get("mapConfig"), "mapConfig")),
            gps_analysis=_mapping(data.get("gpsAnalysis"), "gpsAnalysis"),
            route_optimizations=_mapping(data.get("routeOptimizations"), "routeOptimizations"),
        )

    @property
    def entity_count(self) -> int:
        return sum(len(items) for items in self.collections.values())

    def normalizer_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for :func:`opsmap.normalizer.normalize_entities`."""

        return {"all_markers": self.all_markers, **self.collections}


def load_payload(path: Union[str, Path]) -> MapPayload:
    """Read and parse the JSON payload stored at ``path``."""

    payload_path = Path(path)
    with payload_path.open("r", encoding="utf-8") as handle:
        response = json.load(handle)
    payload = MapPayload.from_response(response)
    logger.info(
        "Loaded %d entities and %d events from %s",
        payload.entity_count,
        len(payload.events),
        payload_path,
    )
    return payload
