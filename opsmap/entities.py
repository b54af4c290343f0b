"""Marker variants rendered on the operations map.

Every renderable entity becomes exactly one of the :data:`MARKER_VARIANTS`.
The variant is chosen from the record's ``markerType`` discriminant, so code
that dispatches on the variant class (popups, icons) stays exhaustive when a
new variant is added.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Type, Union

from opsmap.positions import Position, field_value

__all__ = [
    "CHECK_IN_VISIT",
    "CLIENT",
    "COMPETITOR",
    "DOCUMENTED_MARKER_TYPES",
    "QUOTATION",
    "WORKER_STATUS_TYPES",
    "ClientMarker",
    "CompetitorMarker",
    "EventMarker",
    "MARKER_VARIANTS",
    "MapMarker",
    "MarkerId",
    "QuotationMarker",
    "WorkerStatusMarker",
    "build_marker",
    "marker_key",
    "record_as_mapping",
    "variant_for",
]

MarkerId = Union[int, str]

CLIENT = "client"
COMPETITOR = "competitor"
QUOTATION = "quotation"
CHECK_IN_VISIT = "check-in-visit"

WORKER_STATUS_TYPES: Tuple[str, ...] = (
    "check-in",
    "shift-start",
    "shift-end",
    "break-start",
    "break-end",
    "task",
    "journal",
    "lead",
)

DOCUMENTED_MARKER_TYPES: Tuple[str, ...] = (
    *WORKER_STATUS_TYPES,
    CHECK_IN_VISIT,
    CLIENT,
    COMPETITOR,
    QUOTATION,
)


def marker_key(marker_type: Optional[str], marker_id: Any) -> str:
    """Return the stable ``"<marker_type>:<id>"`` key used across renders.

    Ids are compared by their text form, so ``3`` and ``"3"`` give the same
    key. Query parameters and widget values hand ids back as strings and must
    still resolve to the marker.
    """

    return f"{marker_type or 'unknown'}:{marker_id}"


@dataclass(frozen=True)
class MapMarker:
    """A validated, renderable entity with a resolved position."""

    id: MarkerId
    marker_type: str
    position: Position
    name: Optional[str] = None
    status: Optional[str] = None
    record: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def key(self) -> str:
        return marker_key(self.marker_type, self.id)

    @property
    def lat(self) -> float:
        return self.position[0]

    @property
    def lng(self) -> float:
        return self.position[1]

    def get(self, name: str, default: Any = None) -> Any:
        """Return a field of the original record."""

        value = self.record.get(name, default)
        return default if value is None else value


@dataclass(frozen=True)
class WorkerStatusMarker(MapMarker):
    """Worker status events: check-ins, shifts, breaks, tasks, journals, leads."""


@dataclass(frozen=True)
class ClientMarker(MapMarker):
    """A client site."""


@dataclass(frozen=True)
class CompetitorMarker(MapMarker):
    """A competitor location."""


@dataclass(frozen=True)
class QuotationMarker(MapMarker):
    """A quotation placed at the client's location."""


@dataclass(frozen=True)
class EventMarker(MapMarker):
    """Feed events and entities of an unrecognised type."""


MARKER_VARIANTS: Tuple[Type[MapMarker], ...] = (
    WorkerStatusMarker,
    ClientMarker,
    CompetitorMarker,
    QuotationMarker,
    EventMarker,
)

_VARIANT_BY_TYPE: Dict[str, Type[MapMarker]] = {
    **{marker_type: WorkerStatusMarker for marker_type in WORKER_STATUS_TYPES},
    CHECK_IN_VISIT: WorkerStatusMarker,
    CLIENT: ClientMarker,
    COMPETITOR: CompetitorMarker,
    QUOTATION: QuotationMarker,
}


def record_as_mapping(entity: Any) -> Mapping[str, Any]:
    """Return a read-only mapping view over ``entity``'s fields."""

    if isinstance(entity, Mapping):
        return MappingProxyType(dict(entity))
    attributes = getattr(entity, "__dict__", None)
    if isinstance(attributes, dict):
        return MappingProxyType(dict(attributes))
    return MappingProxyType({})


def variant_for(marker_type: Optional[str], *, is_event: bool = False) -> Type[MapMarker]:
    """Return the marker class for ``marker_type``."""

    if is_event:
        return EventMarker
    return _VARIANT_BY_TYPE.get(marker_type or "", EventMarker)


def _display_name(record: Mapping[str, Any]) -> Optional[str]:
    for candidate in ("name", "title", "clientName", "quotationNumber"):
        value = record.get(candidate)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def build_marker(entity: Any, position: Position) -> MapMarker:
    """Wrap ``entity`` in its marker variant.

    ``entity`` must carry a non-null ``id``; callers validate the position
    beforehand with :func:`opsmap.positions.resolve_position`.
    """

    record = record_as_mapping(entity)
    marker_id = field_value(entity, "id")
    if marker_id is None:
        raise ValueError("Marker entities require an id")
    marker_type = record.get("markerType")
    marker_type = str(marker_type) if marker_type else "unknown"
    status = record.get("status")
    variant = variant_for(marker_type, is_event=record.get("type") == "event")
    return variant(
        id=marker_id,
        marker_type=marker_type,
        position=(float(position[0]), float(position[1])),
        name=_display_name(record),
        status=str(status) if status not in (None, "") else None,
        record=record,
    )
