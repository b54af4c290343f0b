"""Combine raw entity collections into one renderable marker list."""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from opsmap.entities import DOCUMENTED_MARKER_TYPES, MapMarker, build_marker
from opsmap.positions import field_value, resolve_position

logger = logging.getLogger(__name__)

__all__ = [
    "COLLECTION_ORDER",
    "MARKER_FILTERS",
    "NormalizationReport",
    "deduplicate_markers",
    "filter_markers",
    "marker_breakdown",
    "normalize_entities",
    "normalize_entities_with_report",
]

# Union order for typed collections. Markers render in this order, so later
# collections draw on top of earlier ones.
COLLECTION_ORDER: Tuple[str, ...] = (
    "workers",
    "clients",
    "competitors",
    "quotations",
    "leads",
    "journals",
    "tasks",
    "check_ins",
    "shift_starts",
    "shift_ends",
    "break_starts",
    "break_ends",
)

MARKER_FILTERS: Tuple[str, ...] = ("all", *DOCUMENTED_MARKER_TYPES)


@dataclass(frozen=True)
class NormalizationReport:
    """Diagnostics for a single normalization pass."""

    source: str
    accepted: int
    dropped_missing_id: int
    dropped_unresolvable: int

    @property
    def dropped(self) -> int:
        return self.dropped_missing_id + self.dropped_unresolvable


def _select_source(
    filtered_entities: Optional[Sequence[Any]],
    all_markers: Optional[Sequence[Any]],
    collections: Mapping[str, Optional[Sequence[Any]]],
) -> Tuple[str, List[Any]]:
    if filtered_entities is not None:
        return "filtered_entities", list(filtered_entities)
    if all_markers:
        return "all_markers", list(all_markers)

    unknown = set(collections) - set(COLLECTION_ORDER)
    if unknown:
        raise ValueError(f"Unknown entity collections: {', '.join(sorted(unknown))}")

    combined: List[Any] = []
    for name in COLLECTION_ORDER:
        items = collections.get(name)
        if items:
            combined.extend(items)
    return "collections", combined


def normalize_entities_with_report(
    *,
    filtered_entities: Optional[Sequence[Any]] = None,
    all_markers: Optional[Sequence[Any]] = None,
    **collections: Optional[Sequence[Any]],
) -> Tuple[List[MapMarker], NormalizationReport]:
    """Return ``(markers, report)`` for the highest-precedence source.

    ``filtered_entities`` wins whenever it is not ``None``; ``all_markers``
    wins when non-empty; otherwise the typed ``collections`` (keyword names
    from :data:`COLLECTION_ORDER`) are concatenated in that order. Entities
    without an ``id`` or a resolvable position are dropped. Identical ids are
    kept; see :func:`deduplicate_markers`.
    """

    source, entities = _select_source(filtered_entities, all_markers, collections)

    markers: List[MapMarker] = []
    missing_id = 0
    unresolvable = 0
    for entity in entities:
        if entity is None or field_value(entity, "id") is None:
            missing_id += 1
            continue
        position = resolve_position(entity)
        if position is None:
            unresolvable += 1
            logger.debug(
                "Skipping %s %s: unresolvable position",
                field_value(entity, "markerType", "entity"),
                field_value(entity, "id"),
            )
            continue
        markers.append(build_marker(entity, position))

    report = NormalizationReport(
        source=source,
        accepted=len(markers),
        dropped_missing_id=missing_id,
        dropped_unresolvable=unresolvable,
    )
    if report.dropped:
        logger.info(
            "Normalized %d marker(s) from %s; dropped %d without id and %d without position",
            report.accepted,
            source,
            missing_id,
            unresolvable,
        )
    return markers, report


def normalize_entities(
    *,
    filtered_entities: Optional[Sequence[Any]] = None,
    all_markers: Optional[Sequence[Any]] = None,
    **collections: Optional[Sequence[Any]],
) -> List[MapMarker]:
    """Return the renderable markers; see :func:`normalize_entities_with_report`."""

    markers, _report = normalize_entities_with_report(
        filtered_entities=filtered_entities,
        all_markers=all_markers,
        **collections,
    )
    return markers


def filter_markers(markers: Iterable[MapMarker], marker_filter: str = "all") -> List[MapMarker]:
    """Return markers matching ``marker_filter`` (``"all"`` or a marker type)."""

    if marker_filter not in MARKER_FILTERS:
        raise ValueError(f"Unsupported marker filter: {marker_filter}")
    if marker_filter == "all":
        return list(markers)
    return [marker for marker in markers if marker.marker_type == marker_filter]


def deduplicate_markers(markers: Iterable[MapMarker]) -> List[MapMarker]:
    """Collapse markers sharing a ``(marker_type, id)`` key, keeping the first."""

    seen: set[str] = set()
    unique: List[MapMarker] = []
    for marker in markers:
        if marker.key in seen:
            continue
        seen.add(marker.key)
        unique.append(marker)
    return unique


def marker_breakdown(markers: Iterable[MapMarker]) -> Dict[str, int]:
    """Return marker counts per marker type, most common first."""

    counts = Counter(marker.marker_type for marker in markers)
    return dict(counts.most_common())
