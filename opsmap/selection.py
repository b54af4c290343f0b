"""Selection and highlight state shared by the map and the surrounding UI."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from opsmap.entities import MapMarker

__all__ = ["SelectionState", "resolve_selection"]


@dataclass
class SelectionState:
    """Two independent signals: the selected marker and the highlighted id.

    The selection drives popup visibility and recentering; the highlight only
    affects emphasis. Both are compared with string ids because the sidebar
    and query parameters hand ids back as text.
    """

    selected_marker: Optional[MapMarker] = None
    highlighted_marker_id: Optional[str] = None

    @property
    def is_idle(self) -> bool:
        return self.selected_marker is None

    @property
    def selected_key(self) -> Optional[str]:
        return self.selected_marker.key if self.selected_marker is not None else None

    def select(self, marker: Optional[MapMarker]) -> None:
        self.selected_marker = marker

    def click(self, marker: MapMarker) -> None:
        """Handle a marker click: select it and move the highlight onto it."""

        self.selected_marker = marker
        self.highlighted_marker_id = str(marker.id)

    def set_highlighted(self, marker_id: Optional[Any]) -> None:
        self.highlighted_marker_id = None if marker_id is None else str(marker_id)

    def clear_selection(self) -> None:
        self.selected_marker = None

    def is_selected(self, marker: MapMarker) -> bool:
        return self.selected_marker is not None and self.selected_marker.key == marker.key

    def is_highlighted(self, marker: MapMarker) -> bool:
        if self.highlighted_marker_id is not None and str(marker.id) == self.highlighted_marker_id:
            return True
        return self.is_selected(marker)

    def popup_visible(self, marker: MapMarker) -> bool:
        return self.is_selected(marker)


def resolve_selection(markers: Iterable[MapMarker], key: Optional[str]) -> Optional[MapMarker]:
    """Return the marker in ``markers`` whose stable key equals ``key``."""

    if not key:
        return None
    for marker in markers:
        if marker.key == key:
            return marker
    return None
