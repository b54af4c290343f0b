"""Marker list used to select and highlight markers from outside the map."""
from __future__ import annotations

from typing import Dict, Sequence

import streamlit as st

from dashboard.state import _clear_selection, _handle_marker_click, _highlight_marker, _rerun_app
from opsmap.entities import MapMarker
from opsmap.selection import SelectionState

__all__ = ["marker_label", "render_marker_list"]


def marker_label(marker: MapMarker) -> str:
    kind = marker.marker_type.replace("-", " ").title()
    return f"{marker.name or 'Unnamed'} ({kind} #{marker.id})"


def render_marker_list(
    markers: Sequence[MapMarker],
    selection: SelectionState,
    *,
    key: str = "marker_list",
) -> None:
    st.markdown("#### Markers")
    if not markers:
        st.caption("No markers to list.")
        return

    by_key: Dict[str, MapMarker] = {marker.key: marker for marker in markers}
    keys = list(by_key)
    default_index = keys.index(selection.selected_key) if selection.selected_key in by_key else 0
    chosen_key = st.selectbox(
        "Marker",
        options=keys,
        index=default_index,
        format_func=lambda value: marker_label(by_key[value]),
        key=f"{key}_choice",
    )
    chosen = by_key[chosen_key]

    select_col, highlight_col, clear_col = st.columns(3)
    if select_col.button("Show on map", key=f"{key}_select"):
        _handle_marker_click(chosen)
        _rerun_app()
    if highlight_col.button("Highlight", key=f"{key}_highlight"):
        _highlight_marker(chosen.id)
        _rerun_app()
    if clear_col.button(
        "Clear selection",
        key=f"{key}_clear",
        disabled=selection.is_idle and selection.highlighted_marker_id is None,
    ):
        _clear_selection()
        _highlight_marker(None)
        _rerun_app()

    if selection.selected_marker is not None:
        st.caption(f"Selected: {marker_label(selection.selected_marker)}")
