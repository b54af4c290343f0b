"""Session and query-string state for the operations dashboard."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import streamlit as st

from opsmap.entities import MapMarker
from opsmap.selection import SelectionState, resolve_selection

__all__ = [
    "SELECTION_STATE_KEY",
    "_clear_selection",
    "_consume_click",
    "_get_query_params",
    "_handle_marker_click",
    "_highlight_marker",
    "_rerun_app",
    "_set_query_params",
    "get_selection_state",
    "restore_selection",
]

SELECTION_STATE_KEY = "opsmap_selection"
_LAST_CLICK_KEY = "opsmap_last_click"
MARKER_PARAM = "marker"
VIEW_PARAM = "view"


def _set_query_params(**params: str) -> None:
    """Set Streamlit query parameters using the stable API when available."""

    query_params = getattr(st, "query_params", None)
    if query_params is not None:
        query_params.from_dict(params)
        return

    st.experimental_set_query_params(**params)


def _get_query_params() -> Dict[str, List[str]]:
    """Return query parameters as a dictionary of lists."""

    query_params = getattr(st, "query_params", None)
    if query_params is not None:
        return {key: query_params.get_all(key) for key in query_params.keys()}
    return st.experimental_get_query_params()


def _rerun_app() -> None:
    rerun = getattr(st, "rerun", None)
    if rerun is not None:
        rerun()
        return

    st.experimental_rerun()


def _first_param(name: str) -> Optional[str]:
    values = _get_query_params().get(name) or []
    return values[0] if values else None


def _persist_selection(selection: SelectionState) -> None:
    params: Dict[str, str] = {}
    view = _first_param(VIEW_PARAM)
    if view:
        params[VIEW_PARAM] = view
    if selection.selected_key:
        params[MARKER_PARAM] = selection.selected_key
    _set_query_params(**params)


def get_selection_state() -> SelectionState:
    """Return the session's selection, creating an idle one on first use."""

    state = st.session_state.get(SELECTION_STATE_KEY)
    if not isinstance(state, SelectionState):
        state = SelectionState()
        st.session_state[SELECTION_STATE_KEY] = state
    return state


def restore_selection(markers: Sequence[MapMarker]) -> SelectionState:
    """Re-bind the persisted selection to this run's freshly derived markers.

    The session key wins over the ``marker`` query parameter; a key that no
    longer matches any marker clears the selection.
    """

    state = get_selection_state()
    key = state.selected_key or _first_param(MARKER_PARAM)
    state.select(resolve_selection(markers, key))
    return state


def _handle_marker_click(marker: MapMarker) -> SelectionState:
    state = get_selection_state()
    state.click(marker)
    _persist_selection(state)
    return state


def _highlight_marker(marker_id: Optional[Any]) -> SelectionState:
    state = get_selection_state()
    state.set_highlighted(marker_id)
    return state


def _clear_selection() -> SelectionState:
    state = get_selection_state()
    state.clear_selection()
    st.session_state.pop(_LAST_CLICK_KEY, None)
    _persist_selection(state)
    return state


def _consume_click(marker: Optional[MapMarker]) -> bool:
    """Return ``True`` the first time ``marker`` is reported as clicked.

    ``st_folium`` keeps returning the last click on every rerun, so only a
    change of clicked marker counts as a new click.
    """

    if marker is None:
        return False
    if st.session_state.get(_LAST_CLICK_KEY) == marker.key:
        return False
    st.session_state[_LAST_CLICK_KEY] = marker.key
    return True
