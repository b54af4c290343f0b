"""Streamlit app for the operations map."""
from __future__ import annotations

from typing import Any, Dict, Optional

import streamlit as st

from dashboard.components.maps import render_marker_heatmap, render_operations_map
from dashboard.components.markers_list import render_marker_list
from dashboard.components.summary import render_analytics
from dashboard.data import prepare_map_data
from dashboard.state import (
    _consume_click,
    _get_query_params,
    _handle_marker_click,
    _rerun_app,
    restore_selection,
)
from opsmap.surface import configure_default_icons
from opsmap.viewport import resolve_default_view

__all__ = ["MAP_DASHBOARD_TABS", "main", "render_operations_map_dashboard"]

MAP_DASHBOARD_TABS = ["Live map", "Analytics"]


def render_operations_map_dashboard(data_path: Optional[str] = None) -> None:
    """Render the operations map dashboard for the payload at ``data_path``."""

    st.title("Operations map")
    st.caption(
        "Workers, clients, competitors and quotations on one map, with GPS and "
        "route optimisation overlays."
    )

    prepared = prepare_map_data(data_path)
    if prepared.dataset_error:
        st.error(prepared.dataset_error)
    elif prepared.empty_dataset_message:
        st.info(prepared.empty_dataset_message)

    selection = restore_selection(prepared.markers)
    options = prepared.options

    params = _get_query_params()
    requested_tab = params.get("view", [MAP_DASHBOARD_TABS[0]])[0]
    if requested_tab not in MAP_DASHBOARD_TABS:
        requested_tab = MAP_DASHBOARD_TABS[0]
    ordered_labels = [
        requested_tab,
        *[label for label in MAP_DASHBOARD_TABS if label != requested_tab],
    ]
    tab_map: Dict[str, Any] = dict(zip(ordered_labels, st.tabs(ordered_labels)))

    with tab_map["Live map"]:
        if not prepared.data_available:
            st.info("Load a map payload to see live markers.")
        else:
            payload = prepared.payload
            view = resolve_default_view(payload.map_config)
            if options.view_mode == "Heatmap":
                render_marker_heatmap(prepared.markers, view)
            else:
                clicked = render_operations_map(
                    prepared.markers,
                    selection,
                    view,
                    map_config=payload.map_config,
                    region=options.region,
                    gps=prepared.gps,
                    routes=prepared.routes,
                    show_gps_analytics=options.show_gps_analytics,
                    show_route_optimizations=options.show_route_optimizations,
                    show_influence=options.show_influence,
                )
                if _consume_click(clicked) and not selection.is_selected(clicked):
                    _handle_marker_click(clicked)
                    _rerun_app()
            render_marker_list(prepared.markers, selection)

    with tab_map["Analytics"]:
        if prepared.data_available:
            render_analytics(
                prepared.markers,
                report=prepared.report,
                gps=prepared.gps,
                routes=prepared.routes,
            )
        else:
            st.info("Analytics appear once a map payload has been loaded.")


def main() -> None:
    """Configure the Streamlit page and render the dashboard."""

    st.set_page_config(page_title="Operations map", layout="wide")
    configure_default_icons()
    render_operations_map_dashboard()
