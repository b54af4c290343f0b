"""Map components for the operations dashboard."""
from __future__ import annotations

import html
import math
from typing import Any, Iterable, List, Mapping, Optional, Sequence

import pandas as pd
import pydeck as pdk
import streamlit as st
from streamlit_folium import st_folium

from analytics.overlays import (
    GpsAnalysisSummary,
    RouteOptimizationSummary,
    overlay_corners,
    panel_html,
    stop_points,
    visible_overlay_panels,
)
from opsmap.config import MapConfig, tile_settings
from opsmap.entities import MapMarker
from opsmap.icons import FALLBACK_STYLE, MARKER_STYLES, create_marker_icon
from opsmap.influence import influence_circles
from opsmap.popups import render_popup_html, resolve_popup
from opsmap.selection import SelectionState
from opsmap.surface import FoliumSurface
from opsmap.viewport import MapView, ViewportController

__all__ = [
    "build_operations_map",
    "find_clicked_marker",
    "legend_html",
    "marker_frame",
    "render_marker_heatmap",
    "render_operations_map",
]

_CLICK_TOLERANCE = 1e-6
_STOP_COLOUR = "#f43f5e"


def legend_html(markers: Iterable[MapMarker]) -> str:
    """Return a fixed legend listing the marker types present on the map."""

    present = sorted({marker.marker_type for marker in markers})
    if not present:
        return ""
    rows = "".join(
        f'<span style="color:{MARKER_STYLES.get(marker_type, FALLBACK_STYLE).colour};">●</span> '
        f"{html.escape(marker_type.replace('-', ' ').title())}<br>"
        for marker_type in present
    )
    return (
        '<div style="position: fixed; bottom: 24px; left: 12px; z-index: 9999; '
        "background: white; padding: 8px 10px; border: 1px solid #bbb; "
        'border-radius: 6px; font-size: 12px;">'
        f"<b>Legend</b><br>{rows}</div>"
    )


def build_operations_map(
    markers: Sequence[MapMarker],
    selection: SelectionState,
    view: MapView,
    *,
    map_config: Optional[MapConfig] = None,
    region: Optional[str] = None,
    gps: Optional[GpsAnalysisSummary] = None,
    routes: Optional[RouteOptimizationSummary] = None,
    show_gps_analytics: bool = False,
    show_route_optimizations: bool = False,
    show_influence: bool = True,
    surface: Optional[FoliumSurface] = None,
) -> FoliumSurface:
    """Draw ``markers`` and the enabled overlays onto a folium surface.

    The selected marker (if any) wins over ``region`` for the initial view and
    its popup is opened once the marker has been placed.
    """

    surface = surface or FoliumSurface()
    surface.create(view.center, view.zoom)
    controller = ViewportController(surface, surface.registry, map_config=map_config)

    if selection.selected_marker is not None:
        controller.on_selection_changed(selection.selected_marker)
    elif region:
        controller.focus_region(region)

    if show_influence:
        for circle in influence_circles(markers):
            surface.add_circle(circle.center, circle.radius_m, circle.path_options())

    for marker in markers:
        icon = create_marker_icon(
            marker.marker_type,
            is_highlighted=selection.is_highlighted(marker),
            metadata=marker.record,
        )
        surface.add_marker(marker, icon, render_popup_html(resolve_popup(marker)))

    if show_gps_analytics:
        for point in stop_points(gps):
            surface.add_point(point.position, colour=_STOP_COLOUR, tooltip=point.label)

    panels = visible_overlay_panels(
        gps,
        routes,
        show_gps_analytics=show_gps_analytics,
        show_route_optimizations=show_route_optimizations,
    )
    for panel, corner in overlay_corners(panels):
        surface.add_overlay(panel_html(panel, corner=corner))

    legend = legend_html(markers)
    if legend:
        surface.add_overlay(legend)

    surface.finish()
    return surface


def find_clicked_marker(
    markers: Sequence[MapMarker],
    clicked: Optional[Mapping[str, Any]],
    *,
    tooltip: Optional[str] = None,
) -> Optional[MapMarker]:
    """Return the marker under a ``{"lat": ..., "lng": ...}`` click.

    Markers sharing a position are disambiguated by their tooltip text.
    """

    if not isinstance(clicked, Mapping):
        return None
    lat = clicked.get("lat")
    lng = clicked.get("lng")
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return None

    candidates = [
        marker
        for marker in markers
        if math.isclose(marker.lat, lat, abs_tol=_CLICK_TOLERANCE)
        and math.isclose(marker.lng, lng, abs_tol=_CLICK_TOLERANCE)
    ]
    if not candidates:
        return None
    if tooltip:
        for marker in candidates:
            if marker.name and marker.name in tooltip:
                return marker
    return candidates[0]


def render_operations_map(
    markers: Sequence[MapMarker],
    selection: SelectionState,
    view: MapView,
    *,
    key: str = "operations_map",
    height: int = 640,
    **options: Any,
) -> Optional[MapMarker]:
    """Render the folium map and return the marker clicked in this run, if any."""

    surface = build_operations_map(markers, selection, view, **options)
    result = st_folium(
        surface.map,
        key=key,
        height=height,
        use_container_width=True,
        returned_objects=["last_object_clicked", "last_object_clicked_tooltip"],
    )
    if not result:
        return None
    return find_clicked_marker(
        markers,
        result.get("last_object_clicked"),
        tooltip=result.get("last_object_clicked_tooltip"),
    )


def marker_frame(markers: Iterable[MapMarker]) -> pd.DataFrame:
    """Return one row per marker with ``lat``/``lon`` columns for pydeck."""

    rows: List[dict] = [
        {
            "key": marker.key,
            "lat": marker.lat,
            "lon": marker.lng,
            "marker_type": marker.marker_type,
            "name": marker.name or "",
            "status": marker.status or "",
            "weight": 1.0,
        }
        for marker in markers
    ]
    return pd.DataFrame(
        rows, columns=["key", "lat", "lon", "marker_type", "name", "status", "weight"]
    )


def render_marker_heatmap(
    markers: Sequence[MapMarker],
    view: MapView,
    *,
    key: str = "operations_heatmap",
) -> None:
    """Render an aggregated density view of ``markers``."""

    heatmap_source = marker_frame(markers)
    if heatmap_source.empty:
        st.info("No markers match the current filters to build a heatmap.")
        return

    radius_pixels = st.slider(
        "Heatmap radius",
        min_value=20,
        max_value=150,
        value=60,
        step=10,
        key=f"{key}_radius",
        help="Adjust how far each marker's influence spreads across the heatmap.",
    )
    intensity = st.slider(
        "Heatmap intensity",
        min_value=0.2,
        max_value=4.0,
        value=1.0,
        step=0.2,
        key=f"{key}_intensity",
        help="Increase to emphasise clusters of activity.",
    )

    tile_url, attribution = tile_settings()
    base_map_layer = pdk.Layer(
        "TileLayer",
        data=tile_url.replace("{s}.", ""),
        min_zoom=0,
        max_zoom=19,
        tile_size=256,
        attribution=attribution,
    )
    heatmap_layer = pdk.Layer(
        "HeatmapLayer",
        data=heatmap_source,
        get_position="[lon, lat]",
        aggregation="SUM",
        get_weight="weight",
        radiusPixels=radius_pixels,
        intensity=intensity,
    )

    st.pydeck_chart(
        pdk.Deck(
            layers=[base_map_layer, heatmap_layer],
            initial_view_state=pdk.ViewState(
                latitude=view.center[0],
                longitude=view.center[1],
                zoom=max(view.zoom - 2, 1),
            ),
            tooltip=None,
            map_style=None,
        )
    )
    st.caption("Each marker contributes equally; denser areas glow brighter.")
