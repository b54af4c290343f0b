"""Summary metric components for the dashboard."""
from __future__ import annotations

import math
from typing import Optional, Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from analytics.overlays import GpsAnalysisSummary, RouteOptimizationSummary
from opsmap.entities import MapMarker
from opsmap.icons import FALLBACK_STYLE, MARKER_STYLES
from opsmap.normalizer import NormalizationReport, marker_breakdown

__all__ = ["create_breakdown_figure", "render_analytics"]


def _format_value(value: Optional[float], *, unit: str = "") -> str:
    """Format ``value`` for display in a Streamlit metric widget."""

    if value is None:
        return "n/a"
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return "n/a"
    return f"{value:,.1f}{unit}"


def create_breakdown_figure(markers: Sequence[MapMarker]) -> go.Figure:
    """Bar chart of marker counts per type, coloured like the map icons."""

    breakdown = marker_breakdown(markers)
    frame = pd.DataFrame(
        {"marker_type": list(breakdown.keys()), "count": list(breakdown.values())}
    )
    figure = px.bar(
        frame,
        x="marker_type",
        y="count",
        color="marker_type",
        color_discrete_map={
            marker_type: MARKER_STYLES.get(marker_type, FALLBACK_STYLE).colour
            for marker_type in breakdown
        },
        labels={"marker_type": "Marker type", "count": "Markers"},
    )
    figure.update_layout(showlegend=False, margin={"l": 0, "r": 0, "t": 10, "b": 0})
    return figure


def _render_gps(gps: GpsAnalysisSummary) -> None:
    st.markdown("#### GPS analysis")
    cols = st.columns(6)
    cols[0].metric("Workers analysed", gps.total_workers_analyzed)
    cols[1].metric("Distance covered", _format_value(gps.total_distance_covered, unit=" km"))
    cols[2].metric("Stops detected", gps.total_stops_detected)
    cols[3].metric("Avg stops / worker", _format_value(gps.average_stops_per_worker))
    cols[4].metric("Avg speed", _format_value(gps.average_speed_kmh, unit=" km/h"))
    cols[5].metric("Max speed", _format_value(gps.max_speed_recorded, unit=" km/h"))
    if gps.workers:
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "Worker": worker.worker_name,
                        "Distance (km)": round(worker.total_distance_km, 1),
                        "Stops": worker.stops_count,
                    }
                    for worker in gps.workers
                ]
            ),
            hide_index=True,
            use_container_width=True,
        )


def _render_routes(routes: RouteOptimizationSummary) -> None:
    st.markdown("#### Route optimisation")
    cols = st.columns(3)
    cols[0].metric("Workers optimised", routes.total_workers_optimized)
    cols[1].metric("Total potential saving", _format_value(routes.total_potential_saving, unit=" km"))
    cols[2].metric("Avg potential saving", _format_value(routes.average_potential_saving, unit=" km"))
    if routes.workers:
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "Worker": worker.worker_name,
                        "Original (km)": round(worker.original_distance, 1),
                        "Optimised (km)": round(worker.optimized_distance, 1),
                        "Saving (km)": round(worker.potential_saving, 1),
                        "Recommendation": worker.recommendation or "",
                    }
                    for worker in routes.workers
                ]
            ),
            hide_index=True,
            use_container_width=True,
        )


def render_analytics(
    markers: Sequence[MapMarker],
    *,
    report: Optional[NormalizationReport] = None,
    gps: Optional[GpsAnalysisSummary] = None,
    routes: Optional[RouteOptimizationSummary] = None,
) -> None:
    """Render marker counts and the upstream GPS / route aggregates."""

    cols = st.columns(3)
    cols[0].metric("Markers on map", len(markers))
    if report is not None:
        cols[1].metric("Accepted records", report.accepted)
        cols[2].metric(
            "Dropped records",
            report.dropped,
            help="Records without an id or a usable position.",
        )

    if markers:
        st.plotly_chart(create_breakdown_figure(markers), use_container_width=True)
    else:
        st.info("No markers to summarise for the current filters.")

    if gps is not None:
        _render_gps(gps)
    if routes is not None and routes.total_workers_optimized > 0:
        _render_routes(routes)
    elif gps is None:
        st.caption("The payload carries no GPS or route optimisation aggregates.")
