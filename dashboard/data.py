"""Data preparation helpers for the operations dashboard."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import streamlit as st

from analytics.overlays import GpsAnalysisSummary, RouteOptimizationSummary
from opsmap.config import data_path
from opsmap.entities import MapMarker
from opsmap.normalizer import (
    MARKER_FILTERS,
    NormalizationReport,
    deduplicate_markers,
    filter_markers,
    normalize_entities,
    normalize_entities_with_report,
)
from opsmap.payload import MapPayload, load_payload

__all__ = [
    "MAP_VIEW_MODES",
    "MapOptions",
    "PreparedMapData",
    "derive_markers",
    "prepare_map_data",
]

MAP_VIEW_MODES = ("Markers", "Heatmap")


@dataclass
class MapOptions:
    """Sidebar choices that shape what the map draws."""

    marker_filter: str = "all"
    collapse_duplicates: bool = False
    include_events: bool = False
    show_influence: bool = True
    show_gps_analytics: bool = False
    show_route_optimizations: bool = False
    view_mode: str = MAP_VIEW_MODES[0]
    region: Optional[str] = None


@dataclass
class PreparedMapData:
    """Snapshot of the payload loading and marker derivation phase."""

    source_path: str
    payload: Optional[MapPayload]
    dataset_error: Optional[str]
    empty_dataset_message: Optional[str]
    options: MapOptions
    markers: List[MapMarker] = field(default_factory=list)
    report: Optional[NormalizationReport] = None
    gps: Optional[GpsAnalysisSummary] = None
    routes: Optional[RouteOptimizationSummary] = None

    @property
    def data_available(self) -> bool:
        return self.payload is not None and self.dataset_error is None


def _load_payload(path: str) -> Tuple[Optional[MapPayload], Optional[str]]:
    try:
        return load_payload(path), None
    except FileNotFoundError:
        return None, f"No map data found at {path}. Set OPSMAP_DATA to a payload export."
    except json.JSONDecodeError as exc:
        return None, f"Map data at {path} is not valid JSON: {exc}"
    except ValueError as exc:
        return None, str(exc)
    except OSError as exc:
        return None, f"Failed to read map data: {exc}"


def derive_markers(
    payload: MapPayload, options: MapOptions
) -> Tuple[List[MapMarker], NormalizationReport]:
    """Normalise ``payload`` and apply the sidebar filters."""

    markers, report = normalize_entities_with_report(**payload.normalizer_kwargs())
    if options.include_events and payload.events:
        markers = markers + normalize_entities(filtered_entities=payload.events)
    if options.collapse_duplicates:
        markers = deduplicate_markers(markers)
    return filter_markers(markers, options.marker_filter), report


def _filter_label(value: str) -> str:
    return "All markers" if value == "all" else value.replace("-", " ").title()


def _sidebar_options(payload: Optional[MapPayload]) -> MapOptions:
    options = MapOptions()
    with st.sidebar:
        st.header("Filters")
        options.marker_filter = st.selectbox(
            "Marker type",
            options=list(MARKER_FILTERS),
            format_func=_filter_label,
        )
        options.collapse_duplicates = st.checkbox(
            "Collapse duplicate markers",
            value=False,
            help="Keep one marker per type and id when several sources report the same entity.",
        )
        options.include_events = st.checkbox(
            "Show feed events",
            value=False,
            help="Plot the activity feed events alongside the entity markers.",
        )
        options.show_influence = st.checkbox(
            "Show client and competitor radii",
            value=True,
        )

        st.header("Analytics overlays")
        options.show_gps_analytics = st.checkbox("GPS analysis", value=False)
        options.show_route_optimizations = st.checkbox("Route optimisation", value=False)

        options.view_mode = st.radio(
            "Map view",
            MAP_VIEW_MODES,
            horizontal=True,
            help="Switch between individual markers and an aggregated density heatmap.",
        )

        regions = payload.map_config.org_regions if payload and payload.map_config else ()
        if regions:
            choice = st.selectbox(
                "Region",
                options=["Default view", *[region.name for region in regions]],
            )
            options.region = None if choice == "Default view" else choice
    return options


def prepare_map_data(path: Optional[str] = None) -> PreparedMapData:
    """Load the payload, render the sidebar and derive this run's markers."""

    source_path = path or data_path()
    payload, dataset_error = _load_payload(source_path)
    options = _sidebar_options(payload)

    prepared = PreparedMapData(
        source_path=source_path,
        payload=payload,
        dataset_error=dataset_error,
        empty_dataset_message=None,
        options=options,
    )
    if payload is None:
        return prepared

    prepared.markers, prepared.report = derive_markers(payload, options)
    prepared.gps = GpsAnalysisSummary.from_payload(payload.gps_analysis)
    prepared.routes = RouteOptimizationSummary.from_payload(payload.route_optimizations)
    if not prepared.markers:
        prepared.empty_dataset_message = (
            "No markers with a usable position match the current filters."
        )
    return prepared
