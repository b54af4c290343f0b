"""Export the operations map for a payload snapshot as a standalone HTML file."""

from __future__ import annotations

import argparse
import json
from collections.abc import Sequence

from analytics.overlays import GpsAnalysisSummary, RouteOptimizationSummary
from dashboard.components.maps import build_operations_map
from opsmap.config import data_path
from opsmap.normalizer import MARKER_FILTERS, filter_markers, normalize_entities
from opsmap.payload import MapPayload, load_payload
from opsmap.selection import SelectionState, resolve_selection
from opsmap.surface import FoliumSurface, configure_default_icons
from opsmap.viewport import resolve_default_view


def build_map(
    payload: MapPayload,
    *,
    marker_filter: str = "all",
    selected_key: str | None = None,
    show_gps: bool = False,
    show_routes: bool = False,
) -> FoliumSurface:
    """Normalise ``payload`` and draw it onto a fresh folium surface."""

    markers = filter_markers(normalize_entities(**payload.normalizer_kwargs()), marker_filter)
    selection = SelectionState()
    selected = resolve_selection(markers, selected_key)
    if selected is not None:
        selection.click(selected)

    return build_operations_map(
        markers,
        selection,
        resolve_default_view(payload.map_config),
        map_config=payload.map_config,
        gps=GpsAnalysisSummary.from_payload(payload.gps_analysis),
        routes=RouteOptimizationSummary.from_payload(payload.route_optimizations),
        show_gps_analytics=show_gps,
        show_route_optimizations=show_routes,
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render the operations map to HTML")
    parser.add_argument("--data", default=None, help="Path to the map payload JSON")
    parser.add_argument("--out", default="operations_map.html", help="Output HTML map path")
    parser.add_argument(
        "--filter",
        default="all",
        choices=MARKER_FILTERS,
        help="Only draw markers of this type",
    )
    parser.add_argument(
        "--select",
        default=None,
        help="Marker key to select, e.g. competitor:7 (recentres and opens its popup)",
    )
    parser.add_argument("--show-gps", action="store_true", help="Overlay the GPS analysis panel and stops")
    parser.add_argument(
        "--show-routes",
        action="store_true",
        help="Overlay the route optimisation panel when workers were optimised",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    source = args.data or data_path()

    try:
        payload = load_payload(source)
    except (OSError, json.JSONDecodeError, ValueError) as exc:
        print(f"Unable to read map data from {source}: {exc}")
        return 1

    configure_default_icons()
    surface = build_map(
        payload,
        marker_filter=args.filter,
        selected_key=args.select,
        show_gps=args.show_gps,
        show_routes=args.show_routes,
    )
    if not len(surface.registry):
        print("No markers with a usable position found in the payload.")
        return 1

    surface.map.save(args.out)
    print(f"Map saved to {args.out} ({len(surface.registry)} markers)")
    return 0


if __name__ == "__main__":  # pragma: no cover - manual execution entry point
    raise SystemExit(main())
