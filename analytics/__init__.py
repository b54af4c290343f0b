"""Analytics overlays for the operations map."""

from .overlays import (
    GpsAnalysisSummary,
    OverlayPanel,
    RouteOptimizationSummary,
    panel_html,
    stop_points,
    visible_overlay_panels,
)

__all__ = [
    "GpsAnalysisSummary",
    "OverlayPanel",
    "RouteOptimizationSummary",
    "panel_html",
    "stop_points",
    "visible_overlay_panels",
]
