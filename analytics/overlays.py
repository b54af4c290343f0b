"""Format pre-aggregated GPS and route optimisation summaries as map overlays.

Nothing here computes trip statistics: the reporting API ships the
aggregates and these helpers only round, label and lay them out.
"""
from __future__ import annotations

import html
import logging
import math
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

__all__ = [
    "GpsAnalysisSummary",
    "OverlayPanel",
    "RouteOptimizationSummary",
    "StopPoint",
    "WorkerGpsSummary",
    "WorkerOptimization",
    "WorkerStop",
    "gps_panel",
    "overlay_corners",
    "panel_html",
    "route_panel",
    "stop_points",
    "visible_overlay_panels",
]

MAX_RECOMMENDATIONS = 3

_CORNERS = {
    "top-right": "top: 12px; right: 12px;",
    "top-left": "top: 12px; left: 56px;",
    "bottom-right": "bottom: 24px; right: 12px;",
    "bottom-left": "bottom: 24px; left: 12px;",
}


def _float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    number = float(value)
    return number if math.isfinite(number) else 0.0


def _int(value: Any) -> int:
    return int(_float(value))


def _one_decimal(value: float, unit: str = "") -> str:
    return f"{value:.1f}{unit}"


@dataclass(frozen=True)
class WorkerStop:
    latitude: float
    longitude: float
    address: str
    duration_formatted: str
    duration_minutes: float = 0.0
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    points_count: int = 0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Optional["WorkerStop"]:
        latitude = payload.get("latitude")
        longitude = payload.get("longitude")
        if isinstance(latitude, bool) or isinstance(longitude, bool):
            return None
        if not isinstance(latitude, (int, float)) or not isinstance(longitude, (int, float)):
            return None
        if not (math.isfinite(latitude) and math.isfinite(longitude)):
            return None
        minutes = _float(payload.get("durationMinutes"))
        return cls(
            latitude=float(latitude),
            longitude=float(longitude),
            address=str(payload.get("address") or "Unknown location"),
            duration_formatted=str(payload.get("durationFormatted") or f"{minutes:.0f} min"),
            duration_minutes=minutes,
            start_time=payload.get("startTime"),
            end_time=payload.get("endTime"),
            points_count=_int(payload.get("pointsCount")),
        )


@dataclass(frozen=True)
class WorkerGpsSummary:
    worker_id: Any
    worker_name: str
    stops_count: int
    total_distance_km: float
    top_stops: Tuple[WorkerStop, ...] = ()


@dataclass(frozen=True)
class GpsAnalysisSummary:
    total_workers_analyzed: int
    total_distance_covered: float
    total_stops_detected: int
    average_stops_per_worker: float
    average_speed_kmh: float
    max_speed_recorded: float
    workers: Tuple[WorkerGpsSummary, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, payload: Optional[Mapping[str, Any]]) -> Optional["GpsAnalysisSummary"]:
        if not isinstance(payload, Mapping):
            return None

        workers: List[WorkerGpsSummary] = []
        for entry in payload.get("workersData") or []:
            if not isinstance(entry, Mapping):
                continue
            stops = []
            for raw_stop in entry.get("topStops") or []:
                stop = WorkerStop.from_payload(raw_stop) if isinstance(raw_stop, Mapping) else None
                if stop is None:
                    logger.debug("Skipping GPS stop without coordinates for worker %s", entry.get("workerId"))
                    continue
                stops.append(stop)
            trip = entry.get("tripSummary") if isinstance(entry.get("tripSummary"), Mapping) else {}
            workers.append(
                WorkerGpsSummary(
                    worker_id=entry.get("workerId"),
                    worker_name=str(entry.get("workerName") or "Unknown worker"),
                    stops_count=_int(entry.get("stopsCount")),
                    total_distance_km=_float(trip.get("totalDistanceKm")),
                    top_stops=tuple(stops),
                )
            )

        return cls(
            total_workers_analyzed=_int(payload.get("totalWorkersAnalyzed")),
            total_distance_covered=_float(payload.get("totalDistanceCovered")),
            total_stops_detected=_int(payload.get("totalStopsDetected")),
            average_stops_per_worker=_float(payload.get("averageStopsPerWorker")),
            average_speed_kmh=_float(payload.get("averageSpeedKmh")),
            max_speed_recorded=_float(payload.get("maxSpeedRecorded")),
            workers=tuple(workers),
        )


@dataclass(frozen=True)
class WorkerOptimization:
    worker_id: Any
    worker_name: str
    original_distance: float
    optimized_distance: float
    potential_saving: float
    stops: int
    recommendation: Optional[str] = None


@dataclass(frozen=True)
class RouteOptimizationSummary:
    total_workers_optimized: int
    total_potential_saving: float
    average_potential_saving: float
    workers: Tuple[WorkerOptimization, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(
        cls, payload: Optional[Mapping[str, Any]]
    ) -> Optional["RouteOptimizationSummary"]:
        if not isinstance(payload, Mapping):
            return None

        workers: List[WorkerOptimization] = []
        for entry in payload.get("workersWithOptimizations") or []:
            if not isinstance(entry, Mapping):
                continue
            optimization = entry.get("optimization")
            if not isinstance(optimization, Mapping):
                continue
            recommendation = optimization.get("recommendation")
            workers.append(
                WorkerOptimization(
                    worker_id=entry.get("workerId"),
                    worker_name=str(entry.get("workerName") or "Unknown worker"),
                    original_distance=_float(optimization.get("originalDistance")),
                    optimized_distance=_float(optimization.get("optimizedDistance")),
                    potential_saving=_float(optimization.get("potentialSaving")),
                    stops=_int(optimization.get("stops")),
                    recommendation=str(recommendation) if recommendation else None,
                )
            )

        return cls(
            total_workers_optimized=_int(payload.get("totalWorkersOptimized")),
            total_potential_saving=_float(payload.get("totalPotentialSaving")),
            average_potential_saving=_float(payload.get("averagePotentialSaving")),
            workers=tuple(workers),
        )


@dataclass(frozen=True)
class OverlayPanel:
    key: str
    title: str
    rows: Tuple[Tuple[str, str], ...]
    notes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class StopPoint:
    position: Tuple[float, float]
    worker_name: str
    label: str


def gps_panel(summary: GpsAnalysisSummary) -> OverlayPanel:
    return OverlayPanel(
        key="gps",
        title="GPS Analysis",
        rows=(
            ("Workers analysed", str(summary.total_workers_analyzed)),
            ("Distance covered", _one_decimal(summary.total_distance_covered, " km")),
            ("Stops detected", str(summary.total_stops_detected)),
            ("Avg stops / worker", _one_decimal(summary.average_stops_per_worker)),
            ("Avg speed", _one_decimal(summary.average_speed_kmh, " km/h")),
            ("Max speed", _one_decimal(summary.max_speed_recorded, " km/h")),
        ),
    )


def route_panel(summary: RouteOptimizationSummary) -> OverlayPanel:
    notes = tuple(
        f"{worker.worker_name}: {worker.recommendation}"
        for worker in summary.workers
        if worker.recommendation
    )[:MAX_RECOMMENDATIONS]
    return OverlayPanel(
        key="routes",
        title="Route Optimisation",
        rows=(
            ("Workers optimised", str(summary.total_workers_optimized)),
            ("Total potential saving", _one_decimal(summary.total_potential_saving, " km")),
            ("Avg potential saving", _one_decimal(summary.average_potential_saving, " km")),
        ),
        notes=notes,
    )


def visible_overlay_panels(
    gps: Optional[GpsAnalysisSummary],
    routes: Optional[RouteOptimizationSummary],
    *,
    show_gps_analytics: bool = False,
    show_route_optimizations: bool = False,
) -> List[OverlayPanel]:
    """Return the overlay panels to draw, GPS first.

    The route panel needs at least one optimised worker; an empty
    optimisation run renders nothing.
    """

    panels: List[OverlayPanel] = []
    if show_gps_analytics and gps is not None:
        panels.append(gps_panel(gps))
    if show_route_optimizations and routes is not None and routes.total_workers_optimized > 0:
        panels.append(route_panel(routes))
    return panels


def panel_html(panel: OverlayPanel, *, corner: str = "top-right") -> str:
    """Render ``panel`` as a fixed-position box for the map root."""

    if corner not in _CORNERS:
        raise ValueError(f"Unsupported overlay corner: {corner}")

    rows = "".join(
        f"<tr><td style=\"padding-right:8px;color:#4b5563;\">{html.escape(label)}</td>"
        f"<td style=\"text-align:right;\"><b>{html.escape(value)}</b></td></tr>"
        for label, value in panel.rows
    )
    notes = "".join(
        f"<div style=\"margin-top:4px;color:#374151;\">{html.escape(note)}</div>"
        for note in panel.notes
    )
    return (
        f'<div class="opsmap-overlay opsmap-overlay-{html.escape(panel.key)}" '
        f'style="position: fixed; {_CORNERS[corner]} z-index: 9999; background: white; '
        'padding: 8px 10px; border: 1px solid #bbb; border-radius: 6px; font-size: 12px; '
        'max-width: 260px;">'
        f"<b>{html.escape(panel.title)}</b><table>{rows}</table>{notes}</div>"
    )


def stop_points(summary: Optional[GpsAnalysisSummary]) -> List[StopPoint]:
    """Flatten the per-worker top stops carried by ``summary``."""

    if summary is None:
        return []
    points = []
    for worker in summary.workers:
        for stop in worker.top_stops:
            points.append(
                StopPoint(
                    position=(stop.latitude, stop.longitude),
                    worker_name=worker.worker_name,
                    label=f"{worker.worker_name}: {stop.address} ({stop.duration_formatted})",
                )
            )
    return points


def overlay_corners(panels: Sequence[OverlayPanel]) -> List[Tuple[OverlayPanel, str]]:
    """Pair each panel with a distinct corner, GPS top-right then bottom-right."""

    corners = ("top-right", "bottom-right", "bottom-left", "top-left")
    return list(zip(panels, corners))
