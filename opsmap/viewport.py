"""Default view resolution and selection-driven recentering."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from opsmap.config import DEFAULT_CENTER, DEFAULT_ZOOM, MapConfig, OrgRegion, env_center, env_zoom
from opsmap.entities import MapMarker, marker_key
from opsmap.positions import Position, field_value, resolve_position
from opsmap.surface import MapSurface, MarkerRegistry

logger = logging.getLogger(__name__)

__all__ = ["FOCUS_ZOOM", "MapView", "ViewportController", "resolve_default_view"]

FOCUS_ZOOM = 15


@dataclass(frozen=True)
class MapView:
    center: Position
    zoom: int


def resolve_default_view(
    map_config: Optional[MapConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> MapView:
    """Return the initial view.

    The centre comes from ``map_config.default_center``, then the
    ``OPSMAP_DEFAULT_LAT``/``OPSMAP_DEFAULT_LNG`` environment, then
    Johannesburg. The zoom comes from ``OPSMAP_DEFAULT_ZOOM`` or 13.
    """

    center: Optional[Position] = None
    if map_config is not None and map_config.default_center is not None:
        center = map_config.default_center
    if center is None:
        center = env_center(environ)
    if center is None:
        center = DEFAULT_CENTER

    zoom = env_zoom(environ)
    return MapView(center=center, zoom=zoom if zoom is not None else DEFAULT_ZOOM)


def _selection_key(selected: Any) -> str:
    if isinstance(selected, MapMarker):
        return selected.key
    return marker_key(field_value(selected, "markerType"), field_value(selected, "id"))


class ViewportController:
    """Issue view and popup commands when the selection changes."""

    def __init__(
        self,
        surface: MapSurface,
        registry: MarkerRegistry,
        *,
        focus_zoom: int = FOCUS_ZOOM,
        map_config: Optional[MapConfig] = None,
    ) -> None:
        self.surface = surface
        self.registry = registry
        self.focus_zoom = focus_zoom
        self.map_config = map_config
        self._applied_key: Optional[str] = None

    def on_selection_changed(self, selected: Any) -> bool:
        """Recenter on ``selected`` and open its popup.

        Returns ``True`` when the view moved. Unresolvable positions and a
        surface that is not ready yet do not move the view, but still cancel
        any popup request left by the previous selection.
        """

        self.registry.cancel_pending()
        if selected is None:
            self._applied_key = None
            return False

        position = resolve_position(selected)
        if position is None:
            logger.debug("Selection %r has no resolvable position", _selection_key(selected))
            return False
        if not self.surface.is_ready:
            logger.debug("Map surface not ready; dropping recenter on %s", _selection_key(selected))
            return False

        key = _selection_key(selected)
        self.surface.set_view(position, self.focus_zoom)
        self.registry.request_popup(key)
        self._applied_key = key
        return True

    def sync(self, selected: Any) -> bool:
        """Apply ``selected`` only when it differs from the last applied selection."""

        key = None if selected is None else _selection_key(selected)
        if key == self._applied_key:
            return False
        return self.on_selection_changed(selected)

    def focus_region(self, name: str) -> bool:
        """Recenter on the organisation region called ``name``."""

        region: Optional[OrgRegion] = None
        if self.map_config is not None:
            region = self.map_config.region(name)
        if region is None:
            logger.debug("Unknown org region %r", name)
            return False
        if not self.surface.is_ready:
            logger.debug("Map surface not ready; dropping focus on region %s", region.name)
            return False
        self.surface.set_view(region.center, region.zoom)
        return True
