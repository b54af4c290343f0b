"""Map surface capability and its folium (Leaflet) implementation."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional, Protocol

import folium

from opsmap.config import tile_settings
from opsmap.entities import MapMarker
from opsmap.icons import MarkerIcon, icon_anchor, icon_html
from opsmap.positions import Position

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_ICON_URLS",
    "FoliumMarkerHandle",
    "FoliumSurface",
    "MapSurface",
    "MarkerHandle",
    "MarkerRegistry",
    "configure_default_icons",
    "default_icon_urls",
]

_LEAFLET_IMAGES = "https://cdnjs.cloudflare.com/ajax/libs/leaflet/1.9.4/images"

DEFAULT_ICON_URLS: Dict[str, str] = {
    "iconUrl": f"{_LEAFLET_IMAGES}/marker-icon.png",
    "iconRetinaUrl": f"{_LEAFLET_IMAGES}/marker-icon-2x.png",
    "shadowUrl": f"{_LEAFLET_IMAGES}/marker-shadow.png",
}

_default_icon_urls: Optional[Dict[str, str]] = None


def configure_default_icons(urls: Optional[Mapping[str, str]] = None) -> bool:
    """Register Leaflet's default marker image URLs once per process.

    The hosting application calls this at start-up; surfaces created
    afterwards patch ``L.Icon.Default`` with these URLs. Returns ``False`` when
    the icons were already configured.
    """

    global _default_icon_urls
    if _default_icon_urls is not None:
        return False
    _default_icon_urls = dict(DEFAULT_ICON_URLS)
    if urls:
        _default_icon_urls.update(urls)
    logger.debug("Configured default Leaflet icons: %s", _default_icon_urls)
    return True


def default_icon_urls() -> Optional[Dict[str, str]]:
    return dict(_default_icon_urls) if _default_icon_urls is not None else None


class MarkerHandle(Protocol):
    def open_popup(self) -> None:
        ...


class MapSurface(Protocol):
    """The imperative commands the viewport controller issues."""

    @property
    def is_ready(self) -> bool:
        ...

    def set_view(self, center: Position, zoom: int) -> None:
        ...


class MarkerRegistry:
    """Stable marker key -> imperative marker handle.

    Populated as markers are placed. A popup request for a key that is not
    registered yet is parked and fulfilled on registration; a newer request
    replaces it.
    """

    def __init__(self) -> None:
        self._handles: Dict[str, MarkerHandle] = {}
        self._pending: Optional[str] = None

    def __contains__(self, key: object) -> bool:
        return key in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def __iter__(self) -> Iterator[str]:
        return iter(self._handles)

    @property
    def pending(self) -> Optional[str]:
        return self._pending

    def get(self, key: str) -> Optional[MarkerHandle]:
        return self._handles.get(key)

    def register(self, key: str, handle: MarkerHandle) -> None:
        self._handles[key] = handle
        if self._pending == key:
            self._pending = None
            handle.open_popup()

    def unregister(self, key: str) -> None:
        self._handles.pop(key, None)

    def clear(self) -> None:
        self._handles.clear()
        self._pending = None

    def cancel_pending(self) -> None:
        self._pending = None

    def request_popup(self, key: str) -> bool:
        """Open ``key``'s popup now, or park the request until it registers."""

        handle = self._handles.get(key)
        if handle is None:
            self._pending = key
            logger.debug("Popup for %s parked until the marker is placed", key)
            return False
        self._pending = None
        handle.open_popup()
        return True


@dataclass
class FoliumMarkerHandle:
    marker: folium.Marker
    popup: folium.Popup

    @property
    def is_open(self) -> bool:
        return bool(self.popup.show)

    def open_popup(self) -> None:
        self.popup.show = True


class FoliumSurface:
    """A folium map exposed through the :class:`MapSurface` commands.

    The surface is not ready until :meth:`create` builds the map; commands
    issued earlier are dropped.
    """

    def __init__(
        self,
        *,
        tile_url: Optional[str] = None,
        attribution: Optional[str] = None,
        registry: Optional[MarkerRegistry] = None,
    ) -> None:
        default_url, default_attribution = tile_settings()
        self.tile_url = tile_url or default_url
        self.attribution = attribution or default_attribution
        self.registry = registry if registry is not None else MarkerRegistry()
        self.map: Optional[folium.Map] = None
        self.center: Optional[Position] = None
        self.zoom: Optional[int] = None
        self._groups: Dict[str, folium.FeatureGroup] = {}

    @property
    def is_ready(self) -> bool:
        return self.map is not None

    def create(self, center: Position, zoom: int) -> folium.Map:
        fmap = folium.Map(location=[center[0], center[1]], zoom_start=zoom, tiles=None)
        folium.TileLayer(
            tiles=self.tile_url,
            attr=self.attribution,
            name="Base map",
            control=False,
        ).add_to(fmap)

        icon_urls = default_icon_urls()
        if icon_urls:
            fmap.get_root().script.add_child(
                folium.Element(f"L.Icon.Default.mergeOptions({json.dumps(icon_urls)});")
            )

        self.map = fmap
        self.center = center
        self.zoom = zoom
        self._groups = {}
        self.registry.clear()
        return fmap

    def set_view(self, center: Position, zoom: int) -> None:
        if self.map is None:
            logger.debug("Map surface not ready; dropping set_view(%s, %s)", center, zoom)
            return
        self.map.location = [center[0], center[1]]
        self.map.options["zoom"] = zoom
        self.center = center
        self.zoom = zoom

    def layer(self, name: str, *, show: bool = True) -> Optional[folium.FeatureGroup]:
        """Return the named feature group, creating it on first use."""

        if self.map is None:
            return None
        group = self._groups.get(name)
        if group is None:
            group = folium.FeatureGroup(name=name, show=show)
            group.add_to(self.map)
            self._groups[name] = group
        return group

    def add_marker(
        self,
        marker: MapMarker,
        icon: MarkerIcon,
        popup_html: str,
        *,
        layer: str = "Markers",
    ) -> Optional[FoliumMarkerHandle]:
        group = self.layer(layer)
        if group is None:
            logger.debug("Map surface not ready; dropping marker %s", marker.key)
            return None

        popup = folium.Popup(popup_html, max_width=320)
        folium_marker = folium.Marker(
            location=[marker.lat, marker.lng],
            popup=popup,
            tooltip=marker.name or marker.marker_type.replace("-", " ").title(),
            icon=folium.DivIcon(
                html=icon_html(icon),
                class_name="opsmap-icon",
                **icon_anchor(icon),
            ),
        )
        folium_marker.add_to(group)

        handle = FoliumMarkerHandle(marker=folium_marker, popup=popup)
        self.registry.register(marker.key, handle)
        return handle

    def add_circle(
        self,
        center: Position,
        radius_m: float,
        style: Mapping[str, Any],
        *,
        layer: str = "Influence",
    ) -> None:
        group = self.layer(layer)
        if group is None:
            return
        folium.Circle(location=[center[0], center[1]], radius=radius_m, **style).add_to(group)

    def add_point(
        self,
        center: Position,
        *,
        colour: str,
        tooltip: Optional[str] = None,
        radius_px: int = 5,
        layer: str = "GPS stops",
    ) -> None:
        group = self.layer(layer)
        if group is None:
            return
        folium.CircleMarker(
            location=[center[0], center[1]],
            radius=radius_px,
            color=colour,
            fill=True,
            fill_color=colour,
            fill_opacity=0.8,
            weight=1,
            tooltip=tooltip,
        ).add_to(group)

    def add_overlay(self, html: str) -> None:
        """Attach fixed-position HTML (legends, analytics panels) to the page."""

        if self.map is None:
            logger.debug("Map surface not ready; dropping overlay")
            return
        self.map.get_root().html.add_child(folium.Element(html))

    def finish(self) -> Optional[folium.Map]:
        """Add the layer control once all layers exist and return the map."""

        if self.map is None:
            return None
        if len(self._groups) > 1:
            folium.LayerControl(collapsed=False).add_to(self.map)
        return self.map
