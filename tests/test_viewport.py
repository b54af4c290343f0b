from __future__ import annotations

import pytest

from opsmap.config import MapConfig
from opsmap.normalizer import normalize_entities
from opsmap.surface import MarkerRegistry
from opsmap.viewport import FOCUS_ZOOM, MapView, ViewportController, resolve_default_view


class StubSurface:
    """Records view commands instead of drawing anything."""

    def __init__(self, ready: bool = True):
        self.ready = ready
        self.calls = []

    @property
    def is_ready(self):
        return self.ready

    def set_view(self, center, zoom):
        self.calls.append((center, zoom))


class StubHandle:
    def __init__(self):
        self.opened = 0

    def open_popup(self):
        self.opened += 1


def _client():
    (marker,) = normalize_entities(
        clients=[
            {"id": 5, "markerType": "client", "position": [-26.2041, 28.0473], "status": "active"}
        ]
    )
    return marker


def test_selection_recenters_on_exact_position():
    surface = StubSurface()
    controller = ViewportController(surface, MarkerRegistry())

    moved = controller.on_selection_changed({"id": 1, "markerType": "lead", "position": [-26.0, 28.0]})

    assert moved
    assert surface.calls == [((-26.0, 28.0), FOCUS_ZOOM)]
    assert FOCUS_ZOOM == 15


def test_selection_recenters_then_opens_registered_popup():
    marker = _client()
    surface = StubSurface()
    registry = MarkerRegistry()
    handle = StubHandle()
    registry.register(marker.key, handle)
    controller = ViewportController(surface, registry)

    controller.on_selection_changed(marker)

    assert surface.calls == [((-26.2041, 28.0473), 15)]
    assert handle.opened == 1
    assert registry.pending is None


def test_popup_request_waits_for_registration():
    marker = _client()
    registry = MarkerRegistry()
    controller = ViewportController(StubSurface(), registry)

    controller.on_selection_changed(marker)
    assert registry.pending == marker.key

    handle = StubHandle()
    registry.register(marker.key, handle)

    assert handle.opened == 1
    assert registry.pending is None


def test_newer_selection_replaces_pending_request():
    registry = MarkerRegistry()
    controller = ViewportController(StubSurface(), registry)
    controller.on_selection_changed({"id": 1, "markerType": "lead", "position": [0.0, 0.0]})
    controller.on_selection_changed({"id": 2, "markerType": "lead", "position": [1.0, 1.0]})

    first, second = StubHandle(), StubHandle()
    registry.register("lead:1", first)
    registry.register("lead:2", second)

    assert first.opened == 0
    assert second.opened == 1


def test_clearing_selection_cancels_pending_popup():
    registry = MarkerRegistry()
    controller = ViewportController(StubSurface(), registry)
    controller.on_selection_changed({"id": 1, "markerType": "lead", "position": [0.0, 0.0]})

    controller.on_selection_changed(None)

    assert registry.pending is None


def test_unresolvable_selection_is_a_no_op():
    surface = StubSurface()
    registry = MarkerRegistry()
    controller = ViewportController(surface, registry)

    assert not controller.on_selection_changed({"id": 9, "markerType": "quotation"})
    assert surface.calls == []
    assert registry.pending is None


def test_commands_before_ready_are_dropped():
    surface = StubSurface(ready=False)
    registry = MarkerRegistry()
    controller = ViewportController(surface, registry)

    assert not controller.on_selection_changed(_client())
    assert surface.calls == []
    assert registry.pending is None


def test_sync_only_applies_changed_selection():
    surface = StubSurface()
    controller = ViewportController(surface, MarkerRegistry())
    marker = _client()

    assert controller.sync(marker)
    assert not controller.sync(marker)
    assert len(surface.calls) == 1


def test_focus_region_uses_org_regions():
    config = MapConfig.from_payload(
        {"orgRegions": [{"name": "Pretoria", "center": {"lat": -25.74, "lng": 28.19}, "zoom": 12}]}
    )
    surface = StubSurface()
    controller = ViewportController(surface, MarkerRegistry(), map_config=config)

    assert controller.focus_region("Pretoria")
    assert not controller.focus_region("Durban")
    assert surface.calls == [((-25.74, 28.19), 12)]


def test_default_view_prefers_map_config():
    config = MapConfig.from_payload({"defaultCenter": {"lat": -33.92, "lng": 18.42}})

    view = resolve_default_view(config, environ={"OPSMAP_DEFAULT_LAT": "1", "OPSMAP_DEFAULT_LNG": "2"})

    assert view == MapView(center=(-33.92, 18.42), zoom=13)


def test_default_view_falls_back_to_environment():
    environ = {"OPSMAP_DEFAULT_LAT": "-29.85", "OPSMAP_DEFAULT_LNG": "31.02", "OPSMAP_DEFAULT_ZOOM": "11"}

    assert resolve_default_view(None, environ=environ) == MapView(center=(-29.85, 31.02), zoom=11)


@pytest.mark.parametrize(
    "environ",
    [
        {},
        {"OPSMAP_DEFAULT_LAT": "-29.85"},
        {"OPSMAP_DEFAULT_LAT": "north", "OPSMAP_DEFAULT_LNG": "31.02", "OPSMAP_DEFAULT_ZOOM": "close"},
    ],
)
def test_default_view_falls_back_to_johannesburg(environ):
    assert resolve_default_view(MapConfig(), environ=environ) == MapView(
        center=(-26.2041, 28.0473), zoom=13
    )


@pytest.mark.parametrize(
    "ready, newer",
    [
        (True, {"id": 9, "markerType": "quotation"}),
        (False, {"id": 2, "markerType": "lead", "position": [1.0, 1.0]}),
    ],
)
def test_unapplied_selection_still_supersedes_pending_popup(ready, newer):
    surface = StubSurface()
    registry = MarkerRegistry()
    controller = ViewportController(surface, registry)
    controller.on_selection_changed({"id": 1, "markerType": "lead", "position": [0.0, 0.0]})
    assert registry.pending == "lead:1"

    surface.ready = ready
    assert not controller.on_selection_changed(newer)

    handle = StubHandle()
    registry.register("lead:1", handle)

    assert registry.pending is None
    assert handle.opened == 0
