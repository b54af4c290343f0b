from __future__ import annotations

import json

import pytest

import opsmap.surface as surface_module
import render_map
from opsmap.payload import MapPayload


PAYLOAD = {
    "data": {
        "clients": [{"id": 5, "markerType": "client", "name": "Acme", "position": [-26.15, 28.02]}],
        "competitors": [{"id": 7, "markerType": "competitor", "name": "Rival Co", "position": [-26.18, 28.06]}],
        "leads": [{"id": 9, "markerType": "lead", "name": "No position"}],
        "routeOptimizations": {"totalWorkersOptimized": 2, "totalPotentialSaving": 4.2},
    }
}


@pytest.fixture(autouse=True)
def reset_icons(monkeypatch):
    monkeypatch.setattr(surface_module, "_default_icon_urls", None)


def _write(tmp_path, payload):
    path = tmp_path / "map_data.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_build_map_filters_and_selects():
    payload = MapPayload.from_response(PAYLOAD)

    surface = render_map.build_map(payload, marker_filter="competitor", selected_key="competitor:7")

    assert list(surface.registry) == ["competitor:7"]
    assert surface.registry.get("competitor:7").is_open
    assert surface.zoom == 15


def test_build_map_ignores_unknown_selection():
    surface = render_map.build_map(MapPayload.from_response(PAYLOAD), selected_key="client:404")

    assert len(surface.registry) == 2
    assert surface.zoom == 13


def test_main_writes_html(tmp_path, capsys):
    source = _write(tmp_path, PAYLOAD)
    out = tmp_path / "map.html"

    exit_code = render_map.main(["--data", str(source), "--out", str(out), "--show-routes"])

    assert exit_code == 0
    html = out.read_text(encoding="utf-8")
    assert "Route Optimisation" in html
    assert "L.Icon.Default.mergeOptions" in html
    assert "Map saved to" in capsys.readouterr().out


def test_main_reports_missing_file(tmp_path, capsys):
    exit_code = render_map.main(["--data", str(tmp_path / "missing.json")])

    assert exit_code == 1
    assert "Unable to read map data" in capsys.readouterr().out


def test_main_fails_without_markers(tmp_path, capsys):
    source = _write(tmp_path, {"data": {"leads": [{"id": 1, "markerType": "lead"}]}})
    out = tmp_path / "map.html"

    assert render_map.main(["--data", str(source), "--out", str(out)]) == 1
    assert not out.exists()
    assert "No markers" in capsys.readouterr().out
