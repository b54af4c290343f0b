from __future__ import annotations

import json
import logging

import pytest

from opsmap.normalizer import normalize_entities
from opsmap.payload import MapPayload, load_payload


RESPONSE = {
    "success": True,
    "data": {
        "workers": [{"id": 1, "markerType": "check-in", "position": [-26.1, 28.0]}],
        "clients": [{"id": 5, "markerType": "client", "name": "Acme", "location": {"lat": -26.2, "lng": 28.1}}],
        "checkIns": [],
        "mapConfig": {
            "defaultCenter": {"lat": -33.92, "lng": 18.42},
            "orgRegions": [{"name": "Cape Town", "center": {"lat": -33.9, "lng": 18.4}, "zoom": 11}],
        },
        "gpsAnalysis": {"totalWorkersAnalyzed": 3},
    },
}


def test_from_response_accepts_wrapped_and_bare_data():
    wrapped = MapPayload.from_response(RESPONSE)
    bare = MapPayload.from_response(RESPONSE["data"])

    assert wrapped == bare
    assert wrapped.entity_count == 2
    assert wrapped.collections["check_ins"] == []
    assert wrapped.map_config.default_center == (-33.92, 18.42)
    assert wrapped.map_config.region("Cape Town").zoom == 11
    assert wrapped.gps_analysis == {"totalWorkersAnalyzed": 3}
    assert wrapped.route_optimizations is None


def test_from_response_rejects_non_objects():
    with pytest.raises(ValueError):
        MapPayload.from_response(["workers"])
    with pytest.raises(ValueError):
        MapPayload.from_response({"data": []})


def test_malformed_sections_are_ignored(caplog):
    with caplog.at_level(logging.WARNING, logger="opsmap.payload"):
        payload = MapPayload.from_response({"clients": {"id": 1}, "gpsAnalysis": "n/a"})

    assert payload.collections["clients"] == []
    assert payload.gps_analysis is None
    assert "clients" in caplog.text


def test_normalizer_kwargs_feed_the_normalizer():
    payload = MapPayload.from_response(RESPONSE)

    markers = normalize_entities(**payload.normalizer_kwargs())

    assert [marker.key for marker in markers] == ["check-in:1", "client:5"]


def test_all_markers_take_precedence_over_collections():
    data = dict(RESPONSE["data"], allMarkers=[{"id": 9, "markerType": "lead", "position": [-26.0, 28.0]}])

    markers = normalize_entities(**MapPayload.from_response(data).normalizer_kwargs())

    assert [marker.key for marker in markers] == ["lead:9"]


def test_load_payload_reads_json_file(tmp_path):
    path = tmp_path / "map.json"
    path.write_text(json.dumps(RESPONSE), encoding="utf-8")

    payload = load_payload(path)

    assert payload.entity_count == 2


def test_load_payload_propagates_missing_file(tmp_path):
    with pytest.raises(OSError):
        load_payload(tmp_path / "missing.json")
