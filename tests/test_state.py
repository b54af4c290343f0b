from __future__ import annotations

from types import SimpleNamespace

import pytest

import dashboard.state as state
from opsmap.normalizer import normalize_entities


class FakeQueryParams(dict):
    def from_dict(self, params):
        self.clear()
        self.update(params)

    def get_all(self, key):
        value = self.get(key)
        return [] if value is None else [value]


@pytest.fixture
def fake_st(monkeypatch):
    fake = SimpleNamespace(session_state={}, query_params=FakeQueryParams())
    monkeypatch.setattr(state, "st", fake)
    return fake


@pytest.fixture
def markers():
    return normalize_entities(
        filtered_entities=[
            {"id": 5, "markerType": "client", "name": "Acme", "position": [-26.15, 28.02]},
            {"id": 7, "markerType": "competitor", "name": "Rival Co", "position": [-26.18, 28.06]},
        ]
    )


def test_selection_state_is_created_once(fake_st):
    first = state.get_selection_state()

    assert first.is_idle
    assert state.get_selection_state() is first


def test_click_persists_marker_param_and_keeps_view(fake_st, markers):
    fake_st.query_params.from_dict({"view": "Analytics"})

    selection = state._handle_marker_click(markers[1])

    assert selection.selected_key == "competitor:7"
    assert selection.highlighted_marker_id == "7"
    assert dict(fake_st.query_params) == {"view": "Analytics", "marker": "competitor:7"}


def test_restore_selection_prefers_session_over_query(fake_st, markers):
    fake_st.query_params.from_dict({"marker": "client:5"})

    assert state.restore_selection(markers).selected_key == "client:5"

    state._handle_marker_click(markers[1])
    fake_st.query_params.from_dict({"marker": "client:5"})
    refreshed = normalize_entities(
        filtered_entities=[{"id": 7, "markerType": "competitor", "position": [-26.0, 28.0]}]
    )

    restored = state.restore_selection(refreshed)

    assert restored.selected_marker is refreshed[0]


def test_restore_selection_clears_stale_key(fake_st, markers):
    fake_st.query_params.from_dict({"marker": "lead:404"})

    assert state.restore_selection(markers).selected_marker is None


def test_clear_selection_keeps_highlight_and_forgets_click(fake_st, markers):
    state._handle_marker_click(markers[0])
    assert state._consume_click(markers[0]) is True

    cleared = state._clear_selection()

    assert cleared.selected_marker is None
    assert cleared.highlighted_marker_id == "5"
    assert "marker" not in fake_st.query_params
    assert state._consume_click(markers[0]) is True


def test_consume_click_ignores_repeated_reports(fake_st, markers):
    assert state._consume_click(None) is False
    assert state._consume_click(markers[0]) is True
    assert state._consume_click(markers[0]) is False
    assert state._consume_click(markers[1]) is True


def test_highlight_is_independent_of_selection(fake_st, markers):
    state._handle_marker_click(markers[0])

    selection = state._highlight_marker(7)

    assert selection.selected_key == "client:5"
    assert selection.is_highlighted(markers[1])
    assert selection.is_highlighted(markers[0])
