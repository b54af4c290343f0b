from __future__ import annotations

from opsmap.normalizer import normalize_entities
from opsmap.selection import SelectionState, resolve_selection


def _markers():
    return normalize_entities(
        clients=[{"id": 3, "markerType": "client", "position": [-26.2, 28.0]}],
        competitors=[{"id": 3, "markerType": "competitor", "position": [-25.0, 27.0]}],
        leads=[{"id": 8, "markerType": "lead", "position": [-24.0, 26.0]}],
    )


def test_starts_idle():
    state = SelectionState()

    assert state.is_idle
    assert state.selected_key is None


def test_click_selects_and_highlights():
    client, competitor, lead = _markers()
    state = SelectionState()

    state.click(lead)

    assert not state.is_idle
    assert state.popup_visible(lead)
    assert not state.popup_visible(client)
    assert state.highlighted_marker_id == "8"
    assert state.is_highlighted(lead)


def test_selection_compares_stable_keys():
    client, competitor, _lead = _markers()
    state = SelectionState()

    state.select(client)

    assert state.is_selected(client)
    assert not state.is_selected(competitor)
    assert state.popup_visible(client)
    assert not state.popup_visible(competitor)


def test_highlight_is_independent_of_selection():
    client, _competitor, lead = _markers()
    state = SelectionState()
    state.select(lead)

    state.set_highlighted(3)

    assert state.is_highlighted(client)
    assert state.is_highlighted(lead)
    assert not state.popup_visible(client)
    assert state.selected_marker is lead


def test_highlight_matches_ids_as_strings():
    client, competitor, lead = _markers()
    state = SelectionState(highlighted_marker_id="3")

    assert state.is_highlighted(client)
    assert state.is_highlighted(competitor)
    assert not state.is_highlighted(lead)


def test_clear_selection_returns_to_idle_and_keeps_highlight():
    _client, _competitor, lead = _markers()
    state = SelectionState()
    state.click(lead)

    state.clear_selection()

    assert state.is_idle
    assert not state.popup_visible(lead)
    assert state.highlighted_marker_id == "8"


def test_resolve_selection_rebinds_fresh_markers():
    first_pass = _markers()
    second_pass = _markers()

    resolved = resolve_selection(second_pass, first_pass[1].key)

    assert resolved is second_pass[1]
    assert resolve_selection(second_pass, "lead:404") is None
    assert resolve_selection(second_pass, None) is None


def test_numeric_and_string_ids_share_a_key():
    (numeric,) = normalize_entities(clients=[{"id": 3, "markerType": "client", "position": [0.0, 0.0]}])
    (text,) = normalize_entities(clients=[{"id": "3", "markerType": "client", "position": [0.0, 0.0]}])

    assert numeric.key == text.key == "client:3"
    assert resolve_selection([numeric], "client:3") is numeric
