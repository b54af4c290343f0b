from __future__ import annotations

import pytest

from opsmap.entities import DOCUMENTED_MARKER_TYPES
from opsmap.icons import (
    FALLBACK_STYLE,
    MARKER_STYLES,
    brighten_hex,
    client_colour,
    create_marker_icon,
    hex_to_rgb,
    icon_anchor,
    icon_html,
)


@pytest.mark.parametrize("marker_type", [*DOCUMENTED_MARKER_TYPES, "unknown", None])
def test_highlighted_icons_are_larger_and_brighter(marker_type):
    plain = create_marker_icon(marker_type)
    highlighted = create_marker_icon(marker_type, is_highlighted=True)

    assert highlighted.size_px > plain.size_px
    assert highlighted.border_width_px > plain.border_width_px
    for before, after in zip(hex_to_rgb(plain.color), hex_to_rgb(highlighted.color)):
        assert before <= after <= 255


def test_every_documented_type_has_a_palette_entry():
    assert set(DOCUMENTED_MARKER_TYPES) <= set(MARKER_STYLES)


def test_unknown_types_fall_back_to_grey_circle():
    icon = create_marker_icon("vehicle")

    assert icon.color == FALLBACK_STYLE.colour == "#6b7280"
    assert icon.glyph_id == "circle"


def test_highlighted_competitor_icon():
    icon = create_marker_icon("competitor", is_highlighted=True)

    assert icon.color == "#ff6262"
    assert icon.size_px == 42
    assert icon.border_width_px == 3
    assert MARKER_STYLES["competitor"].colour == "#ef4444"


def test_plain_icon_dimensions():
    icon = create_marker_icon("task")

    assert (icon.size_px, icon.border_width_px) == (34, 2)
    assert icon.color == "#8b5cf6"


@pytest.mark.parametrize(
    "metadata, expected",
    [
        ({"status": "active"}, "#06b6d4"),
        ({"status": "inactive", "priceTier": "premium"}, "#94a3b8"),
        ({"status": "potential"}, "#22d3ee"),
        ({"priceTier": "premium"}, "#3b82f6"),
        ({"priceTier": "standard"}, "#06b6d4"),
        ({"priceTier": "basic"}, "#0891b2"),
        ({"status": "archived", "priceTier": "basic"}, "#0891b2"),
        ({}, "#06b6d4"),
        (None, "#06b6d4"),
    ],
)
def test_client_colour_rules(metadata, expected):
    assert client_colour(metadata) == expected
    assert create_marker_icon("client", metadata=metadata).color == expected


def test_client_colour_ignores_metadata_for_other_types():
    assert create_marker_icon("lead", metadata={"status": "inactive"}).color == "#f97316"


def test_brighten_clamps_each_channel():
    assert brighten_hex("#ffffff") == "#ffffff"
    assert brighten_hex("#000000") == "#1e1e1e"
    assert brighten_hex("#f0e0d0") == "#fffeee"


def test_brighten_does_not_mutate_palette():
    before = dict(MARKER_STYLES)

    create_marker_icon("client", is_highlighted=True, metadata={"status": "active"})

    assert MARKER_STYLES == before


@pytest.mark.parametrize("value", ["#12", "blue", "#gggggg", "rgb(1, 2)", "rgb(1, 2, 3)"])
def test_hex_to_rgb_rejects_malformed_colours(value):
    with pytest.raises(ValueError):
        hex_to_rgb(value)


def test_icon_html_and_anchor_follow_icon_size():
    icon = create_marker_icon("journal", is_highlighted=True)

    markup = icon_html(icon)
    anchor = icon_anchor(icon)

    assert "width:42px" in markup
    assert icon.color in markup
    assert "3px solid" in markup
    assert anchor["icon_anchor"][0] == 21
    assert anchor["icon_size"][0] == 42
