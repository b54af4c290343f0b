"""Visual encoding for map markers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

__all__ = [
    "BORDER_WIDTH_HIGHLIGHTED_PX",
    "BORDER_WIDTH_PX",
    "BRIGHTEN_DELTA",
    "CLIENT_PRICE_TIER_COLOURS",
    "CLIENT_STATUS_COLOURS",
    "FALLBACK_STYLE",
    "HIGHLIGHTED_SIZE_PX",
    "MARKER_SIZE_PX",
    "MARKER_STYLES",
    "MarkerIcon",
    "MarkerStyle",
    "brighten_hex",
    "client_colour",
    "create_marker_icon",
    "hex_to_rgb",
    "icon_anchor",
    "icon_html",
    "rgb_to_hex",
]

MARKER_SIZE_PX = 34
HIGHLIGHTED_SIZE_PX = 42
BORDER_WIDTH_PX = 2
BORDER_WIDTH_HIGHLIGHTED_PX = 3
BRIGHTEN_DELTA = 30
_STEM_HEIGHT_PX = 10


@dataclass(frozen=True)
class MarkerStyle:
    colour: str
    glyph_id: str


@dataclass(frozen=True)
class MarkerIcon:
    """Resolved visual style for one marker."""

    color: str
    glyph_id: str
    size_px: int
    border_width_px: int
    highlighted: bool = False


MARKER_STYLES: Dict[str, MarkerStyle] = {
    "check-in": MarkerStyle("#3b82f6", "map-pin"),
    "shift-start": MarkerStyle("#10b981", "play-circle"),
    "shift-end": MarkerStyle("#059669", "timer-off"),
    "break-start": MarkerStyle("#eab308", "coffee"),
    "break-end": MarkerStyle("#ca8a04", "coffee"),
    "task": MarkerStyle("#8b5cf6", "kanban"),
    "journal": MarkerStyle("#a855f7", "file-text"),
    "lead": MarkerStyle("#f97316", "user-plus"),
    "check-in-visit": MarkerStyle("#2563eb", "map-pin"),
    "client": MarkerStyle("#06b6d4", "building"),
    "competitor": MarkerStyle("#ef4444", "alert-triangle"),
    "quotation": MarkerStyle("#16a34a", "receipt"),
}

FALLBACK_STYLE = MarkerStyle("#6b7280", "circle")

CLIENT_STATUS_COLOURS: Dict[str, str] = {
    "active": "#06b6d4",
    "inactive": "#94a3b8",
    "potential": "#22d3ee",
}

CLIENT_PRICE_TIER_COLOURS: Dict[str, str] = {
    "premium": "#3b82f6",
    "standard": "#06b6d4",
    "basic": "#0891b2",
}

_GLYPH_PATHS: Dict[str, str] = {
    "map-pin": (
        '<path d="M20 10c0 6-8 12-8 12s-8-6-8-12a8 8 0 0 1 16 0Z"></path>'
        '<circle cx="12" cy="10" r="3"></circle>'
    ),
    "play-circle": (
        '<circle cx="12" cy="12" r="10"></circle>'
        '<polygon points="10 8 16 12 10 16 10 8"></polygon>'
    ),
    "timer-off": (
        '<circle cx="12" cy="12" r="10"></circle>'
        '<polyline points="12 6 12 12 16 14"></polyline>'
    ),
    "coffee": (
        '<path d="M17 8h1a4 4 0 1 1 0 8h-1"></path>'
        '<path d="M3 8h14v9a4 4 0 0 1-4 4H7a4 4 0 0 1-4-4Z"></path>'
    ),
    "kanban": (
        '<rect width="18" height="18" x="3" y="3" rx="2"></rect>'
        '<path d="M3 9h18"></path><path d="M9 21V9"></path>'
    ),
    "file-text": (
        '<path d="M14 3v4a1 1 0 0 0 1 1h4"></path>'
        '<path d="M17 21H7a2 2 0 0 1-2-2V5a2 2 0 0 1 2-2h7l5 5v11a2 2 0 0 1-2 2z"></path>'
        '<line x1="9" y1="13" x2="15" y2="13"></line>'
    ),
    "user-plus": (
        '<path d="M16 21v-2a4 4 0 0 0-4-4H6a4 4 0 0 0-4 4v2"></path>'
        '<circle cx="9" cy="7" r="4"></circle>'
        '<line x1="19" y1="8" x2="19" y2="14"></line><line x1="22" y1="11" x2="16" y2="11"></line>'
    ),
    "building": (
        '<rect width="16" height="20" x="4" y="2" rx="2"></rect>'
        '<path d="M9 22v-4h6v4"></path><path d="M8 6h.01M16 6h.01M8 10h.01M16 10h.01"></path>'
    ),
    "alert-triangle": (
        '<path d="m21.73 18-8-14a2 2 0 0 0-3.48 0l-8 14A2 2 0 0 0 4 21h16a2 2 0 0 0 1.73-3Z"></path>'
        '<line x1="12" y1="9" x2="12" y2="13"></line><line x1="12" y1="17" x2="12.01" y2="17"></line>'
    ),
    "receipt": (
        '<path d="M4 2v20l2-1 2 1 2-1 2 1 2-1 2 1 2-1 2 1V2l-2 1-2-1-2 1-2-1-2 1-2-1-2 1Z"></path>'
        '<path d="M16 8h-6a2 2 0 1 0 0 4h4a2 2 0 1 1 0 4H8"></path>'
    ),
    "circle": '<circle cx="12" cy="12" r="10"></circle>',
}


def hex_to_rgb(value: str) -> Tuple[int, int, int]:
    """Convert a ``#rgb`` or ``#rrggbb`` string into an ``(r, g, b)`` tuple."""

    colour = value.strip()
    digits = colour[1:] if colour.startswith("#") else ""
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) != 6:
        raise ValueError(f"Unsupported hex colour format: {value}")
    try:
        return tuple(int(digits[idx : idx + 2], 16) for idx in (0, 2, 4))  # type: ignore[return-value]
    except ValueError as exc:
        raise ValueError(f"Unsupported hex colour format: {value}") from exc


def rgb_to_hex(rgb: Tuple[int, int, int]) -> str:
    return "#" + "".join(f"{max(0, min(255, int(channel))):02x}" for channel in rgb)


def brighten_hex(value: str, delta: int = BRIGHTEN_DELTA) -> str:
    """Return ``value`` with ``delta`` added to each channel, clamped to 255."""

    red, green, blue = hex_to_rgb(value)
    return rgb_to_hex((min(255, red + delta), min(255, green + delta), min(255, blue + delta)))


def _text(metadata: Optional[Mapping[str, Any]], name: str) -> Optional[str]:
    if not metadata:
        return None
    value = metadata.get(name)
    if isinstance(value, str) and value.strip():
        return value.strip().lower()
    return None


def client_colour(metadata: Optional[Mapping[str, Any]] = None) -> str:
    """Return the client colour keyed on ``status`` then ``priceTier``."""

    status = _text(metadata, "status")
    if status in CLIENT_STATUS_COLOURS:
        return CLIENT_STATUS_COLOURS[status]
    tier = _text(metadata, "priceTier")
    if tier in CLIENT_PRICE_TIER_COLOURS:
        return CLIENT_PRICE_TIER_COLOURS[tier]
    return MARKER_STYLES["client"].colour


def create_marker_icon(
    marker_type: Optional[str],
    is_highlighted: bool = False,
    metadata: Optional[Mapping[str, Any]] = None,
) -> MarkerIcon:
    """Return the visual style for a marker of ``marker_type``."""

    style = MARKER_STYLES.get(marker_type or "", FALLBACK_STYLE)
    colour = client_colour(metadata) if marker_type == "client" else style.colour
    if is_highlighted:
        colour = brighten_hex(colour)
    return MarkerIcon(
        color=colour,
        glyph_id=style.glyph_id,
        size_px=HIGHLIGHTED_SIZE_PX if is_highlighted else MARKER_SIZE_PX,
        border_width_px=BORDER_WIDTH_HIGHLIGHTED_PX if is_highlighted else BORDER_WIDTH_PX,
        highlighted=is_highlighted,
    )


def icon_anchor(icon: MarkerIcon) -> Dict[str, Tuple[int, int]]:
    """Return folium ``DivIcon`` sizing for ``icon`` (tip of the stem on the point)."""

    height = icon.size_px + _STEM_HEIGHT_PX
    return {
        "icon_size": (icon.size_px, height),
        "icon_anchor": (icon.size_px // 2, height),
        "popup_anchor": (0, -height),
    }


def icon_html(icon: MarkerIcon) -> str:
    """Render the DivIcon markup: a filled circle with a glyph and a stem."""

    glyph = _GLYPH_PATHS.get(icon.glyph_id, _GLYPH_PATHS["circle"])
    glyph_size = 18 if not icon.highlighted else 22
    shadow = (
        "0 0 0 4px rgba(255,255,255,0.7), 0 0 15px rgba(0,0,0,0.3)"
        if icon.highlighted
        else "0 2px 5px rgba(0,0,0,0.2)"
    )
    return (
        f'<div class="opsmap-marker" style="width:{icon.size_px}px;height:{icon.size_px}px;'
        f"border-radius:50%;background-color:{icon.color};"
        f"border:{icon.border_width_px}px solid #ffffff;box-sizing:border-box;"
        f'display:flex;align-items:center;justify-content:center;box-shadow:{shadow};">'
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{glyph_size}" height="{glyph_size}" '
        'viewBox="0 0 24 24" fill="none" stroke="white" stroke-width="2" '
        f'stroke-linecap="round" stroke-linejoin="round">{glyph}</svg></div>'
        f'<div style="width:2px;height:{_STEM_HEIGHT_PX}px;'
        f'background-color:{icon.color};margin:0 auto;"></div>'
    )
