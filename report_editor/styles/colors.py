"""Editor palette, chart types and theme defaults."""

import re

from report_editor.core.chart import ChartType

DATASET_PALETTE = [
    "#3b82f6",
    "#ef4444",
    "#22c55e",
    "#f59e0b",
    "#8b5cf6",
    "#ec4899",
]

CHART_TYPE_LABELS = {
    ChartType.BAR: "Bar",
    ChartType.LINE: "Line",
    ChartType.PIE: "Pie",
    ChartType.DOUGHNUT: "Doughnut",
    ChartType.RADAR: "Radar",
    ChartType.POLAR_AREA: "Polar Area",
}

FONT_OPTIONS = [
    ("Inter, sans-serif", "Inter"),
    ("Arial, sans-serif", "Arial"),
    ("Georgia, serif", "Georgia"),
    ("'Playfair Display', serif", "Playfair Display"),
    ("'Roboto', sans-serif", "Roboto"),
    ("'Open Sans', sans-serif", "Open Sans"),
    ("'Lato', sans-serif", "Lato"),
    ("'Montserrat', sans-serif", "Montserrat"),
    ("monospace", "Monospace"),
]

DEFAULT_FONT_FAMILY = "Inter, sans-serif"
DEFAULT_BACKGROUND_COLOR = "#ffffff"
DEFAULT_ACCENT_COLOR = "#3b82f6"
DEFAULT_TEXT_COLOR = "#000000"

# 0x22 / 0xFF ~ 13% opacity
ACCENT_ALPHA_HEX = "22"

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def palette_color(index: int, palette=None) -> str:
    """Return the palette entry for a dataset position, wrapping around."""
    colors = palette or DATASET_PALETTE
    return colors[index % len(colors)]


def translucent(color: str) -> str:
    """Return a ~13% alpha version of ``color`` for accent backgrounds."""
    color = color.strip()
    if _HEX_COLOR.match(color):
        if len(color) == 4:
            color = "#" + "".join(ch * 2 for ch in color[1:])
        return f"{color}{ACCENT_ALPHA_HEX}"
    return f"color-mix(in srgb, {color} 13%, transparent)"
