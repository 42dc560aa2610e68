from __future__ import annotations

from typing import Dict

from rich.style import Style

from watchtower.core.types import ThreatLevel

COLOR_BORDER = "#30363d"
COLOR_ACCENT = "#58a6ff"
COLOR_GOLD = "#d29922"
COLOR_GREEN = "#3fb950"
COLOR_RED = "#f85149"
COLOR_ORANGE = "#db6d28"
COLOR_YELLOW = "#e3b341"
COLOR_MUTED = "#8b949e"
COLOR_WHITE = "#e6edf3"
COLOR_PURPLE = "#bc8cff"
COLOR_PANEL_BG = "#161b22"

HEADER = Style(bgcolor=COLOR_PANEL_BG)
TITLE = Style(color=COLOR_ACCENT, bold=True)
SUBTITLE = Style(color=COLOR_MUTED)
ACTIVE_TAB = Style(color="#0d1117", bgcolor=COLOR_ACCENT, bold=True)
INACTIVE_TAB = Style(color=COLOR_MUTED)
PANE_BORDER = Style(color=COLOR_BORDER)
FOOTER = Style(color=COLOR_MUTED)
FOOTER_STATUS = Style(color=COLOR_GREEN, bold=True)

SECTION_HEADER = Style(color=COLOR_WHITE, bgcolor=COLOR_PANEL_BG, bold=True)
SUBSECTION_HEADER = Style(color=COLOR_GOLD, bold=True)
TABLE_HEADER = Style(color=COLOR_MUTED, bold=True)
DIVIDER = Style(color=COLOR_BORDER)
MUTED = Style(color=COLOR_MUTED)
ERROR = Style(color=COLOR_RED, bold=True)
WARNING = Style(color=COLOR_YELLOW)
SPINNER = Style(color=COLOR_ACCENT)

NEWS_TITLE = Style(color=COLOR_WHITE)
SOURCE = Style(color=COLOR_PURPLE)
AGE = Style(color=COLOR_MUTED)
SELECTED_ROW = Style(bgcolor="#1f2937")
SELECTED_TITLE = Style(color=COLOR_ACCENT, bold=True)

SYMBOL = Style(color=COLOR_GOLD, bold=True)
POSITIVE = Style(color=COLOR_GREEN)
NEGATIVE = Style(color=COLOR_RED)
NEUTRAL = Style(color=COLOR_YELLOW)

BRIEF_TITLE = Style(color=COLOR_GOLD, bold=True)
BRIEF_META = Style(color=COLOR_MUTED, italic=True)
THREAT_ITEM = Style(color=COLOR_ORANGE)

QUADRANT_TITLE = Style(color=COLOR_ACCENT, bgcolor=COLOR_PANEL_BG, bold=True)
QUADRANT_BORDER = Style(color=COLOR_BORDER)
WEATHER_TEMP = Style(color=COLOR_YELLOW, bold=True)
WEATHER_DESC = Style(color=COLOR_WHITE)

THREAT_BADGES: Dict[ThreatLevel, Style] = {
    ThreatLevel.CRITICAL: Style(color="white", bgcolor="#b91c1c", bold=True),
    ThreatLevel.HIGH: Style(color="white", bgcolor="#92400e", bold=True),
    ThreatLevel.MEDIUM: Style(color=COLOR_WHITE, bgcolor="#1e3a5f"),
    ThreatLevel.LOW: Style(color=COLOR_WHITE, bgcolor="#1a3622"),
    ThreatLevel.INFO: Style(color=COLOR_MUTED, bgcolor="#1c2128"),
}

SPINNER_FRAMES = ("⣾", "⣽", "⣻", "⢿", "⡿", "⣟", "⣯", "⣷")


def risk_bar_style(score: int) -> Style:
    if score >= 75:
        return Style(color=COLOR_RED)
    if score >= 50:
        return Style(color=COLOR_ORANGE)
    if score >= 25:
        return Style(color=COLOR_YELLOW)
    return Style(color=COLOR_GREEN)


def change_style(change_pct: float) -> Style:
    return NEGATIVE if change_pct < 0 else POSITIVE


def probability_style(probability: float) -> Style:
    if probability >= 0.66:
        return POSITIVE
    if probability <= 0.33:
        return NEGATIVE
    return NEUTRAL
