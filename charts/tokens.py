"""Immutable design tokens for chart theming."""

from dataclasses import dataclass
from types import MappingProxyType

from constants import RESULT_COLORS, SUCCESS_RATE_DOMAIN


@dataclass(frozen=True)
class TypographyScale:
    family: str = "Inter, Segoe UI, Roboto, Helvetica, Arial, sans-serif"
    title: int = 18
    subtitle: int = 15
    body: int = 13
    annotation: int = 11


@dataclass(frozen=True)
class SpacingScale:
    xs: int = 8
    sm: int = 12
    md: int = 16
    lg: int = 24
    xl: int = 32


@dataclass(frozen=True)
class PanelBackgrounds:
    canvas: str = "rgba(0,0,0,0)"
    panel: str = "#1e1e1e"
    elevated: str = "#252525"


@dataclass(frozen=True)
class NeutralTextColors:
    primary: str = "#f3f4f6"
    secondary: str = "#c9d1d9"
    muted: str = "#94a3b8"


@dataclass(frozen=True)
class CourtPalette:
    """Floorball court markings drawn under shot layers."""
    surface: str = "#1b3a2f"
    boards: str = "rgba(243,244,246,0.85)"
    lines: str = "rgba(243,244,246,0.45)"
    goal: str = "#ef4444"
    pane_divider: str = "rgba(243,244,246,0.65)"


TYPOGRAPHY = TypographyScale()
SPACING = SpacingScale()
BACKGROUNDS = PanelBackgrounds()
TEXT = NeutralTextColors()
COURT = CourtPalette()
GRID_OPACITY = 0.14

RESULT_ACCENTS = MappingProxyType(dict(RESULT_COLORS))

# Success-rate colour stops: cold below the league's typical rate, hot above it.
SUCCESS_RATE_COLORSCALE = (
    (SUCCESS_RATE_DOMAIN[0] / SUCCESS_RATE_DOMAIN[-1], "#3b82f6"),
    (SUCCESS_RATE_DOMAIN[1] / SUCCESS_RATE_DOMAIN[-1], "#facc15"),
    (SUCCESS_RATE_DOMAIN[2] / SUCCESS_RATE_DOMAIN[-1], "#ef4444"),
)

BASELINE_LINE = MappingProxyType({"color": "#a78bfa", "width": 2.2, "dash": "dot"})
