"""Centralized Plotly chart theme helpers."""

from __future__ import annotations

from typing import Any

from .tokens import BACKGROUNDS, COURT, GRID_OPACITY, RESULT_ACCENTS, SPACING, TEXT, TYPOGRAPHY


def result_color(result: str) -> str:
    """Colour for a shot result label; free-form results fall back to muted text."""
    return RESULT_ACCENTS.get(result, TEXT.muted)


PRESETS = {
    "hero": {
        "height": 620,
        "margin": dict(l=SPACING.lg, r=SPACING.lg, t=SPACING.xl, b=SPACING.lg),
        "title_size": TYPOGRAPHY.title,
    },
    "support": {
        "height": 340,
        "margin": dict(l=SPACING.md, r=SPACING.md, t=SPACING.lg, b=SPACING.md),
        "title_size": TYPOGRAPHY.subtitle,
    },
}


def apply_chart_theme(fig: Any, tier: str = "support", *, show_grid: bool = True, court: bool = False):
    """Apply ledger-wide defaults for Plotly figures.

    *court* paints the plot area with the court surface and hides axis ticks,
    for figures drawn in field coordinates.
    """
    preset = PRESETS.get(tier, PRESETS["support"])
    grid_color = f"rgba(255,255,255,{GRID_OPACITY})" if show_grid else "rgba(0,0,0,0)"

    fig.update_layout(
        font=dict(family=TYPOGRAPHY.family, size=TYPOGRAPHY.body, color=TEXT.primary),
        title=dict(font=dict(size=preset["title_size"], color=TEXT.primary), x=0.01, xanchor="left"),
        margin=preset["margin"],
        height=preset["height"],
        plot_bgcolor=COURT.surface if court else BACKGROUNDS.panel,
        paper_bgcolor=BACKGROUNDS.canvas,
        legend=dict(
            bgcolor="rgba(0,0,0,0)",
            borderwidth=0,
            font=dict(color=TEXT.secondary, size=TYPOGRAPHY.annotation),
        ),
        hoverlabel=dict(
            bgcolor=BACKGROUNDS.elevated,
            bordercolor=BACKGROUNDS.elevated,
            font=dict(color=TEXT.primary, size=TYPOGRAPHY.annotation, family=TYPOGRAPHY.family),
        ),
    )

    axis_style = dict(
        showline=False,
        zeroline=False,
        gridcolor=grid_color,
        showgrid=show_grid,
        showticklabels=not court,
        tickfont=dict(color=TEXT.secondary, size=TYPOGRAPHY.annotation),
    )
    fig.update_xaxes(**axis_style)
    fig.update_yaxes(**axis_style)
    return fig
