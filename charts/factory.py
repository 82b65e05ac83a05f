"""Reusable chart factories for shot maps and xG distributions."""

from __future__ import annotations

import pandas as pd
import plotly.graph_objects as go

from charts.theme import PRESETS, apply_chart_theme, result_color
from charts.tokens import BASELINE_LINE, COURT, SUCCESS_RATE_COLORSCALE, TEXT
from constants import (
    COURT_LENGTH_M,
    COURT_WIDTH,
    COURT_WIDTH_M,
    GOAL_LINE_OFFSET_M,
    HEX_RADIUS_FULL,
    HEX_RADIUS_SPLIT,
    RESULT_ORDER,
    SUCCESS_RATE_DOMAIN,
)
from utils import format_pct

GOAL_WIDTH_M = 1.6


def _court_shapes(field_width: float, field_height: float, split: bool) -> list[dict]:
    sx = field_width / COURT_WIDTH_M
    sy = field_height / COURT_LENGTH_M
    goal_half = GOAL_WIDTH_M / 2 * sx
    centre_x = field_width / 2
    shapes = [
        dict(type="rect", x0=0, y0=0, x1=field_width, y1=field_height, line=dict(color=COURT.boards, width=2), layer="below"),
        dict(
            type="line",
            x0=0,
            x1=field_width,
            y0=field_height / 2,
            y1=field_height / 2,
            line=dict(color=COURT.pane_divider if split else COURT.lines, width=2 if split else 1, dash="solid" if split else "dash"),
            layer="below",
        ),
    ]
    goal_lines = (GOAL_LINE_OFFSET_M * sy, field_height - GOAL_LINE_OFFSET_M * sy)
    for y in goal_lines:
        shapes.append(
            dict(
                type="line",
                x0=centre_x - goal_half,
                x1=centre_x + goal_half,
                y0=y,
                y1=y,
                line=dict(color=COURT.goal, width=3),
                layer="below",
            )
        )
    return shapes


def hexbin_heatmap_chart(
    cells: pd.DataFrame,
    field_width: float,
    field_height: float,
    *,
    title: str | None = None,
    league_average: float | None = None,
):
    """Hexagon shot map: marker size tracks shot volume, colour tracks success rate."""
    split = cells is not None and not cells.empty and set(cells["Pane"]) != {"full"}
    fig = go.Figure()
    fig.update_layout(shapes=_court_shapes(field_width, field_height, split), title=title)

    if cells is not None and not cells.empty:
        pixel_scale = PRESETS["hero"]["height"] / float(field_height)
        reference = HEX_RADIUS_SPLIT if split else HEX_RADIUS_FULL
        diameter_px = 2 * reference * (field_width / COURT_WIDTH) * pixel_scale
        hover = [
            f"Shots: {int(shots)}<br>Goals: {int(goals)}<br>Success: {format_pct(float(rate) * 100)}"
            f"<br>xG min/avg/max: {lo:.2f} / {avg:.2f} / {hi:.2f}"
            for shots, goals, rate, lo, avg, hi in zip(
                cells["Shots"], cells["Goals"], cells["SuccessRate"], cells["MinXG"], cells["AvgXG"], cells["MaxXG"]
            )
        ]
        fig.add_trace(
            go.Scatter(
                x=cells["CellX"],
                y=cells["CellY"],
                mode="markers",
                marker=dict(
                    symbol="hexagon",
                    size=(cells["SizeFactor"].astype(float) * diameter_px).tolist(),
                    color=cells["SuccessRate"].astype(float).tolist(),
                    cmin=SUCCESS_RATE_DOMAIN[0],
                    cmax=SUCCESS_RATE_DOMAIN[-1],
                    colorscale=[list(stop) for stop in SUCCESS_RATE_COLORSCALE],
                    colorbar=dict(title="Success", tickformat=".0%"),
                    line=dict(width=0.5, color=TEXT.muted),
                ),
                text=hover,
                hoverinfo="text",
                showlegend=False,
            )
        )

    if league_average is not None:
        fig.add_annotation(
            x=field_width,
            y=0,
            xanchor="right",
            yanchor="bottom",
            text=f"League avg {format_pct(league_average * 100)}",
            showarrow=False,
            font=dict(color=TEXT.secondary),
        )

    apply_chart_theme(fig, tier="hero", show_grid=False, court=True)
    fig.update_xaxes(range=[0, field_width], visible=False)
    fig.update_yaxes(range=[field_height, 0], visible=False, scaleanchor="x", scaleratio=1)
    return fig


def xg_distribution_chart(
    histogram: pd.DataFrame,
    *,
    title: str | None = "xG distribution",
    results=RESULT_ORDER,
):
    """Stacked per-result bars over xG bins, with an optional peak-matched ``Baseline`` line."""
    fig = go.Figure()
    if histogram is None or histogram.empty:
        fig.update_layout(title=title)
        return apply_chart_theme(fig)

    mids = (histogram["BinStart"] + histogram["BinEnd"]) / 2
    width = float((histogram["BinEnd"] - histogram["BinStart"]).iloc[0])
    for result in results:
        if result not in histogram.columns:
            continue
        fig.add_trace(
            go.Bar(
                x=mids,
                y=histogram[result],
                width=width * 0.92,
                name=result,
                marker_color=result_color(result),
                hovertemplate=f"{result}: %{{y}}<extra></extra>",
            )
        )
    if "Baseline" in histogram.columns:
        fig.add_trace(
            go.Scatter(
                x=mids,
                y=histogram["Baseline"],
                mode="lines",
                name="All shots (scaled)",
                line=dict(BASELINE_LINE),
                line_shape="hvh",
            )
        )

    fig.update_layout(barmode="stack", title=title, bargap=0.04)
    apply_chart_theme(fig)
    fig.update_xaxes(title="xG", tickformat=".2f")
    fig.update_yaxes(title="Shots")
    return fig
