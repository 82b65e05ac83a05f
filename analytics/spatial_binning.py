"""Hexagonal spatial binning of shot locations.

Cells follow the pointy-top hexbin layout: row spacing ``1.5 r``, column spacing
``2 r sin(60°)``, odd rows shifted half a column. Points go to the nearest
cell centre.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Mapping

import numpy as np
import pandas as pd

from analytics.attribution import prepare_shots, shots_against_mask
from analytics.geometry import mirror_points, valid_coordinate_mask
from constants import (
    COURT_WIDTH,
    HEX_RADIUS_FULL,
    HEX_RADIUS_SPLIT,
    SIZE_EXPONENT,
    SIZE_RANGE_FULL,
    SIZE_RANGE_SPLIT,
)
from ledger.schema import ShotResult

logger = logging.getLogger(__name__)

PANE_FULL = "full"
PANE_OWN = "own"
PANE_AGAINST = "against"

CELL_COLUMNS = [
    "Pane",
    "CellX",
    "CellY",
    "Shots",
    "Goals",
    "SuccessRate",
    "MinXG",
    "AvgXG",
    "MaxXG",
    "SizeFactor",
]


@dataclass
class PaneDiagnostics:
    pane: str
    radius: float
    input_shots: int = 0
    skipped_possession: int = 0
    skipped_invalid: int = 0
    binned_shots: int = 0
    cells: int = 0


@dataclass
class BinningContext:
    """Per-call diagnostics collected while binning (one entry per pane)."""

    panes: dict[str, PaneDiagnostics] = field(default_factory=dict)

    def pane(self, name: str, radius: float) -> PaneDiagnostics:
        diag = PaneDiagnostics(pane=name, radius=radius)
        self.panes[name] = diag
        return diag

    def as_dict(self) -> dict[str, dict[str, float | int | str]]:
        return {name: vars(diag).copy() for name, diag in self.panes.items()}


def hex_radius(field_width: float, *, split: bool = False) -> float:
    """Reference radius scaled to the rendered field width."""
    reference = HEX_RADIUS_SPLIT if split else HEX_RADIUS_FULL
    return reference * float(field_width) / COURT_WIDTH


def _round_half_up(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


def hexbin_assign(x: Iterable[float], y: Iterable[float], radius: float) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Assign points to hex cells.

    Returns (col, row, centre_x, centre_y) arrays aligned to the input points.
    """
    if radius <= 0:
        raise ValueError(f"hex radius must be positive, got {radius}")
    px = np.asarray(x, dtype=float)
    py = np.asarray(y, dtype=float)
    dx = 2.0 * radius * math.sin(math.pi / 3.0)
    dy = 1.5 * radius

    ry = py / dy
    row = _round_half_up(ry)
    rx = px / dx - np.mod(row, 2) / 2.0
    col = _round_half_up(rx)

    off_y = ry - row
    near_edge = np.abs(off_y) * 3.0 > 1.0
    off_x = rx - col
    col2 = col + np.where(rx < col, -1.0, 1.0) / 2.0
    row2 = row + np.where(ry < row, -1.0, 1.0)
    off_x2 = rx - col2
    off_y2 = ry - row2
    use_alt = near_edge & ((off_x * dx) ** 2 + (off_y * dy) ** 2 > (off_x2 * dx) ** 2 + (off_y2 * dy) ** 2)
    col = np.where(use_alt, col2 + np.where(np.mod(row, 2) == 1, 1.0, -1.0) / 2.0, col)
    row = np.where(use_alt, row2, row)

    centre_x = (col + np.mod(row, 2) / 2.0) * dx
    centre_y = row * dy
    return col.astype(int), row.astype(int), centre_x, centre_y


def size_factor(counts: pd.Series, size_range: tuple[float, float]) -> pd.Series:
    """Power scale (exponent 0.8) from [0, max count] onto *size_range*."""
    lo, hi = size_range
    peak = float(counts.max()) if len(counts) else 0.0
    if peak <= 0:
        return pd.Series(lo, index=counts.index, dtype=float)
    return lo + (hi - lo) * (counts.astype(float) / peak) ** SIZE_EXPONENT


def aggregate_cells(
    x: np.ndarray,
    y: np.ndarray,
    xg: np.ndarray,
    is_goal: np.ndarray,
    radius: float,
    *,
    pane: str = PANE_FULL,
    size_range: tuple[float, float] = SIZE_RANGE_FULL,
) -> pd.DataFrame:
    """Bin points and summarize each non-empty cell."""
    if len(x) == 0:
        return pd.DataFrame(columns=CELL_COLUMNS)

    col, row, centre_x, centre_y = hexbin_assign(x, y, radius)
    points = pd.DataFrame(
        {
            "col": col,
            "row": row,
            "CellX": centre_x,
            "CellY": centre_y,
            "xg": np.asarray(xg, dtype=float),
            "goal": np.asarray(is_goal, dtype=bool).astype(int),
        }
    )
    cells = (
        points.groupby(["row", "col"], sort=True)
        .agg(
            CellX=("CellX", "first"),
            CellY=("CellY", "first"),
            Shots=("xg", "size"),
            Goals=("goal", "sum"),
            MinXG=("xg", "min"),
            AvgXG=("xg", "mean"),
            MaxXG=("xg", "max"),
        )
        .reset_index(drop=True)
    )
    cells["SuccessRate"] = cells["Goals"] / cells["Shots"]
    cells["SizeFactor"] = size_factor(cells["Shots"], size_range)
    cells["Pane"] = pane
    return cells[CELL_COLUMNS]


def _binnable(df: pd.DataFrame, diag: PaneDiagnostics) -> pd.DataFrame:
    diag.input_shots = int(len(df))
    possession = df["result"].str.lower().str.contains("possession", regex=False).fillna(False).astype(bool)
    diag.skipped_possession = int(possession.sum())
    df = df[~possession]
    valid = valid_coordinate_mask(df["x_graph"].to_numpy(), df["y_graph"].to_numpy())
    diag.skipped_invalid = int((~valid).sum())
    return df[valid]


def visual_coordinates(df: pd.DataFrame, field_width: float, field_height: float) -> tuple[np.ndarray, np.ndarray]:
    """Mirror non-home shots and scale to the rendered field."""
    is_home = (df["shooting_team"] == df["team1"]).to_numpy()
    return mirror_points(df["x_graph"].to_numpy(), df["y_graph"].to_numpy(), is_home, field_width, field_height)


def binned_heatmap(
    shots: pd.DataFrame | Iterable[Mapping],
    field_width: float,
    field_height: float,
    focus_entity: str | None = None,
    context: BinningContext | None = None,
) -> pd.DataFrame:
    """Hexbin summary of shot locations on a rendered field.

    Without a focus entity every shot is binned on the full field. With one, the
    entity's own shots fill the upper half and opponent shots taken while the
    entity was on court fill the lower half, each binned independently.
    """
    context = context if context is not None else BinningContext()
    df = prepare_shots(shots)
    goal_label = ShotResult.GOAL.value

    if not focus_entity:
        radius = hex_radius(field_width)
        diag = context.pane(PANE_FULL, radius)
        usable = _binnable(df, diag)
        vx, vy = visual_coordinates(usable, field_width, field_height)
        cells = aggregate_cells(
            vx, vy, usable["xg"].to_numpy(), (usable["result"] == goal_label).to_numpy(), radius, pane=PANE_FULL
        )
        diag.binned_shots = int(len(usable))
        diag.cells = int(len(cells))
        logger.debug("Binned %s shots into %s cells (r=%.2f)", diag.binned_shots, diag.cells, radius)
        return cells

    radius = hex_radius(field_width, split=True)
    half = float(field_height) / 2.0
    panes = (
        (PANE_OWN, df["shooter"] == focus_entity, 0.0),
        (PANE_AGAINST, shots_against_mask(df, focus_entity), half),
    )
    frames = []
    for pane, mask, offset in panes:
        diag = context.pane(pane, radius)
        usable = _binnable(df[mask], diag)
        vx, vy = visual_coordinates(usable, field_width, field_height)
        vy = vy / float(field_height) * half + offset
        cells = aggregate_cells(
            vx,
            vy,
            usable["xg"].to_numpy(),
            (usable["result"] == goal_label).to_numpy(),
            radius,
            pane=pane,
            size_range=SIZE_RANGE_SPLIT,
        )
        diag.binned_shots = int(len(usable))
        diag.cells = int(len(cells))
        frames.append(cells)
    logger.debug("Split binning for %s: %s", focus_entity, context.as_dict())
    non_empty = [frame for frame in frames if not frame.empty]
    if not non_empty:
        return pd.DataFrame(columns=CELL_COLUMNS)
    return pd.concat(non_empty, ignore_index=True)


def league_average(shots: pd.DataFrame | Iterable[Mapping]) -> float:
    """Goals per attempt over the whole collection (reference for success-rate colouring)."""
    df = prepare_shots(shots)
    if df.empty:
        return 0.0
    return float((df["result"] == ShotResult.GOAL.value).sum() / len(df))


def scale_baseline_to_peak(baseline: Iterable[float], filtered: Iterable[float]) -> np.ndarray:
    """Scale a baseline series so its peak matches the filtered series' peak.

    Display aid for overlaying distributions, not a statistical normalization.
    """
    base = np.asarray(list(baseline), dtype=float)
    current = np.asarray(list(filtered), dtype=float)
    base_peak = float(base.max()) if base.size else 0.0
    current_peak = float(current.max()) if current.size else 0.0
    if base_peak <= 0:
        return np.zeros_like(base)
    return base * (current_peak / base_peak)
