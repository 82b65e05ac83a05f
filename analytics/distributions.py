"""Expected-goal distributions stacked by result."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from analytics.attribution import prepare_shots
from analytics.spatial_binning import scale_baseline_to_peak
from constants import RESULT_ORDER, XG_BIN_WIDTH, XG_MAX


def xg_bin_edges(bin_width: float = XG_BIN_WIDTH, max_xg: float = XG_MAX) -> np.ndarray:
    count = int(round(max_xg / bin_width))
    return np.round(np.arange(count + 1) * bin_width, 10)


def xg_histogram(
    shots: pd.DataFrame | Iterable[Mapping],
    *,
    stack_by: str = "result",
    categories: Sequence[str] = RESULT_ORDER,
    bin_width: float = XG_BIN_WIDTH,
    max_xg: float = XG_MAX,
) -> pd.DataFrame:
    """Count shots per xG bin, one column per category plus ``Total``.

    Bins are half-open ``[start, end)`` except the last, which includes ``max_xg``.
    Shots above ``max_xg`` or with negative xG fall outside the histogram.
    """
    edges = xg_bin_edges(bin_width, max_xg)
    out = pd.DataFrame({"BinStart": edges[:-1], "BinEnd": edges[1:]})
    for category in categories:
        out[category] = 0

    df = prepare_shots(shots)
    if stack_by not in df.columns:
        raise KeyError(f"unknown stacking column: {stack_by}")
    xg = df["xg"].to_numpy()
    in_range = (xg >= 0) & (xg <= max_xg)
    df = df[in_range]
    if not df.empty:
        idx = np.clip(np.searchsorted(edges, df["xg"].to_numpy(), side="right") - 1, 0, len(edges) - 2)
        labels = df[stack_by].to_numpy()
        for category in categories:
            hits = idx[labels == category]
            out[category] = np.bincount(hits, minlength=len(edges) - 1)
    out["Total"] = out[list(categories)].sum(axis=1)
    return out


def compare_to_baseline(filtered: pd.DataFrame, baseline: pd.DataFrame, column: str = "Total") -> pd.DataFrame:
    """Attach a peak-matched ``Baseline`` column to a filtered histogram."""
    out = filtered.copy()
    out["Baseline"] = scale_baseline_to_peak(baseline[column], filtered[column])
    return out
