"""Goalkeeper analytics: faced shots, save quadrants, and save-rate summaries.

A goalkeeper "faces" an opponent attempt that was saved or scored while the
net was manned (extra-attacker slot empty). See ``analytics.attribution``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable, Mapping

import numpy as np
import pandas as pd

from analytics.attribution import attribute_goalkeepers
from analytics.uncertainty import binomial_rate_estimate, deterministic_seed
from constants import HIGH_DANGER_XG, LOW_DANGER_XG, TURNOVER_LABEL
from ledger.schema import ShotResult

QUADRANT_HERO_SAVE = "hero_save"
QUADRANT_ROUTINE_SAVE = "routine_save"
QUADRANT_ACCEPTABLE_GOAL = "acceptable_goal"
QUADRANT_LOW_XG_GOAL = "low_xg_goal"
QUADRANTS = (QUADRANT_HERO_SAVE, QUADRANT_ROUTINE_SAVE, QUADRANT_ACCEPTABLE_GOAL, QUADRANT_LOW_XG_GOAL)

SHOT_TYPE_CATEGORIES = ("Direct", "One-timer", "Direct Turnover", "One-timer Turnover", "Rebound", "Other")


def shot_type_category(shot_type: object) -> str:
    """Collapse a free-form type tag (``"Turnover | One-timer"``) to a fixed category."""
    text = "" if shot_type is None else str(shot_type)
    turnover = TURNOVER_LABEL in text
    if "Direct" in text:
        return "Direct Turnover" if turnover else "Direct"
    if "One-timer" in text:
        return "One-timer Turnover" if turnover else "One-timer"
    if "Rebound" in text:
        return "Rebound"
    return "Other"


def save_quadrant(xg: float, result: str) -> str | None:
    if result == ShotResult.SAVED.value:
        if xg > HIGH_DANGER_XG:
            return QUADRANT_HERO_SAVE
        if xg >= 0:
            return QUADRANT_ROUTINE_SAVE
        return None
    if result == ShotResult.GOAL.value:
        if xg > HIGH_DANGER_XG:
            return QUADRANT_ACCEPTABLE_GOAL
        if xg < LOW_DANGER_XG:
            return QUADRANT_LOW_XG_GOAL
    return None


def faced_shots(shots: pd.DataFrame | Iterable[Mapping], goalkeeper: str | None = None) -> pd.DataFrame:
    """Goalkeeper-facing shots with ``goalkeeper``, ``category`` and ``quadrant`` columns."""
    faced = attribute_goalkeepers(shots)
    if goalkeeper is not None:
        faced = faced[faced["goalkeeper"] == goalkeeper]
    faced = faced.copy()
    faced["category"] = [shot_type_category(t) for t in faced["type"].tolist()]
    faced["quadrant"] = [save_quadrant(x, r) for x, r in zip(faced["xg"].tolist(), faced["result"].tolist())]
    return faced


def goalkeeper_list(shots: pd.DataFrame | Iterable[Mapping]) -> pd.DataFrame:
    """Goalkeepers who faced at least one shot, with games played; most games first."""
    faced = attribute_goalkeepers(shots)
    if faced.empty:
        return pd.DataFrame(columns=["goalkeeper", "games", "shots_faced"])
    game_key = "game_id" if "game_id" in faced.columns else "date"
    grouped = (
        faced.groupby("goalkeeper")
        .agg(games=(game_key, "nunique"), shots_faced=("xg", "size"))
        .reset_index()
    )
    grouped["_name_key"] = grouped["goalkeeper"].str.lower()
    grouped = grouped.sort_values(["games", "_name_key"], ascending=[False, True], kind="mergesort")
    return grouped.drop(columns=["_name_key"]).reset_index(drop=True)


def quadrant_counts(shots: pd.DataFrame | Iterable[Mapping], goalkeeper: str) -> dict[str, int]:
    faced = faced_shots(shots, goalkeeper)
    counts = faced["quadrant"].value_counts()
    return {quadrant: int(counts.get(quadrant, 0)) for quadrant in QUADRANTS}


def type_breakdown(shots: pd.DataFrame | Iterable[Mapping], goalkeeper: str | None = None) -> pd.DataFrame:
    """Saved/Goal counts per shot-type category."""
    faced = faced_shots(shots, goalkeeper)
    out = pd.DataFrame({"category": list(SHOT_TYPE_CATEGORIES)})
    for result in (ShotResult.GOAL.value, ShotResult.SAVED.value):
        counts = faced.loc[faced["result"] == result, "category"].value_counts()
        out[result] = [int(counts.get(category, 0)) for category in SHOT_TYPE_CATEGORIES]
    out["Total"] = out[ShotResult.GOAL.value] + out[ShotResult.SAVED.value]
    return out


@dataclass(frozen=True)
class GoalkeeperSummary:
    goalkeeper: str
    games: int
    shots_faced: int
    saves: int
    goals_against: int
    save_pct: float
    save_pct_ci_low: float
    save_pct_ci_high: float
    reliability: str
    xg_against: float
    goals_saved_above_expected: float
    hero_saves: int
    routine_saves: int
    acceptable_goals: int
    low_xg_goals: int

    def as_dict(self) -> dict[str, float | int | str]:
        return asdict(self)


def goalkeeper_summary(goalkeeper: str, shots: pd.DataFrame | Iterable[Mapping]) -> GoalkeeperSummary | None:
    """Save-rate profile for one goalkeeper, or None if they faced no shots."""
    faced = faced_shots(shots, goalkeeper)
    if faced.empty:
        return None

    saves = int((faced["result"] == ShotResult.SAVED.value).sum())
    goals = int((faced["result"] == ShotResult.GOAL.value).sum())
    total = saves + goals
    xg_against = float(np.sum(faced["xg"].to_numpy()))
    estimate = binomial_rate_estimate(saves, total, seed=deterministic_seed(goalkeeper, total, "save_pct"))
    counts = faced["quadrant"].value_counts()
    game_key = "game_id" if "game_id" in faced.columns else "date"

    return GoalkeeperSummary(
        goalkeeper=goalkeeper,
        games=int(faced[game_key].nunique()),
        shots_faced=total,
        saves=saves,
        goals_against=goals,
        save_pct=round(estimate.value * 100.0, 1),
        save_pct_ci_low=round(estimate.ci_low * 100.0, 1),
        save_pct_ci_high=round(estimate.ci_high * 100.0, 1),
        reliability=estimate.reliability,
        xg_against=round(xg_against, 3),
        goals_saved_above_expected=round(xg_against - goals, 3),
        hero_saves=int(counts.get(QUADRANT_HERO_SAVE, 0)),
        routine_saves=int(counts.get(QUADRANT_ROUTINE_SAVE, 0)),
        acceptable_goals=int(counts.get(QUADRANT_ACCEPTABLE_GOAL, 0)),
        low_xg_goals=int(counts.get(QUADRANT_LOW_XG_GOAL, 0)),
    )
