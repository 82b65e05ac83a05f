"""Per-player and per-team shot metrics computed from the resolved ledger.

Player metrics cover shooting output, result distribution, passing, and
on-field differentials. The team baseline is the unweighted mean of every
shooter's own metrics, so a one-shot player counts as much as a fifty-shot one.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Iterable, Mapping

import numpy as np
import pandas as pd

from analytics.attribution import on_field_differentials, prepare_shots
from ledger.schema import ON_GOAL_RESULTS, ShotResult


@dataclass(frozen=True)
class MetricSpec:
    key: str
    label: str
    higher_is_better: bool = True


METRIC_CATALOG = (
    MetricSpec("points", "Points"),
    MetricSpec("goals", "Goals"),
    MetricSpec("assists", "Assists"),
    MetricSpec("plus_minus", "+/-"),
    MetricSpec("avg_xg", "Avg xG/Shot"),
    MetricSpec("shot_quality", "Shot Quality"),
    MetricSpec("conversion_rate", "Conversion %"),
    MetricSpec("goals_above_expected", "Goals Above xG"),
    MetricSpec("shooting_efficiency", "Shooting Efficiency"),
    MetricSpec("on_goal_pct", "Shots on Goal %"),
    MetricSpec("shots", "Shot Volume"),
    MetricSpec("assist_xg", "Avg Assist xG"),
    MetricSpec("avg_distance", "Avg Distance", higher_is_better=False),
    MetricSpec("corsi", "Corsi +/-"),
    MetricSpec("fenwick", "Fenwick +/-"),
    MetricSpec("blocked_pct", "Blocked %", higher_is_better=False),
    MetricSpec("missed_pct", "Missed %", higher_is_better=False),
    MetricSpec("saved_pct", "Saved %", higher_is_better=False),
    MetricSpec("goal_pct", "Goal %"),
    MetricSpec("goals_per_attempt", "Goals/Attempt"),
    MetricSpec("xg_per_attempt", "xG/Attempt"),
)
METRIC_POLARITY = {spec.key: spec.higher_is_better for spec in METRIC_CATALOG}


@dataclass(frozen=True)
class PlayerMetrics:
    """Shooting profile for one player. Percentages are 0-100; rates are fractions."""

    player: str
    shots: int
    goals: int
    avg_xg: float
    conversion_rate: float
    goals_above_expected: float
    avg_distance: float
    on_goal_pct: float
    blocked_pct: float
    missed_pct: float
    saved_pct: float
    goal_pct: float
    assists: int
    points: int
    assist_xg: float
    corsi: int
    fenwick: int
    plus_minus: int
    shot_quality: float
    goals_per_attempt: float
    xg_per_attempt: float
    shooting_efficiency: float

    def as_dict(self) -> dict[str, float | int | str]:
        return asdict(self)


NUMERIC_METRICS = tuple(f.name for f in fields(PlayerMetrics) if f.name != "player")


def _pct(part: int, whole: int) -> float:
    return float(part) / whole * 100.0 if whole else 0.0


def _metrics_from_frame(player: str, df: pd.DataFrame) -> PlayerMetrics | None:
    own = df[df["shooter"] == player]
    total = int(len(own))
    if total == 0:
        return None

    results = own["result"]
    goals = int((results == ShotResult.GOAL.value).sum())
    saved = int((results == ShotResult.SAVED.value).sum())
    missed = int((results == ShotResult.MISSED.value).sum())
    blocked = int((results == ShotResult.BLOCKED.value).sum())
    on_goal = own[results.isin(ON_GOAL_RESULTS)]
    total_xg = float(own["xg"].sum())

    distances = own["distance"].dropna()
    passed = df[df["passer"] == player]
    assists = int((passed["result"] == ShotResult.GOAL.value).sum())
    diffs = on_field_differentials(df, player)

    return PlayerMetrics(
        player=player,
        shots=total,
        goals=goals,
        avg_xg=total_xg / total,
        conversion_rate=goals / total,
        goals_above_expected=goals - total_xg,
        avg_distance=float(distances.mean()) if len(distances) else 0.0,
        on_goal_pct=_pct(len(on_goal), total),
        blocked_pct=_pct(blocked, total),
        missed_pct=_pct(missed, total),
        saved_pct=_pct(saved, total),
        goal_pct=_pct(goals, total),
        assists=assists,
        points=goals + assists,
        assist_xg=float(passed["xg"].mean()) if len(passed) else 0.0,
        corsi=diffs.corsi,
        fenwick=diffs.fenwick,
        plus_minus=diffs.plus_minus,
        shot_quality=float(on_goal["xg"].mean()) if len(on_goal) else 0.0,
        goals_per_attempt=goals / total,
        xg_per_attempt=total_xg / total,
        shooting_efficiency=(goals - total_xg) / total,
    )


def player_metrics(player: str, shots: pd.DataFrame | Iterable[Mapping]) -> PlayerMetrics | None:
    """Metrics for *player*, or None when they have no shots in the collection."""
    return _metrics_from_frame(str(player).strip(), prepare_shots(shots))


def shooters(shots: pd.DataFrame | Iterable[Mapping]) -> list[str]:
    """Distinct non-empty shooter names, sorted."""
    df = prepare_shots(shots)
    return sorted({name for name in df["shooter"].tolist() if name})


def all_player_metrics(shots: pd.DataFrame | Iterable[Mapping]) -> pd.DataFrame:
    """One row per shooter (columns = PlayerMetrics fields), ordered by name."""
    df = prepare_shots(shots)
    rows = []
    for name in shooters(df):
        metrics = _metrics_from_frame(name, df)
        if metrics is not None:
            rows.append(metrics.as_dict())
    return pd.DataFrame(rows, columns=["player", *NUMERIC_METRICS])


def team_baseline(shots: pd.DataFrame | Iterable[Mapping]) -> dict[str, float]:
    """Unweighted mean of each shooter's own metrics."""
    table = all_player_metrics(shots)
    if table.empty:
        return {}
    return {key: float(table[key].astype(float).mean()) for key in NUMERIC_METRICS}


def rank_player(
    player: str,
    metric: str,
    shots: pd.DataFrame | Iterable[Mapping],
    higher_is_better: bool | None = None,
) -> tuple[int, int]:
    """(rank, total) of *player* among shooters; ties resolve by name.

    Rank is 0 when the player has no shots.
    """
    if metric not in NUMERIC_METRICS:
        raise KeyError(f"unknown metric: {metric}")
    if higher_is_better is None:
        higher_is_better = METRIC_POLARITY.get(metric, True)

    table = all_player_metrics(shots)
    if table.empty:
        return 0, 0
    table[metric] = pd.to_numeric(table[metric], errors="coerce").fillna(0)
    table["_player_key"] = table["player"].str.lower()
    ordered = table.sort_values(
        [metric, "_player_key", "player"],
        ascending=[not higher_is_better, True, True],
        kind="mergesort",
    ).reset_index(drop=True)
    matches = np.flatnonzero(ordered["player"].to_numpy() == player)
    rank = int(matches[0]) + 1 if matches.size else 0
    return rank, int(len(ordered))


# ── Team metrics ────────────────────────────────────────────────────────

def team_metrics(team: str, shots: pd.DataFrame | Iterable[Mapping]) -> dict[str, float | int]:
    """Result mix and for/against differentials for one team over its games."""
    df = prepare_shots(shots)
    games = df[(df["team1"] == team) | (df["team2"] == team)]
    own = games[games["shooting_team"] == team]
    opp = games[(games["shooting_team"] != team) & (games["shooting_team"] != "")]

    total = int(len(own))
    results = own["result"]
    blocked = ShotResult.BLOCKED.value
    xg_for = float(own["xg"].sum())
    xg_against = float(opp["xg"].sum())
    xsog_for = float(own.loc[own["result"].isin(ON_GOAL_RESULTS), "xg"].sum())
    xsog_against = float(opp.loc[opp["result"].isin(ON_GOAL_RESULTS), "xg"].sum())
    return {
        "shots": total,
        "goals": int((results == ShotResult.GOAL.value).sum()),
        "goal_pct": _pct(int((results == ShotResult.GOAL.value).sum()), total),
        "saved_pct": _pct(int((results == ShotResult.SAVED.value).sum()), total),
        "missed_pct": _pct(int((results == ShotResult.MISSED.value).sum()), total),
        "blocked_pct": _pct(int((results == ShotResult.BLOCKED.value).sum()), total),
        "corsi": int(len(own) - len(opp)),
        "fenwick": int((own["result"] != blocked).sum() - (opp["result"] != blocked).sum()),
        "xg_for": xg_for,
        "xg_against": xg_against,
        "xg_plus_minus": xg_for - xg_against,
        "xsog_for": xsog_for,
        "xsog_against": xsog_against,
        "xsog_plus_minus": xsog_for - xsog_against,
    }
