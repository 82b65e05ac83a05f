"""On-field attribution: who was on the court for a shot, and for which side.

All helpers take a resolved shot frame (see ``ledger.schema.RESOLVED_SHOT_CONTRACT``)
and return boolean masks or filtered frames aligned to its index.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

import numpy as np
import pandas as pd

from ledger.schema import (
    EXTRA_ATTACKER_SLOTS,
    GOALKEEPER_SLOTS,
    ON_GOAL_RESULTS,
    ROSTER_SLOTS,
    TEAM1_SLOTS,
    TEAM2_SLOTS,
    ShotResult,
)

TEXT_COLUMNS = ("shooting_team", "team1", "team2", "result", "type", "shooter", "passer") + ROSTER_SLOTS
NUMERIC_COLUMNS = ("xg", "xgot", "distance", "angle", "x_graph", "y_graph", "time")


def prepare_shots(shots: pd.DataFrame | Iterable[Mapping] | None) -> pd.DataFrame:
    """Normalize a shot collection: trimmed text (blank → ""), numeric xg/coords, boolean flags."""
    if shots is None:
        df = pd.DataFrame()
    elif isinstance(shots, pd.DataFrame):
        df = shots.copy()
    else:
        df = pd.DataFrame(list(shots))

    for col in TEXT_COLUMNS:
        if col not in df.columns:
            df[col] = ""
        df[col] = df[col].astype(object).where(df[col].notna(), "").astype(str).str.strip()
    for col in NUMERIC_COLUMNS:
        if col not in df.columns:
            df[col] = np.nan
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
    df["xg"] = df["xg"].fillna(0.0)
    for col in ("pp", "sh", "is_turnover"):
        if col not in df.columns:
            df[col] = False
        df[col] = df[col].astype(object).where(df[col].notna(), False).astype(bool)
    return df


def _slot_match(df: pd.DataFrame, slots: Iterable[str], player: str) -> pd.Series:
    mask = pd.Series(False, index=df.index)
    for slot in slots:
        mask |= df[slot] == player
    return mask


def on_field_mask(df: pd.DataFrame, player: str) -> pd.Series:
    """True where *player* exactly matches any of the 14 roster slots."""
    return _slot_match(df, ROSTER_SLOTS, player)


def player_side_team(df: pd.DataFrame, player: str) -> pd.Series:
    """Name of the team the player was playing for on each shot ("" when off-field)."""
    on_team1 = _slot_match(df, TEAM1_SLOTS, player)
    on_team2 = _slot_match(df, TEAM2_SLOTS, player) & ~on_team1
    side = pd.Series("", index=df.index, dtype=object)
    side[on_team1] = df.loc[on_team1, "team1"]
    side[on_team2] = df.loc[on_team2, "team2"]
    return side


def shots_for_mask(df: pd.DataFrame, player: str) -> pd.Series:
    side = player_side_team(df, player)
    return (side != "") & (df["shooting_team"] == side)


def shots_against_mask(df: pd.DataFrame, player: str) -> pd.Series:
    side = player_side_team(df, player)
    return (side != "") & (df["shooting_team"] != "") & (df["shooting_team"] != side)


@dataclass(frozen=True)
class OnFieldDifferentials:
    corsi_for: int
    corsi_against: int
    fenwick_for: int
    fenwick_against: int
    goals_for: int
    goals_against: int

    @property
    def corsi(self) -> int:
        return self.corsi_for - self.corsi_against

    @property
    def fenwick(self) -> int:
        return self.fenwick_for - self.fenwick_against

    @property
    def plus_minus(self) -> int:
        return self.goals_for - self.goals_against


def on_field_differentials(shots: pd.DataFrame, player: str) -> OnFieldDifferentials:
    """Corsi (all attempts), Fenwick (unblocked) and plus/minus (goals) for one player."""
    df = prepare_shots(shots)
    shots_for = shots_for_mask(df, player)
    shots_against = shots_against_mask(df, player)
    unblocked = df["result"] != ShotResult.BLOCKED.value
    goal = df["result"] == ShotResult.GOAL.value
    return OnFieldDifferentials(
        corsi_for=int(shots_for.sum()),
        corsi_against=int(shots_against.sum()),
        fenwick_for=int((shots_for & unblocked).sum()),
        fenwick_against=int((shots_against & unblocked).sum()),
        goals_for=int((shots_for & goal).sum()),
        goals_against=int((shots_against & goal).sum()),
    )


# ── Goalkeeper attribution ──────────────────────────────────────────────

def defending_side(df: pd.DataFrame) -> pd.Series:
    """Side label (team1/team2) facing each shot; empty when the shooter matches neither team."""
    side = pd.Series("", index=df.index, dtype=object)
    side[df["shooting_team"] == df["team2"]] = "team1"
    side[(df["shooting_team"] == df["team1"]) & (df["shooting_team"] != "")] = "team2"
    return side


def regular_goalkeeper(shots: pd.DataFrame, team: str) -> str | None:
    """Most frequent name in *team*'s goalkeeper slot across *team*'s own shots.

    Ties resolve to the lexicographically smallest name.
    """
    df = prepare_shots(shots)
    counts: dict[str, int] = {}
    for side, slot in GOALKEEPER_SLOTS.items():
        own = df[(df[side] == team) & (df["shooting_team"] == team) & (df[slot] != "")]
        for name, count in own[slot].value_counts().items():
            counts[name] = counts.get(name, 0) + int(count)
    if not counts:
        return None
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))[0][0]


def goalkeeper_facing_mask(df: pd.DataFrame) -> pd.Series:
    """Opponent attempts on goal (Saved/Goal) with the defending net not emptied."""
    side = defending_side(df)
    on_goal = df["result"].isin(ON_GOAL_RESULTS)
    empty_net = pd.Series(False, index=df.index)
    for side_name, slot in EXTRA_ATTACKER_SLOTS.items():
        empty_net |= (side == side_name) & (df[slot] != "")
    return (side != "") & on_goal & ~empty_net


def attribute_goalkeepers(shots: pd.DataFrame) -> pd.DataFrame:
    """Goalkeeper-facing shots with ``goalkeeper`` and ``defending_team`` columns."""
    df = prepare_shots(shots)
    faced = df[goalkeeper_facing_mask(df)].copy()
    if faced.empty:
        faced["goalkeeper"] = pd.Series(dtype=object)
        faced["defending_team"] = pd.Series(dtype=object)
        return faced

    side = defending_side(faced)
    faced["defending_team"] = np.where(side == "team1", faced["team1"], faced["team2"])
    faced["goalkeeper"] = np.where(side == "team1", faced[GOALKEEPER_SLOTS["team1"]], faced[GOALKEEPER_SLOTS["team2"]])

    fallback: dict[str, str | None] = {}
    missing = (faced["goalkeeper"] == "") & faced["pp"]
    for idx in faced.index[missing]:
        team = faced.at[idx, "defending_team"]
        if team not in fallback:
            fallback[team] = regular_goalkeeper(df, team)
        faced.at[idx, "goalkeeper"] = fallback[team] or ""
    return faced[faced["goalkeeper"] != ""]


def goalkeeper_for_shot(shot: Mapping, shots: pd.DataFrame) -> str | None:
    """Goalkeeper credited with facing one shot, or None if the shot was not faced."""
    probe = prepare_shots([dict(shot)])
    if not bool(goalkeeper_facing_mask(probe).iloc[0]):
        return None
    side = defending_side(probe).iloc[0]
    row = probe.iloc[0]
    keeper = row[GOALKEEPER_SLOTS[side]]
    if keeper:
        return keeper
    if row["pp"]:
        return regular_goalkeeper(shots, row[side])
    return None
