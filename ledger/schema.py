from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping

import pandas as pd

from constants import OVERLAY_SCHEMA_VERSION, RESULT_BLOCKED, RESULT_GOAL, RESULT_MISSED, RESULT_SAVED

SCHEMA_VERSION = OVERLAY_SCHEMA_VERSION


class ShotResult(str, Enum):
    GOAL = RESULT_GOAL
    SAVED = RESULT_SAVED
    MISSED = RESULT_MISSED
    BLOCKED = RESULT_BLOCKED

    def serialize(self) -> str:
        return self.value

    @classmethod
    def parse(cls, raw: object) -> "ShotResult":
        if isinstance(raw, cls):
            return raw
        if raw is None or pd.isna(raw):
            raise ValueError("shot result is missing")

        token = str(raw).strip()
        if not token:
            raise ValueError("shot result is empty")

        if token.startswith("ShotResult."):
            token = token.split(".", 1)[1]

        member = cls.__members__.get(token.upper())
        if member is not None:
            return member

        lowered = token.lower()
        for result in cls:
            if result.value.lower() == lowered:
                return result
        raise ValueError(f"unknown shot result: {raw}")


ON_GOAL_RESULTS = frozenset({ShotResult.GOAL.value, ShotResult.SAVED.value})


def normalize_result_value(raw: object) -> str | None:
    """Canonical label for known results; other free-form values are kept verbatim."""
    if raw is None or (not isinstance(raw, str) and pd.isna(raw)):
        return None
    token = str(raw).strip()
    if not token:
        return None
    try:
        return ShotResult.parse(token).serialize()
    except ValueError:
        return token


class CorrectionState(str, Enum):
    ACTIVE = "active"
    HIDDEN = "hidden"

    @classmethod
    def parse(cls, raw: object) -> "CorrectionState":
        if isinstance(raw, cls):
            return raw
        if raw is None or (not isinstance(raw, str) and pd.isna(raw)):
            return cls.ACTIVE
        try:
            return cls(str(raw).strip().lower())
        except ValueError as exc:
            raise ValueError(f"unknown correction state: {raw}") from exc


# ── Roster slots ────────────────────────────────────────────────────────

TEAM1_SLOTS = ("t1lw", "t1c", "t1rw", "t1ld", "t1rd", "t1g", "t1x")
TEAM2_SLOTS = ("t2lw", "t2c", "t2rw", "t2ld", "t2rd", "t2g", "t2x")
ROSTER_SLOTS = TEAM1_SLOTS + TEAM2_SLOTS
GOALKEEPER_SLOTS = {"team1": "t1g", "team2": "t2g"}
EXTRA_ATTACKER_SLOTS = {"team1": "t1x", "team2": "t2x"}


# ── Shot fields ─────────────────────────────────────────────────────────

TEXT_OVERRIDE_FIELDS = ("shooting_team", "result", "type", "shooter", "passer") + ROSTER_SLOTS
OVERRIDABLE_FIELDS = ("time",) + TEXT_OVERRIDE_FIELDS + ("xg", "xgot", "pp", "sh")
CORRECTION_FIELDS = OVERRIDABLE_FIELDS + ("is_turnover",)

REQUIRED_IMPORT_FIELDS = (
    "date",
    "team1",
    "team2",
    "time",
    "shooting_team",
    "result",
    "type",
    "xg",
    "xgot",
    "distance",
    "angle",
)

HASH_FIELDS = ("time", "shooting_team", "shooter", "distance", "angle", "xg")

COORDINATE_FIELDS = ("x_m", "y_m", "x_graph", "y_graph")

# Import header spelling → field name
CSV_HEADER_MAP: Mapping[str, str] = {
    "Date": "date",
    "Team 1": "team1",
    "Team 2": "team2",
    "Time": "time",
    "Shooting Team": "shooting_team",
    "Result": "result",
    "Type": "type",
    "xG": "xg",
    "xGOT": "xgot",
    "Shooter": "shooter",
    "Passer": "passer",
    "PP": "pp",
    "SH": "sh",
    "Distance": "distance",
    "Angle": "angle",
    "Player Team 1": "player_team1",
    "Player Team 2": "player_team2",
    **{slot.upper(): slot for slot in ROSTER_SLOTS},
}


def canonical_field_name(header: str) -> str:
    """Map an import header (``"Shooting Team"``) or field name to its field name."""
    token = str(header).strip()
    if token in CSV_HEADER_MAP:
        return CSV_HEADER_MAP[token]
    return token.lower().replace(" ", "_")


# ── Resolved view ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class TableContract:
    name: str
    columns: Mapping[str, str]

    def empty(self) -> pd.DataFrame:
        return pd.DataFrame({col: pd.Series(dtype=dtype) for col, dtype in self.columns.items()})


RESOLVED_SHOT_CONTRACT = TableContract(
    name="resolved_shot",
    columns={
        "shot_id": "int64",
        "game_id": "int64",
        "date": "string",
        "team1": "string",
        "team2": "string",
        "time": "Int64",
        "shooting_team": "string",
        "result": "string",
        "type": "string",
        "xg": "float64",
        "xgot": "float64",
        "shooter": "string",
        "passer": "string",
        **{slot: "string" for slot in ROSTER_SLOTS},
        "pp": "bool",
        "sh": "bool",
        "distance": "float64",
        "angle": "float64",
        "x_m": "float64",
        "y_m": "float64",
        "x_graph": "float64",
        "y_graph": "float64",
        "player_team1": "Int64",
        "player_team2": "Int64",
        "is_turnover": "bool",
        "is_corrected": "bool",
    },
)


def coerce_table(df: pd.DataFrame | None, contract: TableContract) -> pd.DataFrame:
    if df is None or df.empty:
        return contract.empty()
    out = df.copy()
    for col, dtype in contract.columns.items():
        if col not in out.columns:
            out[col] = pd.NA
        if dtype == "bool":
            out[col] = out[col].fillna(False)
        try:
            out[col] = out[col].astype(dtype)
        except (TypeError, ValueError):
            pass
    return out[list(contract.columns.keys())]
