"""Import-row normalization and content-hash deduplication."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import Any, Iterable, Mapping

from analytics.geometry import project_shot
from ledger.errors import ValidationError
from ledger.schema import (
    HASH_FIELDS,
    REQUIRED_IMPORT_FIELDS,
    ROSTER_SLOTS,
    canonical_field_name,
    normalize_result_value,
)
from utils import clean_text, is_blank, to_flag, to_float, to_int

logger = logging.getLogger(__name__)

MAX_SAMPLES = 3


class ImportOutcome(str, Enum):
    IMPORTED = "imported"
    PARTIAL = "partial"
    ALL_DUPLICATES = "all_duplicates"
    NOTHING_IMPORTED = "nothing_imported"


@dataclass
class ImportResult:
    game_id: int | None
    inserted_count: int = 0
    duplicate_count: int = 0
    duplicate_samples: list[dict[str, Any]] = field(default_factory=list)
    rejected_count: int = 0
    rejected_samples: list[str] = field(default_factory=list)
    game_created: bool = False
    game_rolled_back: bool = False

    @property
    def outcome(self) -> ImportOutcome:
        if self.inserted_count == 0:
            return ImportOutcome.ALL_DUPLICATES if self.duplicate_count else ImportOutcome.NOTHING_IMPORTED
        if self.duplicate_count:
            return ImportOutcome.PARTIAL
        return ImportOutcome.IMPORTED

    def as_dict(self) -> dict[str, Any]:
        return {
            "game_id": self.game_id,
            "inserted_count": self.inserted_count,
            "duplicate_count": self.duplicate_count,
            "duplicate_samples": list(self.duplicate_samples),
            "rejected_count": self.rejected_count,
            "rejected_samples": list(self.rejected_samples),
            "game_created": self.game_created,
            "game_rolled_back": self.game_rolled_back,
            "outcome": self.outcome.value,
        }


# ── Hashing ─────────────────────────────────────────────────────────────

def normalize_hash_value(value: object) -> str:
    """Canonical text for one identifying field.

    Numbers and finite numeric text collapse to two decimals so that
    ``"10"``, ``10``, ``"10.00"`` and ``"1e1"`` agree; other text is trimmed and lower-cased.
    """
    if is_blank(value):
        return ""
    if isinstance(value, Real) and not isinstance(value, bool):
        return f"{float(value):.2f}"
    token = str(value).strip()
    number = to_float(token)
    if number is not None:
        return f"{number:.2f}"
    return token.lower()


def shot_hash_key(row: Mapping[str, object]) -> str:
    """Pipe-joined normalized identifying fields (pre-digest, useful for diagnostics)."""
    return "|".join(normalize_hash_value(row.get(name)) for name in HASH_FIELDS)


def shot_hash(row: Mapping[str, object]) -> str:
    """Deterministic content hash of a shot's identifying fields."""
    return hashlib.sha256(shot_hash_key(row).encode("utf-8")).hexdigest()


def build_hash_set(rows: Iterable[Mapping[str, object]]) -> set[str]:
    return {shot_hash(row) for row in rows}


# ── Row parsing ─────────────────────────────────────────────────────────

def canonicalize_row(raw: Mapping[str, object]) -> dict[str, object]:
    """Rename import headers to field names; later duplicates of a field win."""
    return {canonical_field_name(key): value for key, value in raw.items() if key is not None}


def parse_import_row(raw: Mapping[str, object], row_index: int | None = None) -> dict[str, object]:
    """Validate and type one import row into a shots insert payload."""
    row = canonicalize_row(raw)
    missing = [name for name in REQUIRED_IMPORT_FIELDS if is_blank(row.get(name))]
    if missing:
        raise ValidationError(
            f"row {row_index}: missing required field(s) {', '.join(missing)}",
            field=missing[0],
            row_index=row_index,
        )

    raw_time = to_float(row.get("time"))
    if raw_time is None:
        raise ValidationError(f"row {row_index}: time is not numeric", field="time", row_index=row_index)
    if not raw_time.is_integer():
        raise ValidationError(f"row {row_index}: time must be whole seconds", field="time", row_index=row_index)
    time_value = int(raw_time)

    distance = to_float(row.get("distance"), 0.0)
    angle = to_float(row.get("angle"), 0.0)
    parsed: dict[str, object] = {
        "date": clean_text(row.get("date")),
        "team1": clean_text(row.get("team1")),
        "team2": clean_text(row.get("team2")),
        "time": time_value,
        "shooting_team": clean_text(row.get("shooting_team")),
        "result": normalize_result_value(row.get("result")),
        "type": clean_text(row.get("type")),
        "xg": to_float(row.get("xg"), 0.0),
        "xgot": to_float(row.get("xgot"), 0.0),
        "shooter": clean_text(row.get("shooter")),
        "passer": clean_text(row.get("passer")),
        "pp": to_flag(row.get("pp")),
        "sh": to_flag(row.get("sh")),
        "distance": distance,
        "angle": angle,
        "player_team1": to_int(row.get("player_team1"), 0),
        "player_team2": to_int(row.get("player_team2"), 0),
    }
    for slot in ROSTER_SLOTS:
        parsed[slot] = clean_text(row.get(slot))
    parsed.update(project_shot(distance, angle))
    return parsed


def duplicate_sample(parsed: Mapping[str, object]) -> dict[str, object]:
    return {
        "time": parsed.get("time"),
        "shooter": parsed.get("shooter"),
        "result": parsed.get("result"),
        "xg": parsed.get("xg"),
    }


class Deduplicator:
    """Filters candidate rows against an existing hash set, catching in-batch repeats."""

    def __init__(self, existing_hashes: Iterable[str]):
        self._hashes = set(existing_hashes)

    def __contains__(self, digest: str) -> bool:
        return digest in self._hashes

    def admit(self, parsed: Mapping[str, object]) -> bool:
        """Return True (and remember the row) when the row is new."""
        digest = shot_hash(parsed)
        if digest in self:
            logger.debug("Duplicate shot skipped: %s", shot_hash_key(parsed))
            return False
        self._hashes.add(digest)
        return True
