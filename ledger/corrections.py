"""Correction overlay resolution.

A shot's resolved view is its imported row with every non-null overlay field
substituted in. Hidden overlays suppress the shot from every resolved view.
"""

from __future__ import annotations

from typing import Any, Mapping

from constants import TURNOVER_LABEL, TURNOVER_PREFIX
from ledger.errors import ValidationError
from ledger.models import ShotCorrection, ShotEvent
from ledger.schema import (
    COORDINATE_FIELDS,
    CORRECTION_FIELDS,
    OVERRIDABLE_FIELDS,
    ROSTER_SLOTS,
    CorrectionState,
    normalize_result_value,
)
from utils import clean_text, to_flag, to_float

BASE_FIELDS = (
    "shot_id",
    "game_id",
    "date",
    "team1",
    "team2",
    "time",
    "shooting_team",
    "result",
    "type",
    "xg",
    "xgot",
    "shooter",
    "passer",
    *ROSTER_SLOTS,
    "pp",
    "sh",
    "distance",
    "angle",
    *COORDINATE_FIELDS,
    "player_team1",
    "player_team2",
)


def shot_to_dict(shot: ShotEvent | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(shot, Mapping):
        return {name: shot.get(name) for name in BASE_FIELDS}
    return {name: getattr(shot, name) for name in BASE_FIELDS}


def correction_to_dict(correction: ShotCorrection | Mapping[str, Any] | None) -> dict[str, Any] | None:
    if correction is None:
        return None
    if isinstance(correction, Mapping):
        out = {name: correction.get(name) for name in CORRECTION_FIELDS}
        out["state"] = correction.get("state")
        return out
    out = {name: getattr(correction, name) for name in CORRECTION_FIELDS}
    out["state"] = correction.state
    return out


def turnover_type(shot_type: object) -> str:
    base = clean_text(shot_type)
    if base is None:
        return TURNOVER_LABEL
    return f"{TURNOVER_PREFIX}{base}"


def resolve(
    shot: ShotEvent | Mapping[str, Any],
    correction: ShotCorrection | Mapping[str, Any] | None = None,
) -> dict[str, Any] | None:
    """Merge an overlay onto its base shot; ``None`` when the overlay hides the shot."""
    resolved = shot_to_dict(shot)
    overlay = correction_to_dict(correction)
    resolved["is_turnover"] = False
    resolved["is_corrected"] = False
    if overlay is None:
        return resolved

    if CorrectionState.parse(overlay.get("state")) is CorrectionState.HIDDEN:
        return None

    for name in OVERRIDABLE_FIELDS:
        value = overlay.get(name)
        if value is not None:
            resolved[name] = value
            resolved["is_corrected"] = True

    if overlay.get("is_turnover"):
        resolved["type"] = turnover_type(resolved.get("type"))
        resolved["is_turnover"] = True
        resolved["is_corrected"] = True
    return resolved


def _coerce_override(name: str, value: Any) -> Any:
    if value is None:
        return None
    if name == "time":
        parsed = to_float(value)
        if parsed is None:
            raise ValidationError(f"time override is not numeric: {value!r}", field=name)
        if not parsed.is_integer():
            raise ValidationError(f"time override must be whole seconds: {value!r}", field=name)
        return int(parsed)
    if name in {"xg", "xgot"}:
        parsed = to_float(value)
        if parsed is None:
            raise ValidationError(f"{name} override is not numeric: {value!r}", field=name)
        return parsed
    if name in {"pp", "sh", "is_turnover"}:
        return to_flag(value)
    if name == "result":
        return normalize_result_value(value)
    return clean_text(value)


def validate_correction_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Type the supplied override keys. An explicit ``None`` clears that override."""
    unknown = sorted(set(fields) - set(CORRECTION_FIELDS))
    if unknown:
        raise ValidationError(f"unknown correction field(s): {', '.join(unknown)}", field=unknown[0])
    return {name: _coerce_override(name, value) for name, value in fields.items()}
