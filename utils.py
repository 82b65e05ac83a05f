"""Floorball Shot Ledger — shared utility functions.

Small value coercion helpers shared by the ledger and analytics layers.
"""
import math
from numbers import Real

import numpy as np


# ── Value coercion ──────────────────────────────────────────────────────

def is_blank(value) -> bool:
    """True for None, NaN and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, Real) and not isinstance(value, bool):
        return math.isnan(float(value))
    return False


def clean_text(value):
    """Trim text values; blank values become None."""
    if is_blank(value):
        return None
    return str(value).strip()


def to_float(value, default=None):
    """Parse a float from a number or numeric text, returning *default* on failure."""
    if is_blank(value) or isinstance(value, bool):
        return default
    try:
        parsed = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return default
    if not np.isfinite(parsed):
        return default
    return parsed


def to_int(value, default=None):
    """Parse an integer, accepting float-formatted text such as ``"12.0"``."""
    parsed = to_float(value)
    if parsed is None:
        return default
    return int(round(parsed))


def to_flag(value) -> bool:
    """Interpret CSV-style flags (``1``, ``"yes"``, ``"true"``, ``"x"``) as booleans."""
    if is_blank(value):
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, Real):
        return float(value) != 0.0
    return str(value).strip().lower() in {"1", "1.0", "true", "yes", "y", "x"}


def normalize_name(value) -> str:
    """Case- and whitespace-insensitive key for names."""
    if is_blank(value):
        return ""
    return str(value).strip().lower()


# ── Display helpers ─────────────────────────────────────────────────────

def format_pct(value, precision=1, na="N/A") -> str:
    """Format a 0-100 percentage value; missing or non-numeric values render as *na*."""
    if value is None or isinstance(value, bool):
        return na

    if not isinstance(value, Real):
        return na

    numeric_value = float(value)
    if math.isnan(numeric_value):
        return na

    try:
        decimals = max(0, int(precision))
    except (TypeError, ValueError):
        decimals = 1

    return f"{numeric_value:.{decimals}f}%"
