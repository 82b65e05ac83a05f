"""Geometry contract and helpers for floorball court calculations."""

from __future__ import annotations

import math

import numpy as np

from constants import (
    COURT_CENTRE_X_M,
    COURT_LENGTH,
    COURT_LENGTH_M,
    COURT_WIDTH,
    COURT_WIDTH_M,
    GOAL_LINE_OFFSET_M,
    UNITS_PER_METRE,
)


def assert_geometry_contract() -> None:
    """Validate invariants for shared court geometry constants."""
    if COURT_WIDTH != COURT_WIDTH_M * UNITS_PER_METRE or COURT_LENGTH != COURT_LENGTH_M * UNITS_PER_METRE:
        raise ValueError(
            f"Invalid court geometry: {COURT_WIDTH}x{COURT_LENGTH} units must equal "
            f"{COURT_WIDTH_M}x{COURT_LENGTH_M} m at {UNITS_PER_METRE} units/m."
        )


def project_shot(distance: float | None, angle: float | None) -> dict[str, float]:
    """Project a (distance m, angle deg) shot origin onto the court.

    The goal sits on the court centre line, GOAL_LINE_OFFSET_M in from the end
    boards; ``angle`` is measured from the lateral axis through the goal.
    """
    dist = float(distance or 0.0)
    rad = math.radians(float(angle or 0.0))
    y_m = math.sin(rad) * dist + GOAL_LINE_OFFSET_M
    x_m = COURT_CENTRE_X_M + math.cos(rad) * dist
    return {
        "x_m": x_m,
        "y_m": y_m,
        "x_graph": x_m * UNITS_PER_METRE,
        "y_graph": y_m * UNITS_PER_METRE,
    }


def field_scale(field_width: float, field_height: float) -> tuple[float, float]:
    """Return (sx, sy) factors from logical court units to rendered field units."""
    return float(field_width) / COURT_WIDTH, float(field_height) / COURT_LENGTH


def mirror_points(
    x: np.ndarray,
    y: np.ndarray,
    is_home: np.ndarray,
    field_width: float,
    field_height: float,
) -> tuple[np.ndarray, np.ndarray]:
    """Map logical court points onto a rendered field, attacking a common end.

    Home-team shots keep their orientation; every other shot is rotated through
    the court centre, ``(W - x, H - y)``, before scaling.
    """
    sx, sy = field_scale(field_width, field_height)
    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)
    home = np.asarray(is_home, dtype=bool)
    out_x = np.where(home, xs, COURT_WIDTH - xs) * sx
    out_y = np.where(home, ys, COURT_LENGTH - ys) * sy
    return out_x, out_y


def valid_coordinate_mask(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Finite, non-negative coordinates only."""
    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)
    return np.isfinite(xs) & np.isfinite(ys) & (xs >= 0) & (ys >= 0)


assert_geometry_contract()
