"""Floorball Shot Ledger — shared constants.

Single source of truth for court geometry, binning defaults, and ledger configuration.
"""

# ── Persistence ─────────────────────────────────────────────────────────
DB_URL = "sqlite://"                     # In-memory working store
SNAPSHOT_FILE = "shot_ledger.sqlite"     # Full-image upload target
JOURNAL_FILE = "shot_ledger.journal.jsonl"
OVERLAY_SCHEMA_VERSION = 2               # PRAGMA user_version after migration

# ── Court geometry ──────────────────────────────────────────────────────
COURT_WIDTH_M = 20.0
COURT_LENGTH_M = 40.0
UNITS_PER_METRE = 30                     # Logical court units per metre
COURT_WIDTH = int(COURT_WIDTH_M * UNITS_PER_METRE)     # 600
COURT_LENGTH = int(COURT_LENGTH_M * UNITS_PER_METRE)   # 1200

# Shot origin: goal line offset and lateral centre used when projecting distance/angle
GOAL_LINE_OFFSET_M = 3.5
COURT_CENTRE_X_M = COURT_WIDTH_M / 2

# ── Spatial binning ─────────────────────────────────────────────────────
HEX_RADIUS_FULL = 28      # Reference radius on a 600-unit-wide field
HEX_RADIUS_SPLIT = 20
SIZE_EXPONENT = 0.8
SIZE_RANGE_FULL = (0.3, 1.2)
SIZE_RANGE_SPLIT = (0.4, 1.0)
SUCCESS_RATE_DOMAIN = (0.0, 0.3, 0.6)

# ── xG distribution ─────────────────────────────────────────────────────
XG_BIN_WIDTH = 0.05
XG_MAX = 0.6

# ── Goalkeeper quadrants ────────────────────────────────────────────────
HIGH_DANGER_XG = 0.3
LOW_DANGER_XG = 0.1

# ── Result labels ───────────────────────────────────────────────────────
RESULT_GOAL = "Goal"
RESULT_SAVED = "Saved"
RESULT_MISSED = "Missed"
RESULT_BLOCKED = "Blocked"
RESULT_ORDER = (RESULT_GOAL, RESULT_SAVED, RESULT_MISSED, RESULT_BLOCKED)

TURNOVER_LABEL = "Turnover"
TURNOVER_PREFIX = f"{TURNOVER_LABEL} | "

# ── Result colors ───────────────────────────────────────────────────────
RESULT_COLORS = {
    RESULT_GOAL: "#22c55e",
    RESULT_SAVED: "#3b82f6",
    RESULT_MISSED: "#94a3b8",
    RESULT_BLOCKED: "#fb923c",
}
