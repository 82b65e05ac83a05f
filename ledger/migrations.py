"""Additive schema migrations for stored ledgers.

The overlay schema version lives in ``PRAGMA user_version``. Every step only
adds columns or backfills values; legacy columns are left in place.
"""

from __future__ import annotations

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from analytics.geometry import project_shot
from ledger.models import Base
from ledger.schema import SCHEMA_VERSION
from utils import to_float

logger = logging.getLogger(__name__)

LEGACY_CORRECTION_COLUMNS = {
    "corrected_shooter": "shooter",
    "corrected_assisted_by": "passer",
}


def _user_version(conn: Connection) -> int:
    return int(conn.exec_driver_sql("PRAGMA user_version").scalar() or 0)


def _set_user_version(conn: Connection, version: int) -> None:
    conn.exec_driver_sql(f"PRAGMA user_version = {int(version)}")


def _existing_columns(conn: Connection, table: str) -> set[str]:
    return {col["name"] for col in inspect(conn).get_columns(table)}


def _add_missing_columns(conn: Connection) -> list[str]:
    """ALTER TABLE ... ADD COLUMN for every mapped column a stored table lacks."""
    added = []
    tables = set(inspect(conn).get_table_names())
    for table in Base.metadata.sorted_tables:
        if table.name not in tables:
            continue
        present = _existing_columns(conn, table.name)
        for column in table.columns:
            if column.name in present or column.primary_key:
                continue
            ddl = f'ALTER TABLE {table.name} ADD COLUMN "{column.name}" {column.type.compile(dialect=conn.dialect)}'
            if column.server_default is not None:
                ddl += f" DEFAULT '{column.server_default.arg}'"
            conn.exec_driver_sql(ddl)
            added.append(f"{table.name}.{column.name}")
    return added


def _migrate_overlay_v0_to_v1(conn: Connection) -> None:
    added = _add_missing_columns(conn)
    if added:
        logger.info("Added columns: %s", ", ".join(added))

    present = _existing_columns(conn, "shot_corrections")
    for legacy, current in LEGACY_CORRECTION_COLUMNS.items():
        if legacy in present:
            conn.execute(text(f"UPDATE shot_corrections SET {current} = COALESCE({current}, {legacy})"))
    if "is_hidden" in present:
        conn.execute(
            text("UPDATE shot_corrections SET state = 'hidden' WHERE is_hidden = 1 AND COALESCE(state, 'active') = 'active'")
        )
    conn.execute(text("UPDATE shot_corrections SET state = 'active' WHERE state IS NULL"))

    conn.execute(
        text(
            "UPDATE games SET "
            "team1 = COALESCE(team1, (SELECT s.team1 FROM shots s WHERE s.game_id = games.game_id ORDER BY s.shot_id LIMIT 1)), "
            "team2 = COALESCE(team2, (SELECT s.team2 FROM shots s WHERE s.game_id = games.game_id ORDER BY s.shot_id LIMIT 1))"
        )
    )


def _migrate_coordinates_v1_to_v2(conn: Connection) -> None:
    rows = conn.execute(
        text("SELECT shot_id, distance, angle FROM shots WHERE x_graph IS NULL OR y_graph IS NULL")
    ).fetchall()
    updated = 0
    for shot_id, distance, angle in rows:
        distance, angle = to_float(distance), to_float(angle)
        if distance is None or angle is None:
            logger.warning("Shot %s has no usable distance/angle; coordinates left empty", shot_id)
            continue
        coords = project_shot(distance, angle)
        conn.execute(
            text("UPDATE shots SET x_m = :x_m, y_m = :y_m, x_graph = :x_graph, y_graph = :y_graph WHERE shot_id = :shot_id"),
            {**coords, "shot_id": shot_id},
        )
        updated += 1
    if updated:
        logger.info("Recomputed coordinates for %s shots", updated)


MIGRATION_STEPS = (
    (1, _migrate_overlay_v0_to_v1),
    (2, _migrate_coordinates_v1_to_v2),
)


def migrate_store(engine: Engine) -> int:
    """Bring a store up to SCHEMA_VERSION. Step failures are logged and skipped."""
    Base.metadata.create_all(engine)
    with engine.connect() as conn:
        version = _user_version(conn)

    for target, step in MIGRATION_STEPS:
        if version >= target:
            continue
        try:
            with engine.begin() as conn:
                step(conn)
                _set_user_version(conn, target)
            version = target
        except (SQLAlchemyError, ValueError, TypeError) as exc:
            logger.warning("Schema migration to v%s failed; continuing on v%s: %s", target, version, exc)
            break

    if version < SCHEMA_VERSION:
        logger.warning("Ledger schema is at v%s (expected v%s)", version, SCHEMA_VERSION)
    return version
