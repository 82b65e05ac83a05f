import sqlite3
import unittest
from unittest import mock

import pandas as pd

from analytics.geometry import project_shot
from ledger import LedgerStore
from ledger.migrations import migrate_store
from ledger.schema import ROSTER_SLOTS

SLOT_COLUMNS = ", ".join(f"{slot} TEXT" for slot in ROSTER_SLOTS)

LEGACY_DDL = f"""
CREATE TABLE games (
    game_id INTEGER PRIMARY KEY AUTOINCREMENT,
    game_name TEXT NOT NULL,
    game_date TEXT NOT NULL,
    created_at TIMESTAMP
);
CREATE TABLE shots (
    shot_id INTEGER PRIMARY KEY AUTOINCREMENT,
    game_id INTEGER NOT NULL REFERENCES games(game_id) ON DELETE CASCADE,
    date TEXT, team1 TEXT, team2 TEXT, time INTEGER, shooting_team TEXT,
    result TEXT, type TEXT, xg REAL, xgot REAL, shooter TEXT, passer TEXT,
    {SLOT_COLUMNS},
    pp INTEGER, sh INTEGER, distance REAL, angle REAL
);
CREATE TABLE shot_corrections (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    shot_id INTEGER NOT NULL UNIQUE REFERENCES shots(shot_id) ON DELETE CASCADE,
    corrected_shooter TEXT,
    corrected_assisted_by TEXT,
    result TEXT,
    is_hidden INTEGER DEFAULT 0,
    corrected_at TIMESTAMP
);
"""


def _legacy_snapshot() -> bytes:
    conn = sqlite3.connect(":memory:")
    conn.executescript(LEGACY_DDL)
    conn.execute("INSERT INTO games (game_name, game_date) VALUES ('Old game', '2023-10-01')")
    shot_sql = (
        "INSERT INTO shots (game_id, date, team1, team2, time, shooting_team, result, type, xg, xgot, "
        "shooter, passer, t1lw, t1g, t2g, pp, sh, distance, angle) "
        "VALUES (1, '2023-10-01', 'Lions', 'Bears', ?, 'Lions', 'Saved', 'Direct', 0.2, 0.3, ?, 'Beth', ?, 'Gina', 'Hugo', 0, 0, 8.0, 30.0)"
    )
    conn.execute(shot_sql, (100, "Anna", "Anna"))
    conn.execute(shot_sql, (200, "Cara", "Cara"))
    conn.execute(
        "INSERT INTO shot_corrections (shot_id, corrected_shooter, corrected_assisted_by, is_hidden) "
        "VALUES (1, 'Dana', 'Eve', 0)"
    )
    conn.execute("INSERT INTO shot_corrections (shot_id, is_hidden) VALUES (2, 1)")
    conn.commit()
    blob = conn.serialize()
    conn.close()
    return blob


class LegacySnapshotTests(unittest.TestCase):
    def setUp(self):
        self.store = LedgerStore(snapshot=_legacy_snapshot())

    def tearDown(self):
        self.store.close()

    def test_schema_is_upgraded(self):
        self.assertEqual(self.store.schema_version, 2)
        self.assertEqual(migrate_store(self.store.engine), 2)

    def test_legacy_corrections_survive(self):
        shots = self.store.resolved_shots()
        self.assertEqual(shots["shot_id"].tolist(), [1])
        self.assertEqual(shots["shooter"].iloc[0], "Dana")
        self.assertEqual(shots["passer"].iloc[0], "Eve")
        self.assertEqual(self.store.raw_shot_count(), 2)

        workspace = self.store.corrections_for_game(1)
        self.assertEqual(workspace["corrections"][2]["state"], "hidden")
        self.assertEqual(workspace["corrections"][1]["state"], "active")

    def test_game_teams_and_coordinates_are_backfilled(self):
        game = self.store.get_game(1)
        self.assertEqual((game["team1"], game["team2"]), ("Lions", "Bears"))

        expected = project_shot(8.0, 30.0)
        shot = self.store.resolved_shots().iloc[0]
        self.assertAlmostEqual(shot["x_graph"], expected["x_graph"])
        self.assertAlmostEqual(shot["y_graph"], expected["y_graph"])

    def test_migrated_store_accepts_new_writes(self):
        self.store.save_correction(1, result="Goal")
        self.store.unhide_shot(2)
        shots = self.store.resolved_shots()
        self.assertEqual(shots["result"].tolist(), ["Goal", "Saved"])
        self.assertEqual(shots["shooter"].tolist(), ["Dana", "Cara"])

        dup = self.store.import_shots(
            "old game",
            "2023-10-01",
            [
                {
                    "date": "2023-10-01",
                    "team1": "Lions",
                    "team2": "Bears",
                    "time": 100,
                    "shooting_team": "Lions",
                    "result": "Saved",
                    "type": "Direct",
                    "xg": 0.2,
                    "xgot": 0.3,
                    "shooter": "Anna",
                    "distance": 8,
                    "angle": 30,
                }
            ],
        )
        self.assertEqual((dup.game_id, dup.inserted_count, dup.duplicate_count), (1, 0, 1))


def test_fresh_store_starts_at_current_version():
    store = LedgerStore()
    assert store.schema_version == 2
    with store.engine.connect() as conn:
        assert conn.exec_driver_sql("PRAGMA user_version").scalar() == 2
    store.close()


def _snapshot_with_unreadable_distance() -> bytes:
    conn = sqlite3.connect(":memory:")
    conn.deserialize(_legacy_snapshot())
    conn.execute(
        "INSERT INTO shots (game_id, date, team1, team2, time, shooting_team, result, type, xg, shooter, distance, angle) "
        "VALUES (1, '2023-10-01', 'Lions', 'Bears', 300, 'Lions', 'Missed', 'Direct', 0.1, 'Anna', 'n/a', 20.0)"
    )
    conn.commit()
    blob = conn.serialize()
    conn.close()
    return blob


class UnreadableLegacyValueTests(unittest.TestCase):
    def test_bad_distance_is_logged_and_skipped(self):
        with self.assertLogs("ledger.migrations", level="WARNING") as logs:
            store = LedgerStore(snapshot=_snapshot_with_unreadable_distance())
        try:
            self.assertEqual(store.schema_version, 2)
            self.assertTrue(any("Shot 3" in line for line in logs.output))
            self.assertEqual(store.raw_shot_count(), 3)

            shots = store.resolved_shots().set_index("shot_id")
            self.assertTrue(pd.isna(shots.loc[3, "x_graph"]))
            self.assertAlmostEqual(shots.loc[1, "x_graph"], project_shot(8.0, 30.0)["x_graph"])
        finally:
            store.close()

    def test_failing_step_does_not_stop_open(self):
        def broken_step(conn):
            raise ValueError("unreadable legacy row")

        with mock.patch("ledger.migrations.MIGRATION_STEPS", ((1, broken_step),)):
            with self.assertLogs("ledger.migrations", level="WARNING"):
                store = LedgerStore(snapshot=_legacy_snapshot())
        try:
            self.assertEqual(store.schema_version, 0)
            self.assertEqual(store.raw_shot_count(), 2)
        finally:
            store.close()
