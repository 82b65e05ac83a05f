import unittest

from ledger import FileSnapshotUploader, LedgerStore, MutationJournal, PersistenceUploadFailed
from ledger.persistence import SnapshotUploader


def _row(time, shooter="Anna"):
    return {
        "date": "2024-03-01",
        "team1": "Lions",
        "team2": "Bears",
        "time": time,
        "shooting_team": "Lions",
        "result": "Saved",
        "type": "Direct",
        "xg": 0.2,
        "xgot": 0.3,
        "shooter": shooter,
        "distance": 7,
        "angle": 20,
    }


class FlakyUploader(SnapshotUploader):
    def __init__(self, failures=1):
        self.failures = failures
        self.blobs = []

    def upload(self, blob):
        if self.failures > 0:
            self.failures -= 1
            raise PersistenceUploadFailed("bucket unavailable")
        self.blobs.append(blob)


class SnapshotSyncTests(unittest.TestCase):
    def test_failed_upload_is_retried_on_next_mutation(self):
        uploader = FlakyUploader(failures=1)
        store = LedgerStore(uploader=uploader)

        with self.assertLogs("ledger.store", level="WARNING"):
            result = store.import_shots("Lions vs Bears", "2024-03-01", [_row(10)])
        self.assertEqual(result.inserted_count, 1)
        self.assertTrue(store.upload_pending)
        self.assertEqual(uploader.blobs, [])

        shot_id = int(store.resolved_shots()["shot_id"].iloc[0])
        store.hide_shot(shot_id)
        self.assertFalse(store.upload_pending)
        self.assertEqual(len(uploader.blobs), 1)
        store.close()

    def test_explicit_sync_raises_when_upload_fails(self):
        store = LedgerStore(uploader=FlakyUploader(failures=1))
        with self.assertRaises(PersistenceUploadFailed):
            store.sync()
        self.assertTrue(store.upload_pending)
        store.sync()
        self.assertFalse(store.upload_pending)
        store.close()

    def test_duplicate_only_import_does_not_upload(self):
        uploader = FlakyUploader(failures=0)
        store = LedgerStore(uploader=uploader)
        store.import_shots("Lions vs Bears", "2024-03-01", [_row(10)])
        store.import_shots("Lions vs Bears", "2024-03-01", [_row(10)])
        self.assertEqual(len(uploader.blobs), 1)
        store.close()


def test_file_snapshot_round_trip(tmp_path):
    path = tmp_path / "ledger.sqlite"
    store = LedgerStore.open(FileSnapshotUploader(path))
    result = store.import_shots("Lions vs Bears", "2024-03-01", [_row(10), _row(20, shooter="Cara")])
    shot_id = int(store.resolved_shots()["shot_id"].iloc[0])
    store.save_correction(shot_id, result="Goal")
    store.set_game_alias(result.game_id, "Opener")
    store.close()

    assert path.exists()
    assert not (tmp_path / "ledger.sqlite.tmp").exists()

    reopened = LedgerStore.open(FileSnapshotUploader(path))
    shots = reopened.resolved_shots()
    assert len(shots) == 2
    assert shots.loc[shots["shot_id"] == shot_id, "result"].iloc[0] == "Goal"
    assert reopened.game_alias(result.game_id) == "Opener"
    assert reopened.schema_version == 2

    again = reopened.import_shots("Lions vs Bears", "2024-03-01", [_row(10)])
    assert again.duplicate_count == 1
    reopened.close()


def test_open_without_snapshot_starts_empty(tmp_path):
    store = LedgerStore.open(FileSnapshotUploader(tmp_path / "missing.sqlite"))
    assert store.list_games() == []
    store.close()


def test_journal_replay_rebuilds_store(tmp_path):
    journal = MutationJournal(tmp_path / "ledger.journal.jsonl")
    store = LedgerStore(journal=journal)
    result = store.import_shots("Lions vs Bears", "2024-03-01", [_row(10), _row(20, shooter="Cara")])
    first_id, second_id = [int(v) for v in store.resolved_shots()["shot_id"].tolist()]
    store.save_correction(first_id, {"shooter": "Dana"})
    store.hide_shot(second_id)
    store.set_game_alias(result.game_id, "Opener")
    store.close()

    ops = [entry.op for entry in journal.entries()]
    assert ops == ["import_shots", "save_correction", "hide_shot", "set_game_alias"]

    rebuilt = LedgerStore()
    assert rebuilt.replay(journal) == 4
    shots = rebuilt.resolved_shots()
    assert shots["shooter"].tolist() == ["Dana"]
    assert rebuilt.raw_shot_count() == 2
    assert rebuilt.game_alias(result.game_id) == "Opener"
    rebuilt.close()


def test_journal_skips_unreadable_lines(tmp_path):
    path = tmp_path / "journal.jsonl"
    journal = MutationJournal(path)
    journal.append("hide_shot", shot_id=1)
    with path.open("a", encoding="utf-8") as handle:
        handle.write("{not json\n")
    journal.append("unhide_shot", shot_id=1)

    assert [entry.op for entry in journal.entries()] == ["hide_shot", "unhide_shot"]
