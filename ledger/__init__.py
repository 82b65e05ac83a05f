"""Shot ledger package: storage, deduplicated import, and correction overlays."""

from ledger.dedup import ImportOutcome, ImportResult, shot_hash
from ledger.errors import (
    GameNotFound,
    LedgerError,
    PersistenceUploadFailed,
    ShotNotFound,
    StorageUnavailable,
    ValidationError,
)
from ledger.persistence import FileSnapshotUploader, MutationJournal, SnapshotUploader
from ledger.store import ALL_GAMES, LedgerStore

__all__ = [
    "ALL_GAMES",
    "LedgerStore",
    "ImportOutcome",
    "ImportResult",
    "shot_hash",
    "LedgerError",
    "ValidationError",
    "ShotNotFound",
    "GameNotFound",
    "StorageUnavailable",
    "PersistenceUploadFailed",
    "SnapshotUploader",
    "FileSnapshotUploader",
    "MutationJournal",
]
