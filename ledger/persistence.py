"""Snapshot upload and mutation journal.

Every committed mutation hands a full SQLite image to an uploader. The journal
is an optional append-only record of the same mutations, one JSON object per
line, that can be replayed onto a fresh store.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from constants import JOURNAL_FILE, SNAPSHOT_FILE
from ledger.errors import PersistenceUploadFailed

logger = logging.getLogger(__name__)


class SnapshotUploader:
    """Receives the full serialized store after each mutation."""

    def upload(self, blob: bytes) -> None:
        raise NotImplementedError

    def download(self) -> bytes | None:
        return None


class NullUploader(SnapshotUploader):
    def upload(self, blob: bytes) -> None:
        return None


class FileSnapshotUploader(SnapshotUploader):
    """Write the snapshot to a local file atomically (temp file + rename)."""

    def __init__(self, path: str | os.PathLike = SNAPSHOT_FILE):
        self.path = Path(path)

    def upload(self, blob: bytes) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(blob)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise PersistenceUploadFailed(f"could not write snapshot {self.path}: {exc}") from exc

    def download(self) -> bytes | None:
        if not self.path.exists():
            return None
        return self.path.read_bytes()


@dataclass(frozen=True)
class JournalEntry:
    op: str
    args: dict[str, Any]
    recorded_at: str

    def to_json(self) -> str:
        return json.dumps({"op": self.op, "args": self.args, "recorded_at": self.recorded_at}, sort_keys=True, default=str)

    @classmethod
    def from_json(cls, line: str) -> "JournalEntry":
        payload = json.loads(line)
        return cls(op=str(payload["op"]), args=dict(payload.get("args") or {}), recorded_at=str(payload.get("recorded_at", "")))


class MutationJournal:
    """Append-only JSON-lines log of ledger mutations."""

    def __init__(self, path: str | os.PathLike = JOURNAL_FILE):
        self.path = Path(path)

    def append(self, op: str, **args: Any) -> JournalEntry:
        entry = JournalEntry(op=op, args=args, recorded_at=datetime.now(timezone.utc).isoformat())
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(entry.to_json() + "\n")
        return entry

    def entries(self) -> Iterator[JournalEntry]:
        if not self.path.exists():
            return
        with self.path.open("r", encoding="utf-8") as handle:
            for line_no, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                try:
                    yield JournalEntry.from_json(line)
                except (ValueError, KeyError) as exc:
                    logger.warning("Skipping unreadable journal line %s in %s: %s", line_no, self.path, exc)
