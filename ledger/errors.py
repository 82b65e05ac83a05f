"""Exception types raised by the shot ledger."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for ledger failures."""


class ValidationError(LedgerError, ValueError):
    """An import row or correction payload is malformed."""

    def __init__(self, message: str, *, field: str | None = None, row_index: int | None = None):
        super().__init__(message)
        self.field = field
        self.row_index = row_index


class ShotNotFound(LedgerError, LookupError):
    def __init__(self, shot_id: int):
        super().__init__(f"shot {shot_id} does not exist")
        self.shot_id = shot_id


class GameNotFound(LedgerError, LookupError):
    def __init__(self, game_id: int):
        super().__init__(f"game {game_id} does not exist")
        self.game_id = game_id


class StorageUnavailable(LedgerError):
    """The relational store could not be opened or restored."""


class PersistenceUploadFailed(LedgerError):
    """The snapshot upload was rejected; the in-memory ledger is still authoritative."""
