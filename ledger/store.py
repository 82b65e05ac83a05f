"""The shot ledger: immutable shot events, correction overlays, and games.

Wraps a SQLAlchemy engine over SQLite. Reads return resolved views; writes go
through a short session and are followed by a full-snapshot upload.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

import pandas as pd
from sqlalchemy import create_engine, event, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from constants import DB_URL
from ledger.corrections import correction_to_dict, resolve, shot_to_dict, validate_correction_fields
from ledger.dedup import (
    MAX_SAMPLES,
    Deduplicator,
    ImportResult,
    build_hash_set,
    duplicate_sample,
    parse_import_row,
)
from ledger.errors import (
    GameNotFound,
    PersistenceUploadFailed,
    ShotNotFound,
    StorageUnavailable,
    ValidationError,
)
from ledger.migrations import migrate_store
from ledger.models import Game, GameAlias, ShotCorrection, ShotEvent
from ledger.persistence import MutationJournal, NullUploader, SnapshotUploader
from ledger.schema import HASH_FIELDS, RESOLVED_SHOT_CONTRACT, CorrectionState, coerce_table
from utils import clean_text, normalize_name

logger = logging.getLogger(__name__)

ALL_GAMES = "all"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _game_to_dict(game: Game, shot_count: int | None = None) -> dict[str, Any]:
    alias = game.alias.alias if game.alias is not None else None
    out = {
        "game_id": game.game_id,
        "game_name": game.game_name,
        "game_date": game.game_date,
        "team1": game.team1,
        "team2": game.team2,
        "alias": alias,
        "display_name": game.display_name,
    }
    if shot_count is not None:
        out["shot_count"] = int(shot_count)
    return out


class LedgerStore:
    """Single-writer shot ledger backed by SQLite."""

    def __init__(
        self,
        url: str = DB_URL,
        *,
        snapshot: bytes | None = None,
        uploader: SnapshotUploader | None = None,
        journal: MutationJournal | None = None,
    ):
        self.uploader = uploader or NullUploader()
        self.journal = journal
        self.upload_pending = False
        self._replaying = False
        try:
            self.engine = create_engine(
                url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
            if snapshot is not None:
                self._restore(snapshot)
            self.schema_version = migrate_store(self.engine)
        except (SQLAlchemyError, sqlite3.Error) as exc:
            raise StorageUnavailable(f"could not open ledger at {url}: {exc}") from exc
        self._sessions = sessionmaker(self.engine, expire_on_commit=False)

    @classmethod
    def open(
        cls,
        uploader: SnapshotUploader,
        *,
        journal: MutationJournal | None = None,
    ) -> "LedgerStore":
        """Restore the last uploaded snapshot (if any) into an in-memory store."""
        try:
            blob = uploader.download()
        except OSError as exc:
            raise StorageUnavailable(f"could not download ledger snapshot: {exc}") from exc
        return cls(snapshot=blob, uploader=uploader, journal=journal)

    def close(self) -> None:
        self.engine.dispose()

    # --- Snapshots ---

    def _restore(self, blob: bytes) -> None:
        raw = self.engine.raw_connection()
        try:
            raw.driver_connection.deserialize(blob)
            raw.driver_connection.execute("PRAGMA foreign_keys=ON")
        finally:
            raw.close()

    def snapshot(self) -> bytes:
        """Serialize the whole store as a SQLite database image."""
        raw = self.engine.raw_connection()
        try:
            return raw.driver_connection.serialize()
        finally:
            raw.close()

    def sync(self) -> None:
        """Upload the full snapshot; raises PersistenceUploadFailed and keeps it pending."""
        blob = self.snapshot()
        try:
            self.uploader.upload(blob)
        except PersistenceUploadFailed:
            self.upload_pending = True
            raise
        except OSError as exc:
            self.upload_pending = True
            raise PersistenceUploadFailed(f"snapshot upload failed: {exc}") from exc
        self.upload_pending = False

    def _after_mutation(self, op: str, **args: Any) -> None:
        if self._replaying:
            return
        if self.journal is not None:
            self.journal.append(op, **args)
        try:
            self.sync()
        except PersistenceUploadFailed as exc:
            logger.warning("Snapshot upload failed after %s; retrying on next mutation: %s", op, exc)

    def replay(self, journal: MutationJournal) -> int:
        """Apply journaled mutations in order; returns the number applied."""
        handlers = {
            "import_shots": self.import_shots,
            "save_correction": self.save_correction,
            "delete_correction": self.delete_correction,
            "hide_shot": self.hide_shot,
            "unhide_shot": self.unhide_shot,
            "set_game_alias": self.set_game_alias,
            "delete_game": self.delete_game,
        }
        applied = 0
        self._replaying = True
        try:
            for entry in journal.entries():
                handler = handlers.get(entry.op)
                if handler is None:
                    logger.warning("Unknown journal op %s; skipping", entry.op)
                    continue
                try:
                    handler(**entry.args)
                except (ValidationError, ShotNotFound, GameNotFound) as exc:
                    logger.warning("Journal replay of %s failed: %s", entry.op, exc)
                    continue
                applied += 1
        finally:
            self._replaying = False
        if applied:
            self._after_mutation("replay", applied=applied)
        return applied

    # --- Import ---

    def _find_game(self, session: Session, name: str, date: str) -> Game | None:
        key = normalize_name(name)
        for game in session.scalars(select(Game).where(Game.game_date == date).order_by(Game.game_id)):
            if normalize_name(game.game_name) == key:
                return game
        return None

    def _existing_hashes(self, session: Session) -> set[str]:
        columns = [getattr(ShotEvent, name) for name in HASH_FIELDS]
        return build_hash_set(session.execute(select(*columns)).mappings())

    def import_shots(
        self,
        game_name: str,
        game_date: str,
        rows: Iterable[Mapping[str, Any]] | pd.DataFrame,
        team1: str | None = None,
        team2: str | None = None,
    ) -> ImportResult:
        """Insert new shot rows for a game, skipping rows already in the ledger."""
        name = clean_text(game_name)
        date = clean_text(game_date)
        if not name or not date:
            raise ValidationError("game name and date are required", field="game_name" if not name else "game_date")

        if isinstance(rows, pd.DataFrame):
            rows = rows.astype(object).where(rows.notna(), None).to_dict("records")
        rows = [dict(row) for row in rows]

        result = ImportResult(game_id=None)
        parsed_rows = []
        for idx, raw in enumerate(rows):
            try:
                parsed_rows.append(parse_import_row(raw, row_index=idx))
            except ValidationError as exc:
                result.rejected_count += 1
                if len(result.rejected_samples) < MAX_SAMPLES:
                    result.rejected_samples.append(str(exc))

        with self._sessions.begin() as session:
            game = self._find_game(session, name, date)
            created = game is None
            if created:
                first = parsed_rows[0] if parsed_rows else {}
                game = Game(
                    game_name=name,
                    game_date=date,
                    team1=clean_text(team1) or first.get("team1"),
                    team2=clean_text(team2) or first.get("team2"),
                )
                session.add(game)
                session.flush()
            result.game_id = game.game_id
            result.game_created = created

            dedup = Deduplicator(self._existing_hashes(session))
            for parsed in parsed_rows:
                if dedup.admit(parsed):
                    session.add(ShotEvent(game_id=game.game_id, **parsed))
                    result.inserted_count += 1
                else:
                    result.duplicate_count += 1
                    if len(result.duplicate_samples) < MAX_SAMPLES:
                        result.duplicate_samples.append(duplicate_sample(parsed))

            if created and result.inserted_count == 0:
                session.delete(game)
                result.game_id = None
                result.game_created = False
                result.game_rolled_back = True

        logger.info(
            "Imported %s into %s (%s): %s new, %s duplicate, %s rejected",
            len(rows),
            name,
            date,
            result.inserted_count,
            result.duplicate_count,
            result.rejected_count,
        )
        if result.inserted_count:
            self._after_mutation("import_shots", game_name=name, game_date=date, rows=rows, team1=team1, team2=team2)
        return result

    # --- Resolved reads ---

    def resolved_shots(self, game_id: int | str = ALL_GAMES) -> pd.DataFrame:
        """Resolved (overlay-applied, hidden-excluded) shots ordered by shot id."""
        stmt = (
            select(ShotEvent, ShotCorrection)
            .outerjoin(ShotCorrection, ShotCorrection.shot_id == ShotEvent.shot_id)
            .order_by(ShotEvent.shot_id)
        )
        if game_id != ALL_GAMES:
            stmt = stmt.where(ShotEvent.game_id == int(game_id))

        records = []
        with self._sessions() as session:
            for shot, correction in session.execute(stmt):
                resolved = resolve(shot, correction)
                if resolved is not None:
                    records.append(resolved)
        return coerce_table(pd.DataFrame(records), RESOLVED_SHOT_CONTRACT)

    def raw_shot_count(self, game_id: int | str = ALL_GAMES) -> int:
        stmt = select(func.count(ShotEvent.shot_id))
        if game_id != ALL_GAMES:
            stmt = stmt.where(ShotEvent.game_id == int(game_id))
        with self._sessions() as session:
            return int(session.scalar(stmt) or 0)

    def all_players(self) -> list[str]:
        """Distinct shooters and passers across the resolved ledger."""
        shots = self.resolved_shots(ALL_GAMES)
        names = set()
        for col in ("shooter", "passer"):
            names.update(str(v).strip() for v in shots[col].dropna().tolist() if str(v).strip())
        return sorted(names)

    # --- Corrections ---

    def _get_shot(self, session: Session, shot_id: int) -> ShotEvent:
        shot = session.get(ShotEvent, int(shot_id))
        if shot is None:
            raise ShotNotFound(shot_id)
        return shot

    def save_correction(self, shot_id: int, fields: Mapping[str, Any] | None = None, **kwargs: Any) -> dict[str, Any]:
        """Upsert an overlay, writing only the supplied keys."""
        payload = dict(fields or {})
        payload.update(kwargs)
        if not payload:
            raise ValidationError("no correction fields supplied")
        typed = validate_correction_fields(payload)

        with self._sessions.begin() as session:
            shot = self._get_shot(session, shot_id)
            correction = shot.correction
            if correction is None:
                correction = ShotCorrection(shot_id=shot.shot_id, state=CorrectionState.ACTIVE.value)
                session.add(correction)
            for name, value in typed.items():
                setattr(correction, name, value)
            correction.corrected_at = datetime.now(timezone.utc)
            session.flush()
            saved = correction_to_dict(correction)

        self._after_mutation("save_correction", shot_id=int(shot_id), fields=payload)
        return saved

    def delete_correction(self, shot_id: int) -> bool:
        """Remove the overlay entirely (the shot reverts to its imported values)."""
        with self._sessions.begin() as session:
            shot = self._get_shot(session, shot_id)
            if shot.correction is None:
                return False
            session.delete(shot.correction)
        self._after_mutation("delete_correction", shot_id=int(shot_id))
        return True

    def _set_state(self, shot_id: int, state: CorrectionState, create: bool) -> bool:
        with self._sessions.begin() as session:
            shot = self._get_shot(session, shot_id)
            correction = shot.correction
            if correction is None:
                if not create:
                    return False
                correction = ShotCorrection(shot_id=shot.shot_id)
                session.add(correction)
            correction.state = state.value
            correction.corrected_at = datetime.now(timezone.utc)
        return True

    def hide_shot(self, shot_id: int) -> None:
        if self._set_state(shot_id, CorrectionState.HIDDEN, create=True):
            self._after_mutation("hide_shot", shot_id=int(shot_id))

    def unhide_shot(self, shot_id: int) -> None:
        if self._set_state(shot_id, CorrectionState.ACTIVE, create=False):
            self._after_mutation("unhide_shot", shot_id=int(shot_id))

    def corrections_for_game(self, game_id: int) -> dict[str, Any]:
        """Raw shots and overlays (hidden ones included) for the corrections workspace."""
        with self._sessions() as session:
            game = session.get(Game, int(game_id))
            if game is None:
                raise GameNotFound(game_id)
            shots = session.scalars(
                select(ShotEvent).where(ShotEvent.game_id == game.game_id).order_by(ShotEvent.shot_id)
            ).all()
            return {
                "game": _game_to_dict(game, shot_count=len(shots)),
                "shots": [shot_to_dict(shot) for shot in shots],
                "corrections": {
                    shot.shot_id: correction_to_dict(shot.correction) for shot in shots if shot.correction is not None
                },
            }

    # --- Games ---

    def list_games(self) -> list[dict[str, Any]]:
        counts = (
            select(ShotEvent.game_id, func.count(ShotEvent.shot_id).label("shot_count"))
            .group_by(ShotEvent.game_id)
            .subquery()
        )
        stmt = (
            select(Game, func.coalesce(counts.c.shot_count, 0))
            .outerjoin(counts, counts.c.game_id == Game.game_id)
            .order_by(Game.game_date.desc(), Game.game_name)
        )
        with self._sessions() as session:
            return [_game_to_dict(game, shot_count=count) for game, count in session.execute(stmt)]

    def get_game(self, game_id: int) -> dict[str, Any]:
        with self._sessions() as session:
            game = session.get(Game, int(game_id))
            if game is None:
                raise GameNotFound(game_id)
            return _game_to_dict(game)

    def game_alias(self, game_id: int) -> str | None:
        return self.get_game(game_id)["alias"]

    def set_game_alias(self, game_id: int, alias: str | None) -> None:
        """Set the display alias; an empty alias removes it."""
        alias_text = clean_text(alias)
        with self._sessions.begin() as session:
            game = session.get(Game, int(game_id))
            if game is None:
                raise GameNotFound(game_id)
            if alias_text is None:
                if game.alias is not None:
                    session.delete(game.alias)
            elif game.alias is None:
                session.add(GameAlias(game_id=game.game_id, alias=alias_text))
            else:
                game.alias.alias = alias_text
        self._after_mutation("set_game_alias", game_id=int(game_id), alias=alias_text)

    def delete_game(self, game_id: int) -> None:
        """Delete a game with its shots, overlays, and alias."""
        with self._sessions.begin() as session:
            game = session.get(Game, int(game_id))
            if game is None:
                raise GameNotFound(game_id)
            session.delete(game)
        self._after_mutation("delete_game", game_id=int(game_id))
