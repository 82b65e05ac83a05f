"""SQLAlchemy models for the shot ledger.

Key rules:
1. shots rows are immutable once inserted; every edit lands in shot_corrections
2. at most one shot_corrections row per shot and one game_aliases row per game
3. deleting a game cascades to its shots, their corrections, and its alias
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from ledger.schema import CorrectionState


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Game(Base):
    """A single match, identified by (name, date)."""

    __tablename__ = "games"

    game_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game_name: Mapped[str] = mapped_column(Text, nullable=False)
    game_date: Mapped[str] = mapped_column(Text, nullable=False)
    team1: Mapped[str | None] = mapped_column(Text, nullable=True)
    team2: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=True)

    shots: Mapped[list["ShotEvent"]] = relationship(
        "ShotEvent", back_populates="game", cascade="all, delete-orphan", passive_deletes=True
    )
    alias: Mapped["GameAlias | None"] = relationship(
        "GameAlias", back_populates="game", uselist=False, cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (UniqueConstraint("game_name", "game_date", name="uq_games_name_date"),)

    @property
    def display_name(self) -> str:
        if self.alias is not None and self.alias.alias:
            return self.alias.alias
        return self.game_name


class ShotEvent(Base):
    """One imported shot attempt. Never updated after insert."""

    __tablename__ = "shots"

    shot_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game_id: Mapped[int] = mapped_column(Integer, ForeignKey("games.game_id", ondelete="CASCADE"), nullable=False, index=True)
    date: Mapped[str | None] = mapped_column(Text)
    team1: Mapped[str | None] = mapped_column(Text)
    team2: Mapped[str | None] = mapped_column(Text)
    time: Mapped[int | None] = mapped_column(Integer)
    shooting_team: Mapped[str | None] = mapped_column(Text)
    result: Mapped[str | None] = mapped_column(Text)
    type: Mapped[str | None] = mapped_column(Text)
    xg: Mapped[float | None] = mapped_column(Float)
    xgot: Mapped[float | None] = mapped_column(Float)
    shooter: Mapped[str | None] = mapped_column(Text)
    passer: Mapped[str | None] = mapped_column(Text)

    t1lw: Mapped[str | None] = mapped_column(Text)
    t1c: Mapped[str | None] = mapped_column(Text)
    t1rw: Mapped[str | None] = mapped_column(Text)
    t1ld: Mapped[str | None] = mapped_column(Text)
    t1rd: Mapped[str | None] = mapped_column(Text)
    t1g: Mapped[str | None] = mapped_column(Text)
    t1x: Mapped[str | None] = mapped_column(Text)
    t2lw: Mapped[str | None] = mapped_column(Text)
    t2c: Mapped[str | None] = mapped_column(Text)
    t2rw: Mapped[str | None] = mapped_column(Text)
    t2ld: Mapped[str | None] = mapped_column(Text)
    t2rd: Mapped[str | None] = mapped_column(Text)
    t2g: Mapped[str | None] = mapped_column(Text)
    t2x: Mapped[str | None] = mapped_column(Text)

    pp: Mapped[bool | None] = mapped_column(Boolean, default=False)
    sh: Mapped[bool | None] = mapped_column(Boolean, default=False)
    distance: Mapped[float | None] = mapped_column(Float)
    angle: Mapped[float | None] = mapped_column(Float)
    x_m: Mapped[float | None] = mapped_column(Float)
    y_m: Mapped[float | None] = mapped_column(Float)
    x_graph: Mapped[float | None] = mapped_column(Float)
    y_graph: Mapped[float | None] = mapped_column(Float)
    player_team1: Mapped[int | None] = mapped_column(Integer)
    player_team2: Mapped[int | None] = mapped_column(Integer)

    game: Mapped[Game] = relationship("Game", back_populates="shots")
    correction: Mapped["ShotCorrection | None"] = relationship(
        "ShotCorrection", back_populates="shot", uselist=False, cascade="all, delete-orphan", passive_deletes=True
    )


class ShotCorrection(Base):
    """Sparse overlay of field overrides for one shot. NULL means "keep the imported value"."""

    __tablename__ = "shot_corrections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shot_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("shots.shot_id", ondelete="CASCADE"), nullable=False, unique=True
    )
    time: Mapped[int | None] = mapped_column(Integer)
    shooting_team: Mapped[str | None] = mapped_column(Text)
    result: Mapped[str | None] = mapped_column(Text)
    type: Mapped[str | None] = mapped_column(Text)
    xg: Mapped[float | None] = mapped_column(Float)
    xgot: Mapped[float | None] = mapped_column(Float)
    shooter: Mapped[str | None] = mapped_column(Text)
    passer: Mapped[str | None] = mapped_column(Text)
    is_turnover: Mapped[bool | None] = mapped_column(Boolean)

    t1lw: Mapped[str | None] = mapped_column(Text)
    t1c: Mapped[str | None] = mapped_column(Text)
    t1rw: Mapped[str | None] = mapped_column(Text)
    t1ld: Mapped[str | None] = mapped_column(Text)
    t1rd: Mapped[str | None] = mapped_column(Text)
    t1g: Mapped[str | None] = mapped_column(Text)
    t1x: Mapped[str | None] = mapped_column(Text)
    t2lw: Mapped[str | None] = mapped_column(Text)
    t2c: Mapped[str | None] = mapped_column(Text)
    t2rw: Mapped[str | None] = mapped_column(Text)
    t2ld: Mapped[str | None] = mapped_column(Text)
    t2rd: Mapped[str | None] = mapped_column(Text)
    t2g: Mapped[str | None] = mapped_column(Text)
    t2x: Mapped[str | None] = mapped_column(Text)

    pp: Mapped[bool | None] = mapped_column(Boolean)
    sh: Mapped[bool | None] = mapped_column(Boolean)
    state: Mapped[str] = mapped_column(
        String(16), nullable=False, default=CorrectionState.ACTIVE.value, server_default=CorrectionState.ACTIVE.value
    )
    corrected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    shot: Mapped[ShotEvent] = relationship("ShotEvent", back_populates="correction")

    @property
    def is_hidden(self) -> bool:
        return CorrectionState.parse(self.state) is CorrectionState.HIDDEN


class GameAlias(Base):
    """Display-name override for a game."""

    __tablename__ = "game_aliases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("games.game_id", ondelete="CASCADE"), nullable=False, unique=True
    )
    alias: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=_utcnow)

    game: Mapped[Game] = relationship("Game", back_populates="alias")
