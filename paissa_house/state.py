"""Durable storage for pagination sessions."""
from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from .errors import MalformedPersistedStateError, PersistenceWriteError
from .models import FilterSpec, MessageRef, PaginationSession, WorldDetail

logger = logging.getLogger(__name__)

_DB_SCHEMA = """
CREATE TABLE IF NOT EXISTS pagination_states (
    session_id TEXT PRIMARY KEY,
    owner_id INTEGER NOT NULL,
    channel_id INTEGER NOT NULL,
    message_id INTEGER NOT NULL,
    guild_id INTEGER,
    world_id INTEGER NOT NULL,
    district_filter INTEGER,
    size_filter INTEGER,
    phase_filter INTEGER,
    tenant_filter INTEGER,
    plot_filter INTEGER,
    ward_filter INTEGER,
    current_page INTEGER NOT NULL,
    total_pages INTEGER NOT NULL,
    world_detail_json TEXT NOT NULL,
    created_at INTEGER NOT NULL,
    last_refreshed INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_pagination_states_created
    ON pagination_states (created_at);
"""

_COLUMNS = (
    "session_id",
    "owner_id",
    "channel_id",
    "message_id",
    "guild_id",
    "world_id",
    "district_filter",
    "size_filter",
    "phase_filter",
    "tenant_filter",
    "plot_filter",
    "ward_filter",
    "current_page",
    "total_pages",
    "world_detail_json",
    "created_at",
    "last_refreshed",
)


def to_epoch_millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def from_epoch_millis(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


@dataclass(frozen=True)
class StoredSession:
    """One persisted row; timestamps are epoch milliseconds."""

    session_id: str
    owner_id: int
    channel_id: int
    message_id: int
    guild_id: Optional[int]
    world_id: int
    district_filter: Optional[int]
    size_filter: Optional[int]
    phase_filter: Optional[int]
    tenant_filter: Optional[int]
    plot_filter: Optional[int]
    ward_filter: Optional[int]
    current_page: int
    total_pages: int
    world_detail_json: str
    created_at: int
    last_refreshed: int

    @property
    def message(self) -> MessageRef:
        return MessageRef(self.channel_id, self.message_id, self.guild_id)

    @property
    def created(self) -> datetime:
        return self._timestamp("created_at", self.created_at)

    def _timestamp(self, column: str, value: int) -> datetime:
        try:
            return from_epoch_millis(value)
        except (OverflowError, OSError, TypeError, ValueError) as exc:
            raise MalformedPersistedStateError(
                f"Stored session {self.session_id} has an invalid {column}: {value!r}"
            ) from exc

    @staticmethod
    def from_session(session: PaginationSession) -> "StoredSession":
        filters = session.filters
        return StoredSession(
            session_id=session.session_id,
            owner_id=session.owner_id,
            channel_id=session.message.channel_id,
            message_id=session.message.message_id,
            guild_id=session.message.guild_id,
            world_id=session.world_id,
            district_filter=filters.district,
            size_filter=filters.size,
            phase_filter=filters.lottery_phase,
            tenant_filter=filters.allowed_tenants,
            plot_filter=filters.plot,
            ward_filter=filters.ward,
            current_page=session.current_page,
            total_pages=session.total_pages,
            world_detail_json=session.world.to_json(),
            created_at=to_epoch_millis(session.created_at),
            last_refreshed=to_epoch_millis(session.last_refreshed),
        )

    def to_session(self) -> PaginationSession:
        """Rebuild the live session, trusting the stored world snapshot."""

        try:
            world = WorldDetail.from_json(self.world_detail_json)
            filters = FilterSpec(
                district=self.district_filter,
                size=self.size_filter,
                lottery_phase=self.phase_filter,
                allowed_tenants=self.tenant_filter,
                plot=self.plot_filter,
                ward=self.ward_filter,
            ).validate()
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise MalformedPersistedStateError(
                f"Stored session {self.session_id} is malformed: {exc}"
            ) from exc
        if self.total_pages < 1 or not 0 <= self.current_page < self.total_pages:
            raise MalformedPersistedStateError(
                f"Stored session {self.session_id} has page {self.current_page}"
                f" of {self.total_pages}"
            )
        return PaginationSession(
            session_id=self.session_id,
            owner_id=self.owner_id,
            message=self.message,
            world_id=self.world_id,
            filters=filters,
            current_page=self.current_page,
            total_pages=self.total_pages,
            world=world,
            created_at=self.created,
            last_refreshed=self._timestamp("last_refreshed", self.last_refreshed),
        )

    def as_row(self) -> Tuple[object, ...]:
        return tuple(getattr(self, column) for column in _COLUMNS)


class SessionStateStore:
    """Keyed row store for pagination sessions, one row per session id."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._ensure_schema()

    @property
    def path(self) -> Path:
        return self._db_path

    def _ensure_schema(self) -> None:
        with closing(sqlite3.connect(self._db_path)) as conn:
            conn.executescript(_DB_SCHEMA)
            conn.commit()

    def put(self, row: StoredSession) -> None:
        """Upsert a session row; the first ``created_at`` is kept."""

        placeholders = ", ".join("?" for _ in _COLUMNS)
        updates = ", ".join(
            f"{column} = excluded.{column}"
            for column in _COLUMNS
            if column not in ("session_id", "created_at")
        )
        try:
            with closing(sqlite3.connect(self._db_path)) as conn:
                conn.execute(
                    f"INSERT INTO pagination_states ({', '.join(_COLUMNS)}) "
                    f"VALUES ({placeholders}) "
                    f"ON CONFLICT(session_id) DO UPDATE SET {updates}",
                    row.as_row(),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceWriteError(
                f"Failed to save session {row.session_id}: {exc}"
            ) from exc

    def get(self, session_id: str) -> Optional[StoredSession]:
        with closing(sqlite3.connect(self._db_path)) as conn:
            row = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM pagination_states WHERE session_id = ?",
                (session_id,),
            ).fetchone()
        if not row:
            return None
        return StoredSession(*row)

    def delete(self, session_id: str) -> bool:
        try:
            with closing(sqlite3.connect(self._db_path)) as conn:
                cursor = conn.execute(
                    "DELETE FROM pagination_states WHERE session_id = ?",
                    (session_id,),
                )
                conn.commit()
                return cursor.rowcount > 0
        except sqlite3.Error as exc:
            raise PersistenceWriteError(
                f"Failed to delete session {session_id}: {exc}"
            ) from exc

    def list(self) -> List[StoredSession]:
        with closing(sqlite3.connect(self._db_path)) as conn:
            rows = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM pagination_states ORDER BY created_at ASC"
            ).fetchall()
        return [StoredSession(*row) for row in rows]

    def delete_older_than(self, cutoff: datetime) -> int:
        try:
            with closing(sqlite3.connect(self._db_path)) as conn:
                cursor = conn.execute(
                    "DELETE FROM pagination_states WHERE created_at < ?",
                    (to_epoch_millis(cutoff),),
                )
                conn.commit()
                return cursor.rowcount
        except sqlite3.Error as exc:
            raise PersistenceWriteError(f"Failed to sweep sessions: {exc}") from exc


__all__ = [
    "StoredSession",
    "SessionStateStore",
    "to_epoch_millis",
    "from_epoch_millis",
]
