"""
SQLite conversation store.

Persists one serialized stack per conversation id in the
``conversation_state`` table.

Correctness invariants:
  - get() is read-only and returns exactly what the last save() wrote.
  - save() uses an upsert so it is idempotent.
  - clear() deletes the row; the next turn starts a fresh virgin stack.
  - Nothing but the serialized stack is stored; user data stays with the host.
"""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import structlog

from topicstack.core.exceptions import SerializationError, StoreError
from topicstack.core.serialization import SerializableStack

logger = structlog.get_logger()

_SCHEMA = """
CREATE TABLE IF NOT EXISTS conversation_state (
    conversation_id TEXT PRIMARY KEY,
    state_json      TEXT NOT NULL,
    depth           INTEGER NOT NULL DEFAULT 0,
    active_topic    TEXT,
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL
)
"""


def _now() -> str:
    return datetime.now(UTC).isoformat()


class SQLiteStore:
    """Conversation store backed by a single SQLite database file."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._conn: sqlite3.Connection | None = None

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> None:
        if self._conn is not None:
            return
        if str(self._path) != ":memory:":
            self._path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(str(self._path))
            conn.row_factory = sqlite3.Row
            conn.execute(_SCHEMA)
            conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open conversation store {self._path}: {exc}") from exc
        self._conn = conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> SQLiteStore:
        self.connect()
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def _db(self) -> sqlite3.Connection:
        if self._conn is None:
            self.connect()
        assert self._conn is not None
        return self._conn

    # ------------------------------------------------------------------
    # ConversationStore
    # ------------------------------------------------------------------

    def get(self, conversation_id: str) -> SerializableStack | None:
        row = self._db.execute(
            "SELECT state_json FROM conversation_state WHERE conversation_id = ?",
            (conversation_id,),
        ).fetchone()
        if row is None:
            return None
        try:
            return SerializableStack.from_json(row["state_json"])
        except SerializationError as exc:
            raise StoreError(
                f"Stored state for conversation {conversation_id!r} is corrupt: {exc}"
            ) from exc

    def save(self, conversation_id: str, state: SerializableStack) -> None:
        try:
            state_json = state.to_json()
        except (TypeError, ValueError) as exc:
            raise StoreError(
                f"State for conversation {conversation_id!r} is not JSON-serializable: {exc}"
            ) from exc

        active_topic = state.items[-1].topic_name if state.items else None
        now = _now()
        self._db.execute(
            """
            INSERT INTO conversation_state
                (conversation_id, state_json, depth, active_topic, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(conversation_id) DO UPDATE SET
                state_json   = excluded.state_json,
                depth        = excluded.depth,
                active_topic = excluded.active_topic,
                updated_at   = excluded.updated_at
            """,
            (conversation_id, state_json, len(state.items), active_topic, now, now),
        )
        self._db.commit()
        logger.debug(
            "conversation_saved",
            conversation_id=conversation_id,
            depth=len(state.items),
            active_topic=active_topic,
        )

    def clear(self, conversation_id: str) -> bool:
        cur = self._db.execute(
            "DELETE FROM conversation_state WHERE conversation_id = ?",
            (conversation_id,),
        )
        self._db.commit()
        deleted = cur.rowcount > 0
        if deleted:
            logger.info("conversation_cleared", conversation_id=conversation_id)
        return deleted

    # ------------------------------------------------------------------
    # Tooling
    # ------------------------------------------------------------------

    def list_conversations(self, limit: int = 100) -> list[dict[str, Any]]:
        """Return summary rows (most recently updated first)."""
        rows = self._db.execute(
            """
            SELECT conversation_id, depth, active_topic, created_at, updated_at
              FROM conversation_state
             ORDER BY updated_at DESC
             LIMIT ?
            """,
            (limit,),
        ).fetchall()
        return [dict(row) for row in rows]
