"""Durable list of companion chat sessions."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from friendhelp.errors import StoreError
from friendhelp.logging import format_log_context, logger
from friendhelp.models import ChatSession, utc_now
from friendhelp.storage.db import get_connection, resolve_db_path, undecodable_rows


class SessionStore:
    """Storage for ChatSession records of one user.

    Same whole-collection semantics as EntryStore: ``save_sessions``
    replaces everything, ``load_sessions`` returns saved order.
    """

    def __init__(self, user_id: str, db_path: str | Path | None = None) -> None:
        self.user_id = user_id
        self._db_path = resolve_db_path(user_id, db_path)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def load_sessions(self) -> list[ChatSession]:
        try:
            conn = get_connection(self._db_path)
            try:
                rows = conn.execute(
                    "SELECT position, payload FROM chat_sessions ORDER BY position"
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not read sessions: {e}") from e

        sessions: list[ChatSession] = []
        for row in rows:
            try:
                sessions.append(ChatSession.model_validate_json(row["payload"]))
            except ValidationError as e:
                logger.warning(
                    format_log_context(
                        "session_row_skipped",
                        component="session_store",
                        user=self.user_id,
                        position=row["position"],
                        error=e.error_count(),
                    )
                )
        return sessions

    def save_sessions(self, sessions: Iterable[ChatSession]) -> None:
        """Replace the stored sessions; rows that no longer decode are kept."""
        saved_at = utc_now().isoformat()
        rows = [
            (
                position,
                session.id,
                session.updated_at,
                json.dumps(session.to_wire()),
                saved_at,
            )
            for position, session in enumerate(sessions)
        ]
        try:
            conn = get_connection(self._db_path)
            try:
                with conn:
                    carried = [
                        (len(rows) + i, row["id"], row["updated_at"], row["payload"], row["saved_at"])
                        for i, row in enumerate(undecodable_rows(conn, "chat_sessions", ChatSession))
                    ]
                    conn.execute("DELETE FROM chat_sessions")
                    conn.executemany(
                        """
                        INSERT INTO chat_sessions (position, id, updated_at, payload, saved_at)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        rows + carried,
                    )
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not save sessions: {e}") from e

        logger.debug(
            format_log_context(
                "sessions_saved",
                component="session_store",
                user=self.user_id,
                count=len(rows),
                kept=len(carried),
            )
        )

    def clear(self) -> None:
        try:
            conn = get_connection(self._db_path)
            try:
                with conn:
                    conn.execute("DELETE FROM chat_sessions")
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not clear sessions: {e}") from e
