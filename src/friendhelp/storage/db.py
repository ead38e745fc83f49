"""SQLite connection and schema shared by the entry and session stores.

Storage layout:
  data/users/{user_id}/friendhelp.db
    day_entries    one row per DayEntry, ordered by position
    chat_sessions  one row per ChatSession, ordered by position
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from pydantic import BaseModel, ValidationError

from friendhelp.config import settings


def resolve_db_path(user_id: str, db_path: str | Path | None = None) -> Path:
    """Return the explicit path if given, else the user's default database."""
    if db_path is not None:
        path = Path(db_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path
    return settings.get_user_db_path(user_id)


def get_connection(db_path: Path) -> sqlite3.Connection:
    """Open a connection with the schema in place."""
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    _ensure_schema(conn)
    return conn


def undecodable_rows(
    conn: sqlite3.Connection, table: str, model: type[BaseModel]
) -> list[sqlite3.Row]:
    """Rows of ``table`` whose payload no longer validates as ``model``.

    Whole-collection rewrites carry these rows forward unchanged, after the
    decoded records, so data we could not read is never dropped.
    """
    rows = conn.execute(f"SELECT * FROM {table} ORDER BY position").fetchall()
    kept: list[sqlite3.Row] = []
    for row in rows:
        try:
            model.model_validate_json(row["payload"])
        except ValidationError:
            kept.append(row)
    return kept


def _ensure_schema(conn: sqlite3.Connection) -> None:
    conn.execute("""
        CREATE TABLE IF NOT EXISTS day_entries (
            position INTEGER PRIMARY KEY,
            id TEXT NOT NULL,
            entry_date TEXT NOT NULL,
            payload JSON NOT NULL,
            saved_at TEXT NOT NULL
        )
    """)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS chat_sessions (
            position INTEGER PRIMARY KEY,
            id TEXT NOT NULL,
            updated_at INTEGER NOT NULL,
            payload JSON NOT NULL,
            saved_at TEXT NOT NULL
        )
    """)
    conn.execute("CREATE INDEX IF NOT EXISTS idx_entries_id ON day_entries(id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_entries_date ON day_entries(entry_date)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_sessions_id ON chat_sessions(id)")
    conn.commit()
