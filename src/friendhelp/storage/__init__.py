"""Persistence for reflections and companion sessions."""

from pathlib import Path

from friendhelp.storage.entry_store import EntryStore
from friendhelp.storage.session_store import SessionStore


def clear_all_data(user_id: str, db_path: str | Path | None = None) -> None:
    """Wipe every stored entry and session for ``user_id``."""
    EntryStore(user_id, db_path).clear()
    SessionStore(user_id, db_path).clear()


__all__ = ["EntryStore", "SessionStore", "clear_all_data"]
