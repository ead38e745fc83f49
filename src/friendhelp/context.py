"""Explicit application state handed to every controller."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from friendhelp.analysis import AnalysisService, LLMAnalysisService
from friendhelp.storage import EntryStore, SessionStore


@dataclass
class AppContext:
    """Per-user collaborators plus the shared view selection.

    ``active_session_id`` is None while the companion archive is shown.
    """

    user_id: str
    entry_store: EntryStore
    session_store: SessionStore
    analysis: AnalysisService
    active_session_id: str | None = None

    @classmethod
    def create(
        cls,
        user_id: str,
        analysis: AnalysisService | None = None,
        db_path: str | Path | None = None,
    ) -> "AppContext":
        return cls(
            user_id=user_id,
            entry_store=EntryStore(user_id, db_path),
            session_store=SessionStore(user_id, db_path),
            analysis=analysis or LLMAnalysisService(),
        )
