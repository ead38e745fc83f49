"""Shared fixtures and configuration for pytest."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Sequence

import pytest

from friendhelp.analysis import AnalysisService
from friendhelp.config import settings
from friendhelp.context import AppContext
from friendhelp.models import ChatMessage, DayAnalysis, DayEntry, new_id


# =============================================================================
# Fakes
# =============================================================================

class FakeAnalysisService(AnalysisService):
    """In-memory AnalysisService recording every call.

    Set ``gate`` to an ``asyncio.Event`` to hold calls in flight, and the
    ``*_error`` attributes to make the next calls fail.
    """

    def __init__(self) -> None:
        self.follow_up_calls: list[tuple[str, list[str]]] = []
        self.analysis_calls: list[tuple[str, list[str], list[DayEntry]]] = []
        self.reply_calls: list[tuple[str, list[ChatMessage]]] = []
        self.follow_up_error: Exception | None = None
        self.analysis_error: Exception | None = None
        self.reply_error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.analysis = DayAnalysis(
            summary="A calm, steady day.",
            happiness_score=72,
            pattern_insight="Walks keep lifting your mood.",
            advice=["Take a short walk", "Call a friend"],
            detected_emotions=["calm", "content"],
        )

    async def _wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()

    async def request_follow_up(self, last_user_message: str, history: Sequence[str]) -> str:
        self.follow_up_calls.append((last_user_message, list(history)))
        await self._wait()
        if self.follow_up_error is not None:
            raise self.follow_up_error
        return f"Follow-up question {len(self.follow_up_calls)}?"

    async def request_day_analysis(
        self,
        primary_entry: str,
        follow_up_responses: Sequence[str],
        past_entries: Sequence[DayEntry],
    ) -> DayAnalysis:
        self.analysis_calls.append((primary_entry, list(follow_up_responses), list(past_entries)))
        await self._wait()
        if self.analysis_error is not None:
            raise self.analysis_error
        return self.analysis

    async def request_companion_reply(
        self, message: str, session_history: Sequence[ChatMessage]
    ) -> str:
        self.reply_calls.append((message, list(session_history)))
        await self._wait()
        if self.reply_error is not None:
            raise self.reply_error
        return f"Reply to: {message}"


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def data_root(tmp_path, monkeypatch):
    """Point every store at a throwaway data directory."""
    root = tmp_path / "data"
    monkeypatch.setattr(settings, "DATA_ROOT", root)
    return root


@pytest.fixture
def fake_analysis() -> FakeAnalysisService:
    return FakeAnalysisService()


@pytest.fixture
def context(fake_analysis) -> AppContext:
    return AppContext.create("test_user", analysis=fake_analysis)


@pytest.fixture
def make_entry() -> Callable[..., DayEntry]:
    """Build a DayEntry with a given score and age in days."""

    def _make(
        score: int = 50,
        days_ago: int = 0,
        insight: str | None = None,
        advice: list[str] | None = None,
        content: str = "It was a day.",
        when: datetime | None = None,
    ) -> DayEntry:
        when = when or datetime.now(timezone.utc) - timedelta(days=days_ago)
        return DayEntry(
            id=new_id(),
            date=when,
            content=content,
            follow_ups=[],
            analysis=DayAnalysis(
                summary=f"Score {score} day",
                happiness_score=score,
                pattern_insight=insight,
                advice=advice or [],
                detected_emotions=["neutral"],
            ),
        )

    return _make
