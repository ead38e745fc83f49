"""Guided daily check-in conversation.

The check-in opens with a fixed question, asks a bounded number of
follow-ups, and finalizes the conversation into one DayEntry:

    OPENING -> GATHERING(k) -> FINALIZING -> COMPLETE

It can be cancelled at any point before COMPLETE; nothing is persisted
until finalization succeeds.
"""

from __future__ import annotations

from enum import Enum

from friendhelp.config import settings
from friendhelp.context import AppContext
from friendhelp.conversation import TurnGuard
from friendhelp.errors import StoreError
from friendhelp.logging import format_log_context, logger, truncate_log_text
from friendhelp.models import ChatMessage, DayAnalysis, DayEntry, new_id, utc_now

OPENING_MESSAGE = "I'm listening. How was your day?"
ERROR_APOLOGY = "There was a small error, but I am still here. Shall we finish?"
INPUT_PLACEHOLDER = "Talk to me..."
FINALIZING_PLACEHOLDER = "Analyzing your day..."


class CheckInState(str, Enum):
    OPENING = "opening"
    GATHERING = "gathering"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


_OPEN_STATES = (CheckInState.OPENING, CheckInState.GATHERING)


class CheckInController:
    """State machine for one check-in conversation."""

    def __init__(self, context: AppContext, follow_up_limit: int | None = None) -> None:
        self.context = context
        if follow_up_limit is None:
            follow_up_limit = settings.CHECKIN_FOLLOW_UP_LIMIT
        self.follow_up_limit = follow_up_limit
        self.messages: list[ChatMessage] = [ChatMessage(role="assistant", content=OPENING_MESSAGE)]
        self.state = CheckInState.OPENING
        self.follow_up_count = 0
        self.errored = False
        self.entry: DayEntry | None = None
        self._guard = TurnGuard()

    # ------------------------------------------------------------------
    # View state
    # ------------------------------------------------------------------

    @property
    def awaiting_response(self) -> bool:
        return self._guard.busy

    @property
    def can_finalize(self) -> bool:
        """Manual finish is offered once at least one follow-up was asked."""
        return (
            self.follow_up_count >= 1
            and self.state in _OPEN_STATES
            and not self._guard.busy
        )

    @property
    def progress(self) -> list[bool]:
        return [self.follow_up_count >= i for i in range(self.follow_up_limit + 1)]

    @property
    def placeholder(self) -> str:
        if self.state is CheckInState.FINALIZING:
            return FINALIZING_PLACEHOLDER
        return INPUT_PLACEHOLDER

    @property
    def user_messages(self) -> list[str]:
        return [m.content for m in self.messages if m.role == "user"]

    def _log(self, kind: str, **fields: object) -> str:
        return format_log_context(
            kind,
            component="checkin",
            user=self.context.user_id,
            state=self.state.value,
            follow_ups=self.follow_up_count,
            **fields,
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def submit(self, text: str) -> DayEntry | None:
        """Accept one user answer.

        Returns the finished DayEntry when this answer exhausted the
        follow-up budget and finalization succeeded, else None. Input is
        ignored while a request is in flight or the conversation is closed.
        """
        text = (text or "").strip()
        if not text or self.state not in _OPEN_STATES or self._guard.busy:
            return None

        self.messages.append(ChatMessage(role="user", content=text))
        if self.state is CheckInState.OPENING:
            self.state = CheckInState.GATHERING

        if self.follow_up_count >= self.follow_up_limit:
            return await self._finalize()

        history = [m.content for m in self.messages]
        async with self._guard.turn():
            try:
                question = await self.context.analysis.request_follow_up(text, history)
            except Exception as e:
                if self.state is CheckInState.CANCELLED:
                    return None
                logger.warning(self._log("follow_up_failed", error=type(e).__name__))
                self.messages.append(ChatMessage(role="assistant", content=ERROR_APOLOGY))
                self.errored = True
                return None

        if self.state is CheckInState.CANCELLED:
            logger.debug(self._log("late_follow_up_discarded"))
            return None

        self.messages.append(ChatMessage(role="assistant", content=question))
        self.follow_up_count += 1
        self.errored = False
        logger.info(self._log("follow_up_asked", preview=truncate_log_text(question, 40)))
        return None

    async def finalize(self) -> DayEntry | None:
        """Finish early with whatever has been said so far."""
        if not self.can_finalize:
            return None
        return await self._finalize()

    def cancel(self) -> None:
        """Abandon the conversation. Any in-flight response is dropped."""
        if self.state in (CheckInState.COMPLETE, CheckInState.CANCELLED):
            return
        logger.info(self._log("checkin_cancelled"))
        self.state = CheckInState.CANCELLED
        self.messages = []
        self.follow_up_count = 0
        self.errored = False

    async def _finalize(self) -> DayEntry | None:
        previous_state = self.state
        self.state = CheckInState.FINALIZING

        answers = self.user_messages
        primary, follow_ups = answers[0], answers[1:]

        try:
            past_entries = self.context.entry_store.load_entries()
        except StoreError as e:
            logger.warning(self._log("history_unavailable", error=str(e)))
            past_entries = []

        async with self._guard.turn():
            try:
                analysis = await self.context.analysis.request_day_analysis(
                    primary, follow_ups, past_entries
                )
            except Exception as e:
                if self.state is CheckInState.CANCELLED:
                    return None
                logger.error(self._log("finalize_failed", error=type(e).__name__))
                self.state = previous_state
                return None

        if self.state is CheckInState.CANCELLED:
            logger.debug(self._log("late_analysis_discarded"))
            return None

        entry = self._build_entry(primary, follow_ups, analysis)
        try:
            self.context.entry_store.add_entry(entry)
        except StoreError as e:
            logger.warning(self._log("entry_not_saved", entry=entry.id, error=str(e)))

        self.entry = entry
        self.state = CheckInState.COMPLETE
        logger.info(self._log("checkin_complete", entry=entry.id, score=entry.happiness_score))
        return entry

    @staticmethod
    def _build_entry(primary: str, follow_ups: list[str], analysis: DayAnalysis) -> DayEntry:
        return DayEntry(
            id=new_id(),
            date=utc_now(),
            content=primary,
            follow_ups=follow_ups,
            analysis=analysis,
        )
