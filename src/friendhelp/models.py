"""Data model for reflections and companion chats.

Attributes are snake_case in Python and camelCase on the wire, so stored
collections keep the same shape the journal has always used.
"""

from __future__ import annotations

import threading
import time
from datetime import date, datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Role = Literal["user", "assistant"]

_id_lock = threading.Lock()
_last_id = 0


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Return a millisecond timestamp id, unique within this process."""
    global _last_id
    with _id_lock:
        candidate = now_ms()
        if candidate <= _last_id:
            candidate = _last_id + 1
        _last_id = candidate
        return str(candidate)


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict:
        """Serialize with camelCase keys and JSON-safe values."""
        return self.model_dump(mode="json", by_alias=True)


class DayAnalysis(_WireModel):
    """Structured result of analysing one day's check-in."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    summary: str
    happiness_score: int = Field(alias="happinessScore", ge=0, le=100)
    pattern_insight: str | None = Field(default=None, alias="patternInsight")
    advice: list[str]
    detected_emotions: list[str] = Field(alias="detectedEmotions")

    @field_validator("happiness_score", mode="before")
    @classmethod
    def _integral_score(cls, v: object) -> int:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("happinessScore must be a number")
        if isinstance(v, float) and not v.is_integer():
            raise ValueError("happinessScore must be a whole number")
        return int(v)

    @field_validator("detected_emotions")
    @classmethod
    def _unique_emotions(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))


class DayEntry(_WireModel):
    """One finished daily reflection. Never modified after creation."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str
    date: datetime
    content: str
    follow_ups: list[str] = Field(default_factory=list, alias="followUps")
    analysis: DayAnalysis

    @field_validator("date")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @property
    def day(self) -> date:
        """UTC calendar day of the entry."""
        return self.date.date()

    @property
    def happiness_score(self) -> int:
        return self.analysis.happiness_score


class ChatMessage(_WireModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    role: Role
    content: str
    timestamp: int = Field(default_factory=now_ms)


class ChatSession(_WireModel):
    """A resumable companion conversation."""

    id: str
    title: str
    messages: list[ChatMessage] = Field(default_factory=list)
    updated_at: int = Field(default_factory=now_ms, alias="updatedAt")

    def append(self, message: ChatMessage) -> None:
        self.messages.append(message)
        self.updated_at = max(now_ms(), self.updated_at)
