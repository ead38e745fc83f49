"""Read-only views over the reflection history."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Sequence

from friendhelp.config import settings
from friendhelp.models import DayEntry, utc_now

HEADLINE_PLACEHOLDER = "Synchronizing with your patterns..."
WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass(frozen=True)
class InsightPoint:
    """One charted day."""

    score: int
    label: str
    day: date
    entry_id: str


@dataclass(frozen=True)
class InsightsView:
    mean: int
    points: list[InsightPoint] = field(default_factory=list)
    slots: list[InsightPoint | None] = field(default_factory=list)
    headline: str = HEADLINE_PLACEHOLDER

    @property
    def has_data(self) -> bool:
        return bool(self.points)


@dataclass(frozen=True)
class TodaySummary:
    """Home card data for today's entry."""

    entry_id: str
    score: int
    summary: str
    emotions: list[str]


def window(entries: Sequence[DayEntry], size: int | None = None) -> list[DayEntry]:
    """The ``size`` most recent entries, oldest first."""
    if size is None:
        size = settings.INSIGHTS_WINDOW_DAYS
    if size <= 0:
        return []
    ordered = sorted(entries, key=lambda e: e.date)
    return ordered[-size:]


def mean_score(entries: Sequence[DayEntry]) -> int:
    """Average score rounded half up; 0 for an empty window."""
    total = sum(e.happiness_score for e in entries)
    return math.floor(total / (len(entries) or 1) + 0.5)


def compute_insights(entries: Sequence[DayEntry], size: int | None = None) -> InsightsView:
    """Build the chart and headline from ``entries`` in store order (newest first)."""
    if size is None:
        size = settings.INSIGHTS_WINDOW_DAYS
    recent = window(entries, size)

    points = [
        InsightPoint(
            score=e.happiness_score,
            label=WEEKDAY_LABELS[e.day.weekday()],
            day=e.day,
            entry_id=e.id,
        )
        for e in recent
    ]
    slots: list[InsightPoint | None] = [*points, *([None] * (size - len(points)))]

    headline = HEADLINE_PLACEHOLDER
    if entries and entries[0].analysis.pattern_insight:
        headline = entries[0].analysis.pattern_insight

    return InsightsView(mean=mean_score(recent), points=points, slots=slots, headline=headline)


def today_summary(entries: Sequence[DayEntry], today: date | None = None) -> TodaySummary | None:
    today = today or utc_now().date()
    for entry in entries:
        if entry.day == today:
            return TodaySummary(
                entry_id=entry.id,
                score=entry.happiness_score,
                summary=entry.analysis.summary,
                emotions=list(entry.analysis.detected_emotions),
            )
    return None
