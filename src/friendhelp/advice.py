"""Advice from the most recent reflection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from friendhelp.models import DayEntry

EMPTY_ADVICE_MESSAGE = "Complete a sync for advice."


@dataclass(frozen=True)
class AdviceView:
    items: list[tuple[int, str]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.items


def present_advice(entries: Sequence[DayEntry]) -> AdviceView:
    """Advice of the newest entry (store order), ranked from 1."""
    if not entries:
        return AdviceView()
    return AdviceView(items=list(enumerate(entries[0].analysis.advice, start=1)))
