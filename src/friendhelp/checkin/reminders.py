"""Whether today's check-in is still owed."""

from __future__ import annotations

from datetime import date
from typing import Iterable

from friendhelp.models import DayEntry, utc_now


def find_today_entry(entries: Iterable[DayEntry], today: date | None = None) -> DayEntry | None:
    """Return the first entry (store order) recorded on ``today`` (UTC)."""
    today = today or utc_now().date()
    for entry in entries:
        if entry.day == today:
            return entry
    return None


def needs_check_in(entries: Iterable[DayEntry], today: date | None = None) -> bool:
    return find_today_entry(entries, today) is None


def should_remind(
    notifications_enabled: bool,
    logged_in: bool,
    entries: Iterable[DayEntry],
    today: date | None = None,
) -> bool:
    """Decide whether the external scheduler should nudge the user."""
    if not (notifications_enabled and logged_in):
        return False
    return needs_check_in(entries, today)
