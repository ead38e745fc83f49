"""Daily check-in feature.

A short guided reflection: the user describes their day, answers up to
two follow-up questions, and the conversation is analysed into a DayEntry.
"""

from friendhelp.checkin.controller import (
    ERROR_APOLOGY,
    FINALIZING_PLACEHOLDER,
    INPUT_PLACEHOLDER,
    OPENING_MESSAGE,
    CheckInController,
    CheckInState,
)
from friendhelp.checkin.reminders import find_today_entry, needs_check_in, should_remind

__all__ = [
    # Controller
    "CheckInController",
    "CheckInState",
    "OPENING_MESSAGE",
    "ERROR_APOLOGY",
    "INPUT_PLACEHOLDER",
    "FINALIZING_PLACEHOLDER",
    # Reminders
    "find_today_entry",
    "needs_check_in",
    "should_remind",
]
