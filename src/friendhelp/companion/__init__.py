"""Companion chat: open-ended supportive conversation in resumable sessions."""

from friendhelp.companion.controller import (
    BOOTSTRAP_MESSAGE,
    BOOTSTRAP_TITLE,
    NEW_SESSION_MESSAGE,
    NEW_SESSION_TITLE,
    CompanionController,
    session_title,
)

__all__ = [
    "CompanionController",
    "session_title",
    "BOOTSTRAP_TITLE",
    "BOOTSTRAP_MESSAGE",
    "NEW_SESSION_TITLE",
    "NEW_SESSION_MESSAGE",
]
