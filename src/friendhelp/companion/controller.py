"""Open-ended companion chat across resumable sessions."""

from __future__ import annotations

from friendhelp.config import settings
from friendhelp.context import AppContext
from friendhelp.conversation import TurnGuard
from friendhelp.errors import StoreError
from friendhelp.logging import format_log_context, logger
from friendhelp.models import ChatMessage, ChatSession, new_id, now_ms

BOOTSTRAP_TITLE = "First Conversation"
BOOTSTRAP_MESSAGE = "I am Friend&Help. I am here to listen. How are things on your end?"
NEW_SESSION_TITLE = "New Session"
NEW_SESSION_MESSAGE = "Starting a fresh reflection. What's on your mind?"

# A session names itself after the first user message while it is this short.
_RENAME_BELOW = 3


def session_title(text: str, length: int | None = None) -> str:
    if length is None:
        length = settings.SESSION_TITLE_LENGTH
    return f"{text[:length]}..."


class CompanionController:
    """Owns the session list and the per-session request guards.

    Sessions are kept newest-created first. Every change to the list is
    written back to the SessionStore; the typing indicator is not.
    """

    def __init__(self, context: AppContext) -> None:
        self.context = context
        self.sessions: list[ChatSession] = []
        self._guards: dict[str, TurnGuard] = {}
        self._persist = True

    def _log(self, kind: str, **fields: object) -> str:
        return format_log_context(kind, component="companion", user=self.context.user_id, **fields)

    def _guard(self, session_id: str) -> TurnGuard:
        return self._guards.setdefault(session_id, TurnGuard())

    def _save(self) -> None:
        if not self._persist:
            return
        try:
            self.context.session_store.save_sessions(self.sessions)
        except StoreError as e:
            logger.warning(self._log("sessions_not_saved", error=str(e)))

    def _find(self, session_id: str | None) -> ChatSession | None:
        if session_id is None:
            return None
        for session in self.sessions:
            if session.id == session_id:
                return session
        return None

    # ------------------------------------------------------------------
    # Session list
    # ------------------------------------------------------------------

    def bootstrap(self) -> ChatSession:
        """Load sessions, creating the first one if the store is empty."""
        try:
            self.sessions = self.context.session_store.load_sessions()
        except StoreError as e:
            # Never overwrite data we could not read.
            logger.warning(self._log("sessions_unavailable", error=str(e)))
            self._persist = False
            self.sessions = []

        if not self.sessions:
            session = ChatSession(
                id=new_id(),
                title=BOOTSTRAP_TITLE,
                messages=[ChatMessage(role="assistant", content=BOOTSTRAP_MESSAGE)],
            )
            self.sessions = [session]
            self._save()
            self.context.active_session_id = session.id
            logger.info(self._log("session_bootstrapped", session=session.id))
            return session

        if self._find(self.context.active_session_id) is None:
            self.context.active_session_id = self.sessions[0].id
        return self.active_session

    def create_session(self) -> ChatSession:
        session = ChatSession(
            id=new_id(),
            title=NEW_SESSION_TITLE,
            messages=[ChatMessage(role="assistant", content=NEW_SESSION_MESSAGE)],
        )
        self.sessions.insert(0, session)
        self._save()
        self.context.active_session_id = session.id
        logger.info(self._log("session_created", session=session.id, count=len(self.sessions)))
        return session

    def select(self, session_id: str | None) -> ChatSession | None:
        """Open a session, or pass None to show the archive."""
        self.context.active_session_id = session_id
        return self.active_session

    def archive(self) -> list[ChatSession]:
        """Sessions for the archive listing, in stored order."""
        return list(self.sessions)

    @property
    def active_session(self) -> ChatSession | None:
        """The selected session, or the most recently updated one if the
        selected id no longer exists. None while the archive is shown."""
        if self.context.active_session_id is None or not self.sessions:
            return None
        session = self._find(self.context.active_session_id)
        if session is None:
            session = max(self.sessions, key=lambda s: s.updated_at)
        return session

    def is_typing(self, session_id: str | None = None) -> bool:
        if session_id is None:
            active = self.active_session
            session_id = active.id if active else None
        if session_id is None or session_id not in self._guards:
            return False
        return self._guards[session_id].busy

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    async def send(self, text: str) -> ChatMessage | None:
        """Send one message in the active session.

        Returns the assistant reply, or None when the input was rejected or
        the request failed. On failure the user's message stays in place.
        """
        text = (text or "").strip()
        session = self.active_session
        if not text or session is None:
            return None

        guard = self._guard(session.id)
        if guard.busy:
            return None

        history = list(session.messages)
        should_rename = len(history) < _RENAME_BELOW
        session.append(ChatMessage(role="user", content=text))
        self._save()

        async with guard.turn():
            try:
                reply_text = await self.context.analysis.request_companion_reply(text, history)
            except Exception as e:
                logger.warning(self._log("reply_failed", session=session.id, error=type(e).__name__))
                return None

        reply = ChatMessage(role="assistant", content=reply_text, timestamp=now_ms())
        session.append(reply)
        if should_rename:
            session.title = session_title(text)
        self._save()
        logger.info(self._log("reply_received", session=session.id, messages=len(session.messages)))
        return reply
