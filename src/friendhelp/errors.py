"""Exception types shared across the reflection pipeline."""


class FriendHelpError(Exception):
    """Base class for recoverable pipeline failures."""


class AnalysisServiceError(FriendHelpError):
    """The language model call failed (network, quota, provider error)."""


class MalformedAnalysisError(AnalysisServiceError):
    """The model answered, but its structured day analysis failed validation.

    Subclasses AnalysisServiceError so callers recover from both the same way.
    """

    def __init__(self, message: str, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw = raw


class StoreError(FriendHelpError):
    """Reading or writing a persisted collection failed."""
