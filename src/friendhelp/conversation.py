"""Single in-flight request discipline shared by the conversational surfaces."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator


class TurnGuard:
    """Busy flag guarding one outstanding request/response cycle.

    Controllers run on a single event loop, so a plain flag is enough:
    check ``busy`` (or call ``try_acquire``) before accepting input.
    """

    def __init__(self) -> None:
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def try_acquire(self) -> bool:
        if self._busy:
            return False
        self._busy = True
        return True

    def release(self) -> None:
        self._busy = False

    @asynccontextmanager
    async def turn(self) -> AsyncIterator[None]:
        """Hold the guard for the duration of one request.

        Raises:
            RuntimeError: If a request is already in flight.
        """
        if not self.try_acquire():
            raise RuntimeError("A request is already in flight")
        try:
            yield
        finally:
            self.release()
