"""In-memory session bookkeeping.

The registry pairs each live :class:`PaginationSession` with the subscription
listening for clicks on its message, and hands out a per-session lock so
click handlers for one session never interleave.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterator, List, Optional, Protocol

from .errors import StaleSessionError
from .models import PaginationSession

logger = logging.getLogger(__name__)


class Subscription(Protocol):
    """Cancellable handle to a listener bound to one session's message."""

    def cancel(self) -> None:
        ...

    def is_finished(self) -> bool:
        ...


class SessionRegistry:
    """Process-wide table of live sessions and their listeners."""

    def __init__(self) -> None:
        self._sessions: Dict[str, PaginationSession] = {}
        self._subscriptions: Dict[str, Subscription] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._sessions))

    def add(self, session: PaginationSession) -> None:
        self._sessions[session.session_id] = session

    def get(self, session_id: str) -> Optional[PaginationSession]:
        return self._sessions.get(session_id)

    def require(self, session_id: str) -> PaginationSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise StaleSessionError(f"Session {session_id} is no longer active")
        return session

    def sessions(self) -> List[PaginationSession]:
        return list(self._sessions.values())

    def bind(self, session_id: str, subscription: Subscription) -> None:
        previous = self._subscriptions.get(session_id)
        if previous is not None and previous is not subscription:
            logger.debug("Replacing listener for session %s", session_id)
            previous.cancel()
        self._subscriptions[session_id] = subscription

    def subscription(self, session_id: str) -> Optional[Subscription]:
        return self._subscriptions.get(session_id)

    def lock(self, session_id: str) -> asyncio.Lock:
        """Return the lock serializing event handling for ``session_id``.

        Unknown sessions get a throwaway lock so stale clicks do not leave
        entries behind.
        """

        if session_id not in self._sessions:
            return self._locks.get(session_id) or asyncio.Lock()
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def remove(self, session_id: str) -> Optional[PaginationSession]:
        """Forget a session in both tables without touching its listener."""

        self._subscriptions.pop(session_id, None)
        self._locks.pop(session_id, None)
        return self._sessions.pop(session_id, None)

    def cancel(self, session_id: str) -> Optional[PaginationSession]:
        """Forget a session and stop its listener."""

        subscription = self._subscriptions.get(session_id)
        session = self.remove(session_id)
        if subscription is not None:
            subscription.cancel()
        return session

    def clear(self) -> None:
        for session_id in list(self._sessions):
            self.cancel(session_id)
        for subscription in list(self._subscriptions.values()):
            subscription.cancel()
        self._subscriptions.clear()
        self._locks.clear()


__all__ = ["Subscription", "SessionRegistry"]
