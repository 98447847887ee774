"""Server-side record of which user owns which AI engine conversation thread."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from backend.tourplan.errors import ThreadOwnershipError
from backend.tourplan.models.tour_plan import SessionStatus

logger = logging.getLogger(__name__)


@dataclass
class ThreadSession:
    """Conversation thread bound to its owner."""

    thread_id: str
    user_id: str
    created_at: datetime
    last_activity_at: datetime


class ThreadSessionStore:
    """In-memory thread sessions with an inactivity TTL.

    Expired records stay readable as ``expired`` until the next sweep. Writes run a
    sweep at most once per ``sweep_interval_seconds`` (default: the TTL), which
    drops every expired record.
    """

    def __init__(
        self,
        ttl_seconds: int = 86400,
        clock: Callable[[], datetime] | None = None,
        sweep_interval_seconds: int | None = None,
    ) -> None:
        self._ttl = timedelta(seconds=ttl_seconds)
        self._sweep_interval = timedelta(seconds=sweep_interval_seconds or ttl_seconds)
        self._clock = clock or datetime.now
        self._sessions: dict[str, ThreadSession] = {}
        self._last_sweep = self._clock()

    def _is_expired(self, session: ThreadSession, now: datetime) -> bool:
        return now - session.last_activity_at > self._ttl

    def _maybe_sweep(self, now: datetime) -> None:
        if now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        removed = self.purge_expired()
        if removed:
            logger.info(f"Evicted {removed} expired thread sessions")

    def register(self, thread_id: str, user_id: str) -> ThreadSession:
        """Record (or re-record) a thread as owned by ``user_id``."""
        now = self._clock()
        self._maybe_sweep(now)
        session = ThreadSession(
            thread_id=thread_id, user_id=user_id, created_at=now, last_activity_at=now
        )
        self._sessions[thread_id] = session
        return session

    def ensure_owner(self, thread_id: str, user_id: str) -> None:
        """Reject a thread that a different user holds a live session for.

        Raises:
            ThreadOwnershipError: Thread belongs to another user and has not expired
        """
        session = self._sessions.get(thread_id)
        if session is None or self._is_expired(session, self._clock()):
            return

        if session.user_id != user_id:
            logger.warning(f"User {user_id} attempted to use thread {thread_id} of another user")
            raise ThreadOwnershipError("Conversation thread belongs to another user")

    def touch(self, thread_id: str, user_id: str) -> ThreadSession:
        """Mark activity on a thread, registering it if unknown or expired."""
        now = self._clock()
        self._maybe_sweep(now)
        session = self._sessions.get(thread_id)

        if session is None or self._is_expired(session, now) or session.user_id != user_id:
            return self.register(thread_id, user_id)

        session.last_activity_at = now
        return session

    def status(self, thread_id: str, user_id: str) -> SessionStatus:
        """Status of a thread as seen by ``user_id``.

        Threads owned by someone else read as ``unknown``.
        """
        session = self._sessions.get(thread_id)
        if session is None or session.user_id != user_id:
            return SessionStatus.unknown

        if self._is_expired(session, self._clock()):
            return SessionStatus.expired

        return SessionStatus.active

    def purge_expired(self) -> int:
        """Drop expired records; returns how many were removed."""
        now = self._clock()
        expired = [tid for tid, s in self._sessions.items() if self._is_expired(s, now)]
        for thread_id in expired:
            del self._sessions[thread_id]
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)
