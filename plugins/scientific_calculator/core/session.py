"""In-memory calculator sessions, one evaluator per client."""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable

from .engine import ExpressionEvaluator

_SESSION_TTL = timedelta(minutes=30)


@dataclass(slots=True)
class CalculatorSession:
    """An evaluator plus the lock that serialises access to its registers."""

    evaluator: ExpressionEvaluator
    session_id: str = ""
    lock: threading.Lock = field(default_factory=threading.Lock)
    last_accessed: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def touch(self) -> None:
        self.last_accessed = datetime.now(timezone.utc)


class SessionStore:
    """Thread-safe session registry with TTL purging."""

    def __init__(self, ttl: timedelta = _SESSION_TTL) -> None:
        self._items: dict[str, CalculatorSession] = {}
        self._lock = threading.Lock()
        self._ttl = ttl

    def _purge_locked(self) -> None:
        now = datetime.now(timezone.utc)
        expired = [
            session_id
            for session_id, session in self._items.items()
            if now - session.last_accessed > self._ttl
        ]
        for session_id in expired:
            self._items.pop(session_id, None)

    def get(self, session_id: str | None) -> CalculatorSession | None:
        """Return the live session for ``session_id`` without creating one."""

        if not session_id:
            return None
        with self._lock:
            self._purge_locked()
            session = self._items.get(session_id)
            if session is not None:
                session.touch()
            return session

    def get_or_create(
        self,
        session_id: str | None,
        factory: Callable[[], ExpressionEvaluator],
    ) -> CalculatorSession:
        """Return the session for ``session_id``, starting a fresh one if it is unknown."""

        session = self.get(session_id)
        if session is not None:
            return session
        candidate = CalculatorSession(evaluator=factory(), session_id=session_id or uuid.uuid4().hex)
        with self._lock:
            session = self._items.setdefault(candidate.session_id, candidate)
            session.touch()
            return session

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._items.pop(session_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


__all__ = ["CalculatorSession", "SessionStore"]
