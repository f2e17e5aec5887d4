"""Session store — verified emails keyed by opaque bearer token."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """A verified identity with temporary access to order data."""

    token: str
    email: str
    created_at: float


class SessionStore:
    """In-memory session store keyed by the session token.

    Sessions are never mutated after creation.  Nothing is persisted, so a
    process restart drops every session.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._sessions: dict[str, Session] = {}

    def put(self, token: str, email: str) -> Session:
        """Create a session for *email* under the caller-supplied *token*."""
        session = Session(token=token, email=email, created_at=self._clock())
        self._sessions[token] = session
        logger.info("Session created for %s", email)
        return session

    def get(self, token: str) -> Session | None:
        return self._sessions.get(token)

    def remove(self, token: str) -> None:
        """Remove a session (e.g. once it has expired)."""
        self._sessions.pop(token, None)

    @property
    def active_count(self) -> int:
        """Number of stored sessions (useful for monitoring)."""
        return len(self._sessions)
