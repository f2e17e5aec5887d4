"""Session gate — token check in front of protected operations."""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from shopify_mcp.auth.errors import Unauthorized
from shopify_mcp.auth.session_store import Session, SessionStore
from shopify_mcp.config import settings

logger = logging.getLogger(__name__)


class SessionGate:
    """Validates bearer tokens against the session store.

    Expired sessions are evicted when they are seen; there is no background
    sweep.
    """

    def __init__(
        self,
        session_store: SessionStore,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sessions = session_store
        self._ttl = ttl_seconds if ttl_seconds is not None else settings.session_ttl_seconds
        self._clock = clock

    def check(self, token: str | None) -> Session:
        """Return the session for *token* or raise ``Unauthorized``."""
        if not token:
            raise Unauthorized("missing")

        session = self._sessions.get(token)
        if session is None:
            logger.info("Rejected unknown session token")
            raise Unauthorized("unknown")

        if self._clock() - session.created_at > self._ttl:
            self._sessions.remove(token)
            logger.info("Session for %s expired", session.email)
            raise Unauthorized("expired")

        return session

    def protect(
        self, operation: Callable[..., Awaitable[Any]]
    ) -> Callable[..., Awaitable[Any]]:
        """Wrap *operation* so it requires a ``token`` keyword argument.

        The token is removed before the call is forwarded.  A rejected call
        returns ``{"error": "Unauthorized"}`` without reaching *operation*.
        """

        @functools.wraps(operation)
        async def guarded(**arguments: Any) -> Any:
            token = arguments.pop("token", None)
            try:
                self.check(token)
            except Unauthorized as exc:
                logger.debug("Unauthorized call to %s (%s)", guarded.__name__, exc.reason)
                return {"error": exc.message}
            return await operation(**arguments)

        return guarded
