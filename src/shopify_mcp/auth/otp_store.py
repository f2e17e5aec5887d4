"""In-memory store of pending OTP codes, keyed by email."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingOtp:
    """An outstanding verification challenge for one email address."""

    email: str
    code: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class OTPStore:
    """Maps ``email → PendingOtp``.

    At most one code is pending per email; ``put`` overwrites.  Expired
    entries are never purged here, the verifier checks expiry on access.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._store: dict[str, PendingOtp] = {}

    def put(self, email: str, code: str, ttl_seconds: int) -> PendingOtp:
        """Store *code* for *email*, valid for *ttl_seconds* from now."""
        pending = PendingOtp(email=email, code=code, expires_at=self._clock() + ttl_seconds)
        if email in self._store:
            logger.debug("Replacing pending OTP for %s", email)
        self._store[email] = pending
        return pending

    def get(self, email: str) -> PendingOtp | None:
        """Return the pending code for *email*, expired or not."""
        return self._store.get(email)

    def remove(self, email: str) -> None:
        """Drop the pending code for *email* (no-op if absent)."""
        self._store.pop(email, None)
