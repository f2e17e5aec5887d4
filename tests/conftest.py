"""Shared fixtures — fake clock and in-memory stores."""

import pytest

from shopify_mcp.auth.otp_store import OTPStore
from shopify_mcp.auth.session_store import SessionStore


class FakeClock:
    """Manually advanced clock, callable like ``time.time``."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def otp_store(clock):
    return OTPStore(clock=clock)


@pytest.fixture
def session_store(clock):
    return SessionStore(clock=clock)
