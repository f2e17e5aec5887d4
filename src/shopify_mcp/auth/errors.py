"""Errors raised by the OTP / session flow.

Each error carries a short ``message`` that is safe to show to the caller.
"""


class AuthError(Exception):
    """Base class for all authentication errors."""

    message = "Authentication failed"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidOrExpiredOTP(AuthError):
    """No pending code, wrong code, or the code has expired."""

    message = "Invalid or expired code"


class Unauthorized(AuthError):
    """Session token is missing, unknown or no longer fresh.

    ``reason`` is kept for logging only; the caller always sees the same message.
    """

    message = "Unauthorized"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__()
