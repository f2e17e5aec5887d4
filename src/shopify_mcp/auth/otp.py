"""Email OTP flow — issue a code, verify it, mint a session token."""

from __future__ import annotations

import logging
import random
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import aiosmtplib

from shopify_mcp.auth.errors import InvalidOrExpiredOTP
from shopify_mcp.auth.otp_store import OTPStore
from shopify_mcp.auth.session_store import SessionStore
from shopify_mcp.config import settings
from shopify_mcp.services.email_service import EmailService
from shopify_mcp.services.shopify_client import ShopifyClient, gid_to_id

logger = logging.getLogger(__name__)

RECENT_ORDERS_LIMIT = 10
NO_CUSTOMER_MESSAGE = "No customer found for this email"


@dataclass
class OTPIssueResult:
    """Outcome of an OTP request.  ``success`` is False when the email could not be sent."""

    success: bool
    message: str


@dataclass
class VerificationResult:
    """Value object returned after a successful verification.

    ``token`` is always set.  The remaining fields are filled in on a
    best-effort basis from the store's customer data.
    """

    token: str
    first_name: str | None = None
    orders: list[dict] | None = None
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Tool payload: ``token`` plus whichever optional fields are set."""
        result: dict[str, Any] = {"token": self.token}
        if self.first_name is not None:
            result["firstName"] = self.first_name
        if self.orders is not None:
            result["orders"] = self.orders
        if self.message is not None:
            result["message"] = self.message
        return result


def generate_code() -> str:
    """Generate a 6-digit OTP code (never starts with zero)."""
    return str(random.randint(100000, 999999))


class OTPIssuer:
    """Generates a code, stores it, and emails it to the caller."""

    def __init__(
        self,
        otp_store: OTPStore,
        email_service: EmailService,
        ttl_seconds: int | None = None,
    ) -> None:
        self._store = otp_store
        self._email = email_service
        self._ttl = ttl_seconds if ttl_seconds is not None else settings.otp_ttl_seconds

    async def issue(self, email: str) -> OTPIssueResult:
        """Issue a fresh OTP for *email*, replacing any pending one."""
        code = generate_code()
        self._store.put(email, code, self._ttl)
        logger.debug("OTP generated for %s: %s", email, code)

        try:
            await self._email.send_otp(email, code)
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send OTP email to %s: %s", email, exc)
            return OTPIssueResult(
                success=False, message=f"Failed to send verification code: {exc}"
            )

        logger.info("OTP sent to %s", email)
        return OTPIssueResult(success=True, message=f"Verification code sent to {email}")


class OTPVerifier:
    """Checks a submitted code and, on success, opens a session.

    Verification and enrichment are separate phases: once the code has been
    accepted the token is returned no matter what happens while fetching
    the customer's orders.
    """

    def __init__(
        self,
        otp_store: OTPStore,
        session_store: SessionStore,
        shopify: ShopifyClient,
        clock: Callable[[], float] = time.time,
        token_factory: Callable[[], str] = lambda: secrets.token_urlsafe(32),
    ) -> None:
        self._otp_store = otp_store
        self._sessions = session_store
        self._shopify = shopify
        self._clock = clock
        self._token_factory = token_factory

    async def verify(self, email: str, code: str) -> VerificationResult:
        """Validate *code* for *email*.

        Raises ``InvalidOrExpiredOTP`` for an unknown email, a wrong code, or
        an expired code.
        """
        pending = self._otp_store.get(email)
        if pending is None or pending.code != code or pending.is_expired(self._clock()):
            logger.info("OTP verification failed for %s", email)
            raise InvalidOrExpiredOTP()

        # Codes are single-use
        self._otp_store.remove(email)
        token = self._token_factory()
        self._sessions.put(token, email)
        logger.info("OTP verified for %s", email)

        result = VerificationResult(token=token)
        await self._enrich(email, result)
        return result

    async def _enrich(self, email: str, result: VerificationResult) -> None:
        """Attach the customer's first name and recent orders, if available."""
        try:
            customers = await self._shopify.find_customers(f"email:{email}", 1)
            if not customers:
                result.message = NO_CUSTOMER_MESSAGE
                return
            customer = customers[0]
            result.first_name = customer.first_name
            result.orders = await self._shopify.get_customer_orders(
                gid_to_id(customer.id), RECENT_ORDERS_LIMIT
            )
        except Exception as exc:
            # Verification already succeeded; only the enrichment is lost
            logger.exception("Order lookup after verification failed for %s: %s", email, exc)
            result.message = str(exc)
