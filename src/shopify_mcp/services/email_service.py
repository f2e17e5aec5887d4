"""Email service — sends OTP emails via async SMTP."""

from __future__ import annotations

import logging
from email.message import EmailMessage

import aiosmtplib

from shopify_mcp.config import settings

logger = logging.getLogger(__name__)

OTP_SUBJECT = "Your verification code"


class EmailService:
    """Sends transactional emails using the configured SMTP server."""

    def __init__(self, from_address: str | None = None) -> None:
        self._from_address = from_address or settings.email_from

    async def send(
        self, from_address: str, to_address: str, subject: str, html_body: str
    ) -> None:
        """Send an HTML email.

        Raises ``aiosmtplib.SMTPException`` (or ``OSError`` for connection
        problems) if the message could not be delivered to the SMTP server.
        """
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = from_address
        msg["To"] = to_address
        msg.set_content("This message requires an HTML capable email client.")
        msg.add_alternative(html_body, subtype="html")

        logger.info("Sending email %r to %s", subject, to_address)

        await aiosmtplib.send(
            msg,
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username or None,
            password=settings.smtp_password or None,
            start_tls=True,
        )

        logger.info("Email sent to %s", to_address)

    async def send_otp(self, to_email: str, code: str) -> None:
        """Send a one-time passcode to *to_email*."""
        minutes = settings.otp_ttl_seconds // 60
        html_body = (
            "<html><body>"
            f"<p>Your verification code is <strong>{code}</strong>.</p>"
            f"<p>It expires in {minutes} minutes. "
            "If you did not request it, you can ignore this email.</p>"
            "</body></html>"
        )
        await self.send(self._from_address, to_email, OTP_SUBJECT, html_body)
