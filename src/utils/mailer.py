"""Verification email delivery.

Two backends are available, selected by ``EMAIL_BACKEND``: ``mock`` writes the
verification link to the log, ``smtp`` sends an HTML email through the
configured SMTP server.
"""

import html
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from config import (
    APP_URL,
    EMAIL_BACKEND,
    EMAIL_HOST,
    EMAIL_PASS,
    EMAIL_PORT,
    EMAIL_USER,
    VERIFICATION_TOKEN_TTL_HOURS,
)

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = "Verify your email address - Query Quest"

_mailer_instance: Optional["Mailer"] = None


def build_verification_url(token: str) -> str:
    return f"{APP_URL}/verify-email?token={token}"


def _verification_html(name: str, url: str) -> str:
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #2563eb;">Welcome to Query Quest!</h2>
  <p>Hi {html.escape(name)},</p>
  <p>Thank you for registering with Query Quest. To complete your registration,
  please verify your email address by opening the link below:</p>
  <p><a href="{url}">Verify Email Address</a></p>
  <p style="word-break: break-all; color: #6b7280;">{url}</p>
  <p>This link will expire in {VERIFICATION_TOKEN_TTL_HOURS} hours.</p>
  <p>If you didn't create an account with Query Quest, you can safely ignore this email.</p>
</div>
""".strip()


class Mailer:
    """Base mailer. Subclasses deliver the message."""

    def send_verification_email(self, email: str, name: str, token: str) -> None:
        """Send the verification link for a new account.

        Args:
            email: Recipient address.
            name: Recipient display name.
            token: Verification token embedded in the link.

        Raises:
            Exception: Any delivery failure is propagated to the caller.
        """
        raise NotImplementedError


class MockMailer(Mailer):
    """Logs the verification link instead of sending it."""

    def send_verification_email(self, email: str, name: str, token: str) -> None:
        logger.info(
            "Mock verification email to %s (%s): %s",
            email,
            name,
            build_verification_url(token),
        )


class SmtpMailer(Mailer):
    """Sends verification emails over SMTP with STARTTLS."""

    def __init__(
        self,
        host: str = EMAIL_HOST,
        port: int = EMAIL_PORT,
        user: str = EMAIL_USER,
        password: str = EMAIL_PASS,
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password

    def send_verification_email(self, email: str, name: str, token: str) -> None:
        message = EmailMessage()
        message["Subject"] = VERIFICATION_SUBJECT
        message["From"] = self.user
        message["To"] = email
        url = build_verification_url(token)
        message.set_content(f"Hi {name},\n\nVerify your email address: {url}\n")
        message.add_alternative(_verification_html(name, url), subtype="html")

        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(message)
        logger.info("Sent verification email to %s", email)


def get_mailer() -> Mailer:
    """Return the process-wide mailer selected by configuration."""
    global _mailer_instance
    if _mailer_instance is None:
        if EMAIL_BACKEND == "smtp":
            _mailer_instance = SmtpMailer()
        else:
            _mailer_instance = MockMailer()
        logger.info("Mailer initialized: %s", type(_mailer_instance).__name__)
    return _mailer_instance
