"""
Email adapter for the garage-auth backend.

The workflow only depends on the NotificationGateway protocol; the default
implementation talks SMTP using the credentials from Settings.
"""

from __future__ import annotations

from email.mime.text import MIMEText
import logging
import smtplib
import ssl
from typing import Protocol

from .config import Settings
from .errors import DeliveryError

logger = logging.getLogger(__name__)


class NotificationGateway(Protocol):
    def send(self, to_address: str, subject: str, body: str) -> None:
        """Deliver a plain-text message or raise DeliveryError."""


class SmtpNotificationGateway:
    """Send plain-text e-mails through the SMTP server configured in Settings."""

    def __init__(self, settings: Settings, *, timeout: float = 10.0):
        self._settings = settings
        self._timeout = timeout

    def _message(self, to_address: str, subject: str, body: str) -> MIMEText:
        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = self._settings.smtp_from
        msg["To"] = to_address
        return msg

    def send(self, to_address: str, subject: str, body: str) -> None:
        settings = self._settings
        if not settings.smtp_configured:
            logger.error("SMTP is not configured; cannot send %r to %s", subject, to_address)
            raise DeliveryError("Email delivery is not configured")
        msg = self._message(to_address, subject, body)
        port = settings.smtp_port or 465
        try:
            if port == 465:
                context = ssl.create_default_context()
                with smtplib.SMTP_SSL(settings.smtp_host, port, context=context, timeout=self._timeout) as server:
                    server.login(settings.smtp_user, settings.smtp_password)
                    server.sendmail(settings.smtp_from, [to_address], msg.as_string())
            else:
                with smtplib.SMTP(settings.smtp_host, port, timeout=self._timeout) as server:
                    server.ehlo()
                    server.starttls(context=ssl.create_default_context())
                    server.login(settings.smtp_user, settings.smtp_password)
                    server.sendmail(settings.smtp_from, [to_address], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send %r to %s: %s", subject, to_address, exc)
            raise DeliveryError("Could not deliver the notification email") from exc
        logger.info("Sent %r to %s", subject, to_address)
