"""Out-of-band notifications (email) sent by the authentication flows.

Delivery failures never fail the request that triggered them: senders log the
problem and return False.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

import httpx

from zap_auth.core.settings import settings

# Configure logger for this module
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """A rendered message ready to hand to a sender."""

    subject: str
    text: str


def otp_notification(username: str, otp: str) -> Notification:
    return Notification(
        subject="Verify your account",
        text=(
            f"Hi {username},\n\n"
            f"Your verification code is {otp}. It expires in "
            f"{settings.otp_ttl_seconds // 60} minutes.\n"
        ),
    )


def welcome_notification(username: str) -> Notification:
    return Notification(
        subject=f"Welcome to {settings.app_name}",
        text=f"Hi {username},\n\nYour account is verified. Welcome aboard!\n",
    )


class Notifier(Protocol):
    """Anything able to deliver a :class:`Notification` to a recipient."""

    def send(self, recipient: str, notification: Notification) -> bool:
        """Deliver the notification; return False on failure."""


class LoggingNotifier:
    """Notifier used when no email provider is configured."""

    def send(self, recipient: str, notification: Notification) -> bool:
        logger.info(
            "Email delivery disabled; dropping %r for %s",
            notification.subject,
            recipient,
        )
        return True


class ResendNotifier:
    """Send email through the Resend HTTP API."""

    def __init__(
        self,
        api_key: str,
        *,
        sender: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._sender = sender or settings.email_from
        self._client = client or httpx.Client(
            base_url=base_url or settings.resend_base_url,
            timeout=timeout if timeout is not None else settings.notification_timeout_seconds,
        )
        self._headers = {"Authorization": f"Bearer {api_key}"}

    def send(self, recipient: str, notification: Notification) -> bool:
        payload = {
            "from": self._sender,
            "to": [recipient],
            "subject": notification.subject,
            "text": notification.text,
        }
        try:
            response = self._client.post("/emails", json=payload, headers=self._headers)
        except httpx.HTTPError as e:
            logger.warning("Email %r to %s failed: %s", notification.subject, recipient, e)
            return False

        if response.is_error:
            logger.warning(
                "Email %r to %s rejected with status %d",
                notification.subject,
                recipient,
                response.status_code,
            )
            return False
        return True

    def close(self) -> None:
        self._client.close()


@lru_cache(maxsize=1)
def get_notifier() -> Notifier:
    """Return the configured notifier (Resend if an API key is set)."""
    if settings.resend_api_key:
        return ResendNotifier(settings.resend_api_key)
    logger.warning("RESEND_API_KEY is not set; emails will only be logged")
    return LoggingNotifier()
