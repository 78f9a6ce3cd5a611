"""OTP delivery channels.

The state machine hands each freshly generated code to a notifier and does
not care whether delivery succeeds.  Pick one with ``settings.notifier``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from email.message import EmailMessage

import aiosmtplib
import httpx

from otp_auth.config import Settings, settings

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Abstract base class for all delivery channels."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Channel name (used in logs)."""

    @abstractmethod
    async def deliver(self, identifier: str, code: str) -> None:
        """Send *code* to whoever owns *identifier*.

        Parameters
        ----------
        identifier:
            The email address or phone number the code was requested for.
        code:
            The one-time code to deliver.
        """


class LogNotifier(Notifier):
    """Development channel: the code only appears in the server log."""

    @property
    def name(self) -> str:
        return "log"

    async def deliver(self, identifier: str, code: str) -> None:
        logger.info("OTP for %s: %s", identifier, code)


class EmailNotifier(Notifier):
    """Sends the code by email using the configured SMTP server."""

    def __init__(self, config: Settings | None = None) -> None:
        self._config = config or settings

    @property
    def name(self) -> str:
        return "email"

    async def deliver(self, identifier: str, code: str) -> None:
        cfg = self._config
        minutes = max(1, cfg.otp_ttl_seconds // 60)

        msg = EmailMessage()
        msg["Subject"] = f"Your {cfg.app_name} verification code"
        msg["From"] = cfg.email_from
        msg["To"] = identifier
        msg.set_content(
            f"Your verification code is {code}.\n\n"
            f"It expires in {minutes} minutes. If you did not request it, "
            "you can ignore this email.\n\n"
            f"The {cfg.app_name} Team"
        )

        logger.info("Sending OTP email to %s", identifier)

        await aiosmtplib.send(
            msg,
            hostname=cfg.smtp_host,
            port=cfg.smtp_port,
            username=cfg.smtp_username or None,
            password=cfg.smtp_password or None,
            start_tls=True,
        )

        logger.info("OTP email sent to %s", identifier)


class WhatsAppNotifier(Notifier):
    """Sends the code as a WhatsApp text message via the Cloud API."""

    GRAPH_URL = "https://graph.facebook.com/v21.0"

    def __init__(self, config: Settings | None = None) -> None:
        self._config = config or settings

    @property
    def name(self) -> str:
        return "whatsapp"

    async def deliver(self, identifier: str, code: str) -> None:
        cfg = self._config
        if not cfg.whatsapp_api_token:
            logger.warning("WHATSAPP_API_TOKEN not set — OTP for %s logged only: %s", identifier, code)
            return

        url = f"{self.GRAPH_URL}/{cfg.whatsapp_phone_number_id}/messages"
        headers = {
            "Authorization": f"Bearer {cfg.whatsapp_api_token}",
            "Content-Type": "application/json",
        }
        payload = {
            "messaging_product": "whatsapp",
            "to": identifier,
            "type": "text",
            "text": {"body": f"Your {cfg.app_name} verification code is {code}"},
        }

        async with httpx.AsyncClient() as client:
            resp = await client.post(url, json=payload, headers=headers)

        if resp.status_code == 200:
            logger.info("OTP sent to %s via WhatsApp", identifier)
        else:
            logger.error(
                "Failed to send OTP to %s: %s %s", identifier, resp.status_code, resp.text
            )


def build_notifier(config: Settings | None = None) -> Notifier:
    """Instantiate the channel selected by ``config.notifier``."""
    cfg = config or settings
    if cfg.notifier == "email":
        return EmailNotifier(cfg)
    if cfg.notifier == "whatsapp":
        return WhatsAppNotifier(cfg)
    return LogNotifier()
