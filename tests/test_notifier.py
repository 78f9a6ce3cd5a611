"""Tests for the OTP delivery channels."""

from __future__ import annotations

import logging

import httpx
import pytest
from unittest.mock import AsyncMock, patch

from otp_auth.config import Settings
from otp_auth.services.notifier import (
    EmailNotifier,
    LogNotifier,
    WhatsAppNotifier,
    build_notifier,
)


@pytest.mark.asyncio
async def test_log_notifier_logs_code(caplog):
    with caplog.at_level(logging.INFO, logger="otp_auth.services.notifier"):
        await LogNotifier().deliver("a@x.com", "123456")
    assert "a@x.com" in caplog.text
    assert "123456" in caplog.text


@pytest.mark.asyncio
async def test_email_notifier_sends_code():
    cfg = Settings(smtp_host="smtp.test", smtp_port=2525, email_from="otp@test")
    with patch("otp_auth.services.notifier.aiosmtplib.send", new=AsyncMock()) as send:
        await EmailNotifier(cfg).deliver("a@x.com", "123456")

    send.assert_awaited_once()
    msg = send.await_args.args[0]
    assert msg["To"] == "a@x.com"
    assert msg["From"] == "otp@test"
    assert "123456" in msg.get_content()
    assert send.await_args.kwargs["hostname"] == "smtp.test"
    assert send.await_args.kwargs["port"] == 2525


@pytest.mark.asyncio
async def test_whatsapp_notifier_without_token_only_logs():
    cfg = Settings(whatsapp_api_token="")
    with patch.object(httpx.AsyncClient, "post", new=AsyncMock()) as post:
        await WhatsAppNotifier(cfg).deliver("+15551234567", "123456")
    post.assert_not_called()


@pytest.mark.asyncio
async def test_whatsapp_notifier_posts_message():
    cfg = Settings(whatsapp_api_token="secret", whatsapp_phone_number_id="42")
    with patch.object(
        httpx.AsyncClient, "post", new=AsyncMock(return_value=httpx.Response(200))
    ) as post:
        await WhatsAppNotifier(cfg).deliver("+15551234567", "123456")

    post.assert_awaited_once()
    url = post.await_args.args[0]
    payload = post.await_args.kwargs["json"]
    assert url.endswith("/42/messages")
    assert payload["to"] == "+15551234567"
    assert "123456" in payload["text"]["body"]
    assert post.await_args.kwargs["headers"]["Authorization"] == "Bearer secret"


@pytest.mark.parametrize(
    "channel, expected",
    [("log", LogNotifier), ("email", EmailNotifier), ("whatsapp", WhatsAppNotifier)],
)
def test_build_notifier(channel, expected):
    assert isinstance(build_notifier(Settings(notifier=channel)), expected)
