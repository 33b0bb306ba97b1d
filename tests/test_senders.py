"""Tests for the in-process and HTTP reminder senders."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from barix_billing.reminders import ReminderType
from barix_billing.reminders.sender import (
    SEND_REMINDER_PATH,
    HttpReminderSender,
    LocalReminderSender,
    SendResult,
)
from barix_billing.reminders.service import ReminderSendError


def _response(status_code: int, text: str) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    return response


class TestSendResult:
    def test_skipped_reason(self):
        result = SendResult(ok=True, payload={"ok": True, "skipped": "already_paid"})

        assert result.skipped == "already_paid"

    def test_failures_are_never_skipped(self):
        result = SendResult(ok=False, payload={"skipped": "already_paid"})

        assert result.skipped is None


class TestLocalReminderSender:
    @pytest.mark.asyncio
    async def test_success(self):
        service = AsyncMock()
        service.send_reminder.return_value = {"ok": True}
        sender = LocalReminderSender(service, timeout=1)

        result = await sender.send("inv-1", ReminderType.BEFORE_DUE)

        assert result.ok is True
        assert result.payload == {"ok": True}
        service.send_reminder.assert_awaited_once_with("inv-1", ReminderType.BEFORE_DUE)

    @pytest.mark.asyncio
    async def test_send_error(self):
        service = AsyncMock()
        service.send_reminder.side_effect = ReminderSendError("Invoice not found", 404)
        sender = LocalReminderSender(service, timeout=1)

        result = await sender.send("inv-1", ReminderType.BEFORE_DUE)

        assert result.ok is False
        assert result.status_code == 404
        assert result.error == "Invoice not found"

    @pytest.mark.asyncio
    async def test_timeout(self):
        async def slow(*args):
            await asyncio.sleep(1)
            return {"ok": True}

        service = MagicMock()
        service.send_reminder = slow
        sender = LocalReminderSender(service, timeout=0.01)

        result = await sender.send("inv-1", ReminderType.AFTER_DUE)

        assert result.ok is False
        assert "timed out" in result.error


class TestHttpReminderSender:
    @pytest.mark.asyncio
    async def test_posts_payload_with_secret(self):
        http = AsyncMock()
        http.post.return_value = _response(200, '{"ok": true}')
        sender = HttpReminderSender(base_url="https://app.test", secret="s3cret", client=http)

        result = await sender.send("inv-1", ReminderType.AFTER_DUE)

        assert result.ok is True
        assert result.payload == {"ok": True}
        args, kwargs = http.post.call_args
        assert args[0] == SEND_REMINDER_PATH
        assert kwargs["json"] == {"invoiceId": "inv-1", "reminderType": "after_due"}
        assert kwargs["headers"]["Authorization"] == "Bearer s3cret"

    @pytest.mark.asyncio
    async def test_error_status(self):
        http = AsyncMock()
        http.post.return_value = _response(400, '{"error": "Client has no email address."}')
        sender = HttpReminderSender(base_url="https://app.test", secret="s", client=http)

        result = await sender.send("inv-1", ReminderType.BEFORE_DUE)

        assert result.ok is False
        assert result.status_code == 400
        assert result.error == "Client has no email address."

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        http = AsyncMock()
        http.post.return_value = _response(502, "<html>Bad Gateway</html>")
        sender = HttpReminderSender(base_url="https://app.test", secret="s", client=http)

        result = await sender.send("inv-1", ReminderType.BEFORE_DUE)

        assert result.ok is False
        assert result.payload == {"nonJsonBody": "<html>Bad Gateway</html>"}
        assert result.error == "Send failed with status 502"

    @pytest.mark.asyncio
    async def test_transport_error(self):
        http = AsyncMock()
        http.post.side_effect = httpx.ConnectError("refused")
        sender = HttpReminderSender(base_url="https://app.test", secret="s", client=http)

        result = await sender.send("inv-1", ReminderType.BEFORE_DUE)

        assert result.ok is False
        assert "Request failed" in result.error
