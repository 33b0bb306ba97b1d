"""Transports that invoke the reminder send operation."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Protocol

import httpx
import structlog

from barix_billing.config import get_settings
from barix_billing.reminders.eligibility import ReminderType
from barix_billing.reminders.service import ReminderEmailService, ReminderSendError

logger = structlog.get_logger(__name__)

SEND_REMINDER_PATH = "/api/send-invoice-reminder"


@dataclass(frozen=True)
class SendResult:
    """Outcome of one send attempt."""

    ok: bool
    status_code: int | None = None
    payload: Any = None
    error: str | None = None

    @property
    def skipped(self) -> str | None:
        """Reason the send operation chose not to deliver, if it did so."""
        if self.ok and isinstance(self.payload, dict):
            skipped = self.payload.get("skipped")
            return str(skipped) if skipped else None
        return None


class ReminderSender(Protocol):
    async def send(self, invoice_id: str, reminder_type: ReminderType) -> SendResult: ...


class LocalReminderSender:
    """Calls the send operation in-process, bounded by a timeout."""

    def __init__(self, service: ReminderEmailService, timeout: float | None = None):
        self._service = service
        self._timeout = timeout or get_settings().reminder_send_timeout

    async def send(self, invoice_id: str, reminder_type: ReminderType) -> SendResult:
        try:
            payload = await asyncio.wait_for(
                self._service.send_reminder(invoice_id, reminder_type),
                timeout=self._timeout,
            )
        except ReminderSendError as e:
            return SendResult(
                ok=False, status_code=e.status_code, payload={"error": str(e)}, error=str(e)
            )
        except asyncio.TimeoutError:
            return SendResult(ok=False, error=f"Send timed out after {self._timeout}s")
        return SendResult(ok=True, status_code=200, payload=payload)


class HttpReminderSender:
    """POSTs ``{invoiceId, reminderType}`` to the send endpoint of a deployment."""

    def __init__(
        self,
        base_url: str | None = None,
        secret: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.app_url).rstrip("/")
        self._secret = secret or settings.cron_secret.get_secret_value()
        self._timeout = timeout or settings.reminder_send_timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def send(self, invoice_id: str, reminder_type: ReminderType) -> SendResult:
        client = await self._get_client()
        try:
            response = await client.post(
                SEND_REMINDER_PATH,
                json={"invoiceId": invoice_id, "reminderType": reminder_type.value},
                headers={"Authorization": f"Bearer {self._secret}"},
            )
        except httpx.RequestError as e:
            logger.warning("reminder_send_request_failed", invoice_id=invoice_id, error=str(e))
            return SendResult(ok=False, error=f"Request failed: {e}")

        raw = response.text
        try:
            payload = json.loads(raw) if raw else None
        except ValueError:
            payload = {"nonJsonBody": raw[:500]}

        if response.status_code >= 400:
            error = payload.get("error") if isinstance(payload, dict) else None
            return SendResult(
                ok=False,
                status_code=response.status_code,
                payload=payload,
                error=error or f"Send failed with status {response.status_code}",
            )
        return SendResult(ok=True, status_code=response.status_code, payload=payload)
