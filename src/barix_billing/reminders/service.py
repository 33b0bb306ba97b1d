"""The reminder send operation: load an invoice, compose, deliver."""

from __future__ import annotations

from typing import Any

import structlog

from barix_billing.config import get_settings
from barix_billing.integrations.resend import ResendClient, ResendError
from barix_billing.reminders.eligibility import ReminderType
from barix_billing.reminders.message import compose_reminder_message
from barix_billing.repositories.base import InvoiceRepository

logger = structlog.get_logger(__name__)


class ReminderSendError(Exception):
    """The reminder could not be sent; ``status_code`` mirrors the HTTP status."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class ReminderEmailService:
    """Sends one reminder email for an invoice.

    The dispatcher reaches this either in-process or over HTTP; either way
    it only sees ``{"ok": True}``, a ``skipped`` reason, or an error.
    """

    def __init__(
        self,
        invoices: InvoiceRepository,
        email_client: ResendClient,
        app_url: str | None = None,
    ):
        self._invoices = invoices
        self._email = email_client
        self._app_url = app_url or get_settings().app_url
        self._logger = logger.bind(component="reminder_email_service")

    async def send_reminder(
        self, invoice_id: str, reminder_type: ReminderType
    ) -> dict[str, Any]:
        if reminder_type not in ReminderType.sendable():
            raise ReminderSendError(f"Unsupported reminder type: {reminder_type.value}", 400)

        try:
            invoice = await self._invoices.get_invoice(invoice_id)
        except Exception as e:
            self._logger.error("invoice_fetch_failed", invoice_id=invoice_id, error=str(e))
            raise ReminderSendError("Failed to fetch invoice", 500) from e
        if not invoice:
            raise ReminderSendError("Invoice not found", 404)

        if invoice.get("paid_at"):
            return {"ok": True, "skipped": "already_paid"}
        if invoice.get("document_type") == "estimate":
            return {"ok": True, "skipped": "estimate_not_supported"}

        client = invoice.get("clients") or {}
        if not client.get("email"):
            raise ReminderSendError("Client has no email address.", 400)

        try:
            line_items = await self._invoices.list_line_items(invoice_id)
        except Exception as e:
            self._logger.error("line_items_fetch_failed", invoice_id=invoice_id, error=str(e))
            raise ReminderSendError("Failed to fetch invoice line items", 500) from e

        owner_id = str(invoice.get("owner_id") or "")
        try:
            profile = await self._invoices.get_contractor_profile(owner_id)
        except Exception as e:
            self._logger.error(
                "contractor_profile_fetch_failed", owner_id=owner_id, error=str(e)
            )
            raise ReminderSendError("Failed to fetch contractor profile", 500) from e

        message = compose_reminder_message(
            reminder_type, invoice, line_items, profile, self._app_url
        )

        try:
            result = await self._email.send_email(
                to=client["email"],
                subject=message.subject,
                html=message.html,
                text=message.text,
            )
        except ResendError as e:
            self._logger.error(
                "reminder_email_failed",
                invoice_id=invoice_id,
                reminder_type=reminder_type.value,
                error=str(e),
            )
            raise ReminderSendError(str(e), 500) from e

        self._logger.info(
            "reminder_email_sent",
            invoice_id=invoice_id,
            reminder_type=reminder_type.value,
            email_id=result.get("id"),
        )
        return {"ok": True}
