"""HTTP routes for reminders and document totals."""

import secrets
from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse

from barix_billing.api.dependencies import get_dispatcher, get_reminder_service
from barix_billing.api.schemas import (
    HealthResponse,
    SendReminderRequest,
    TotalsRequest,
    TotalsResponse,
)
from barix_billing.config import FlatSettings, get_settings
from barix_billing.money import clamp_percent, parse_non_negative_number
from barix_billing.reminders.dispatch import DispatchError, ReminderDispatcher
from barix_billing.reminders.eligibility import ReminderType
from barix_billing.reminders.service import ReminderEmailService, ReminderSendError
from barix_billing.totals import (
    IndirectMaterialsConfig,
    IndirectMode,
    LineItem,
    compute_totals,
)

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["billing"])
health_router = APIRouter(tags=["health"])


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _authorize(authorization: str | None) -> JSONResponse | None:
    """Check the bearer shared secret; returns an error response on failure."""
    if not authorization:
        return _error("Missing Authorization header", 401)
    token = authorization.removeprefix("Bearer ").strip()
    expected = get_settings().cron_secret.get_secret_value()
    if not expected or not secrets.compare_digest(token.encode(), expected.encode()):
        logger.warning("unauthorized_request")
        return _error("Unauthorized", 401)
    return None


@router.get("/cron/invoice-reminders")
async def run_invoice_reminders(
    authorization: str | None = Header(default=None),
    dispatcher: ReminderDispatcher = Depends(get_dispatcher),
) -> Any:
    """Run the daily reminder sweep (called by the scheduler)."""
    denied = _authorize(authorization)
    if denied:
        return denied

    try:
        report = await dispatcher.run()
    except DispatchError as e:
        logger.error("reminder_sweep_failed", error=str(e))
        return _error(str(e), 500)
    except Exception as e:
        logger.exception("reminder_sweep_crashed")
        return _error(str(e), 500)

    return report.to_dict()


@router.post("/send-invoice-reminder")
async def send_invoice_reminder(
    body: SendReminderRequest,
    authorization: str | None = Header(default=None),
    service: ReminderEmailService = Depends(get_reminder_service),
) -> Any:
    """Send one reminder email for an invoice."""
    denied = _authorize(authorization)
    if denied:
        return denied

    if not body.invoiceId or not body.reminderType:
        return _error("invoiceId and reminderType are required", 400)

    try:
        reminder_type = ReminderType(body.reminderType)
    except ValueError:
        reminder_type = ReminderType.NONE
    if reminder_type not in ReminderType.sendable():
        return _error("reminderType must be before_due or after_due", 400)

    try:
        return await service.send_reminder(body.invoiceId, reminder_type)
    except ReminderSendError as e:
        return _error(str(e), e.status_code)
    except Exception as e:
        logger.exception("reminder_send_crashed", invoice_id=body.invoiceId)
        return _error(str(e), 500)


@router.post("/documents/totals", response_model=TotalsResponse)
def document_totals(
    body: TotalsRequest,
    settings: FlatSettings = Depends(get_settings),
) -> TotalsResponse:
    """Compute totals for a document being edited."""
    items = [LineItem.from_values(i.description, i.quantity, i.rate) for i in body.lineItems]

    indirect = IndirectMaterialsConfig.disabled()
    if body.indirect is not None:
        indirect = IndirectMaterialsConfig(
            enabled=body.indirect.enabled,
            mode=IndirectMode.parse(body.indirect.type),
            amount=parse_non_negative_number(body.indirect.amount),
            percent=clamp_percent(body.indirect.percent),
        )

    tax_rate = settings.tax_rate if body.taxRate is None else body.taxRate
    totals = compute_totals(items, indirect, tax_rate)
    return TotalsResponse(
        baseSubtotal=totals.base_subtotal,
        indirectCharge=totals.indirect_charge,
        subtotal=totals.subtotal,
        taxRate=totals.tax_rate,
        taxAmount=totals.tax_amount,
        total=totals.total,
    )


@health_router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))
