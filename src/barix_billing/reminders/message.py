"""Reminder email composition."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any

import structlog
from jinja2 import Environment, FileSystemLoader

from barix_billing.money import ZERO, parse_non_negative_number, round_cents
from barix_billing.reminders.eligibility import ReminderType, parse_due_date
from barix_billing.totals import IndirectMaterialsConfig, IndirectMode

logger = structlog.get_logger(__name__)

DEFAULT_BUSINESS_NAME = "Your Service Provider"

TEMPLATES_DIR = Path(__file__).parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=True,
    trim_blocks=True,
    lstrip_blocks=True,
)


@dataclass(frozen=True)
class ReminderMessage:
    subject: str
    html: str
    text: str


def _render(template_name: str, **context: Any) -> str:
    rendered = _env.get_template(template_name).render(**context)
    logger.debug("email_template_rendered", template=template_name, length=len(rendered))
    return rendered


def format_currency(amount: Any) -> str:
    return f"${parse_non_negative_number(amount):,.2f}"


def format_long_date(value: Any) -> str:
    parsed = parse_due_date(value)
    if parsed is None:
        return "N/A"
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def _client_address(client: Mapping[str, Any]) -> str:
    parts = (
        client.get("service_address_line1"),
        client.get("service_city"),
        client.get("service_state"),
        client.get("service_postal_code"),
    )
    return ", ".join(str(part) for part in parts if part)


@dataclass(frozen=True)
class _TotalsBreakdown:
    line_items_total: Decimal
    indirect_charge: Decimal
    indirect_label: str
    subtotal: Decimal
    tax_label: str
    tax_amount: Decimal
    total: Decimal


def _breakdown(
    invoice: Mapping[str, Any], line_items: Sequence[Mapping[str, Any]]
) -> _TotalsBreakdown:
    line_items_total = round_cents(
        sum((parse_non_negative_number(item.get("line_total")) for item in line_items), ZERO)
    )
    indirect = IndirectMaterialsConfig.from_row(invoice)
    indirect_charge = round_cents(indirect.charge_for(line_items_total))
    indirect_label = ""
    if indirect.mode is IndirectMode.PERCENT:
        indirect_label = f" ({indirect.percent:.1f}%)"

    # Stored snapshot wins over a recomputed subtotal
    stored_subtotal = round_cents(parse_non_negative_number(invoice.get("subtotal")))
    subtotal = stored_subtotal or round_cents(line_items_total + indirect_charge)

    tax_rate = parse_non_negative_number(invoice.get("tax_rate"))
    return _TotalsBreakdown(
        line_items_total=line_items_total,
        indirect_charge=indirect_charge if indirect.enabled else ZERO,
        indirect_label=indirect_label,
        subtotal=subtotal,
        tax_label=f"{tax_rate * 100:.0f}%",
        tax_amount=parse_non_negative_number(invoice.get("tax_amount")),
        total=parse_non_negative_number(invoice.get("total")),
    )


def compose_reminder_message(
    reminder_type: ReminderType,
    invoice: Mapping[str, Any],
    line_items: Sequence[Mapping[str, Any]],
    profile: Mapping[str, Any] | None,
    app_url: str,
) -> ReminderMessage:
    """Build the subject, HTML and plain-text bodies of a reminder email.

    Args:
        reminder_type: BEFORE_DUE or AFTER_DUE.
        invoice: Invoice row with the client embedded under ``clients``.
        line_items: Stored line item rows in display order.
        profile: Contractor profile (company name, email, phone), if any.
        app_url: Public base URL for pay and view links.
    """
    profile = profile or {}
    client = invoice.get("clients") or {}
    invoice_id = str(invoice.get("id", ""))
    number = str(invoice.get("invoice_number") or "")
    business_name = profile.get("company_name") or DEFAULT_BUSINESS_NAME
    business_email = profile.get("business_email") or ""
    business_phone = profile.get("business_phone") or ""

    base_url = app_url.rstrip("/")
    pay_url = f"{base_url}/pay/{invoice_id}"
    view_url = f"{base_url}/invoice/{invoice_id}"

    past_due = reminder_type is ReminderType.AFTER_DUE
    due_formatted = format_long_date(invoice.get("due_date"))
    if past_due:
        title = "Past Due Reminder"
        subject = f"Past Due Reminder: Invoice {number} from {business_name}"
        lead = f"This is a friendly reminder that invoice {number} was due on {due_formatted}."
        cta = "Your invoice is past due. Click below to pay securely online:"
    else:
        title = "Payment Reminder"
        subject = f"Reminder: Invoice {number} from {business_name}"
        lead = f"This is a friendly reminder that invoice {number} is due on {due_formatted}."
        cta = "Click the button below to pay securely online:"

    totals = _breakdown(invoice, line_items)
    address = _client_address(client)
    client_name = str(client.get("name") or "")
    total_due = format_currency(totals.total)

    summary_rows = [
        ("Invoice Number", number or "N/A"),
        ("Issue Date", format_long_date(invoice.get("issue_date"))),
        ("Due Date", due_formatted),
    ]
    if address:
        summary_rows.append(("Service Address", address))

    items = [
        {
            "name": str(item.get("name") or "Service"),
            "description": str(item.get("description") or ""),
            "quantity": str(item.get("quantity", "")),
            "rate": format_currency(item.get("rate")),
            "amount": format_currency(item.get("line_total")),
        }
        for item in line_items
    ]

    totals_rows = [("Line items", format_currency(totals.line_items_total))]
    if totals.indirect_charge > 0:
        totals_rows.append(
            (f"Indirect materials{totals.indirect_label}", format_currency(totals.indirect_charge))
        )
    totals_rows += [
        ("Subtotal", format_currency(totals.subtotal)),
        (f"Tax ({totals.tax_label})", format_currency(totals.tax_amount)),
        ("Total Due", total_due),
    ]

    html = _render(
        "reminder_email.html",
        title=title,
        business_name=business_name,
        business_email=business_email,
        business_phone=business_phone,
        client_name=client_name,
        lead=lead,
        summary_rows=summary_rows,
        items=items,
        totals_rows=totals_rows,
        notes=invoice.get("notes"),
        cta=cta,
        pay_url=pay_url,
        view_url=view_url,
        total_due=total_due,
    )

    text_lines = [
        f"Hi {client_name},",
        "",
        lead,
        "",
        f"Total due: {total_due}",
        f"Pay online: {pay_url}",
        f"View invoice: {view_url}",
        "",
        business_name,
    ]

    return ReminderMessage(subject=subject, html=html, text="\n".join(text_lines))
