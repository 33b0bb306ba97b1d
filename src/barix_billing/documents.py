"""Invoice and estimate helpers used by the create/update/send flows."""

from __future__ import annotations

import random
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Any

from barix_billing.money import ZERO, parse_int, parse_non_negative_number
from barix_billing.totals import (
    DEFAULT_TAX_RATE,
    DocumentTotals,
    IndirectMaterialsConfig,
    LineItem,
    compute_totals,
)

# Sentinel the line item editor uses for "custom service, not from the catalog"
NEW_SERVICE_OPTION = "__new__"

MAX_DUE_DAYS = 365
DEFAULT_DUE_DAYS = 30


class DocumentType(str, Enum):
    """Kinds of billing documents."""

    INVOICE = "invoice"
    ESTIMATE = "estimate"

    @property
    def number_prefix(self) -> str:
        return "EST" if self is DocumentType.ESTIMATE else "INV"


@dataclass
class LineItemDraft:
    """A line item as edited in a form, before it is persisted."""

    name: str = ""
    description: str = ""
    quantity: Any = "1"
    rate: Any = ""
    service_id: str = ""
    id: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> LineItemDraft:
        """Build an editable draft from a stored ``invoice_line_items`` row."""
        return cls(
            id=row.get("id"),
            service_id=row.get("service_id") or "",
            name=row.get("name") or "",
            description=row.get("description") or "",
            quantity=str(row.get("quantity") or "1"),
            rate=str(row.get("rate") or ""),
        )

    def to_line_item(self) -> LineItem:
        return LineItem.from_values(
            self.description or self.name, self.quantity, self.rate
        )


def generate_document_number(
    document_type: DocumentType = DocumentType.INVOICE,
    today: date | None = None,
    rng: random.Random | None = None,
) -> str:
    """Return ``INV-YYYYMMDD-NNNN`` or ``EST-YYYYMMDD-NNNN``."""
    today = today or date.today()
    rng = rng or random.Random()
    suffix = rng.randint(1000, 9999)
    return f"{document_type.number_prefix}-{today:%Y%m%d}-{suffix}"


def default_due_date(issue_date: date, due_days: Any = DEFAULT_DUE_DAYS) -> date:
    """Issue date plus the contractor's default due offset, in calendar days."""
    days = min(parse_int(due_days, DEFAULT_DUE_DAYS), MAX_DUE_DAYS)
    return issue_date + timedelta(days=days)


def validate_line_items(
    drafts: Iterable[LineItemDraft],
) -> tuple[list[LineItemDraft], bool]:
    """Keep drafts that have a name or description and a positive quantity.

    Returns:
        The valid drafts and whether none remain.
    """
    valid = [
        draft
        for draft in drafts
        if (draft.name.strip() or draft.description.strip())
        and parse_non_negative_number(draft.quantity) > ZERO
    ]
    return valid, not valid


def to_line_item_rows(
    invoice_id: str, drafts: Iterable[LineItemDraft]
) -> list[dict[str, Any]]:
    """Build the ``invoice_line_items`` insert payload for a document."""
    rows: list[dict[str, Any]] = []
    for position, draft in enumerate(drafts, start=1):
        quantity = parse_non_negative_number(draft.quantity)
        rate = parse_non_negative_number(draft.rate)
        name = draft.name.strip()
        description = draft.description.strip()

        service_id = draft.service_id
        if not service_id or service_id == NEW_SERVICE_OPTION:
            service_id = None

        rows.append(
            {
                "invoice_id": invoice_id,
                "service_id": service_id,
                "name": name or (description[:80] if description else "Line item"),
                "description": description or None,
                "quantity": float(quantity),
                "rate": float(rate),
                "line_total": float(quantity * rate),
                "position": position,
            }
        )
    return rows


@dataclass(frozen=True)
class DocumentSnapshot:
    """Totals plus the column values stored with a document."""

    totals: DocumentTotals
    indirect: IndirectMaterialsConfig

    def to_columns(self) -> dict[str, Any]:
        return {**self.totals.to_columns(), **self.indirect.to_columns()}


def build_document_snapshot(
    drafts: Iterable[LineItemDraft],
    indirect: IndirectMaterialsConfig | None = None,
    tax_rate: Any = DEFAULT_TAX_RATE,
) -> DocumentSnapshot:
    """Compute the totals snapshot persisted on create, update and send."""
    indirect = indirect or IndirectMaterialsConfig.disabled()
    totals = compute_totals(
        (draft.to_line_item() for draft in drafts), indirect, tax_rate
    )
    return DocumentSnapshot(totals=totals, indirect=indirect)
