"""Document totals: line items, indirect materials surcharge, tax and total.

Every derived amount is rounded to cents on its own (half-up) before it
feeds the next step, so stored snapshots always satisfy
``subtotal == base_subtotal + indirect_charge`` and
``total == subtotal + tax_amount``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal, localcontext
from enum import Enum
from typing import Any

from barix_billing.money import (
    HUNDRED,
    MONEY_PRECISION,
    ZERO,
    clamp_percent,
    parse_non_negative_number,
    round_cents,
)

DEFAULT_TAX_RATE = Decimal("0.06")


class IndirectMode(str, Enum):
    """How the indirect materials surcharge is expressed."""

    AMOUNT = "amount"
    PERCENT = "percent"

    @classmethod
    def parse(cls, value: Any) -> IndirectMode:
        """Anything other than "percent" is a flat amount."""
        if isinstance(value, IndirectMode):
            return value
        if str(value or "").strip().lower() == cls.PERCENT.value:
            return cls.PERCENT
        return cls.AMOUNT


@dataclass(frozen=True)
class LineItem:
    """A billable line on an invoice or estimate."""

    description: str
    quantity: Decimal
    rate: Decimal

    @classmethod
    def from_values(cls, description: Any, quantity: Any, rate: Any) -> LineItem:
        return cls(
            description=str(description or "").strip(),
            quantity=parse_non_negative_number(quantity),
            rate=parse_non_negative_number(rate),
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> LineItem:
        """Build from a stored ``invoice_line_items`` row or a form draft."""
        description = row.get("description") or row.get("name") or ""
        return cls.from_values(description, row.get("quantity"), row.get("rate"))

    @property
    def amount(self) -> Decimal:
        return self.quantity * self.rate


@dataclass(frozen=True)
class IndirectMaterialsConfig:
    """Indirect materials surcharge settings for an account or invoice."""

    enabled: bool = False
    mode: IndirectMode = IndirectMode.AMOUNT
    amount: Decimal = ZERO
    percent: Decimal = ZERO

    @classmethod
    def disabled(cls) -> IndirectMaterialsConfig:
        return cls()

    @classmethod
    def from_row(cls, row: Mapping[str, Any] | None) -> IndirectMaterialsConfig:
        """Build from a ``contractor_settings`` row or invoice override columns.

        Account settings store a single ``indirect_materials_type`` /
        ``indirect_materials_value`` pair and are enabled unless an explicit
        ``enable_indirect_materials`` flag says otherwise. Invoices store the
        amount and percent separately alongside the enable flag.
        """
        if not row:
            return cls.disabled()
        if row.get("indirect_materials_type") is not None:
            return cls._from_account_columns(row)
        return cls._from_invoice_columns(row)

    @classmethod
    def _from_account_columns(cls, row: Mapping[str, Any]) -> IndirectMaterialsConfig:
        mode = IndirectMode.parse(row.get("indirect_materials_type"))
        value = row.get("indirect_materials_value")
        flag = row.get("enable_indirect_materials")
        return cls(
            enabled=True if flag is None else bool(flag),
            mode=mode,
            amount=parse_non_negative_number(value) if mode is IndirectMode.AMOUNT else ZERO,
            percent=clamp_percent(value) if mode is IndirectMode.PERCENT else ZERO,
        )

    @classmethod
    def _from_invoice_columns(cls, row: Mapping[str, Any]) -> IndirectMaterialsConfig:
        return cls(
            enabled=bool(row.get("enable_indirect_materials")),
            mode=IndirectMode.parse(row.get("indirect_materials_default_type")),
            amount=parse_non_negative_number(row.get("indirect_materials_amount")),
            percent=clamp_percent(row.get("indirect_materials_percent")),
        )

    @classmethod
    def resolve(
        cls,
        account_row: Mapping[str, Any] | None,
        invoice_row: Mapping[str, Any] | None = None,
    ) -> IndirectMaterialsConfig:
        """Account default, replaced by the invoice's own settings when it has them."""
        if invoice_row and invoice_row.get("enable_indirect_materials") is not None:
            return cls._from_invoice_columns(invoice_row)
        return cls.from_row(account_row)

    def charge_for(self, base_subtotal: Decimal) -> Decimal:
        """Return the unrounded surcharge for a base subtotal."""
        if not self.enabled:
            return ZERO
        if self.mode is IndirectMode.PERCENT:
            return base_subtotal * clamp_percent(self.percent) / HUNDRED
        return parse_non_negative_number(self.amount)

    def to_columns(self) -> dict[str, Any]:
        return {
            "enable_indirect_materials": self.enabled,
            "indirect_materials_amount": float(self.amount),
            "indirect_materials_percent": float(self.percent),
            "indirect_materials_default_type": self.mode.value,
        }


@dataclass(frozen=True)
class DocumentTotals:
    """Derived money amounts for a document, all in cents precision."""

    base_subtotal: Decimal
    indirect_charge: Decimal
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal

    def to_columns(self) -> dict[str, float]:
        """Snapshot columns persisted on the ``invoices`` row."""
        return {
            "subtotal": float(self.subtotal),
            "tax_rate": float(self.tax_rate),
            "tax_amount": float(self.tax_amount),
            "total": float(self.total),
        }

    def to_dict(self) -> dict[str, str]:
        return {
            "base_subtotal": str(self.base_subtotal),
            "indirect_charge": str(self.indirect_charge),
            "subtotal": str(self.subtotal),
            "tax_rate": str(self.tax_rate),
            "tax_amount": str(self.tax_amount),
            "total": str(self.total),
        }


def compute_totals(
    line_items: Iterable[LineItem],
    indirect: IndirectMaterialsConfig | None = None,
    tax_rate: Any = DEFAULT_TAX_RATE,
) -> DocumentTotals:
    """Compute subtotal, indirect materials charge, tax and total.

    Never raises for malformed numbers: bad quantities, rates and
    configuration values count as zero.

    Args:
        line_items: Items to sum as ``quantity * rate``.
        indirect: Surcharge configuration; ``None`` means disabled.
        tax_rate: Fraction applied to the subtotal (0.06 for 6%).

    Returns:
        DocumentTotals with each amount rounded to cents independently.
    """
    indirect = indirect or IndirectMaterialsConfig.disabled()
    rate = parse_non_negative_number(tax_rate)

    with localcontext() as ctx:
        ctx.prec = MONEY_PRECISION
        raw_base = sum(
            (
                parse_non_negative_number(item.quantity) * parse_non_negative_number(item.rate)
                for item in line_items
            ),
            ZERO,
        )
        base_subtotal = round_cents(raw_base)
        # Percent surcharge applies to the rounded base so subtotal == base + indirect
        indirect_charge = round_cents(indirect.charge_for(base_subtotal))
        subtotal = round_cents(base_subtotal + indirect_charge)
        tax_amount = round_cents(subtotal * rate)
        total = round_cents(subtotal + tax_amount)

    return DocumentTotals(
        base_subtotal=base_subtotal,
        indirect_charge=indirect_charge,
        subtotal=subtotal,
        tax_rate=rate,
        tax_amount=tax_amount,
        total=total,
    )
