"""Storage boundaries the billing core depends on."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from barix_billing.reminders.eligibility import DueWindow, ReminderConfig, ReminderType


class RepositoryError(Exception):
    """Base exception for storage failures."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.details = details


class ReminderLogConflictError(RepositoryError):
    """A log row for this invoice and reminder type already exists."""

    pass


@dataclass(frozen=True)
class ReminderCandidate:
    """An invoice selected for reminder evaluation."""

    invoice_id: str
    owner_id: str
    due_date: Any
    status: str = "sent"
    paid_at: Any = None
    document_type: str | None = "invoice"

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ReminderCandidate:
        return cls(
            invoice_id=str(row["id"]),
            owner_id=str(row.get("owner_id") or ""),
            due_date=row.get("due_date"),
            status=str(row.get("status") or ""),
            paid_at=row.get("paid_at"),
            document_type=row.get("document_type"),
        )

    @property
    def is_remindable(self) -> bool:
        """Unpaid, sent, and not an estimate."""
        return (
            self.paid_at is None
            and self.status == "sent"
            and self.document_type != "estimate"
        )


@dataclass(frozen=True)
class ReminderLogEntry:
    """A delivered reminder."""

    invoice_id: str
    reminder_type: ReminderType


class ReminderLogStore(Protocol):
    """Append-only log of sent reminders, unique on (invoice, type)."""

    async def exists_for(self, invoice_id: str, reminder_type: ReminderType) -> bool: ...

    async def insert(self, invoice_id: str, reminder_type: ReminderType) -> ReminderLogEntry:
        """Append a row; raises ReminderLogConflictError on the unique key."""
        ...


class ReminderConfigRepository(Protocol):
    async def load_reminder_configs(self) -> dict[str, ReminderConfig]:
        """Return reminder configs keyed by owner id."""
        ...


class InvoiceRepository(Protocol):
    async def list_reminder_candidates(self, window: DueWindow) -> list[ReminderCandidate]:
        """Unpaid, sent, non-estimate invoices due inside ``window``."""
        ...

    async def get_invoice(self, invoice_id: str) -> dict[str, Any] | None:
        """Invoice row with its client embedded under ``clients``."""
        ...

    async def list_line_items(self, invoice_id: str) -> list[dict[str, Any]]: ...

    async def get_contractor_profile(self, owner_id: str) -> dict[str, Any] | None: ...


class ClientRepository(Protocol):
    async def list_clients(self, owner_id: str) -> list[dict[str, Any]]: ...

    async def insert_clients(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert rows and return them with generated identifiers."""
        ...
