"""In-memory repositories for local runs and tests."""

from __future__ import annotations

import copy
from typing import Any
from uuid import uuid4

from barix_billing.reminders.eligibility import (
    DueWindow,
    ReminderConfig,
    ReminderType,
    parse_due_date,
)
from barix_billing.repositories.base import (
    ReminderCandidate,
    ReminderLogConflictError,
    ReminderLogEntry,
)


class InMemoryReminderLogStore:
    """Reminder log with the same uniqueness guarantee as the database table."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, ReminderType], ReminderLogEntry] = {}

    @property
    def entries(self) -> list[ReminderLogEntry]:
        return list(self._entries.values())

    async def exists_for(self, invoice_id: str, reminder_type: ReminderType) -> bool:
        return (invoice_id, reminder_type) in self._entries

    async def insert(self, invoice_id: str, reminder_type: ReminderType) -> ReminderLogEntry:
        key = (invoice_id, reminder_type)
        if key in self._entries:
            raise ReminderLogConflictError(
                f"Reminder {reminder_type.value} already logged for invoice {invoice_id}"
            )
        entry = ReminderLogEntry(invoice_id=invoice_id, reminder_type=reminder_type)
        self._entries[key] = entry
        return entry


class InMemoryReminderConfigRepository:
    def __init__(self, configs: dict[str, ReminderConfig] | None = None) -> None:
        self._configs = dict(configs or {})

    async def load_reminder_configs(self) -> dict[str, ReminderConfig]:
        return dict(self._configs)


class InMemoryInvoiceRepository:
    """Invoices keyed by id, with line items and contractor profiles."""

    def __init__(
        self,
        invoices: list[dict[str, Any]] | None = None,
        line_items: dict[str, list[dict[str, Any]]] | None = None,
        profiles: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self._invoices = {str(row["id"]): row for row in invoices or []}
        self._line_items = line_items or {}
        self._profiles = profiles or {}

    def add_invoice(self, row: dict[str, Any]) -> None:
        self._invoices[str(row["id"])] = row

    async def list_reminder_candidates(self, window: DueWindow) -> list[ReminderCandidate]:
        candidates = []
        for row in self._invoices.values():
            candidate = ReminderCandidate.from_row(row)
            due = parse_due_date(candidate.due_date)
            if candidate.is_remindable and due is not None and window.contains(due):
                candidates.append(candidate)
        return candidates

    async def get_invoice(self, invoice_id: str) -> dict[str, Any] | None:
        row = self._invoices.get(invoice_id)
        return copy.deepcopy(row) if row is not None else None

    async def list_line_items(self, invoice_id: str) -> list[dict[str, Any]]:
        items = self._line_items.get(invoice_id, [])
        return sorted(items, key=lambda item: item.get("position", 0))

    async def get_contractor_profile(self, owner_id: str) -> dict[str, Any] | None:
        return self._profiles.get(owner_id)


class InMemoryClientRepository:
    def __init__(self, clients: list[dict[str, Any]] | None = None) -> None:
        self._clients = list(clients or [])

    async def list_clients(self, owner_id: str) -> list[dict[str, Any]]:
        return [client for client in self._clients if client.get("owner_id") == owner_id]

    async def insert_clients(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        inserted = [{"id": str(uuid4()), **row} for row in rows]
        self._clients.extend(inserted)
        return inserted
