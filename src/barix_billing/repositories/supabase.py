"""Repositories backed by Supabase tables."""

from __future__ import annotations

from typing import Any

import structlog

from barix_billing.integrations.supabase import (
    SupabaseConflictError,
    SupabaseError,
    SupabaseRestClient,
)
from barix_billing.reminders.eligibility import DueWindow, ReminderConfig, ReminderType
from barix_billing.repositories.base import (
    ReminderCandidate,
    ReminderLogConflictError,
    ReminderLogEntry,
    RepositoryError,
)

logger = structlog.get_logger(__name__)

REMINDER_LOG_TABLE = "invoice_reminder_logs"
CANDIDATE_COLUMNS = "id,due_date,owner_id,paid_at,status,document_type"
INVOICE_WITH_CLIENT = (
    "*,clients:client_id(id,name,email,service_address_line1,"
    "service_city,service_state,service_postal_code)"
)
REMINDER_SETTINGS_COLUMNS = (
    "contractor_id,reminders_enabled,reminder_days_before_due,reminder_days_after_due"
)


class SupabaseReminderLogStore:
    def __init__(self, client: SupabaseRestClient):
        self._client = client

    async def exists_for(self, invoice_id: str, reminder_type: ReminderType) -> bool:
        try:
            row = await self._client.select_one(
                REMINDER_LOG_TABLE,
                [
                    ("select", "id"),
                    ("invoice_id", f"eq.{invoice_id}"),
                    ("reminder_type", f"eq.{reminder_type.value}"),
                ],
            )
        except SupabaseError as e:
            raise RepositoryError(str(e), details=e.details) from e
        return row is not None

    async def insert(self, invoice_id: str, reminder_type: ReminderType) -> ReminderLogEntry:
        try:
            await self._client.insert(
                REMINDER_LOG_TABLE,
                [{"invoice_id": invoice_id, "reminder_type": reminder_type.value}],
            )
        except SupabaseConflictError as e:
            raise ReminderLogConflictError(str(e), details=e.details) from e
        except SupabaseError as e:
            raise RepositoryError(str(e), details=e.details) from e
        return ReminderLogEntry(invoice_id=invoice_id, reminder_type=reminder_type)


class SupabaseReminderConfigRepository:
    """Reads reminder settings from ``contractor_settings``."""

    def __init__(self, client: SupabaseRestClient, default: ReminderConfig | None = None):
        self._client = client
        self._default = default

    async def load_reminder_configs(self) -> dict[str, ReminderConfig]:
        try:
            rows = await self._client.select(
                "contractor_settings", [("select", REMINDER_SETTINGS_COLUMNS)]
            )
        except SupabaseError as e:
            raise RepositoryError(f"Failed to load reminder settings: {e}", details=e.details) from e

        configs: dict[str, ReminderConfig] = {}
        for row in rows:
            owner_id = row.get("contractor_id")
            if owner_id:
                configs[str(owner_id)] = ReminderConfig.from_row(row, self._default)
        return configs


class SupabaseInvoiceRepository:
    def __init__(self, client: SupabaseRestClient):
        self._client = client

    async def list_reminder_candidates(self, window: DueWindow) -> list[ReminderCandidate]:
        # document_type may be null on older invoices; neq alone would drop them
        params: list[tuple[str, Any]] = [
            ("select", CANDIDATE_COLUMNS),
            ("paid_at", "is.null"),
            ("status", "in.(sent)"),
            ("or", "(document_type.is.null,document_type.neq.estimate)"),
            ("due_date", f"gte.{window.start.isoformat()}"),
            ("due_date", f"lte.{window.end.isoformat()}"),
            ("order", "due_date.asc"),
        ]
        try:
            rows = await self._client.select("invoices", params)
        except SupabaseError as e:
            raise RepositoryError(f"Failed to load invoices: {e}", details=e.details) from e
        return [ReminderCandidate.from_row(row) for row in rows]

    async def get_invoice(self, invoice_id: str) -> dict[str, Any] | None:
        return await self._client.select_one(
            "invoices",
            [("select", INVOICE_WITH_CLIENT), ("id", f"eq.{invoice_id}")],
        )

    async def list_line_items(self, invoice_id: str) -> list[dict[str, Any]]:
        return await self._client.select(
            "invoice_line_items",
            [
                ("select", "*"),
                ("invoice_id", f"eq.{invoice_id}"),
                ("order", "position.asc"),
            ],
        )

    async def get_contractor_profile(self, owner_id: str) -> dict[str, Any] | None:
        return await self._client.select_one(
            "contractor_profiles",
            [
                ("select", "company_name,business_email,business_phone"),
                ("id", f"eq.{owner_id}"),
            ],
        )


class SupabaseClientRepository:
    def __init__(self, client: SupabaseRestClient):
        self._client = client

    async def list_clients(self, owner_id: str) -> list[dict[str, Any]]:
        return await self._client.select(
            "clients", [("select", "*"), ("owner_id", f"eq.{owner_id}")]
        )

    async def insert_clients(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        inserted = await self._client.insert("clients", rows)
        logger.info("clients_inserted", count=len(inserted))
        return inserted
