"""Barix Billing - invoice totals, payment reminders and client import."""

__version__ = "0.1.0"

from barix_billing.client_import import (
    ClientImportRow,
    ImportPreview,
    build_dedupe_key,
    confirm_import,
    deduplicate,
    preview_import,
)
from barix_billing.config import configure_logging, get_settings
from barix_billing.documents import DocumentType, build_document_snapshot
from barix_billing.reminders import (
    ReminderConfig,
    ReminderType,
    default_reminder_config,
    evaluate_reminder,
)
from barix_billing.reminders.dispatch import DispatchReport, ReminderDispatcher
from barix_billing.totals import (
    DocumentTotals,
    IndirectMaterialsConfig,
    IndirectMode,
    LineItem,
    compute_totals,
)

__all__ = [
    # Version
    "__version__",
    # Totals & documents
    "DocumentTotals",
    "DocumentType",
    "IndirectMaterialsConfig",
    "IndirectMode",
    "LineItem",
    "build_document_snapshot",
    "compute_totals",
    # Reminders
    "DispatchReport",
    "ReminderConfig",
    "ReminderDispatcher",
    "ReminderType",
    "default_reminder_config",
    "evaluate_reminder",
    # Client import
    "ClientImportRow",
    "ImportPreview",
    "build_dedupe_key",
    "confirm_import",
    "deduplicate",
    "preview_import",
    # Config
    "configure_logging",
    "get_settings",
]
