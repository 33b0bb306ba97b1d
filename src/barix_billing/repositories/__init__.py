"""Storage boundaries and their in-memory and Supabase implementations."""

from barix_billing.repositories.base import (
    ClientRepository,
    InvoiceRepository,
    ReminderCandidate,
    ReminderConfigRepository,
    ReminderLogConflictError,
    ReminderLogEntry,
    ReminderLogStore,
    RepositoryError,
)
from barix_billing.repositories.memory import (
    InMemoryClientRepository,
    InMemoryInvoiceRepository,
    InMemoryReminderConfigRepository,
    InMemoryReminderLogStore,
)
from barix_billing.repositories.supabase import (
    SupabaseClientRepository,
    SupabaseInvoiceRepository,
    SupabaseReminderConfigRepository,
    SupabaseReminderLogStore,
)

__all__ = [
    "ClientRepository",
    "InvoiceRepository",
    "ReminderCandidate",
    "ReminderConfigRepository",
    "ReminderLogConflictError",
    "ReminderLogEntry",
    "ReminderLogStore",
    "RepositoryError",
    "InMemoryClientRepository",
    "InMemoryInvoiceRepository",
    "InMemoryReminderConfigRepository",
    "InMemoryReminderLogStore",
    "SupabaseClientRepository",
    "SupabaseInvoiceRepository",
    "SupabaseReminderConfigRepository",
    "SupabaseReminderLogStore",
]
