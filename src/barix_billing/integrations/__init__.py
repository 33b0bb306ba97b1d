"""Clients for external HTTP services."""

from barix_billing.integrations.resend import ResendClient, ResendError
from barix_billing.integrations.supabase import (
    SupabaseConflictError,
    SupabaseError,
    SupabaseRestClient,
)

__all__ = [
    "ResendClient",
    "ResendError",
    "SupabaseConflictError",
    "SupabaseError",
    "SupabaseRestClient",
]
