"""Service wiring for the API, overridable in tests via ``dependency_overrides``."""

from dataclasses import dataclass
from functools import lru_cache

from barix_billing.config import get_settings
from barix_billing.integrations.resend import ResendClient
from barix_billing.integrations.supabase import SupabaseRestClient
from barix_billing.reminders.dispatch import ReminderDispatcher
from barix_billing.reminders.eligibility import default_reminder_config
from barix_billing.reminders.sender import LocalReminderSender
from barix_billing.reminders.service import ReminderEmailService
from barix_billing.repositories.supabase import (
    SupabaseInvoiceRepository,
    SupabaseReminderConfigRepository,
    SupabaseReminderLogStore,
)


@dataclass
class BillingServices:
    supabase: SupabaseRestClient
    resend: ResendClient
    reminder_service: ReminderEmailService
    dispatcher: ReminderDispatcher

    async def aclose(self) -> None:
        await self.supabase.close()
        await self.resend.close()


@lru_cache
def get_services() -> BillingServices:
    """Build the Supabase-backed services once per process."""
    settings = get_settings()
    default_config = default_reminder_config(settings)

    supabase = SupabaseRestClient()
    resend = ResendClient()
    invoices = SupabaseInvoiceRepository(supabase)
    reminder_service = ReminderEmailService(invoices, resend, app_url=settings.app_url)

    dispatcher = ReminderDispatcher(
        invoices=invoices,
        configs=SupabaseReminderConfigRepository(supabase, default=default_config),
        log_store=SupabaseReminderLogStore(supabase),
        sender=LocalReminderSender(reminder_service, timeout=settings.reminder_send_timeout),
        default_config=default_config,
    )
    return BillingServices(
        supabase=supabase,
        resend=resend,
        reminder_service=reminder_service,
        dispatcher=dispatcher,
    )


def get_dispatcher() -> ReminderDispatcher:
    return get_services().dispatcher


def get_reminder_service() -> ReminderEmailService:
    return get_services().reminder_service
