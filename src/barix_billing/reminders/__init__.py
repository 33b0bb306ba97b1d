"""Invoice reminder eligibility, dispatch and delivery."""

from barix_billing.reminders.eligibility import (
    MAX_REMINDER_DAYS,
    DueWindow,
    ReminderConfig,
    ReminderType,
    default_reminder_config,
    due_window,
    evaluate_reminder,
    parse_due_date,
)

__all__ = [
    "DueWindow",
    "MAX_REMINDER_DAYS",
    "ReminderConfig",
    "ReminderType",
    "default_reminder_config",
    "due_window",
    "evaluate_reminder",
    "parse_due_date",
]
