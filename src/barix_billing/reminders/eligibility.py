"""Decide which reminder, if any, an invoice should get today."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any

from barix_billing.config.settings import FlatSettings
from barix_billing.money import parse_int

# Longest reminder offset in days; larger stored values are clamped to it
MAX_REMINDER_DAYS = 365


class ReminderType(str, Enum):
    """Result of evaluating an invoice against a reminder configuration."""

    NONE = "none"
    BEFORE_DUE = "before_due"
    AFTER_DUE = "after_due"

    @classmethod
    def sendable(cls) -> tuple[ReminderType, ...]:
        return (cls.BEFORE_DUE, cls.AFTER_DUE)


@dataclass(frozen=True)
class ReminderConfig:
    """A contractor's automated reminder settings."""

    enabled: bool = True
    days_before_due: int = 3
    days_after_due: int = 1

    def __post_init__(self) -> None:
        for offset in (self.days_before_due, self.days_after_due):
            if not 0 <= offset <= MAX_REMINDER_DAYS:
                raise ValueError(
                    f"Reminder day offsets must be between 0 and {MAX_REMINDER_DAYS}"
                )

    @classmethod
    def from_row(
        cls, row: Mapping[str, Any], default: ReminderConfig | None = None
    ) -> ReminderConfig:
        """Build from a ``contractor_settings`` row; absent columns use ``default``.

        Offsets larger than ``MAX_REMINDER_DAYS`` are clamped to it.
        """
        default = default or cls()
        enabled = row.get("reminders_enabled")
        return cls(
            enabled=default.enabled if enabled is None else bool(enabled),
            days_before_due=_clamp_days(
                row.get("reminder_days_before_due"), default.days_before_due
            ),
            days_after_due=_clamp_days(
                row.get("reminder_days_after_due"), default.days_after_due
            ),
        )


def _clamp_days(value: Any, default: int) -> int:
    return min(parse_int(value, default), MAX_REMINDER_DAYS)


def default_reminder_config(settings: FlatSettings) -> ReminderConfig:
    """Reminder configuration applied to contractors without their own."""
    return ReminderConfig(
        enabled=settings.reminders_enabled,
        days_before_due=settings.reminder_days_before_due,
        days_after_due=settings.reminder_days_after_due,
    )


def parse_due_date(value: Any) -> date | None:
    """Parse a stored due date into a calendar date.

    Accepts ``date`` objects and ISO ``YYYY-MM-DD`` strings (a time part,
    if present, is ignored).
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def evaluate_reminder(
    today: date, due_date: date, config: ReminderConfig
) -> ReminderType:
    """Return the reminder that fires today for an invoice due on ``due_date``.

    Offsets are whole calendar days. When both offsets land on the same day
    (both zero, evaluated on the due date) ``BEFORE_DUE`` wins.
    """
    if not config.enabled:
        return ReminderType.NONE
    days_until_due = (due_date - today).days
    if days_until_due == config.days_before_due:
        return ReminderType.BEFORE_DUE
    if days_until_due == -config.days_after_due:
        return ReminderType.AFTER_DUE
    return ReminderType.NONE


@dataclass(frozen=True)
class DueWindow:
    """Inclusive range of due dates that may produce a reminder today."""

    start: date
    end: date

    def contains(self, due_date: date) -> bool:
        return self.start <= due_date <= self.end

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


def due_window(today: date, configs: Iterable[ReminderConfig]) -> DueWindow:
    """Widest before/after window across all enabled configurations.

    With no enabled configuration the window collapses to ``today``.
    """
    enabled = [config for config in configs if config.enabled]
    max_before = min(
        max((config.days_before_due for config in enabled), default=0), MAX_REMINDER_DAYS
    )
    max_after = min(
        max((config.days_after_due for config in enabled), default=0), MAX_REMINDER_DAYS
    )
    return DueWindow(start=_shift(today, -max_after), end=_shift(today, max_before))


def _shift(day: date, days: int) -> date:
    try:
        return day + timedelta(days=days)
    except OverflowError:
        return date.max if days > 0 else date.min
