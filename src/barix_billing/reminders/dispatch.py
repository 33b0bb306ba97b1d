"""Daily sweep that sends due-date reminders at most once per invoice and type.

The sweep is sequential. Each invoice gets its own result entry and a
failure on one invoice never stops the others; only failing to load
configuration or candidates aborts the run.

Delivery is best-effort logged: the log row is written after the send
succeeds, and a log failure after a successful send is reported as a
warning rather than undone (there is no way to recall an email).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

import structlog

from barix_billing.reminders.eligibility import (
    DueWindow,
    ReminderConfig,
    ReminderType,
    due_window,
    evaluate_reminder,
    parse_due_date,
)
from barix_billing.reminders.sender import ReminderSender
from barix_billing.repositories.base import (
    InvoiceRepository,
    ReminderCandidate,
    ReminderConfigRepository,
    ReminderLogConflictError,
    ReminderLogStore,
)

logger = structlog.get_logger(__name__)


class DispatchError(Exception):
    """The sweep could not run at all."""

    pass


class SkipReason:
    NO_CONFIG = "no_reminder_config"
    DISABLED = "reminders_disabled"
    INVALID_DUE_DATE = "invalid_due_date"
    NOT_DUE = "not_due"
    ALREADY_LOGGED = "already_logged"


@dataclass
class ReminderResult:
    """Outcome for a single invoice in a sweep."""

    invoice_id: str
    owner_id: str
    ok: bool
    reminder_type: ReminderType | None = None
    skipped: str | None = None
    sent: bool = False
    error: str | None = None
    warning: str | None = None
    status_code: int | None = None
    payload: Any = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"invoiceId": self.invoice_id, "ownerId": self.owner_id}
        if self.reminder_type is not None:
            result["reminderType"] = self.reminder_type.value
        result["ok"] = self.ok
        if self.skipped:
            result["skipped"] = self.skipped
        if self.sent:
            result["sent"] = True
        if self.error:
            result["error"] = self.error
        if self.warning:
            result["warning"] = self.warning
        if self.status_code is not None:
            result["status"] = self.status_code
        if self.payload is not None:
            result["payload"] = self.payload
        return result


@dataclass
class DispatchReport:
    """Aggregate report returned by one sweep."""

    today: date
    window: DueWindow
    attempted: int = 0
    sent: int = 0
    results: list[ReminderResult] = field(default_factory=list)

    def add(self, result: ReminderResult) -> None:
        self.results.append(result)
        if result.reminder_type is not None:
            self.attempted += 1
        if result.sent:
            self.sent += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": True,
            "today": self.today.isoformat(),
            "due_window": self.window.to_dict(),
            "attempted": self.attempted,
            "sent": self.sent,
            "results": [result.to_dict() for result in self.results],
        }


class ReminderDispatcher:
    """Evaluates candidate invoices and sends reminders that are due today."""

    def __init__(
        self,
        invoices: InvoiceRepository,
        configs: ReminderConfigRepository,
        log_store: ReminderLogStore,
        sender: ReminderSender,
        default_config: ReminderConfig | None = None,
    ):
        self._invoices = invoices
        self._configs = configs
        self._log_store = log_store
        self._sender = sender
        self._default_config = default_config
        self._logger = logger.bind(component="reminder_dispatcher")

    async def run(self, today: date | None = None) -> DispatchReport:
        """Run one sweep.

        Args:
            today: Calendar date to evaluate against. Defaults to the
                server's local date.

        Raises:
            DispatchError: If configs or candidate invoices cannot be loaded.
        """
        today = today or date.today()

        try:
            configs = await self._configs.load_reminder_configs()
        except Exception as e:
            raise DispatchError(f"Failed to load reminder configs: {e}") from e

        window_configs = list(configs.values())
        if self._default_config is not None:
            window_configs.append(self._default_config)
        window = due_window(today, window_configs)

        try:
            candidates = await self._invoices.list_reminder_candidates(window)
        except Exception as e:
            raise DispatchError(f"Failed to load candidate invoices: {e}") from e

        self._logger.info(
            "reminder_sweep_started",
            today=today.isoformat(),
            window_start=window.start.isoformat(),
            window_end=window.end.isoformat(),
            candidates=len(candidates),
        )

        report = DispatchReport(today=today, window=window)
        for candidate in candidates:
            report.add(await self._process(candidate, configs, today))

        self._logger.info(
            "reminder_sweep_completed",
            today=today.isoformat(),
            attempted=report.attempted,
            sent=report.sent,
        )
        return report

    def _config_for(
        self, owner_id: str, configs: dict[str, ReminderConfig]
    ) -> ReminderConfig | None:
        return configs.get(owner_id, self._default_config)

    async def _process(
        self,
        candidate: ReminderCandidate,
        configs: dict[str, ReminderConfig],
        today: date,
    ) -> ReminderResult:
        invoice_id = candidate.invoice_id
        owner_id = candidate.owner_id

        def skipped(reason: str, reminder_type: ReminderType | None = None) -> ReminderResult:
            return ReminderResult(
                invoice_id=invoice_id,
                owner_id=owner_id,
                ok=True,
                reminder_type=reminder_type,
                skipped=reason,
            )

        config = self._config_for(owner_id, configs)
        if config is None:
            return skipped(SkipReason.NO_CONFIG)
        if not config.enabled:
            return skipped(SkipReason.DISABLED)

        due_date = parse_due_date(candidate.due_date)
        if due_date is None:
            self._logger.warning(
                "invalid_due_date", invoice_id=invoice_id, due_date=candidate.due_date
            )
            return skipped(SkipReason.INVALID_DUE_DATE)

        reminder_type = evaluate_reminder(today, due_date, config)
        if reminder_type is ReminderType.NONE:
            return skipped(SkipReason.NOT_DUE)

        log = self._logger.bind(invoice_id=invoice_id, reminder_type=reminder_type.value)

        try:
            already_sent = await self._log_store.exists_for(invoice_id, reminder_type)
        except Exception as e:
            log.error("reminder_log_check_failed", error=str(e))
            return ReminderResult(
                invoice_id=invoice_id,
                owner_id=owner_id,
                ok=False,
                reminder_type=reminder_type,
                error=str(e),
            )

        if already_sent:
            log.debug("reminder_already_logged")
            return skipped(SkipReason.ALREADY_LOGGED, reminder_type)

        try:
            outcome = await self._sender.send(invoice_id, reminder_type)
        except Exception as e:
            log.error("reminder_send_failed", error=str(e))
            return ReminderResult(
                invoice_id=invoice_id,
                owner_id=owner_id,
                ok=False,
                reminder_type=reminder_type,
                error=str(e),
            )

        if not outcome.ok:
            log.warning(
                "reminder_send_failed", status_code=outcome.status_code, error=outcome.error
            )
            return ReminderResult(
                invoice_id=invoice_id,
                owner_id=owner_id,
                ok=False,
                reminder_type=reminder_type,
                error=outcome.error,
                status_code=outcome.status_code,
                payload=outcome.payload,
            )

        if outcome.skipped:
            log.info("reminder_send_skipped", reason=outcome.skipped)
            return skipped(outcome.skipped, reminder_type)

        warning = None
        try:
            await self._log_store.insert(invoice_id, reminder_type)
        except ReminderLogConflictError:
            warning = "Sent but already logged by a concurrent run"
            log.warning("reminder_log_conflict")
        except Exception as e:
            warning = f"Sent but failed to log: {e}"
            log.error("reminder_log_write_failed", error=str(e))

        log.info("reminder_sent")
        return ReminderResult(
            invoice_id=invoice_id,
            owner_id=owner_id,
            ok=True,
            reminder_type=reminder_type,
            sent=True,
            warning=warning,
        )
