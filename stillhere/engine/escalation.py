"""Escalation tiers and the reminder/emergency wake state machine."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol

from stillhere.bot.formatters import REMINDER_TEXT
from stillhere.channels.base import LocalNotifier
from stillhere.db.models import CheckInEvent, ScheduledWake, WakeKind
from stillhere.engine.ledger import CheckInLedger, LedgerStatus
from stillhere.engine.notifier import EmergencyNotifier, NotificationReport
from stillhere.utils.constants import (
    EMERGENCY_AFTER_DAYS,
    EMERGENCY_WAKE_INTERVAL,
    REMINDER_AFTER_DAYS,
    REMINDER_WAKE_INTERVAL,
    EscalationTier,
)

logger = logging.getLogger(__name__)


def classify_tier(status: LedgerStatus) -> EscalationTier:
    """Map a ledger status onto an escalation tier.

    Examples:
    - checked in earlier today: FRESH
    - checked in yesterday evening, 10 hours ago: DUE
    - 30 hours since the last check-in: OVERDUE
    - 49 hours, or no check-in at all: CRITICAL
    """
    if status.has_checked_in_today:
        return EscalationTier.FRESH
    if status.elapsed_days >= EMERGENCY_AFTER_DAYS:
        return EscalationTier.CRITICAL
    if status.elapsed_days >= REMINDER_AFTER_DAYS:
        return EscalationTier.OVERDUE
    return EscalationTier.DUE


class SchedulerState(str, Enum):
    IDLE = "idle"
    REMINDER_PENDING = "reminder_pending"
    EMERGENCY_PENDING = "emergency_pending"


class TriggerSource(Protocol):
    """Whatever wakes the process up later (job queue, OS task scheduler...)."""

    def schedule(self, wake: ScheduledWake) -> None: ...

    def cancel(self, kind: WakeKind) -> None: ...

    def complete(self, kind: WakeKind, token: str | None, success: bool) -> None: ...


@dataclass
class WakeResult:
    """What a single wake did. ``completed`` is always True once returned."""

    kind: WakeKind
    completed: bool = True
    stale: bool = False
    status: LedgerStatus | None = None
    reminder_sent: bool = False
    report: NotificationReport | None = None
    next_wake: ScheduledWake | None = None


class EscalationScheduler:
    """Owns the single pending wake per kind and reacts to check-ins and wakes.

    Arming a wake replaces the previous token of that kind, so only the most
    recently armed wake is honoured. Whether a wake does anything is decided
    from the ledger at wake time, never from when the wake was scheduled.
    """

    def __init__(
        self,
        ledger: CheckInLedger,
        notifier: EmergencyNotifier,
        local: LocalNotifier,
        trigger: TriggerSource,
        reminder_interval: timedelta = REMINDER_WAKE_INTERVAL,
        emergency_interval: timedelta = EMERGENCY_WAKE_INTERVAL,
    ):
        self.ledger = ledger
        self.notifier = notifier
        self.local = local
        self.trigger = trigger
        self.intervals = {
            WakeKind.REMINDER: reminder_interval,
            WakeKind.EMERGENCY: emergency_interval,
        }
        self._pending: dict[WakeKind, ScheduledWake] = {}

    @property
    def pending(self) -> dict[WakeKind, ScheduledWake]:
        return dict(self._pending)

    @property
    def state(self) -> SchedulerState:
        """The wake that will fire next decides the state."""
        if not self._pending:
            return SchedulerState.IDLE
        upcoming = min(self._pending.values(), key=lambda wake: wake.not_before)
        if upcoming.kind is WakeKind.REMINDER:
            return SchedulerState.REMINDER_PENDING
        return SchedulerState.EMERGENCY_PENDING

    def tier(self, now: datetime) -> EscalationTier:
        return classify_tier(self.ledger.status(now))

    def is_current(self, kind: WakeKind, token: str) -> bool:
        wake = self._pending.get(kind)
        return wake is not None and wake.token == token

    def arm(self, kind: WakeKind, not_before: datetime) -> ScheduledWake:
        """Schedule the next wake of ``kind``, superseding any pending one."""
        if self._pending.pop(kind, None) is not None:
            self._cancel(kind)

        wake = ScheduledWake(kind=kind, not_before=not_before)
        self._pending[kind] = wake

        try:
            self.trigger.schedule(wake)
        except Exception as e:
            logger.error(f"Trigger source rejected {kind.value} wake: {e}")

        logger.debug(f"Armed {kind.value} wake for {not_before.isoformat()}")
        return wake

    def cancel_all(self) -> None:
        for kind in list(self._pending):
            del self._pending[kind]
            self._cancel(kind)

    async def check_in(self, now: datetime) -> CheckInEvent:
        """Record a check-in and reset escalation."""
        event = await self.ledger.record(now)
        self.on_check_in(event.timestamp)
        return event

    def on_check_in(self, now: datetime) -> None:
        """Re-arm both wakes relative to a fresh check-in."""
        self.cancel_all()
        self.arm(WakeKind.REMINDER, now + self.intervals[WakeKind.REMINDER])
        self.arm(WakeKind.EMERGENCY, now + self.intervals[WakeKind.EMERGENCY])
        logger.info("Escalation reset by check-in")

    def restore(self, now: datetime) -> None:
        """Re-arm wakes after a restart from the persisted ledger.

        Wakes whose time already passed are armed for ``now`` so they are
        caught up immediately. With no check-in history the scheduler stays
        idle.
        """
        last = self.ledger.last_check_in()
        if last is None:
            logger.info("Startup recovery: no check-ins yet, scheduler idle")
            return

        for kind, interval in self.intervals.items():
            self.arm(kind, max(last.timestamp + interval, now))

        logger.info(f"Startup recovery complete (state: {self.state.value})")

    async def on_wake(self, kind: WakeKind, now: datetime, token: str | None = None) -> WakeResult:
        """Handle a wake from the trigger source.

        The next wake of the same kind is armed before any other work, and
        completion is always reported, whatever happens downstream.
        """
        if token is not None and not self.is_current(kind, token):
            logger.info(f"Ignoring superseded {kind.value} wake")
            self._complete(kind, token)
            return WakeResult(kind=kind, stale=True)

        result = WakeResult(kind=kind)
        result.next_wake = self.arm(kind, now + self.intervals[kind])

        try:
            result.status = self.ledger.status(now)
            if kind is WakeKind.REMINDER:
                result.reminder_sent = await self._handle_reminder(now, result.status)
            else:
                result.report = await self._handle_emergency(now, result.status)
        except Exception as e:
            logger.error(f"Error handling {kind.value} wake: {e}", exc_info=True)
        finally:
            self._complete(kind, token)

        return result

    async def _handle_reminder(self, now: datetime, status: LedgerStatus) -> bool:
        if not self.ledger.needs_reminder(now):
            return False

        try:
            await self.local.remind(REMINDER_TEXT)
        except Exception as e:
            logger.error(f"Failed to show check-in reminder: {e}")
        else:
            logger.info(f"Check-in reminder sent ({status.elapsed_days} day(s) elapsed)")
        return True

    async def _handle_emergency(self, now: datetime, status: LedgerStatus) -> NotificationReport | None:
        if not self.ledger.needs_emergency(now):
            return None

        logger.warning(f"No check-in for {status.elapsed_days} day(s), notifying emergency contacts")
        return await self.notifier.notify_all(now, status.elapsed_days)

    def _cancel(self, kind: WakeKind) -> None:
        try:
            self.trigger.cancel(kind)
        except Exception as e:
            logger.error(f"Trigger source failed to cancel {kind.value} wake: {e}")

    def _complete(self, kind: WakeKind, token: str | None) -> None:
        try:
            self.trigger.complete(kind, token, True)
        except Exception as e:
            logger.error(f"Trigger source failed to record {kind.value} completion: {e}")
