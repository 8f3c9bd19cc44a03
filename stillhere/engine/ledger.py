"""Check-in history and staleness computation."""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo

from stillhere.db.models import CheckInEvent
from stillhere.db.store import Store, StoreError
from stillhere.utils.constants import (
    CHECK_IN_HISTORY_KEY,
    EMERGENCY_AFTER_DAYS,
    HISTORY_LIMIT,
    REMINDER_AFTER_DAYS,
)
from stillhere.utils.time_utils import elapsed_days, is_same_local_day

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerStatus:
    """Point-in-time view of how stale the last check-in is."""

    has_checked_in_today: bool
    elapsed_days: int
    last_check_in: CheckInEvent | None = None


class CheckInLedger:
    """Most-recent-first check-in history, capped at HISTORY_LIMIT entries.

    The in-memory history is authoritative for the running process. Writes go
    through the store, but a failed write only gets logged so a check-in is
    never lost to a storage problem.
    """

    def __init__(self, store: Store, zone: tzinfo, limit: int = HISTORY_LIMIT):
        self.store = store
        self.zone = zone
        self.limit = limit
        self._history: list[CheckInEvent] = []

    @property
    def history(self) -> tuple[CheckInEvent, ...]:
        return tuple(self._history)

    async def load(self) -> None:
        """Load persisted history. Unreadable data leaves the ledger empty."""
        try:
            raw = await self.store.get(CHECK_IN_HISTORY_KEY)
        except StoreError as e:
            logger.error(f"Could not load check-in history: {e}")
            return

        if raw is None:
            return

        try:
            events = [CheckInEvent.from_dict(item) for item in json.loads(raw)]
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Discarding corrupt check-in history: {e}")
            return

        events.sort(key=lambda event: event.timestamp, reverse=True)
        self._history = events[: self.limit]
        logger.info(f"Loaded {len(self._history)} check-ins")

    async def record(self, now: datetime) -> CheckInEvent:
        """Record a check-in at ``now`` and persist the trimmed history."""
        last = self.last_check_in()
        if last is not None and now < last.timestamp:
            # Keep the head newest even if the clock went backwards
            logger.warning(
                f"Check-in time {now.isoformat()} is before the last check-in "
                f"{last.timestamp.isoformat()}; using the last check-in time"
            )
            now = last.timestamp

        event = CheckInEvent(timestamp=now)
        self._history.insert(0, event)
        del self._history[self.limit :]

        await self._save()
        logger.info(f"Recorded check-in {event.id} at {now.isoformat()}")
        return event

    def last_check_in(self) -> CheckInEvent | None:
        return self._history[0] if self._history else None

    def status(self, now: datetime) -> LedgerStatus:
        """Compute today/elapsed status relative to ``now``."""
        last = self.last_check_in()
        if last is None:
            return LedgerStatus(has_checked_in_today=False, elapsed_days=elapsed_days(None, now))

        return LedgerStatus(
            has_checked_in_today=is_same_local_day(last.timestamp, now, self.zone),
            elapsed_days=elapsed_days(last.timestamp, now),
            last_check_in=last,
        )

    def needs_reminder(self, now: datetime) -> bool:
        status = self.status(now)
        return status.elapsed_days >= REMINDER_AFTER_DAYS and not status.has_checked_in_today

    def needs_emergency(self, now: datetime) -> bool:
        return self.status(now).elapsed_days >= EMERGENCY_AFTER_DAYS

    async def _save(self) -> None:
        data = json.dumps([event.to_dict() for event in self._history]).encode()
        try:
            await self.store.set(CHECK_IN_HISTORY_KEY, data)
        except StoreError as e:
            logger.error(f"Failed to persist check-in history, keeping it in memory: {e}")
