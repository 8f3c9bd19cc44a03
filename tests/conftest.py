"""Shared fixtures."""

from datetime import datetime
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest

from stillhere.db.models import ScheduledWake, WakeKind
from stillhere.db.store import MemoryStore, StoreError
from stillhere.engine.contacts import ContactRegistry
from stillhere.engine.ledger import CheckInLedger

UTC = ZoneInfo("UTC")

# Day 0 of most scenarios: a Sunday morning
DAY0 = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


class FailingStore:
    """Store whose writes always fail."""

    def __init__(self):
        self.data: dict[str, bytes] = {}

    async def get(self, key: str) -> bytes | None:
        return self.data.get(key)

    async def set(self, key: str, data: bytes) -> None:
        raise StoreError("disk full")


class RecordingTrigger:
    """Trigger source that remembers what it was asked to do."""

    def __init__(self):
        self.scheduled: list[ScheduledWake] = []
        self.cancelled: list[WakeKind] = []
        self.completed: list[tuple[WakeKind, str | None, bool]] = []

    def schedule(self, wake: ScheduledWake) -> None:
        self.scheduled.append(wake)

    def cancel(self, kind: WakeKind) -> None:
        self.cancelled.append(kind)

    def complete(self, kind: WakeKind, token: str | None, success: bool) -> None:
        self.completed.append((kind, token, success))


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def ledger(store):
    return CheckInLedger(store, UTC)


@pytest.fixture
def registry(store):
    return ContactRegistry(store, premium_enabled=True)


@pytest.fixture
def trigger():
    return RecordingTrigger()


@pytest.fixture
def local():
    notifier = AsyncMock()
    notifier.remind = AsyncMock()
    notifier.acknowledge_emergency = AsyncMock()
    return notifier
