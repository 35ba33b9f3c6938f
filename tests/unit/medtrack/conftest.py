"""Shared fixtures: an isolated store over in-memory storage and a fixed clock."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from medtrack.services.database import HealthDatabase
from medtrack.services.scheduler import InMemoryNotificationScheduler, ReminderService
from medtrack.services.storage import InMemoryStorage

FIXED_NOW = datetime(2024, 5, 15, 10, 30, tzinfo=UTC)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def db(storage: InMemoryStorage, clock: FakeClock) -> HealthDatabase:
    return HealthDatabase(storage=storage, clock=clock)


@pytest.fixture
def scheduler() -> InMemoryNotificationScheduler:
    return InMemoryNotificationScheduler()


@pytest.fixture
def reminders(scheduler: InMemoryNotificationScheduler) -> ReminderService:
    return ReminderService(scheduler)
