"""Shared fixtures for tiersource tests."""

from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from tiersource.config import Settings, reset_settings
from tiersource.resolver import TieredSourceResolver


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture(autouse=True)
def _clean_settings():
    """Reset the settings singleton before and after each test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def messages() -> List[str]:
    return []


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(datetime(2024, 1, 1, tzinfo=timezone.utc))


@pytest.fixture
def resolver(messages: List[str], clock: ManualClock) -> TieredSourceResolver:
    return TieredSourceResolver(settings=Settings(), sink=messages.append, clock=clock)
