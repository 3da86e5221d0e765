"""
Global pytest fixtures for the Link Platform test suite.

Responsibilities:
    - Provide a controllable clock so expiration can be tested on the exact boundary
    - Provide isolated in-memory Storage and a LinkManager wired to it
    - Provide a fresh FastAPI TestClient via the app factory for integration tests

Why an app factory?
    Using `create_app()` ensures each test gets fresh in-memory state,
    eliminating cross-test flakiness.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import pytest
from fastapi.testclient import TestClient

from main import create_app
from link_platform.manager.link_manager import LinkManager
from link_platform.manager.strategies import BaseStrategy
from link_platform.storage.storage import Storage


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2025, 7, 10, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now

    def set(self, when: datetime) -> None:
        self.now = when


class ScriptedStrategy(BaseStrategy):
    """Returns pre-set codes in order; used to force collisions."""

    def __init__(self, codes: Iterable[str]):
        self._codes = iter(codes)
        self.calls = 0

    def generate(self, *, length=None) -> str:
        self.calls += 1
        return next(self._codes)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def storage() -> Storage:
    """Fresh in-memory Storage backend."""
    return Storage()


@pytest.fixture
def manager(storage: Storage, clock: ManualClock) -> LinkManager:
    """LinkManager over the storage fixture, driven by the manual clock."""
    return LinkManager(storage=storage, clock=clock)


@pytest.fixture
def client(manager: LinkManager) -> TestClient:
    """
    Fresh TestClient serving the `manager` fixture.

    Tests can reach the same manager (and clock) to arrange state directly.
    """
    app = create_app(manager=manager)
    return TestClient(app, follow_redirects=False)
