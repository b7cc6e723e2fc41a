from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from cafe_billing.catalog import CatalogStore
from cafe_billing.lifecycle import BillLifecycleEngine
from cafe_billing.persistence import RecordStore
from cafe_billing.repository import BillRepository

START = datetime(2025, 2, 6, 10, 30, tzinfo=timezone.utc)


class FakeClock:
    """Returns START, then advances one minute per call."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(minutes=1)
        return current


@pytest.fixture
def store(tmp_path):
    return RecordStore(tmp_path / "cafe.db")


@pytest.fixture
def catalog(store):
    return CatalogStore(store)


@pytest.fixture
def repository(store):
    return BillRepository(store)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(repository, clock):
    return BillLifecycleEngine(repository, clock=clock)
