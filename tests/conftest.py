"""Shared fixtures: in-memory backends and a ready store."""

from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from finsnap.audit import AuditLogger
from finsnap.services.storage import (
    InMemoryAuditStorage,
    InMemoryStorage,
    StorageError,
)
from finsnap.store import SnapshotStore


class FailingStorage(InMemoryStorage):
    """Memory backend whose writes can be switched to fail."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_writes = False

    def set(self, key, value):
        if self.fail_writes:
            raise StorageError("disk full")
        super().set(key, value)


@pytest.fixture
def storage():
    return FailingStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage(max_events=500)


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def clock():
    """Deterministic timestamps one minute apart."""
    start = datetime(2024, 1, 5, 15, 7, tzinfo=timezone.utc)
    ticks = count()
    return lambda: start + timedelta(minutes=next(ticks))


@pytest.fixture
def store(storage, audit_logger, clock):
    ids = count(1)
    return SnapshotStore(
        storage,
        audit_logger=audit_logger,
        clock=clock,
        id_factory=lambda: f"snap-{next(ids)}",
    ).init()


@pytest.fixture
def populated_store(store):
    """A store with one active snapshot holding one item of each kind."""
    store.create_snapshot("January")
    store.add_item("assets", "Savings", 1000, category="cash", liquidity="high")
    store.add_item("assets", "House", 200000, category="property", liquidity="low")
    store.add_item("liabilities", "Mortgage", 150000, term="long-term")
    store.add_item("incomes", "Salary", 5000, category="employment")
    store.add_item("expenses", "Rent", 500, category="essential")
    return store
