"""
Shared fixtures.

No test touches a real PostgreSQL server: relational tests run against a
temporary SQLite file through aiosqlite.
"""

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from agent_ledger.audit import AuditLogger
from agent_ledger.db import LedgerDatabaseClient
from agent_ledger.ledger.filters import normalize_filters
from agent_ledger.models.ledger import LedgerFilters, LedgerFiltersInput
from agent_ledger.providers import (
    InMemoryLedgerStore,
    MemoryLedgerProvider,
    RelationalLedgerProvider,
)


# Inside the seed window; "today" for the default 30-day range
FIXED_NOW = datetime(2026, 2, 28, 12, 0, tzinfo=timezone.utc)


class RecordingAuditLogger(AuditLogger):
    """Audit logger that keeps events in memory instead of writing them."""

    def __init__(self):
        super().__init__()
        self.events = []

    async def log(self, event) -> bool:
        self.events.append(event)
        return True

    def of_type(self, event_type):
        return [event for event in self.events if event.event_type == event_type]


def make_filters(**raw) -> LedgerFilters:
    return normalize_filters(LedgerFiltersInput.model_validate(raw), now=FIXED_NOW)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def audit_logger() -> RecordingAuditLogger:
    return RecordingAuditLogger()


@pytest.fixture
def memory_provider() -> MemoryLedgerProvider:
    """Fresh seeded ledger per test."""
    return MemoryLedgerProvider(InMemoryLedgerStore())


@pytest.fixture
def seed_window() -> LedgerFilters:
    """Covers every seeded expense (2026-01-26 .. 2026-02-20)."""
    return make_filters(**{"from": "2026-01-01", "to": "2026-02-28"})


@pytest_asyncio.fixture
async def db_client(tmp_path):
    client = LedgerDatabaseClient(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}"
    )
    await client.provision()
    yield client
    await client.dispose()


@pytest_asyncio.fixture
async def relational_provider(db_client, audit_logger) -> RelationalLedgerProvider:
    return RelationalLedgerProvider(client=db_client, audit_logger=audit_logger)


@pytest.fixture
def filters_for():
    """Build canonical filters from wire-shaped raw input, pinned to FIXED_NOW."""
    return make_filters
