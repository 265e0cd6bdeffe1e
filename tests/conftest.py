# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import pytest
from datetime import date
from typing import Any, Dict, List
from unittest.mock import MagicMock

from cleantrack_core.config import SyncSettings
from cleantrack_core.errors import RemoteStoreError
from cleantrack_core.models import Area, Task, TaskStatus
from cleantrack_core.offline import (
    AreaCache,
    LocalDatabase,
    RemotePropagator,
    SyncContext,
    TaskCache,
)


FIXED_TODAY = date(2024, 3, 12)  # a Tuesday


# =============================================================================
# FAKES
# =============================================================================

class FakeGateway:
    """In-memory stand-in for a remote collection."""

    def __init__(self, key_column: str, records: List[Dict[str, Any]] = None):
        self.key_column = key_column
        self.records: Dict[Any, Dict[str, Any]] = {}
        for record in records or []:
            self.records[record[key_column]] = dict(record)
        self.fail = False
        self.calls: List[tuple] = []

    def _check(self, operation: str) -> None:
        if self.fail:
            raise RemoteStoreError("remote unreachable", operation=operation)

    def list(self) -> List[Dict[str, Any]]:
        self.calls.append(("list",))
        self._check("list")
        return [dict(record) for record in self.records.values()]

    def upsert(self, record: Dict[str, Any]) -> None:
        self.calls.append(("upsert", record[self.key_column]))
        self._check("upsert")
        self.records[record[self.key_column]] = dict(record)

    def delete(self, key: Any) -> None:
        self.calls.append(("delete", key))
        self._check("delete")
        self.records.pop(key, None)

    def mutations(self) -> List[tuple]:
        return [call for call in self.calls if call[0] != "list"]


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def sample_areas():
    """Three areas in two categories"""
    return [
        Area("Lobby", "Indoor"),
        Area("Restrooms", "Indoor"),
        Area("Pool Area", "Outdoor"),
    ]


@pytest.fixture
def sample_tasks():
    """Tasks spread over 2024-03-09 .. 2024-03-17 plus one in another year"""
    return [
        Task("t1", "2024-03-09", "Lobby", "Vacuum Carpet", "Budi", TaskStatus.COMPLETED, "", "Indoor"),
        Task("t2", "2024-03-10", "Lobby", "Polish Floor", "Siti", TaskStatus.PENDING, "", "Indoor"),
        Task("t3", "2024-03-12", "Restrooms", "Sanitize Sinks", "Siti", TaskStatus.IN_PROGRESS, "Soap low", "Indoor"),
        Task("t4", "2024-03-12", "Pool Area", "Clean Filters", "Agus", TaskStatus.INSPECTED, "", "Outdoor"),
        Task("t5", "2024-03-16", "Lobby", "Wipe Glass", "Budi", TaskStatus.COMPLETED, "", "Indoor"),
        Task("t6", "2024-03-17", "Restrooms", "Mop Floor", "Joko", TaskStatus.PENDING, "", "Indoor"),
        Task("t7", "2023-03-12", "Lobby", "Vacuum Carpet", "Budi", TaskStatus.COMPLETED, "", "Indoor"),
    ]


# =============================================================================
# SYNC LAYER FIXTURES
# =============================================================================

@pytest.fixture
def local_db(tmp_path):
    """Initialized SQLite snapshot store in a temp directory"""
    db = LocalDatabase(tmp_path / "cleantrack.db")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def task_gateway():
    return FakeGateway("id")


@pytest.fixture
def area_gateway():
    return FakeGateway("name")


@pytest.fixture
def sync_context(local_db, task_gateway, area_gateway):
    """Context with fake gateways and an inline propagator"""
    return SyncContext(
        task_cache=TaskCache(local_db),
        area_cache=AreaCache(local_db),
        task_gateway=task_gateway,
        area_gateway=area_gateway,
        propagator=RemotePropagator(max_workers=0),
        settings=SyncSettings(local_db_path=local_db.db_path),
        today=lambda: FIXED_TODAY,
    )


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_supabase():
    """Mock Supabase client"""
    mock_client = MagicMock()
    mock_client.table.return_value.select.return_value.range.return_value.execute.return_value.data = []
    mock_client.table.return_value.upsert.return_value.execute.return_value = MagicMock()
    mock_client.table.return_value.delete.return_value.eq.return_value.execute.return_value = MagicMock()
    return mock_client
