# =============================================================================
# cleantrack_core/offline/context.py
# Explicit Wiring of the Sync Layer
# =============================================================================
"""
SyncContext holds every handle the sync service talks to. It is built once
at start-up and handed to ``SyncService``; nothing in the sync layer reaches
for process-wide globals.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Protocol
import logging

from cleantrack_core.config import SyncSettings
from cleantrack_core.offline.collection_cache import AreaCache, TaskCache
from cleantrack_core.offline.local_database import LocalDatabase
from cleantrack_core.offline.propagator import RemotePropagator
from cleantrack_core.offline.remote_gateway import (
    AreaGateway,
    TaskGateway,
    create_supabase_client,
)

logger = logging.getLogger(__name__)


class CollectionGateway(Protocol):
    """What the sync service needs from a remote collection."""

    def list(self) -> List[Dict[str, Any]]: ...

    def upsert(self, record: Dict[str, Any]) -> None: ...

    def delete(self, key: Any) -> None: ...


@dataclass
class SyncContext:
    """Handles to the local replica, the remote replica and the propagator."""
    task_cache: TaskCache
    area_cache: AreaCache
    task_gateway: CollectionGateway
    area_gateway: CollectionGateway
    propagator: RemotePropagator
    settings: SyncSettings = field(default_factory=SyncSettings)
    today: Callable[[], date] = date.today

    def close(self, wait: bool = False) -> None:
        """Stop background propagation and release the local database."""
        self.propagator.shutdown(wait=wait)
        self.task_cache.db.close()
        if self.area_cache.db is not self.task_cache.db:
            self.area_cache.db.close()


def build_context(settings: SyncSettings) -> SyncContext:
    """
    Wire the SQLite cache and the Supabase gateways from settings.

    Args:
        settings: Resolved SyncSettings

    Returns:
        Ready-to-use SyncContext
    """
    db = LocalDatabase(settings.local_db_path)
    db.initialize()

    client = create_supabase_client(settings)
    context = SyncContext(
        task_cache=TaskCache(db),
        area_cache=AreaCache(db),
        task_gateway=TaskGateway(client, settings.tasks_table),
        area_gateway=AreaGateway(client, settings.areas_table),
        propagator=RemotePropagator(max_workers=settings.propagation_workers),
        settings=settings,
    )
    logger.info(f"Sync context built. Remote configured: {client is not None}")
    return context
