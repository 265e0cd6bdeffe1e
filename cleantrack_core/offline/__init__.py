# =============================================================================
# cleantrack_core/offline/__init__.py
# Local-First Sync Layer for CleanTrack
# =============================================================================
"""
Local-First Sync Module

The app keeps working whether Supabase is reachable or not.

Architecture:
------------
┌─────────────────────────────────────────────────────────────┐
│                        SyncService                          │
│        (session copy of tasks and areas - apps use this)    │
└─────────────────────────────────────────────────────────────┘
            │ read-through                 │ optimistic write
            ▼                              ▼
┌──────────────────────┐        ┌──────────────────────┐
│ TaskCache/AreaCache  │        │   RemotePropagator   │
│  (SQLite snapshots)  │        │   (background jobs)  │
└──────────────────────┘        └──────────────────────┘
            ▲                              │
            │ fallback                     ▼
┌─────────────────────────────────────────────────────────────┐
│           TaskGateway / AreaGateway (Supabase)              │
└─────────────────────────────────────────────────────────────┘

Usage:
------
from cleantrack_core.config import load_settings
from cleantrack_core.offline import SyncService, build_context

service = SyncService(build_context(load_settings()))
result = service.load()
print(result.task_source)  # DataSource.REMOTE / CACHE / SEED
"""

from cleantrack_core.offline.local_database import LocalDatabase

from cleantrack_core.offline.collection_cache import (
    TaskCache,
    AreaCache,
)

from cleantrack_core.offline.remote_gateway import (
    SupabaseCollectionGateway,
    TaskGateway,
    AreaGateway,
    create_supabase_client,
)

from cleantrack_core.offline.propagator import (
    RemotePropagator,
    PropagationOutcome,
    PropagationState,
)

from cleantrack_core.offline.context import (
    CollectionGateway,
    SyncContext,
    build_context,
)

from cleantrack_core.offline.sync_service import (
    SyncService,
    LoadResult,
    DataSource,
)

__all__ = [
    # Local replica
    "LocalDatabase",
    "TaskCache",
    "AreaCache",
    # Remote replica
    "SupabaseCollectionGateway",
    "TaskGateway",
    "AreaGateway",
    "create_supabase_client",
    # Propagation
    "RemotePropagator",
    "PropagationOutcome",
    "PropagationState",
    # Wiring
    "CollectionGateway",
    "SyncContext",
    "build_context",
    # Main API
    "SyncService",
    "LoadResult",
    "DataSource",
]
