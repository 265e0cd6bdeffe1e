# =============================================================================
# cleantrack_core/offline/sync_service.py
# Local-First Synchronization Service
# =============================================================================
"""
SyncService - the single API the app uses for tasks and areas.

Reads are read-through with fallback:

    remote list ──non-empty──► overwrite local snapshot ──► session copy
         │
         └─failed / empty──► local snapshot ──absent/corrupt──► seed collection

Writes are optimistic:

    1. replace the session copy (caller sees the change immediately)
    2. rewrite the local snapshot
    3. hand the remote call to the propagator (fire-and-forget, no retry)

The session copy is the source of truth while the app runs; the local
snapshot and the remote tables are replicas. A write made while offline is
never replayed, so the remote can diverge until the same record is written
again.
"""

from __future__ import annotations
import sqlite3
from dataclasses import dataclass, replace
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar
import logging

from cleantrack_core.errors import (
    AreaValidationError,
    DuplicateAreaError,
    LocalCacheError,
    TaskValidationError,
)
from cleantrack_core.logging import LogContext
from cleantrack_core.models import Area, Task, seed_areas, seed_tasks
from cleantrack_core.offline.context import CollectionGateway, SyncContext

logger = logging.getLogger(__name__)

R = TypeVar("R", Task, Area)


class DataSource(Enum):
    """Where a loaded collection came from."""
    REMOTE = "remote"
    CACHE = "cache"
    SEED = "seed"
    SESSION = "session"


@dataclass(frozen=True)
class LoadResult:
    """Both collections plus the tier each one was answered from."""
    tasks: Tuple[Task, ...]
    areas: Tuple[Area, ...]
    task_source: DataSource
    area_source: DataSource

    @property
    def is_remote(self) -> bool:
        return self.task_source is DataSource.REMOTE and self.area_source is DataSource.REMOTE


def _upsert(items: Sequence[R], item: R, key: Callable[[R], Any], prepend: bool) -> List[R]:
    """Replace the entry with the same key in place, or add it."""
    new_key = key(item)
    replaced = False
    result = []
    for existing in items:
        if key(existing) == new_key:
            result.append(item)
            replaced = True
        else:
            result.append(existing)

    if not replaced:
        if prepend:
            result.insert(0, item)
        else:
            result.append(item)
    return result


def _task_key(task: Task) -> str:
    return task.id


def _area_key(area: Area) -> str:
    return area.name


def _decode_rows(
    records: Sequence[Dict[str, Any]],
    decode: Callable[[Dict[str, Any]], R],
    label: str,
) -> List[R]:
    """Decode remote rows one by one; a malformed row is skipped, not fatal."""
    decoded = []
    for record in records:
        try:
            decoded.append(decode(record))
        except (TaskValidationError, AreaValidationError, KeyError) as e:
            logger.warning(f"Skipping malformed remote {label} row {record.get('id', record.get('name'))!r}: {e}")
    return decoded


class SyncService:
    """
    Owns the in-memory task and area collections for the session.

    Usage:
        service = SyncService(build_context(load_settings()))
        result = service.load()
        service.upsert_task(Task.new("2024-03-12", "Lobby", "Vacuum Carpet"))
    """

    def __init__(self, context: SyncContext):
        self.context = context
        self._tasks: Optional[List[Task]] = None
        self._areas: Optional[List[Area]] = None
        self._task_source: Optional[DataSource] = None
        self._area_source: Optional[DataSource] = None

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def tasks(self) -> Tuple[Task, ...]:
        return tuple(self._ensure_tasks())

    @property
    def areas(self) -> Tuple[Area, ...]:
        return tuple(self._ensure_areas())

    @property
    def area_names(self) -> List[str]:
        return [area.name for area in self._ensure_areas()]

    @property
    def categories(self) -> List[str]:
        """Distinct area categories in first-seen order."""
        return list(dict.fromkeys(area.category for area in self._ensure_areas()))

    def get_task(self, task_id: str) -> Optional[Task]:
        return next((task for task in self._ensure_tasks() if task.id == task_id), None)

    def get_area(self, name: str) -> Optional[Area]:
        return next((area for area in self._ensure_areas() if area.name == name), None)

    # =========================================================================
    # LOADING
    # =========================================================================

    def load(self, refresh: bool = False) -> LoadResult:
        """Load both collections; never raises."""
        with LogContext(logger, "Loading collections", level=logging.DEBUG) as step:
            tasks = self.load_tasks(refresh=refresh)
            areas = self.load_areas(refresh=refresh)
            step.summary = (
                f"{len(tasks)} tasks ({self._task_source.value}), "
                f"{len(areas)} areas ({self._area_source.value})"
            )
        return LoadResult(
            tasks=tasks,
            areas=areas,
            task_source=self._task_source,
            area_source=self._area_source,
        )

    def load_tasks(self, refresh: bool = False) -> Tuple[Task, ...]:
        """
        Return the task collection.

        The first call (or ``refresh=True``) goes through remote, cache and
        seed in that order; later calls answer from the session copy.
        """
        if self._tasks is not None and not refresh:
            self._task_source = DataSource.SESSION
            return tuple(self._tasks)

        self._tasks, self._task_source = self._read_through(
            "tasks",
            self.context.task_gateway,
            self.context.task_cache,
            Task.from_wire,
            lambda: seed_tasks(self.context.today()),
        )
        return tuple(self._tasks)

    def load_areas(self, refresh: bool = False) -> Tuple[Area, ...]:
        """Return the area collection; same fallback rules as ``load_tasks``."""
        if self._areas is not None and not refresh:
            self._area_source = DataSource.SESSION
            return tuple(self._areas)

        self._areas, self._area_source = self._read_through(
            "areas",
            self.context.area_gateway,
            self.context.area_cache,
            Area.from_wire,
            seed_areas,
        )
        return tuple(self._areas)

    def _read_through(
        self,
        label: str,
        gateway: CollectionGateway,
        cache,
        decode: Callable[[Dict[str, Any]], R],
        seed: Callable[[], List[R]],
    ) -> Tuple[List[R], DataSource]:
        try:
            records = gateway.list()
        except Exception as e:
            logger.warning(f"Remote {label} unavailable, falling back to local replica: {e}")
        else:
            remote = _decode_rows(records, decode, label)
            if remote or not self.context.settings.reseed_on_empty_remote:
                self._write_cache(cache, remote, label)
                logger.info(f"Loaded {len(remote)} {label} from remote")
                return remote, DataSource.REMOTE
            logger.info(f"Remote {label} is empty, falling back to local replica")

        try:
            cached = cache.get()
        except (LocalCacheError, sqlite3.Error) as e:
            logger.warning(f"Local {label} snapshot unreadable, ignoring it: {e}")
            cached = None

        if cached:
            logger.info(f"Loaded {len(cached)} {label} from local cache")
            return cached, DataSource.CACHE

        seeded = seed()
        self._write_cache(cache, seeded, label)
        logger.info(f"No stored {label}, using {len(seeded)} built-in records")
        return seeded, DataSource.SEED

    # =========================================================================
    # TASK MUTATIONS
    # =========================================================================

    def upsert_task(self, task: Task) -> None:
        """Insert a new task at the top or replace the one with the same id."""
        self._tasks = _upsert(self._ensure_tasks(), task, _task_key, prepend=True)
        self._persist_tasks()
        self._propagate(
            f"upsert task {task.id}",
            partial(self.context.task_gateway.upsert, task.to_wire()),
        )

    def delete_task(self, task_id: str) -> None:
        self._tasks = [task for task in self._ensure_tasks() if task.id != task_id]
        self._persist_tasks()
        self._propagate(
            f"delete task {task_id}",
            partial(self.context.task_gateway.delete, task_id),
        )

    # =========================================================================
    # AREA MUTATIONS
    # =========================================================================

    def add_area(self, area: Area) -> None:
        """
        Add a new area after checking its name is free.

        Raises:
            AreaValidationError: blank name or category
            DuplicateAreaError: the name is already used
        """
        self._check_area(area)
        if self.get_area(area.name) is not None:
            raise DuplicateAreaError(area.name)
        self.upsert_area(area)

    def upsert_area(self, area: Area) -> None:
        """Insert or replace an area by name, without the duplicate guard."""
        self._areas = _upsert(self._ensure_areas(), area, _area_key, prepend=False)
        self._persist_areas()
        self._propagate(
            f"upsert area {area.name}",
            partial(self.context.area_gateway.upsert, area.to_wire()),
        )

    def delete_area(self, name: str) -> None:
        """Remove an area. Tasks keep referring to the old name."""
        self._areas = [area for area in self._ensure_areas() if area.name != name]
        self._persist_areas()
        self._propagate(
            f"delete area {name}",
            partial(self.context.area_gateway.delete, name),
        )

    def rename_area(self, old_name: str, new_area: Area) -> List[Task]:
        """
        Replace area ``old_name`` with ``new_area`` and cascade into tasks.

        Every task whose ``area`` equals ``old_name`` gets the new name and
        category in the same step. Remotely the area is deleted under its old
        key and upserted under the new one, in that order.

        Returns:
            The tasks that were rewritten
        """
        self._check_area(new_area)
        if self.get_area(old_name) is None:
            raise AreaValidationError("Area not found", name=old_name)
        if new_area.name != old_name and self.get_area(new_area.name) is not None:
            raise DuplicateAreaError(new_area.name)

        self._areas = [new_area if area.name == old_name else area for area in self._ensure_areas()]
        cascaded = self._rewrite_tasks(
            lambda task: task.area == old_name,
            lambda task: task.with_area(new_area),
        )
        self._persist_areas()
        self._persist_tasks()

        area_calls = [partial(self.context.area_gateway.upsert, new_area.to_wire())]
        if new_area.name != old_name:
            area_calls.insert(0, partial(self.context.area_gateway.delete, old_name))
        self._propagate(f"rename area {old_name} -> {new_area.name}", *area_calls)
        self._propagate_tasks(cascaded)

        logger.info(f"Renamed area {old_name!r} to {new_area.name!r}; {len(cascaded)} tasks updated")
        return cascaded

    def rename_category(self, old_category: str, new_category: str) -> List[Area]:
        """
        Move every area in ``old_category``, and every task recorded at one
        of those areas, to ``new_category``.

        Returns:
            The areas that were rewritten
        """
        new_category = new_category.strip()
        if not new_category:
            raise AreaValidationError("Category is required")
        if new_category == old_category:
            return []

        moved = [Area(area.name, new_category) for area in self._ensure_areas() if area.category == old_category]
        by_name = {area.name: area for area in moved}
        self._areas = [by_name.get(area.name, area) for area in self._ensure_areas()]
        cascaded = self._rewrite_tasks(
            lambda task: task.area in by_name,
            lambda task: replace(task, category=new_category),
        )
        self._persist_areas()
        self._persist_tasks()

        for area in moved:
            self._propagate(
                f"upsert area {area.name}",
                partial(self.context.area_gateway.upsert, area.to_wire()),
            )
        self._propagate_tasks(cascaded)
        return moved

    def delete_category(self, category: str) -> List[Area]:
        """
        Delete every area in ``category``. Tasks are left untouched.

        Returns:
            The areas that were removed
        """
        removed = [area for area in self._ensure_areas() if area.category == category]
        self._areas = [area for area in self._ensure_areas() if area.category != category]
        self._persist_areas()

        for area in removed:
            self._propagate(
                f"delete area {area.name}",
                partial(self.context.area_gateway.delete, area.name),
            )
        return removed

    # =========================================================================
    # STATUS
    # =========================================================================

    def get_status_display(self) -> Dict[str, Any]:
        """Sync status for UI display."""
        return {
            "remote_configured": self.context.settings.remote_configured,
            "task_source": self._task_source.value if self._task_source else None,
            "area_source": self._area_source.value if self._area_source else None,
            "tasks": len(self._tasks or []),
            "areas": len(self._areas or []),
            "propagation": self.context.propagator.get_status_display(),
        }

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _ensure_tasks(self) -> List[Task]:
        if self._tasks is None:
            self.load_tasks()
        return self._tasks

    def _ensure_areas(self) -> List[Area]:
        if self._areas is None:
            self.load_areas()
        return self._areas

    @staticmethod
    def _check_area(area: Area) -> None:
        if not area.name or not area.name.strip():
            raise AreaValidationError("Area name is required")
        if not area.category or not area.category.strip():
            raise AreaValidationError("Area category is required", name=area.name)

    def _rewrite_tasks(
        self,
        matches: Callable[[Task], bool],
        rewrite: Callable[[Task], Task],
    ) -> List[Task]:
        changed: List[Task] = []
        result: List[Task] = []
        for task in self._ensure_tasks():
            if matches(task):
                task = rewrite(task)
                changed.append(task)
            result.append(task)
        self._tasks = result
        return changed

    def _persist_tasks(self) -> None:
        self._write_cache(self.context.task_cache, self._tasks, "tasks")

    def _persist_areas(self) -> None:
        self._write_cache(self.context.area_cache, self._areas, "areas")

    @staticmethod
    def _write_cache(cache, items: Sequence[R], label: str) -> None:
        # The session copy stands even when the replica cannot be written
        try:
            cache.set(items)
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to save {label} to local cache: {e}")

    def _propagate_tasks(self, tasks: Sequence[Task]) -> None:
        for task in tasks:
            self._propagate(
                f"upsert task {task.id}",
                partial(self.context.task_gateway.upsert, task.to_wire()),
            )

    def _propagate(self, label: str, *calls: Callable[[], None]) -> None:
        self.context.propagator.submit(label, *calls)
