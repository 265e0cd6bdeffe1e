# =============================================================================
# cleantrack_core/offline/collection_cache.py
# Typed Local Cache per Collection
# =============================================================================
"""
One cache object per collection, each bound to its own fixed snapshot key,
so tasks can never be written into the area slot or the other way round.
"""

from __future__ import annotations
import json
from typing import Any, Generic, List, Optional, Sequence, TypeVar
import logging

from cleantrack_core.errors import CleanTrackError, LocalCacheError
from cleantrack_core.models import Area, Task
from cleantrack_core.offline.local_database import LocalDatabase

logger = logging.getLogger(__name__)

T = TypeVar("T", Task, Area)


class _CollectionCache(Generic[T]):
    KEY: str = ""

    def __init__(self, db: LocalDatabase):
        self.db = db

    def _encode(self, item: T) -> Any:
        return item.to_snapshot()

    def _decode(self, record: Any) -> T:
        raise NotImplementedError

    def get(self) -> Optional[List[T]]:
        """
        Read the snapshot back.

        Returns:
            The cached collection, or None if nothing was ever stored

        Raises:
            LocalCacheError: if the stored payload cannot be decoded
        """
        payload = self.db.get_snapshot(self.KEY)
        if payload is None:
            return None

        try:
            records = json.loads(payload)
        except json.JSONDecodeError as e:
            raise LocalCacheError(f"Snapshot is not valid JSON: {e}", key=self.KEY)

        if not isinstance(records, list):
            raise LocalCacheError("Snapshot is not a list", key=self.KEY)

        try:
            return [self._decode(record) for record in records]
        except (KeyError, TypeError, AttributeError, CleanTrackError) as e:
            raise LocalCacheError(f"Snapshot holds a malformed record: {e}", key=self.KEY)

    def set(self, items: Sequence[T]) -> None:
        self.db.set_snapshot(self.KEY, json.dumps([self._encode(item) for item in items]))
        logger.debug(f"Cached {len(items)} records under {self.KEY}")


class TaskCache(_CollectionCache[Task]):
    """Snapshot slot for the task collection."""
    KEY = "cleantrack_tasks_v1"

    def _decode(self, record: Any) -> Task:
        return Task.from_snapshot(record)


class AreaCache(_CollectionCache[Area]):
    """Snapshot slot for the area collection."""
    KEY = "cleantrack_areas_v1"

    def _decode(self, record: Any) -> Area:
        return Area.from_snapshot(record)
