# =============================================================================
# cleantrack_core/models.py
# Task and Area Records for CleanTrack
# =============================================================================
"""
Domain records shared by the sync layer and the reporting layer.

Records are immutable; every change produces a replacement value keyed by
``Task.id`` or ``Area.name``. Each record knows three shapes:

- wire record: flat snake_case columns of the remote ``tasks`` / ``areas`` tables
- snapshot record: the camelCase field names kept in the local cache
- the dataclass itself, which the running session holds
"""

from __future__ import annotations
import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from cleantrack_core.errors import TaskValidationError

DATE_FORMAT = "%Y-%m-%d"
DEFAULT_CATEGORY = "General"


class TaskStatus(Enum):
    """Lifecycle of a cleaning job."""
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    INSPECTED = "Inspected"

    @property
    def is_done(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.INSPECTED)


class FilterPeriod(Enum):
    """Reporting windows."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    ALL = "all"


def canonical_date(value: Any) -> str:
    """
    Normalize a date value to canonical ``YYYY-MM-DD``.

    Accepts ``date``/``datetime`` objects and strings already in canonical
    form. Timestamps such as ``2024-03-10T00:00:00`` are cut to their date
    part, which is how the remote store may echo a DATE column.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        raise TaskValidationError("Task date must be a YYYY-MM-DD string", field="date", value=value)

    text = value.strip()[:10]
    try:
        parsed = datetime.strptime(text, DATE_FORMAT).date()
    except ValueError:
        raise TaskValidationError("Task date is not a valid calendar date", field="date", value=value)
    # strptime accepts "2024-3-1"; the canonical form is zero padded
    if parsed.isoformat() != text:
        raise TaskValidationError("Task date is not in YYYY-MM-DD form", field="date", value=value)
    return text


def _coerce_status(value: Any) -> TaskStatus:
    if isinstance(value, TaskStatus):
        return value
    try:
        return TaskStatus(value)
    except ValueError:
        raise TaskValidationError("Unknown task status", field="status", value=value)


def _blank_to_none(value: Any) -> Optional[str]:
    return value if value else None


# =============================================================================
# AREA
# =============================================================================

@dataclass(frozen=True)
class Area:
    """A named location. ``name`` is the primary key."""
    name: str
    category: str = DEFAULT_CATEGORY

    def to_wire(self) -> Dict[str, Any]:
        return {"name": self.name, "category": self.category}

    def to_snapshot(self) -> Dict[str, Any]:
        return {"name": self.name, "category": self.category}

    @classmethod
    def from_wire(cls, record: Dict[str, Any]) -> Area:
        return cls(name=record["name"], category=record.get("category") or DEFAULT_CATEGORY)

    @classmethod
    def from_snapshot(cls, record: Any) -> Area:
        # Early snapshots stored bare area names
        if isinstance(record, str):
            return cls(name=record, category=DEFAULT_CATEGORY)
        return cls(name=record["name"], category=record.get("category") or DEFAULT_CATEGORY)


# =============================================================================
# TASK
# =============================================================================

@dataclass(frozen=True)
class Task:
    """
    A single cleaning job performed at an area on a given day.

    ``area`` references an ``Area`` by name; the reference is not enforced,
    so a task may keep the name of an area that has since been deleted.
    """
    id: str
    date: str
    area: str
    job_description: str
    assignee: str
    status: TaskStatus = TaskStatus.PENDING
    remarks: str = ""
    category: Optional[str] = None
    photo_before: Optional[str] = None
    photo_progress: Optional[str] = None
    photo_after: Optional[str] = None

    # wire column -> snapshot key, in the order the remote table declares them
    FIELD_MAP = (
        ("id", "id"),
        ("date", "date"),
        ("area", "area"),
        ("category", "category"),
        ("job_description", "jobDescription"),
        ("assignee", "assignee"),
        ("status", "status"),
        ("remarks", "remarks"),
        ("photo_before", "photoBefore"),
        ("photo_progress", "photoProgress"),
        ("photo_after", "photoAfter"),
    )

    def __post_init__(self):
        if not self.id:
            raise TaskValidationError("Task id is required", field="id")
        object.__setattr__(self, "date", canonical_date(self.date))
        object.__setattr__(self, "status", _coerce_status(self.status))
        for text_field in ("remarks", "assignee"):
            if getattr(self, text_field) is None:
                object.__setattr__(self, text_field, "")

    @classmethod
    def new(
        cls,
        date: Any,
        area: str,
        job_description: str,
        assignee: str = "",
        status: TaskStatus = TaskStatus.PENDING,
        remarks: str = "",
        category: Optional[str] = None,
        **photos: Optional[str],
    ) -> Task:
        """Create a task with a freshly generated id, applying form-level checks."""
        if not area or not area.strip():
            raise TaskValidationError("Area is required", field="area")
        if not job_description or not job_description.strip():
            raise TaskValidationError("Job description is required", field="job_description")

        return cls(
            id=str(uuid.uuid4()),
            date=date,
            area=area.strip(),
            job_description=job_description.strip(),
            assignee=assignee.strip(),
            status=status,
            remarks=remarks or "",
            category=category or DEFAULT_CATEGORY,
            photo_before=_blank_to_none(photos.get("photo_before")),
            photo_progress=_blank_to_none(photos.get("photo_progress")),
            photo_after=_blank_to_none(photos.get("photo_after")),
        )

    @property
    def day(self) -> date:
        return datetime.strptime(self.date, DATE_FORMAT).date()

    @property
    def photos(self) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        return (self.photo_before, self.photo_progress, self.photo_after)

    @property
    def has_photo(self) -> bool:
        return any(self.photos)

    def with_area(self, area: Area) -> Task:
        return replace(self, area=area.name, category=area.category)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def _values(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "area": self.area,
            "category": self.category,
            "job_description": self.job_description,
            "assignee": self.assignee,
            "status": self.status.value,
            "remarks": self.remarks,
            "photo_before": self.photo_before,
            "photo_progress": self.photo_progress,
            "photo_after": self.photo_after,
        }

    def to_wire(self) -> Dict[str, Any]:
        """Flat record for the remote ``tasks`` table."""
        return self._values()

    def to_snapshot(self) -> Dict[str, Any]:
        """camelCase record for the local cache; unset optionals are omitted."""
        values = self._values()
        return {
            snapshot_key: values[wire_key]
            for wire_key, snapshot_key in self.FIELD_MAP
            if values[wire_key] is not None
        }

    @classmethod
    def from_wire(cls, record: Dict[str, Any]) -> Task:
        return cls(**{wire_key: record.get(wire_key) for wire_key, _ in cls.FIELD_MAP})

    @classmethod
    def from_snapshot(cls, record: Dict[str, Any]) -> Task:
        values = {wire_key: record.get(snapshot_key) for wire_key, snapshot_key in cls.FIELD_MAP}
        # Snapshots written before before/progress/after photos carried one "photo"
        if record.get("photo") and not values["photo_after"]:
            values["photo_after"] = record["photo"]
        return cls(**values)


# =============================================================================
# SEED COLLECTIONS
# =============================================================================

SEED_AREAS: Tuple[Area, ...] = (
    Area("Lobby", "Indoor"),
    Area("Restrooms", "Indoor"),
    Area("Corridors", "Indoor"),
    Area("Pool Area", "Outdoor"),
    Area("Gym", "Facilities"),
    Area("Restaurant", "F&B"),
    Area("Parking", "Outdoor"),
)


def seed_areas() -> List[Area]:
    """Built-in locations used when neither remote nor cache has any."""
    return list(SEED_AREAS)


def seed_tasks(today: date) -> List[Task]:
    """Built-in sample tasks, dated relative to ``today``."""
    yesterday = today - timedelta(days=1)
    two_days_ago = today - timedelta(days=2)
    return [
        Task("1", today, "Lobby", "Vacuum Carpet", "Budi", TaskStatus.COMPLETED, "Done deeply", "Indoor"),
        Task("2", today, "Restrooms", "Sanitize Sinks", "Siti", TaskStatus.IN_PROGRESS, "Refill soap pending", "Indoor"),
        Task("3", today, "Corridors", "Mop Floor", "Joko", TaskStatus.PENDING, "", "Indoor"),
        Task("4", yesterday, "Gym", "Wipe Machines", "Budi", TaskStatus.INSPECTED, "Good job", "Facilities"),
        Task("5", two_days_ago, "Pool Area", "Clean Filters", "Agus", TaskStatus.COMPLETED, "", "Outdoor"),
    ]
