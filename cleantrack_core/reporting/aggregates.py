# =============================================================================
# cleantrack_core/reporting/aggregates.py
# Statistics Derived from a Filtered Task Selection
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, Sequence

import pandas as pd

from cleantrack_core.models import Area, Task, TaskStatus

TASK_COLUMNS = [
    "id", "date", "area", "category", "job_description",
    "assignee", "status", "remarks", "has_photo",
]


@dataclass(frozen=True)
class TaskStats:
    """Headline numbers for the stats cards."""
    total: int = 0
    completed: int = 0
    pending: int = 0
    in_progress: int = 0

    @property
    def completion_rate(self) -> float:
        """Completed (including inspected) as a percentage of all tasks."""
        return 100.0 * self.completed / self.total if self.total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["completion_rate"] = round(self.completion_rate, 1)
        return data


def tasks_to_dataframe(tasks: Iterable[Task]) -> pd.DataFrame:
    """One row per task; photos are reduced to a has_photo flag."""
    rows = [
        {
            "id": task.id,
            "date": task.date,
            "area": task.area,
            "category": task.category,
            "job_description": task.job_description,
            "assignee": task.assignee,
            "status": task.status.value,
            "remarks": task.remarks,
            "has_photo": task.has_photo,
        }
        for task in tasks
    ]
    return pd.DataFrame(rows, columns=TASK_COLUMNS)


def compute_stats(tasks: Iterable[Task]) -> TaskStats:
    """Completed counts both Completed and Inspected tasks."""
    df = tasks_to_dataframe(tasks)
    counts = df["status"].value_counts()
    return TaskStats(
        total=len(df),
        completed=int(counts.get(TaskStatus.COMPLETED.value, 0) + counts.get(TaskStatus.INSPECTED.value, 0)),
        pending=int(counts.get(TaskStatus.PENDING.value, 0)),
        in_progress=int(counts.get(TaskStatus.IN_PROGRESS.value, 0)),
    )


def area_distribution(tasks: Iterable[Task], areas: Sequence[Area]) -> pd.DataFrame:
    """
    Task count per known area, in area order, omitting areas with no tasks.

    Tasks pointing at an area that no longer exists are not counted.
    """
    counts = tasks_to_dataframe(tasks)["area"].value_counts()
    rows = [
        {"name": area.name, "category": area.category, "tasks": int(counts.get(area.name, 0))}
        for area in areas
    ]
    df = pd.DataFrame(rows, columns=["name", "category", "tasks"])
    return df[df["tasks"] > 0].reset_index(drop=True)


def assignee_breakdown(tasks: Iterable[Task]) -> pd.DataFrame:
    """Total and completed tasks per assignee, busiest first."""
    df = tasks_to_dataframe(tasks)
    if df.empty:
        return pd.DataFrame(columns=["assignee", "total", "completed", "completion_rate"])

    df["done"] = df["status"].isin([TaskStatus.COMPLETED.value, TaskStatus.INSPECTED.value])
    grouped = (
        df.groupby("assignee")
        .agg(total=("id", "count"), completed=("done", "sum"))
        .reset_index()
    )
    grouped["completed"] = grouped["completed"].astype(int)
    grouped["completion_rate"] = (100.0 * grouped["completed"] / grouped["total"]).round(1)
    return grouped.sort_values(["total", "assignee"], ascending=[False, True]).reset_index(drop=True)
