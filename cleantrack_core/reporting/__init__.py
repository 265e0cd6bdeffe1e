# =============================================================================
# cleantrack_core/reporting/__init__.py
# Reporting: Period Filters, Aggregates, Export and Summaries
# =============================================================================
"""
Read-only views over the task collection.

Usage:
    from cleantrack_core.reporting import filter_tasks, compute_stats

    selected = filter_tasks(service.tasks, "weekly", date.today())
    stats = compute_stats(selected)
"""

from cleantrack_core.reporting.periods import (
    filter_tasks,
    format_date,
    parse_date,
    period_label,
    shift_reference,
    week_range,
)
from cleantrack_core.reporting.aggregates import (
    TaskStats,
    area_distribution,
    assignee_breakdown,
    compute_stats,
    tasks_to_dataframe,
)
from cleantrack_core.reporting.export import (
    export_tasks_csv,
    export_tasks_pdf,
    report_filename,
    report_title,
)
from cleantrack_core.reporting.summary import (
    ReportSummarizer,
    SummaryMode,
    SummaryResult,
)

__all__ = [
    "filter_tasks",
    "format_date",
    "parse_date",
    "period_label",
    "shift_reference",
    "week_range",
    "TaskStats",
    "area_distribution",
    "assignee_breakdown",
    "compute_stats",
    "tasks_to_dataframe",
    "export_tasks_csv",
    "export_tasks_pdf",
    "report_filename",
    "report_title",
    "ReportSummarizer",
    "SummaryMode",
    "SummaryResult",
]
