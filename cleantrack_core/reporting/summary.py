# =============================================================================
# cleantrack_core/reporting/summary.py
# Written Summary of a Task Report
# =============================================================================
"""
Markdown summary of a filtered task selection.

Two modes:
- rule_based: thresholds over the aggregates, no network access
- llm: natural language write-up through the OpenAI API, falling back to
  the rule-based text when no key is configured or the call fails
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

import openai

from cleantrack_core.models import Area, Task, TaskStatus
from cleantrack_core.reporting.aggregates import (
    area_distribution,
    assignee_breakdown,
    compute_stats,
)

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No data available to analyze."
LLM_MODEL = "gpt-4o-mini"

# Completion-rate thresholds used for the recommendation
GOOD_RATE = 80.0
FAIR_RATE = 50.0


class SummaryMode(Enum):
    RULE_BASED = "rule_based"
    LLM = "llm"


@dataclass
class SummaryResult:
    """Generated summary and how it was produced."""
    text: str
    mode: SummaryMode
    raw_llm_response: Optional[str] = None


class ReportSummarizer:
    """Builds the report summary shown under the task table."""

    def __init__(self, mode: str = "rule_based", api_key: Optional[str] = None):
        """
        Args:
            mode: "rule_based" or "llm"
            api_key: OpenAI key for LLM mode; defaults to OPENAI_API_KEY
        """
        self.mode = SummaryMode(mode)
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")

    def summarize(
        self,
        tasks: Sequence[Task],
        areas: Sequence[Area] = (),
        period_label: str = "",
    ) -> SummaryResult:
        if not tasks:
            return SummaryResult(text=NO_DATA_MESSAGE, mode=SummaryMode.RULE_BASED)

        if self.mode is SummaryMode.LLM:
            return self._llm_summary(tasks, areas, period_label)
        return SummaryResult(
            text=self._rule_based_summary(tasks, areas, period_label),
            mode=SummaryMode.RULE_BASED,
        )

    # =========================================================================
    # RULE-BASED
    # =========================================================================

    def _rule_based_summary(
        self,
        tasks: Sequence[Task],
        areas: Sequence[Area],
        period_label: str,
    ) -> str:
        stats = compute_stats(tasks)
        lines: List[str] = []

        heading = f"### Report Summary ({period_label})" if period_label else "### Report Summary"
        lines.append(heading)
        lines.append(
            f"- **Completion rate:** {stats.completion_rate:.1f}% "
            f"({stats.completed} of {stats.total} tasks)"
        )
        lines.append(f"- **Pending:** {stats.pending} | **In progress:** {stats.in_progress}")

        busiest = area_distribution(tasks, areas)
        if not busiest.empty:
            top = busiest.sort_values("tasks", ascending=False).iloc[0]
            lines.append(f"- **Busiest area:** {top['name']} ({int(top['tasks'])} tasks)")

        open_tasks = [task for task in tasks if not task.status.is_done]
        lines.append("")
        lines.append("#### Areas of concern")
        if open_tasks:
            open_by_area = {}
            for task in open_tasks:
                open_by_area[task.area] = open_by_area.get(task.area, 0) + 1
            for area, count in sorted(open_by_area.items(), key=lambda kv: (-kv[1], kv[0])):
                lines.append(f"- {area}: {count} open task(s)")
        else:
            lines.append("- None, every task is completed or inspected.")

        lines.append("")
        lines.append("#### Assignee performance")
        for row in assignee_breakdown(tasks).itertuples(index=False):
            name = row.assignee or "Unassigned"
            lines.append(f"- {name}: {row.completed}/{row.total} done ({row.completion_rate:.1f}%)")

        lines.append("")
        lines.append("#### Recommendation")
        lines.append(self._recommendation(stats.completion_rate, tasks))
        return "\n".join(lines)

    def _recommendation(self, rate: float, tasks: Sequence[Task]) -> str:
        uninspected = sum(1 for task in tasks if task.status is TaskStatus.COMPLETED)
        if rate >= GOOD_RATE:
            if uninspected:
                return f"Performance is on track. {uninspected} completed task(s) still await inspection."
            return "Performance is on track. Keep the current schedule."
        if rate >= FAIR_RATE:
            return "Completion is moderate. Follow up on pending tasks before the end of the period."
        return "Completion is low. Reassign pending work and review staffing for the busiest areas."

    # =========================================================================
    # LLM
    # =========================================================================

    def _llm_summary(
        self,
        tasks: Sequence[Task],
        areas: Sequence[Area],
        period_label: str,
    ) -> SummaryResult:
        rule_based = self._rule_based_summary(tasks, areas, period_label)

        if not self.api_key:
            return SummaryResult(
                text=rule_based + "\n\n*Note: LLM mode selected but no API key configured. Using rule-based summary.*",
                mode=SummaryMode.RULE_BASED,
            )

        try:
            client = openai.OpenAI(api_key=self.api_key)
            response = client.chat.completions.create(
                model=LLM_MODEL,
                messages=[
                    {"role": "system", "content": """You are a hotel housekeeping supervisor.
                    Summarize the cleaning report for management in short Markdown sections:
                    overall progress, areas that need attention, staff performance, and one recommendation.
                    Be specific about numbers. Do not invent data."""},
                    {"role": "user", "content": self._build_llm_context(tasks, rule_based)},
                ],
                max_tokens=500,
                temperature=0.3,
            )
            text = response.choices[0].message.content
            return SummaryResult(text=text, mode=SummaryMode.LLM, raw_llm_response=text)

        except Exception as e:
            logger.warning(f"LLM summary failed: {e}")
            return SummaryResult(
                text=rule_based + f"\n\n*Note: LLM error: {str(e)}. Using rule-based summary.*",
                mode=SummaryMode.RULE_BASED,
            )

    def _build_llm_context(self, tasks: Sequence[Task], rule_based: str) -> str:
        rows = "\n".join(
            f"- {task.date} | {task.area} | {task.job_description} | "
            f"{task.assignee or 'Unassigned'} | {task.status.value}"
            + (f" | {task.remarks}" if task.remarks else "")
            for task in tasks[:200]
        )
        return f"Computed figures:\n{rule_based}\n\nTasks (date | area | job | assignee | status | remarks):\n{rows}"
