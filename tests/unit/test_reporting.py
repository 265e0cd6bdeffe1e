# =============================================================================
# tests/unit/test_reporting.py
# Unit Tests for Aggregates, Export and Summaries
# =============================================================================

import re
import pytest
from datetime import date, datetime
from unittest.mock import MagicMock, patch

from cleantrack_core.errors import ExportError
from cleantrack_core.models import Area, Task, TaskStatus
from cleantrack_core.reporting import (
    ReportSummarizer,
    SummaryMode,
    area_distribution,
    assignee_breakdown,
    compute_stats,
    export_tasks_csv,
    export_tasks_pdf,
    report_filename,
    tasks_to_dataframe,
)


class TestAggregates:
    """Test stats derived from a task selection"""

    def test_stats(self, sample_tasks):
        stats = compute_stats(sample_tasks)

        assert stats.total == 7
        assert stats.completed == 4  # 3 completed + 1 inspected
        assert stats.pending == 2
        assert stats.in_progress == 1
        assert stats.completion_rate == pytest.approx(400 / 7)

    def test_stats_empty(self):
        stats = compute_stats([])
        assert stats.total == 0
        assert stats.completion_rate == 0.0
        assert stats.to_dict()["completion_rate"] == 0.0

    def test_empty_dataframe_keeps_columns(self):
        df = tasks_to_dataframe([])
        assert df.empty
        assert "job_description" in df.columns

    def test_area_distribution_order_and_zero_counts(self, sample_tasks):
        areas = [Area("Pool Area", "Outdoor"), Area("Gym", "Facilities"), Area("Lobby", "Indoor")]
        df = area_distribution(sample_tasks, areas)

        assert list(df["name"]) == ["Pool Area", "Lobby"]
        assert list(df["tasks"]) == [1, 4]

    def test_assignee_breakdown(self, sample_tasks):
        df = assignee_breakdown(sample_tasks)

        first = df.iloc[0]
        assert first["assignee"] == "Budi"
        assert first["total"] == 3
        assert first["completed"] == 3
        siti = df[df["assignee"] == "Siti"].iloc[0]
        assert siti["completed"] == 0

    def test_assignee_breakdown_empty(self):
        assert assignee_breakdown([]).empty


class TestExport:
    """Test CSV and PDF export"""

    def test_filename(self):
        assert report_filename("Housekeeping_Report", "weekly", date(2024, 3, 12)) == (
            "Housekeeping_Report_weekly_2024-03-12"
        )

    def test_csv_has_bom_and_headers(self, sample_tasks):
        data = export_tasks_csv(sample_tasks)

        assert data.startswith(b"\xef\xbb\xbf")
        text = data.decode("utf-8-sig")
        header = text.splitlines()[0]
        assert header == "ID,Date,Category,Area,Job Description,Assignee,Status,Remarks,Has Photo"
        assert len(text.strip().splitlines()) == len(sample_tasks) + 1

    def test_csv_photo_flag(self):
        task = Task("1", "2024-03-10", "Lobby", "Vacuum", "Budi", photo_after="data:x")
        assert ",Yes" in export_tasks_csv([task]).decode("utf-8-sig")

    def test_empty_export_raises(self):
        with pytest.raises(ExportError) as exc_info:
            export_tasks_csv([])
        assert exc_info.value.message == "No data to export."
        with pytest.raises(ExportError):
            export_tasks_pdf([], "Report")

    def test_pdf_bytes(self, sample_tasks):
        data = export_tasks_pdf(sample_tasks, "CleanTrack Report - Weekly", generated_at=datetime(2024, 3, 12, 9, 0))
        assert data.startswith(b"%PDF")

    def test_pdf_paginates_long_reports(self):
        tasks = [
            Task(str(i), "2024-03-10", "Lobby", "A very long job description " * 5, "Budi")
            for i in range(120)
        ]
        data = export_tasks_pdf(tasks, "Long")
        assert len(re.findall(rb"/Type /Page[^s]", data)) > 1


class TestSummary:
    """Test rule-based and LLM summaries"""

    def test_no_data(self):
        result = ReportSummarizer().summarize([])
        assert result.text == "No data available to analyze."

    def test_rule_based_sections(self, sample_tasks, sample_areas):
        result = ReportSummarizer().summarize(sample_tasks, sample_areas, "March 2024")

        assert result.mode is SummaryMode.RULE_BASED
        assert "Report Summary (March 2024)" in result.text
        assert "57.1%" in result.text
        assert "Restrooms: 2 open task(s)" in result.text
        assert "Budi: 3/3 done" in result.text

    def test_all_done_has_no_concerns(self):
        tasks = [Task("1", "2024-03-10", "Lobby", "Vacuum", "Budi", TaskStatus.INSPECTED)]
        text = ReportSummarizer().summarize(tasks).text
        assert "None, every task is completed or inspected." in text
        assert "on track" in text

    def test_llm_without_key_falls_back(self, sample_tasks, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        result = ReportSummarizer(mode="llm").summarize(sample_tasks)

        assert result.mode is SummaryMode.RULE_BASED
        assert "no API key configured" in result.text

    def test_llm_uses_openai(self, sample_tasks):
        response = MagicMock()
        response.choices[0].message.content = "All good."
        with patch("cleantrack_core.reporting.summary.openai.OpenAI") as client_cls:
            client_cls.return_value.chat.completions.create.return_value = response
            result = ReportSummarizer(mode="llm", api_key="sk-test").summarize(sample_tasks)

        assert result.mode is SummaryMode.LLM
        assert result.text == "All good."
        client_cls.assert_called_once_with(api_key="sk-test")

    def test_llm_error_falls_back(self, sample_tasks):
        with patch("cleantrack_core.reporting.summary.openai.OpenAI") as client_cls:
            client_cls.return_value.chat.completions.create.side_effect = RuntimeError("quota")
            result = ReportSummarizer(mode="llm", api_key="sk-test").summarize(sample_tasks)

        assert result.mode is SummaryMode.RULE_BASED
        assert "LLM error: quota" in result.text

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            ReportSummarizer(mode="magic")
