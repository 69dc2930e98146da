"""Tests for the text and CSV renderers and the export manager."""

import csv
from datetime import timedelta
from io import StringIO

import pytest

from devtask.config import ConfigModel
from devtask.domain import Project, Task, User
from devtask.services.export import (
    CSVRenderer,
    ExportFormat,
    ExportManager,
    HEAVY_RULE,
    TextRenderer,
    render_csv,
    render_text,
)
from devtask.services.report_builder import build_report
from devtask.services.report_models import DateRange


@pytest.fixture
def report(entities, now):
    return build_report(entities["projects"], entities["users"], entities["tasks"], now)


def _rows(text):
    return list(csv.reader(StringIO(text, newline="")))


class TestTextRenderer:

    def test_header(self, report):
        lines = render_text(report).splitlines()

        assert lines[0] == HEAVY_RULE
        assert lines[1] == "DEVTASKMANAGER - COMPREHENSIVE REPORT"
        assert lines[3] == "Generated: March 15, 2026 at 12:00 UTC"

    def test_custom_title(self, report):
        text = TextRenderer("Acme").render(report)
        assert "ACME - COMPREHENSIVE REPORT" in text

    def test_sections_in_order(self, report):
        text = render_text(report)
        headings = [
            "PROJECTS SUMMARY",
            "USERS SUMMARY",
            "TASKS SUMMARY",
            "DETAILED PROJECT REPORTS",
            "DETAILED USER REPORTS",
            "DETAILED TASK REPORTS",
            "END OF REPORT",
        ]
        positions = [text.index(heading) for heading in headings]
        assert positions == sorted(positions)

    def test_rendering_is_deterministic(self, report):
        assert render_text(report) == render_text(report)

    def test_summary_values(self, report):
        text = render_text(report)

        assert "Total Projects: 3" in text
        assert "Average Tasks per Project: 2.3" in text
        assert "Most Active User: Alice Anders (4 tasks)" in text
        assert "Completion Rate: 42.9%" in text
        assert "Completed This Week: 2" in text

    def test_groupings_are_sorted(self, report):
        lines = render_text(report).splitlines()
        start = lines.index("By Type:")

        assert lines[start + 1:start + 4] == [
            "  • Design: 1",
            "  • Development: 5",
            "  • Testing: 1",
        ]
        start = lines.index("By Priority:")
        assert lines[start + 1:start + 4] == [
            "  • High: 2",
            "  • Low: 1",
            "  • Medium: 4",
        ]

    def test_detail_blocks(self, report):
        text = render_text(report)

        assert "Project: Large Project" in text
        assert "Tasks: 5 (✓ 2 | ⏳ 1 | ○ 2 | ⏸ 0)" in text
        assert "User: Bob Baker" in text
        assert "Roles: None" in text
        assert "Task: Task t7" in text
        assert "Assigned To: Unassigned" in text

    def test_known_labels_use_canonical_spelling(self, now):
        task = Task(id="t1", name="Odd casing", type="design", status="in progress",
                    priority="Whenever")
        text = render_text(build_report([], [], [task], now))

        assert "Type: Design | Priority: Whenever | Status: In Progress" in text

    def test_empty_report(self, now):
        text = render_text(build_report([], [], [], now))

        assert "Oldest Project: N/A" in text
        assert "Most Active User: N/A (0 tasks)" in text
        assert text.endswith("END OF REPORT\n" + HEAVY_RULE + "\n")

    def test_date_range_line(self, entities, now):
        window = DateRange(start=now - timedelta(days=3))
        report = build_report(entities["projects"], entities["users"], entities["tasks"], now,
                              date_range=window)

        assert "Tasks created: 2026-03-12 to now" in render_text(report)

    def test_custom_date_format(self, report):
        text = TextRenderer(date_format="%d/%m/%Y").render(report)

        assert "Oldest Project: 24/01/2026" in text
        assert "Newest Project: 23/02/2026" in text
        assert "2026-01-24" not in text


class TestCSVRenderer:

    def test_blocks_and_headers(self, report):
        rows = _rows(render_csv(report))

        assert rows[0] == ["DevTaskManager Report - Generated 2026-03-15T12:00:00+00:00"]
        assert rows[1] == []
        assert rows[2] == ["PROJECTS"]
        assert rows[3] == CSVRenderer.PROJECT_FIELDS
        users_at = rows.index(["USERS"])
        tasks_at = rows.index(["TASKS"])
        assert rows[users_at + 1] == CSVRenderer.USER_FIELDS
        assert rows[tasks_at + 1] == CSVRenderer.TASK_FIELDS
        assert users_at - 5 == 3
        assert len(rows) - tasks_at - 2 == 7

    def test_rows_use_crlf(self, report):
        text = render_csv(report)

        assert text.endswith("\r\n")
        assert "\n" not in text.replace("\r\n", "")

    def test_project_row(self, report):
        rows = _rows(render_csv(report))
        large = rows[6]

        assert large == [
            "Large Project", "Five tasks", "2026-02-23", "N/A", "2",
            "5", "2", "1", "2", "0",
        ]

    def test_user_and_task_rows(self, report):
        rows = _rows(render_csv(report))
        users_at = rows.index(["USERS"])
        tasks_at = rows.index(["TASKS"])

        assert rows[users_at + 2][:2] == ["Alice Anders", "Developer"]
        assert rows[users_at + 2][3] == "4"
        assert rows[tasks_at + 2] == [
            "Task t1", "Small Project", "Unassigned", "Design", "Completed", "Medium",
            "2026-03-05", "N/A", "2026-03-13", "0",
        ]

    def test_fields_are_quoted(self, now):
        project = Project("p1", 'Acme, "Phase 2"', "Line one\nline two")
        user = User("u1", "Ann", "Lee")
        Task(id="t1", name="Ship it, finally", project=project, assigned_user=user)
        text = render_csv(build_report([project], [user], project.tasks, now))

        assert '"Acme, ""Phase 2"""' in text
        rows = _rows(text)
        assert rows[4][0] == 'Acme, "Phase 2"'
        assert rows[4][1] == "Line one\nline two"
        tasks_at = rows.index(["TASKS"])
        assert rows[tasks_at + 2][:3] == ["Ship it, finally", 'Acme, "Phase 2"', "Ann Lee"]

    def test_custom_delimiter(self, report):
        text = CSVRenderer(delimiter=";").render(report)
        rows = list(csv.reader(StringIO(text, newline=""), delimiter=";"))

        assert rows[3] == CSVRenderer.PROJECT_FIELDS


class TestExportManager:

    def test_supported_formats(self):
        manager = ExportManager()

        assert manager.get_supported_formats() == ["text", "csv", "pdf"]
        assert manager.get_file_extension(ExportFormat.TEXT) == "txt"
        assert manager.get_file_extension(ExportFormat.CSV) == "csv"
        assert manager.get_file_extension(ExportFormat.PDF) == "pdf"

    def test_default_filename(self, report):
        name = ExportManager().default_filename(report, ExportFormat.CSV)
        assert name == "devtask_report_20260315_120000.csv"

    def test_export_without_path_returns_content(self, report):
        content = ExportManager().export(report, ExportFormat.TEXT)
        assert content == render_text(report)

    def test_export_writes_text_file(self, report, tmp_path):
        output = tmp_path / "nested" / "report.txt"

        ExportManager().export(report, ExportFormat.TEXT, output_path=str(output))

        assert output.read_text(encoding="utf-8") == render_text(report)

    def test_export_keeps_csv_line_endings(self, report, tmp_path):
        output = tmp_path / "report.csv"

        ExportManager().export(report, ExportFormat.CSV, output_path=str(output))

        assert output.read_bytes() == render_csv(report).encode("utf-8")

    def test_config_title_is_used(self, report, tmp_path):
        config = ConfigModel(data_dir=str(tmp_path / "data"), report_title="Acme")
        content = ExportManager(config).export(report, ExportFormat.CSV)

        assert content.startswith("Acme Report - Generated")

    def test_config_date_format_skips_csv(self, report, tmp_path):
        config = ConfigModel(data_dir=str(tmp_path / "data"), date_format="%b %d, %Y")
        manager = ExportManager(config)

        text = manager.export(report, ExportFormat.TEXT)
        assert "Oldest Project: Jan 24, 2026" in text

        rows = _rows(manager.export(report, ExportFormat.CSV))
        assert rows[4][2] == "2026-01-24"
        assert manager.renderers[ExportFormat.PDF].date_format == "%b %d, %Y"
