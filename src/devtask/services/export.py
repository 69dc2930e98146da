"""
Export System for DevTask reports

Renders a :class:`~devtask.services.report_models.Report` as plain text, CSV or
PDF. Text and CSV renderers are pure string builders; the PDF renderer lives in
:mod:`devtask.services.pdf_report` and is loaded on first use.
"""

import csv
import logging
import os
from abc import ABC, abstractmethod
from enum import Enum
from io import StringIO
from typing import Dict, List, Mapping, Optional, Union

from ..domain import TaskPriority, TaskStatus, TaskType, label_text, parse_label
from ..utils.datetime import DEFAULT_DATE_FORMAT, format_date, format_timestamp
from .report_models import Report

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "DevTaskManager"

HEAVY_RULE = "═" * 59
LIGHT_RULE = "─" * 59


class ExportFormat(Enum):
    """Supported export formats"""
    TEXT = "text"
    CSV = "csv"
    PDF = "pdf"


def _display(enum_cls, label: str) -> str:
    """Canonical spelling for known labels, the stored text for anything else."""
    return label_text(parse_label(enum_cls, label))


def _sorted_counts(counts: Mapping[str, int]) -> List[tuple]:
    return sorted(counts.items(), key=lambda item: item[0])


class BaseRenderer(ABC):
    """Abstract base class for report renderers"""

    def __init__(self, title: str = DEFAULT_TITLE):
        self.title = title

    @abstractmethod
    def render(self, report: Report) -> Union[str, bytes]:
        """Render the whole report"""
        pass

    @abstractmethod
    def get_file_extension(self) -> str:
        """Get recommended file extension"""
        pass


class TextRenderer(BaseRenderer):
    """Plain-text report with banner-separated sections"""

    def __init__(self, title: str = DEFAULT_TITLE, date_format: str = DEFAULT_DATE_FORMAT):
        super().__init__(title)
        self.date_format = date_format

    def render(self, report: Report) -> str:
        lines: List[str] = []
        lines.extend(self._header(report))
        lines.extend(self._projects_summary(report))
        lines.extend(self._users_summary(report))
        lines.extend(self._tasks_summary(report))
        lines.extend(self._project_details(report))
        lines.extend(self._user_details(report))
        lines.extend(self._task_details(report))
        lines.extend(self._banner("END OF REPORT"))
        return "\n".join(lines) + "\n"

    def _date(self, dt, missing: str = "N/A") -> str:
        return format_date(dt, missing=missing, fmt=self.date_format)

    @staticmethod
    def _banner(heading: str) -> List[str]:
        return [HEAVY_RULE, heading, HEAVY_RULE]

    @staticmethod
    def _section(heading: str) -> List[str]:
        return [LIGHT_RULE, heading, LIGHT_RULE]

    def _header(self, report: Report) -> List[str]:
        lines = self._banner(f"{self.title.upper()} - COMPREHENSIVE REPORT")
        lines.append(f"Generated: {format_timestamp(report.generated_at)}")
        if report.date_range is not None and not report.date_range.is_open:
            start = self._date(report.date_range.start, missing="beginning")
            end = self._date(report.date_range.end, missing="now")
            lines.append(f"Tasks created: {start} to {end}")
        lines.extend(["", ""])
        return lines

    def _projects_summary(self, report: Report) -> List[str]:
        s = report.projects_summary
        return self._section("PROJECTS SUMMARY") + [
            f"Total Projects: {s.total_projects}",
            f"Projects with Tasks: {s.projects_with_tasks}",
            f"Projects without Tasks: {s.projects_without_tasks}",
            f"Total Tasks Across All Projects: {s.total_tasks_across_projects}",
            f"Average Tasks per Project: {s.average_tasks_per_project:.1f}",
            f"Oldest Project: {self._date(s.oldest_project)}",
            f"Newest Project: {self._date(s.newest_project)}",
            "",
            "",
        ]

    def _users_summary(self, report: Report) -> List[str]:
        s = report.users_summary
        return self._section("USERS SUMMARY") + [
            f"Total Users: {s.total_users}",
            f"Users with Tasks: {s.users_with_tasks}",
            f"Users without Tasks: {s.users_without_tasks}",
            f"Total Tasks Assigned: {s.total_tasks_assigned}",
            f"Average Tasks per User: {s.average_tasks_per_user:.1f}",
            f"Most Active User: {s.most_active_user or 'N/A'} "
            f"({s.most_active_user_task_count} tasks)",
            "",
            "",
        ]

    def _tasks_summary(self, report: Report) -> List[str]:
        s = report.tasks_summary
        lines = self._section("TASKS SUMMARY") + [
            f"Total Tasks: {s.total_tasks}",
            f"Completion Rate: {s.completion_rate:.1f}%",
            "",
            "By Status:",
            f"  • {TaskStatus.UNASSIGNED.value}: {s.unassigned_tasks}",
            f"  • {TaskStatus.IN_PROGRESS.value}: {s.in_progress_tasks}",
            f"  • {TaskStatus.COMPLETED.value}: {s.completed_tasks}",
            f"  • {TaskStatus.DEFERRED.value}: {s.deferred_tasks}",
            "",
            f"Completed This Week: {s.completed_this_week}",
            f"Completed This Month: {s.completed_this_month}",
            "",
            "By Type:",
        ]
        lines.extend(f"  • {label}: {count}" for label, count in _sorted_counts(s.tasks_by_type))
        lines.extend(["", "By Priority:"])
        lines.extend(f"  • {label}: {count}" for label, count in _sorted_counts(s.tasks_by_priority))
        lines.extend(["", ""])
        return lines

    def _project_details(self, report: Report) -> List[str]:
        lines = self._banner("DETAILED PROJECT REPORTS") + [""]
        for p in report.detailed_projects:
            lines.extend([
                f"Project: {p.title}",
                f"Description: {p.description or 'No description'}",
                f"Created: {self._date(p.created)}",
                f"Members: {p.user_count}",
                f"Tasks: {p.task_count} (✓ {p.completed_task_count} | ⏳ {p.in_progress_task_count}"
                f" | ○ {p.unassigned_task_count} | ⏸ {p.deferred_task_count})",
                "",
            ])
        lines.append("")
        return lines

    def _user_details(self, report: Report) -> List[str]:
        lines = self._banner("DETAILED USER REPORTS") + [""]
        for u in report.detailed_users:
            lines.extend([
                f"User: {u.name}",
                f"Roles: {', '.join(u.roles) or 'None'}",
                f"Created: {self._date(u.created)}",
                f"Tasks: {u.total_tasks_assigned} (✓ {u.completed_tasks} | ⏳ {u.in_progress_tasks}"
                f" | ○ {u.unassigned_tasks} | ⏸ {u.deferred_tasks})",
                "",
            ])
        lines.append("")
        return lines

    def _task_details(self, report: Report) -> List[str]:
        lines = self._banner("DETAILED TASK REPORTS") + [""]
        for t in report.detailed_tasks:
            lines.extend([
                f"Task: {t.name}",
                f"Project: {t.project_name}",
                f"Assigned To: {t.assigned_user_name or 'Unassigned'}",
                f"Type: {_display(TaskType, t.task_type)}"
                f" | Priority: {_display(TaskPriority, t.task_priority)}"
                f" | Status: {_display(TaskStatus, t.task_status)}",
                f"Created: {self._date(t.created)}",
                f"Completed: {self._date(t.completed_at)}",
                "",
            ])
        lines.append("")
        return lines

    def get_file_extension(self) -> str:
        return "txt"


class CSVRenderer(BaseRenderer):
    """Three CSV blocks (projects, users, tasks) in one document

    Dates are always written as YYYY-MM-DD so the file sorts and parses
    the same regardless of the configured display format.
    """

    PROJECT_FIELDS = [
        'Title', 'Description', 'Date Created', 'Last Updated', 'Members',
        'Total Tasks', 'Completed', 'In Progress', 'Unassigned', 'Deferred',
    ]
    USER_FIELDS = [
        'Name', 'Roles', 'Date Created',
        'Total Tasks', 'Completed', 'In Progress', 'Unassigned', 'Deferred',
    ]
    TASK_FIELDS = [
        'Name', 'Project', 'Assigned To', 'Type', 'Status', 'Priority',
        'Date Created', 'Date Assigned', 'Date Completed', 'Items',
    ]

    def __init__(self, title: str = DEFAULT_TITLE, delimiter: str = ','):
        super().__init__(title)
        self.delimiter = delimiter

    def render(self, report: Report) -> str:
        output = StringIO()
        writer = csv.writer(output, delimiter=self.delimiter, lineterminator="\r\n")

        writer.writerow([f"{self.title} Report - Generated {report.generated_at.isoformat()}"])
        writer.writerow([])

        writer.writerow(["PROJECTS"])
        writer.writerow(self.PROJECT_FIELDS)
        for p in report.detailed_projects:
            writer.writerow([
                p.title,
                p.description,
                format_date(p.created),
                format_date(p.updated),
                p.user_count,
                p.task_count,
                p.completed_task_count,
                p.in_progress_task_count,
                p.unassigned_task_count,
                p.deferred_task_count,
            ])
        writer.writerow([])

        writer.writerow(["USERS"])
        writer.writerow(self.USER_FIELDS)
        for u in report.detailed_users:
            writer.writerow([
                u.name,
                '; '.join(u.roles),
                format_date(u.created),
                u.total_tasks_assigned,
                u.completed_tasks,
                u.in_progress_tasks,
                u.unassigned_tasks,
                u.deferred_tasks,
            ])
        writer.writerow([])

        writer.writerow(["TASKS"])
        writer.writerow(self.TASK_FIELDS)
        for t in report.detailed_tasks:
            writer.writerow([
                t.name,
                t.project_name,
                t.assigned_user_name or 'Unassigned',
                t.task_type,
                t.task_status,
                t.task_priority,
                format_date(t.created),
                format_date(t.assigned_at),
                format_date(t.completed_at),
                t.item_count,
            ])

        return output.getvalue()

    def get_file_extension(self) -> str:
        return "csv"


class PDFRenderer(BaseRenderer):
    """Paginated PDF with charts"""

    def __init__(
        self,
        title: str = DEFAULT_TITLE,
        chart_dpi: int = 150,
        chart_top_n: int = 10,
        date_format: str = DEFAULT_DATE_FORMAT,
    ):
        super().__init__(title)
        self.date_format = date_format
        self.chart_dpi = chart_dpi
        self.chart_top_n = chart_top_n
        self.warnings: List[str] = []

    def render(self, report: Report) -> bytes:
        from .pdf_report import DocumentRenderer

        renderer = DocumentRenderer(
            title=self.title,
            chart_dpi=self.chart_dpi,
            chart_top_n=self.chart_top_n,
            date_format=self.date_format,
        )
        content = renderer.render(report)
        self.warnings = list(renderer.warnings)
        return content

    def get_file_extension(self) -> str:
        return "pdf"


class ExportManager:
    """Manages different export formats and operations"""

    def __init__(self, config=None):
        title = config.report_title if config is not None else DEFAULT_TITLE
        date_format = config.date_format if config is not None else DEFAULT_DATE_FORMAT
        pdf_options = {}
        if config is not None:
            pdf_options = {'chart_dpi': config.chart_dpi, 'chart_top_n': config.chart_top_n}

        self.renderers: Dict[ExportFormat, BaseRenderer] = {
            ExportFormat.TEXT: TextRenderer(title, date_format=date_format),
            ExportFormat.CSV: CSVRenderer(title),
            ExportFormat.PDF: PDFRenderer(title, date_format=date_format, **pdf_options),
        }

    def export(
        self,
        report: Report,
        format: ExportFormat,
        output_path: Optional[str] = None,
    ) -> Union[str, bytes]:
        """Render ``report`` in the given format, writing it to ``output_path`` if given"""
        if format not in self.renderers:
            raise ValueError(f"Export format {format.value} not supported")

        content = self.renderers[format].render(report)

        if output_path:
            self._write_to_file(content, output_path)
            logger.info(f"Exported {format.value} report to {output_path}")

        return content

    @property
    def warnings(self) -> List[str]:
        """Soft warnings from the most recent PDF export"""
        return list(self.renderers[ExportFormat.PDF].warnings)

    def get_supported_formats(self) -> List[str]:
        """Get list of supported format names"""
        return [fmt.value for fmt in self.renderers.keys()]

    def get_file_extension(self, format: ExportFormat) -> str:
        """Get recommended file extension for format"""
        if format not in self.renderers:
            return "txt"
        return self.renderers[format].get_file_extension()

    def default_filename(self, report: Report, format: ExportFormat) -> str:
        stamp = report.generated_at.strftime("%Y%m%d_%H%M%S")
        return f"devtask_report_{stamp}.{self.get_file_extension(format)}"

    def _write_to_file(self, content: Union[str, bytes], file_path: str):
        """Write content to file"""
        dir_path = os.path.dirname(file_path)
        if dir_path:  # Only create directory if there is one
            os.makedirs(dir_path, exist_ok=True)
        if isinstance(content, bytes):
            with open(file_path, 'wb') as f:
                f.write(content)
        else:
            with open(file_path, 'w', encoding='utf-8', newline='') as f:
                f.write(content)


def render_text(report: Report) -> str:
    """Render ``report`` as plain text."""
    return TextRenderer().render(report)


def render_csv(report: Report) -> str:
    """Render ``report`` as CSV."""
    return CSVRenderer().render(report)


def render_document(report: Report) -> bytes:
    """Render ``report`` as a PDF document."""
    return PDFRenderer().render(report)
