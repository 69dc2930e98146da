"""
Paginated PDF rendering of DevTask reports.

Pages are US Letter in points (612 x 792) with 60 pt margins. Automatic page
breaks are off; every block goes through :class:`LayoutCursor`, which starts a
new page whenever the block would cross the bottom margin.
"""

import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Callable, List, Optional, Sequence, Tuple

from fpdf import FPDF

from ..domain import TaskPriority, TaskStatus, TaskType, label_text, parse_label
from ..utils.datetime import DEFAULT_DATE_FORMAT, format_date, format_timestamp
from . import charts
from .report_models import ProjectReport, Report, TaskReport, UserReport

logger = logging.getLogger(__name__)

PAGE_WIDTH = 612
PAGE_HEIGHT = 792
MARGIN = 60
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN

SECTION_HEADER_HEIGHT = 50
LINE_HEIGHT = 25
DETAIL_BOX_HEIGHT = 90
DETAIL_BLOCK_HEIGHT = DETAIL_BOX_HEIGHT + 10
CHART_GAP = 20

BLUE = (0, 122, 255)
PURPLE = (175, 82, 222)
ORANGE = (255, 149, 0)
BLACK = (0, 0, 0)
DARK_GRAY = (85, 85, 85)
GRAY = (128, 128, 128)

# (fill, border) pairs for detail boxes
BOX_COLORS = {
    "projects": ((242, 248, 255), (179, 215, 255)),
    "users": ((251, 246, 253), (231, 203, 245)),
    "tasks": ((255, 250, 242), (255, 223, 179)),
}


def sanitize_text_for_pdf(text: str) -> str:
    """
    Sanitize text for PDF generation by replacing problematic Unicode characters
    with latin-1 compatible alternatives.
    """
    replacements = {
        "\u2019": "'",  # Right single quotation mark
        "\u2018": "'",  # Left single quotation mark
        "\u201c": '"',  # Left double quotation mark
        "\u201d": '"',  # Right double quotation mark
        "\u2013": "-",  # En dash
        "\u2014": "-",  # Em dash
        "\u2026": "...",  # Horizontal ellipsis
        "\u2022": "*",  # Bullet
        "\u00a0": " ",  # Non-breaking space
    }

    for unicode_char, replacement in replacements.items():
        text = text.replace(unicode_char, replacement)

    try:
        text.encode('latin-1')
        return text
    except UnicodeEncodeError:
        return text.encode('latin-1', errors='replace').decode('latin-1')


@dataclass(frozen=True)
class PlacedBlock:
    """Where a fixed-height block ended up."""
    section: str
    page: int
    y: float
    height: float

    @property
    def bottom(self) -> float:
        return self.y + self.height


class LayoutCursor:
    """Tracks the vertical position on the current page.

    Before a block of ``height`` is placed, if ``y + height`` would pass
    ``page_height - bottom_margin`` a new page is started and ``y`` goes back
    to ``top_margin``.
    """

    def __init__(
        self,
        new_page: Callable[[], None],
        page_height: float = PAGE_HEIGHT,
        top_margin: float = MARGIN,
        bottom_margin: float = MARGIN,
    ):
        self._new_page = new_page
        self.page_height = page_height
        self.top_margin = top_margin
        self.bottom_margin = bottom_margin
        self.page = 0
        self.y = top_margin
        self.blocks: List[PlacedBlock] = []

    @property
    def limit(self) -> float:
        return self.page_height - self.bottom_margin

    def start_page(self):
        self._new_page()
        self.page += 1
        self.y = self.top_margin

    def place(self, height: float, section: str) -> float:
        """Reserve ``height`` points and return the y where the block starts."""
        if self.y + height > self.limit:
            self.start_page()
        top = self.y
        self.blocks.append(PlacedBlock(section, self.page, top, height))
        self.y += height
        return top

    def pages_for(self, section: str) -> List[int]:
        """Distinct pages holding blocks of ``section``, in order."""
        pages: List[int] = []
        for block in self.blocks:
            if block.section == section and block.page not in pages:
                pages.append(block.page)
        return pages


class ReportPDF(FPDF):
    """FPDF with a page-number footer on every page after the cover."""

    def __init__(self, title: str):
        super().__init__(orientation="P", unit="pt", format="letter")
        self.report_title = title

    def footer(self):
        if self.page_no() == 1:
            return
        self.set_font("helvetica", "", 10)
        self.set_text_color(*GRAY)
        self.set_xy(MARGIN, PAGE_HEIGHT - 40)
        self.cell(CONTENT_WIDTH, 12, sanitize_text_for_pdf(
            f"{self.report_title} Report - Page {self.page_no()} of {{nb}}"
        ), align="C")


class DocumentRenderer:
    """Renders a :class:`Report` to PDF bytes.

    After :meth:`render`, ``warnings`` lists the charts that could not be
    drawn and ``layout`` holds the cursor with every placed block.
    """

    def __init__(
        self,
        title: str = "DevTaskManager",
        chart_dpi: int = 150,
        chart_top_n: int = 10,
        date_format: str = DEFAULT_DATE_FORMAT,
    ):
        self.title = title
        self.date_format = date_format
        self.chart_dpi = chart_dpi
        self.chart_top_n = chart_top_n
        self.warnings: List[str] = []
        self.layout: Optional[LayoutCursor] = None
        self.pdf: Optional[ReportPDF] = None

    def _date(self, dt, missing: str = "N/A") -> str:
        return format_date(dt, missing=missing, fmt=self.date_format)

    def render(self, report: Report) -> bytes:
        self.warnings = []
        self.pdf = ReportPDF(self.title)
        self.pdf.set_auto_page_break(False)
        self.pdf.set_margins(MARGIN, MARGIN, MARGIN)
        self.pdf.set_title(sanitize_text_for_pdf(
            f"{self.title} Report - {self._date(report.generated_at)}"
        ))
        self.pdf.set_author(sanitize_text_for_pdf(f"{self.title} App"))
        self.pdf.set_creator(sanitize_text_for_pdf(self.title))
        self.pdf.set_creation_date(report.generated_at)
        self.layout = LayoutCursor(self.pdf.add_page)

        self._cover_page(report)
        self._projects_overview(report)
        self._users_overview(report)
        self._tasks_overview(report)
        self._detail_section(
            "projects", "Detailed Project Reports", report.detailed_projects, self._project_detail
        )
        self._detail_section(
            "users", "Detailed User Reports", report.detailed_users, self._user_detail
        )
        self._detail_section(
            "tasks", "Detailed Task Reports", report.detailed_tasks, self._task_detail
        )

        logger.debug(f"Rendered PDF report with {self.layout.page} pages")
        return bytes(self.pdf.output())

    # Text helpers

    def _fit(self, text: str, width: float) -> str:
        """Sanitize and truncate ``text`` to the current font's ``width``."""
        text = sanitize_text_for_pdf(text)
        if self.pdf.get_string_width(text) <= width:
            return text
        while text and self.pdf.get_string_width(text + "...") > width:
            text = text[:-1]
        return text + "..."

    def _text(self, x: float, y: float, width: float, height: float, text: str,
              size: float, style: str = "", color=BLACK, align: str = "L"):
        self.pdf.set_font("helvetica", style, size)
        self.pdf.set_text_color(*color)
        self.pdf.set_xy(x, y)
        self.pdf.cell(width, height, self._fit(text, width), align=align)

    # Cover page

    def _cover_page(self, report: Report):
        self.layout.start_page()
        y = 150
        self._text(MARGIN, y, CONTENT_WIDTH, 43, self.title, 36, "B", BLUE, "C")
        y += 43 + 20
        self._text(MARGIN, y, CONTENT_WIDTH, 29, "Comprehensive Report", 24, "", DARK_GRAY, "C")
        y += 29 + 60
        self._text(MARGIN, y, CONTENT_WIDTH, 19,
                   f"Generated: {format_timestamp(report.generated_at)}", 16, "", GRAY, "C")
        y += 19
        if report.date_range is not None and not report.date_range.is_open:
            start = self._date(report.date_range.start, missing="beginning")
            end = self._date(report.date_range.end, missing="now")
            self._text(MARGIN, y + 6, CONTENT_WIDTH, 16,
                       f"Tasks created {start} to {end}", 12, "", GRAY, "C")
        y += 80

        box_width, box_height, spacing = 150, 100, 30
        start_x = (PAGE_WIDTH - (box_width * 3 + spacing * 2)) / 2
        boxes = [
            ("Projects", report.projects_summary.total_projects, BLUE, (230, 242, 255)),
            ("Users", report.users_summary.total_users, PURPLE, (247, 238, 252)),
            ("Tasks", report.tasks_summary.total_tasks, ORANGE, (255, 244, 230)),
        ]
        for index, (label, value, color, fill) in enumerate(boxes):
            x = start_x + (box_width + spacing) * index
            self._stat_box(x, y, box_width, box_height, label, str(value), color, fill)
        y += box_height + 60

        self._key_metrics(report, y)

    def _stat_box(self, x, y, width, height, label, value, color, fill):
        self.pdf.set_fill_color(*fill)
        self.pdf.set_draw_color(*color)
        self.pdf.set_line_width(2)
        self.pdf.rect(x, y, width, height, style="DF", round_corners=True, corner_radius=12)
        self._text(x, y + 20, width, 38, value, 32, "B", color, "C")
        self._text(x, y + height - 30, width, 17, label, 14, "", DARK_GRAY, "C")

    def _key_metrics(self, report: Report, y: float) -> float:
        s = report.tasks_summary
        metrics = [
            f"Completed Tasks: {s.completed_tasks}",
            f"In Progress Tasks: {s.in_progress_tasks}",
            f"Unassigned Tasks: {s.unassigned_tasks}",
            f"Completion Rate: {s.completion_rate:.1f}%",
            f"Completed This Week: {s.completed_this_week}",
            f"Completed This Month: {s.completed_this_month}",
        ]
        for metric in metrics:
            self._text(80, y, PAGE_WIDTH - 160, 24, metric, 14, "", DARK_GRAY)
            y += 24
        return y + 20

    # Overview pages

    def _section_header(self, title: str, section: str):
        y = self.layout.place(SECTION_HEADER_HEIGHT, section)
        self._text(MARGIN, y, CONTENT_WIDTH, 30, title, 22, "B", BLUE)
        self.pdf.set_draw_color(*BLUE)
        self.pdf.set_line_width(2)
        self.pdf.line(MARGIN, y + 32, PAGE_WIDTH - MARGIN, y + 32)

    def _label_rows(self, rows: Sequence[Tuple[str, str]], section: str):
        for label, value in rows:
            y = self.layout.place(LINE_HEIGHT, section)
            self._text(MARGIN, y, 300, LINE_HEIGHT, label, 14, "", DARK_GRAY)
            self._text(MARGIN + 310, y, 200, LINE_HEIGHT, value, 14, "B", BLACK)

    def _chart(self, name: str, build: Callable[[], Optional[charts.ChartImage]],
               max_height: float, section: str):
        """Draw one chart; a failure is logged and recorded, never raised."""
        try:
            image = build()
            if image is None:
                return
            width = CONTENT_WIDTH
            height = width * image.aspect
            if height > max_height:
                height = max_height
                width = height / image.aspect
            self.layout.y += CHART_GAP
            y = self.layout.place(height + 10, section)
            x = MARGIN + (CONTENT_WIDTH - width) / 2
            self.pdf.image(BytesIO(image.png), x=x, y=y, w=width, h=height)
        except Exception as e:
            message = f"{name} chart omitted: {e}"
            logger.warning(message)
            self.warnings.append(message)

    def _projects_overview(self, report: Report):
        s = report.projects_summary
        self.layout.start_page()
        self._section_header("Projects Overview", "projects-overview")
        self._label_rows([
            ("Total Projects", str(s.total_projects)),
            ("Projects with Tasks", str(s.projects_with_tasks)),
            ("Projects without Tasks", str(s.projects_without_tasks)),
            ("Total Tasks Across All Projects", str(s.total_tasks_across_projects)),
            ("Average Tasks per Project", f"{s.average_tasks_per_project:.1f}"),
            ("Oldest Project", self._date(s.oldest_project)),
            ("Newest Project", self._date(s.newest_project)),
        ], "projects-overview")
        self._chart(
            "Project completion",
            lambda: charts.project_completion_chart(report, self.chart_top_n, self.chart_dpi),
            250, "projects-overview",
        )

    def _users_overview(self, report: Report):
        s = report.users_summary
        self.layout.start_page()
        self._section_header("Users Overview", "users-overview")
        self._label_rows([
            ("Total Users", str(s.total_users)),
            ("Users with Tasks", str(s.users_with_tasks)),
            ("Users without Tasks", str(s.users_without_tasks)),
            ("Total Tasks Assigned", str(s.total_tasks_assigned)),
            ("Average Tasks per User", f"{s.average_tasks_per_user:.1f}"),
            ("Most Active User", f"{s.most_active_user or 'N/A'} ({s.most_active_user_task_count})"),
        ], "users-overview")
        self._chart(
            "User productivity",
            lambda: charts.user_productivity_chart(report, self.chart_top_n, self.chart_dpi),
            250, "users-overview",
        )

    def _tasks_overview(self, report: Report):
        s = report.tasks_summary
        self.layout.start_page()
        self._section_header("Tasks Overview", "tasks-overview")
        rows = [
            ("Total Tasks", str(s.total_tasks)),
            (TaskStatus.UNASSIGNED.value, str(s.unassigned_tasks)),
            (TaskStatus.IN_PROGRESS.value, str(s.in_progress_tasks)),
            (TaskStatus.COMPLETED.value, str(s.completed_tasks)),
            (TaskStatus.DEFERRED.value, str(s.deferred_tasks)),
            ("Completion Rate", f"{s.completion_rate:.1f}%"),
            ("Completed This Week", str(s.completed_this_week)),
            ("Completed This Month", str(s.completed_this_month)),
        ]
        rows.extend(
            (f"{label or 'Unspecified'} Priority", str(count))
            for label, count in sorted(s.tasks_by_priority.items())
        )
        self._label_rows(rows, "tasks-overview")
        self._chart(
            "Task status",
            lambda: charts.status_distribution_chart(report, self.chart_dpi),
            200, "tasks-overview",
        )
        self._chart(
            "Task type",
            lambda: charts.task_type_chart(report, self.chart_dpi),
            200, "tasks-overview",
        )

    # Detail pages

    def _detail_section(self, section: str, title: str, rows: Sequence, draw: Callable):
        if not rows:
            return
        self.layout.start_page()
        self._section_header(title, f"{section}-header")
        for row in rows:
            y = self.layout.place(DETAIL_BLOCK_HEIGHT, section)
            self._detail_box(y, section)
            draw(row, y)

    def _detail_box(self, y: float, section: str):
        fill, border = BOX_COLORS[section]
        self.pdf.set_fill_color(*fill)
        self.pdf.set_draw_color(*border)
        self.pdf.set_line_width(1)
        self.pdf.rect(MARGIN, y, CONTENT_WIDTH, DETAIL_BOX_HEIGHT, style="DF",
                      round_corners=True, corner_radius=8)

    def _project_detail(self, project: ProjectReport, y: float):
        inner = CONTENT_WIDTH - 20
        self._text(MARGIN + 10, y + 10, inner, 20, project.title, 16, "B")
        self._text(MARGIN + 10, y + 32, inner, 15,
                   project.description or "No description", 11, "", BLUE)
        self._text(
            MARGIN + 10, y + 55, inner, 20,
            f"Created: {self._date(project.created)} | Members: {project.user_count}"
            f" | Tasks: {project.task_count} | Done {project.completed_task_count}"
            f" | Active {project.in_progress_task_count} | Open {project.unassigned_task_count}"
            f" | Deferred {project.deferred_task_count}",
            12, "", DARK_GRAY,
        )

    def _user_detail(self, user: UserReport, y: float):
        inner = CONTENT_WIDTH - 20
        self._text(MARGIN + 10, y + 10, inner, 20, user.name, 16, "B")
        self._text(MARGIN + 10, y + 32, inner, 15, ", ".join(user.roles) or "No roles", 11, "", PURPLE)
        self._text(
            MARGIN + 10, y + 55, inner, 20,
            f"Joined: {self._date(user.created)} | Tasks: {user.total_tasks_assigned}"
            f" | Done {user.completed_tasks} | Active {user.in_progress_tasks}"
            f" | Open {user.unassigned_tasks} | Deferred {user.deferred_tasks}",
            12, "", DARK_GRAY,
        )

    def _task_detail(self, task: TaskReport, y: float):
        inner = CONTENT_WIDTH - 20
        self._text(MARGIN + 10, y + 10, inner, 20, task.name, 16, "B")
        self._text(
            MARGIN + 10, y + 32, inner, 15,
            f"{task.project_name} | {task.assigned_user_name or 'Unassigned'}",
            11, "", ORANGE,
        )
        self._text(
            MARGIN + 10, y + 55, inner, 20,
            f"{label_text(parse_label(TaskType, task.task_type))}"
            f" | {label_text(parse_label(TaskPriority, task.task_priority))}"
            f" | {label_text(parse_label(TaskStatus, task.task_status))}"
            f" | Created {self._date(task.created)}"
            f" | Completed {self._date(task.completed_at)}",
            12, "", DARK_GRAY,
        )
