"""Report services for DevTask."""

from .report_models import (
    DateRange,
    ProjectsSummary,
    UsersSummary,
    TasksSummary,
    ProjectReport,
    UserReport,
    TaskReport,
    Report,
)
from .snapshot import EntitySnapshot, take_snapshot
from .aggregator import aggregate
from .report_builder import build_report, ReportGenerator
from .export import (
    ExportManager,
    ExportFormat,
    render_text,
    render_csv,
    render_document,
)

__all__ = [
    "DateRange",
    "ProjectsSummary",
    "UsersSummary",
    "TasksSummary",
    "ProjectReport",
    "UserReport",
    "TaskReport",
    "Report",
    "EntitySnapshot",
    "take_snapshot",
    "aggregate",
    "build_report",
    "ReportGenerator",
    "ExportManager",
    "ExportFormat",
    "render_text",
    "render_csv",
    "render_document",
]
