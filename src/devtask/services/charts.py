"""
Chart images for PDF reports.

Charts are drawn with matplotlib's object API (``Figure`` on the Agg canvas)
rather than pyplot, so they can be produced from any thread. Each builder
returns a :class:`ChartImage` holding PNG bytes, or None when there is
nothing to plot. Rendering errors propagate to the caller.
"""

import logging
from dataclasses import dataclass
from io import BytesIO
from typing import List, Optional, Sequence

from ..domain import TaskStatus
from .report_models import ProjectReport, Report

logger = logging.getLogger(__name__)

_CHART_PALETTE = [
    '#2563eb', '#16a34a', '#ca8a04', '#dc2626', '#7c3aed',
    '#0891b2', '#db2777', '#ea580c', '#4f46e5', '#059669',
]

_STATUS_COLORS = {
    TaskStatus.UNASSIGNED: '#94a3b8',
    TaskStatus.IN_PROGRESS: '#ca8a04',
    TaskStatus.COMPLETED: '#16a34a',
    TaskStatus.DEFERRED: '#dc2626',
}

FIGSIZE = (6.4, 3.6)


@dataclass(frozen=True)
class ChartImage:
    """A rendered PNG and its pixel size."""
    png: bytes
    width_px: int
    height_px: int

    @property
    def aspect(self) -> float:
        return self.height_px / self.width_px


def _get_colors(n: int) -> List[str]:
    return [_CHART_PALETTE[i % len(_CHART_PALETTE)] for i in range(n)]


def _new_figure(figsize=FIGSIZE):
    """Create a pyplot-free figure."""
    from matplotlib.figure import Figure

    return Figure(figsize=figsize, facecolor='white')


def _fig_to_image(fig, dpi: int) -> ChartImage:
    """Save ``fig`` as PNG; the pixel size is figsize times dpi."""
    buf = BytesIO()
    fig.savefig(buf, format='png', dpi=dpi, facecolor='white')
    width_in, height_in = fig.get_size_inches()
    logger.debug(f"Rendered chart at {width_in * dpi:.0f}x{height_in * dpi:.0f} px")
    return ChartImage(
        png=buf.getvalue(),
        width_px=int(round(width_in * dpi)),
        height_px=int(round(height_in * dpi)),
    )


def _style_axes(ax, title: str, grid_axis: str):
    ax.set_title(title, fontsize=12, fontweight='bold', pad=10)
    ax.spines['top'].set_visible(False)
    ax.spines['right'].set_visible(False)
    ax.grid(axis=grid_axis, alpha=0.3)
    ax.set_axisbelow(True)


def _shorten(label: str, limit: int = 24) -> str:
    return label if len(label) <= limit else label[:limit - 1] + "…"


def status_distribution_chart(report: Report, dpi: int = 150) -> Optional[ChartImage]:
    """Vertical bar chart of tasks per status."""
    summary = report.tasks_summary
    if summary.total_tasks == 0:
        return None

    counts = {
        TaskStatus.UNASSIGNED: summary.unassigned_tasks,
        TaskStatus.IN_PROGRESS: summary.in_progress_tasks,
        TaskStatus.COMPLETED: summary.completed_tasks,
        TaskStatus.DEFERRED: summary.deferred_tasks,
    }
    fig = _new_figure()
    ax = fig.add_subplot(1, 1, 1)
    ax.bar(
        [status.value for status in counts],
        list(counts.values()),
        color=[_STATUS_COLORS[status] for status in counts],
        width=0.6, edgecolor='white', linewidth=0.5,
    )
    ax.set_ylabel('Tasks', fontsize=9)
    _style_axes(ax, 'Task Status Distribution', 'y')
    fig.tight_layout()
    return _fig_to_image(fig, dpi)


def top_projects(report: Report, top_n: int = 10) -> List[ProjectReport]:
    """Projects charted for completion, in report order.

    Projects without tasks are kept and plot at 0%.
    """
    return list(report.detailed_projects[:top_n])


def project_completion_chart(
    report: Report, top_n: int = 10, dpi: int = 150
) -> Optional[ChartImage]:
    """Horizontal bars of completion rate for the first ``top_n`` projects."""
    top = top_projects(report, top_n)
    if not top:
        return None

    return _horizontal_bars(
        labels=[_shorten(p.title) for p in top],
        values=[p.completion_rate for p in top],
        title=f'Completion Rate, Top {len(top)} Projects',
        xlabel='% complete',
        dpi=dpi,
        xlim=(0, 100),
    )


def user_productivity_chart(
    report: Report, top_n: int = 10, dpi: int = 150
) -> Optional[ChartImage]:
    """Horizontal bars of assigned tasks for the busiest users."""
    users = [u for u in report.detailed_users if u.total_tasks_assigned > 0]
    if not users:
        return None

    top = sorted(users, key=lambda u: u.total_tasks_assigned, reverse=True)[:top_n]
    return _horizontal_bars(
        labels=[_shorten(u.name) for u in top],
        values=[u.total_tasks_assigned for u in top],
        title=f'Assigned Tasks, Top {len(top)} Users',
        xlabel='Tasks',
        dpi=dpi,
    )


def _horizontal_bars(
    labels: Sequence[str],
    values: Sequence[float],
    title: str,
    xlabel: str,
    dpi: int,
    xlim=None,
) -> ChartImage:
    fig = _new_figure()
    ax = fig.add_subplot(1, 1, 1)
    y_pos = list(range(len(labels)))
    ax.barh(
        y_pos, values, color=_get_colors(len(labels)),
        height=0.6, edgecolor='white', linewidth=0.5,
    )
    ax.set_yticks(y_pos)
    ax.set_yticklabels(labels, fontsize=8)
    ax.invert_yaxis()
    ax.set_xlabel(xlabel, fontsize=9)
    if xlim is not None:
        ax.set_xlim(*xlim)
    _style_axes(ax, title, 'x')
    fig.tight_layout()
    return _fig_to_image(fig, dpi)


def task_type_chart(report: Report, dpi: int = 150) -> Optional[ChartImage]:
    """Ring chart of tasks per type label."""
    by_type = sorted(report.tasks_summary.tasks_by_type.items(), key=lambda item: item[0])
    by_type = [(label or 'Unspecified', count) for label, count in by_type if count > 0]
    if not by_type:
        return None

    fig = _new_figure()
    ax = fig.add_subplot(1, 1, 1)
    wedges, _texts, autotexts = ax.pie(
        [count for _, count in by_type],
        colors=_get_colors(len(by_type)),
        autopct='%1.0f%%',
        startangle=90,
        pctdistance=0.78,
        wedgeprops={'width': 0.4, 'edgecolor': 'white'},
        textprops={'fontsize': 8},
    )
    for at in autotexts:
        at.set_color('white')
        at.set_fontweight('bold')
    ax.legend(
        wedges, [f"{label} ({count})" for label, count in by_type],
        loc='center left', bbox_to_anchor=(1.0, 0.5), fontsize=8, frameon=False,
    )
    ax.set_aspect('equal')
    ax.set_title('Tasks by Type', fontsize=12, fontweight='bold', pad=10)
    fig.tight_layout()
    return _fig_to_image(fig, dpi)
