"""Builds :class:`Report` snapshots from store entities.

``build_report`` is pure: it snapshots its inputs once, aggregates, and derives
one detail row per project, user and task. ``ReportGenerator`` adds the store
fetch in front of it, which is the only step that can fail.
"""

import asyncio
import logging
from datetime import datetime
from typing import Iterable, Optional

from ..domain import Project, Task, TaskStatus, User
from ..errors import ReportGenerationError, StoreError
from ..storage import Storage
from ..utils.datetime import ensure_aware, now_utc
from .aggregator import aggregate_snapshot, count_by_status
from .report_models import DateRange, ProjectReport, Report, TaskReport, UserReport
from .snapshot import EntitySnapshot, ProjectFacts, TaskFacts, UserFacts, take_snapshot

logger = logging.getLogger(__name__)

NO_PROJECT = "No Project"


def project_row(project: ProjectFacts) -> ProjectReport:
    statuses = count_by_status(project.tasks)
    return ProjectReport(
        id=project.id,
        title=project.title,
        description=project.description,
        created=project.created,
        updated=project.updated,
        task_count=len(project.tasks),
        completed_task_count=statuses[TaskStatus.COMPLETED],
        in_progress_task_count=statuses[TaskStatus.IN_PROGRESS],
        unassigned_task_count=statuses[TaskStatus.UNASSIGNED],
        deferred_task_count=statuses[TaskStatus.DEFERRED],
        user_count=project.member_count,
    )


def user_row(user: UserFacts) -> UserReport:
    statuses = count_by_status(user.tasks)
    return UserReport(
        id=user.id,
        name=user.name,
        roles=user.roles,
        created=user.created,
        total_tasks_assigned=len(user.tasks),
        completed_tasks=statuses[TaskStatus.COMPLETED],
        in_progress_tasks=statuses[TaskStatus.IN_PROGRESS],
        unassigned_tasks=statuses[TaskStatus.UNASSIGNED],
        deferred_tasks=statuses[TaskStatus.DEFERRED],
    )


def task_row(task: TaskFacts) -> TaskReport:
    return TaskReport(
        id=task.id,
        name=task.name,
        project_name=task.project_title or NO_PROJECT,
        assigned_user_name=task.assigned_user_name,
        task_type=task.type,
        task_status=task.status,
        task_priority=task.priority,
        created=task.created,
        assigned_at=task.assigned_at,
        completed_at=task.completed_at,
        item_count=task.item_count,
    )


def build_report_from_snapshot(
    snapshot: EntitySnapshot,
    now: datetime,
    date_range: Optional[DateRange] = None,
) -> Report:
    projects_summary, users_summary, tasks_summary = aggregate_snapshot(snapshot, now)
    return Report(
        generated_at=ensure_aware(now),
        projects_summary=projects_summary,
        users_summary=users_summary,
        tasks_summary=tasks_summary,
        detailed_projects=tuple(project_row(p) for p in snapshot.projects),
        detailed_users=tuple(user_row(u) for u in snapshot.users),
        detailed_tasks=tuple(task_row(t) for t in snapshot.tasks),
        date_range=date_range,
    )


def build_report(
    projects: Iterable[Project],
    users: Iterable[User],
    tasks: Iterable[Task],
    now: datetime,
    date_range: Optional[DateRange] = None,
) -> Report:
    """Build a complete report for the given entities as of ``now``.

    Args:
        projects: Projects in the order their detail rows should appear
        users: Users in the order their detail rows should appear
        tasks: Tasks in the order their detail rows should appear
        now: Reference time for the report timestamp and rolling windows
        date_range: Optional filter on task creation time

    Returns:
        A new immutable Report; the inputs are not modified
    """
    snapshot = take_snapshot(projects, users, tasks, date_range)
    report = build_report_from_snapshot(snapshot, now, date_range)
    logger.debug(
        f"Built report with {len(report.detailed_projects)} projects, "
        f"{len(report.detailed_users)} users, {len(report.detailed_tasks)} tasks"
    )
    return report


class ReportGenerator:
    """Loads entities from a store and builds a fresh report on every call."""

    def __init__(self, storage: Storage):
        self.storage = storage

    def generate(
        self,
        now: Optional[datetime] = None,
        date_range: Optional[DateRange] = None,
    ) -> Report:
        """Fetch everything from the store and build a report.

        Raises:
            ReportGenerationError: If the store could not be read
        """
        try:
            contents = self.storage.load()
        except StoreError as e:
            logger.error(f"Report generation failed: {e}")
            raise ReportGenerationError(f"Report generation failed: {e}", cause=e) from e

        return build_report(
            contents.projects,
            contents.users,
            contents.tasks,
            now or now_utc(),
            date_range,
        )

    async def generate_async(
        self,
        now: Optional[datetime] = None,
        date_range: Optional[DateRange] = None,
    ) -> Report:
        """Run :meth:`generate` in a worker thread."""
        return await asyncio.to_thread(self.generate, now, date_range)

