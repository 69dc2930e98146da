"""Summary aggregation over projects, users and tasks.

All figures are computed from an :class:`~devtask.services.snapshot.EntitySnapshot`;
``now`` is always passed in so the rolling windows are reproducible.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Iterable, Optional, Sequence, Tuple

from ..domain import Project, Task, TaskStatus, User
from ..utils.datetime import ensure_aware, month_cutoff, week_cutoff
from .report_models import DateRange, ProjectsSummary, TasksSummary, UsersSummary
from .snapshot import EntitySnapshot, ProjectFacts, TaskFacts, UserFacts, take_snapshot

logger = logging.getLogger(__name__)


def _safe_div(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safe division returning *default* when denominator is zero."""
    if denominator == 0:
        return default
    return numerator / denominator


def count_by_status(tasks: Iterable[TaskFacts]) -> Counter:
    """Count tasks per canonical status; unrecognised labels are left out."""
    counts: Counter = Counter()
    for task in tasks:
        status = task.status_kind
        if status is not None:
            counts[status] += 1
    return counts


def summarize_projects(projects: Sequence[ProjectFacts]) -> ProjectsSummary:
    with_tasks = sum(1 for p in projects if p.tasks)
    total_tasks = sum(len(p.tasks) for p in projects)
    created = [p.created for p in projects]
    return ProjectsSummary(
        total_projects=len(projects),
        projects_with_tasks=with_tasks,
        projects_without_tasks=len(projects) - with_tasks,
        total_tasks_across_projects=total_tasks,
        average_tasks_per_project=_safe_div(total_tasks, len(projects)),
        oldest_project=min(created) if created else None,
        newest_project=max(created) if created else None,
    )


def most_active_user(users: Sequence[UserFacts]) -> Tuple[Optional[UserFacts], int]:
    """Return the user with the most assigned tasks and that count.

    Ties go to whichever user comes first in ``users``, including the case
    where nobody has any tasks.
    """
    best: Optional[UserFacts] = None
    best_count = -1
    for user in users:
        if len(user.tasks) > best_count:
            best, best_count = user, len(user.tasks)
    return best, max(best_count, 0)


def summarize_users(users: Sequence[UserFacts]) -> UsersSummary:
    with_tasks = sum(1 for u in users if u.tasks)
    total_tasks = sum(len(u.tasks) for u in users)
    leader, leader_count = most_active_user(users)
    return UsersSummary(
        total_users=len(users),
        users_with_tasks=with_tasks,
        users_without_tasks=len(users) - with_tasks,
        total_tasks_assigned=total_tasks,
        average_tasks_per_user=_safe_div(total_tasks, len(users)),
        most_active_user=leader.name if leader else None,
        most_active_user_task_count=leader_count,
    )


def completed_since(tasks: Iterable[TaskFacts], cutoff: datetime) -> int:
    """Count completed tasks whose completion time is at or after ``cutoff``.

    A completed task with no completion time never counts.
    """
    return sum(
        1 for t in tasks
        if t.status_kind is TaskStatus.COMPLETED
        and t.completed_at is not None
        and t.completed_at >= cutoff
    )


def summarize_tasks(tasks: Sequence[TaskFacts], now: datetime) -> TasksSummary:
    now = ensure_aware(now)
    statuses = count_by_status(tasks)
    by_type = Counter(t.type for t in tasks)
    by_priority = Counter(t.priority for t in tasks)
    created = [t.created for t in tasks]

    unknown = len(tasks) - sum(statuses.values())
    if unknown:
        logger.debug(f"{unknown} task(s) have a status outside the known set")

    return TasksSummary(
        total_tasks=len(tasks),
        unassigned_tasks=statuses[TaskStatus.UNASSIGNED],
        in_progress_tasks=statuses[TaskStatus.IN_PROGRESS],
        completed_tasks=statuses[TaskStatus.COMPLETED],
        deferred_tasks=statuses[TaskStatus.DEFERRED],
        tasks_by_type=dict(by_type),
        tasks_by_priority=dict(by_priority),
        oldest_task=min(created) if created else None,
        newest_task=max(created) if created else None,
        completed_this_week=completed_since(tasks, week_cutoff(now)),
        completed_this_month=completed_since(tasks, month_cutoff(now)),
    )


def aggregate_snapshot(
    snapshot: EntitySnapshot, now: datetime
) -> Tuple[ProjectsSummary, UsersSummary, TasksSummary]:
    """Compute all three summaries from an existing snapshot."""
    return (
        summarize_projects(snapshot.projects),
        summarize_users(snapshot.users),
        summarize_tasks(snapshot.tasks, now),
    )


def aggregate(
    projects: Iterable[Project],
    users: Iterable[User],
    tasks: Iterable[Task],
    now: datetime,
    date_range: Optional[DateRange] = None,
) -> Tuple[ProjectsSummary, UsersSummary, TasksSummary]:
    """Snapshot the given entities and compute the three summaries."""
    return aggregate_snapshot(take_snapshot(projects, users, tasks, date_range), now)
