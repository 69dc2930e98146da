"""Immutable report records produced by the report builder.

Every record here holds plain values only (strings, numbers, datetimes), never
references back to store entities, so a built :class:`Report` stays valid
while the store keeps changing underneath it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from ..utils.datetime import ensure_aware, to_iso_string


def _freeze_counts(counts: Mapping[str, int]) -> Mapping[str, int]:
    return MappingProxyType(dict(counts))


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator


@dataclass(frozen=True)
class DateRange:
    """Inclusive bounds on task creation time; either side may be open."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "start", ensure_aware(self.start))
        object.__setattr__(self, "end", ensure_aware(self.end))
        if self.start and self.end and self.start > self.end:
            raise ValueError("date range start must not be after its end")

    def contains(self, moment: datetime) -> bool:
        moment = ensure_aware(moment)
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True

    @property
    def is_open(self) -> bool:
        return self.start is None and self.end is None

    def to_dict(self) -> Dict[str, Any]:
        return {"start": to_iso_string(self.start), "end": to_iso_string(self.end)}


@dataclass(frozen=True)
class ProjectsSummary:
    """Aggregate figures over all projects."""
    total_projects: int
    projects_with_tasks: int
    projects_without_tasks: int
    total_tasks_across_projects: int
    average_tasks_per_project: float
    oldest_project: Optional[datetime] = None
    newest_project: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_projects': self.total_projects,
            'projects_with_tasks': self.projects_with_tasks,
            'projects_without_tasks': self.projects_without_tasks,
            'total_tasks_across_projects': self.total_tasks_across_projects,
            'average_tasks_per_project': self.average_tasks_per_project,
            'oldest_project': to_iso_string(self.oldest_project),
            'newest_project': to_iso_string(self.newest_project),
        }


@dataclass(frozen=True)
class UsersSummary:
    """Aggregate figures over all users."""
    total_users: int
    users_with_tasks: int
    users_without_tasks: int
    total_tasks_assigned: int
    average_tasks_per_user: float
    most_active_user: Optional[str] = None
    most_active_user_task_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_users': self.total_users,
            'users_with_tasks': self.users_with_tasks,
            'users_without_tasks': self.users_without_tasks,
            'total_tasks_assigned': self.total_tasks_assigned,
            'average_tasks_per_user': self.average_tasks_per_user,
            'most_active_user': self.most_active_user,
            'most_active_user_task_count': self.most_active_user_task_count,
        }


@dataclass(frozen=True)
class TasksSummary:
    """Aggregate figures over all tasks.

    ``tasks_by_type`` and ``tasks_by_priority`` are keyed by the stored label,
    so custom labels show up as their own keys.
    """
    total_tasks: int
    unassigned_tasks: int
    in_progress_tasks: int
    completed_tasks: int
    deferred_tasks: int
    tasks_by_type: Mapping[str, int] = field(default_factory=dict)
    tasks_by_priority: Mapping[str, int] = field(default_factory=dict)
    oldest_task: Optional[datetime] = None
    newest_task: Optional[datetime] = None
    completed_this_week: int = 0
    completed_this_month: int = 0

    def __post_init__(self):
        object.__setattr__(self, "tasks_by_type", _freeze_counts(self.tasks_by_type))
        object.__setattr__(self, "tasks_by_priority", _freeze_counts(self.tasks_by_priority))

    @property
    def completion_rate(self) -> float:
        """Completed tasks as a percentage of all tasks."""
        return _ratio(self.completed_tasks, self.total_tasks) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_tasks': self.total_tasks,
            'unassigned_tasks': self.unassigned_tasks,
            'in_progress_tasks': self.in_progress_tasks,
            'completed_tasks': self.completed_tasks,
            'deferred_tasks': self.deferred_tasks,
            'tasks_by_type': dict(self.tasks_by_type),
            'tasks_by_priority': dict(self.tasks_by_priority),
            'oldest_task': to_iso_string(self.oldest_task),
            'newest_task': to_iso_string(self.newest_task),
            'completed_this_week': self.completed_this_week,
            'completed_this_month': self.completed_this_month,
            'completion_rate': self.completion_rate,
        }


@dataclass(frozen=True)
class ProjectReport:
    """Detail row for one project."""
    id: str
    title: str
    description: str
    created: datetime
    updated: Optional[datetime]
    task_count: int
    completed_task_count: int
    in_progress_task_count: int
    unassigned_task_count: int
    deferred_task_count: int
    user_count: int

    @property
    def completion_rate(self) -> float:
        return _ratio(self.completed_task_count, self.task_count) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'created': to_iso_string(self.created),
            'updated': to_iso_string(self.updated),
            'task_count': self.task_count,
            'completed_task_count': self.completed_task_count,
            'in_progress_task_count': self.in_progress_task_count,
            'unassigned_task_count': self.unassigned_task_count,
            'deferred_task_count': self.deferred_task_count,
            'user_count': self.user_count,
            'completion_rate': self.completion_rate,
        }


@dataclass(frozen=True)
class UserReport:
    """Detail row for one user."""
    id: str
    name: str
    roles: Tuple[str, ...]
    created: datetime
    total_tasks_assigned: int
    completed_tasks: int
    in_progress_tasks: int
    unassigned_tasks: int
    deferred_tasks: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'roles': list(self.roles),
            'created': to_iso_string(self.created),
            'total_tasks_assigned': self.total_tasks_assigned,
            'completed_tasks': self.completed_tasks,
            'in_progress_tasks': self.in_progress_tasks,
            'unassigned_tasks': self.unassigned_tasks,
            'deferred_tasks': self.deferred_tasks,
        }


@dataclass(frozen=True)
class TaskReport:
    """Detail row for one task, with its relations resolved to names."""
    id: str
    name: str
    project_name: str
    assigned_user_name: Optional[str]
    task_type: str
    task_status: str
    task_priority: str
    created: datetime
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    item_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'project_name': self.project_name,
            'assigned_user_name': self.assigned_user_name,
            'task_type': self.task_type,
            'task_status': self.task_status,
            'task_priority': self.task_priority,
            'created': to_iso_string(self.created),
            'assigned_at': to_iso_string(self.assigned_at),
            'completed_at': to_iso_string(self.completed_at),
            'item_count': self.item_count,
        }


@dataclass(frozen=True)
class Report:
    """A point-in-time snapshot: three summaries plus three sets of detail rows."""
    generated_at: datetime
    projects_summary: ProjectsSummary
    users_summary: UsersSummary
    tasks_summary: TasksSummary
    detailed_projects: Tuple[ProjectReport, ...] = ()
    detailed_users: Tuple[UserReport, ...] = ()
    detailed_tasks: Tuple[TaskReport, ...] = ()
    date_range: Optional[DateRange] = None

    def __post_init__(self):
        object.__setattr__(self, "generated_at", ensure_aware(self.generated_at))
        object.__setattr__(self, "detailed_projects", tuple(self.detailed_projects))
        object.__setattr__(self, "detailed_users", tuple(self.detailed_users))
        object.__setattr__(self, "detailed_tasks", tuple(self.detailed_tasks))

    @property
    def tasks_per_project(self) -> float:
        return _ratio(self.tasks_summary.total_tasks, self.projects_summary.total_projects)

    @property
    def tasks_per_user(self) -> float:
        return _ratio(self.tasks_summary.total_tasks, self.users_summary.total_users)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'generated_at': to_iso_string(self.generated_at),
            'date_range': self.date_range.to_dict() if self.date_range else None,
            'projects_summary': self.projects_summary.to_dict(),
            'users_summary': self.users_summary.to_dict(),
            'tasks_summary': self.tasks_summary.to_dict(),
            'detailed_projects': [p.to_dict() for p in self.detailed_projects],
            'detailed_users': [u.to_dict() for u in self.detailed_users],
            'detailed_tasks': [t.to_dict() for t in self.detailed_tasks],
        }
