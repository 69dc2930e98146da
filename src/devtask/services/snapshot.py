"""Value snapshots of store entities taken before aggregation.

Projects, tasks and users reference each other in cycles and may be edited
while a report is being produced. Everything the aggregator and the report
builder need is copied out here first, in one pass, so the rest of the
pipeline only ever sees immutable tuples.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from ..domain import Project, Task, TaskStatus, User, parse_status
from ..utils.datetime import ensure_aware
from .report_models import DateRange

UNTITLED_TASK = "Untitled Task"


@dataclass(frozen=True)
class TaskFacts:
    id: str
    name: str
    type: str
    status: str
    priority: str
    created: datetime
    assigned_at: Optional[datetime]
    completed_at: Optional[datetime]
    project_title: Optional[str]
    assigned_user_name: Optional[str]
    item_count: int

    @property
    def status_kind(self) -> Optional[TaskStatus]:
        return parse_status(self.status)


@dataclass(frozen=True)
class ProjectFacts:
    id: str
    title: str
    description: str
    created: datetime
    updated: Optional[datetime]
    tasks: Tuple[TaskFacts, ...]
    member_count: int


@dataclass(frozen=True)
class UserFacts:
    id: str
    name: str
    roles: Tuple[str, ...]
    created: datetime
    tasks: Tuple[TaskFacts, ...]


@dataclass(frozen=True)
class EntitySnapshot:
    projects: Tuple[ProjectFacts, ...]
    users: Tuple[UserFacts, ...]
    tasks: Tuple[TaskFacts, ...]


def take_snapshot(
    projects: Iterable[Project],
    users: Iterable[User],
    tasks: Iterable[Task],
    date_range: Optional[DateRange] = None,
) -> EntitySnapshot:
    """Copy the three entity collections into an :class:`EntitySnapshot`.

    Input order is preserved. A user's tasks are the entries of ``tasks``
    whose assignee is that user, so assignments missing from
    ``User.tasks`` still count. When ``date_range`` is given, every task
    collection (the flat task list, each project's tasks and each user's
    tasks) keeps only tasks created inside it.
    """
    tasks = list(tasks)
    facts_by_task: Dict[int, TaskFacts] = {}
    tasks_by_user: Dict[int, List[Task]] = {}

    def keep(task: Task) -> bool:
        return date_range is None or date_range.contains(task.created)

    def facts(task: Task) -> TaskFacts:
        cached = facts_by_task.get(id(task))
        if cached is None:
            cached = _task_facts(task)
            facts_by_task[id(task)] = cached
        return cached

    for t in tasks:
        if t.assigned_user is not None and keep(t):
            tasks_by_user.setdefault(id(t.assigned_user), []).append(t)

    project_facts = tuple(
        ProjectFacts(
            id=project.id,
            title=project.display_title,
            description=project.description,
            created=ensure_aware(project.created),
            updated=ensure_aware(project.updated),
            tasks=tuple(facts(t) for t in list(project.tasks) if keep(t)),
            member_count=len(project.users),
        )
        for project in list(projects)
    )

    user_facts = tuple(
        UserFacts(
            id=user.id,
            name=user.full_name,
            roles=tuple(user.role_names),
            created=ensure_aware(user.created),
            tasks=tuple(facts(t) for t in tasks_by_user.get(id(user), [])),
        )
        for user in list(users)
    )

    task_facts = tuple(facts(t) for t in tasks if keep(t))

    return EntitySnapshot(projects=project_facts, users=user_facts, tasks=task_facts)


def _task_facts(task: Task) -> TaskFacts:
    project = task.project
    user = task.assigned_user
    return TaskFacts(
        id=task.id,
        name=task.name.strip() or UNTITLED_TASK,
        type=task.type or "",
        status=task.status or "",
        priority=task.priority or "",
        created=ensure_aware(task.created),
        assigned_at=ensure_aware(task.assigned_at),
        completed_at=ensure_aware(task.completed_at),
        project_title=project.display_title if project is not None else None,
        assigned_user_name=user.full_name if user is not None else None,
        item_count=len(task.items),
    )
