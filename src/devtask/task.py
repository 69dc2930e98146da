"""Task data model and task label vocabularies for DevTask."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Type, TypeVar, Union

from .utils.datetime import now_utc, ensure_aware

if TYPE_CHECKING:
    from .project import Project
    from .user import User


class TaskStatus(Enum):
    """Task status states."""
    UNASSIGNED = "Unassigned"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    DEFERRED = "Deferred"


class TaskPriority(Enum):
    """Task priority levels."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    ENHANCEMENT = "Enhancement"


class TaskType(Enum):
    """Kinds of development work a task can represent."""
    DEVELOPMENT = "Development"
    REQUIREMENTS = "Requirements"
    DESIGN = "Design"
    USE_CASES = "Use Cases"
    TESTING = "Testing"
    DOCUMENTATION = "Documentation"
    DATABASE = "Database"
    DEFECT_CORRECTION = "Defect Correction"


E = TypeVar("E", bound=Enum)


def _normalize(label: Optional[str]) -> str:
    return (label or "").strip().casefold()


def parse_label(enum_cls: Type[E], label: Optional[str]) -> Union[E, str]:
    """Resolve a stored label to a known enum member.

    Labels are persisted as free text, so anything outside the vocabulary is
    handed back verbatim as the "other" variant.
    """
    wanted = _normalize(label)
    for member in enum_cls:
        if member.value.casefold() == wanted:
            return member
    return label or ""


def parse_status(label: Optional[str]) -> Optional[TaskStatus]:
    """Return the canonical status for ``label`` or None if it is not one of the four."""
    status = parse_label(TaskStatus, label)
    return status if isinstance(status, TaskStatus) else None


def label_text(value: Union[Enum, str]) -> str:
    """Display text for a parsed label."""
    if isinstance(value, Enum):
        return value.value
    return value


@dataclass(eq=False)
class TaskItem:
    """A checklist entry belonging to a task."""

    description: str
    priority: int = 0
    comment: Optional[str] = None
    completed_at: Optional[datetime] = None
    created: datetime = field(default_factory=now_utc)
    updated: Optional[datetime] = None
    parent: Optional["Task"] = field(default=None, repr=False)

    def __post_init__(self):
        self.created = ensure_aware(self.created)
        self.completed_at = ensure_aware(self.completed_at)
        self.updated = ensure_aware(self.updated)

    @property
    def is_complete(self) -> bool:
        return self.completed_at is not None


@dataclass(eq=False)
class Task:
    """A unit of work, optionally owned by a project and assigned to a user.

    ``type``, ``status`` and ``priority`` hold the labels exactly as they were
    stored; use :attr:`status_kind`, :attr:`priority_kind` and :attr:`type_kind`
    for the parsed values.
    """

    id: str
    name: str
    type: str = TaskType.DEVELOPMENT.value
    status: str = TaskStatus.UNASSIGNED.value
    priority: str = TaskPriority.MEDIUM.value
    comment: str = ""

    created: datetime = field(default_factory=now_utc)
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    updated: Optional[datetime] = None

    project: Optional["Project"] = field(default=None, repr=False)
    assigned_user: Optional["User"] = field(default=None, repr=False)
    items: List[TaskItem] = field(default_factory=list, repr=False)

    def __post_init__(self):
        """Normalize timestamps and wire up both sides of each relation."""
        self.created = ensure_aware(self.created)
        self.assigned_at = ensure_aware(self.assigned_at)
        self.completed_at = ensure_aware(self.completed_at)
        self.updated = ensure_aware(self.updated)

        for item in self.items:
            item.parent = self
        if self.project is not None and self not in self.project.tasks:
            self.project.tasks.append(self)
        if self.assigned_user is not None and self not in self.assigned_user.tasks:
            self.assigned_user.tasks.append(self)

    @property
    def status_kind(self) -> Optional[TaskStatus]:
        return parse_status(self.status)

    @property
    def priority_kind(self) -> Union[TaskPriority, str]:
        return parse_label(TaskPriority, self.priority)

    @property
    def type_kind(self) -> Union[TaskType, str]:
        return parse_label(TaskType, self.type)

    @property
    def is_completed(self) -> bool:
        return self.status_kind is TaskStatus.COMPLETED

    def assign_to(self, user: Optional["User"], when: Optional[datetime] = None):
        """Move the task to ``user`` (or unassign it with None)."""
        if self.assigned_user is user:
            return
        if self.assigned_user is not None and self in self.assigned_user.tasks:
            self.assigned_user.tasks.remove(self)
        self.assigned_user = user
        if user is not None:
            user.tasks.append(self)
            self.assigned_at = ensure_aware(when) or now_utc()
        else:
            self.assigned_at = None
        self.updated = now_utc()

    def move_to(self, project: Optional["Project"]):
        """Attach the task to ``project`` (or detach it with None)."""
        if self.project is project:
            return
        if self.project is not None and self in self.project.tasks:
            self.project.tasks.remove(self)
        self.project = project
        if project is not None:
            project.tasks.append(self)
        self.updated = now_utc()

    def complete(self, when: Optional[datetime] = None):
        """Mark the task as completed."""
        self.status = TaskStatus.COMPLETED.value
        self.completed_at = ensure_aware(when) or now_utc()
        self.updated = now_utc()

    def add_item(self, item: TaskItem) -> TaskItem:
        item.parent = self
        self.items.append(item)
        return item
