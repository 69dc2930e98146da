"""Project data model for DevTask."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from .utils.datetime import now_utc, ensure_aware

if TYPE_CHECKING:
    from .task import Task
    from .user import User


@dataclass(eq=False)
class Project:
    """A project owning tasks and listing its member users."""

    id: str
    title: str
    description: str = ""
    created: datetime = field(default_factory=now_utc)
    updated: Optional[datetime] = None

    tasks: List["Task"] = field(default_factory=list, repr=False)
    users: List["User"] = field(default_factory=list, repr=False)

    def __post_init__(self):
        """Post-initialization setup."""
        self.created = ensure_aware(self.created)
        self.updated = ensure_aware(self.updated)

        # Tasks handed in directly still need their owner set
        for task in self.tasks:
            if task.project is None:
                task.project = self

    @property
    def display_title(self) -> str:
        return self.title.strip() or "Untitled Project"

    def add_task(self, task: "Task") -> "Task":
        """Take ownership of ``task``."""
        task.move_to(self)
        return task

    def add_member(self, user: "User"):
        if user not in self.users:
            self.users.append(user)
            self.updated = now_utc()

    def remove_member(self, user: "User"):
        if user in self.users:
            self.users.remove(user)
            self.updated = now_utc()
