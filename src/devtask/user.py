"""User and Role data models for DevTask."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from .utils.datetime import now_utc, ensure_aware

if TYPE_CHECKING:
    from .task import Task


class RoleName(Enum):
    """Built-in role names."""
    ADMIN = "Administrator"
    DEVELOPER = "Developer"
    BUSINESS_ANALYST = "Business Analyst"
    VALIDATOR = "Validator"


class Permission(Enum):
    """Permission strings granted by roles."""
    ADD_USER = "Add User"
    DELETE_USER = "Delete User"
    ADD_TASK = "Add Task"
    COMPLETE_TASK = "Complete Task"
    DELETE_TASK = "Delete Task"
    TASK_ASSIGNMENT = "Task Assignment"
    CREATE_DEFECT = "Create Defect"
    CLOSE_DEFECT = "Close Defect"
    CREATE_REPORT = "Create Report"
    USE_CASES = "Use Cases"
    ADMIN = "Admin"


@dataclass(eq=False)
class Role:
    """A named role; the name is unique within a store."""

    name: str
    permissions: List[str] = field(default_factory=list)
    created: datetime = field(default_factory=now_utc)
    updated: Optional[datetime] = None

    def __post_init__(self):
        self.created = ensure_aware(self.created)
        self.updated = ensure_aware(self.updated)

    @property
    def id(self) -> str:
        return self.name

    def grants(self, permission: str) -> bool:
        wanted = permission.strip().casefold()
        return any(p.strip().casefold() == wanted for p in self.permissions)


def default_roles() -> List[Role]:
    """The four roles every fresh store starts with."""
    return [
        Role(RoleName.ADMIN.value, [Permission.ADMIN.value]),
        Role(
            RoleName.BUSINESS_ANALYST.value,
            [Permission.USE_CASES.value, Permission.CREATE_REPORT.value],
        ),
        Role(
            RoleName.DEVELOPER.value,
            [
                Permission.ADD_TASK.value,
                Permission.COMPLETE_TASK.value,
                Permission.CREATE_DEFECT.value,
                Permission.CLOSE_DEFECT.value,
            ],
        ),
        Role(
            RoleName.VALIDATOR.value,
            [
                Permission.CREATE_DEFECT.value,
                Permission.CLOSE_DEFECT.value,
                Permission.CREATE_REPORT.value,
            ],
        ),
    ]


@dataclass(eq=False)
class User:
    """A person who can be a project member and be assigned tasks."""

    id: str
    first_name: str
    last_name: str
    roles: List[Role] = field(default_factory=list)
    created: datetime = field(default_factory=now_utc)
    updated: Optional[datetime] = None

    tasks: List["Task"] = field(default_factory=list, repr=False)

    def __post_init__(self):
        self.created = ensure_aware(self.created)
        self.updated = ensure_aware(self.updated)

        for task in self.tasks:
            if task.assigned_user is None:
                task.assigned_user = self

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def role_names(self) -> List[str]:
        return [role.name for role in self.roles]
