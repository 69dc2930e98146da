"""Domain models for DevTask."""

from ..task import (
    Task,
    TaskItem,
    TaskStatus,
    TaskPriority,
    TaskType,
    parse_label,
    parse_status,
    label_text,
)
from ..project import Project
from ..user import User, Role, RoleName, Permission, default_roles

__all__ = [
    "Task",
    "TaskItem",
    "TaskStatus",
    "TaskPriority",
    "TaskType",
    "parse_label",
    "parse_status",
    "label_text",
    "Project",
    "User",
    "Role",
    "RoleName",
    "Permission",
    "default_roles",
]
