"""DevTask Reports - aggregate projects, users and tasks into exportable reports."""

__version__ = "0.1.0"
__author__ = "DevTask Team"

from .domain import (
    Project,
    Task,
    TaskStatus,
    User,
)

__all__ = ["Project", "Task", "TaskStatus", "User", "__version__"]
