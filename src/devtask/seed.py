"""Sample data for trying out reports on a fresh store.

Seeding is guarded by an explicit check: :func:`seed_sample_data` writes
only when the store holds no entities at all.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from .domain import (
    Project,
    RoleName,
    Task,
    TaskPriority,
    TaskStatus,
    TaskType,
    User,
    default_roles,
)
from .storage import Storage, StoreContents
from .utils.datetime import ensure_aware, now_utc

logger = logging.getLogger(__name__)


# first name, last name, role, days since joining
SAMPLE_USERS = [
    ("Sarah", "Johnson", RoleName.ADMIN, 90),
    ("Michael", "Chen", RoleName.DEVELOPER, 75),
    ("Emily", "Rodriguez", RoleName.DEVELOPER, 60),
    ("James", "Williams", RoleName.VALIDATOR, 50),
    ("Olivia", "Martinez", RoleName.BUSINESS_ANALYST, 40),
]

# title, description, age in days, hours since update (None: never), member indexes
SAMPLE_PROJECTS = [
    ("E-Commerce Platform",
     "A comprehensive online shopping platform with cart functionality, payment processing, "
     "and order tracking.",
     45, 48, [0, 1, 2]),
    ("Mobile Banking App",
     "Secure mobile banking application with account management, transfers, and bill "
     "payment features.",
     30, 24, [2, 3, 4]),
    ("Task Management System",
     "Collaborative task management tool with Kanban boards, time tracking, and team "
     "collaboration features.",
     20, 3, [0, 1, 2, 3, 4]),
    ("Social Media Dashboard",
     "Analytics dashboard for managing multiple social media accounts with scheduling and "
     "engagement tracking.",
     15, 120, [0, 2, 4]),
    ("Healthcare Portal",
     "Patient portal for appointment scheduling, medical records access, and telehealth "
     "consultations.",
     5, 2, [1, 3]),
    ("Fitness Tracker App",
     "Track workouts, nutrition, and fitness goals with AI-powered recommendations.",
     2, None, []),
]

# project index, name, type, status, priority, comment, assignee index,
# created days ago, assigned days ago, completed days ago
SAMPLE_TASKS = [
    (0, "Implement Shopping Cart", TaskType.DEVELOPMENT, TaskStatus.IN_PROGRESS, TaskPriority.HIGH,
     "Add to cart functionality with session persistence", 1, 10, 9, None),
    (0, "Payment Gateway Integration", TaskType.DEVELOPMENT, TaskStatus.COMPLETED, TaskPriority.HIGH,
     "Integrated Stripe and PayPal", 1, 15, 14, 5),
    (0, "Product Search Optimization", TaskType.DEVELOPMENT, TaskStatus.UNASSIGNED, TaskPriority.MEDIUM,
     "Implement full-text search with filters", None, 8, None, None),
    (0, "Test Checkout Flow", TaskType.TESTING, TaskStatus.IN_PROGRESS, TaskPriority.HIGH,
     "End-to-end testing of payment process", 3, 4, 3, None),
    (0, "Design Product Detail Page", TaskType.DESIGN, TaskStatus.COMPLETED, TaskPriority.MEDIUM,
     "Mockups completed and approved", None, 20, 19, 12),
    (1, "Implement Biometric Authentication", TaskType.DEVELOPMENT, TaskStatus.IN_PROGRESS,
     TaskPriority.HIGH, "Face ID and Touch ID support", 2, 7, 6, None),
    (1, "Account Balance Dashboard", TaskType.DEVELOPMENT, TaskStatus.COMPLETED, TaskPriority.HIGH,
     "Real-time balance updates implemented", 1, 12, 11, 3),
    (1, "Security Audit Documentation", TaskType.DOCUMENTATION, TaskStatus.IN_PROGRESS,
     TaskPriority.HIGH, "Documenting security protocols", 4, 5, 4, None),
    (2, "Drag-and-Drop Kanban Board", TaskType.DEVELOPMENT, TaskStatus.IN_PROGRESS, TaskPriority.HIGH,
     "Implementing drag and drop functionality", 2, 6, 5, None),
    (2, "Real-time Collaboration", TaskType.DEVELOPMENT, TaskStatus.UNASSIGNED, TaskPriority.MEDIUM,
     "WebSocket implementation needed", None, 4, None, None),
    (2, "Time Tracking Widget", TaskType.DEVELOPMENT, TaskStatus.COMPLETED, TaskPriority.LOW,
     "Widget completed with start/stop timer", 1, 10, 9, 2),
    (2, "Test Multi-user Permissions", TaskType.TESTING, TaskStatus.IN_PROGRESS, TaskPriority.MEDIUM,
     "Testing role-based access control", 3, 3, 2, None),
    (2, "UI/UX Design System", TaskType.DESIGN, TaskStatus.COMPLETED, TaskPriority.HIGH,
     "Design system documented and shared", None, 15, 14, 8),
    (2, "API Documentation", TaskType.DOCUMENTATION, TaskStatus.IN_PROGRESS, TaskPriority.MEDIUM,
     "Writing comprehensive API docs", 4, 1, 0.5, None),
    (3, "Post Scheduling System", TaskType.DEVELOPMENT, TaskStatus.COMPLETED, TaskPriority.HIGH,
     "Schedule posts across platforms", 2, 10, 9, 6),
    (3, "Analytics Dashboard", TaskType.DEVELOPMENT, TaskStatus.IN_PROGRESS, TaskPriority.HIGH,
     "Charts and metrics for engagement", 1, 5, 4, None),
    (3, "Content Calendar Design", TaskType.DESIGN, TaskStatus.UNASSIGNED, TaskPriority.MEDIUM,
     "Monthly view calendar mockup", None, 3, None, None),
    (3, "Integration Testing", TaskType.TESTING, TaskStatus.UNASSIGNED, TaskPriority.LOW,
     "Test API connections", None, 1, None, None),
    (4, "Patient Authentication System", TaskType.DEVELOPMENT, TaskStatus.IN_PROGRESS,
     TaskPriority.HIGH, "HIPAA-compliant authentication", 1, 3, 2, None),
    (4, "Appointment Scheduling UI", TaskType.DESIGN, TaskStatus.UNASSIGNED, TaskPriority.HIGH,
     "Calendar-based appointment booking", None, 2, None, None),
]


def _days_ago(now: datetime, days: Optional[float]) -> Optional[datetime]:
    if days is None:
        return None
    return now - timedelta(days=days)


def build_sample_data(now: Optional[datetime] = None) -> StoreContents:
    """Create the sample roles, users, projects and tasks relative to ``now``."""
    now = ensure_aware(now) or now_utc()
    roles = default_roles()
    roles_by_name = {role.name: role for role in roles}

    users: List[User] = []
    for index, (first, last, role_name, age) in enumerate(SAMPLE_USERS, start=1):
        users.append(User(
            id=f"user-{index}",
            first_name=first,
            last_name=last,
            roles=[roles_by_name[role_name.value]],
            created=_days_ago(now, age),
        ))

    projects: List[Project] = []
    for index, (title, description, age, updated_hours, members) in enumerate(SAMPLE_PROJECTS, start=1):
        projects.append(Project(
            id=f"project-{index}",
            title=title,
            description=description,
            created=_days_ago(now, age),
            updated=now - timedelta(hours=updated_hours) if updated_hours is not None else None,
            users=[users[i] for i in members],
        ))

    tasks: List[Task] = []
    for index, row in enumerate(SAMPLE_TASKS, start=1):
        (project_index, name, task_type, status, priority, comment,
         assignee, created, assigned, completed) = row
        tasks.append(Task(
            id=f"task-{index}",
            name=name,
            type=task_type.value,
            status=status.value,
            priority=priority.value,
            comment=comment,
            created=_days_ago(now, created),
            assigned_at=_days_ago(now, assigned),
            completed_at=_days_ago(now, completed),
            project=projects[project_index],
            assigned_user=users[assignee] if assignee is not None else None,
        ))

    return StoreContents(roles=roles, users=users, projects=projects, tasks=tasks)


def seed_sample_data(storage: Storage, now: Optional[datetime] = None) -> bool:
    """Write the sample data if ``storage`` is empty.

    Returns:
        True if sample data was written, False if the store already had data
    """
    if not storage.is_empty():
        logger.info("Store already has data, skipping sample data")
        return False

    contents = build_sample_data(now)
    storage.save(contents)
    logger.info(
        f"Seeded {len(contents.users)} users, {len(contents.projects)} projects "
        f"and {len(contents.tasks)} tasks"
    )
    return True
