"""Pytest configuration and shared fixtures."""

import sys
import asyncio
import inspect
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from devtask.config import Config, ConfigModel  # noqa: E402
from devtask.domain import Project, Role, Task, User  # noqa: E402
from devtask.storage import Storage  # noqa: E402


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):
    """Execute async tests without external plugins."""
    testfunction = pyfuncitem.obj
    if inspect.iscoroutinefunction(testfunction):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            sig = inspect.signature(testfunction)
            call_kwargs = {name: pyfuncitem.funcargs[name] for name in sig.parameters}
            loop.run_until_complete(testfunction(**call_kwargs))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None


@pytest.fixture(autouse=True)
def reset_config_cache():
    """Each test starts without a cached configuration."""
    Config._instance = None
    yield
    Config._instance = None


@pytest.fixture
def now():
    return datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def config(tmp_path):
    return ConfigModel(
        data_dir=str(tmp_path / "data"),
        export_dir=str(tmp_path / "exports"),
    )


@pytest.fixture
def storage(config):
    return Storage(config)


@pytest.fixture
def entities(now):
    """Three projects holding 0, 2 and 5 tasks; Alice has 4 tasks, Bob none.

    Returns a dict with ``projects``, ``users`` and ``tasks`` lists, all in
    creation order.
    """
    developer = Role("Developer", ["Add Task"])
    alice = User("u1", "Alice", "Anders", roles=[developer], created=now - timedelta(days=60))
    bob = User("u2", "Bob", "Baker", created=now - timedelta(days=30))

    empty = Project("p1", "Empty Project", created=now - timedelta(days=50))
    small = Project("p2", "Small Project", "Two tasks", created=now - timedelta(days=40),
                    users=[alice])
    large = Project("p3", "Large Project", "Five tasks", created=now - timedelta(days=20),
                    users=[alice, bob])

    def task(task_id, project, status, user=None, days_old=10, completed_days_ago=None,
             task_type="Development", priority="Medium"):
        return Task(
            id=task_id,
            name=f"Task {task_id}",
            type=task_type,
            status=status,
            priority=priority,
            created=now - timedelta(days=days_old),
            completed_at=(now - timedelta(days=completed_days_ago)
                          if completed_days_ago is not None else None),
            project=project,
            assigned_user=user,
        )

    tasks = [
        task("t1", small, "Completed", completed_days_ago=2, task_type="Design"),
        task("t2", small, "In Progress", priority="High"),
        task("t3", large, "Completed", alice, completed_days_ago=40, task_type="Testing"),
        task("t4", large, "Completed", alice, completed_days_ago=5, priority="Low"),
        task("t5", large, "In Progress", alice),
        task("t6", large, "Unassigned", alice, priority="High"),
        task("t7", large, "Unassigned", days_old=1),
    ]

    return {
        "projects": [empty, small, large],
        "users": [alice, bob],
        "tasks": tasks,
    }
