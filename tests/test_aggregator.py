"""Tests for summary aggregation."""

from datetime import datetime, timedelta, timezone

import pytest

from devtask.domain import Project, Task, User
from devtask.services.aggregator import aggregate, most_active_user
from devtask.services.report_models import DateRange
from devtask.services.snapshot import take_snapshot


def _aggregate(entities, now):
    return aggregate(entities["projects"], entities["users"], entities["tasks"], now)


class TestEmptyInput:

    def test_everything_is_zero(self, now):
        projects, users, tasks = aggregate([], [], [], now)

        assert projects.total_projects == 0
        assert projects.average_tasks_per_project == 0.0
        assert projects.oldest_project is None
        assert users.total_users == 0
        assert users.average_tasks_per_user == 0.0
        assert users.most_active_user is None
        assert users.most_active_user_task_count == 0
        assert tasks.total_tasks == 0
        assert tasks.completion_rate == 0.0
        assert dict(tasks.tasks_by_type) == {}
        assert tasks.completed_this_week == 0
        assert tasks.completed_this_month == 0


class TestProjectsSummary:

    def test_project_totals(self, entities, now):
        projects, _, _ = _aggregate(entities, now)

        assert projects.total_projects == 3
        assert projects.projects_with_tasks == 2
        assert projects.projects_without_tasks == 1
        assert projects.total_tasks_across_projects == 7
        assert projects.average_tasks_per_project == pytest.approx(7 / 3)

    def test_oldest_and_newest(self, entities, now):
        projects, _, _ = _aggregate(entities, now)

        assert projects.oldest_project == now - timedelta(days=50)
        assert projects.newest_project == now - timedelta(days=20)


class TestUsersSummary:

    def test_most_active_user(self, entities, now):
        _, users, _ = _aggregate(entities, now)

        assert users.total_users == 2
        assert users.users_with_tasks == 1
        assert users.users_without_tasks == 1
        assert users.total_tasks_assigned == 4
        assert users.average_tasks_per_user == 2.0
        assert users.most_active_user == "Alice Anders"
        assert users.most_active_user_task_count == 4

    def test_tie_goes_to_first_user(self, now):
        first = User("u1", "First", "User")
        second = User("u2", "Second", "User")
        tasks = [
            Task(id="t1", name="a", assigned_user=first),
            Task(id="t2", name="b", assigned_user=second),
        ]

        _, users, _ = aggregate([], [second, first], tasks, now)
        assert users.most_active_user == "Second User"

    def test_all_zero_tie_picks_first(self, now):
        snapshot = take_snapshot([], [User("u1", "Ann", "A"), User("u2", "Ben", "B")], [])
        leader, count = most_active_user(snapshot.users)

        assert leader.name == "Ann A"
        assert count == 0


class TestTasksSummary:

    def test_status_counts(self, entities, now):
        _, _, tasks = _aggregate(entities, now)

        assert tasks.total_tasks == 7
        assert tasks.completed_tasks == 3
        assert tasks.in_progress_tasks == 2
        assert tasks.unassigned_tasks == 2
        assert tasks.deferred_tasks == 0
        assert tasks.completion_rate == pytest.approx(300 / 7)

    def test_unknown_status_only_counts_in_total(self, now):
        tasks = [
            Task(id="t1", name="a", status="COMPLETED"),
            Task(id="t2", name="b", status="Blocked"),
            Task(id="t3", name="c", status="deferred"),
        ]
        _, _, summary = aggregate([], [], tasks, now)

        assert summary.total_tasks == 3
        assert summary.completed_tasks == 1
        assert summary.deferred_tasks == 1
        bucketed = (summary.unassigned_tasks + summary.in_progress_tasks
                    + summary.completed_tasks + summary.deferred_tasks)
        assert bucketed == 2

    def test_groupings_keep_raw_labels(self, now):
        tasks = [
            Task(id="t1", name="a", type="Development", priority="High"),
            Task(id="t2", name="b", type="Spike", priority="High"),
            Task(id="t3", name="c", type="Spike", priority="Someday"),
        ]
        _, _, summary = aggregate([], [], tasks, now)

        assert dict(summary.tasks_by_type) == {"Development": 1, "Spike": 2}
        assert dict(summary.tasks_by_priority) == {"High": 2, "Someday": 1}

    def test_groupings_are_read_only(self, entities, now):
        _, _, summary = _aggregate(entities, now)

        with pytest.raises(TypeError):
            summary.tasks_by_type["Development"] = 100

    def test_oldest_and_newest_task(self, entities, now):
        _, _, summary = _aggregate(entities, now)

        assert summary.oldest_task == now - timedelta(days=10)
        assert summary.newest_task == now - timedelta(days=1)


class TestCompletionWindows:

    def _completed(self, now, **delta):
        return Task(id="t", name="x", status="completed", completed_at=now - timedelta(**delta))

    def test_recent_and_old_completions(self, now):
        recent = self._completed(now, days=2)
        old = self._completed(now, days=40)
        _, _, summary = aggregate([], [], [recent, old], now)

        assert summary.completed_this_week == 1
        assert summary.completed_this_month == 1

    def test_week_boundary_is_inclusive(self, now):
        edge = self._completed(now, days=7)
        just_outside = self._completed(now, days=7, seconds=1)
        _, _, summary = aggregate([], [], [edge, just_outside], now)

        assert summary.completed_this_week == 1

    def test_month_is_a_calendar_month(self):
        now = datetime(2026, 3, 31, 12, 0, tzinfo=timezone.utc)
        # One calendar month before March 31 clamps to February 28
        inside = Task(id="t1", name="a", status="Completed",
                      completed_at=datetime(2026, 2, 28, 12, 0, tzinfo=timezone.utc))
        outside = Task(id="t2", name="b", status="Completed",
                       completed_at=datetime(2026, 2, 28, 11, 59, tzinfo=timezone.utc))
        _, _, summary = aggregate([], [], [inside, outside], now)

        assert summary.completed_this_month == 1

    def test_completed_without_timestamp_is_excluded(self, now):
        task = Task(id="t1", name="a", status="Completed")
        _, _, summary = aggregate([], [], [task], now)

        assert summary.completed_tasks == 1
        assert summary.completed_this_week == 0
        assert summary.completed_this_month == 0

    def test_only_completed_status_counts(self, now):
        task = Task(id="t1", name="a", status="In Progress",
                    completed_at=now - timedelta(days=1))
        _, _, summary = aggregate([], [], [task], now)

        assert summary.completed_this_week == 0


class TestSnapshot:

    def test_date_range_filters_every_collection(self, entities, now):
        window = DateRange(start=now - timedelta(days=2))
        projects, users, tasks = aggregate(
            entities["projects"], entities["users"], entities["tasks"], now, window
        )

        # Only t7 was created in the last two days
        assert tasks.total_tasks == 1
        assert projects.total_tasks_across_projects == 1
        assert users.total_tasks_assigned == 0

    def test_snapshot_ignores_later_mutation(self, entities, now):
        snapshot = take_snapshot(entities["projects"], entities["users"], entities["tasks"])
        entities["tasks"][0].status = "Deferred"
        entities["projects"][0].title = "Renamed"

        assert snapshot.tasks[0].status == "Completed"
        assert snapshot.projects[0].title == "Empty Project"

    def test_user_counts_only_own_assignments(self, now):
        user = User("u1", "Ada", "L")
        stray = Task(id="t1", name="x")
        user.tasks.append(stray)  # relation list out of sync with the task

        snapshot = take_snapshot([], [user], [stray])
        assert snapshot.users[0].tasks == ()

    def test_user_tasks_come_from_task_list(self, now):
        user = User("u1", "Ada", "L")
        direct = Task(id="t1", name="x")
        direct.assigned_user = user  # set after construction, so not in user.tasks
        unlisted = Task(id="t2", name="y", assigned_user=user)

        snapshot = take_snapshot([], [user], [direct])

        assert user.tasks == [unlisted]
        assert [t.id for t in snapshot.users[0].tasks] == ["t1"]
        assert snapshot.users[0].tasks[0] is snapshot.tasks[0]

    def test_most_active_counts_direct_assignments(self, now):
        quiet = User("u1", "Quiet", "One")
        busy = User("u2", "Busy", "Two")
        tasks = [Task(id=f"t{i}", name="x") for i in range(3)]
        for task in tasks:
            task.assigned_user = busy

        _, users, _ = aggregate([], [quiet, busy], tasks, now)

        assert users.most_active_user == "Busy Two"
        assert users.most_active_user_task_count == 3
        assert users.users_with_tasks == 1

    def test_shared_tasks_reuse_facts(self, entities):
        snapshot = take_snapshot(entities["projects"], entities["users"], entities["tasks"])

        assert snapshot.projects[2].tasks[0] is snapshot.tasks[2]

    def test_project_title_fallback(self, now):
        project = Project("p1", "")
        Task(id="t1", name="   ", project=project)
        snapshot = take_snapshot([project], [], project.tasks)

        assert snapshot.tasks[0].project_title == "Untitled Project"
        assert snapshot.tasks[0].name == "Untitled Task"
