"""
Tests for the status derivation engine.
"""

from datetime import datetime, timedelta, timezone

from planwatch.core.models import TaskStatus
from planwatch.core.state_engine import CYCLE_REASON, compute_snapshot
from tests.builders import BASE_TIME, make_event, make_task


def statuses(snapshot):
    return {task.id: task.status for task in snapshot.tasks}


class TestDependencyResolution:
    """Status of tasks without events."""

    def test_dependency_free_task_is_ready_dependent_is_blocked(self):
        """A has no dependencies, B depends on A, no events."""
        snapshot = compute_snapshot([make_task("A"), make_task("B", ["A"])], [])

        assert statuses(snapshot) == {"A": TaskStatus.READY, "B": TaskStatus.BLOCKED}
        assert snapshot.get_task("B").blocked_reason == "waiting on: A"

    def test_done_dependency_unblocks(self):
        """One DONE event for A makes B READY."""
        snapshot = compute_snapshot(
            [make_task("A"), make_task("B", ["A"])], [make_event("A", "DONE")]
        )

        assert statuses(snapshot) == {"A": TaskStatus.DONE, "B": TaskStatus.READY}

    def test_ready_iff_all_dependencies_done(self):
        tasks = [
            make_task("A"),
            make_task("B"),
            make_task("C", ["A", "B"]),
            make_task("D", ["C"]),
        ]

        partial = compute_snapshot(tasks, [make_event("A", "DONE")])
        complete = compute_snapshot(
            tasks, [make_event("A", "DONE"), make_event("B", "DONE")]
        )

        assert statuses(partial)["C"] is TaskStatus.BLOCKED
        assert statuses(complete)["C"] is TaskStatus.READY
        assert statuses(complete)["D"] is TaskStatus.BLOCKED

    def test_dependency_declared_later_in_queue_resolves(self):
        """Queue order does not matter; B is listed before its dependency."""
        snapshot = compute_snapshot(
            [make_task("B", ["A"]), make_task("A")], [make_event("A", "DONE")]
        )

        assert statuses(snapshot) == {"B": TaskStatus.READY, "A": TaskStatus.DONE}
        assert [t.id for t in snapshot.tasks] == ["B", "A"]

    def test_non_done_dependency_states_block(self):
        tasks = [make_task(d) for d in ("F", "X", "P")] + [
            make_task("C1", ["F"]),
            make_task("C2", ["X"]),
            make_task("C3", ["P"]),
        ]
        events = [
            make_event("F", "FAILED"),
            make_event("X", "BLOCKED", reason="needs creds"),
            make_event("P", "IN_PROGRESS"),
        ]

        result = statuses(compute_snapshot(tasks, events))

        assert result["C1"] is TaskStatus.BLOCKED
        assert result["C2"] is TaskStatus.BLOCKED
        assert result["C3"] is TaskStatus.BLOCKED

    def test_unknown_dependency_blocks_with_reason(self):
        snapshot = compute_snapshot([make_task("A", ["GHOST"])], [])

        task = snapshot.get_task("A")
        assert task.status is TaskStatus.BLOCKED
        assert task.blocked_reason == "unknown dependency: GHOST"

    def test_cycle_members_are_blocked(self):
        tasks = [
            make_task("A", ["B"]),
            make_task("B", ["A"]),
            make_task("C", ["A"]),
            make_task("S", ["S"]),
        ]

        snapshot = compute_snapshot(tasks, [])

        for task_id in ("A", "B", "S"):
            assert snapshot.get_task(task_id).status is TaskStatus.BLOCKED
            assert snapshot.get_task(task_id).blocked_reason == CYCLE_REASON
        assert snapshot.get_task("C").status is TaskStatus.BLOCKED
        assert snapshot.get_task("C").blocked_reason == "waiting on: A"

    def test_cycle_member_with_event_follows_event(self):
        tasks = [make_task("A", ["B"]), make_task("B", ["A"])]

        snapshot = compute_snapshot(tasks, [make_event("A", "DONE")])

        assert statuses(snapshot) == {"A": TaskStatus.DONE, "B": TaskStatus.BLOCKED}
        assert snapshot.get_task("B").blocked_reason == CYCLE_REASON


class TestEventRules:
    """Status of tasks with events."""

    def test_done_event_wins_regardless_of_dependencies(self):
        """A task with a DONE event is DONE even when its dependencies are not."""
        tasks = [make_task("A"), make_task("B", ["A"]), make_task("C", ["GHOST"])]
        events = [make_event("B", "DONE"), make_event("C", "DONE")]

        result = statuses(compute_snapshot(tasks, events))

        assert result == {
            "A": TaskStatus.READY,
            "B": TaskStatus.DONE,
            "C": TaskStatus.DONE,
        }

    def test_each_event_status_maps_to_task_status(self):
        tasks = [make_task(t) for t in ("D", "F", "B", "P")]
        events = [
            make_event("D", "DONE"),
            make_event("F", "FAILED"),
            make_event("B", "BLOCKED", reason="waiting for review"),
            make_event("P", "IN_PROGRESS"),
        ]

        snapshot = compute_snapshot(tasks, events)

        assert statuses(snapshot) == {
            "D": TaskStatus.DONE,
            "F": TaskStatus.FAILED,
            "B": TaskStatus.BLOCKED,
            "P": TaskStatus.IN_PROGRESS,
        }
        assert snapshot.get_task("B").blocked_reason == "waiting for review"

    def test_latest_event_by_timestamp_wins(self):
        """Log order does not matter when timestamps differ."""
        later = BASE_TIME + timedelta(minutes=5)
        events = [
            make_event("A", "DONE", timestamp=later),
            make_event("A", "FAILED", timestamp=BASE_TIME),
        ]

        snapshot = compute_snapshot([make_task("A")], events)

        assert snapshot.get_task("A").status is TaskStatus.DONE
        assert snapshot.get_task("A").last_event is events[0]

    def test_equal_timestamps_later_log_line_wins(self):
        """Regression: at identical timestamps the event appended last wins."""
        events = [
            make_event("A", "FAILED", timestamp=BASE_TIME),
            make_event("A", "DONE", timestamp=BASE_TIME),
            make_event("B", "DONE", timestamp=BASE_TIME),
            make_event("B", "IN_PROGRESS", timestamp=BASE_TIME),
        ]

        snapshot = compute_snapshot([make_task("A"), make_task("B")], events)

        assert snapshot.get_task("A").status is TaskStatus.DONE
        assert snapshot.get_task("B").status is TaskStatus.IN_PROGRESS
        assert snapshot.events_by_task["A"] == (events[0], events[1])

    def test_naive_and_aware_timestamps_compare(self):
        naive_later = datetime(2026, 1, 5, 11, 0)
        events = [
            make_event("A", "DONE", timestamp=naive_later),
            make_event("A", "FAILED", timestamp=BASE_TIME),
        ]

        snapshot = compute_snapshot([make_task("A")], events)

        assert snapshot.get_task("A").status is TaskStatus.DONE

    def test_events_for_unknown_tasks_are_kept_but_ignored(self):
        snapshot = compute_snapshot([make_task("A")], [make_event("ZZ", "DONE")])

        assert snapshot.summary.done == 0
        assert [e.task_id for e in snapshot.events_by_task["ZZ"]] == ["ZZ"]


class TestRollups:
    """Summary and per-slice counts."""

    def test_failed_only_gives_zero_success_rate(self):
        """B FAILED with reason timeout; nothing DONE yet."""
        snapshot = compute_snapshot(
            [make_task("A"), make_task("B", ["A"])],
            [make_event("B", "FAILED", reason="timeout")],
        )

        assert snapshot.get_task("B").status is TaskStatus.FAILED
        assert snapshot.summary.failed == 1
        assert snapshot.summary.success_rate == 0.0

    def test_success_rate_over_terminal_tasks(self):
        snapshot = compute_snapshot(
            [make_task("A"), make_task("B", ["A"])],
            [
                make_event("A", "DONE"),
                make_event("B", "FAILED", timestamp=BASE_TIME + timedelta(seconds=1), reason="timeout"),
            ],
        )

        summary = snapshot.summary
        assert (summary.done, summary.failed) == (1, 1)
        assert summary.success_rate == 0.5

    def test_empty_plan_has_zero_rates(self):
        snapshot = compute_snapshot([], [])

        assert snapshot.summary.total == 0
        assert snapshot.summary.success_rate == 0.0
        assert dict(snapshot.slices) == {}

    def test_slice_rollups(self):
        tasks = [
            make_task("A", slice_name="S1"),
            make_task("B", slice_name="S1"),
            make_task("C", slice_name="S2"),
        ]

        snapshot = compute_snapshot(tasks, [make_event("A", "DONE")])

        assert list(snapshot.slices) == ["S1", "S2"]
        s1 = snapshot.slices["S1"]
        assert (s1.total, s1.done, s1.ready, s1.progress) == (2, 1, 1, 50.0)
        assert snapshot.slices["S2"].progress == 0.0

    def test_summary_counts_every_status(self):
        tasks = [make_task(t) for t in ("D", "F", "B", "P", "R")]
        events = [
            make_event("D", "DONE"),
            make_event("F", "FAILED"),
            make_event("B", "BLOCKED"),
            make_event("P", "IN_PROGRESS"),
        ]

        summary = compute_snapshot(tasks, events).summary

        assert summary.to_dict() == {
            "total": 5,
            "done": 1,
            "failed": 1,
            "blocked": 1,
            "ready": 1,
            "inProgress": 1,
            "successRate": 0.5,
        }


class TestSnapshotProperties:
    """Properties that hold for every derivation."""

    def test_idempotent(self):
        tasks = [make_task("A"), make_task("B", ["A"]), make_task("C", ["B", "X"])]
        events = [
            make_event("A", "DONE"),
            make_event("B", "IN_PROGRESS", timestamp=datetime(2026, 1, 5, 10, tzinfo=timezone.utc)),
        ]

        first = compute_snapshot(tasks, events)
        second = compute_snapshot(tasks, events)

        assert first == second
        assert first.to_dict() == second.to_dict()
        assert first.tasks[0] is not second.tasks[0]

    def test_terminal_state_invariant(self):
        """Every task with a latest DONE event is DONE, whatever the graph."""
        tasks = [
            make_task("A", ["B"]),
            make_task("B", ["A"]),
            make_task("C", ["GHOST"]),
            make_task("D", ["C"]),
            make_task("E"),
        ]
        done = {"A", "C", "D"}
        events = [make_event(t, "DONE") for t in sorted(done)]

        snapshot = compute_snapshot(tasks, events)

        for task in snapshot.tasks:
            if task.id in done:
                assert task.status is TaskStatus.DONE

    def test_to_dict_shape(self):
        snapshot = compute_snapshot([make_task("A")], [make_event("A", "DONE")])

        data = snapshot.to_dict()

        task = data["tasks"][0]
        assert task["id"] == "A"
        assert task["status"] == "DONE"
        assert task["lastEvent"]["status"] == "DONE"
        assert task["dependsOn"] == []
        assert data["slices"]["S1"]["progress"] == 100.0
