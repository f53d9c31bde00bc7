"""Tests for the lifecycle effort recorder."""

from datetime import timedelta

import pytest

from effort_engine.errors import StoreError, ValidationError
from effort_engine.lifecycle import (
    actual_effort_from_dates,
    apply_swimlane_transition,
    is_done_lane,
    is_in_progress_lane,
    refresh_estimate,
    reorder_tasks,
)
from effort_engine.schema import Task
from effort_engine.store import InMemoryTaskStore, tasks_from_csv_text

from conftest import T0

T1 = T0 + timedelta(days=10)
T2 = T0 + timedelta(days=15)


def _task(**overrides):
    values = dict(task_id="t", swimlane_id="backlog", created_at=T0)
    values.update(overrides)
    return Task(**values)


class TestLaneMatching:
    @pytest.mark.parametrize("name", ["In Progress", "in progress", "PROGRESS", "Work-in-progress"])
    def test_in_progress_substring(self, name):
        assert is_in_progress_lane(name)

    @pytest.mark.parametrize("name", [None, "", "Backlog", "Done", "Prog"])
    def test_not_in_progress(self, name):
        assert not is_in_progress_lane(name)

    @pytest.mark.parametrize("name", ["Done", "done", "DONE", " Done "])
    def test_done_exact(self, name):
        assert is_done_lane(name)

    @pytest.mark.parametrize("name", [None, "", "Done!", "Not done", "Almost Done"])
    def test_not_done(self, name):
        assert not is_done_lane(name)


class TestActualEffort:
    def test_twenty_days_is_one_month(self):
        assert actual_effort_from_dates(T0, T0 + timedelta(days=20)) == 1.0

    def test_order_does_not_matter(self):
        assert actual_effort_from_dates(T1, T0) == actual_effort_from_dates(T0, T1) == 0.5

    def test_partial_days(self):
        assert actual_effort_from_dates(T0, T0 + timedelta(hours=30)) == 0.06


class TestApplySwimlaneTransition:
    def test_plain_move_only_changes_placement(self):
        task = _task()
        moved = apply_swimlane_transition(task, "todo", "To Do", "Backlog", 3, T1)
        assert (moved.swimlane_id, moved.position, moved.updated_at) == ("todo", 3, T1)
        assert moved.start_date is None
        assert moved.end_date is None
        assert moved.actual_effort_pm is None

    def test_input_is_not_mutated(self):
        task = _task()
        apply_swimlane_transition(task, "done", "Done", "Backlog", 0, T1)
        assert task.swimlane_id == "backlog"
        assert task.end_date is None

    def test_entering_in_progress_sets_start(self):
        moved = apply_swimlane_transition(_task(), "wip", "In Progress", "To Do", 0, T1)
        assert moved.start_date == T1

    def test_start_date_is_never_overwritten(self):
        first = apply_swimlane_transition(_task(), "wip", "In Progress", "To Do", 0, T1)
        back = apply_swimlane_transition(first, "todo", "To Do", "In Progress", 0, T1)
        again = apply_swimlane_transition(back, "wip", "In Progress", "To Do", 0, T2)
        assert again.start_date == T1

    def test_same_lane_move_is_idempotent(self):
        first = apply_swimlane_transition(_task(), "wip", "In Progress", "To Do", 0, T1)
        second = apply_swimlane_transition(first, "wip", "In Progress", "In Progress", 1, T2)
        assert second.start_date == T1
        assert second.position == 1

    def test_done_without_start_uses_created_at(self):
        moved = apply_swimlane_transition(_task(), "done", "Done", "Backlog", 0, T1)
        assert moved.end_date == T1
        assert moved.actual_effort_pm == 0.5

    def test_done_uses_start_date_when_set(self):
        task = _task(start_date=T0 + timedelta(days=5))
        moved = apply_swimlane_transition(task, "done", "done", "In Progress", 0, T1)
        assert moved.actual_effort_pm == 0.25

    def test_existing_end_date_is_kept(self):
        task = _task(end_date=T1)
        moved = apply_swimlane_transition(task, "done", "Done", "Review", 0, T2)
        assert moved.end_date == T1
        assert moved.actual_effort_pm == 0.5

    def test_leaving_done_clears_completion(self):
        done = apply_swimlane_transition(_task(start_date=T0), "done", "Done", "In Progress", 0, T1)
        reopened = apply_swimlane_transition(done, "todo", "To Do", "Done", 0, T2)
        assert reopened.end_date is None
        assert reopened.actual_effort_pm is None
        assert reopened.start_date == T0

    def test_leaving_done_into_progress_lane_keeps_start(self):
        done = apply_swimlane_transition(_task(start_date=T0), "done", "Done", "In Progress", 0, T1)
        reopened = apply_swimlane_transition(done, "wip", "In Progress", "Done", 0, T2)
        assert reopened.start_date == T0
        assert reopened.end_date is None


class TestRefreshEstimate:
    def test_recomputes_from_attributes(self):
        task = _task(attr_rely=1.1)
        assert refresh_estimate(task, 10).estimated_effort_pm == 40.71

    def test_rejects_out_of_range_attributes(self):
        with pytest.raises(ValidationError):
            refresh_estimate(_task(attr_sced=0.5), 10)


class FlakyStore(InMemoryTaskStore):
    """Store whose writes fail for selected task ids."""

    def __init__(self, *args, failing=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.failing = set(failing)

    async def save_task(self, task):
        if task.task_id in self.failing:
            raise StoreError(f"write failed for {task.task_id}")
        return await super().save_task(task)


class TestReorderTasks:
    @pytest.mark.asyncio
    async def test_positions_follow_request_order(self, sample_store):
        tasks = await reorder_tasks(sample_store, ["t2", "t1"], "p1-to-do", clock=lambda: T1)
        assert [(t.task_id, t.position) for t in tasks] == [("t2", 0), ("t1", 1)]
        assert all(t.swimlane_id == "p1-to-do" for t in tasks)
        stored = await sample_store.get_task("t1")
        assert stored.position == 1

    @pytest.mark.asyncio
    async def test_target_name_resolved_from_store(self, sample_store):
        tasks = await reorder_tasks(sample_store, ["t1"], "p1-in-progress", clock=lambda: T1)
        assert tasks[0].start_date == T1

    @pytest.mark.asyncio
    async def test_done_records_actual_effort(self, sample_store):
        tasks = await reorder_tasks(
            sample_store, ["t3", "t1"], "p1-done",
            target_name="Done", source_name="Backlog", clock=lambda: T1,
        )
        t1 = next(t for t in tasks if t.task_id == "t1")
        assert t1.end_date == T1
        assert t1.actual_effort_pm == 0.5

    @pytest.mark.asyncio
    async def test_moving_out_of_done_clears_completion(self, sample_store):
        tasks = await reorder_tasks(
            sample_store, ["t3"], "p1-to-do",
            target_name="To Do", source_name="Done", clock=lambda: T2,
        )
        assert tasks[0].end_date is None
        assert tasks[0].actual_effort_pm is None
        assert tasks[0].start_date == T0

    @pytest.mark.asyncio
    async def test_source_lane_resolved_from_store(self, sample_store):
        tasks = await reorder_tasks(sample_store, ["t3"], "p1-backlog", clock=lambda: T2)
        assert tasks[0].end_date is None

    @pytest.mark.asyncio
    async def test_missing_task_fails_batch(self, sample_store):
        with pytest.raises(StoreError) as exc_info:
            await reorder_tasks(sample_store, ["t1", "nope"], "p1-to-do", clock=lambda: T1)
        assert exc_info.value.message == "Task not found: nope"
        # sibling write is not rolled back
        assert (await sample_store.get_task("t1")).swimlane_id == "p1-to-do"

    @pytest.mark.asyncio
    async def test_first_failure_in_request_order_is_reported(self, sample_store):
        store = FlakyStore(
            await sample_store.list_tasks(),
            [await sample_store.get_swimlane("p1-to-do")],
            failing={"t2", "t3"},
        )
        with pytest.raises(StoreError) as exc_info:
            await reorder_tasks(store, ["t1", "t3", "t2"], "p1-to-do", clock=lambda: T1)
        assert exc_info.value.message == "write failed for t3"
        assert exc_info.value.details["failed"] == 2
        assert (await store.get_task("t1")).swimlane_id == "p1-to-do"
        assert (await store.get_task("t2")).swimlane_id == "p1-backlog"

    @pytest.mark.asyncio
    async def test_csv_rows_without_offset_are_utc(self, sample_store):
        rows = tasks_from_csv_text(
            "task_id,project_id,swimlane_id,created_at\n"
            "t7,p1,p1-backlog,2025-03-03 09:00:00\n"
        )
        store = InMemoryTaskStore(rows, [await sample_store.get_swimlane("p1-done")])
        tasks = await reorder_tasks(store, ["t7"], "p1-done", clock=lambda: T1)
        assert tasks[0].end_date == T1
        assert tasks[0].actual_effort_pm == 0.5

    @pytest.mark.asyncio
    async def test_unexpected_errors_are_not_wrapped(self, sample_store):
        class BrokenStore(InMemoryTaskStore):
            async def save_task(self, task):
                raise RuntimeError("boom")

        store = BrokenStore(await sample_store.list_tasks())
        with pytest.raises(RuntimeError, match="boom"):
            await reorder_tasks(store, ["t1"], "p1-to-do", target_name="To Do", clock=lambda: T1)

    @pytest.mark.asyncio
    async def test_empty_batch(self, sample_store):
        assert await reorder_tasks(sample_store, [], "p1-done") == []
