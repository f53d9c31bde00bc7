"""
Lifecycle effort recorder.

When tasks move between swimlanes, stamp start/end dates and derive
actual effort from elapsed calendar time:

- into a lane whose name contains "progress": set start_date once
- into a lane named "done": set end_date once, compute actual_effort_pm
- out of "done" into any other lane: clear end_date and actual_effort_pm

Tasks are plain snapshots in and out; the only I/O is reorder_tasks,
which reads and writes through a TaskStore.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from . import cocomo_model
from .errors import StoreError
from .rounding import round_half_away
from .schema import Task
from .store import TaskStore

logger = logging.getLogger(__name__)

# Calendar approximation for actual effort; unrelated to the 152/160
# hours-per-month constants of the two estimation models.
WORKING_DAYS_PER_MONTH = 20

SECONDS_PER_DAY = 24 * 60 * 60


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_in_progress_lane(name: Optional[str]) -> bool:
    return bool(name) and "progress" in name.lower()


def is_done_lane(name: Optional[str]) -> bool:
    return bool(name) and name.strip().lower() == "done"


def actual_effort_from_dates(start: datetime, end: datetime) -> float:
    """Elapsed calendar days / 20, in person-months, 2 decimals."""
    elapsed_days = abs((end - start).total_seconds()) / SECONDS_PER_DAY
    return round_half_away(elapsed_days / WORKING_DAYS_PER_MONTH, 2)


def apply_swimlane_transition(
    task: Task,
    target_swimlane_id: str,
    target_name: Optional[str],
    source_name: Optional[str],
    position: int,
    now: datetime,
) -> Task:
    """
    Return an updated copy of `task` placed at `position` in the target lane.

    Date and effort fields only change when the swimlane actually changes.
    """
    updated = task.copy(
        swimlane_id=target_swimlane_id,
        position=position,
        updated_at=now,
    )
    if task.swimlane_id == target_swimlane_id:
        return updated

    if is_in_progress_lane(target_name) and updated.start_date is None:
        updated.start_date = now
        logger.info("Task %s started at %s", task.task_id, now.isoformat())

    if is_done_lane(target_name):
        if updated.end_date is None:
            updated.end_date = now
        started = updated.start_date or updated.created_at
        if started is not None:
            updated.actual_effort_pm = actual_effort_from_dates(started, updated.end_date)
        logger.info(
            "Task %s completed, actual effort %s PM",
            task.task_id,
            updated.actual_effort_pm,
        )
    elif is_done_lane(source_name) and updated.end_date is not None:
        updated.end_date = None
        updated.actual_effort_pm = None
        logger.info("Task %s reopened, completion cleared", task.task_id)

    return updated


def refresh_estimate(task: Task, size_kloc: float) -> Task:
    """Recompute estimated_effort_pm from the task's cost drivers."""
    attrs = cocomo_model.validate_see_attributes(task.see_attributes())
    return task.copy(
        estimated_effort_pm=cocomo_model.estimate_effort(size_kloc, attrs)
    )


async def _lane_name(store: TaskStore, swimlane_id: Optional[str]) -> Optional[str]:
    if swimlane_id is None:
        return None
    lane = await store.get_swimlane(swimlane_id)
    return lane.name if lane is not None else None


async def _move_one(
    store: TaskStore,
    task_id: str,
    position: int,
    swimlane_id: str,
    target_name: Optional[str],
    source_name: Optional[str],
    now: datetime,
) -> Task:
    task = await store.get_task(task_id)

    current_name = source_name
    if task.swimlane_id != swimlane_id:
        current_name = await _lane_name(store, task.swimlane_id) or source_name

    updated = apply_swimlane_transition(
        task, swimlane_id, target_name, current_name, position, now
    )
    return await store.save_task(updated)


async def reorder_tasks(
    store: TaskStore,
    task_ids: Sequence[str],
    swimlane_id: str,
    target_name: Optional[str] = None,
    source_name: Optional[str] = None,
    clock: Callable[[], datetime] = utcnow,
) -> List[Task]:
    """
    Place `task_ids` in order into `swimlane_id`, applying lifecycle rules.

    One read-then-write per task, all fired concurrently. Every write is
    awaited; if any failed, the first failure in request order is raised
    (store failures as StoreError) and the writes that succeeded are left
    in place.
    """
    if target_name is None:
        target_name = await _lane_name(store, swimlane_id)

    now = clock()
    results = await asyncio.gather(
        *[
            _move_one(store, task_id, index, swimlane_id, target_name, source_name, now)
            for index, task_id in enumerate(task_ids)
        ],
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, BaseException)]
    for task_id, result in zip(task_ids, results):
        if isinstance(result, BaseException):
            logger.warning("Failed to move task %s: %s", task_id, result)
    if failures:
        first = failures[0]
        if not isinstance(first, StoreError):
            raise first
        raise StoreError(first.message, details={"failed": len(failures)}) from first

    return sorted(results, key=lambda t: t.position)
