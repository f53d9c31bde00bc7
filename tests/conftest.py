"""Pytest configuration and shared fixtures for the effort engine tests."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from effort_engine.schema import ChinaAttributes, SEEAttributes, Task
from effort_engine.store import InMemoryTaskStore

T0 = datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def nominal_attrs():
    return SEEAttributes.nominal()


@pytest.fixture
def sample_china_payload():
    """Request body used throughout the function-point examples."""
    return {
        "AFP": 200,
        "Input": 30,
        "Output": 40,
        "Enquiry": 20,
        "File": 15,
        "Interface": 10,
        "Resource": 5,
        "Duration": 12,
    }


@pytest.fixture
def sample_china_attrs():
    return ChinaAttributes(
        afp=200,
        input=30,
        output=40,
        enquiry=20,
        file=15,
        interface=10,
        resource=5,
        duration=12,
    )


@pytest.fixture
def sample_store():
    """
    Project p1 with the default lanes and three tasks:
    t1, t2 in Backlog; t3 already Done.
    """
    store = InMemoryTaskStore()
    store.seed_default_swimlanes("p1")
    for task in (
        Task(task_id="t1", title="Login form", project_id="p1",
             swimlane_id="p1-backlog", position=0, created_at=T0),
        Task(task_id="t2", title="Password reset", project_id="p1",
             swimlane_id="p1-backlog", position=1, created_at=T0,
             attr_cplx=1.3, estimated_effort_pm=48.14),
        Task(task_id="t3", title="Audit log", project_id="p1",
             swimlane_id="p1-done", position=0, created_at=T0,
             start_date=T0, end_date=T0 + timedelta(days=10),
             estimated_effort_pm=0.4, actual_effort_pm=0.5),
    ):
        store._tasks[task.task_id] = task
    return store


@pytest.fixture
def client(sample_store):
    """TestClient bound to a fresh in-memory store."""
    from app.api import app

    app.state.store = sample_store
    with TestClient(app) as test_client:
        yield test_client
