"""Tests for project effort insights and estimation accuracy."""

import pytest

from effort_engine.insights import evaluate_estimates, project_insights
from effort_engine.schema import Task


class TestProjectInsights:
    def test_no_estimated_tasks(self):
        result = project_insights([Task(task_id="a"), Task(task_id="b", estimated_effort_pm=0)])
        assert result == {
            "estimated_tasks": 0,
            "total_estimated_pm": 0.0,
            "average_complexity": 1.0,
            "high_complexity_tasks": 0,
            "average_eaf": 1.0,
        }

    def test_aggregates_estimated_tasks(self):
        tasks = [
            Task(task_id="a", estimated_effort_pm=10.0, attr_cplx=1.3),
            Task(task_id="b", estimated_effort_pm=5.5, attr_cplx=0.9, attr_rely=1.2),
            Task(task_id="c"),
        ]
        result = project_insights(tasks)
        assert result["estimated_tasks"] == 2
        assert result["total_estimated_pm"] == 15.5
        assert result["average_complexity"] == pytest.approx(1.1)
        assert result["high_complexity_tasks"] == 1
        assert result["average_eaf"] == pytest.approx((1.3 + 0.9 * 1.2) / 2, abs=1e-4)


class TestEvaluateEstimates:
    def test_requires_completed_tasks(self):
        with pytest.raises(ValueError):
            evaluate_estimates([Task(task_id="a", estimated_effort_pm=3.0)])

    def test_error_metrics(self):
        tasks = [
            Task(task_id="a", estimated_effort_pm=2.0, actual_effort_pm=1.0),
            Task(task_id="b", estimated_effort_pm=1.0, actual_effort_pm=2.0),
            Task(task_id="c", estimated_effort_pm=4.0),
        ]
        result = evaluate_estimates(tasks)
        assert result["n"] == 2
        assert result["mae"] == pytest.approx(1.0)
        assert result["rmse"] == pytest.approx(1.0)
        assert result["mape"] == pytest.approx((1.0 + 0.5) / 2)

    def test_zero_actual_is_skipped_in_mape(self):
        tasks = [
            Task(task_id="a", estimated_effort_pm=1.0, actual_effort_pm=0.0),
            Task(task_id="b", estimated_effort_pm=3.0, actual_effort_pm=2.0),
        ]
        result = evaluate_estimates(tasks)
        assert result["mape"] == pytest.approx(0.5)
