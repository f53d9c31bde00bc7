"""
Project-level effort analytics.

Responsibilities:
- Summarise the estimated tasks of a project (total effort, average
  complexity and EAF).
- Evaluate estimation accuracy: estimated_effort_pm against the
  actual_effort_pm recorded when tasks reached "done" (MAE, RMSE, MAPE).
"""

from __future__ import annotations

from typing import Dict, Iterable, List

import numpy as np

from .cocomo_model import calculate_eaf
from .schema import Task

HIGH_COMPLEXITY_THRESHOLD = 1.2


def project_insights(tasks: Iterable[Task]) -> Dict[str, float]:
    """
    Aggregate the tasks that carry an estimate.

    Returns a dict with:
    - estimated_tasks:        number of tasks with estimated_effort_pm
    - total_estimated_pm:     sum of their estimates
    - average_complexity:     mean attr_cplx (1.0 if none)
    - high_complexity_tasks:  tasks with attr_cplx > 1.2
    - average_eaf:            mean Effort Adjustment Factor (1.0 if none)
    """
    estimated: List[Task] = [t for t in tasks if t.estimated_effort_pm]

    if not estimated:
        return {
            "estimated_tasks": 0,
            "total_estimated_pm": 0.0,
            "average_complexity": 1.0,
            "high_complexity_tasks": 0,
            "average_eaf": 1.0,
        }

    effort = np.asarray([t.estimated_effort_pm for t in estimated], dtype=float)
    complexity = np.asarray([t.attr_cplx or 1.0 for t in estimated], dtype=float)
    eaf = np.asarray([calculate_eaf(t.see_attributes()) for t in estimated], dtype=float)

    return {
        "estimated_tasks": len(estimated),
        "total_estimated_pm": round(float(effort.sum()), 2),
        "average_complexity": round(float(complexity.mean()), 2),
        "high_complexity_tasks": int((complexity > HIGH_COMPLEXITY_THRESHOLD).sum()),
        "average_eaf": round(float(eaf.mean()), 4),
    }


def evaluate_estimates(tasks: Iterable[Task]) -> Dict[str, float]:
    """
    Compare estimates with recorded actual effort.

    Only tasks with both estimated_effort_pm and actual_effort_pm count.

    Returns a dict with:
    - n:     number of tasks used
    - mae:   mean absolute error (person-months)
    - rmse:  root mean squared error
    - mape:  mean absolute percentage error (tasks with zero actual skipped)
    """
    y_true: List[float] = []
    y_pred: List[float] = []

    for t in tasks:
        if t.estimated_effort_pm is None or t.actual_effort_pm is None:
            continue
        y_true.append(t.actual_effort_pm)
        y_pred.append(t.estimated_effort_pm)

    if not y_true:
        raise ValueError("No completed tasks with both estimated and actual effort.")

    y_true_arr = np.asarray(y_true, dtype=float)
    y_pred_arr = np.asarray(y_pred, dtype=float)

    errors = y_pred_arr - y_true_arr
    abs_errors = np.abs(errors)

    mae = float(abs_errors.mean())
    rmse = float(np.sqrt((errors**2).mean()))

    # MAPE: be careful with zeros
    with np.errstate(divide="ignore", invalid="ignore"):
        perc_errors = abs_errors / y_true_arr
        perc_errors = perc_errors[~np.isnan(perc_errors) & ~np.isinf(perc_errors)]
        mape = float(perc_errors.mean()) if perc_errors.size > 0 else 0.0

    return {
        "n": float(len(y_true)),
        "mae": mae,
        "rmse": rmse,
        "mape": mape,
    }
