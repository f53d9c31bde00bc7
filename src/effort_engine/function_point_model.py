"""
Pure math for the function-point (China dataset) effort model.

    hours = max(1200 + 50 * sum(coefficient_i * attr_i), 100)

The model is linear, so its explanation is an exact decomposition
into per-attribute contributions rather than a sensitivity analysis.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Union

import numpy as np

from .errors import ValidationError
from .rounding import round_half_away
from .schema import ChinaAttributes, FeatureImportance

BASE_EFFORT_HOURS = 1200.0
SCALE_FACTOR = 50.0
MINIMUM_EFFORT_HOURS = 100.0

# Function-point model only. Not interchangeable with the COCOMO
# explanation constant (152).
HOURS_PER_MONTH = 160.0

MODEL_VERSION = "china-dataset-v1.0"
DATASET = "NASA/China Software Engineering Dataset"

COEFFICIENTS: Dict[str, float] = {
    "afp": -1.041,
    "input": -2.293,
    "output": 0.674,
    "enquiry": -0.344,
    "file": 1.247,
    "interface": 2.156,
    "resource": 3.892,
    "duration": 8.467,
}

# Request body keys, in declaration order.
PAYLOAD_FIELDS: Dict[str, str] = {
    "afp": "AFP",
    "input": "Input",
    "output": "Output",
    "enquiry": "Enquiry",
    "file": "File",
    "interface": "Interface",
    "resource": "Resource",
    "duration": "Duration",
}

_COEFFICIENT_VECTOR = np.array(list(COEFFICIENTS.values()), dtype=float)


def _feature_vector(attrs: ChinaAttributes) -> np.ndarray:
    return np.array([getattr(attrs, name) for name in COEFFICIENTS], dtype=float)


def estimate_effort_china(attrs: ChinaAttributes) -> float:
    """
    Effort in person-hours. Never below MINIMUM_EFFORT_HOURS.
    """
    contribution = float(np.dot(_COEFFICIENT_VECTOR, _feature_vector(attrs)))
    total = BASE_EFFORT_HOURS + contribution * SCALE_FACTOR
    return max(total, MINIMUM_EFFORT_HOURS)


def hours_to_months(hours: float) -> float:
    return round_half_away(hours / HOURS_PER_MONTH, 2)


def months_to_hours(months: float) -> float:
    return round_half_away(months * HOURS_PER_MONTH, 2)


def calculate_feature_importance(
    attrs: ChinaAttributes,
    *,
    sort_by_magnitude: bool = False,
) -> List[FeatureImportance]:
    """
    Raw linear contribution coefficient_i * attr_i of each attribute.

    Declaration order unless sort_by_magnitude is set, in which case the
    entries are ordered by descending absolute importance.
    """
    contributions = _COEFFICIENT_VECTOR * _feature_vector(attrs)
    importance = [
        FeatureImportance(
            feature=PAYLOAD_FIELDS[name],
            importance=round_half_away(float(value), 2),
        )
        for name, value in zip(COEFFICIENTS, contributions)
    ]
    if sort_by_magnitude:
        importance.sort(key=lambda fi: abs(fi.importance), reverse=True)
    return importance


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def china_attributes_from_payload(body: Any) -> ChinaAttributes:
    """
    Build ChinaAttributes from an API request body.

    All eight fields are required and must be JSON numbers.
    """
    if not isinstance(body, Mapping):
        raise ValidationError("Invalid request body")

    values: Dict[str, float] = {}
    for name, key in PAYLOAD_FIELDS.items():
        value = body.get(key)
        if not _is_number(value):
            raise ValidationError(
                f"Missing or invalid field: {key}",
                details={"field": key},
            )
        values[name] = value
    return ChinaAttributes(**values)


def attribute_label(value: float, attr: str) -> str:
    if attr == "afp":
        if value < 100:
            return "Very Small"
        if value < 200:
            return "Small"
        if value < 300:
            return "Medium"
        if value < 500:
            return "Large"
        return "Very Large"

    if attr in ("input", "output", "enquiry"):
        if value < 10:
            return "Very Low"
        if value < 30:
            return "Low"
        if value < 50:
            return "Medium"
        if value < 80:
            return "High"
        return "Very High"

    if attr in ("file", "interface"):
        if value < 5:
            return "Very Low"
        if value < 15:
            return "Low"
        if value < 25:
            return "Medium"
        if value < 40:
            return "High"
        return "Very High"

    if attr == "resource":
        if value <= 2:
            return "Very Low"
        if value <= 4:
            return "Low"
        if value <= 6:
            return "Medium"
        if value <= 8:
            return "High"
        return "Very High"

    if attr == "duration":
        if value < 3:
            return "Very Short"
        if value < 6:
            return "Short"
        if value < 12:
            return "Medium"
        if value < 24:
            return "Long"
        return "Very Long"

    return "Unknown"


def effort_band(effort_hours: float) -> str:
    effort_pm = hours_to_months(effort_hours)
    if effort_pm < 3:
        return "low"
    if effort_pm < 6:
        return "moderate"
    if effort_pm < 12:
        return "high"
    return "very_high"


def explain(
    attrs: ChinaAttributes,
    *,
    sort_by_magnitude: bool = True,
) -> Dict[str, Union[str, float, List[Dict[str, float]]]]:
    """
    Prediction plus per-attribute contributions for the explain endpoint.
    """
    prediction = round_half_away(estimate_effort_china(attrs), 2)
    feature_importance = calculate_feature_importance(
        attrs, sort_by_magnitude=sort_by_magnitude
    )
    return {
        "feature_importance": [fi.as_dict() for fi in feature_importance],
        "prediction": prediction,
        "prediction_pm": hours_to_months(prediction),
        "model_version": MODEL_VERSION,
        "dataset": DATASET,
    }
