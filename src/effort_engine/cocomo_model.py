"""
Pure math for the COCOMO-style effort model.

No I/O, no HTTP. Just:
- Effort Adjustment Factor (EAF) from the six cost drivers
- Effort prediction in person-months from size (KLOC) and EAF
- One-at-a-time sensitivity analysis over the cost drivers
- Range validation and descriptive labels
"""

from __future__ import annotations

import math
from typing import Dict, List, Union

from .errors import ValidationError
from .rounding import round_half_away
from .schema import FeatureImportance, SEEAttributes, SEE_DESCRIPTORS

# Effort = a * KLOC^b * EAF (organic mode)
BASE_COEFFICIENT = 2.94
EXPONENT = 1.1

SENSITIVITY_DELTA = 0.10

# 20 working days x 7.6 hours. Only the explanation output uses this;
# the function-point model has its own 160 h/month constant.
EXPLAIN_HOURS_PER_MONTH = 152

INVERTED_ATTRIBUTES = ("acap", "pcap", "tool")

DEFAULT_SIZE_KLOC = 10.0

# Sizes beyond this overflow the power term.
MAX_SIZE_KLOC = 1e9


def calculate_eaf(attrs: SEEAttributes) -> float:
    """
    Effort Adjustment Factor: product of all six cost driver multipliers.

    No bounds checking; see validate_see_attributes.
    """
    return attrs.rely * attrs.cplx * attrs.acap * attrs.pcap * attrs.tool * attrs.sced


def estimate_effort(size_kloc: float, attrs: SEEAttributes) -> float:
    """
    Estimate effort in person-months, rounded to 2 decimals.

        effort = 2.94 * size_kloc^1.1 * EAF
    """
    effort = BASE_COEFFICIENT * math.pow(size_kloc, EXPONENT) * calculate_eaf(attrs)
    return round_half_away(effort, 2)


def calculate_feature_importance(
    attrs: SEEAttributes,
    size_kloc: float,
    base_effort_hours: float,
) -> List[FeatureImportance]:
    """
    Finite-difference sensitivity of effort (person-hours) to each driver.

    Each attribute in turn is scaled by (1 + SENSITIVITY_DELTA) with the
    others held fixed. For inverted attributes the delta is negated.
    Result is sorted by descending absolute importance; ties keep
    declaration order.
    """
    importance: List[FeatureImportance] = []

    for name in SEE_DESCRIPTORS:
        current = getattr(attrs, name)
        modified = attrs.replace(name, current * (1 + SENSITIVITY_DELTA))
        modified_hours = estimate_effort(size_kloc, modified) * EXPLAIN_HOURS_PER_MONTH

        delta = modified_hours - base_effort_hours
        if name in INVERTED_ATTRIBUTES:
            delta = -delta

        importance.append(
            FeatureImportance(feature=name.upper(), importance=round_half_away(delta, 2))
        )

    importance.sort(key=lambda fi: abs(fi.importance), reverse=True)
    return importance


def _fmt(value: float) -> str:
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


def validate_see_attributes(attrs: SEEAttributes) -> SEEAttributes:
    """
    Reject the first attribute outside its [min, max] range.

    Values are never clamped.
    """
    for name, descriptor in SEE_DESCRIPTORS.items():
        value = getattr(attrs, name)
        if math.isnan(value) or value < descriptor.min or value > descriptor.max:
            raise ValidationError(
                f"Invalid {name} value: {_fmt(value)}. "
                f"Must be between {_fmt(descriptor.min)} and {_fmt(descriptor.max)}",
                details={"field": name, "value": value},
            )
    return attrs


def validate_size(size_kloc: float) -> float:
    if not math.isfinite(size_kloc) or size_kloc <= 0.0:
        raise ValidationError(
            f"Invalid sizeKLOC value: {_fmt(size_kloc)}. Must be greater than 0",
            details={"field": "sizeKLOC", "value": size_kloc},
        )
    if size_kloc > MAX_SIZE_KLOC:
        raise ValidationError(
            f"Invalid sizeKLOC value: {_fmt(size_kloc)}. "
            f"Must not exceed {_fmt(MAX_SIZE_KLOC)}",
            details={"field": "sizeKLOC", "value": size_kloc},
        )
    return size_kloc


def attribute_label(value: float) -> str:
    if value <= 0.75:
        return "Very Low"
    if value <= 0.88:
        return "Low"
    if value <= 1.0:
        return "Nominal"
    if value <= 1.15:
        return "High"
    if value <= 1.3:
        return "Very High"
    return "Extra High"


def effort_band(effort_pm: float) -> str:
    """Qualitative size of an effort figure in person-months."""
    if effort_pm < 3:
        return "low"
    if effort_pm < 6:
        return "moderate"
    if effort_pm < 12:
        return "high"
    return "very_high"


def explain(
    attrs: SEEAttributes,
    size_kloc: float = DEFAULT_SIZE_KLOC,
) -> Dict[str, Union[float, List[Dict[str, float]]]]:
    """
    Validate inputs, predict effort in person-hours and explain it.

    Returns {"feature_importance": [...], "prediction": hours}.
    """
    validate_see_attributes(attrs)
    validate_size(size_kloc)

    effort_pm = estimate_effort(size_kloc, attrs)
    effort_hours = effort_pm * EXPLAIN_HOURS_PER_MONTH

    feature_importance = calculate_feature_importance(attrs, size_kloc, effort_hours)

    return {
        "feature_importance": [fi.as_dict() for fi in feature_importance],
        "prediction": round_half_away(effort_hours, 2),
    }
