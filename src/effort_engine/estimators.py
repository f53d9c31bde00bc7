"""
The two effort models behind a common estimator interface.

The models evolved independently: inputs, output units, unit
constants and explanation method all differ, so each strategy
delegates to its own module and they share nothing but the shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Protocol, Tuple

from . import cocomo_model, function_point_model
from .errors import ValidationError
from .rounding import round_half_away
from .schema import ChinaAttributes, SEEAttributes, SEE_DESCRIPTORS


class EffortEstimator(Protocol):
    name: str
    unit: str

    def estimate(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        ...

    def explain(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        ...


def _optional_number(payload: Mapping[str, Any], key: str, default: float) -> float:
    value = payload.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"Invalid {key} value: {value!r}", details={"field": key})
    return float(value)


@dataclass
class CocomoEstimator:
    """
    Size (KLOC) + six cost drivers -> person-months.

    Missing attributes default to nominal (1.0), missing size to 10 KLOC.
    """

    name: str = "cocomo"
    unit: str = "person-months"
    default_size_kloc: float = cocomo_model.DEFAULT_SIZE_KLOC

    def parse(self, payload: Mapping[str, Any]) -> Tuple[SEEAttributes, float]:
        attrs = SEEAttributes(
            **{
                name: _optional_number(payload, name, 1.0)
                for name in SEE_DESCRIPTORS
            }
        )
        size_kloc = _optional_number(payload, "sizeKLOC", self.default_size_kloc)
        return attrs, size_kloc

    def estimate(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        attrs, size_kloc = self.parse(payload)
        cocomo_model.validate_see_attributes(attrs)
        cocomo_model.validate_size(size_kloc)

        effort_pm = cocomo_model.estimate_effort(size_kloc, attrs)
        return {
            "effort_pm": effort_pm,
            "effort_hours": round_half_away(effort_pm * cocomo_model.EXPLAIN_HOURS_PER_MONTH, 2),
            "eaf": round(cocomo_model.calculate_eaf(attrs), 4),
            "band": cocomo_model.effort_band(effort_pm),
        }

    def explain(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        attrs, size_kloc = self.parse(payload)
        return cocomo_model.explain(attrs, size_kloc)


@dataclass
class FunctionPointEstimator:
    """Eight function-point metrics -> person-hours."""

    name: str = "china"
    unit: str = "person-hours"

    def parse(self, payload: Mapping[str, Any]) -> ChinaAttributes:
        return function_point_model.china_attributes_from_payload(payload)

    def estimate(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        attrs = self.parse(payload)
        hours = function_point_model.estimate_effort_china(attrs)
        return {
            "effort_hours": round_half_away(hours, 2),
            "effort_pm": function_point_model.hours_to_months(hours),
            "band": function_point_model.effort_band(hours),
        }

    def explain(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        return function_point_model.explain(self.parse(payload), sort_by_magnitude=True)


def get_estimator(model: str) -> EffortEstimator:
    """
    Resolve the /explain/{model} path segment to a strategy.

    "china" selects the function-point model; every other name is served
    by the COCOMO-style model.
    """
    if model.strip().lower() == "china":
        return FunctionPointEstimator()
    return CocomoEstimator()
