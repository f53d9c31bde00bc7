"""Decimal rounding shared by both effort models."""

from __future__ import annotations

import math


def round_half_away(value: float, digits: int = 2) -> float:
    """
    Round to `digits` decimals, halves going away from zero.

    Python's round() rounds halves to even, so 0.625 would become 0.62;
    effort figures are reported as 0.63.
    """
    scale = 10 ** digits
    scaled = math.floor(abs(value) * scale + 0.5) / scale
    return math.copysign(scaled, value) if scaled else 0.0
