# hazardmon/scoring.py
import math
from typing import Any

from hazardmon.schema import SEVERITY_RANK


def _num(x: Any) -> float:
    # missing / garbage / NaN -> 0 (lowest bucket)
    try:
        v = float(x)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(v):
        return 0.0
    return v


def severity_from_magnitude(mag: Any) -> str:
    m = _num(mag)
    if m >= 7:
        return "critical"
    if m >= 6:
        return "high"
    if m >= 5:
        return "medium"
    return "low"


def severity_from_fatalities(fatalities: Any) -> str:
    f = _num(fatalities)
    if f >= 100:
        return "critical"
    if f >= 20:
        return "high"
    if f >= 5:
        return "medium"
    return "low"


def severity_from_category(category: str) -> str:
    if category in ("conflict", "violence"):
        return "high"
    return "medium"


def severity_rank(severity: str) -> int:
    return SEVERITY_RANK.get(severity, 0)
