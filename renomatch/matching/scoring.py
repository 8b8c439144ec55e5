from __future__ import annotations

import math
from typing import Iterable, Sequence, Tuple

from renomatch.models import Workload

from .types import BudgetFit

# Canned reasons and risks. Insights match on these exact strings.
REASON_ALL_SPECIALTIES = "Covers all required specialties"
REASON_MOST_SPECIALTIES = "Covers most required specialties"
REASON_EXCELLENT_RATING = "Excellent customer ratings"
REASON_EXPERIENCED = "Extensive experience in the sector"
REASON_AVAILABLE = "Good availability"
REASON_LOCAL = "Local installer"
REASON_BUDGET_FIT = "Budget matches typical project value"

RISK_FEW_REVIEWS = "Limited number of reviews"
RISK_HIGH_WORKLOAD = "High workload, longer waiting time"
RISK_BUDGET_LOW = "Budget likely too low for this installer"
RISK_BUDGET_HIGH = "Budget above typical projects"

EXCELLENT_RATING = 4.5
EXPERIENCE_CAP_YEARS = 10.0
LOCAL_DISTANCE_KM = 20.0
MIN_REVIEWS = 20

# Points out of 15, rescaled when the availability weight is tuned
_AVAILABILITY_POINTS = {
    Workload.LOW: 15.0,
    Workload.MEDIUM: 10.0,
    Workload.HIGH: 5.0,
}


def clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else (hi if x > hi else x)


def round_half_up(x: float) -> int:
    # round() does banker's rounding; scores use the commercial convention
    return int(math.floor(x + 0.5))


def specialty_coverage(required: Sequence[str], specialties: Iterable[str]) -> float:
    """Fraction of required categories the candidate covers, in [0,1]."""
    if not required:
        return 0.0
    have = set(specialties)
    hits = sum(1 for r in required if r in have)
    return hits / len(required)


def specialty_score(required: Sequence[str], specialties: Iterable[str], weight: float = 40.0) -> float:
    return clamp(specialty_coverage(required, specialties) * weight, 0.0, weight)


def rating_score(rating: float, weight: float = 20.0) -> float:
    return clamp((rating / 5.0) * weight, 0.0, weight)


def experience_score(years: float, weight: float = 15.0) -> float:
    # Clamped linear: ten years is the ceiling
    return clamp(min(years / EXPERIENCE_CAP_YEARS, 1.0) * weight, 0.0, weight)


def availability_score(workload: Workload, weight: float = 15.0) -> float:
    return clamp(_AVAILABILITY_POINTS[workload] * weight / 15.0, 0.0, weight)


def proximity_score(distance_km: float, weight: float = 10.0, horizon_km: float = 50.0) -> float:
    if distance_km >= horizon_km:
        return 0.0
    return clamp(max(0.0, (horizon_km - distance_km) / horizon_km) * weight, 0.0, weight)


def budget_compatibility(average_project_value: float, budget: float, tolerance: float = 0.30) -> BudgetFit:
    """
    Soft signal: a budget within +/- tolerance of the installer's typical
    project value is compatible. Never used to exclude a candidate.
    """
    low = average_project_value * (1 - tolerance)
    high = average_project_value * (1 + tolerance)
    if low <= budget <= high:
        return BudgetFit(compatible=True, reason="")
    if budget < low:
        return BudgetFit(compatible=False, reason=RISK_BUDGET_LOW)
    return BudgetFit(compatible=False, reason=RISK_BUDGET_HIGH)


def specialty_reason(coverage: float) -> Tuple[str, ...]:
    if coverage == 1.0:
        return (REASON_ALL_SPECIALTIES,)
    if coverage > 0.5:
        return (REASON_MOST_SPECIALTIES,)
    return ()
