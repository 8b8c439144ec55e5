"""
Secondary signals derived from a ranked result.

Everything here is a pure function of the ranked entries plus a reference
date. Empty inputs are legal and map to explicit "no data" values (None)
rather than NaN or a ZeroDivisionError.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from renomatch.matching.scoring import (
    EXCELLENT_RATING,
    EXPERIENCE_CAP_YEARS,
    RISK_FEW_REVIEWS,
    RISK_HIGH_WORKLOAD,
)
from renomatch.matching.types import ScoredContractor
from renomatch.models import Scheme

DEPLETION_SOON = "within 2 months"
DEPLETION_MEDIUM = "within 6 months"
DEPLETION_LATER = "more than 6 months"

URGENT_DEADLINE_DAYS = 60
DEADLINE_PRESSURE_DAYS = 90
LOW_BUDGET_PERCENT = 30

BASE_MITIGATIONS = [
    "Request several quotes to compare prices",
    "Check references from recent projects",
    "Ask about warranty terms",
    "Schedule the work well in advance",
    "Make clear contractual agreements",
]
MITIGATION_BY_RISK = {
    RISK_HIGH_WORKLOAD: "Book early in the season for better availability",
    RISK_FEW_REVIEWS: "Ask for extra references and example projects",
}


def _mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


# ----------------------------------------------------------------------
# Subsidy urgency
# ----------------------------------------------------------------------

def days_until(deadline: date, today: date) -> int:
    # Both are calendar dates, so the difference is already whole days
    return (deadline - today).days


def urgency_score(scheme: Scheme, today: date) -> int:
    """Higher is more urgent: deadline proximity plus budget scarcity."""
    days = days_until(scheme.application_deadline, today)
    score = 0

    if days <= 30:
        score += 50
    elif days <= 60:
        score += 30
    elif days <= 90:
        score += 10

    remaining = scheme.budget_remaining
    if remaining <= 20:
        score += 40
    elif remaining <= 40:
        score += 25
    elif remaining <= 60:
        score += 10

    return score


def most_urgent_scheme(schemes: Sequence[Scheme], today: date) -> Optional[Scheme]:
    best: Optional[Scheme] = None
    best_score = -1
    for s in schemes:
        u = urgency_score(s, today)
        if u > best_score:
            best, best_score = s, u
    return best


def estimate_budget_depletion(budget_remaining: float) -> str:
    """
    Assumes the consumed share was used evenly over the last 12 months and
    extrapolates linearly. An untouched budget never depletes.
    """
    monthly_rate = (100.0 - budget_remaining) / 12.0
    if monthly_rate <= 0:
        return DEPLETION_LATER
    months_remaining = budget_remaining / monthly_rate
    if months_remaining < 2:
        return DEPLETION_SOON
    if months_remaining < 6:
        return DEPLETION_MEDIUM
    return DEPLETION_LATER


def budget_risk_level(budget_remaining: float) -> str:
    if budget_remaining < LOW_BUDGET_PERCENT:
        return "high"
    if budget_remaining < 60:
        return "medium"
    return "low"


def urgent_schemes(schemes: Sequence[Scheme], today: date, within_days: int = URGENT_DEADLINE_DAYS) -> List[Scheme]:
    return [s for s in schemes if days_until(s.application_deadline, today) <= within_days]


def optimal_application_window(schemes: Sequence[Scheme], today: date) -> Optional[str]:
    urgent = most_urgent_scheme(schemes, today)
    if urgent is None:
        return None
    return f"Apply within 2-4 weeks for the best chance at {urgent.name}"


def analyze_deadlines(schemes: Sequence[Scheme], today: date) -> Dict[str, Any]:
    return {
        "urgentDeadlines": [
            {
                "schemeId": s.scheme_id,
                "schemeName": s.name,
                "applicationDeadline": s.application_deadline.isoformat(),
                "daysUntilDeadline": days_until(s.application_deadline, today),
                "urgencyScore": urgency_score(s, today),
            }
            for s in urgent_schemes(schemes, today)
        ],
        "budgetStatus": [
            {
                "schemeId": s.scheme_id,
                "schemeName": s.name,
                "budgetRemaining": s.budget_remaining,
                "riskLevel": budget_risk_level(s.budget_remaining),
                "estimatedDepletion": estimate_budget_depletion(s.budget_remaining),
            }
            for s in schemes
        ],
        "optimalApplicationWindow": optimal_application_window(schemes, today),
    }


def subsidy_risk_factors(schemes: Sequence[Scheme], today: date) -> List[Dict[str, Any]]:
    risks: List[Dict[str, Any]] = []

    low_budget = [s for s in schemes if s.budget_remaining < LOW_BUDGET_PERCENT]
    if low_budget:
        risks.append({
            "type": "budget_depletion",
            "level": "high",
            "description": "Subsidy budget is running out",
            "affectedSchemes": [s.name for s in low_budget],
            "mitigation": "Submit the application as soon as possible",
        })

    pressing = urgent_schemes(schemes, today, within_days=DEADLINE_PRESSURE_DAYS)
    if pressing:
        risks.append({
            "type": "deadline_pressure",
            "level": "medium",
            "description": "Application deadline is approaching",
            "affectedSchemes": [s.name for s in pressing],
            "mitigation": "Speed up the planning",
        })

    risks.append({
        "type": "contractor_availability",
        "level": "medium",
        "description": "High demand for certified installers",
        "affectedSchemes": ["All schemes"],
        "mitigation": "Book early and request several quotes",
    })
    return risks


# ----------------------------------------------------------------------
# Contractor insights
# ----------------------------------------------------------------------

def identify_common_risks(matches: Sequence[ScoredContractor], threshold: float = 0.30) -> List[str]:
    """Risks carried by at least `threshold` of the ranked set, in first-seen order."""
    if not matches:
        return []
    counts: Dict[str, int] = {}
    for m in matches:
        for risk in m.risk_factors:
            counts[risk] = counts.get(risk, 0) + 1
    cutoff = len(matches) * threshold
    return [risk for risk, n in counts.items() if n >= cutoff]


def mitigation_strategies(common_risks: Sequence[str]) -> List[str]:
    strategies = list(BASE_MITIGATIONS)
    for risk, strategy in MITIGATION_BY_RISK.items():
        if risk in common_risks:
            strategies.append(strategy)
    return strategies


def market_analysis(matches: Sequence[ScoredContractor]) -> Dict[str, Any]:
    costs = [m.pricing.estimated_cost for m in matches]
    return {
        "averageRating": _mean([m.provider.rating for m in matches]),
        "averageExperience": _mean([m.provider.years_experience for m in matches]),
        "priceRange": {
            "min": min(costs) if costs else None,
            "max": max(costs) if costs else None,
            "average": _mean(costs),
        },
    }


def fastest_available(matches: Sequence[ScoredContractor]) -> Optional[ScoredContractor]:
    """Earliest next-available date; the higher-ranked entry wins ties."""
    best: Optional[ScoredContractor] = None
    for m in matches:
        if best is None or m.availability.next_available < best.availability.next_available:
            best = m
    return best


def format_wait(days: int) -> str:
    weeks, rest = divmod(max(0, days), 7)
    if weeks > 0:
        return f"{weeks} weeks" + (f" and {rest} days" if rest > 0 else "")
    return f"{rest} days"


def availability_summary(matches: Sequence[ScoredContractor], today: date) -> Dict[str, Any]:
    first = fastest_available(matches)
    waits = [(m.availability.next_available - today).days for m in matches]
    mean_wait = _mean(waits)
    return {
        "earliestAvailable": first.availability.next_available.isoformat() if first else None,
        "averageWaitTime": format_wait(int(mean_wait + 0.5)) if mean_wait is not None else None,
    }


def quality_indicators(matches: Sequence[ScoredContractor]) -> Dict[str, int]:
    return {
        "highRatedContractors": sum(1 for m in matches if m.provider.rating >= EXCELLENT_RATING),
        "experiencedContractors": sum(1 for m in matches if m.provider.years_experience >= EXPERIENCE_CAP_YEARS),
        "rvoVerifiedContractors": sum(1 for m in matches if m.verified),
    }


def matching_insights(
        matches: Sequence[ScoredContractor],
        today: date,
        *,
        common_risk_threshold: float = 0.30,
) -> Dict[str, Any]:
    common = identify_common_risks(matches, common_risk_threshold)
    return {
        "marketAnalysis": market_analysis(matches),
        "availability": availability_summary(matches, today),
        "qualityIndicators": quality_indicators(matches),
        "riskAnalysis": {
            "commonRisks": common,
            "mitigationStrategies": mitigation_strategies(common),
        },
    }


def average_match_score(matches: Sequence[ScoredContractor]) -> Optional[float]:
    return _mean([m.score for m in matches])
