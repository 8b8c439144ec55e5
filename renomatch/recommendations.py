from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence

from renomatch.insights import average_match_score, fastest_available, most_urgent_scheme, urgent_schemes
from renomatch.matching.scoring import round_half_up
from renomatch.matching.types import Combination, ScoredContractor
from renomatch.models import Scheme

NO_MATCH_STEPS = [
    "No suitable installers found nearby",
    "Consider widening the search radius",
    "Check whether the project requirements are realistic",
]

COST_SAVING_TIPS = [
    "Combine several measures for economies of scale",
    "Schedule the work in quiet periods",
    "Consider less expensive alternatives",
    "Ask about payment arrangements",
]

BUDGET_BUFFER = 1.10
ASSUMED_SUBSIDY_SHARE = 0.30

REQUIRED_DOCUMENTS = [
    "Energy label of the property",
    "Proof of ownership",
    "Quotes from certified installers",
    "Technical specifications of the measures",
    "Bank statement",
    "Proof of identity",
]

APPLICATION_PROCESS = [
    "Check the property qualifies",
    "Request quotes (at least 2)",
    "Submit the application online",
    "Wait for approval",
    "Start the work after approval",
    "Submit evidence after completion",
]


# ----------------------------------------------------------------------
# Contractor path
# ----------------------------------------------------------------------

def next_steps(matches: Sequence[ScoredContractor]) -> List[str]:
    if not matches:
        return list(NO_MATCH_STEPS)

    steps = [
        "Contact the top 3 installers for quotes",
        "Compare quotes on price, quality and availability",
        "Check certifications and references",
        "Schedule a site visit for a technical assessment",
    ]
    fastest = fastest_available(matches)
    steps.append(
        f"Fastest available: {fastest.provider.company_name} "
        f"({fastest.availability.next_available.isoformat()})"
    )
    return steps


def project_timeline(matches: Sequence[ScoredContractor], today: date) -> List[Dict[str, str]]:
    """Four fixed phases anchored to the top-ranked installer's availability."""
    if not matches:
        return []
    best = matches[0]
    start = best.availability.next_available
    week = timedelta(days=7)
    return [
        {
            "phase": "Quote and selection",
            "startDate": today.isoformat(),
            "duration": "1-2 weeks",
            "description": "Compare quotes and select an installer",
        },
        {
            "phase": "Preparation",
            "startDate": (start - week).isoformat(),
            "duration": "1 week",
            "description": "Order materials and prepare the work",
        },
        {
            "phase": "Execution",
            "startDate": start.isoformat(),
            "duration": best.availability.estimated_duration,
            "description": "Installation of the energy measures",
        },
        {
            "phase": "Completion",
            "startDate": (start + week).isoformat(),
            "duration": "1 week",
            "description": "Handover, testing and certification",
        },
    ]


def budget_optimization(matches: Sequence[ScoredContractor], budget: float) -> Dict[str, Any]:
    prices = [m.pricing.estimated_cost for m in matches]
    if not prices:
        return {
            "budgetRange": {"minimum": None, "maximum": None, "average": None, "userBudget": budget},
            "recommendations": {
                "budgetAdequate": None,
                "suggestedBudget": None,
                "costSavingTips": list(COST_SAVING_TIPS),
            },
            "subsidyImpact": None,
        }

    avg = sum(prices) / len(prices)
    return {
        "budgetRange": {
            "minimum": min(prices),
            "maximum": max(prices),
            "average": round_half_up(avg),
            "userBudget": budget,
        },
        "recommendations": {
            "budgetAdequate": budget >= avg,
            "suggestedBudget": round_half_up(avg * BUDGET_BUFFER),
            "costSavingTips": list(COST_SAVING_TIPS),
        },
        "subsidyImpact": {
            "beforeSubsidy": round_half_up(avg),
            "afterSubsidy": round_half_up(avg * (1 - ASSUMED_SUBSIDY_SHARE)),
            "netCost": round_half_up(avg * (1 - ASSUMED_SUBSIDY_SHARE)),
        },
    }


def contractor_advice(matches: Sequence[ScoredContractor], budget: float) -> str:
    """Deterministic plain-text summary; the LLM enhancer may rewrite it."""
    if not matches:
        return (
            "No installers matched your requirements. "
            "Widening the search radius or relaxing certification preferences usually helps."
        )
    top = matches[0]
    avg_score = average_match_score(matches)
    lines = [
        f"{len(matches)} installers match your project; the best match is "
        f"{top.provider.company_name} with a score of {top.score}/100.",
        f"The average match score is {avg_score:.0f}.",
    ]
    if top.match_reasons:
        lines.append("Strengths: " + ", ".join(top.match_reasons[:3]).lower() + ".")
    if top.risk_factors:
        lines.append("Watch out for: " + ", ".join(top.risk_factors).lower() + ".")
    costs = [m.pricing.estimated_cost for m in matches]
    avg_cost = sum(costs) / len(costs)
    if budget < avg_cost:
        lines.append(f"Your budget of €{budget:,.0f} is below the typical estimate of €{avg_cost:,.0f}.")
    return " ".join(lines)


# ----------------------------------------------------------------------
# Subsidy path
# ----------------------------------------------------------------------

def immediate_actions(eligible: Sequence[Scheme], today: date) -> List[str]:
    if not eligible:
        return [
            "Check that the property meets the basic requirements",
            "Consider insulation measures first",
        ]
    actions = [
        "Request quotes from at least 2 certified installers",
        "Collect all required documents",
    ]
    urgent = urgent_schemes(eligible, today)
    if urgent:
        actions.append(f"Submit the application for {urgent[0].name} within 2 weeks")
    return actions


def subsidy_timeline() -> List[Dict[str, Any]]:
    return [
        {
            "phase": "Preparation",
            "duration": "1-2 weeks",
            "tasks": ["Request quotes", "Collect documents", "Prepare subsidy applications"],
        },
        {
            "phase": "Application",
            "duration": "1 week",
            "tasks": ["Submit subsidy applications", "Receive confirmations"],
        },
        {
            "phase": "Awaiting approval",
            "duration": "6-8 weeks",
            "tasks": ["Provide additional information if needed", "Book installers"],
        },
        {
            "phase": "Execution",
            "duration": "1-3 weeks",
            "tasks": ["Have the work carried out", "Quality control", "Receive certificates"],
        },
        {
            "phase": "Completion",
            "duration": "2-4 weeks",
            "tasks": ["Submit invoices and evidence", "Receive the subsidy", "Request a new energy label"],
        },
    ]


def application_requirements(schemes: Sequence[Scheme]) -> List[Dict[str, Any]]:
    return [
        {
            "schemeId": s.scheme_id,
            "schemeName": s.name,
            "requiredDocuments": list(REQUIRED_DOCUMENTS),
            "applicationProcess": list(APPLICATION_PROCESS),
            "processingTime": "6-8 weeks",
            "applicationFee": 0,
            "paymentMethod": "After completion, based on invoices",
        }
        for s in schemes
    ]


def subsidy_advice(
        eligible: Sequence[Scheme],
        combinations: Sequence[Combination],
        today: date,
) -> str:
    if not combinations:
        return (
            "No subsidy scheme currently applies to the planned measures. "
            "Check the basic requirements or consider insulation measures first."
        )
    best = combinations[0]
    names = " + ".join(s.name for s in best.schemes)
    lines = [
        f"{len(eligible)} schemes apply to this property.",
        f"The highest combined award is €{best.total_subsidy:,.0f} via {names} "
        f"({best.processing_time}, success probability {best.success_probability:.0%}).",
    ]
    urgent: Optional[Scheme] = most_urgent_scheme(eligible, today)
    if urgent is not None:
        lines.append(f"Most time-critical: {urgent.name}, deadline {urgent.application_deadline.isoformat()}.")
    return " ".join(lines)
