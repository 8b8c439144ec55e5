from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from renomatch import config
from renomatch.adapters.directory import JsonContractorDirectory, JsonSchemeRegistry
from renomatch.errors import RenoMatchError
from renomatch.insights import (
    analyze_deadlines,
    average_match_score,
    matching_insights,
    subsidy_risk_factors,
)
from renomatch.llm.enhancer import LLMAdviceEnhancer, build_default_enhancer
from renomatch.matching.engine import MatchingEngine
from renomatch.matching.types import Combination, ScoredContractor
from renomatch.models import ContractorRequirements, PropertyProfile, Scheme, utc_now
from renomatch.recommendations import (
    application_requirements,
    budget_optimization,
    contractor_advice,
    immediate_actions,
    next_steps,
    project_timeline,
    subsidy_advice,
    subsidy_timeline,
)
from renomatch.schemas import parse_contractor_request, parse_subsidy_request
from renomatch.sources import ContractorProvider, SchemeProvider, fetch_all_schemes
from renomatch.verification import CancellationToken, CertificationVerifier, verify_all

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

RECOMMENDED_SHORTLIST = 3


@dataclass(frozen=True)
class Advice:
    text: str
    enhanced: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "enhanced": self.enhanced}


@dataclass(frozen=True)
class ContractorMatchResult:
    total_evaluated: int
    qualified: int
    matches: List[ScoredContractor]
    insights: Dict[str, Any]
    next_steps: List[str]
    timeline: List[Dict[str, str]]
    budget_optimization: Dict[str, Any]
    advice: Advice
    duration_ms: int
    last_updated: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matches": [m.to_dict() for m in self.matches],
            "insights": self.insights,
            "summary": {
                "totalContractorsEvaluated": self.total_evaluated,
                "qualifiedContractors": self.qualified,
                "averageMatchScore": average_match_score(self.matches),
                "recommendedContractors": len(self.matches[:RECOMMENDED_SHORTLIST]),
            },
            "recommendations": {
                "nextSteps": self.next_steps,
                "timeline": self.timeline,
                "budgetOptimization": self.budget_optimization,
                "advice": self.advice.to_dict(),
            },
            "durationMs": self.duration_ms,
            "lastUpdated": self.last_updated.isoformat(),
        }


@dataclass(frozen=True)
class SubsidyCheckResult:
    available: List[Scheme]
    eligible: List[Scheme]
    combinations: List[Combination]
    application_requirements: List[Dict[str, Any]]
    deadline_analysis: Dict[str, Any]
    immediate_actions: List[str]
    timeline: List[Dict[str, Any]]
    risk_factors: List[Dict[str, Any]]
    advice: Advice
    duration_ms: int
    last_updated: datetime = field(default_factory=utc_now)

    @property
    def total_max_subsidy(self) -> float:
        # Stacking stops at pairs, so the best ranked combination is the ceiling
        return self.combinations[0].total_subsidy if self.combinations else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eligibility": {
                "eligible": bool(self.eligible),
                "eligibleSchemes": [s.to_dict() for s in self.eligible],
                "totalMaxSubsidy": self.total_max_subsidy,
            },
            "availableSchemes": [s.to_dict() for s in self.available],
            "optimalCombinations": [c.to_dict() for c in self.combinations],
            "applicationRequirements": self.application_requirements,
            "deadlineAnalysis": self.deadline_analysis,
            "recommendations": {
                "immediateActions": self.immediate_actions,
                "timeline": self.timeline,
                "riskFactors": self.risk_factors,
                "advice": self.advice.to_dict(),
            },
            "durationMs": self.duration_ms,
            "lastUpdated": self.last_updated.isoformat(),
        }


def _enhance_advice(
        enhancer: Optional[LLMAdviceEnhancer],
        *,
        kind: str,
        base_advice: str,
        facts: Dict[str, str],
) -> Advice:
    if enhancer is None:
        return Advice(text=base_advice)
    try:
        return Advice(text=enhancer.enhance(kind=kind, base_advice=base_advice, facts=facts), enhanced=True)
    except Exception as exc:
        logger.warning("Advice enhancement failed, using deterministic text: %s", type(exc).__name__)
        return Advice(text=base_advice)


def run_contractor_match(
        requirements: ContractorRequirements,
        *,
        provider: ContractorProvider,
        verifier: Optional[CertificationVerifier] = None,
        engine: Optional[MatchingEngine] = None,
        today: Optional[date] = None,
        cancel_token: Optional[CancellationToken] = None,
        enhancer: Optional[LLMAdviceEnhancer] = None,
) -> ContractorMatchResult:
    start = time.time()
    engine = engine or MatchingEngine(config.load_matching_config())
    today = today or date.today()

    logger.info(
        "Starting smart contractor matching: project_types=%s location=%s budget=%s",
        requirements.project_types, requirements.location, requirements.budget,
    )

    contractors = provider.fetch_contractors(requirements.location, requirements.max_distance)
    qualified = engine.filter_contractors(requirements, contractors)

    verifications = {}
    if verifier is not None and qualified:
        vcfg = config.load_verification_config()
        verifications = verify_all(
            qualified,
            verifier,
            max_workers=vcfg.max_workers,
            timeout_seconds=vcfg.timeout_seconds,
            cancel_token=cancel_token,
        )

    scored = [
        engine.score_contractor(requirements, p, today=today, verification=verifications.get(p.provider_id))
        for p in qualified
    ]
    matches = engine.rank_contractors(scored)

    insights = matching_insights(matches, today, common_risk_threshold=engine.config.common_risk_threshold)

    base_advice = contractor_advice(matches, requirements.budget)
    advice = _enhance_advice(
        enhancer if matches else None,
        kind="contractors",
        base_advice=base_advice,
        facts={
            "Project": ", ".join(requirements.project_types),
            "Location": requirements.location,
            "Budget": f"€{requirements.budget:,.0f}",
            "Timeline": requirements.timeline,
        },
    )

    avg = average_match_score(matches)
    logger.info(
        "Smart contractor matching completed: location=%s total=%d qualified=%d verified=%d top=%d avg_score=%s",
        requirements.location, len(contractors), len(qualified), len(verifications), len(matches),
        f"{avg:.1f}" if avg is not None else "n/a",
    )

    return ContractorMatchResult(
        total_evaluated=len(contractors),
        qualified=len(qualified),
        matches=matches,
        insights=insights,
        next_steps=next_steps(matches),
        timeline=project_timeline(matches, today),
        budget_optimization=budget_optimization(matches, requirements.budget),
        advice=advice,
        duration_ms=int((time.time() - start) * 1000),
    )


def run_subsidy_check(
        profile: PropertyProfile,
        *,
        registries: Sequence[SchemeProvider],
        engine: Optional[MatchingEngine] = None,
        today: Optional[date] = None,
        enhancer: Optional[LLMAdviceEnhancer] = None,
) -> SubsidyCheckResult:
    start = time.time()
    engine = engine or MatchingEngine(config.load_matching_config())
    today = today or date.today()

    logger.info(
        "Starting live subsidy check: address=%s postal_code=%s energy_label=%s planned_measures=%s",
        profile.address, profile.postal_code, profile.energy_label, profile.planned_measures,
    )

    available = fetch_all_schemes(registries)
    eligible = engine.filter_schemes(profile.planned_measures, available)
    combos = engine.rank_combinations(engine.combine_schemes(eligible, profile.planned_measures))

    base_advice = subsidy_advice(eligible, combos, today)
    advice = _enhance_advice(
        enhancer if combos else None,
        kind="subsidies",
        base_advice=base_advice,
        facts={
            "Energy label": profile.energy_label,
            "Construction year": str(profile.construction_year),
            "Planned measures": ", ".join(profile.planned_measures),
        },
    )

    logger.info(
        "Live subsidy check completed: address=%s available=%d eligible=%d combinations=%d",
        profile.address, len(available), len(eligible), len(combos),
    )

    return SubsidyCheckResult(
        available=available,
        eligible=eligible,
        combinations=combos,
        application_requirements=application_requirements(eligible),
        deadline_analysis=analyze_deadlines(eligible, today),
        immediate_actions=immediate_actions(eligible, today),
        timeline=subsidy_timeline(),
        risk_factors=subsidy_risk_factors(eligible, today),
        advice=advice,
        duration_ms=int((time.time() - start) * 1000),
    )


# ----------------------------------------------------------------------
# CLI
# ----------------------------------------------------------------------

def print_contractor_summary(result: ContractorMatchResult) -> None:
    print("\n=== RenoMatch Installer Matching ===")
    print(f"Evaluated: {result.total_evaluated} | Qualified: {result.qualified}")
    print(f"Duration: {result.duration_ms}ms")

    print("\nTop Matches:")
    if not result.matches:
        print("  (none)")
    for idx, m in enumerate(result.matches, start=1):
        p = m.provider
        tag = " [RVO verified]" if m.verified else ""
        print(f"\n{idx}) {p.company_name} - {p.location} ({p.distance_km:g} km){tag}")
        print(f"   score: {m.score}")
        if m.match_reasons:
            print(f"   reasons: {', '.join(m.match_reasons)}")
        if m.risk_factors:
            print(f"   risks: {', '.join(m.risk_factors)}")
        print(f"   available from: {m.availability.next_available.isoformat()} | est. {m.pricing.price_range}")

    print("\nNext steps:")
    for step in result.next_steps:
        print(f"  - {step}")
    print(f"\nAdvice: {result.advice.text}")


def print_subsidy_summary(result: SubsidyCheckResult) -> None:
    print("\n=== RenoMatch Subsidy Check ===")
    print(f"Schemes available: {len(result.available)} | Eligible: {len(result.eligible)}")
    print(f"Duration: {result.duration_ms}ms")

    print("\nCombinations:")
    if not result.combinations:
        print("  (none)")
    for idx, c in enumerate(result.combinations, start=1):
        names = " + ".join(s.name for s in c.schemes)
        print(f"{idx}) €{c.total_subsidy:,.0f}  {names}  [{c.complexity}, {c.processing_time}]")

    window = result.deadline_analysis.get("optimalApplicationWindow")
    if window:
        print(f"\n{window}")
    print("\nImmediate actions:")
    for action in result.immediate_actions:
        print(f"  - {action}")
    print(f"\nAdvice: {result.advice.text}")


def _load_json(path: Path) -> Dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="RenoMatch installer and subsidy matching")
    parser.add_argument("--json", action="store_true", help="Print JSON only (machine-readable)")
    parser.add_argument("--no-enhance", action="store_true", help="Force deterministic advice even when RENOMATCH_LLM_KEY is set")
    parser.add_argument("--today", type=str, default="", help="Reference date (YYYY-MM-DD), defaults to today")
    parser.add_argument("--verbose", action="store_true", help="Log pipeline progress to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p_con = sub.add_parser("contractors", help="Rank installers for a renovation request")
    p_con.add_argument("--request", type=Path, required=True, help="Path to a contractor request JSON")
    p_con.add_argument("--contractors", type=Path, default=Path(config.CONTRACTORS_FILE), help="Contractor directory JSON")

    p_sub = sub.add_parser("subsidies", help="Find subsidy combinations for a property")
    p_sub.add_argument("--request", type=Path, required=True, help="Path to a subsidy request JSON")
    p_sub.add_argument("--schemes", type=Path, default=Path(config.SCHEMES_FILE), help="Subsidy scheme registry JSON")

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING, format=LOG_FORMAT, stream=sys.stderr)

    today = date.fromisoformat(args.today) if args.today else None
    enhancer = None if args.no_enhance else build_default_enhancer()

    try:
        if args.command == "contractors":
            requirements = parse_contractor_request(_load_json(args.request))
            result = run_contractor_match(
                requirements,
                provider=JsonContractorDirectory(args.contractors),
                today=today,
                enhancer=enhancer,
            )
            if not args.json:
                print_contractor_summary(result)
        else:
            profile = parse_subsidy_request(_load_json(args.request))
            result = run_subsidy_check(
                profile,
                registries=[JsonSchemeRegistry(args.schemes)],
                today=today,
                enhancer=enhancer,
            )
            if not args.json:
                print_subsidy_summary(result)
    except RenoMatchError as exc:
        print(f"\n[RenoMatch] {exc.message}", file=sys.stderr)
        raise SystemExit(2)
    except FileNotFoundError as exc:
        print(f"\n[RenoMatch] File not found: {exc.filename}", file=sys.stderr)
        raise SystemExit(2)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print("\nJSON Output:")
        print(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    main()
