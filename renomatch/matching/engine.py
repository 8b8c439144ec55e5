from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, List, Mapping, Optional, Sequence

from renomatch.config import MatchingConfig, PROXIMITY_HORIZON_KM
from renomatch.models import (
    ContractorRequirements,
    Scheme,
    ServiceProvider,
    VerificationRecord,
    Workload,
)

from . import eligibility
from .combinations import enumerate_combinations
from .ranking import rank
from .scoring import (
    EXCELLENT_RATING,
    EXPERIENCE_CAP_YEARS,
    LOCAL_DISTANCE_KM,
    MIN_REVIEWS,
    REASON_AVAILABLE,
    REASON_BUDGET_FIT,
    REASON_EXCELLENT_RATING,
    REASON_EXPERIENCED,
    REASON_LOCAL,
    RISK_FEW_REVIEWS,
    RISK_HIGH_WORKLOAD,
    availability_score,
    budget_compatibility,
    clamp,
    experience_score,
    proximity_score,
    rating_score,
    round_half_up,
    specialty_coverage,
    specialty_reason,
    specialty_score,
)
from .types import Availability, Combination, PricingEstimate, ScoreBreakdown, ScoredContractor

_WAIT_WEEKS = {
    Workload.LOW: 2,
    Workload.MEDIUM: 4,
    Workload.HIGH: 8,
}

# Checked in order; first specialty present wins
_DURATION_BY_SPECIALTY = (
    ("heat_pump", "2-3 days"),
    ("insulation", "1-2 days"),
    ("solar_panels", "1 day"),
)
_DEFAULT_DURATION = "1-3 days"

MULTI_TYPE_SURCHARGE = 1.2
SPECIAL_REQUIREMENTS_SURCHARGE = 1.1


class MatchingEngine:
    """
    Stateless pipeline stages. The only attribute is the immutable config;
    every method takes the data it needs and returns fresh objects, so one
    engine may serve concurrent requests.
    """

    def __init__(self, config: Optional[MatchingConfig] = None) -> None:
        self.config = config or MatchingConfig()

    # ------------------------------------------------------------------
    # Contractor path
    # ------------------------------------------------------------------

    def filter_contractors(
            self,
            requirements: ContractorRequirements,
            providers: Sequence[ServiceProvider],
    ) -> List[ServiceProvider]:
        return eligibility.filter_contractors(requirements, providers)

    def estimate_availability(self, provider: ServiceProvider, today: date) -> Availability:
        weeks = _WAIT_WEEKS[provider.workload]
        duration = _DEFAULT_DURATION
        for specialty, label in _DURATION_BY_SPECIALTY:
            if specialty in provider.specialties:
                duration = label
                break
        return Availability(
            next_available=today + timedelta(days=weeks * 7),
            estimated_duration=duration,
            workload=provider.workload,
        )

    def estimate_pricing(self, provider: ServiceProvider, requirements: ContractorRequirements) -> PricingEstimate:
        cost = float(provider.average_project_value)
        if len(requirements.project_types) > 1:
            cost *= MULTI_TYPE_SURCHARGE
        if requirements.special_requirements:
            cost *= SPECIAL_REQUIREMENTS_SURCHARGE

        market = self.config.market_average_cost
        if cost < market * 0.9:
            competitiveness = "high"
        elif cost < market * 1.1:
            competitiveness = "medium"
        else:
            competitiveness = "low"

        return PricingEstimate(
            estimated_cost=round_half_up(cost),
            price_low=round_half_up(cost * 0.9),
            price_high=round_half_up(cost * 1.1),
            competitiveness=competitiveness,
        )

    def score_contractor(
            self,
            requirements: ContractorRequirements,
            provider: ServiceProvider,
            *,
            today: date,
            verification: Optional[VerificationRecord] = None,
    ) -> ScoredContractor:
        w = self.config.weights
        reasons: List[str] = []
        risks: List[str] = []

        coverage = specialty_coverage(requirements.project_types, provider.specialties)
        s_score = specialty_score(requirements.project_types, provider.specialties, w["specialty"])
        reasons.extend(specialty_reason(coverage))

        r_score = rating_score(provider.rating, w["rating"])
        if provider.rating >= EXCELLENT_RATING:
            reasons.append(REASON_EXCELLENT_RATING)
        if provider.review_count < MIN_REVIEWS:
            risks.append(RISK_FEW_REVIEWS)

        e_score = experience_score(provider.years_experience, w["experience"])
        if provider.years_experience >= EXPERIENCE_CAP_YEARS:
            reasons.append(REASON_EXPERIENCED)

        a_score = availability_score(provider.workload, w["availability"])
        if provider.workload is Workload.LOW:
            reasons.append(REASON_AVAILABLE)
        elif provider.workload is Workload.HIGH:
            risks.append(RISK_HIGH_WORKLOAD)

        p_score = proximity_score(provider.distance_km, w["proximity"], PROXIMITY_HORIZON_KM)
        if provider.distance_km <= LOCAL_DISTANCE_KM:
            reasons.append(REASON_LOCAL)

        fit = budget_compatibility(provider.average_project_value, requirements.budget, self.config.budget_tolerance)
        if fit.compatible:
            reasons.append(REASON_BUDGET_FIT)
        else:
            risks.append(fit.reason)

        breakdown = ScoreBreakdown(
            specialty_score=s_score,
            rating_score=r_score,
            experience_score=e_score,
            availability_score=a_score,
            proximity_score=p_score,
        )
        score = int(clamp(round_half_up(breakdown.total), 0, 100))

        return ScoredContractor(
            provider=provider,
            score=score,
            breakdown=breakdown,
            match_reasons=reasons,
            risk_factors=risks,
            availability=self.estimate_availability(provider, today),
            pricing=self.estimate_pricing(provider, requirements),
            verification=verification,
        )

    def rank_contractors(
            self,
            scored: Sequence[ScoredContractor],
            top_n: Optional[int] = None,
    ) -> List[ScoredContractor]:
        if top_n is None:
            top_n = self.config.contractor_top_n
        return rank(scored, key=lambda m: m.score, top_n=top_n)

    def match_contractors(
            self,
            requirements: ContractorRequirements,
            providers: Sequence[ServiceProvider],
            *,
            today: date,
            verifications: Optional[Mapping[str, VerificationRecord]] = None,
            top_n: Optional[int] = None,
    ) -> List[ScoredContractor]:
        """Filter, score and rank in one call. verifications is keyed by provider_id."""
        verifications = verifications or {}
        qualified = self.filter_contractors(requirements, providers)
        scored = [
            self.score_contractor(requirements, p, today=today, verification=verifications.get(p.provider_id))
            for p in qualified
        ]
        return self.rank_contractors(scored, top_n=top_n)

    # ------------------------------------------------------------------
    # Subsidy path
    # ------------------------------------------------------------------

    def filter_schemes(self, planned_measures: Sequence[str], schemes: Sequence[Scheme]) -> List[Scheme]:
        return eligibility.filter_schemes(planned_measures, schemes)

    def combine_schemes(self, schemes: Sequence[Scheme], planned_measures: Sequence[str] = ()) -> List[Combination]:
        return enumerate_combinations(
            schemes,
            planned_measures,
            single_success_probability=self.config.single_success_probability,
            pair_success_probability=self.config.pair_success_probability,
        )

    def rank_combinations(self, combos: Sequence[Combination]) -> List[Combination]:
        return rank(combos, key=lambda c: c.total_subsidy)

    def match_schemes(self, planned_measures: Sequence[str], schemes: Sequence[Scheme]) -> Dict[str, list]:
        eligible = self.filter_schemes(planned_measures, schemes)
        combos = self.rank_combinations(self.combine_schemes(eligible, planned_measures))
        return {"eligible": eligible, "combinations": combos}
