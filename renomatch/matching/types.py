from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from renomatch.models import Scheme, ServiceProvider, VerificationRecord, Workload


@dataclass(frozen=True)
class ScoreBreakdown:
    specialty_score: float
    rating_score: float
    experience_score: float
    availability_score: float
    proximity_score: float

    @property
    def total(self) -> float:
        return (
                self.specialty_score
                + self.rating_score
                + self.experience_score
                + self.availability_score
                + self.proximity_score
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "specialty": round(self.specialty_score, 2),
            "rating": round(self.rating_score, 2),
            "experience": round(self.experience_score, 2),
            "availability": round(self.availability_score, 2),
            "proximity": round(self.proximity_score, 2),
        }


@dataclass(frozen=True)
class BudgetFit:
    compatible: bool
    reason: str  # empty when compatible


@dataclass(frozen=True)
class Availability:
    next_available: date
    estimated_duration: str
    workload: Workload

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nextAvailable": self.next_available.isoformat(),
            "estimatedDuration": self.estimated_duration,
            "currentWorkload": self.workload.value,
        }


@dataclass(frozen=True)
class PricingEstimate:
    estimated_cost: int
    price_low: int
    price_high: int
    competitiveness: str  # "low" | "medium" | "high"

    @property
    def price_range(self) -> str:
        return f"€{self.price_low:,} - €{self.price_high:,}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "estimatedCost": self.estimated_cost,
            "priceRange": self.price_range,
            "competitiveness": self.competitiveness,
        }


@dataclass(frozen=True)
class ScoredContractor:
    provider: ServiceProvider
    score: int
    breakdown: ScoreBreakdown
    match_reasons: List[str]
    risk_factors: List[str]
    availability: Availability
    pricing: PricingEstimate
    verification: Optional[VerificationRecord] = None

    @property
    def verified(self) -> bool:
        return self.verification is not None

    def to_dict(self) -> Dict[str, Any]:
        p = self.provider
        return {
            "contractor": {
                "id": p.provider_id,
                "companyName": p.company_name,
                "kvkNumber": p.kvk_number,
                "location": p.location,
                "distance": p.distance_km,
                "rvoVerified": self.verified,
                "verification": self.verification.to_dict() if self.verification else None,
            },
            "matchScore": self.score,
            "scoreBreakdown": self.breakdown.to_dict(),
            "matchReasons": list(self.match_reasons),
            "availability": self.availability.to_dict(),
            "pricing": self.pricing.to_dict(),
            "qualifications": {
                "certifications": list(p.certifications),
                "experience": p.years_experience,
                "specialties": list(p.specialties),
                "rating": p.rating,
                "reviewCount": p.review_count,
            },
            "riskFactors": list(self.risk_factors),
        }


@dataclass(frozen=True)
class Combination:
    schemes: List[Scheme]
    total_subsidy: float
    applicable_measures: List[str]
    complexity: str  # "low" | "medium"
    processing_time: str
    success_probability: float
    # Human-friendly explanation payload (stable, deterministic)
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def scheme_ids(self) -> List[str]:
        return [s.scheme_id for s in self.schemes]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schemes": [{"id": s.scheme_id, "name": s.name, "provider": s.provider} for s in self.schemes],
            "totalSubsidy": self.total_subsidy,
            "applicableMeasures": list(self.applicable_measures),
            "complexity": self.complexity,
            "processingTime": self.processing_time,
            "successProbability": self.success_probability,
        }
