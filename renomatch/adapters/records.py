"""
Raw provider records (camelCase JSON, as the directory and RVO APIs
deliver them) -> typed candidates.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from renomatch.errors import CandidateDataError
from renomatch.models import Scheme, ServiceProvider, VerificationRecord, Workload, parse_date


def contractor_from_record(rec: Dict[str, Any]) -> ServiceProvider:
    try:
        return ServiceProvider(
            provider_id=str(rec["id"]),
            company_name=rec["companyName"],
            kvk_number=str(rec.get("kvkNumber") or ""),
            location=rec.get("location") or rec.get("city") or "",
            distance_km=float(rec["distance"]),
            specialties=list(rec.get("specialties") or []),
            certifications=list(rec.get("certifications") or []),
            rating=float(rec.get("rating") or 0.0),
            review_count=int(rec.get("reviewCount") or 0),
            years_experience=float(rec.get("yearsExperience") or 0),
            workload=Workload(str(rec.get("currentWorkload") or "medium").lower()),
            average_project_value=float(rec["averageProjectValue"]),
            projects_completed=rec.get("projectsCompleted"),
            response_time=rec.get("responseTime"),
            languages=list(rec.get("languages") or []),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise CandidateDataError(
            "Malformed contractor record",
            details={"id": rec.get("id") if isinstance(rec, dict) else None, "error": str(exc)},
        ) from exc


def scheme_from_record(rec: Dict[str, Any]) -> Scheme:
    try:
        return Scheme(
            scheme_id=str(rec["id"]),
            name=rec["name"],
            provider=rec.get("provider") or "RVO",
            applicable_measures=list(rec.get("applicableEnergyMeasures") or []),
            max_amount=float(rec["maxAmount"]),
            budget_remaining=float(rec.get("budgetRemaining") or 0.0),
            application_deadline=parse_date(rec["applicationDeadline"]),
            description=rec.get("description") or "",
            valid_from=parse_date(rec.get("validFrom")),
            valid_until=parse_date(rec.get("validUntil")),
            is_active=bool(rec.get("isActive", True)),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise CandidateDataError(
            "Malformed subsidy scheme record",
            details={"id": rec.get("id") if isinstance(rec, dict) else None, "error": str(exc)},
        ) from exc


def verification_from_record(rec: Dict[str, Any]) -> Optional[VerificationRecord]:
    certs = rec.get("certifications") or {}
    if not rec.get("kvkNumber"):
        return None
    return VerificationRecord(
        kvk_number=str(rec["kvkNumber"]),
        company_name=rec.get("companyName") or "",
        rvo=bool(certs.get("rvo")),
        isso=bool(certs.get("isso")),
        komo=bool(certs.get("komo")),
        valid_until=parse_date(certs.get("validUntil")),
    )
