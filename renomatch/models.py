from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class Workload(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CandidateKind(str, Enum):
    SERVICE_PROVIDER = "service_provider"
    SCHEME = "scheme"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_whitespace(text: str) -> str:
    return " ".join((text or "").split()).strip()


def normalize_tags(tags: List[str], *, lower: bool = True) -> List[str]:
    """Trimmed, optionally lowercased, unique in first-seen order."""
    cleaned: List[str] = []
    seen = set()
    for t in tags or []:
        nt = normalize_whitespace(t)
        if lower:
            nt = nt.lower()
        if nt and nt not in seen:
            cleaned.append(nt)
            seen.add(nt)
    return cleaned


def parse_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # Accept both "2026-03-31" and full ISO timestamps
    return date.fromisoformat(str(value).strip()[:10])


@dataclass(frozen=True)
class ServiceProvider:
    """
    An installer snapshot from a contractor directory.
    Adapters MUST return this shape.
    """
    provider_id: str
    company_name: str
    kvk_number: str
    location: str
    distance_km: float
    specialties: List[str]
    certifications: List[str]
    rating: float
    review_count: int
    years_experience: float
    workload: Workload
    average_project_value: float

    # Optional fields (not guaranteed from all directories)
    projects_completed: Optional[int] = None
    response_time: Optional[str] = None
    languages: List[str] = field(default_factory=list)

    kind: CandidateKind = field(default=CandidateKind.SERVICE_PROVIDER, init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "company_name", normalize_whitespace(self.company_name))
        object.__setattr__(self, "location", normalize_whitespace(self.location))
        object.__setattr__(self, "specialties", normalize_tags(self.specialties))
        # Certification labels keep their casing ("RVO erkend", "KOMO")
        object.__setattr__(self, "certifications", normalize_tags(self.certifications, lower=False))
        object.__setattr__(self, "languages", normalize_tags(self.languages, lower=False))
        if not isinstance(self.workload, Workload):
            object.__setattr__(self, "workload", Workload(str(self.workload).strip().lower()))
        if not 0.0 <= float(self.rating) <= 5.0:
            raise ValueError(f"rating must be within 0-5, got {self.rating}")
        if self.distance_km < 0:
            raise ValueError(f"distance_km must not be negative, got {self.distance_km}")

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["workload"] = self.workload.value
        d["kind"] = self.kind.value
        return d


@dataclass(frozen=True)
class Scheme:
    """A government subsidy scheme snapshot from a registry."""
    scheme_id: str
    name: str
    provider: str  # issuing authority, e.g. "RVO" or a municipality
    applicable_measures: List[str]
    max_amount: float
    budget_remaining: float  # percentage 0-100
    application_deadline: date

    description: str = ""
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    is_active: bool = True

    kind: CandidateKind = field(default=CandidateKind.SCHEME, init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", normalize_whitespace(self.name))
        object.__setattr__(self, "provider", normalize_whitespace(self.provider))
        object.__setattr__(self, "description", normalize_whitespace(self.description))
        object.__setattr__(self, "applicable_measures", normalize_tags(self.applicable_measures))
        object.__setattr__(self, "application_deadline", parse_date(self.application_deadline))
        object.__setattr__(self, "valid_from", parse_date(self.valid_from))
        object.__setattr__(self, "valid_until", parse_date(self.valid_until))
        if self.application_deadline is None:
            raise ValueError(f"Scheme {self.scheme_id} has no application deadline")
        if not 0.0 <= float(self.budget_remaining) <= 100.0:
            raise ValueError(f"budget_remaining must be within 0-100, got {self.budget_remaining}")

    def to_dict(self) -> Dict[str, Any]:
        # Same keys the registries deliver, so payloads can be fed back in
        return {
            "id": self.scheme_id,
            "name": self.name,
            "provider": self.provider,
            "description": self.description,
            "maxAmount": self.max_amount,
            "applicableEnergyMeasures": list(self.applicable_measures),
            "budgetRemaining": self.budget_remaining,
            "applicationDeadline": self.application_deadline.isoformat(),
            "validFrom": self.valid_from.isoformat() if self.valid_from else None,
            "validUntil": self.valid_until.isoformat() if self.valid_until else None,
            "isActive": self.is_active,
        }


Candidate = Union[ServiceProvider, Scheme]


@dataclass(frozen=True)
class ContractorRequirements:
    """What the homeowner asks an installer for."""
    project_types: List[str]
    location: str
    budget: float
    timeline: str
    property_type: str
    special_requirements: List[str] = field(default_factory=list)
    preferred_certifications: List[str] = field(default_factory=list)
    max_distance: float = 50

    def __post_init__(self) -> None:
        object.__setattr__(self, "project_types", normalize_tags(self.project_types))
        object.__setattr__(self, "location", normalize_whitespace(self.location))
        object.__setattr__(self, "special_requirements", normalize_tags(self.special_requirements, lower=False))
        object.__setattr__(self, "preferred_certifications", normalize_tags(self.preferred_certifications, lower=False))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PropertyProfile:
    """Eligibility profile of a property for the subsidy check."""
    address: str
    postal_code: str
    energy_label: str
    construction_year: int
    property_type: str
    owner_occupied: bool = True
    household_income: Optional[float] = None
    planned_measures: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", normalize_whitespace(self.address))
        object.__setattr__(self, "postal_code", normalize_whitespace(self.postal_code).upper())
        object.__setattr__(self, "energy_label", normalize_whitespace(self.energy_label).upper())
        object.__setattr__(self, "planned_measures", normalize_tags(self.planned_measures))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class VerificationRecord:
    """Outcome of an external certification lookup for one installer."""
    kvk_number: str
    company_name: str
    rvo: bool = False
    isso: bool = False
    komo: bool = False
    valid_until: Optional[date] = None
    checked_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kvkNumber": self.kvk_number,
            "companyName": self.company_name,
            "certifications": {"rvo": self.rvo, "isso": self.isso, "komo": self.komo},
            "validUntil": self.valid_until.isoformat() if self.valid_until else None,
            "checkedAt": self.checked_at.isoformat(),
        }
