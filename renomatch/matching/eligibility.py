from __future__ import annotations

from typing import Iterable, List, Sequence

from renomatch.models import ContractorRequirements, Scheme, ServiceProvider


def is_qualified_contractor(requirements: ContractorRequirements, provider: ServiceProvider) -> bool:
    """
    Hard gate, all must hold:
    - at least one required project type is among the provider's specialties
    - when certifications are preferred, the provider holds at least one
    - the provider is within the requested distance
    """
    specialties = set(provider.specialties)
    if not any(t in specialties for t in requirements.project_types):
        return False

    if requirements.preferred_certifications:
        held = set(provider.certifications)
        if not any(c in held for c in requirements.preferred_certifications):
            return False

    return provider.distance_km <= requirements.max_distance


def filter_contractors(
        requirements: ContractorRequirements,
        providers: Iterable[ServiceProvider],
) -> List[ServiceProvider]:
    return [p for p in providers if is_qualified_contractor(requirements, p)]


def applicable_measures(scheme: Scheme, planned_measures: Sequence[str]) -> List[str]:
    """Scheme measures relevant to the plan. An empty plan matches every measure."""
    if not planned_measures:
        return list(scheme.applicable_measures)
    planned = set(planned_measures)
    return [m for m in scheme.applicable_measures if m in planned]


def is_eligible_scheme(scheme: Scheme, planned_measures: Sequence[str]) -> bool:
    if not scheme.is_active:
        return False
    if not planned_measures:
        return True
    return bool(applicable_measures(scheme, planned_measures))


def filter_schemes(planned_measures: Sequence[str], schemes: Iterable[Scheme]) -> List[Scheme]:
    return [s for s in schemes if is_eligible_scheme(s, planned_measures)]
