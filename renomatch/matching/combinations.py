from __future__ import annotations

from itertools import combinations
from typing import List, Sequence

from renomatch.models import Scheme

from .eligibility import applicable_measures
from .types import Combination

SINGLE_PROCESSING_TIME = "6-8 weeks"
PAIR_PROCESSING_TIME = "8-12 weeks"


def can_combine(a: Scheme, b: Scheme) -> bool:
    """
    Two schemes may be stacked only when they fund different measures
    and come from different issuing authorities.
    """
    overlap = set(a.applicable_measures) & set(b.applicable_measures)
    same_provider = a.provider.lower() == b.provider.lower()
    return not overlap and not same_provider


def _union_first_seen(*groups: Sequence[str]) -> List[str]:
    out: List[str] = []
    seen = set()
    for g in groups:
        for m in g:
            if m not in seen:
                out.append(m)
                seen.add(m)
    return out


def enumerate_combinations(
        schemes: Sequence[Scheme],
        planned_measures: Sequence[str] = (),
        *,
        single_success_probability: float = 0.85,
        pair_success_probability: float = 0.70,
) -> List[Combination]:
    """
    Every singleton plus every compatible unordered pair.

    Stacking stops at two schemes; larger combinations are deliberately
    not generated. Output order is singletons (input order) then pairs
    (i < j); callers rank afterwards.
    """
    out: List[Combination] = []

    for s in schemes:
        out.append(
            Combination(
                schemes=[s],
                total_subsidy=s.max_amount,
                applicable_measures=applicable_measures(s, planned_measures),
                complexity="low",
                processing_time=SINGLE_PROCESSING_TIME,
                success_probability=single_success_probability,
            )
        )

    for a, b in combinations(schemes, 2):
        if not can_combine(a, b):
            continue
        out.append(
            Combination(
                schemes=[a, b],
                total_subsidy=a.max_amount + b.max_amount,
                applicable_measures=_union_first_seen(a.applicable_measures, b.applicable_measures),
                complexity="medium",
                processing_time=PAIR_PROCESSING_TIME,
                success_probability=pair_success_probability,
                details={"providers": [a.provider, b.provider]},
            )
        )

    return out
