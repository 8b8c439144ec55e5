from __future__ import annotations

import logging
from typing import List, Protocol, Sequence

from renomatch.errors import CandidateDataError, ProviderError
from renomatch.models import Scheme, ServiceProvider

logger = logging.getLogger(__name__)


class ContractorProvider(Protocol):
    def fetch_contractors(self, location: str, max_distance: float) -> List[ServiceProvider]:
        ...


class SchemeProvider(Protocol):
    name: str

    def fetch_schemes(self) -> List[Scheme]:
        ...


def fetch_all_schemes(registries: Sequence[SchemeProvider]) -> List[Scheme]:
    """
    Merge schemes from every registry, first registry wins on duplicate ids.
    One failing registry is tolerated; all failing is a ProviderError.
    """
    schemes: List[Scheme] = []
    seen = set()
    errors: List[str] = []

    for registry in registries:
        label = getattr(registry, "name", type(registry).__name__)
        try:
            fetched = registry.fetch_schemes()
        except CandidateDataError:
            raise
        except Exception as exc:
            errors.append(f"{label}: {exc}")
            logger.warning("Scheme registry %s failed: %s", label, exc)
            continue
        for s in fetched:
            if s.scheme_id in seen:
                continue
            seen.add(s.scheme_id)
            schemes.append(s)

    if errors and len(errors) == len(registries):
        raise ProviderError(f"All scheme registries failed: {'; '.join(errors)}")

    return schemes
