from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from renomatch.models import Scheme, ServiceProvider

from .records import contractor_from_record, scheme_from_record


def _load_records(path: Path, key: str) -> List[Dict[str, Any]]:
    raw_text = path.read_text(encoding="utf-8").strip()
    if not raw_text:
        return []
    data = json.loads(raw_text)
    # Accept both a bare list and {"<key>": [...]}
    if isinstance(data, dict):
        data = data.get(key) or []
    return list(data)


class JsonContractorDirectory:
    """
    Contractor pool backed by a JSON file.

    Layout:
      [{"id": "...", "companyName": "...", "distance": 15, ...}, ...]
      or {"contractors": [...]}
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def fetch_contractors(self, location: str, max_distance: float) -> List[ServiceProvider]:
        providers = [contractor_from_record(r) for r in _load_records(self.path, "contractors")]
        return [p for p in providers if p.distance_km <= max_distance]


class JsonSchemeRegistry:
    """Subsidy schemes backed by a JSON file ([...] or {"schemes": [...]})."""

    name = "json-registry"

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def fetch_schemes(self) -> List[Scheme]:
        return [scheme_from_record(r) for r in _load_records(self.path, "schemes")]
