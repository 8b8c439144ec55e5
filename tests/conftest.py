import json
from datetime import date
from pathlib import Path
import pytest

from renomatch.models import Scheme, ServiceProvider, Workload

# Path to tests/fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"

# Reference date for every date-dependent test
TODAY = date(2026, 3, 1)


@pytest.fixture
def fixtures_dir() -> Path:
    """
    Exposes the fixtures directory in case a test needs direct file access.
    """
    return FIXTURES_DIR


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def load_text(fixtures_dir):
    """
    Fixture that returns a function: load_text("file.ext") -> str
    This avoids repeating file reading logic in every test file.
    """
    def _load(name: str) -> str:
        return (fixtures_dir / name).read_text(encoding="utf-8")
    return _load


@pytest.fixture
def load_json(load_text):
    """
    Fixture that returns a function: load_json("file.json") -> dict
    Built on load_text so there's one source of truth for file IO.
    """
    def _load(name: str) -> dict:
        return json.loads(load_text(name))
    return _load


@pytest.fixture
def make_provider():
    """
    Fixture that returns a factory: make_provider(**overrides) -> ServiceProvider
    Defaults describe an unremarkable installer; tests override what they assert on.
    """
    def _make(**overrides) -> ServiceProvider:
        fields = dict(
            provider_id="p1",
            company_name="Test Installaties",
            kvk_number="10000001",
            location="Amsterdam",
            distance_km=10.0,
            specialties=["heat_pump"],
            certifications=["RVO erkend"],
            rating=4.0,
            review_count=50,
            years_experience=5,
            workload=Workload.MEDIUM,
            average_project_value=15000,
        )
        fields.update(overrides)
        return ServiceProvider(**fields)
    return _make


@pytest.fixture
def make_scheme():
    """Fixture that returns a factory: make_scheme(**overrides) -> Scheme"""
    def _make(**overrides) -> Scheme:
        fields = dict(
            scheme_id="s1",
            name="Test Scheme",
            provider="RVO",
            applicable_measures=["heat_pump"],
            max_amount=1000,
            budget_remaining=80,
            application_deadline=date(2026, 12, 31),
        )
        fields.update(overrides)
        return Scheme(**fields)
    return _make
