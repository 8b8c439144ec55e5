import pytest

from renomatch.matching.scoring import (
    REASON_ALL_SPECIALTIES,
    REASON_MOST_SPECIALTIES,
    RISK_BUDGET_HIGH,
    RISK_BUDGET_LOW,
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
from renomatch.models import Workload


def test_specialty_score_is_proportional_to_coverage():
    assert specialty_score(["heat_pump", "insulation"], ["heat_pump", "insulation", "solar_panels"]) == 40.0
    assert specialty_score(["heat_pump", "insulation"], ["heat_pump"]) == 20.0
    assert specialty_score(["heat_pump"], ["ventilation"]) == 0.0


def test_specialty_coverage_empty_requirements():
    assert specialty_coverage([], ["heat_pump"]) == 0.0


def test_rating_score_scales_to_weight():
    assert rating_score(5.0) == 20.0
    assert rating_score(4.8) == pytest.approx(19.2)
    assert rating_score(0.0) == 0.0


def test_experience_score_clamped_linear():
    assert experience_score(5) == 7.5
    assert experience_score(10) == 15.0
    assert experience_score(25) == 15.0  # ceiling at ten years
    assert experience_score(0) == 0.0


def test_availability_score_by_workload():
    assert availability_score(Workload.LOW) == 15.0
    assert availability_score(Workload.MEDIUM) == 10.0
    assert availability_score(Workload.HIGH) == 5.0


def test_availability_score_rescales_with_weight():
    assert availability_score(Workload.MEDIUM, weight=30.0) == 20.0


def test_proximity_score_decays_to_zero_at_horizon():
    assert proximity_score(0) == 10.0
    assert proximity_score(15) == pytest.approx(7.0)
    assert proximity_score(50) == 0.0
    assert proximity_score(80) == 0.0


def test_budget_compatibility_within_tolerance():
    fit = budget_compatibility(18000, 20000)
    assert fit.compatible is True
    assert fit.reason == ""


def test_budget_compatibility_flags_direction():
    assert budget_compatibility(8500, 20000).reason == RISK_BUDGET_HIGH
    assert budget_compatibility(22000, 10000).reason == RISK_BUDGET_LOW
    assert budget_compatibility(22000, 10000).compatible is False


def test_budget_compatibility_tolerance_is_tunable():
    assert budget_compatibility(10000, 14500, tolerance=0.30).compatible is False
    assert budget_compatibility(10000, 14500, tolerance=0.50).compatible is True


def test_round_half_up():
    assert round_half_up(90.5) == 91
    assert round_half_up(2.5) == 3
    assert round_half_up(91.2) == 91
    assert round_half_up(64.8) == 65


def test_specialty_reason_thresholds():
    assert specialty_reason(1.0) == (REASON_ALL_SPECIALTIES,)
    assert specialty_reason(2 / 3) == (REASON_MOST_SPECIALTIES,)
    assert specialty_reason(0.5) == ()


def test_clamp():
    assert clamp(-1, 0, 100) == 0
    assert clamp(120, 0, 100) == 100
    assert clamp(42, 0, 100) == 42
