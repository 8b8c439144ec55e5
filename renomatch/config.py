# renomatch/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict

# --- Scoring weights (must total 100) ---

DEFAULT_WEIGHTS: Dict[str, float] = {
    "specialty": 40.0,
    "rating": 20.0,
    "experience": 15.0,
    "availability": 15.0,
    "proximity": 10.0,
}

# --- Matching guardrails ---

CONTRACTOR_TOP_N_DEFAULT = 10
MAX_DISTANCE_DEFAULT_KM = 50
PROXIMITY_HORIZON_KM = 50.0

# --- Networking ---

HTTP_TIMEOUT_SECONDS = 10

USER_AGENT = "RenoMatch/0.3 (+https://github.com/renomatch/renomatch)"

# --- RVO (Netherlands Enterprise Agency) ---

# Without a key the RVO adapters report "unavailable"; the engine keeps working.
RVO_API_URL: str = os.environ.get("RVO_API_URL", "https://api.rvo.nl/v1").rstrip("/")
# Never logged, never included in structured output.
RVO_API_KEY: str | None = os.environ.get("RVO_API_KEY") or None

# --- Fixture-backed candidate pools for the HTTP app ---

CONTRACTORS_FILE: str = os.environ.get("RENOMATCH_CONTRACTORS_FILE", "data/contractors.json")
SCHEMES_FILE: str = os.environ.get("RENOMATCH_SCHEMES_FILE", "data/schemes.json")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class MatchingConfig:
    """
    Tunable constants for one engine instance.

    budget_tolerance and the success probabilities have no documented
    derivation, so they are parameters rather than literals.
    """
    weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    budget_tolerance: float = 0.30
    single_success_probability: float = 0.85
    pair_success_probability: float = 0.70
    contractor_top_n: int = CONTRACTOR_TOP_N_DEFAULT
    common_risk_threshold: float = 0.30
    market_average_cost: float = 15000.0

    def __post_init__(self) -> None:
        missing = set(DEFAULT_WEIGHTS) - set(self.weights)
        if missing:
            raise ValueError(f"Missing scoring weights: {', '.join(sorted(missing))}")
        total = sum(self.weights[k] for k in DEFAULT_WEIGHTS)
        if abs(total - 100.0) > 1e-9:
            raise ValueError(f"Scoring weights must total 100, got {total}")
        if not 0.0 <= self.budget_tolerance < 1.0:
            raise ValueError("budget_tolerance must be in [0, 1)")
        if self.contractor_top_n < 1:
            raise ValueError("contractor_top_n must be at least 1")


def load_matching_config() -> MatchingConfig:
    return MatchingConfig(
        budget_tolerance=_env_float("RENOMATCH_BUDGET_TOLERANCE", 0.30),
        single_success_probability=_env_float("RENOMATCH_SINGLE_SUCCESS_PROBABILITY", 0.85),
        pair_success_probability=_env_float("RENOMATCH_PAIR_SUCCESS_PROBABILITY", 0.70),
        contractor_top_n=_env_int("RENOMATCH_CONTRACTOR_TOP_N", CONTRACTOR_TOP_N_DEFAULT),
        common_risk_threshold=_env_float("RENOMATCH_COMMON_RISK_THRESHOLD", 0.30),
        market_average_cost=_env_float("RENOMATCH_MARKET_AVERAGE_COST", 15000.0),
    )


@dataclass(frozen=True)
class VerificationConfig:
    max_workers: int
    timeout_seconds: float


def load_verification_config() -> VerificationConfig:
    return VerificationConfig(
        max_workers=max(1, _env_int("RENOMATCH_VERIFY_MAX_WORKERS", 4)),
        timeout_seconds=max(0.1, _env_float("RENOMATCH_VERIFY_TIMEOUT_SECONDS", 5.0)),
    )


def rvo_configured() -> bool:
    return bool(RVO_API_KEY)


# --- LLM advice narrative (optional) ---

# User-provided API key. Never logged, never written to disk, never included in structured output.
RENOMATCH_LLM_KEY: str | None = os.environ.get("RENOMATCH_LLM_KEY") or None

# Provider selection: "anthropic" | "openai"  (default: anthropic)
RENOMATCH_LLM_PROVIDER: str = os.environ.get("RENOMATCH_LLM_PROVIDER", "anthropic").strip().lower()

_DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-sonnet-4-6",
    "openai": "gpt-4o-mini",
}
RENOMATCH_LLM_MODEL: str = (
        os.environ.get("RENOMATCH_LLM_MODEL", "").strip()
        or _DEFAULT_MODELS.get(RENOMATCH_LLM_PROVIDER, "claude-sonnet-4-6")
)


def llm_configured() -> bool:
    return bool(RENOMATCH_LLM_KEY)
