"""
tests/unit/test_config.py

- Env overrides for matching and verification settings
- llm_configured() returns False when key is absent
- Secrets never appear in structured output
"""
import importlib
import json

import pytest


def _reload_config(monkeypatch, **env):
    """Helper: set env vars and reload config so module-level vars pick them up."""
    for name, value in env.items():
        if value is None:
            monkeypatch.delenv(name, raising=False)
        else:
            monkeypatch.setenv(name, value)
    import renomatch.config as cfg
    importlib.reload(cfg)
    return cfg


@pytest.fixture(autouse=True)
def _restore_config():
    yield
    import renomatch.config as cfg
    importlib.reload(cfg)


# ------------------------------------------------------------------
# Matching config
# ------------------------------------------------------------------

def test_matching_config_defaults(monkeypatch):
    cfg = _reload_config(
        monkeypatch,
        RENOMATCH_BUDGET_TOLERANCE=None,
        RENOMATCH_CONTRACTOR_TOP_N=None,
        RENOMATCH_SINGLE_SUCCESS_PROBABILITY=None,
        RENOMATCH_PAIR_SUCCESS_PROBABILITY=None,
    )
    mc = cfg.load_matching_config()
    assert mc.budget_tolerance == 0.30
    assert mc.contractor_top_n == 10
    assert mc.single_success_probability == 0.85
    assert mc.pair_success_probability == 0.70
    assert sum(mc.weights.values()) == 100


def test_matching_config_env_overrides(monkeypatch):
    cfg = _reload_config(
        monkeypatch,
        RENOMATCH_BUDGET_TOLERANCE="0.25",
        RENOMATCH_CONTRACTOR_TOP_N="5",
        RENOMATCH_PAIR_SUCCESS_PROBABILITY="0.6",
    )
    mc = cfg.load_matching_config()
    assert mc.budget_tolerance == 0.25
    assert mc.contractor_top_n == 5
    assert mc.pair_success_probability == 0.6


def test_unparseable_env_falls_back_to_default(monkeypatch):
    cfg = _reload_config(monkeypatch, RENOMATCH_CONTRACTOR_TOP_N="many", RENOMATCH_BUDGET_TOLERANCE="abc")
    mc = cfg.load_matching_config()
    assert mc.contractor_top_n == 10
    assert mc.budget_tolerance == 0.30


def test_out_of_range_tolerance_rejected(monkeypatch):
    cfg = _reload_config(monkeypatch, RENOMATCH_BUDGET_TOLERANCE="1.5")
    with pytest.raises(ValueError):
        cfg.load_matching_config()


def test_verification_config_floors(monkeypatch):
    cfg = _reload_config(
        monkeypatch,
        RENOMATCH_VERIFY_MAX_WORKERS="0",
        RENOMATCH_VERIFY_TIMEOUT_SECONDS="0",
    )
    vc = cfg.load_verification_config()
    assert vc.max_workers == 1
    assert vc.timeout_seconds == 0.1


# ------------------------------------------------------------------
# RVO and LLM keys
# ------------------------------------------------------------------

def test_rvo_configured(monkeypatch):
    assert _reload_config(monkeypatch, RVO_API_KEY=None).rvo_configured() is False
    assert _reload_config(monkeypatch, RVO_API_KEY="rvo-key").rvo_configured() is True


def test_llm_configured_false_when_key_absent(monkeypatch):
    cfg = _reload_config(monkeypatch, RENOMATCH_LLM_KEY=None)
    assert cfg.llm_configured() is False


def test_llm_configured_false_when_key_empty_string(monkeypatch):
    cfg = _reload_config(monkeypatch, RENOMATCH_LLM_KEY="")
    assert cfg.llm_configured() is False


def test_llm_configured_true_when_key_present(monkeypatch):
    cfg = _reload_config(monkeypatch, RENOMATCH_LLM_KEY="sk-test-key-12345")
    assert cfg.llm_configured() is True


def test_provider_defaults_to_anthropic(monkeypatch):
    cfg = _reload_config(monkeypatch, RENOMATCH_LLM_PROVIDER=None, RENOMATCH_LLM_MODEL=None)
    assert cfg.RENOMATCH_LLM_PROVIDER == "anthropic"
    assert cfg.RENOMATCH_LLM_MODEL == cfg._DEFAULT_MODELS["anthropic"]


def test_openai_provider_picks_openai_default_model(monkeypatch):
    cfg = _reload_config(monkeypatch, RENOMATCH_LLM_PROVIDER="OpenAI", RENOMATCH_LLM_MODEL=None)
    assert cfg.RENOMATCH_LLM_PROVIDER == "openai"
    assert cfg.RENOMATCH_LLM_MODEL == "gpt-4o-mini"


def test_keys_not_in_matching_config_output(monkeypatch):
    cfg = _reload_config(monkeypatch, RENOMATCH_LLM_KEY="sk-secret-abc", RVO_API_KEY="rvo-secret-xyz")
    dumped = json.dumps(cfg.load_matching_config().__dict__)
    assert "sk-secret-abc" not in dumped
    assert "rvo-secret-xyz" not in dumped
