"""
tests/unit/test_prompt.py

Tests for renomatch/llm/prompt.py:
- Prompt carries the deterministic advice verbatim
- Facts are rendered as a list; empty values are skipped
"""
from renomatch.llm.prompt import _SYSTEM_PROMPT, build_advice_prompt


def test_prompt_contains_base_advice_and_facts():
    prompt = build_advice_prompt(
        kind="contractors",
        base_advice="EcoTech Installaties scores 91/100.",
        facts={"Location": "Amsterdam", "Budget": "€20,000"},
    )
    assert "EcoTech Installaties scores 91/100." in prompt
    assert "- Location: Amsterdam" in prompt
    assert "- Budget: €20,000" in prompt
    assert "installer matching" in prompt


def test_prompt_skips_empty_facts():
    prompt = build_advice_prompt(kind="subsidies", base_advice="x", facts={"Planned measures": ""})
    assert "Planned measures" not in prompt
    assert "- (none)" in prompt
    assert "subsidy check" in prompt


def test_system_prompt_forbids_invented_figures():
    assert "Do NOT invent" in _SYSTEM_PROMPT
