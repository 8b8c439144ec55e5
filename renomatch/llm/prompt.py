"""
renomatch/llm/prompt.py

Builds the advice-rewrite prompt from the deterministic advice text plus a
few structured facts about the result. The model only rephrases; it must
not add numbers that are not in the input.
"""
from __future__ import annotations

from typing import Dict, List

_SYSTEM_PROMPT = """\
You are a home energy renovation advisor in the Netherlands.
Rewrite the given matching summary into short, friendly advice for a homeowner.
CRITICAL: Only use companies, scheme names, amounts, dates and scores that appear in the input. \
Do NOT invent figures, deadlines, or guarantees.
Write in second person, plain language, 60-150 words, no headings, no bullet lists.\
"""


def build_advice_prompt(*, kind: str, base_advice: str, facts: Dict[str, str]) -> str:
    """
    kind: "contractors" | "subsidies"
    facts: small ordered mapping of label -> value, rendered as a list.
    """
    fact_lines: List[str] = [f"- {label}: {value}" for label, value in facts.items() if value]
    facts_str = "\n".join(fact_lines) if fact_lines else "- (none)"
    topic = "installer matching" if kind == "contractors" else "subsidy check"

    return f"""\
Rewrite the following {topic} summary as advice for the homeowner.

SUMMARY:
{base_advice}

FACTS YOU MAY USE:
{facts_str}

REQUIREMENTS:
- 60-150 words
- Keep every number exactly as given
- End with one concrete next step\
"""
