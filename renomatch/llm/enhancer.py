"""
renomatch/llm/enhancer.py

LLMAdviceEnhancer: optional rewrite of the deterministic advice text.

- User-provided API key only
- Single call per response, 10-second hard timeout
- Word-count validation (30-250 words)
- Raises AdviceEnhancerError on any failure; the caller keeps the
  deterministic text
- API key MUST NOT appear in any log, exception or structured output
"""
from __future__ import annotations

from typing import Dict, Optional

from renomatch import config as _config
from renomatch.llm.prompt import _SYSTEM_PROMPT, build_advice_prompt

# Top-level optional imports so tests can patch them via module attribute.
# The actual ImportError (if library not installed) is raised at call time.
try:
    import anthropic
except ImportError:
    anthropic = None  # type: ignore[assignment]

try:
    import openai
except ImportError:
    openai = None  # type: ignore[assignment]


class AdviceEnhancerError(Exception):
    """Raised when enhancement fails for any reason (timeout, bad output, API error)."""


class LLMAdviceEnhancer:
    _MIN_WORDS = 30
    _MAX_WORDS = 250
    _TIMEOUT_SECONDS = 10

    def __init__(
            self,
            *,
            api_key: str,
            model: Optional[str] = None,
            provider: str = "anthropic",
    ) -> None:
        if not api_key:
            raise AdviceEnhancerError("LLM API key must not be empty.")
        self._api_key = api_key
        self._model = (model or _config.RENOMATCH_LLM_MODEL).strip()
        self._provider = provider.strip().lower()

        if self._provider not in ("anthropic", "openai"):
            raise AdviceEnhancerError(
                f"Unsupported provider '{self._provider}'. Use 'anthropic' or 'openai'."
            )

    def enhance(self, *, kind: str, base_advice: str, facts: Dict[str, str]) -> str:
        prompt = build_advice_prompt(kind=kind, base_advice=base_advice, facts=facts)
        try:
            if self._provider == "anthropic":
                raw = self._call_anthropic(prompt)
            else:
                raw = self._call_openai(prompt)
        except AdviceEnhancerError:
            raise
        except Exception as exc:
            # Sanitize: never let the key propagate through exception messages
            raise AdviceEnhancerError(f"LLM call failed: {type(exc).__name__}") from None

        return self._validate(raw)

    def _call_anthropic(self, prompt: str) -> str:
        if anthropic is None:
            raise AdviceEnhancerError(
                "Package 'anthropic' is not installed. Run: pip install anthropic"
            )

        client = anthropic.Anthropic(api_key=self._api_key)
        try:
            message = client.messages.create(
                model=self._model,
                max_tokens=400,
                timeout=self._TIMEOUT_SECONDS,
                system=_SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APITimeoutError:
            raise AdviceEnhancerError("Anthropic API timed out after 10 seconds.")
        except anthropic.APIError as exc:
            raise AdviceEnhancerError(f"Anthropic API error: {type(exc).__name__}") from None

        for block in message.content:
            if block.type == "text":
                return block.text
        raise AdviceEnhancerError("Anthropic returned no text content.")

    def _call_openai(self, prompt: str) -> str:
        if openai is None:
            raise AdviceEnhancerError(
                "Package 'openai' is not installed. Run: pip install openai"
            )

        client = openai.OpenAI(api_key=self._api_key, timeout=self._TIMEOUT_SECONDS)
        try:
            response = client.chat.completions.create(
                model=self._model,
                max_tokens=400,
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except openai.APITimeoutError:
            raise AdviceEnhancerError("OpenAI API timed out after 10 seconds.")
        except openai.APIError as exc:
            raise AdviceEnhancerError(f"OpenAI API error: {type(exc).__name__}") from None

        content = response.choices[0].message.content
        if not content:
            raise AdviceEnhancerError("OpenAI returned empty content.")
        return content

    def _validate(self, text: str) -> str:
        text = (text or "").strip()
        if not text:
            raise AdviceEnhancerError("LLM returned an empty response.")
        word_count = len(text.split())
        if word_count < self._MIN_WORDS:
            raise AdviceEnhancerError(
                f"LLM output too short: {word_count} words (minimum {self._MIN_WORDS})."
            )
        if word_count > self._MAX_WORDS:
            raise AdviceEnhancerError(
                f"LLM output too long: {word_count} words (maximum {self._MAX_WORDS})."
            )
        return text


def build_default_enhancer() -> Optional[LLMAdviceEnhancer]:
    """Enhancer from environment config, or None when no key is set."""
    if not _config.llm_configured():
        return None
    try:
        return LLMAdviceEnhancer(
            api_key=_config.RENOMATCH_LLM_KEY or "",
            provider=_config.RENOMATCH_LLM_PROVIDER,
        )
    except AdviceEnhancerError:
        return None
