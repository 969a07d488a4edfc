from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

from services.agents.text.adapters import AdapterError, build_adapters
from services.agents.visual.scenes import canned_answer
from services.visualization import SanitizedAnswer, extract, sanitize_answer
from services.visualization.sanitize import LayerIdFactory

logger = logging.getLogger("chatvis.text")

LLM_PROVIDER_ENV = "CHATVIS_LLM_PROVIDER"
LLM_MODEL_ENV = "CHATVIS_LLM_MODEL"
LLM_ALLOW_FALLBACK_ENV = "CHATVIS_LLM_ALLOW_FALLBACK"
LLM_TIMEOUT_ENV = "CHATVIS_LLM_TIMEOUT_S"

VALID_PROVIDERS = {"heuristic", "ollama", "huggingface", "openai-compatible"}
PROVIDER_ALIASES = {"mock": "heuristic", "hf": "huggingface"}
TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class LLMEngineError(RuntimeError):
    provider: str
    message: str

    def __str__(self) -> str:
        return self.message


def answer_question(question: str, *, layer_id: LayerIdFactory | None = None) -> SanitizedAnswer:
    """Ask the configured provider and return a sanitized text + visualization.

    Transport failures and unparseable output fall back to the offline
    answer for the same question unless fallback is disabled, in which case
    ``LLMEngineError`` is raised.
    """
    cleaned = (question or "").strip()
    provider = _selected_provider()
    if provider == "heuristic":
        return sanitize_answer(canned_answer(cleaned), layer_id=layer_id)

    adapters = build_adapters(timeout_s=_timeout_s())
    try:
        raw = adapters[provider].generate(cleaned)
    except AdapterError as exc:
        return _fallback(cleaned, provider, str(exc), layer_id)

    parsed = extract(raw)
    if not isinstance(parsed, dict):
        return _fallback(cleaned, provider, f"{provider} returned no usable JSON", layer_id)
    return sanitize_answer(parsed, layer_id=layer_id)


def _fallback(question: str, provider: str, reason: str, layer_id: LayerIdFactory | None) -> SanitizedAnswer:
    if not _allow_fallback():
        raise LLMEngineError(provider=provider, message=reason)
    logger.warning("LLM error from %s, falling back to offline answer: %s", provider, reason)
    return sanitize_answer(canned_answer(question), layer_id=layer_id)


def llm_capabilities(probe: bool = False) -> dict[str, Any]:
    selected = _selected_provider()
    allow_fallback = _allow_fallback()
    timeout_s = _timeout_s()
    adapters = build_adapters(timeout_s=timeout_s)

    providers: dict[str, dict[str, Any]] = {}
    for name, adapter in adapters.items():
        try:
            providers[name] = adapter.capabilities(probe=probe)
        except Exception as exc:  # noqa: BLE001
            providers[name] = {"ready": False, "error": str(exc)}

    selected_ready = bool(providers.get(selected, {}).get("ready"))
    return {
        "selected_provider": selected,
        "effective_provider": selected if selected_ready else ("heuristic" if allow_fallback else selected),
        "active_provider_ready": selected_ready,
        "effective_ready": selected_ready or allow_fallback,
        "allow_fallback": allow_fallback,
        "timeout_s": timeout_s,
        "model": str(providers.get(selected, {}).get("model", "")).strip() or os.getenv(LLM_MODEL_ENV, "").strip(),
        "providers": providers,
    }


def _selected_provider() -> str:
    selected = os.getenv(LLM_PROVIDER_ENV, "heuristic").strip().lower()
    selected = PROVIDER_ALIASES.get(selected, selected)
    if selected not in VALID_PROVIDERS:
        return "heuristic"
    return selected


def _allow_fallback() -> bool:
    raw = os.getenv(LLM_ALLOW_FALLBACK_ENV)
    if raw is None or not raw.strip():
        return True
    return raw.strip().lower() in TRUE_VALUES


def _timeout_s() -> float:
    raw = os.getenv(LLM_TIMEOUT_ENV, "8").strip()
    try:
        value = float(raw)
    except ValueError:
        return 8.0
    return min(max(value, 0.5), 120.0)


__all__ = ["LLMEngineError", "answer_question", "llm_capabilities"]
