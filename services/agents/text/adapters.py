from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from services.agents.visual.scenes import canned_answer

LLM_MODEL_ENV = "CHATVIS_LLM_MODEL"
OLLAMA_URL_ENV = "CHATVIS_OLLAMA_URL"
HF_TOKEN_ENV = "CHATVIS_HF_TOKEN"
HF_MODEL_ENV = "CHATVIS_HF_MODEL"
HF_BASE_URL_ENV = "CHATVIS_HF_BASE_URL"
OPENAI_BASE_URL_ENV = "CHATVIS_OPENAI_BASE_URL"
OPENAI_API_KEY_ENV = "CHATVIS_OPENAI_API_KEY"

ANSWER_SCHEMA_EXAMPLE = """{
  "text": "<concise explanation>",
  "visualization": {
    "id": "vis_any",
    "duration": 5000,
    "fps": 30,
    "layers": [
      { "id":"ball","type":"circle","props":{"x":120,"y":220,"r":18,"fill":"#3498db"},
        "animations":[{ "property":"x","from":120,"to":520,"start":0,"end":3500 }] },
      { "id":"arrow","type":"arrow","props":{"x":90,"y":220,"dx":40,"dy":0,"color":"#e74c3c"}, "animations":[] }
    ]
  }
}"""


@dataclass
class AdapterError(RuntimeError):
    provider: str
    message: str

    def __str__(self) -> str:
        return self.message


class TextProviderAdapter(Protocol):
    name: str

    def generate(self, prompt: str) -> str:
        ...

    def capabilities(self, probe: bool = False) -> dict[str, Any]:
        ...


def build_answer_prompt(question: str) -> str:
    return (
        "You are a tutor that must respond with valid STRICT JSON only (no markdown, no prose outside JSON).\n"
        "Canvas size is 640x400. duration <= 6000. At least one animated layer (x/y linear or orbit).\n"
        "Layer types: circle, arrow, lottie. Orbit animations use "
        '{"property":"orbit","centerX":n,"centerY":n,"radius":n,"duration":n}.\n\n'
        f"Schema:\n{ANSWER_SCHEMA_EXAMPLE}\n\n"
        f'User question: "{question}"\n'
        "Return ONLY valid JSON."
    )


def extract_generated_text(payload: Any) -> str:
    row = payload[0] if isinstance(payload, list) and payload else payload
    if not isinstance(row, dict):
        return ""
    text = row.get("generated_text")
    return text.strip() if isinstance(text, str) else ""


def _extract_chat_content(payload: Any) -> str:
    choices = payload.get("choices") if isinstance(payload, dict) else None
    first = choices[0] if isinstance(choices, list) and choices else {}
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    return content.strip() if isinstance(content, str) else ""


def _model(default: str = "") -> str:
    return os.getenv(LLM_MODEL_ENV, "").strip() or default


def _bearer(token: str) -> dict[str, str]:
    return {"authorization": f"Bearer {token}"} if token else {}


def _post_json(provider: str, label: str, url: str, payload: dict[str, Any], headers: dict[str, str], timeout_s: float) -> Any:
    """POST ``payload`` and decode the JSON reply, reporting any failure as ``AdapterError``."""
    try:
        res = httpx.post(url, json=payload, headers={"content-type": "application/json", **headers}, timeout=timeout_s)
        res.raise_for_status()
        return res.json()
    except Exception as exc:  # noqa: BLE001
        raise AdapterError(provider=provider, message=f"{label} request failed: {exc}") from exc


def _probe_get(url: str, headers: dict[str, str], timeout_s: float) -> tuple[Any, str]:
    try:
        res = httpx.get(url, headers=headers, timeout=min(timeout_s, 5.0))
        res.raise_for_status()
        return res.json(), ""
    except Exception as exc:  # noqa: BLE001
        return None, str(exc)


@dataclass
class HeuristicAdapter:
    name: str = "heuristic"

    def generate(self, prompt: str) -> str:
        return json.dumps(canned_answer(prompt))

    def capabilities(self, probe: bool = False) -> dict[str, Any]:
        return {"ready": True, "note": "offline scene library, always available"}


@dataclass
class OllamaAdapter:
    timeout_s: float
    name: str = "ollama"

    @property
    def base_url(self) -> str:
        return os.getenv(OLLAMA_URL_ENV, "http://localhost:11434").rstrip("/")

    @property
    def model(self) -> str:
        return _model("llama3.2:3b")

    def generate(self, prompt: str) -> str:
        body = {
            "model": self.model,
            "prompt": build_answer_prompt(prompt),
            "stream": False,
            "format": "json",
            "options": {"temperature": 0.1},
        }
        data = _post_json(self.name, "Ollama", f"{self.base_url}/api/generate", body, {}, self.timeout_s)
        response = data.get("response") if isinstance(data, dict) else None
        return response.strip() if isinstance(response, str) else ""

    def capabilities(self, probe: bool = False) -> dict[str, Any]:
        report: dict[str, Any] = {"ready": True, "base_url": self.base_url, "model": self.model}
        if not probe:
            return report
        data, error = _probe_get(f"{self.base_url}/api/tags", {}, self.timeout_s)
        rows = data.get("models") if isinstance(data, dict) else None
        names = {str(row.get("name", "")).strip() for row in rows or [] if isinstance(row, dict)}
        report["reachable"] = data is not None
        report["model_available"] = self.model in names
        report["ready"] = report["model_available"]
        if error:
            report["error"] = error
        elif not report["model_available"]:
            report["error"] = f"model '{self.model}' is not pulled on {self.base_url}"
        return report


@dataclass
class HuggingFaceAdapter:
    timeout_s: float
    name: str = "huggingface"

    @property
    def base_url(self) -> str:
        return os.getenv(HF_BASE_URL_ENV, "https://api-inference.huggingface.co/models").rstrip("/")

    @property
    def token(self) -> str:
        return os.getenv(HF_TOKEN_ENV, "").strip()

    @property
    def model(self) -> str:
        return os.getenv(HF_MODEL_ENV, "").strip() or _model("mistralai/Mistral-7B-Instruct-v0.2")

    def generate(self, prompt: str) -> str:
        if not self.token:
            raise AdapterError(provider=self.name, message=f"Missing {HF_TOKEN_ENV} for huggingface provider")
        body = {"inputs": build_answer_prompt(prompt), "options": {"wait_for_model": True}}
        data = _post_json(self.name, "Hugging Face", f"{self.base_url}/{self.model}", body, _bearer(self.token), self.timeout_s)
        return extract_generated_text(data)

    def capabilities(self, probe: bool = False) -> dict[str, Any]:
        report: dict[str, Any] = {"ready": bool(self.token), "base_url": self.base_url, "model": self.model}
        if not self.token:
            report["error"] = "token_missing"
        return report


@dataclass
class OpenAICompatibleAdapter:
    timeout_s: float
    name: str = "openai-compatible"

    @property
    def base_url(self) -> str:
        return os.getenv(OPENAI_BASE_URL_ENV, "http://127.0.0.1:8002/v1").rstrip("/")

    @property
    def api_key(self) -> str:
        return os.getenv(OPENAI_API_KEY_ENV, "").strip()

    @property
    def model(self) -> str:
        return _model("Qwen/Qwen2.5-7B-Instruct")

    def generate(self, prompt: str) -> str:
        body = {
            "model": self.model,
            "temperature": 0.1,
            "response_format": {"type": "json_object"},
            "messages": [{"role": "user", "content": build_answer_prompt(prompt)}],
        }
        url = f"{self.base_url}/chat/completions"
        data = _post_json(self.name, "OpenAI-compatible", url, body, _bearer(self.api_key), self.timeout_s)
        return _extract_chat_content(data)

    def capabilities(self, probe: bool = False) -> dict[str, Any]:
        report: dict[str, Any] = {
            "ready": True,
            "base_url": self.base_url,
            "model": self.model,
            "api_key_set": bool(self.api_key),
        }
        if not probe:
            return report
        data, error = _probe_get(f"{self.base_url}/models", _bearer(self.api_key), self.timeout_s)
        report["reachable"] = data is not None
        report["ready"] = data is not None
        if error:
            report["error"] = error
        return report


def build_adapters(timeout_s: float) -> dict[str, TextProviderAdapter]:
    return {
        adapter.name: adapter
        for adapter in (
            HeuristicAdapter(),
            OllamaAdapter(timeout_s=timeout_s),
            HuggingFaceAdapter(timeout_s=timeout_s),
            OpenAICompatibleAdapter(timeout_s=timeout_s),
        )
    }


__all__ = [
    "AdapterError",
    "HeuristicAdapter",
    "HuggingFaceAdapter",
    "OllamaAdapter",
    "OpenAICompatibleAdapter",
    "TextProviderAdapter",
    "build_adapters",
    "build_answer_prompt",
    "extract_generated_text",
]
