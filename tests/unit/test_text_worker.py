from __future__ import annotations

import httpx
import pytest

from services.agents.text import adapters
from services.agents.text import worker
from services.agents.visual.scenes import canned_answer
from services.visualization.model import ArrowLayer, CircleLayer, LottieLayer


def _fail_request(*args, **kwargs):  # noqa: ANN002, ANN003
    req = httpx.Request("POST", "http://127.0.0.1:1/api/generate")
    raise httpx.ConnectError("connection failed", request=req)


class _FakeResponse:
    def __init__(self, payload) -> None:
        self._payload = payload

    def raise_for_status(self) -> None:
        return None

    def json(self):
        return self._payload


@pytest.mark.parametrize(
    ("question", "spec_id"),
    [
        ("Explain the solar system", "vis_solar"),
        ("What is Newton's first law?", "vis_newton"),
        ("How does DNA store data?", "vis_dna"),
        ("Why is the sky blue?", "vis_generic"),
        ("Tell me about insolar panels", "vis_generic"),
    ],
)
def test_canned_answer_picks_scene_by_topic(question: str, spec_id: str) -> None:
    assert canned_answer(question)["visualization"]["id"] == spec_id


def test_answer_question_uses_heuristic_by_default(monkeypatch) -> None:
    monkeypatch.delenv("CHATVIS_LLM_PROVIDER", raising=False)
    answer = worker.answer_question("Explain the solar system")
    assert answer.text.startswith("The Sun")
    assert answer.visualization.id == "vis_solar"
    sun, earth = answer.visualization.layers
    assert isinstance(sun, CircleLayer)
    assert earth.animations[0].period_ms == 6000


def test_answer_question_generic_text_mentions_question(monkeypatch) -> None:
    monkeypatch.setenv("CHATVIS_LLM_PROVIDER", "mock")
    answer = worker.answer_question("  photosynthesis  ")
    assert "photosynthesis" in answer.text
    assert isinstance(answer.visualization.layers[1], ArrowLayer)


def test_answer_question_sanitizes_fenced_model_output(monkeypatch) -> None:
    monkeypatch.setenv("CHATVIS_LLM_PROVIDER", "ollama")
    monkeypatch.delenv("CHATVIS_LLM_MODEL", raising=False)
    seen: dict = {}

    def fake_post(url, json=None, timeout=None, **kwargs):  # noqa: ANN001, ANN003
        seen["url"] = url
        seen["payload"] = json
        return _FakeResponse(
            {"response": 'Sure! ```json\n{"text":"ok","visualization":{"duration":20000,"layers":[{"type":"lottie"}]}}\n```'}
        )

    monkeypatch.setattr(adapters.httpx, "post", fake_post)

    answer = worker.answer_question("What is DNA?", layer_id=lambda idx: f"gen_{idx}")
    assert answer.text == "ok"
    assert answer.visualization.duration_ms == 10000
    (layer,) = answer.visualization.layers
    assert isinstance(layer, LottieLayer)
    assert layer.id == "gen_0"
    assert seen["url"].endswith("/api/generate")
    assert seen["payload"]["format"] == "json"
    assert seen["payload"]["model"] == "llama3.2:3b"
    assert "What is DNA?" in seen["payload"]["prompt"]


def test_answer_question_falls_back_when_remote_provider_fails(monkeypatch) -> None:
    monkeypatch.setenv("CHATVIS_LLM_PROVIDER", "ollama")
    monkeypatch.setenv("CHATVIS_LLM_ALLOW_FALLBACK", "true")
    monkeypatch.setenv("CHATVIS_LLM_TIMEOUT_S", "0.5")
    monkeypatch.setattr(adapters.httpx, "post", _fail_request)

    answer = worker.answer_question("Explain Newton's laws")
    assert answer.visualization.id == "vis_newton"


def test_answer_question_falls_back_on_unparseable_output(monkeypatch) -> None:
    monkeypatch.setenv("CHATVIS_LLM_PROVIDER", "openai-compatible")
    monkeypatch.delenv("CHATVIS_LLM_ALLOW_FALLBACK", raising=False)
    monkeypatch.setattr(
        adapters.httpx,
        "post",
        lambda *args, **kwargs: _FakeResponse({"choices": [{"message": {"content": "I cannot draw that."}}]}),
    )
    answer = worker.answer_question("volcanoes")
    assert answer.visualization.id == "vis_generic"


def test_answer_question_raises_without_fallback(monkeypatch) -> None:
    monkeypatch.setenv("CHATVIS_LLM_PROVIDER", "openai-compatible")
    monkeypatch.setenv("CHATVIS_LLM_ALLOW_FALLBACK", "false")
    monkeypatch.setattr(adapters.httpx, "post", _fail_request)

    with pytest.raises(worker.LLMEngineError) as excinfo:
        worker.answer_question("volcanoes")
    assert excinfo.value.provider == "openai-compatible"


def test_huggingface_requires_token(monkeypatch) -> None:
    monkeypatch.setenv("CHATVIS_LLM_PROVIDER", "hf")
    monkeypatch.setenv("CHATVIS_LLM_ALLOW_FALLBACK", "no")
    monkeypatch.delenv("CHATVIS_HF_TOKEN", raising=False)

    with pytest.raises(worker.LLMEngineError) as excinfo:
        worker.answer_question("solar")
    assert "CHATVIS_HF_TOKEN" in str(excinfo.value)


def test_huggingface_sends_bearer_token(monkeypatch) -> None:
    monkeypatch.setenv("CHATVIS_HF_TOKEN", "hf_test")
    monkeypatch.delenv("CHATVIS_LLM_MODEL", raising=False)
    monkeypatch.delenv("CHATVIS_HF_MODEL", raising=False)
    seen: dict = {}

    def fake_post(url, json=None, headers=None, timeout=None):  # noqa: ANN001
        seen.update(url=url, headers=headers, payload=json)
        return _FakeResponse([{"generated_text": '{"text": "hf"}'}])

    monkeypatch.setattr(adapters.httpx, "post", fake_post)
    raw = adapters.HuggingFaceAdapter(timeout_s=10).generate("Why?")
    assert raw == '{"text": "hf"}'
    assert seen["headers"]["authorization"] == "Bearer hf_test"
    assert seen["url"].endswith("/mistralai/Mistral-7B-Instruct-v0.2")
    assert seen["payload"]["options"] == {"wait_for_model": True}


def test_extract_generated_text_handles_list_and_dict_payloads() -> None:
    assert adapters.extract_generated_text([{"generated_text": " a "}]) == "a"
    assert adapters.extract_generated_text({"generated_text": "b"}) == "b"
    assert adapters.extract_generated_text([]) == ""
    assert adapters.extract_generated_text({"error": "loading"}) == ""


def test_llm_capabilities_reports_selected_provider(monkeypatch) -> None:
    monkeypatch.setenv("CHATVIS_LLM_PROVIDER", "ollama")
    monkeypatch.setenv("CHATVIS_LLM_MODEL", "qwen2.5:7b-instruct")
    caps = worker.llm_capabilities(probe=False)
    assert caps["selected_provider"] == "ollama"
    assert caps["model"] == "qwen2.5:7b-instruct"
    assert set(caps["providers"]) == {"heuristic", "ollama", "huggingface", "openai-compatible"}


def test_llm_capabilities_falls_back_for_unknown_provider(monkeypatch) -> None:
    monkeypatch.setenv("CHATVIS_LLM_PROVIDER", "skynet")
    monkeypatch.setenv("CHATVIS_LLM_TIMEOUT_S", "9999")
    caps = worker.llm_capabilities()
    assert caps["selected_provider"] == "heuristic"
    assert caps["effective_ready"] is True
    assert caps["timeout_s"] == 120.0
