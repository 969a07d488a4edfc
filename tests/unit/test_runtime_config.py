from __future__ import annotations

import os

from services.config import runtime_config


def test_parse_env_handles_comments_exports_and_quotes(tmp_path) -> None:
    path = tmp_path / ".env"
    path.write_text(
        "\n".join(
            [
                "# provider settings",
                "CHATVIS_LLM_PROVIDER=ollama",
                "export CHATVIS_LLM_MODEL='llama3.2:3b'",
                'CHATVIS_OLLAMA_URL="http://gpu-box:11434"',
                "not a pair",
                "",
            ]
        ),
        encoding="utf-8",
    )
    assert runtime_config.parse_env(path) == {
        "CHATVIS_LLM_PROVIDER": "ollama",
        "CHATVIS_LLM_MODEL": "llama3.2:3b",
        "CHATVIS_OLLAMA_URL": "http://gpu-box:11434",
    }


def test_parse_env_missing_file_is_empty(tmp_path) -> None:
    assert runtime_config.parse_env(tmp_path / "missing.env") == {}


def test_load_env_file_does_not_override_process_env(tmp_path, monkeypatch) -> None:
    path = tmp_path / ".env"
    path.write_text("CHATVIS_LLM_PROVIDER=ollama\nCHATVIS_LLM_TIMEOUT_S=3\n", encoding="utf-8")
    monkeypatch.setenv("CHATVIS_LLM_PROVIDER", "heuristic")
    monkeypatch.delenv("CHATVIS_LLM_TIMEOUT_S", raising=False)
    monkeypatch.setenv("CHATVIS_ENV_FILE", str(path))

    applied = runtime_config.load_env_file()
    try:
        assert applied == ["CHATVIS_LLM_TIMEOUT_S"]
        assert os.environ["CHATVIS_LLM_PROVIDER"] == "heuristic"
        assert os.environ["CHATVIS_LLM_TIMEOUT_S"] == "3"
    finally:
        os.environ.pop("CHATVIS_LLM_TIMEOUT_S", None)


def test_current_state_masks_secrets(monkeypatch) -> None:
    monkeypatch.setenv("CHATVIS_HF_TOKEN", "hf_secret")
    monkeypatch.setenv("CHATVIS_LLM_PROVIDER", "hf")
    state = runtime_config.current_state()
    assert state["CHATVIS_HF_TOKEN"] == "********"
    assert state["CHATVIS_LLM_PROVIDER"] == "hf"
    assert runtime_config.masked_state({"CHATVIS_OPENAI_API_KEY": ""}) == {"CHATVIS_OPENAI_API_KEY": ""}
