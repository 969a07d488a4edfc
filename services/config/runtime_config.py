from __future__ import annotations

import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
ENV_PATH_ENV = "CHATVIS_ENV_FILE"
ENV_PATH = PROJECT_ROOT / ".env"

SECRET_KEYS = {
    "CHATVIS_HF_TOKEN",
    "CHATVIS_OPENAI_API_KEY",
}

KNOWN_KEYS = {
    "CHATVIS_LLM_PROVIDER",
    "CHATVIS_LLM_MODEL",
    "CHATVIS_LLM_ALLOW_FALLBACK",
    "CHATVIS_LLM_TIMEOUT_S",
    "CHATVIS_OLLAMA_URL",
    "CHATVIS_HF_TOKEN",
    "CHATVIS_HF_MODEL",
    "CHATVIS_HF_BASE_URL",
    "CHATVIS_OPENAI_BASE_URL",
    "CHATVIS_OPENAI_API_KEY",
    "CHATVIS_CORS_ORIGINS",
}


def env_path() -> Path:
    raw = os.getenv(ENV_PATH_ENV, "").strip()
    return Path(raw).expanduser() if raw else ENV_PATH


def parse_env(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    values: dict[str, str] = {}
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        values[key.strip()] = value
    return values


def load_env_file(path: Path | None = None) -> list[str]:
    """Apply ``KEY=VALUE`` pairs from an env file without overriding the process environment."""
    applied: list[str] = []
    for key, value in parse_env(path or env_path()).items():
        if key in os.environ:
            continue
        os.environ[key] = value
        applied.append(key)
    return sorted(applied)


def masked_state(values: dict[str, str]) -> dict[str, str]:
    masked: dict[str, str] = {}
    for key, value in values.items():
        if key in SECRET_KEYS and value:
            masked[key] = "********"
        else:
            masked[key] = value
    return masked


def current_state() -> dict[str, str]:
    return masked_state({key: os.environ[key] for key in sorted(KNOWN_KEYS) if key in os.environ})


__all__ = ["ENV_PATH", "current_state", "env_path", "load_env_file", "masked_state", "parse_env"]
