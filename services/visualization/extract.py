from __future__ import annotations

import json
import re
from typing import Any

LEADING_FENCE_RE = re.compile(r"^\s*```[A-Za-z0-9_+-]*[ \t]*\r?\n?")
TRAILING_FENCE_RE = re.compile(r"\r?\n?[ \t]*```\s*$")
MAX_BRACE_CANDIDATES = 64


def _parse(text: str) -> tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        return False, None


def _trailing_object(text: str) -> tuple[bool, Any]:
    """Parse the outermost ``{...}`` that closes at the end of ``text``."""
    clean = text.rstrip()
    if not clean.endswith("}"):
        return False, None
    start = clean.find("{")
    attempts = 0
    while start != -1 and attempts < MAX_BRACE_CANDIDATES:
        ok, value = _parse(clean[start:])
        if ok:
            return True, value
        attempts += 1
        start = clean.find("{", start + 1)
    return False, None


def _attempt(text: str) -> tuple[bool, Any]:
    ok, value = _parse(text)
    if ok:
        return ok, value
    return _trailing_object(text)


def strip_code_fences(text: str) -> str:
    cleaned = LEADING_FENCE_RE.sub("", text, count=1)
    return TRAILING_FENCE_RE.sub("", cleaned, count=1)


def extract(raw_text: Any) -> Any | None:
    """Best-effort recovery of a JSON value from model output.

    Tries a direct parse, then the trailing ``{...}`` block, then both again
    after removing code-fence wrapping. Returns ``None`` when nothing parses.
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        return None

    ok, value = _attempt(raw_text)
    if ok:
        return value

    unfenced = strip_code_fences(raw_text.strip())
    if unfenced != raw_text:
        ok, value = _attempt(unfenced)
        if ok:
            return value
    return None


__all__ = ["extract", "strip_code_fences"]
