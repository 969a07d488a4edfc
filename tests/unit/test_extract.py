from __future__ import annotations

from services.visualization.extract import extract, strip_code_fences


def test_extract_parses_plain_json() -> None:
    assert extract('{"text": "ok"}') == {"text": "ok"}


def test_extract_recovers_trailing_object_after_prose() -> None:
    raw = 'Sure, here is the answer: {"text": "ok", "visualization": {"layers": []}}'
    assert extract(raw) == {"text": "ok", "visualization": {"layers": []}}


def test_extract_skips_braces_inside_leading_prose() -> None:
    raw = 'Use {curly} notation. {"text": "ok"}'
    assert extract(raw) == {"text": "ok"}


def test_extract_strips_json_code_fence() -> None:
    raw = '```json\n{"text": "fenced"}\n```'
    assert extract(raw) == {"text": "fenced"}


def test_extract_handles_prose_before_fence() -> None:
    raw = 'Sure! ```json\n{"text":"ok","visualization":{"duration":20000}}\n```'
    assert extract(raw) == {"text": "ok", "visualization": {"duration": 20000}}


def test_extract_returns_none_for_garbage() -> None:
    assert extract("no json here at all") is None
    assert extract("{broken json") is None
    assert extract("") is None
    assert extract("   ") is None


def test_extract_returns_none_for_non_string_input() -> None:
    assert extract(None) is None
    assert extract(42) is None
    assert extract({"text": "already parsed"}) is None


def test_extract_does_not_raise_on_deep_nesting() -> None:
    assert extract("[" * 100_000) is None


def test_strip_code_fences_leaves_plain_text_alone() -> None:
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'
    assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
