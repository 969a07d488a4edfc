from __future__ import annotations

import importlib.util
import json
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _load_cli():
    spec = importlib.util.spec_from_file_location("chatvis_cli", PROJECT_ROOT / "scripts" / "chatvis.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_cli_sanitize_prints_canonical_answer(tmp_path, capsys) -> None:
    source = tmp_path / "raw.txt"
    source.write_text('Here you go:\n```json\n{"text": "hi", "visualization": {"fps": 500}}\n```', encoding="utf-8")

    assert _load_cli().main(["sanitize", str(source)]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["text"] == "hi"
    assert payload["visualization"]["fps"] == 60


def test_cli_frames_emits_one_line_per_sample(tmp_path, capsys) -> None:
    source = tmp_path / "raw.json"
    source.write_text(json.dumps({"visualization": {"duration": 1000, "fps": 2}}), encoding="utf-8")

    assert _load_cli().main(["frames", str(source)]) == 0
    rows = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert [row["t"] for row in rows] == [0.0, 500.0, 1000.0]
    assert {state["id"] for state in rows[0]["states"]} == {"ball", "arrow"}


def test_cli_ask_uses_offline_answers(monkeypatch, capsys) -> None:
    monkeypatch.setenv("CHATVIS_LLM_PROVIDER", "heuristic")
    assert _load_cli().main(["ask", "What is DNA?"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["visualization"]["id"] == "vis_dna"


def test_cli_play_draws_from_zero_to_duration(tmp_path, capsys) -> None:
    source = tmp_path / "raw.json"
    source.write_text(json.dumps({"visualization": {"duration": 1000}}), encoding="utf-8")

    assert _load_cli().main(["play", str(source), "--fps", "60"]) == 0
    rows = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert rows[0]["t"] == 0
    assert rows[-1]["t"] == 1000
    assert [row["t"] for row in rows] == sorted(row["t"] for row in rows)
    assert {state["id"] for state in rows[-1]["states"]} == {"ball", "arrow"}
