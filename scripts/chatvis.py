#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from services.agents.text.worker import LLMEngineError, answer_question
from services.config.runtime_config import load_env_file
from services.visualization import PlaybackDriver, RenderState, evaluate, extract, sample_times, sanitize_answer


def _read_source(path: str | None) -> str:
    if not path or path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _load_answer(path: str | None):
    raw = _read_source(path)
    return sanitize_answer(extract(raw))


def cmd_ask(args: argparse.Namespace) -> int:
    try:
        answer = answer_question(args.question)
    except LLMEngineError as exc:
        print(f"error: {exc.provider}: {exc}", file=sys.stderr)
        return 1
    print(json.dumps(answer.to_dict(), indent=2))
    return 0


def cmd_sanitize(args: argparse.Namespace) -> int:
    print(json.dumps(_load_answer(args.file).to_dict(), indent=2))
    return 0


def cmd_frames(args: argparse.Namespace) -> int:
    spec = _load_answer(args.file).visualization
    for t in sample_times(spec, fps=args.fps):
        states = [state.to_dict() for state in evaluate(spec, t)]
        print(json.dumps({"t": t, "states": states}))
    return 0


def cmd_play(args: argparse.Namespace) -> int:
    spec = _load_answer(args.file).visualization

    async def draw(states: list[RenderState]) -> None:
        print(json.dumps({"t": round(driver.last_t or 0.0, 1), "states": [state.to_dict() for state in states]}))

    async def run() -> None:
        driver.play(spec)
        await driver.wait()

    driver = PlaybackDriver(draw, frame_interval_s=1.0 / max(1, args.fps or spec.fps))
    asyncio.run(run())
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("services.gateway.app.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chatvis", description="chatvis answer and animation tools.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    ask = sub.add_parser("ask", help="Answer a question with the configured provider.")
    ask.add_argument("question")
    ask.set_defaults(handler=cmd_ask)

    sanitize = sub.add_parser("sanitize", help="Extract and sanitize raw model output.")
    sanitize.add_argument("file", nargs="?", default="-", help="Input file, '-' for stdin.")
    sanitize.set_defaults(handler=cmd_sanitize)

    frames = sub.add_parser("frames", help="Print evaluated render states at evenly spaced times.")
    frames.add_argument("file", nargs="?", default="-", help="Input file, '-' for stdin.")
    frames.add_argument("--fps", type=int, default=None, help="Sampling rate; defaults to the spec's fps hint.")
    frames.set_defaults(handler=cmd_frames)

    play = sub.add_parser("play", help="Play an answer in real time, printing each drawn frame.")
    play.add_argument("file", nargs="?", default="-", help="Input file, '-' for stdin.")
    play.add_argument("--fps", type=int, default=None, help="Frame rate of the playback loop.")
    play.set_defaults(handler=cmd_play)

    serve = sub.add_parser("serve", help="Run the HTTP gateway.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=3000)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(handler=cmd_serve)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_env_file()
    return args.handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
