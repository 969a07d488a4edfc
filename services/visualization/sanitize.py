from __future__ import annotations

import math
from collections.abc import Callable
from typing import Any

from services.visualization.model import (
    ARROW,
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    CIRCLE,
    DEFAULT_ANSWER_TEXT,
    DEFAULT_DURATION_MS,
    DEFAULT_FPS,
    DEFAULT_SPEC_ID,
    LINEAR_PROPERTIES,
    LOTTIE,
    MAX_DURATION_MS,
    MAX_FPS,
    MAX_ORBIT_PERIOD_MS,
    MIN_DURATION_MS,
    MIN_FPS,
    MIN_ORBIT_PERIOD_MS,
    MIN_WINDOW_MS,
    ORBIT_PROPERTY,
    Animation,
    ArrowLayer,
    ArrowProps,
    CircleLayer,
    CircleProps,
    Layer,
    LinearAnimation,
    LottieLayer,
    LottieProps,
    OrbitAnimation,
    SanitizedAnswer,
    VisualizationSpec,
)

LayerIdFactory = Callable[[int], str]

DEFAULT_CIRCLE_FILL = "#3498db"
DEFAULT_ARROW_COLOR = "#e74c3c"
DEFAULT_LOTTIE_URL = "/animations/dna.json"
SPEC_KEYS = ("layers", "duration", "fps")


def default_layer_id(index: int) -> str:
    return f"layer_{index}"


def safe_number(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    return number if math.isfinite(number) else default


def clamp(value: float, lo: float, hi: float) -> float:
    return float(max(lo, min(hi, value)))


def _clamped(source: dict[str, Any], key: str, default: float, lo: float, hi: float) -> float:
    return clamp(safe_number(source.get(key), default), lo, hi)


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _sequence(value: Any) -> list[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def _identifier(value: Any) -> str:
    if isinstance(value, bool) or not value:
        return ""
    if isinstance(value, (str, int, float)):
        return str(value).strip()
    return ""


def _tag(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def _sanitize_animation(raw: Any, duration_ms: int) -> Animation:
    a = _mapping(raw)
    prop = _tag(a.get("property"))
    if prop == ORBIT_PROPERTY:
        period = a.get("periodMs", a.get("duration"))
        return OrbitAnimation(
            center_x=_clamped(a, "centerX", 320, 0, CANVAS_WIDTH),
            center_y=_clamped(a, "centerY", 200, 0, CANVAS_HEIGHT),
            radius=_clamped(a, "radius", 100, 10, 250),
            period_ms=clamp(safe_number(period, duration_ms), MIN_ORBIT_PERIOD_MS, MAX_ORBIT_PERIOD_MS),
        )

    start = _clamped(a, "start", 0, 0, duration_ms - MIN_WINDOW_MS)
    end = _clamped(a, "end", duration_ms, start + MIN_WINDOW_MS, duration_ms)
    return LinearAnimation(
        property=prop if prop in LINEAR_PROPERTIES else "x",
        from_value=safe_number(a.get("from"), 100),
        to_value=safe_number(a.get("to"), 500),
        start=start,
        end=end,
    )


def _sanitize_layer(raw: Any, layer_id: str, duration_ms: int) -> Layer | None:
    entry = _mapping(raw)
    kind = _tag(entry.get("type"))
    p = _mapping(entry.get("props"))

    if kind == CIRCLE:
        fill = p.get("fill")
        return CircleLayer(
            id=layer_id,
            props=CircleProps(
                x=_clamped(p, "x", 160, 0, CANVAS_WIDTH),
                y=_clamped(p, "y", 200, 0, CANVAS_HEIGHT),
                r=_clamped(p, "r", 16, 1, 120),
                fill=fill if isinstance(fill, str) else DEFAULT_CIRCLE_FILL,
            ),
            animations=tuple(_sanitize_animation(a, duration_ms) for a in _sequence(entry.get("animations"))),
        )

    if kind == ARROW:
        color = p.get("color")
        return ArrowLayer(
            id=layer_id,
            props=ArrowProps(
                x=_clamped(p, "x", 90, 0, CANVAS_WIDTH),
                y=_clamped(p, "y", 220, 0, CANVAS_HEIGHT),
                dx=_clamped(p, "dx", 40, -CANVAS_WIDTH, CANVAS_WIDTH),
                dy=_clamped(p, "dy", 0, -CANVAS_HEIGHT, CANVAS_HEIGHT),
                color=color if isinstance(color, str) else DEFAULT_ARROW_COLOR,
            ),
        )

    if kind == LOTTIE:
        url = p.get("url")
        loop = p.get("loop")
        return LottieLayer(
            id=layer_id,
            props=LottieProps(
                url=url if isinstance(url, str) else DEFAULT_LOTTIE_URL,
                x=_clamped(p, "x", 430, 0, CANVAS_WIDTH),
                y=_clamped(p, "y", 140, 0, CANVAS_HEIGHT),
                width=_clamped(p, "width", 180, 40, CANVAS_WIDTH),
                height=_clamped(p, "height", 180, 40, CANVAS_HEIGHT),
                loop=True if loop is None else bool(loop),
            ),
        )

    return None


def default_scene_layers(duration_ms: int) -> list[dict[str, Any]]:
    return [
        {
            "id": "ball",
            "type": CIRCLE,
            "props": {"x": 120, "y": 220, "r": 18, "fill": DEFAULT_CIRCLE_FILL},
            "animations": [{"property": "x", "from": 120, "to": 520, "start": 0, "end": duration_ms - 1000}],
        },
        {
            "id": "arrow",
            "type": ARROW,
            "props": {"x": 90, "y": 220, "dx": 40, "dy": 0, "color": DEFAULT_ARROW_COLOR},
            "animations": [],
        },
    ]


def _sanitize_layers(raw_layers: list[Any], duration_ms: int, layer_id: LayerIdFactory) -> list[Layer]:
    layers: list[Layer] = []
    seen: set[str] = set()
    for idx, raw in enumerate(raw_layers):
        candidate = _identifier(_mapping(raw).get("id")) or layer_id(idx)
        resolved = candidate
        suffix = idx
        while resolved in seen:
            resolved = f"{candidate}_{suffix}"
            suffix += 1
        layer = _sanitize_layer(raw, resolved, duration_ms)
        if layer is None:
            continue
        seen.add(resolved)
        layers.append(layer)
    return layers


def _answer_mapping(candidate: Any) -> dict[str, Any]:
    if isinstance(candidate, (SanitizedAnswer, VisualizationSpec)):
        candidate = candidate.to_dict()
    root = _mapping(candidate)
    if "visualization" not in root and any(key in root for key in SPEC_KEYS):
        return {"text": root.get("text"), "visualization": root}
    return root


def sanitize_answer(candidate: Any, *, layer_id: LayerIdFactory | None = None) -> SanitizedAnswer:
    """Turn any value into a renderable answer. Never raises.

    ``layer_id`` mints ids for layers that arrive without one; it receives the
    layer's index in the input sequence.

    A bare spec mapping (top-level ``layers``/``duration``/``fps``) is read as
    the visualization, and already sanitized values pass through unchanged.
    """
    mint = layer_id or default_layer_id
    root = _answer_mapping(candidate)
    raw_text = root.get("text")
    text = raw_text.strip() if isinstance(raw_text, str) and raw_text.strip() else DEFAULT_ANSWER_TEXT

    vis = _mapping(root.get("visualization"))
    duration_ms = int(round(_clamped(vis, "duration", DEFAULT_DURATION_MS, MIN_DURATION_MS, MAX_DURATION_MS)))
    fps = int(round(_clamped(vis, "fps", DEFAULT_FPS, MIN_FPS, MAX_FPS)))

    layers = _sanitize_layers(_sequence(vis.get("layers")), duration_ms, mint)
    if not layers:
        layers = _sanitize_layers(default_scene_layers(duration_ms), duration_ms, mint)

    spec = VisualizationSpec(
        id=_identifier(vis.get("id")) or DEFAULT_SPEC_ID,
        duration_ms=duration_ms,
        fps=fps,
        layers=tuple(layers),
    )
    return SanitizedAnswer(text=text, visualization=spec)


def sanitize(candidate: Any, *, layer_id: LayerIdFactory | None = None) -> VisualizationSpec:
    return sanitize_answer(candidate, layer_id=layer_id).visualization


__all__ = [
    "DEFAULT_ARROW_COLOR",
    "DEFAULT_CIRCLE_FILL",
    "DEFAULT_LOTTIE_URL",
    "clamp",
    "default_layer_id",
    "default_scene_layers",
    "safe_number",
    "sanitize",
    "sanitize_answer",
]
