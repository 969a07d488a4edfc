from __future__ import annotations

import math
from typing import Any

from services.visualization.model import (
    MIN_ORBIT_PERIOD_MS,
    ArrowLayer,
    CircleLayer,
    Layer,
    LinearAnimation,
    LottieLayer,
    OrbitAnimation,
    RenderState,
    VisualizationSpec,
)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def clamp_time(spec: VisualizationSpec, t: float) -> float:
    try:
        value = float(t)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value):
        return 0.0
    return _clamp(value, 0.0, float(spec.duration_ms))


def orbit_position(anim: OrbitAnimation, t: float) -> tuple[float, float]:
    period = max(anim.period_ms, MIN_ORBIT_PERIOD_MS)
    phase = (t % period) / period
    angle = phase * 2.0 * math.pi
    return (
        anim.center_x + anim.radius * math.cos(angle),
        anim.center_y + anim.radius * math.sin(angle),
    )


def linear_value(anim: LinearAnimation, t: float) -> float:
    span = max(anim.end - anim.start, 1.0)
    progress = _clamp((t - anim.start) / span, 0.0, 1.0)
    return anim.from_value + (anim.to_value - anim.from_value) * progress


def _circle_props(layer: CircleLayer, t: float) -> dict[str, Any]:
    props: dict[str, Any] = {"x": layer.props.x, "y": layer.props.y, "r": layer.props.r, "fill": layer.props.fill}
    for anim in layer.animations:
        if isinstance(anim, OrbitAnimation):
            props["x"], props["y"] = orbit_position(anim, t)
        else:
            props[anim.property] = linear_value(anim, t)
    return props


def _layer_state(layer: Layer, t: float) -> RenderState:
    if isinstance(layer, CircleLayer):
        return RenderState(variant=layer.type, id=layer.id, props=_circle_props(layer, t))
    if isinstance(layer, ArrowLayer):
        p = layer.props
        return RenderState(
            variant=layer.type,
            id=layer.id,
            props={"x": p.x, "y": p.y, "dx": p.dx, "dy": p.dy, "color": p.color},
        )
    if isinstance(layer, LottieLayer):
        p = layer.props
        return RenderState(
            variant=layer.type,
            id=layer.id,
            props={"url": p.url, "x": p.x, "y": p.y, "width": p.width, "height": p.height, "loop": p.loop},
        )
    raise TypeError(f"unsupported layer variant: {type(layer).__name__}")


def evaluate(spec: VisualizationSpec, t: float) -> list[RenderState]:
    """Resolve every layer of ``spec`` at ``t`` milliseconds.

    ``t`` is clamped to ``[0, duration_ms]``. The result depends only on the
    arguments, so samples may be requested in any order.
    """
    elapsed = clamp_time(spec, t)
    return [_layer_state(layer, elapsed) for layer in spec.layers]


def sample_times(spec: VisualizationSpec, fps: int | None = None) -> list[float]:
    """Evenly spaced sample times covering ``[0, duration_ms]`` at the fps hint."""
    rate = max(1, int(fps or spec.fps))
    step = 1000.0 / rate
    count = int(math.floor(spec.duration_ms / step))
    times = [round(idx * step, 3) for idx in range(count + 1)]
    if times[-1] < spec.duration_ms:
        times.append(float(spec.duration_ms))
    return times


__all__ = ["clamp_time", "evaluate", "linear_value", "orbit_position", "sample_times"]
