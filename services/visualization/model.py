from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

CANVAS_WIDTH = 640
CANVAS_HEIGHT = 400

MIN_DURATION_MS = 1000
MAX_DURATION_MS = 10000
DEFAULT_DURATION_MS = 5000
MIN_FPS = 1
MAX_FPS = 60
DEFAULT_FPS = 30
MIN_WINDOW_MS = 100
MIN_ORBIT_PERIOD_MS = 500
MAX_ORBIT_PERIOD_MS = 10000

CIRCLE = "circle"
ARROW = "arrow"
LOTTIE = "lottie"
LAYER_TYPES = (CIRCLE, ARROW, LOTTIE)
LINEAR_PROPERTIES = ("x", "y", "r")
ORBIT_PROPERTY = "orbit"

DEFAULT_ANSWER_TEXT = "Here's a concise explanation with a simple visualization."
DEFAULT_SPEC_ID = "vis_safe"


@dataclass(frozen=True)
class LinearAnimation:
    property: str
    from_value: float
    to_value: float
    start: float
    end: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "property": self.property,
            "from": self.from_value,
            "to": self.to_value,
            "start": self.start,
            "end": self.end,
        }


@dataclass(frozen=True)
class OrbitAnimation:
    center_x: float
    center_y: float
    radius: float
    period_ms: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "property": ORBIT_PROPERTY,
            "centerX": self.center_x,
            "centerY": self.center_y,
            "radius": self.radius,
            "duration": self.period_ms,
        }


Animation = Union[LinearAnimation, OrbitAnimation]


@dataclass(frozen=True)
class CircleProps:
    x: float
    y: float
    r: float
    fill: str


@dataclass(frozen=True)
class ArrowProps:
    x: float
    y: float
    dx: float
    dy: float
    color: str


@dataclass(frozen=True)
class LottieProps:
    url: str
    x: float
    y: float
    width: float
    height: float
    loop: bool


@dataclass(frozen=True)
class CircleLayer:
    id: str
    props: CircleProps
    animations: tuple[Animation, ...] = ()
    type: str = field(default=CIRCLE, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "props": {"x": self.props.x, "y": self.props.y, "r": self.props.r, "fill": self.props.fill},
            "animations": [anim.to_dict() for anim in self.animations],
        }


@dataclass(frozen=True)
class ArrowLayer:
    id: str
    props: ArrowProps
    type: str = field(default=ARROW, init=False)

    @property
    def animations(self) -> tuple[Animation, ...]:
        return ()

    def to_dict(self) -> dict[str, Any]:
        p = self.props
        return {
            "id": self.id,
            "type": self.type,
            "props": {"x": p.x, "y": p.y, "dx": p.dx, "dy": p.dy, "color": p.color},
            "animations": [],
        }


@dataclass(frozen=True)
class LottieLayer:
    id: str
    props: LottieProps
    type: str = field(default=LOTTIE, init=False)

    @property
    def animations(self) -> tuple[Animation, ...]:
        return ()

    def to_dict(self) -> dict[str, Any]:
        p = self.props
        return {
            "id": self.id,
            "type": self.type,
            "props": {"url": p.url, "x": p.x, "y": p.y, "width": p.width, "height": p.height, "loop": p.loop},
            "animations": [],
        }


Layer = Union[CircleLayer, ArrowLayer, LottieLayer]


@dataclass(frozen=True)
class VisualizationSpec:
    """Canonical, safety-bounded description of one animation.

    Produced by the sanitizer and treated as an immutable value afterwards.
    ``to_dict`` emits the bare wire shape the sanitizer accepts, so both
    ``sanitize(spec)`` and ``sanitize(spec.to_dict())`` return an equal spec.
    """

    id: str
    duration_ms: int
    fps: int
    layers: tuple[Layer, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "duration": self.duration_ms,
            "fps": self.fps,
            "layers": [layer.to_dict() for layer in self.layers],
        }


@dataclass(frozen=True)
class SanitizedAnswer:
    text: str
    visualization: VisualizationSpec

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "visualization": self.visualization.to_dict()}


@dataclass(frozen=True)
class RenderState:
    variant: str
    id: str
    props: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"variant": self.variant, "id": self.id, "props": dict(self.props)}


__all__ = [
    "ARROW",
    "CANVAS_HEIGHT",
    "CANVAS_WIDTH",
    "CIRCLE",
    "LOTTIE",
    "Animation",
    "ArrowLayer",
    "ArrowProps",
    "CircleLayer",
    "CircleProps",
    "Layer",
    "LinearAnimation",
    "LottieLayer",
    "LottieProps",
    "OrbitAnimation",
    "RenderState",
    "SanitizedAnswer",
    "VisualizationSpec",
]
