from __future__ import annotations

import math
from typing import Any

from services.visualization.model import ARROW, CIRCLE, LOTTIE, RenderState

ARROW_HEAD_LENGTH = 10.0
ARROW_HEAD_HALF_ANGLE = math.pi / 6
ARROW_LINE_WIDTH = 2.5


def arrow_head(x: float, y: float, dx: float, dy: float) -> list[tuple[float, float]]:
    """Triangle vertices for an arrowhead at the tip of ``(x, y) -> (x+dx, y+dy)``."""
    tip_x, tip_y = x + dx, y + dy
    angle = math.atan2(dy, dx)
    return [
        (tip_x, tip_y),
        (
            tip_x - ARROW_HEAD_LENGTH * math.cos(angle - ARROW_HEAD_HALF_ANGLE),
            tip_y - ARROW_HEAD_LENGTH * math.sin(angle - ARROW_HEAD_HALF_ANGLE),
        ),
        (
            tip_x - ARROW_HEAD_LENGTH * math.cos(angle + ARROW_HEAD_HALF_ANGLE),
            tip_y - ARROW_HEAD_LENGTH * math.sin(angle + ARROW_HEAD_HALF_ANGLE),
        ),
    ]


def draw_command(state: RenderState) -> dict[str, Any]:
    p = state.props
    if state.variant == CIRCLE:
        return {"op": "circle", "id": state.id, "x": p["x"], "y": p["y"], "r": p["r"], "fill": p["fill"]}
    if state.variant == ARROW:
        return {
            "op": "arrow",
            "id": state.id,
            "from": [p["x"], p["y"]],
            "to": [p["x"] + p["dx"], p["y"] + p["dy"]],
            "head": [list(point) for point in arrow_head(p["x"], p["y"], p["dx"], p["dy"])],
            "color": p["color"],
            "line_width": ARROW_LINE_WIDTH,
        }
    if state.variant == LOTTIE:
        return {
            "op": "embed",
            "id": state.id,
            "url": p["url"],
            "x": p["x"],
            "y": p["y"],
            "width": p["width"],
            "height": p["height"],
            "loop": p["loop"],
        }
    raise ValueError(f"unknown render variant '{state.variant}'")


def draw_commands(states: list[RenderState]) -> list[dict[str, Any]]:
    return [draw_command(state) for state in states]


__all__ = ["ARROW_HEAD_LENGTH", "arrow_head", "draw_command", "draw_commands"]
