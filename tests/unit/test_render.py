from __future__ import annotations

import math

import pytest

from services.visualization.evaluate import evaluate
from services.visualization.model import RenderState
from services.visualization.render import ARROW_HEAD_LENGTH, arrow_head, draw_command, draw_commands
from services.visualization.sanitize import sanitize


def test_arrow_head_points_along_shaft() -> None:
    tip, left, right = arrow_head(90, 220, 40, 0)
    assert tip == (130, 220)
    for x, y in (left, right):
        assert x == pytest.approx(130 - ARROW_HEAD_LENGTH * math.cos(math.pi / 6))
        assert math.hypot(x - 130, y - 220) == pytest.approx(ARROW_HEAD_LENGTH)
    assert left[1] == pytest.approx(220 + ARROW_HEAD_LENGTH * 0.5)
    assert right[1] == pytest.approx(220 - ARROW_HEAD_LENGTH * 0.5)


def test_arrow_head_handles_zero_length_vector() -> None:
    points = arrow_head(10, 10, 0, 0)
    assert all(math.isfinite(coord) for point in points for coord in point)


def test_draw_commands_follow_layer_order() -> None:
    spec = sanitize(
        {
            "visualization": {
                "layers": [
                    {"id": "sun", "type": "circle", "props": {"x": 320, "y": 200, "r": 30, "fill": "#f1c40f"}},
                    {"id": "force", "type": "arrow"},
                    {"id": "dna", "type": "lottie", "props": {"loop": False}},
                ]
            }
        }
    )
    commands = draw_commands(evaluate(spec, 0))
    assert [cmd["op"] for cmd in commands] == ["circle", "arrow", "embed"]
    circle, arrow, embed = commands
    assert circle == {"op": "circle", "id": "sun", "x": 320, "y": 200, "r": 30, "fill": "#f1c40f"}
    assert arrow["from"] == [90, 220]
    assert arrow["to"] == [130, 220]
    assert len(arrow["head"]) == 3
    assert arrow["line_width"] == 2.5
    assert embed["url"] == "/animations/dna.json"
    assert embed["loop"] is False


def test_draw_command_rejects_unknown_variant() -> None:
    with pytest.raises(ValueError):
        draw_command(RenderState(variant="hexagon", id="h", props={}))
