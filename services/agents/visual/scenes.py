from __future__ import annotations

import re
from typing import Any


def _has_word(question: str, word: str) -> bool:
    return re.search(rf"\b{re.escape(word)}", question) is not None


def _solar_scene() -> dict[str, Any]:
    return {
        "text": "The Sun is at the center; planets orbit due to gravity.",
        "visualization": {
            "id": "vis_solar",
            "duration": 6000,
            "fps": 30,
            "layers": [
                {"id": "sun", "type": "circle", "props": {"x": 320, "y": 200, "r": 40, "fill": "#f39c12"}, "animations": []},
                {
                    "id": "earth",
                    "type": "circle",
                    "props": {"x": 220, "y": 200, "r": 12, "fill": "#3498db"},
                    "animations": [{"property": "orbit", "centerX": 320, "centerY": 200, "radius": 100, "duration": 6000}],
                },
            ],
        },
    }


def _newton_scene() -> dict[str, Any]:
    return {
        "text": "An object remains at rest or moves uniformly unless acted on by a net external force.",
        "visualization": {
            "id": "vis_newton",
            "duration": 4500,
            "fps": 30,
            "layers": [
                {
                    "id": "ball",
                    "type": "circle",
                    "props": {"x": 120, "y": 220, "r": 18, "fill": "#3498db"},
                    "animations": [{"property": "x", "from": 120, "to": 520, "start": 0, "end": 3500}],
                },
                {"id": "arrow", "type": "arrow", "props": {"x": 90, "y": 220, "dx": 40, "dy": 0, "color": "#e74c3c"}, "animations": []},
            ],
        },
    }


def _dna_scene() -> dict[str, Any]:
    return {
        "text": "DNA stores genetic information using sequences of A, T, C, and G bases.",
        "visualization": {
            "id": "vis_dna",
            "duration": 5000,
            "fps": 30,
            "layers": [
                {
                    "id": "dnaAnim",
                    "type": "lottie",
                    "props": {"url": "/animations/dna.json", "x": 430, "y": 140, "width": 180, "height": 180, "loop": True},
                    "animations": [],
                },
                {
                    "id": "dot",
                    "type": "circle",
                    "props": {"x": 120, "y": 220, "r": 14, "fill": "#2ecc71"},
                    "animations": [{"property": "x", "from": 120, "to": 360, "start": 400, "end": 2800}],
                },
            ],
        },
    }


def _generic_scene(question: str) -> dict[str, Any]:
    subject = question.strip() or "your question"
    return {
        "text": f"Here's a clear explanation of “{subject}”.",
        "visualization": {
            "id": "vis_generic",
            "duration": 5000,
            "fps": 30,
            "layers": [
                {
                    "id": "ball",
                    "type": "circle",
                    "props": {"x": 160, "y": 220, "r": 16, "fill": "#3498db"},
                    "animations": [{"property": "x", "from": 160, "to": 480, "start": 300, "end": 3200}],
                },
                {"id": "arrow", "type": "arrow", "props": {"x": 200, "y": 220, "dx": 200, "dy": 0, "color": "#e74c3c"}, "animations": []},
            ],
        },
    }


def canned_answer(question: str) -> dict[str, Any]:
    """Offline answer keyed on the topic of ``question``, in the model wire shape."""
    q = (question or "").lower()
    if _has_word(q, "solar"):
        return _solar_scene()
    if _has_word(q, "newton"):
        return _newton_scene()
    if _has_word(q, "dna"):
        return _dna_scene()
    return _generic_scene(question or "")


__all__ = ["canned_answer"]
