from services.visualization.evaluate import evaluate, sample_times
from services.visualization.extract import extract
from services.visualization.model import (
    RenderState,
    SanitizedAnswer,
    VisualizationSpec,
)
from services.visualization.playback import PlaybackDriver
from services.visualization.render import draw_commands
from services.visualization.sanitize import sanitize, sanitize_answer

__all__ = [
    "PlaybackDriver",
    "RenderState",
    "SanitizedAnswer",
    "VisualizationSpec",
    "draw_commands",
    "evaluate",
    "extract",
    "sample_times",
    "sanitize",
    "sanitize_answer",
]
