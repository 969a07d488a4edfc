from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

from services.visualization.evaluate import evaluate
from services.visualization.model import RenderState, VisualizationSpec

logger = logging.getLogger("chatvis.playback")

DrawCallback = Callable[[list[RenderState]], Awaitable[None]]
Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]

IDLE = "idle"
PLAYING = "playing"
PAUSED = "paused"
FINISHED = "finished"
STOPPED = "stopped"


class PlaybackDriver:
    """Cooperative sampling loop feeding evaluator output to a drawing surface.

    Each play/pause/resume/stop bumps a generation counter. A running loop
    compares its own generation before every sample and exits once it is
    stale, so two loops never draw onto the same surface. Animation time is
    derived from ``clock`` (seconds) and only advances while playing; the
    first sample of every loop lands exactly on the retained offset.

    A draw that raises stops playback. The error is logged and re-raised
    from ``wait``.
    """

    def __init__(
        self,
        draw: DrawCallback,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
        frame_interval_s: float = 1.0 / 60.0,
    ) -> None:
        self._draw = draw
        self._clock = clock
        self._sleep = sleep
        self._frame_interval_s = max(0.001, float(frame_interval_s))
        self._generation = 0
        self._spec: VisualizationSpec | None = None
        self._offset_ms = 0.0
        self._started_at: float | None = None
        self._task: asyncio.Task[None] | None = None
        self.state = IDLE
        self.last_t: float | None = None
        self.error: Exception | None = None

    @property
    def spec(self) -> VisualizationSpec | None:
        return self._spec

    @property
    def generation(self) -> int:
        return self._generation

    def elapsed_ms(self) -> float:
        if self._spec is None:
            return 0.0
        elapsed = self._offset_ms
        if self._started_at is not None:
            elapsed += (self._clock() - self._started_at) * 1000.0
        return min(max(elapsed, 0.0), float(self._spec.duration_ms))

    def play(self, spec: VisualizationSpec) -> None:
        self._cancel_pending()
        self._spec = spec
        self._offset_ms = 0.0
        self.last_t = None
        self._start_loop()

    def pause(self) -> None:
        if self.state != PLAYING:
            return
        self._offset_ms = self.elapsed_ms()
        self._started_at = None
        self._cancel_pending()
        self.state = PAUSED

    def resume(self) -> None:
        if self.state != PAUSED or self._spec is None:
            return
        self._start_loop()

    async def stop(self) -> None:
        task = self._task
        self._cancel_pending()
        self._started_at = None
        self.state = STOPPED
        if task is not None and task is not asyncio.current_task():
            await asyncio.wait({task})

    async def wait(self) -> None:
        """Wait for the current loop to end; re-raise the error that stopped it, if any."""
        task = self._task
        if task is not None:
            await asyncio.wait({task})
        if self.error is not None:
            raise self.error

    def _start_loop(self) -> None:
        self._generation += 1
        self._started_at = None
        self.error = None
        self.state = PLAYING
        self._task = asyncio.get_running_loop().create_task(
            self._run(self._generation),
            name=f"chatvis-playback-{self._generation}",
        )

    def _cancel_pending(self) -> None:
        self._generation += 1
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        if task is not asyncio.current_task():
            task.cancel()

    async def _run(self, generation: int) -> None:
        spec = self._spec
        if spec is None or generation != self._generation:
            return
        self._started_at = self._clock()
        t = self._offset_ms
        try:
            while generation == self._generation:
                self.last_t = t
                await self._draw(evaluate(spec, t))
                if generation != self._generation:
                    return
                if t >= spec.duration_ms:
                    self._offset_ms = float(spec.duration_ms)
                    self._started_at = None
                    self.state = FINISHED
                    logger.debug("playback finished spec=%s generation=%s", spec.id, generation)
                    return
                await self._sleep(self._frame_interval_s)
                t = self.elapsed_ms()
        except Exception as exc:  # noqa: BLE001
            logger.exception("draw failed spec=%s generation=%s", spec.id, generation)
            if generation != self._generation:
                return
            self._offset_ms = self.elapsed_ms()
            self._started_at = None
            self.state = STOPPED
            self.error = exc


__all__ = ["FINISHED", "IDLE", "PAUSED", "PLAYING", "STOPPED", "PlaybackDriver"]
