"""
Fixed-cadence frame sampler.

A sampler owns at most one periodic asyncio task. Its frame sequence is
lazy, infinite while running, finite once stop() is called, and starts
again at tick 0 on the next start(). Ticks never overlap: the next capture
is scheduled only after the tick handler has returned.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional

from models.frame import FrameData
from observation.base import MediaUnavailableError, ObservationSource

TickHandler = Callable[[Optional[FrameData]], Awaitable[None]]
ErrorHandler = Callable[[MediaUnavailableError], Awaitable[None]]


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class FrameSampler:
    """
    Periodic frame capture from a media handle.

    Pixel sources are read in a worker thread; a read that returns no frame
    raises MediaUnavailableError out of the sequence. Pixel-less sources
    (browser-view fallback) yield None at the same cadence so analysis can
    run in degraded mode.

    Args:
        name: Loop name used in logs and task names.
        cadence_s: Seconds between ticks.
        settle_delay_s: Delay before the first tick after start.
    """

    def __init__(self, name: str, cadence_s: float, settle_delay_s: float = 0.0):
        self.name = name
        self.cadence_s = cadence_s
        self.settle_delay_s = settle_delay_s
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._tick_count = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def tick_count(self) -> int:
        """Ticks produced by the current (or last) sequence."""
        return self._tick_count

    def frames(self, source: ObservationSource) -> AsyncIterator[Optional[FrameData]]:
        """Lazy frame sequence bound to the current generation; ends on stop()."""
        return self._frames(source, self._generation)

    async def _frames(self, source: ObservationSource, generation: int) -> AsyncIterator[Optional[FrameData]]:
        self._tick_count = 0
        if self.settle_delay_s > 0:
            await asyncio.sleep(self.settle_delay_s)

        while generation == self._generation:
            frame = await self._capture(source)
            if generation != self._generation:
                break
            self._tick_count += 1
            yield frame
            if generation != self._generation:
                break
            await asyncio.sleep(self.cadence_s)

    async def _capture(self, source: ObservationSource) -> Optional[FrameData]:
        if not source.has_pixels:
            return None
        frame = await asyncio.to_thread(source.read)
        if frame is None:
            raise MediaUnavailableError(f"{source.source_id} delivered no frame")
        return frame

    def start(
        self,
        source: ObservationSource,
        on_tick: TickHandler,
        on_error: Optional[ErrorHandler] = None,
    ) -> asyncio.Task:
        """Start the sampling loop, stopping any loop already running."""
        self.stop()
        frames = self.frames(source)
        self._task = asyncio.create_task(
            self._run(frames, on_tick, on_error),
            name=f"sampler-{self.name}",
        )
        logging.debug(f"Sampler {self.name} started: cadence={self.cadence_s}s")
        return self._task

    async def _run(
        self,
        frames: AsyncIterator[Optional[FrameData]],
        on_tick: TickHandler,
        on_error: Optional[ErrorHandler],
    ) -> None:
        try:
            async for frame in frames:
                await on_tick(frame)
        except MediaUnavailableError as e:
            logging.warning(f"Sampler {self.name} lost media: {e}")
            if on_error is not None:
                await on_error(e)
        except Exception:
            logging.exception(f"Sampler {self.name} stopped on an unexpected error")

    def stop(self) -> None:
        """
        End the current sequence and cancel its pending timer.

        Safe to call from inside a tick handler: the running task is then
        left to finish its handler instead of being cancelled.
        """
        self._generation += 1
        task, self._task = self._task, None
        if task is None or task.done():
            return
        if task is not _current_task():
            task.cancel()
        logging.debug(f"Sampler {self.name} stopped")
