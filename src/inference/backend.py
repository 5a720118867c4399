"""
Detector port.

A detector turns one frame into a DetectionResult. The frame is None when
sampling runs over a pixel-less transport (browser-view fallback); every
detector must still return a result in that case.

Detectors may be synchronous or asynchronous; callers go through
run_detector() so both shapes work.
"""

from __future__ import annotations

import inspect
from typing import Awaitable, Optional, Protocol, Union

from models.crowd import DetectionResult
from models.frame import FrameData


class DetectorPort(Protocol):
    def detect(
        self, frame: Optional[FrameData]
    ) -> Union[DetectionResult, Awaitable[DetectionResult]]:
        ...


async def run_detector(detector: DetectorPort, frame: Optional[FrameData]) -> DetectionResult:
    """Call detector.detect and await the result if it is awaitable."""
    result = detector.detect(frame)
    if inspect.isawaitable(result):
        result = await result
    return result


async def load_detector(detector: DetectorPort) -> None:
    """Run the detector's optional load() hook (model download, warmup)."""
    load = getattr(detector, "load", None)
    if load is None:
        return
    result = load()
    if inspect.isawaitable(result):
        await result
