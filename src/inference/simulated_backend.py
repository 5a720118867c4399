"""
Simulated detector (development path).

Stands in for a real person detector: returns a pseudo-random people count
and confidence after a simulated inference latency. The calibration ranges
differ between live streams and uploaded files.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Optional, Tuple

from models.crowd import DetectionResult
from models.frame import FrameData

LIVE_CONFIDENCE_RANGE = (0.70, 0.95)
FILE_CONFIDENCE_RANGE = (0.85, 0.90)


@dataclass(frozen=True)
class SimulatedDetectorConfig:
    min_people: int = 5
    max_people: int = 54
    confidence_range: Tuple[float, float] = LIVE_CONFIDENCE_RANGE
    latency_s: float = 0.0
    seed: Optional[int] = None

    @classmethod
    def for_mode(cls, mode: str, latency_s: float = 0.0, seed: Optional[int] = None) -> "SimulatedDetectorConfig":
        conf_range = FILE_CONFIDENCE_RANGE if mode == "file" else LIVE_CONFIDENCE_RANGE
        return cls(confidence_range=conf_range, latency_s=latency_s, seed=seed)


class SimulatedDetector:
    """Placeholder detector producing randomized results; accepts null frames."""

    def __init__(self, cfg: SimulatedDetectorConfig):
        self.cfg = cfg
        self._rng = random.Random(cfg.seed)

    async def detect(self, frame: Optional[FrameData]) -> DetectionResult:
        if self.cfg.latency_s > 0:
            await asyncio.sleep(self.cfg.latency_s)

        people_count = self._rng.randint(self.cfg.min_people, self.cfg.max_people)
        lo, hi = self.cfg.confidence_range
        confidence = lo + self._rng.random() * (hi - lo)
        return DetectionResult(people_count=people_count, confidence=confidence)
