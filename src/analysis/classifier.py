"""
Crowd classifier: maps a DetectionResult to a CrowdStatus.
"""

from __future__ import annotations

import time
from typing import Callable

from models.crowd import CrowdStatus, DetectionResult

# Single crowd/non-crowd decision boundary: more than this many people is a crowd.
CROWD_THRESHOLD = 10


def classify(result: DetectionResult, now: Callable[[], float] = time.time) -> CrowdStatus:
    return CrowdStatus(
        is_crowded=result.people_count > CROWD_THRESHOLD,
        confidence=result.confidence,
        people_count=result.people_count,
        timestamp=now(),
    )


class CrowdClassifier:
    """Stateless classifier; `clock` is injectable for tests."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock

    def classify(self, result: DetectionResult) -> CrowdStatus:
        return classify(result, now=self._clock)
