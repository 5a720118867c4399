"""
Detection and crowd assessment models.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class DetectionResult:
    """
    Output of a detector for one frame.

    Attributes:
        people_count: Number of people found (>= 0).
        confidence: Detector confidence (0-1).
    """
    people_count: int
    confidence: float

    def __post_init__(self) -> None:
        if self.people_count < 0:
            raise ValueError(f"people_count must be >= 0, got {self.people_count}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got {self.confidence}")


@dataclass(frozen=True)
class CrowdStatus:
    """
    Crowd assessment derived from the latest DetectionResult.

    Attributes:
        is_crowded: True if the people count is above the crowd threshold.
        confidence: Confidence carried over from the detection.
        people_count: People count carried over from the detection.
        timestamp: Unix timestamp of classification.
    """
    is_crowded: bool
    confidence: float
    people_count: int
    timestamp: float = field(default_factory=time.time)

    @property
    def label(self) -> str:
        return "Crowded" if self.is_crowded else "Normal"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_crowded": self.is_crowded,
            "confidence": self.confidence,
            "people_count": self.people_count,
            "timestamp": self.timestamp,
            "label": self.label,
        }


@dataclass(frozen=True)
class AlertEvent:
    """
    Notification emitted by the alert gate. Delivered to listeners, never stored.

    Attributes:
        people_count: People count that triggered the alert.
        confidence: Confidence of the triggering detection.
        timestamp: Unix timestamp of the triggering classification.
        origin: "stream" for live sessions, "file" for uploaded videos.
        message: Human-readable alert text.
    """
    people_count: int
    confidence: float
    timestamp: float
    origin: str = "stream"
    message: str = "Crowd detected!"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "people_count": self.people_count,
            "confidence": self.confidence,
            "timestamp": self.timestamp,
            "origin": self.origin,
            "message": self.message,
        }
