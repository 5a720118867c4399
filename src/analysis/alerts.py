"""
Alert gate.

Level-triggered: an alert fires on every classification where alerts are
enabled and the area is crowded, not only when the crowd first appears.
"""

from __future__ import annotations

from typing import Optional

from models.crowd import AlertEvent, CrowdStatus


def maybe_alert(status: CrowdStatus, alerts_enabled: bool, origin: str = "stream") -> Optional[AlertEvent]:
    if not (alerts_enabled and status.is_crowded):
        return None
    return AlertEvent(
        people_count=status.people_count,
        confidence=status.confidence,
        timestamp=status.timestamp,
        origin=origin,
        message=f"Crowd detected! Approximately {status.people_count} people.",
    )


class AlertGate:
    def __init__(self, origin: str = "stream"):
        self.origin = origin

    def maybe_alert(self, status: CrowdStatus, alerts_enabled: bool) -> Optional[AlertEvent]:
        return maybe_alert(status, alerts_enabled, origin=self.origin)
