"""
Per-tick analysis stages: blank-frame filter, crowd classifier, alert gate.

Within one sampling tick these run strictly in order:
blank filter -> detector -> classifier -> alert gate.
"""

from .alerts import AlertGate, maybe_alert
from .blank_filter import BlankFrameFilter, mean_luminance
from .classifier import CROWD_THRESHOLD, CrowdClassifier, classify

__all__ = [
    "AlertGate",
    "maybe_alert",
    "BlankFrameFilter",
    "mean_luminance",
    "CROWD_THRESHOLD",
    "CrowdClassifier",
    "classify",
]
