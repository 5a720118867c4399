"""
Detector backends behind the DetectorPort interface.
"""

from __future__ import annotations

from typing import Any, Dict

from .backend import DetectorPort, load_detector, run_detector
from .cpu_backend import CpuYoloConfig, UltralyticsCpuBackend
from .simulated_backend import SimulatedDetector, SimulatedDetectorConfig


def create_detector_from_config(detection_cfg: Dict[str, Any], mode: str = "live") -> DetectorPort:
    """
    Build a detector from the `detection` config section.

    Args:
        detection_cfg: The `detection` config dict.
        mode: "live" for stream sessions, "file" for uploaded-file analysis.
    """
    backend = detection_cfg.get("backend", "simulated")
    if backend == "yolo":
        yolo_cfg = detection_cfg.get("yolo", {}) or {}
        return UltralyticsCpuBackend(CpuYoloConfig(
            model=yolo_cfg.get("model", "yolov8n.pt"),
            conf_threshold=float(yolo_cfg.get("conf_threshold", 0.25)),
            iou_threshold=float(yolo_cfg.get("iou_threshold", 0.45)),
        ))

    sim_cfg = detection_cfg.get("simulated", {}) or {}
    return SimulatedDetector(SimulatedDetectorConfig.for_mode(
        mode,
        latency_s=float(sim_cfg.get("latency_ms", 0)) / 1000.0,
        seed=sim_cfg.get("seed"),
    ))


__all__ = [
    "DetectorPort",
    "load_detector",
    "run_detector",
    "CpuYoloConfig",
    "UltralyticsCpuBackend",
    "SimulatedDetector",
    "SimulatedDetectorConfig",
    "create_detector_from_config",
]
