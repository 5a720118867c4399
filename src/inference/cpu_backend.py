"""
CPU inference backend (YOLO person counting).

Uses Ultralytics if installed (`pip install crowd-monitor[yolo]`). Inference
runs in a worker thread so the event loop keeps its sampling cadence.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

import numpy as np

from models.crowd import DetectionResult
from models.frame import FrameData

PERSON_CLASS_ID = 0


@dataclass(frozen=True)
class CpuYoloConfig:
    model: str
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45


class UltralyticsCpuBackend:
    """
    Counts `person` detections in a frame.

    A null frame (fallback transport) repeats the last result, or reports
    zero people with zero confidence before any frame has been seen.
    """

    def __init__(self, cfg: CpuYoloConfig):
        self.cfg = cfg
        self._model = None
        self._last: Optional[DetectionResult] = None

    def load(self) -> None:
        try:
            from ultralytics import YOLO  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "Ultralytics is not installed. Install with `pip install ultralytics` "
                "or switch detection.backend to 'simulated'."
            ) from e

        self._model = YOLO(self.cfg.model)

    async def detect(self, frame: Optional[FrameData]) -> DetectionResult:
        if frame is None:
            return self._last or DetectionResult(people_count=0, confidence=0.0)
        result = await asyncio.to_thread(self._predict, frame.frame)
        self._last = result
        return result

    def _predict(self, frame: np.ndarray) -> DetectionResult:
        if self._model is None:
            self.load()

        results = self._model.predict(
            source=frame,
            conf=self.cfg.conf_threshold,
            iou=self.cfg.iou_threshold,
            classes=[PERSON_CLASS_ID],
            verbose=False,
        )
        if not results:
            return DetectionResult(people_count=0, confidence=0.0)

        boxes = getattr(results[0], "boxes", None)
        if boxes is None or len(boxes) == 0:
            return DetectionResult(people_count=0, confidence=0.0)

        conf = boxes.conf.cpu().numpy() if hasattr(boxes.conf, "cpu") else np.asarray(boxes.conf)
        cls = boxes.cls.cpu().numpy() if hasattr(boxes.cls, "cpu") else np.asarray(boxes.cls)
        person_conf = conf[cls.astype(int) == PERSON_CLASS_ID]
        if person_conf.size == 0:
            return DetectionResult(people_count=0, confidence=0.0)

        return DetectionResult(
            people_count=int(person_conf.size),
            confidence=float(np.clip(person_conf.mean(), 0.0, 1.0)),
        )
