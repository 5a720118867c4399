"""
Uploaded-file analysis.

Samples a handful of frames spread evenly across a local video file and
folds the per-frame detections into one crowd assessment. Runs independently
of the live stream session: its result never replaces the session's
CrowdStatus.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from analysis.alerts import AlertGate
from analysis.blank_filter import BlankFrameFilter
from analysis.classifier import CrowdClassifier
from inference.backend import DetectorPort, run_detector
from models.crowd import AlertEvent, CrowdStatus, DetectionResult
from models.frame import FrameData
from observation.base import MediaUnavailableError, ObservationSource
from .errors import AnalysisBusyError

FileSourceFactory = Callable[[str], ObservationSource]
ProgressCallback = Callable[[int], None]


@dataclass
class FileAnalysisResult:
    """
    Attributes:
        status: Crowd assessment, or None if every sampled frame was blank.
        frames_sampled: Frames read from the file.
        blank_frames: Sampled frames rejected by the blank filter.
        alert: Alert raised for this file, if any.
    """
    status: Optional[CrowdStatus]
    frames_sampled: int
    blank_frames: int
    alert: Optional[AlertEvent] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.to_dict() if self.status else None,
            "frames_sampled": self.frames_sampled,
            "blank_frames": self.blank_frames,
            "alert": self.alert.to_dict() if self.alert else None,
        }


def sample_positions(frame_count: Optional[int], samples: int) -> Optional[List[int]]:
    """Evenly spaced frame numbers over [0, frame_count), or None if the length is unknown."""
    if not frame_count or frame_count <= 0:
        return None
    positions = np.linspace(0, frame_count - 1, num=min(samples, frame_count))
    return sorted({int(p) for p in np.round(positions)})


class FileAnalyzer:
    """
    One-at-a-time analyzer for uploaded video files.

    Args:
        detector: File-mode detector.
        source_factory: Builds a media handle for a local file path.
        sample_frames: Number of frames to sample per file.
        blank_threshold: Mean luminance below which a frame is skipped.
    """

    def __init__(
        self,
        detector: DetectorPort,
        source_factory: FileSourceFactory,
        sample_frames: int = 5,
        blank_threshold: float = 10.0,
    ):
        self.detector = detector
        self.source_factory = source_factory
        self.sample_frames = max(1, int(sample_frames))
        self.blank_filter = BlankFrameFilter(blank_threshold)
        self.classifier = CrowdClassifier()
        self.alert_gate = AlertGate(origin="file")

        self.progress = 0
        self._busy = False
        self._listeners: List[ProgressCallback] = []

    @property
    def is_busy(self) -> bool:
        return self._busy

    def add_progress_listener(self, listener: ProgressCallback) -> None:
        self._listeners.append(listener)

    def _set_progress(self, value: int) -> None:
        self.progress = max(0, min(100, int(value)))
        for listener in list(self._listeners):
            listener(self.progress)

    async def analyze(self, path: str, alerts_enabled: bool = True) -> FileAnalysisResult:
        """
        Analyze a local video file.

        Raises:
            AnalysisBusyError: Another analysis is in progress.
            MediaUnavailableError: The file cannot be opened or holds no frames.
        """
        if self._busy:
            raise AnalysisBusyError("A file analysis is already running")
        self._busy = True
        self._set_progress(0)
        try:
            source = self.source_factory(path)
            await asyncio.to_thread(source.open)
            try:
                result = await self._analyze_source(source, alerts_enabled)
            finally:
                await asyncio.to_thread(source.close)
            self._set_progress(100)
            return result
        finally:
            self._busy = False

    async def _analyze_source(self, source: ObservationSource, alerts_enabled: bool) -> FileAnalysisResult:
        frame_count = await asyncio.to_thread(source.frame_count)
        positions = sample_positions(frame_count, self.sample_frames)
        total = len(positions) if positions is not None else self.sample_frames

        detections: List[DetectionResult] = []
        sampled = 0
        blank = 0
        for i in range(total):
            position = positions[i] if positions is not None else None
            frame = await asyncio.to_thread(self._read_at, source, position)
            if frame is None:
                break
            sampled += 1

            if self.blank_filter.is_blank(frame):
                blank += 1
            else:
                try:
                    detections.append(await run_detector(self.detector, frame))
                except Exception:
                    logging.exception(f"Detector failed on frame {frame.frame_index}")
            self._set_progress(100 * (i + 1) / (total + 1))

        if sampled == 0:
            raise MediaUnavailableError(f"No readable frames in {source.source_id}")

        logging.info(f"File analysis: sampled={sampled}, blank={blank}, detections={len(detections)}")
        if not detections:
            return FileAnalysisResult(status=None, frames_sampled=sampled, blank_frames=blank)

        combined = DetectionResult(
            people_count=int(round(float(np.mean([d.people_count for d in detections])))),
            confidence=float(np.mean([d.confidence for d in detections])),
        )
        status = self.classifier.classify(combined)
        alert = self.alert_gate.maybe_alert(status, alerts_enabled)
        if alert is not None:
            logging.warning(f"ALERT: {alert.message}")
        return FileAnalysisResult(status=status, frames_sampled=sampled, blank_frames=blank, alert=alert)

    @staticmethod
    def _read_at(source: ObservationSource, position: Optional[int]) -> Optional[FrameData]:
        if position is not None and not source.seek(position):
            return None
        return source.read()
