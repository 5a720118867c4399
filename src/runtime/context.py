from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict

from inference import create_detector_from_config
from models.config import Config
from observation.factory import create_file_source, create_stream_source
from .file_analysis import FileAnalyzer
from .session import StreamSession


@dataclass
class RuntimeContext:
    """Holds runtime state and service references; avoids global singletons."""

    config: dict
    session: StreamSession
    file_analyzer: FileAnalyzer
    start_time: float = field(default_factory=time.time)

    def uptime_seconds(self) -> float:
        return time.time() - self.start_time

    def get_status(self) -> Dict[str, Any]:
        status = self.session.snapshot()
        status["file_analysis"] = {
            "busy": self.file_analyzer.is_busy,
            "progress": self.file_analyzer.progress,
        }
        return status


def build_runtime_context(config: dict) -> RuntimeContext:
    """Wire the session and file analyzer from a merged config dict."""
    cfg = Config.from_dict(config)
    detection_cfg = config.get("detection", {}) or {}

    session = StreamSession(
        detector=create_detector_from_config(detection_cfg, mode="live"),
        source_factory=lambda url, mode: create_stream_source(url, mode, cfg.stream),
        sampling=cfg.sampling,
        alerts_enabled=cfg.alerts_enabled,
    )
    file_analyzer = FileAnalyzer(
        detector=create_detector_from_config(detection_cfg, mode="file"),
        source_factory=create_file_source,
        sample_frames=cfg.upload.sample_frames,
        blank_threshold=cfg.sampling.blank_threshold,
    )
    return RuntimeContext(
        config=config,
        session=session,
        file_analyzer=file_analyzer,
    )
