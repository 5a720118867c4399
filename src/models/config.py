"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class StreamConfig:
    """Stream acquisition configuration."""
    default_kind: str = "http"
    secrets_file: Optional[str] = None
    rtsp_transport: str = "tcp"
    open_timeout_s: float = 10.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StreamConfig":
        return cls(
            default_kind=d.get("default_kind", "http"),
            secrets_file=d.get("secrets_file"),
            rtsp_transport=d.get("rtsp_transport", "tcp"),
            open_timeout_s=float(d.get("open_timeout_s", 10.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "default_kind": self.default_kind,
            "secrets_file": self.secrets_file,
            "rtsp_transport": self.rtsp_transport,
            "open_timeout_s": self.open_timeout_s,
        }


@dataclass
class SamplingConfig:
    """
    Sampling cadences.

    The preview loop only runs the blank check; the analysis loop runs the
    full blank -> detect -> classify -> alert sequence.
    """
    preview_cadence_ms: int = 1000
    analysis_cadence_ms: int = 2000
    settle_delay_ms: int = 500
    blank_threshold: float = 10.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SamplingConfig":
        return cls(
            preview_cadence_ms=d.get("preview_cadence_ms", 1000),
            analysis_cadence_ms=d.get("analysis_cadence_ms", 2000),
            settle_delay_ms=d.get("settle_delay_ms", 500),
            blank_threshold=d.get("blank_threshold", 10.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "preview_cadence_ms": self.preview_cadence_ms,
            "analysis_cadence_ms": self.analysis_cadence_ms,
            "settle_delay_ms": self.settle_delay_ms,
            "blank_threshold": self.blank_threshold,
        }


@dataclass
class SimulatedConfig:
    """Simulated detector configuration."""
    latency_ms: int = 300
    seed: Optional[int] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SimulatedConfig":
        return cls(
            latency_ms=d.get("latency_ms", 300),
            seed=d.get("seed"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"latency_ms": self.latency_ms, "seed": self.seed}


@dataclass
class YoloConfig:
    """YOLO person detector configuration."""
    model: str = "yolov8n.pt"
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "YoloConfig":
        return cls(
            model=d.get("model", "yolov8n.pt"),
            conf_threshold=d.get("conf_threshold", 0.25),
            iou_threshold=d.get("iou_threshold", 0.45),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "conf_threshold": self.conf_threshold,
            "iou_threshold": self.iou_threshold,
        }


@dataclass
class DetectionConfig:
    """Detection configuration."""
    backend: str = "simulated"
    simulated: SimulatedConfig = field(default_factory=SimulatedConfig)
    yolo: Optional[YoloConfig] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        yolo_dict = d.get("yolo")
        return cls(
            backend=d.get("backend", "simulated"),
            simulated=SimulatedConfig.from_dict(d.get("simulated", {}) or {}),
            yolo=YoloConfig.from_dict(yolo_dict) if yolo_dict else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "backend": self.backend,
            "simulated": self.simulated.to_dict(),
        }
        if self.yolo:
            d["yolo"] = self.yolo.to_dict()
        return d


@dataclass
class UploadConfig:
    """Uploaded-file analysis configuration."""
    sample_frames: int = 5

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "UploadConfig":
        return cls(sample_frames=d.get("sample_frames", 5))

    def to_dict(self) -> Dict[str, Any]:
        return {"sample_frames": self.sample_frames}


@dataclass
class DemoStream:
    """A named demo camera offered to clients."""
    id: str
    name: str
    url: str

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DemoStream":
        return cls(id=str(d["id"]), name=d.get("name", str(d["id"])), url=d["url"])

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "url": self.url}


@dataclass
class WebConfig:
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(host=d.get("host", "0.0.0.0"), port=d.get("port", 5000))

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    stream: StreamConfig = field(default_factory=StreamConfig)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    alerts_enabled: bool = True
    demo_streams: List[DemoStream] = field(default_factory=list)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/crowd_monitor.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        alerts = d.get("alerts", {}) or {}
        return cls(
            stream=StreamConfig.from_dict(d.get("stream", {}) or {}),
            sampling=SamplingConfig.from_dict(d.get("sampling", {}) or {}),
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            upload=UploadConfig.from_dict(d.get("upload", {}) or {}),
            alerts_enabled=bool(alerts.get("enabled", True)),
            demo_streams=[DemoStream.from_dict(s) for s in d.get("demo_streams", []) or []],
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/crowd_monitor.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "stream": self.stream.to_dict(),
            "sampling": self.sampling.to_dict(),
            "detection": self.detection.to_dict(),
            "upload": self.upload.to_dict(),
            "alerts": {"enabled": self.alerts_enabled},
            "demo_streams": [s.to_dict() for s in self.demo_streams],
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
