from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ConnectRequest(BaseModel):
    url: str = Field(..., description="Stream URL as entered by the operator")
    kind: str = Field("http", description="http|rtsp")


class AlertsRequest(BaseModel):
    enabled: bool


class ConnectionStatusModel(BaseModel):
    state: str = Field(..., description="idle|connecting|connected_primary|connected_fallback|disconnected|error")
    reason: Optional[str] = Field(None, description="unreachable|fallback-failed (error state only)")
    error_message: Optional[str] = None


class StreamSourceModel(BaseModel):
    raw_url: str
    kind: str
    canonical_url: str
    transport_mode: str = Field(..., description="primary|fallback")


class CrowdStatusModel(BaseModel):
    is_crowded: bool
    confidence: float
    people_count: int
    timestamp: float
    label: str = Field(..., description="Crowded|Normal")


class AlertModel(BaseModel):
    people_count: int
    confidence: float
    timestamp: float
    origin: str
    message: str


class FileAnalysisProgress(BaseModel):
    busy: bool
    progress: int = Field(0, description="0-100")


class SessionStatusResponse(BaseModel):
    """
    Session snapshot for frontend polling.
    """
    connection: ConnectionStatusModel
    stream: Optional[StreamSourceModel] = None
    crowd_status: Optional[CrowdStatusModel] = None
    no_signal: bool = False
    alerts_enabled: bool = True
    detector_ready: bool = False
    last_outcome: Optional[str] = Field(None, description="Outcome of the last analysis tick")
    file_analysis: FileAnalysisProgress


class StreamViewResponse(BaseModel):
    """What the client should play for the current stream."""
    url: str
    kind: str
    transport_mode: str
    preview_url: Optional[str] = Field(None, description="Server-side MJPEG preview (primary transport only)")


class AlertsResponse(BaseModel):
    alerts_enabled: bool


class FileAnalysisResponse(BaseModel):
    status: Optional[CrowdStatusModel] = None
    frames_sampled: int
    blank_frames: int
    alert: Optional[AlertModel] = None


class DemoStreamModel(BaseModel):
    id: str
    name: str
    url: str


class DemoStreamsResponse(BaseModel):
    streams: List[DemoStreamModel] = Field(default_factory=list)
    default_kind: str = "http"


class HealthResponse(BaseModel):
    timestamp: float
    platform: str
    python: str
    uptime_seconds: float
    detector_backend: str
    detector_ready: bool
    log_path: Optional[str] = None
    disk: Dict[str, object] = Field(default_factory=dict)
