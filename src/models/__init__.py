"""
Typed models for the crowd monitor.

These models are the shared vocabulary between the observation layer, the
analysis stages, the stream session, and the web API.
"""

from .frame import FrameData
from .connection import (
    ConnectionState,
    ConnectionStatus,
    StreamKind,
    StreamSource,
    TransportMode,
    REASON_FALLBACK_FAILED,
    REASON_UNREACHABLE,
)
from .crowd import AlertEvent, CrowdStatus, DetectionResult
from .config import (
    Config,
    StreamConfig,
    SamplingConfig,
    DetectionConfig,
    SimulatedConfig,
    YoloConfig,
    UploadConfig,
    DemoStream,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Connection
    "ConnectionState",
    "ConnectionStatus",
    "StreamKind",
    "StreamSource",
    "TransportMode",
    "REASON_FALLBACK_FAILED",
    "REASON_UNREACHABLE",
    # Crowd
    "AlertEvent",
    "CrowdStatus",
    "DetectionResult",
    # Config
    "Config",
    "StreamConfig",
    "SamplingConfig",
    "DetectionConfig",
    "SimulatedConfig",
    "YoloConfig",
    "UploadConfig",
    "DemoStream",
    "WebConfig",
]
