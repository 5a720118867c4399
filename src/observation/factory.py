"""
Factories that bind URLs and files to media handles.
"""

from __future__ import annotations

from typing import Optional

from models.config import StreamConfig
from models.connection import TransportMode
from .base import ObservationSource
from .opencv_source import OpenCVSource, OpenCVSourceConfig
from .rtsp_utils import inject_rtsp_credentials
from .view_source import ViewSource, ViewSourceConfig


def create_stream_source(
    url: str,
    transport_mode: TransportMode,
    stream_cfg: Optional[StreamConfig] = None,
) -> ObservationSource:
    """
    Create the media handle for a canonical stream URL.

    Primary transport decodes the feed with OpenCV; fallback transport
    binds the browser-view endpoint, which has no pixel access.
    """
    cfg = stream_cfg or StreamConfig()
    if transport_mode is TransportMode.FALLBACK:
        return ViewSource(ViewSourceConfig(
            source_id="stream-fallback",
            url=url,
            timeout_s=cfg.open_timeout_s,
        ))

    return OpenCVSource(OpenCVSourceConfig(
        source_id="stream",
        device_id=inject_rtsp_credentials(url, cfg.secrets_file),
        rtsp_transport=cfg.rtsp_transport,
        open_timeout_s=cfg.open_timeout_s,
    ))


def create_file_source(path: str) -> ObservationSource:
    """Create the media handle for an uploaded video file."""
    return OpenCVSource(OpenCVSourceConfig(source_id="upload", device_id=path))
