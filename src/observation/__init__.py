"""
Observation layer: media handles and transport resolution.

This layer abstracts where frames come from (HTTP/MJPEG feed, RTSP stream,
browser-view fallback, uploaded file) from the sampling and analysis code.
Each source implements the ObservationSource interface and returns
FrameData objects.
"""

from .base import MediaUnavailableError, ObservationSource, ObservationConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig
from .view_source import ViewSource, ViewSourceConfig
from .factory import create_file_source, create_stream_source
from .transport import derive_fallback, normalize

__all__ = [
    "MediaUnavailableError",
    "ObservationSource",
    "ObservationConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "ViewSource",
    "ViewSourceConfig",
    "create_file_source",
    "create_stream_source",
    "derive_fallback",
    "normalize",
]
