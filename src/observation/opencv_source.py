"""
OpenCV-based observation source.

Supports:
- HTTP/MJPEG feeds (device_id as str URL, primary transport)
- RTSP/IP cameras (device_id as str URL)
- Local video files (device_id as file path, uploaded-file analysis)
"""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Optional, Union

import cv2

from models.frame import FrameData
from .base import MediaUnavailableError, ObservationConfig, ObservationSource
from .rtsp_utils import sanitize_url


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Configuration for OpenCV-based observation sources.

    Attributes:
        device_id: Stream URL (str), file path (str) or camera index (int).
        rtsp_transport: Transport protocol for RTSP ("tcp" or "udp").
        buffer_size: OpenCV capture buffer size (reduces latency for live feeds).
        open_timeout_s: Timeout handed to the FFmpeg backend when opening.
    """
    device_id: Union[int, str] = 0
    rtsp_transport: str = "tcp"
    buffer_size: int = 1
    open_timeout_s: float = 10.0


class OpenCVSource(ObservationSource):
    """
    OpenCV-based media handle for live streams and video files.

    Wraps cv2.VideoCapture and returns FrameData objects. Reads are
    serialized with a lock because the preview and analysis loops share
    one handle from worker threads.

    Example:
        config = OpenCVSourceConfig(device_id="http://cam:8080/videofeed")
        with OpenCVSource(config) as source:
            frame_data = source.read()
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._read_lock = threading.Lock()

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def is_rtsp(self) -> bool:
        """Check if this is an RTSP stream."""
        return isinstance(self.device_id, str) and (
            self.device_id.startswith("rtsp://") or
            self.device_id.startswith("rtsps://")
        )

    @property
    def is_file(self) -> bool:
        """Check if this is a local video file."""
        return (
            isinstance(self.device_id, str) and
            not self.is_rtsp and
            os.path.exists(self.device_id)
        )

    def open(self) -> None:
        """Open the media; a single attempt, no retry loop."""
        if self._is_open:
            return

        if self.is_rtsp:
            logging.info(f"Setting RTSP transport to: {self._opencv_config.rtsp_transport}")
            os.environ["OPENCV_FFMPEG_CAPTURE_OPTIONS"] = (
                f"rtsp_transport;{self._opencv_config.rtsp_transport}"
            )

        timeout_ms = int(self._opencv_config.open_timeout_s * 1000)
        cap = cv2.VideoCapture(
            self.device_id,
            cv2.CAP_ANY,
            [cv2.CAP_PROP_OPEN_TIMEOUT_MSEC, timeout_ms],
        )
        if not cap.isOpened():
            cap.release()
            raise MediaUnavailableError(
                f"Failed to open media {sanitize_url(self.device_id)}"
            )

        if not self.is_file:
            cap.set(cv2.CAP_PROP_BUFFERSIZE, self._opencv_config.buffer_size)

        self._cap = cap
        self._is_open = True
        self._frame_index = 0

        logging.info(
            f"OpenCVSource opened: source_id={self.source_id}, "
            f"device={sanitize_url(self.device_id)}"
        )

    def read(self) -> Optional[FrameData]:
        """Read the next frame; None at end of file or on transport failure."""
        with self._read_lock:
            if not self._is_open or self._cap is None:
                return None

            ret, frame = self._cap.read()
            if not ret or frame is None:
                if self.is_file:
                    logging.info("End of video file reached")
                else:
                    logging.warning(f"Failed to read frame from {sanitize_url(self.device_id)}")
                return None

            self._frame_index += 1
            return FrameData(
                frame=frame,
                width=frame.shape[1],
                height=frame.shape[0],
                timestamp=time.time(),
                frame_index=self._frame_index,
                source=self.source_id,
            )

    def seek(self, frame_number: int) -> bool:
        """Seek to an absolute frame number (video files only)."""
        with self._read_lock:
            if not self.is_file or self._cap is None:
                return False
            return bool(self._cap.set(cv2.CAP_PROP_POS_FRAMES, frame_number))

    def frame_count(self) -> Optional[int]:
        if not self.is_file or self._cap is None:
            return None
        count = int(self._cap.get(cv2.CAP_PROP_FRAME_COUNT))
        return count if count > 0 else None

    def close(self) -> None:
        """Close the media and release resources."""
        with self._read_lock:
            if self._cap is not None:
                self._cap.release()
                self._cap = None
            was_open = self._is_open
            self._is_open = False
        if was_open:
            logging.info(f"OpenCVSource closed: source_id={self.source_id}")
