"""
ObservationSource interface for media handles.

A media handle is whatever the session binds a stream (or an uploaded file)
to. Two families exist:
- Pixel sources (OpenCV capture of an MJPEG/HTTP feed, RTSP stream, or a
  local video file) that return real frames.
- View sources (the browser-rendered view used as fallback transport) that
  can be opened and checked but expose no pixels.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional

from models.frame import FrameData


class MediaUnavailableError(RuntimeError):
    """Raised when a media handle cannot be opened or stops delivering media."""


@dataclass
class ObservationConfig:
    """
    Base configuration for observation sources.

    Attributes:
        source_id: Unique identifier for this source (e.g., "stream", "upload").
    """
    source_id: str = "default"


class ObservationSource(ABC):
    """
    Abstract base class for media handles.

    Lifecycle:
        1. Create instance with config
        2. Call open() to bind the media (raises MediaUnavailableError)
        3. Call read() repeatedly to get frames (pixel sources only)
        4. Call close() to release resources

    Can also be used as a context manager:
        with OpenCVSource(config) as source:
            for frame_data in source:
                process(frame_data)
    """

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        """Unique identifier for this source."""
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        """Whether the source is currently open and ready to read."""
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Current frame index (number of frames read since open)."""
        return self._frame_index

    @property
    def has_pixels(self) -> bool:
        """Whether read() can deliver real pixel data."""
        return True

    @abstractmethod
    def open(self) -> None:
        """
        Open/bind the media handle.

        Must be called before read(). Blocking; callers on the event loop
        run it in a worker thread.

        Raises:
            MediaUnavailableError: If the media cannot be opened.
        """
        pass

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """
        Read the next frame from the source.

        Returns:
            FrameData for the captured frame, or None if no frame is
            available (end of file, transport failure, pixel-less source).
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Release the media handle. Safe to call multiple times.
        """
        pass

    def seek(self, frame_number: int) -> bool:
        """
        Position the source at an absolute frame number.

        Returns False if the source is not seekable (live streams).
        """
        return False

    def frame_count(self) -> Optional[int]:
        """Total number of frames, if known (video files only)."""
        return None

    def __enter__(self) -> "ObservationSource":
        """Context manager entry - opens the source."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - closes the source."""
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        """
        Iterate over frames until the source is exhausted.

        The source must be open before iterating.
        """
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")

        while True:
            frame_data = self.read()
            if frame_data is None:
                break
            yield frame_data
