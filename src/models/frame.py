"""
FrameData model for frames captured at a sampling tick.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np


@dataclass
class FrameData:
    """
    A single captured frame and its capture metadata.

    Frames are ephemeral: the sampling tick that captured one owns it and
    drops it once classification is done.

    Attributes:
        frame: The raw pixel buffer (H x W x C, BGR as delivered by OpenCV,
            or H x W for grayscale sources).
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Unix timestamp when the frame was captured.
        frame_index: Sequential frame number since the source was opened.
        source: Identifier for the media handle that produced the frame.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float = field(default_factory=time.time)
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: Optional[float] = None,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        """Create FrameData from a numpy array, reading size from its shape."""
        h, w = frame.shape[:2]
        return cls(
            frame=frame,
            width=w,
            height=h,
            timestamp=timestamp if timestamp is not None else time.time(),
            frame_index=frame_index,
            source=source,
        )

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    @property
    def pixel_count(self) -> int:
        return self.width * self.height
