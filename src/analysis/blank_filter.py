"""
Blank-frame filter.

A frame whose mean luminance is below the threshold carries no usable
image (lens cap, dead encoder, black test pattern) and is reported as
"no signal" instead of being handed to the detector.
"""

from __future__ import annotations

from typing import Union

import numpy as np

from models.frame import FrameData

DEFAULT_BLANK_THRESHOLD = 10.0


def mean_luminance(frame: Union[FrameData, np.ndarray]) -> float:
    """
    Mean of the per-pixel RGB average over all pixels, on a 0-255 scale.

    An alpha channel, if present, is ignored. Grayscale frames are averaged
    directly.
    """
    pixels = frame.frame if isinstance(frame, FrameData) else frame
    if pixels.size == 0:
        return 0.0
    if pixels.ndim == 3:
        pixels = pixels[..., :3]
    return float(np.mean(pixels, dtype=np.float64))


class BlankFrameFilter:
    def __init__(self, threshold: float = DEFAULT_BLANK_THRESHOLD):
        self.threshold = threshold

    def is_blank(self, frame: Union[FrameData, np.ndarray]) -> bool:
        return mean_luminance(frame) < self.threshold
