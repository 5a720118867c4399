"""
Pytest configuration and shared fixtures.
"""

import asyncio
import os
import sys
import time

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.config import SamplingConfig  # noqa: E402
from models.crowd import DetectionResult  # noqa: E402
from models.frame import FrameData  # noqa: E402
from observation.base import MediaUnavailableError, ObservationConfig, ObservationSource  # noqa: E402


def make_frame(value: int = 128, width: int = 32, height: int = 24) -> np.ndarray:
    """Uniform BGR frame with every channel set to `value`."""
    return np.full((height, width, 3), value, dtype=np.uint8)


class FakeSource(ObservationSource):
    """
    In-memory media handle.

    Live mode (default) repeats its last frame forever; set `fail_reads`
    to simulate a dropped feed. File mode (`seekable=True`) supports
    seek() and frame_count() over the given frames.
    """

    def __init__(self, frames=None, source_id="fake", fail_open=False,
                 has_pixels=True, seekable=False):
        super().__init__(ObservationConfig(source_id=source_id))
        self._frames = list(frames) if frames is not None else [make_frame()]
        self._pos = 0
        self.fail_open = fail_open
        self.fail_reads = False
        self._has_pixels = has_pixels
        self.seekable = seekable
        self.open_calls = 0
        self.close_calls = 0

    @property
    def has_pixels(self) -> bool:
        return self._has_pixels

    def open(self) -> None:
        self.open_calls += 1
        if self.fail_open:
            raise MediaUnavailableError(f"{self.source_id} unreachable")
        self._is_open = True
        self._pos = 0

    def read(self):
        if not self._is_open or self.fail_reads or not self._has_pixels:
            return None
        if self._pos >= len(self._frames):
            if self.seekable:
                return None
            self._pos = len(self._frames) - 1
        frame = self._frames[self._pos]
        self._pos += 1
        self._frame_index += 1
        return FrameData.from_numpy(frame, frame_index=self._frame_index, source=self.source_id)

    def seek(self, frame_number: int) -> bool:
        if not self.seekable or not 0 <= frame_number < len(self._frames):
            return False
        self._pos = frame_number
        return True

    def frame_count(self):
        return len(self._frames) if self.seekable else None

    def close(self) -> None:
        self.close_calls += 1
        self._is_open = False


class FakeDetector:
    """
    Detector returning queued results (last one repeats).

    If `gate` is set, detect() waits for it before returning so tests can
    interleave session changes with an in-flight detection.
    """

    def __init__(self, results=None, error=None):
        self.results = list(results) if results else [DetectionResult(people_count=3, confidence=0.8)]
        self.error = error
        self.frames = []
        self.gate = None

    @property
    def calls(self) -> int:
        return len(self.frames)

    async def detect(self, frame):
        self.frames.append(frame)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


async def wait_for(predicate, timeout: float = 2.0, interval: float = 0.005) -> None:
    """Poll until predicate() is true or fail the test."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            pytest.fail("Condition not met before timeout")
        await asyncio.sleep(interval)


@pytest.fixture
def fast_sampling():
    """Sampling cadences short enough for tests."""
    return SamplingConfig(
        preview_cadence_ms=5,
        analysis_cadence_ms=5,
        settle_delay_ms=0,
        blank_threshold=10.0,
    )


@pytest.fixture
def idle_sampling():
    """Sampling that never ticks during a test; ticks are driven by hand."""
    return SamplingConfig(
        preview_cadence_ms=60_000,
        analysis_cadence_ms=60_000,
        settle_delay_ms=60_000,
        blank_threshold=10.0,
    )


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
stream:
  default_kind: http
  rtsp_transport: tcp
  open_timeout_s: 5

sampling:
  preview_cadence_ms: 1000
  analysis_cadence_ms: 2000
  settle_delay_ms: 500
  blank_threshold: 10

detection:
  backend: simulated
  simulated:
    latency_ms: 0
    seed: 7

upload:
  sample_frames: 5

alerts:
  enabled: true

demo_streams:
  - id: cam1
    name: "Main Entrance"
    url: "http://demo/cam1"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "stream": {
            "default_kind": "http",
            "secrets_file": None,
            "rtsp_transport": "tcp",
            "open_timeout_s": 5,
        },
        "sampling": {
            "preview_cadence_ms": 1000,
            "analysis_cadence_ms": 2000,
            "settle_delay_ms": 500,
            "blank_threshold": 10,
        },
        "detection": {
            "backend": "simulated",
            "simulated": {"latency_ms": 0, "seed": 7},
        },
        "upload": {"sample_frames": 5},
        "alerts": {"enabled": True},
        "demo_streams": [
            {"id": "cam1", "name": "Main Entrance", "url": "http://demo/cam1"},
        ],
        "web": {"host": "127.0.0.1", "port": 5000},
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
