"""
Browser-view observation source (fallback transport).

When a camera's feed endpoint cannot be decoded directly, the stream is
still viewable through its browser-rendered page. The server cannot draw
pixels from that page, so this source only verifies that the endpoint
answers and then yields no frames. Sampling in fallback mode runs on ticks
alone and the detector receives a null frame.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from models.frame import FrameData
from .base import MediaUnavailableError, ObservationConfig, ObservationSource
from .rtsp_utils import sanitize_url


@dataclass
class ViewSourceConfig(ObservationConfig):
    """
    Attributes:
        url: Browser-view URL of the stream.
        timeout_s: Connect/read timeout for the reachability probe.
    """
    url: str = ""
    timeout_s: float = 10.0


class ViewSource(ObservationSource):
    """Pixel-less media handle for the fallback transport."""

    def __init__(self, config: ViewSourceConfig, client: Optional[httpx.Client] = None):
        super().__init__(config)
        self._view_config = config
        self._client = client

    @property
    def url(self) -> str:
        return self._view_config.url

    @property
    def has_pixels(self) -> bool:
        return False

    def open(self) -> None:
        """Probe the view endpoint; only response headers are read."""
        if self._is_open:
            return
        client = self._client or httpx.Client(timeout=self._view_config.timeout_s)
        try:
            with client.stream("GET", self.url) as response:
                if response.status_code >= 400:
                    raise MediaUnavailableError(
                        f"View endpoint {sanitize_url(self.url)} answered {response.status_code}"
                    )
        except httpx.HTTPError as e:
            raise MediaUnavailableError(
                f"View endpoint {sanitize_url(self.url)} unreachable: {e}"
            ) from e
        finally:
            if self._client is None:
                client.close()

        self._is_open = True
        logging.info(f"ViewSource opened: source_id={self.source_id}, url={sanitize_url(self.url)}")

    def read(self) -> Optional[FrameData]:
        return None

    def close(self) -> None:
        if self._is_open:
            logging.info(f"ViewSource closed: source_id={self.source_id}")
        self._is_open = False
