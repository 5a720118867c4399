"""
Transport resolution for user-entered stream URLs.

IP-webcam style HTTP cameras expose two endpoints for the same stream:
- a feed endpoint (/videofeed or /video.mjpeg) that a media element or
  OpenCV can decode directly (primary transport)
- a browser-view endpoint (/video) that only renders inside a browser
  (fallback transport, no pixel access)

These are pure string transformations. Malformed input passes through;
a bad URL is caught when the media handle fails to open.
"""

from __future__ import annotations

from typing import Union

from models.connection import StreamKind

FEED_ENDPOINT = "/videofeed"
MJPEG_ENDPOINT = "/video.mjpeg"
VIEW_ENDPOINT = "/video"

# Any of these in the path means the operator already picked an endpoint.
LIVE_ENDPOINT_MARKERS = (FEED_ENDPOINT, MJPEG_ENDPOINT, VIEW_ENDPOINT)
FEED_SUFFIXES = (FEED_ENDPOINT, MJPEG_ENDPOINT)


def normalize(raw_url: str, kind: Union[StreamKind, str]) -> str:
    """
    Turn a user-entered URL into the canonical primary-transport URL.

    HTTP:
        http://host:8080         -> http://host:8080/videofeed
        http://host:8080/video/  -> http://host:8080/videofeed
        http://host:8080/video.mjpeg is kept as is.
    RTSP URLs are returned unchanged.
    """
    if StreamKind(kind) is StreamKind.RTSP:
        return raw_url

    url = raw_url.rstrip("/")
    if not any(marker in url for marker in LIVE_ENDPOINT_MARKERS):
        return url + FEED_ENDPOINT
    if url.endswith(VIEW_ENDPOINT):
        # Direct playback prefers the feed endpoint over the browser view.
        return url[: -len(VIEW_ENDPOINT)] + FEED_ENDPOINT
    return url


def derive_fallback(canonical_url: str) -> str:
    """
    Derive the browser-view URL used once primary playback has failed.

    Feed suffixes are rewritten to /video; any other URL gets /video
    appended. Applying it to its own output returns the same URL.
    """
    url = canonical_url.rstrip("/")
    for suffix in FEED_SUFFIXES:
        if url.endswith(suffix):
            return url[: -len(suffix)] + VIEW_ENDPOINT
    if url.endswith(VIEW_ENDPOINT):
        return url
    return url + VIEW_ENDPOINT
