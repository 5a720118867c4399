"""
RTSP credential injection and URL sanitizing utilities.

Operators often keep camera credentials out of the URL they type. When
stream.secrets_file is configured, credentials from that file are injected
into RTSP URLs right before the media handle is opened.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Union
from urllib.parse import urlparse, urlunparse

import yaml


def _is_rtsp(url: str) -> bool:
    return url.startswith("rtsp://") or url.startswith("rtsps://")


def inject_rtsp_credentials(url: str, secrets_file: Optional[str]) -> str:
    """
    Return url with credentials from secrets_file injected.

    The secrets file should contain:
        username: <rtsp_username>
        password: <rtsp_password>

    Non-RTSP URLs, URLs that already carry credentials, and missing or
    unreadable secrets files leave the URL untouched.
    """
    if not secrets_file or not _is_rtsp(url):
        return url

    if not os.path.exists(secrets_file):
        logging.warning(f"Secrets file not found: {secrets_file}")
        return url

    try:
        with open(secrets_file, "r") as f:
            secrets = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to read RTSP secrets: {e}")
        return url

    username = secrets.get("username")
    password = secrets.get("password")
    if not (username and password):
        return url

    parsed = urlparse(url)
    if parsed.username:
        return url

    netloc = f"{username}:{password}@{parsed.hostname}"
    if parsed.port:
        netloc += f":{parsed.port}"
    logging.info("RTSP credentials injected into stream URL")
    return urlunparse((
        parsed.scheme, netloc, parsed.path,
        parsed.params, parsed.query, parsed.fragment
    ))


def sanitize_url(url: Union[int, str]) -> str:
    """Mask the password of a URL for logging. Non-URLs are returned as strings."""
    if not isinstance(url, str) or "://" not in url:
        return str(url)
    parsed = urlparse(url)
    if not parsed.password:
        return url
    netloc = f"{parsed.username}:***@{parsed.hostname}"
    if parsed.port:
        netloc += f":{parsed.port}"
    return urlunparse((
        parsed.scheme, netloc, parsed.path,
        parsed.params, parsed.query, parsed.fragment
    ))
