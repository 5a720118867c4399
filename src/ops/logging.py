"""
Logging setup.
"""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Per-request and per-probe chatter from third-party clients/servers.
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "multipart")


def setup_logging(log_path: str, log_level: str) -> None:
    """
    Log to `log_path` and stderr through the root logger.

    Unknown level names fall back to INFO.
    """
    log_dir = os.path.dirname(log_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    level = getattr(logging, str(log_level).upper(), None)
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),
        ],
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
