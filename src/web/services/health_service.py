from __future__ import annotations

import os
import platform
import shutil
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class HealthService:
    cfg: Dict[str, Any]

    def get_health_summary(self, detector_ready: bool = False, uptime_seconds: float = 0.0) -> Dict[str, Any]:
        # Keep lightweight and dependency-free.
        detection = self.cfg.get("detection", {}) or {}
        log_path = self.cfg.get("log_path")
        return {
            "timestamp": time.time(),
            "platform": platform.platform(),
            "python": platform.python_version(),
            "uptime_seconds": uptime_seconds,
            "detector_backend": detection.get("backend", "simulated"),
            "detector_ready": detector_ready,
            "log_path": log_path,
            "disk": HealthService.disk_usage(os.path.dirname(log_path) if log_path else None),
        }

    @staticmethod
    def disk_usage(path: Optional[str] = None) -> Dict[str, Any]:
        """
        Lightweight disk stats for the health endpoint.
        """
        target = path if path and os.path.exists(path) else "."
        try:
            usage = shutil.disk_usage(target)
        except OSError:
            return {
                "total_bytes": None,
                "free_bytes": None,
                "pct_free": None,
                "error": "disk_usage_failed",
            }
        pct_free = (usage.free / usage.total * 100) if usage.total else None
        return {
            "total_bytes": usage.total,
            "free_bytes": usage.free,
            "pct_free": pct_free,
        }
