from __future__ import annotations

import os
from typing import Any, Dict, List

import yaml

from models.config import Config, DemoStream


class ConfigService:
    """
    Reads the layered config:
    - config/default.yaml (checked in)
    - config/config.yaml (local overrides)
    """

    DEFAULT_PATH = os.path.join("config", "default.yaml")
    OVERRIDES_PATH = os.path.join("config", "config.yaml")

    @staticmethod
    def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge override into base and return base."""
        for k, v in (override or {}).items():
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                ConfigService.deep_merge(base[k], v)
            else:
                base[k] = v
        return base

    @staticmethod
    def read_yaml(path: str) -> Dict[str, Any]:
        if not os.path.exists(path):
            return {}
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def load_effective_config() -> Dict[str, Any]:
        merged = ConfigService.read_yaml(ConfigService.DEFAULT_PATH)
        overrides = ConfigService.read_yaml(ConfigService.OVERRIDES_PATH)
        return ConfigService.deep_merge(merged, overrides)

    @staticmethod
    def demo_streams(cfg: Dict[str, Any]) -> List[DemoStream]:
        return Config.from_dict(cfg).demo_streams
