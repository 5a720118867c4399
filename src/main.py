"""
Crowd Monitor entry point.

Loads the layered configuration, sets up logging, wires the stream session
and the uploaded-file analyzer, and serves the HTTP API.

Usage:
    python src/main.py --config config/config.yaml

Arguments:
    --config: Path to configuration file
    --host / --port: Override web.host / web.port
"""

import os
import sys
import argparse
import logging
import yaml
from typing import Dict, Any, Tuple, Optional

import uvicorn

from ops.logging import setup_logging
from runtime.context import build_runtime_context
from web.app import create_app
from web.services.config_service import ConfigService

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
VALID_STREAM_KINDS = ('http', 'rtsp')
VALID_BACKENDS = ('simulated', 'yolo')


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        config_dir = os.path.dirname(config_path)
        base_cfg = ConfigService.read_yaml(os.path.join(config_dir, "default.yaml"))

        local_overrides_path = os.path.join(config_dir, "config.yaml")
        merged = ConfigService.deep_merge(base_cfg, ConfigService.read_yaml(local_overrides_path))

        # Finally apply explicit config_path if it's not the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            merged = ConfigService.deep_merge(merged, ConfigService.read_yaml(config_path))

        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['detection', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Stream acquisition
    stream = config.get('stream', {}) or {}
    if stream.get('default_kind', 'http') not in VALID_STREAM_KINDS:
        return False, "stream.default_kind must be one of: http, rtsp"
    if stream.get('rtsp_transport', 'tcp') not in ('tcp', 'udp'):
        return False, "stream.rtsp_transport must be one of: tcp, udp"
    if 'open_timeout_s' in stream and not _is_positive_number(stream['open_timeout_s']):
        return False, "stream.open_timeout_s must be a positive number"
    secrets_file = stream.get('secrets_file')
    if secrets_file is not None and not isinstance(secrets_file, str):
        return False, "stream.secrets_file must be a string path"

    # Sampling cadences
    sampling = config.get('sampling', {}) or {}
    for key in ('preview_cadence_ms', 'analysis_cadence_ms'):
        if key in sampling and (not isinstance(sampling[key], int) or sampling[key] <= 0):
            return False, f"sampling.{key} must be a positive integer"
    if 'settle_delay_ms' in sampling and (not isinstance(sampling['settle_delay_ms'], int) or sampling['settle_delay_ms'] < 0):
        return False, "sampling.settle_delay_ms must be a non-negative integer"
    if 'blank_threshold' in sampling:
        threshold = sampling['blank_threshold']
        if not isinstance(threshold, (int, float)) or not (0 <= threshold <= 255):
            return False, "sampling.blank_threshold must be between 0 and 255"

    # Detection backend selection
    detection = config.get('detection', {}) or {}
    backend = detection.get('backend', 'simulated')
    if backend not in VALID_BACKENDS:
        return False, "detection.backend must be one of: simulated, yolo"
    if backend == 'yolo':
        yolo_cfg = detection.get('yolo', {}) or {}
        if not isinstance(yolo_cfg.get('model'), str) or not yolo_cfg.get('model'):
            return False, "detection.yolo.model is required when detection.backend is 'yolo'"
        for key in ('conf_threshold', 'iou_threshold'):
            if key in yolo_cfg and not isinstance(yolo_cfg[key], (int, float)):
                return False, f"detection.yolo.{key} must be a number"
    simulated = detection.get('simulated', {}) or {}
    if 'latency_ms' in simulated and (not isinstance(simulated['latency_ms'], int) or simulated['latency_ms'] < 0):
        return False, "detection.simulated.latency_ms must be a non-negative integer"

    # Uploaded-file analysis
    upload = config.get('upload', {}) or {}
    if 'sample_frames' in upload and (not isinstance(upload['sample_frames'], int) or upload['sample_frames'] <= 0):
        return False, "upload.sample_frames must be a positive integer"

    alerts = config.get('alerts', {}) or {}
    if 'enabled' in alerts and not isinstance(alerts['enabled'], bool):
        return False, "alerts.enabled must be true or false"

    demo_streams = config.get('demo_streams', []) or []
    if not isinstance(demo_streams, list):
        return False, "demo_streams must be a list"
    for i, demo in enumerate(demo_streams):
        if not isinstance(demo, dict) or 'id' not in demo or not demo.get('url'):
            return False, f"demo_streams[{i}] must have an id and a url"

    web = config.get('web', {}) or {}
    if 'port' in web and (not isinstance(web['port'], int) or not (0 < web['port'] < 65536)):
        return False, "web.port must be between 1 and 65535"

    # Validate log settings
    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Crowd Monitor')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--host', type=str, default=None,
                        help='Bind address (overrides web.host)')
    parser.add_argument('--port', type=int, default=None,
                        help='Bind port (overrides web.port)')
    args = parser.parse_args()

    config = load_config(args.config)

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])

    web_cfg = config.get('web', {}) or {}
    host = args.host or web_cfg.get('host', '0.0.0.0')
    port = args.port or web_cfg.get('port', 5000)

    logging.info("Starting Crowd Monitor")
    logging.info(f"Detector backend: {(config.get('detection', {}) or {}).get('backend', 'simulated')}")

    ctx = build_runtime_context(config)
    try:
        uvicorn.run(
            create_app(ctx),
            host=host,
            port=port,
            log_level="info",
        )
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    finally:
        logging.info("Crowd Monitor shut down")


if __name__ == "__main__":
    main()
