"""
Smoke tests for configuration loading and validation.
"""

import os

import pytest

from main import load_config, validate_config
from models.config import Config


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    def test_minimal_config_passes(self):
        """Only detection and log settings are required; the rest has defaults."""
        is_valid, error = validate_config({
            "detection": {},
            "log_path": "logs/x.log",
            "log_level": "DEBUG",
        })

        assert is_valid is True

    @pytest.mark.parametrize("section", ["detection", "log_path", "log_level"])
    def test_missing_required_section(self, valid_config, section):
        del valid_config[section]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert section in error

    def test_invalid_log_level(self, valid_config):
        valid_config["log_level"] = "VERBOSE"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error

    def test_invalid_stream_kind(self, valid_config):
        valid_config["stream"]["default_kind"] = "webrtc"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "stream.default_kind" in error

    def test_invalid_rtsp_transport(self, valid_config):
        valid_config["stream"]["rtsp_transport"] = "http"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "rtsp_transport" in error

    @pytest.mark.parametrize("value", [0, -100, 1.5, "2000"])
    def test_invalid_analysis_cadence(self, valid_config, value):
        valid_config["sampling"]["analysis_cadence_ms"] = value

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "analysis_cadence_ms" in error

    def test_blank_threshold_range(self, valid_config):
        valid_config["sampling"]["blank_threshold"] = 300

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "blank_threshold" in error

    def test_unknown_detection_backend(self, valid_config):
        valid_config["detection"]["backend"] = "hailo"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "detection.backend" in error

    def test_yolo_requires_model(self, valid_config):
        valid_config["detection"] = {"backend": "yolo", "yolo": {}}

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "detection.yolo.model" in error

    def test_yolo_with_model_passes(self, valid_config):
        valid_config["detection"] = {"backend": "yolo", "yolo": {"model": "yolov8n.pt", "conf_threshold": 0.3}}

        is_valid, error = validate_config(valid_config)

        assert is_valid is True

    def test_sample_frames_positive(self, valid_config):
        valid_config["upload"]["sample_frames"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "upload.sample_frames" in error

    def test_alerts_enabled_must_be_bool(self, valid_config):
        valid_config["alerts"]["enabled"] = "yes"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "alerts.enabled" in error

    def test_demo_stream_requires_url(self, valid_config):
        valid_config["demo_streams"].append({"id": "cam2", "name": "No URL"})

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "demo_streams[1]" in error

    def test_invalid_port(self, valid_config):
        valid_config["web"]["port"] = 70000

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "web.port" in error


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_yaml(self, temp_config_dir):
        config_path = temp_config_dir / "config.yaml"

        config = load_config(str(config_path))

        assert config["detection"]["backend"] == "simulated"
        assert config["sampling"]["analysis_cadence_ms"] == 2000

    def test_local_overrides_merge(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("""
sampling:
  analysis_cadence_ms: 3000
alerts:
  enabled: false
""")

        config = load_config(str(temp_config_dir / "config.yaml"))

        assert config["sampling"]["analysis_cadence_ms"] == 3000
        # Sibling keys survive the deep merge
        assert config["sampling"]["preview_cadence_ms"] == 1000
        assert config["alerts"]["enabled"] is False

    def test_explicit_config_applied_last(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("log_level: WARNING\n")
        explicit = temp_config_dir / "site.yaml"
        explicit.write_text("log_level: DEBUG\n")

        config = load_config(str(explicit))

        assert config["log_level"] == "DEBUG"

    def test_missing_files_give_empty_config(self, tmp_path):
        config = load_config(os.path.join(str(tmp_path), "config.yaml"))

        assert config == {}

    def test_invalid_yaml_exits(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("sampling: [unclosed\n")

        with pytest.raises(SystemExit):
            load_config(str(temp_config_dir / "config.yaml"))


class TestTypedConfig:
    def test_from_dict(self, valid_config):
        cfg = Config.from_dict(valid_config)

        assert cfg.stream.open_timeout_s == 5.0
        assert cfg.sampling.blank_threshold == 10
        assert cfg.detection.simulated.seed == 7
        assert cfg.alerts_enabled is True
        assert cfg.demo_streams[0].name == "Main Entrance"
        assert cfg.web.host == "127.0.0.1"

    def test_defaults(self):
        cfg = Config.from_dict({})

        assert cfg.sampling.preview_cadence_ms == 1000
        assert cfg.sampling.analysis_cadence_ms == 2000
        assert cfg.detection.backend == "simulated"
        assert cfg.upload.sample_frames == 5
        assert cfg.demo_streams == []

    def test_round_trip_keeps_alerts_section(self, valid_config):
        cfg = Config.from_dict(valid_config)
        again = Config.from_dict(cfg.to_dict())

        assert again == cfg
        assert cfg.to_dict()["alerts"] == {"enabled": True}
