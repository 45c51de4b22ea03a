"""Tests for telemetry configuration."""

import json
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from firezone_telemetry.config import (
    DEFAULT_DSN,
    TelemetryConfig,
    _get_env_config,
    _load_config_file,
    _parse_bool,
    load_config,
    save_config,
)


class TestParseBool:
    """Tests for boolean parsing."""

    def test_true_values(self):
        """Various true string representations."""
        for value in ("true", "True", "TRUE", "1", "yes", "on"):
            assert _parse_bool(value) is True

    def test_false_values(self):
        """Various false string representations."""
        for value in ("false", "0", "no", "off", "", "anything_else"):
            assert _parse_bool(value) is False


class TestTelemetryConfig:
    """Tests for TelemetryConfig dataclass."""

    def test_default_values(self):
        """Default configuration values."""
        config = TelemetryConfig()

        assert config.enabled is True
        assert config.dsn == DEFAULT_DSN
        assert config.sample_rate == 1.0
        assert config.enable_hang_tracking is True
        assert config.app_version is None
        assert config.reporting_allowed is True

    def test_sample_rate_validation(self):
        """Sample rate must be between 0 and 1."""
        with pytest.raises(ValueError):
            TelemetryConfig(sample_rate=-0.1)

        with pytest.raises(ValueError):
            TelemetryConfig(sample_rate=1.5)

    def test_reporting_requires_dsn(self):
        assert TelemetryConfig(dsn=None).reporting_allowed is False
        assert TelemetryConfig(dsn="").reporting_allowed is False

    def test_reporting_requires_enabled(self):
        assert TelemetryConfig(enabled=False).reporting_allowed is False


class TestEnvConfig:
    """Tests for environment variable configuration."""

    def test_do_not_track(self, clean_env):
        """DO_NOT_TRACK should disable telemetry."""
        with patch.dict(os.environ, {"DO_NOT_TRACK": "1"}):
            assert _get_env_config().get("enabled") is False

        with patch.dict(os.environ, {"DO_NOT_TRACK": "true"}):
            assert _get_env_config().get("enabled") is False

    def test_explicit_disable(self, clean_env):
        """FIREZONE_TELEMETRY_ENABLED=false should disable."""
        with patch.dict(os.environ, {"FIREZONE_TELEMETRY_ENABLED": "false"}):
            assert _get_env_config().get("enabled") is False

    def test_dsn_override(self, clean_env):
        test_dsn = "https://test@custom.example.com/1"
        with patch.dict(os.environ, {"FIREZONE_TELEMETRY_DSN": test_dsn}):
            assert _get_env_config().get("dsn") == test_dsn

    def test_sample_rate_override(self, clean_env):
        with patch.dict(os.environ, {"FIREZONE_TELEMETRY_SAMPLE_RATE": "0.5"}):
            assert _get_env_config().get("sample_rate") == 0.5

    def test_invalid_sample_rate_ignored(self, clean_env):
        """Invalid sample rate values should be ignored."""
        with patch.dict(os.environ, {"FIREZONE_TELEMETRY_SAMPLE_RATE": "invalid"}):
            assert "sample_rate" not in _get_env_config()

    def test_hang_tracking_override(self, clean_env):
        with patch.dict(os.environ, {"FIREZONE_TELEMETRY_HANG_TRACKING": "off"}):
            assert _get_env_config().get("enable_hang_tracking") is False

    def test_app_version_override(self, clean_env):
        with patch.dict(os.environ, {"FIREZONE_APP_VERSION": "1.4.2"}):
            assert _get_env_config().get("app_version") == "1.4.2"


class TestConfigFile:
    """Tests for configuration file loading."""

    def test_load_nonexistent_file(self):
        """Loading a nonexistent config file should return empty dict."""
        with patch("firezone_telemetry.config.CONFIG_FILE", Path("/nonexistent/path/config.json")):
            assert _load_config_file() == {}

    def test_load_valid_config(self, tmp_path):
        config_file = tmp_path / "telemetry.json"
        config_file.write_text(json.dumps({"enabled": False, "sample_rate": 0.25}))

        with patch("firezone_telemetry.config.CONFIG_FILE", config_file):
            config = _load_config_file()

        assert config == {"enabled": False, "sample_rate": 0.25}

    def test_unknown_keys_dropped(self, tmp_path):
        config_file = tmp_path / "telemetry.json"
        config_file.write_text(json.dumps({"enabled": False, "environment": "staging"}))

        with patch("firezone_telemetry.config.CONFIG_FILE", config_file):
            assert _load_config_file() == {"enabled": False}

    def test_string_values_coerced(self, tmp_path):
        """String booleans and rates in the file are parsed, not taken as truthy."""
        config_file = tmp_path / "telemetry.json"
        config_file.write_text(
            json.dumps(
                {"enabled": "false", "enable_hang_tracking": "yes", "sample_rate": "0.5"}
            )
        )

        with patch("firezone_telemetry.config.CONFIG_FILE", config_file):
            assert _load_config_file() == {
                "enabled": False,
                "enable_hang_tracking": True,
                "sample_rate": 0.5,
            }

    def test_string_opt_out_disables_reporting(self, clean_env, tmp_path):
        config_file = tmp_path / "telemetry.json"
        config_file.write_text(json.dumps({"enabled": "false", "sample_rate": "bogus"}))

        with patch("firezone_telemetry.config.CONFIG_FILE", config_file):
            config = load_config()

        assert config.enabled is False
        assert config.reporting_allowed is False
        assert config.sample_rate == 1.0

    @pytest.mark.parametrize("content", ["not valid json {{{", "[1, 2, 3]"])
    def test_load_invalid_file(self, tmp_path, content):
        """Malformed files are ignored."""
        config_file = tmp_path / "telemetry.json"
        config_file.write_text(content)

        with patch("firezone_telemetry.config.CONFIG_FILE", config_file):
            assert _load_config_file() == {}


class TestLoadConfig:
    """Tests for full configuration loading."""

    def test_load_defaults(self):
        """Loading with no config file or env vars should use defaults."""
        with patch.dict(os.environ, {}, clear=True):
            with patch("firezone_telemetry.config.CONFIG_FILE", Path("/nonexistent/path")):
                config = load_config()

        assert config.enabled is True
        assert config.dsn == DEFAULT_DSN

    def test_env_overrides_file(self, clean_env, tmp_path):
        """Environment variables should override config file."""
        config_file = tmp_path / "telemetry.json"
        config_file.write_text(json.dumps({"enabled": True}))

        with patch.dict(os.environ, {"DO_NOT_TRACK": "1"}):
            with patch("firezone_telemetry.config.CONFIG_FILE", config_file):
                config = load_config()

        assert config.enabled is False

    def test_out_of_range_sample_rate_falls_back(self, clean_env, tmp_path):
        config_file = tmp_path / "telemetry.json"
        config_file.write_text(json.dumps({"sample_rate": 4.0}))

        with patch("firezone_telemetry.config.CONFIG_FILE", config_file):
            config = load_config()

        assert config.sample_rate == 1.0


class TestSaveConfig:
    """Tests for configuration saving."""

    def test_save_and_load(self, clean_env):
        """Saved config should be loadable."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_dir = Path(tmpdir) / "dev.firezone.client"
            config_file = config_dir / "telemetry.json"

            with patch("firezone_telemetry.config.CONFIG_DIR", config_dir):
                with patch("firezone_telemetry.config.CONFIG_FILE", config_file):
                    save_config(TelemetryConfig(enabled=False, sample_rate=0.5))

                    assert config_file.exists()
                    assert "_loaded" not in json.loads(config_file.read_text())

                    loaded = load_config()
                    assert loaded.enabled is False
                    assert loaded.sample_rate == 0.5
