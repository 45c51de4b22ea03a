"""Configuration management for Firezone client telemetry.

This module handles configuration from environment variables, config files,
and package defaults following the priority order:
1. Environment variables (highest priority)
2. Configuration file (~/.config/dev.firezone.client/telemetry.json)
3. Package defaults (lowest priority)
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

# Bundle ID shared with the rest of the client for config and data directories
BUNDLE_ID = "dev.firezone.client"

DEFAULT_DSN = (
    "https://66c71f83675f01abfffa8eb977bcbbf7"
    "@o4507971108339712.ingest.us.sentry.io/4508175177023488"
)

# Default configuration values
DEFAULTS = {
    "enabled": True,
    "dsn": DEFAULT_DSN,
    "sample_rate": 1.0,
    "enable_hang_tracking": True,
    "app_distribution": "firezone-client",
    "app_version": None,
}

# Config file location
CONFIG_DIR = Path.home() / ".config" / BUNDLE_ID
CONFIG_FILE = CONFIG_DIR / "telemetry.json"


@dataclass
class TelemetryConfig:
    """Configuration for telemetry collection."""

    enabled: bool = True
    dsn: Optional[str] = DEFAULT_DSN
    sample_rate: float = 1.0
    enable_hang_tracking: bool = True
    app_distribution: Optional[str] = "firezone-client"
    app_version: Optional[str] = None

    _loaded: bool = field(default=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not 0.0 <= self.sample_rate <= 1.0:
            raise ValueError(f"sample_rate must be between 0.0 and 1.0, got {self.sample_rate}")

    @property
    def reporting_allowed(self) -> bool:
        """Whether a transport session may be opened at all."""
        return self.enabled and bool(self.dsn)


_BOOL_KEYS = ("enabled", "enable_hang_tracking")


def _parse_bool(value: str) -> bool:
    """Parse a boolean from a string value."""
    return value.lower() in ("true", "1", "yes", "on")


def _load_config_file() -> dict[str, Any]:
    """Load configuration from file if it exists."""
    if not CONFIG_FILE.exists():
        return {}

    try:
        with open(CONFIG_FILE) as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        return {}

    if not isinstance(data, dict):
        return {}

    config: dict[str, Any] = {}
    for key, value in data.items():
        if key not in DEFAULTS:
            continue
        # Hand-edited files may hold "false" or "0.5" as strings
        if key in _BOOL_KEYS and isinstance(value, str):
            value = _parse_bool(value)
        elif key == "sample_rate" and isinstance(value, str):
            try:
                value = float(value)
            except ValueError:
                continue
        config[key] = value
    return config


def _get_env_config() -> dict[str, Any]:
    """Get configuration from environment variables."""
    config: dict[str, Any] = {}

    # Universal opt-out (DO_NOT_TRACK standard)
    if os.getenv("DO_NOT_TRACK", "").lower() in ("1", "true"):
        config["enabled"] = False

    enabled_env = os.getenv("FIREZONE_TELEMETRY_ENABLED", "")
    if enabled_env:
        config["enabled"] = _parse_bool(enabled_env)

    dsn = os.getenv("FIREZONE_TELEMETRY_DSN")
    if dsn:
        config["dsn"] = dsn

    sample_rate = os.getenv("FIREZONE_TELEMETRY_SAMPLE_RATE")
    if sample_rate:
        try:
            config["sample_rate"] = float(sample_rate)
        except ValueError:
            pass

    hang_tracking = os.getenv("FIREZONE_TELEMETRY_HANG_TRACKING", "")
    if hang_tracking:
        config["enable_hang_tracking"] = _parse_bool(hang_tracking)

    version = os.getenv("FIREZONE_APP_VERSION")
    if version:
        config["app_version"] = version

    return config


def load_config() -> TelemetryConfig:
    """Load telemetry configuration from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Configuration file
    3. Package defaults

    Returns:
        TelemetryConfig: The merged configuration.
    """
    merged = dict(DEFAULTS)
    merged.update(_load_config_file())
    merged.update(_get_env_config())

    try:
        return TelemetryConfig(**merged, _loaded=True)
    except (TypeError, ValueError):
        # An out-of-range sample rate falls back to the default
        merged["sample_rate"] = DEFAULTS["sample_rate"]
        return TelemetryConfig(**merged, _loaded=True)


def save_config(config: TelemetryConfig) -> None:
    """Save configuration to file.

    Args:
        config: The configuration to save.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    config_dict = asdict(config)
    config_dict.pop("_loaded", None)

    with open(CONFIG_FILE, "w") as f:
        json.dump(config_dict, f, indent=2)
