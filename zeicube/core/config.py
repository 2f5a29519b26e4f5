"""
Core configuration settings for zeicube.
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

# Base paths
DATA_DIR = Path(os.getenv("XDG_DATA_HOME", Path.home() / ".local/share")) / "zeicube"
CONFIG_DIR = Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config")) / "zeicube"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

# Logging configuration
LOG_DIR = DATA_DIR / "logs"

# Log types
LOG__GENERAL = "GENERAL"
LOG__DEBUG = "DEBUG"
LOG__DEVICE = "DEVICE"

# Environment override for the root log level
LOG_LEVEL_ENV = "ZEICUBE_LOG_LEVEL"

# Default adapter
DEFAULT_ADAPTER = "hci0"

# Low-energy scan window; the cube advertises roughly once per second
SCAN_TIMEOUT_MS = 5000

# Advertised name of the supported peripheral
TARGET_DEVICE_NAME = "Timeular ZEI"


@dataclass(frozen=True)
class Settings:
    """Runtime settings, defaults overridden by the YAML config file."""

    adapter: str = DEFAULT_ADAPTER
    device_name: str = TARGET_DEVICE_NAME
    scan_timeout_ms: int = SCAN_TIMEOUT_MS
    log_level: str = "INFO"
    auto_reconnect: bool = True


_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

_SETTING_TYPES = {
    "adapter": str,
    "device_name": str,
    "scan_timeout_ms": int,
    "log_level": str,
    "auto_reconnect": bool,
}


def load_settings(path: Optional[Union[str, Path]] = None, **overrides: Any) -> Settings:
    """Load :class:`Settings` from *path* (or the default config file).

    A missing file yields the defaults.  Keyword *overrides* whose value is
    not ``None`` win over both the defaults and the file (used by the CLI).
    """
    # Import here to avoid circular imports (log -> config)
    from zeicube.core.errors import InvalidArgumentError
    from zeicube.core.log import print_and_log, LOG__DEBUG as _DEBUG

    config_path = Path(path) if path else CONFIG_FILE
    values: Dict[str, Any] = {}

    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as fh:
            try:
                raw = yaml.safe_load(fh)
            except yaml.YAMLError as exc:
                raise InvalidArgumentError(str(config_path), f"invalid YAML: {exc}")
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise InvalidArgumentError(str(config_path), "top level must be a mapping")
        values.update(raw)
        print_and_log(f"[DEBUG] Loaded settings from {config_path}", _DEBUG)
    elif path:
        raise InvalidArgumentError(str(config_path), "config file not found")

    values.update({k: v for k, v in overrides.items() if v is not None})

    known = {f.name for f in fields(Settings)}
    settings = Settings()
    for key, value in values.items():
        if key not in known:
            print_and_log(f"[!] Ignoring unknown setting '{key}'", _DEBUG)
            continue
        expected = _SETTING_TYPES[key]
        # bool is an int subclass; refuse it where a count is expected
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise InvalidArgumentError(
                key, f"expected {expected.__name__}, got {type(value).__name__}"
            )
        settings = replace(settings, **{key: value})

    if settings.scan_timeout_ms <= 0:
        raise InvalidArgumentError("scan_timeout_ms", "must be positive")
    if settings.log_level.upper() not in _LOG_LEVELS:
        raise InvalidArgumentError("log_level", f"expected one of {', '.join(_LOG_LEVELS)}")

    return settings
