"""
Core logging functionality for zeicube.

Every log type writes to its own file below :data:`config.LOG_DIR`; records
are also propagated to the ``zeicube`` logger hierarchy so applications can
attach their own handlers.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

from . import config

# Re-export log type constants for external modules
LOG__GENERAL = config.LOG__GENERAL
LOG__DEBUG = config.LOG__DEBUG
LOG__DEVICE = config.LOG__DEVICE

_LOG_PATHS: Dict[str, Path] = {
    LOG__GENERAL: config.LOG_DIR / "general.log",
    LOG__DEBUG: config.LOG_DIR / "debug.log",
    LOG__DEVICE: config.LOG_DIR / "device.log",
}

# Raw message only, matching what gets printed to stdout
_formatter = logging.Formatter("%(message)s")


def _make_handler(path: Path) -> logging.Handler:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    except OSError:
        # Read-only home (containers, CI); keep the logger tree usable
        handler = logging.NullHandler()
    handler.setFormatter(_formatter)
    return handler


_handlers: Dict[str, logging.Handler] = {
    log_type: _make_handler(path) for log_type, path in _LOG_PATHS.items()
}

# Root logger for zeicube
_logger = logging.getLogger("zeicube")
_logger.setLevel(os.getenv(config.LOG_LEVEL_ENV, "INFO").upper())

_LEVELS = {
    LOG__GENERAL: logging.INFO,
    LOG__DEBUG: logging.DEBUG,
    LOG__DEVICE: logging.INFO,
}


def _emit(line: str, log_type: str) -> None:
    """Write *line* to the file of *log_type* and the matching child logger."""
    line = line.rstrip("\n")
    level = _LEVELS.get(log_type, logging.INFO)
    child = _logger.getChild(log_type.lower())
    record = child.makeRecord(child.name, level, __file__, 0, line, (), None)
    # Per-type files always receive the line; the logger tree honours levels
    _handlers.get(log_type, _handlers[LOG__GENERAL]).handle(record)
    if child.isEnabledFor(level):
        child.handle(record)


def logging__debug_log(msg: str) -> None:
    """Write to debug log."""
    _emit(msg, LOG__DEBUG)


def logging__general_log(msg: str) -> None:
    """Write to general log."""
    _emit(msg, LOG__GENERAL)


def logging__device_log(msg: str) -> None:
    """Write to device log (status / orientation transitions)."""
    _emit(msg, LOG__DEVICE)


_log_func_map = {
    LOG__GENERAL: logging__general_log,
    LOG__DEBUG: logging__debug_log,
    LOG__DEVICE: logging__device_log,
}


def logging__log_event(log_type: str, string_to_log: str) -> None:
    """Log an event to the specified log type."""
    _log_func_map.get(log_type, logging__general_log)(string_to_log)


def print_and_log(output_string: str, log_type: str = LOG__GENERAL) -> None:
    """Print to stdout and log to the specified log type."""
    if log_type not in (LOG__DEBUG, LOG__DEVICE):
        print(output_string)
    logging__log_event(log_type, output_string)


def set_level(level: str) -> None:
    """Set the level of the ``zeicube`` logger tree (e.g. ``"DEBUG"``)."""
    _logger.setLevel(level.upper())


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger with the specified name.

    This is the preferred way to get a logger in new code.
    """
    if name:
        return _logger.getChild(name)
    return _logger
