"""
Core package initialisation for zeicube.

Kept lightweight: the state machine and the facade are loaded lazily on
first attribute access via __getattr__.
"""

from importlib import import_module as _imp
from types import ModuleType as _ModuleType
from typing import Any as _Any

from zeicube.core.errors import ZeiError
from zeicube.core.types import ConnectionStatus, Orientation

__all__ = [
    "DeviceManager",
    "ConnectionStateMachine",
    "ZeiError",
    "ConnectionStatus",
    "Orientation",
]

# Lazy attribute loader -------------------------------------------------------

_lazy_map = {
    "DeviceManager": "zeicube.core.device_management",
    "ConnectionStateMachine": "zeicube.core.state_machine",
}


def __getattr__(name: str) -> _Any:  # noqa: D401
    """Load the heavier sub-modules on demand to break circular imports."""
    if name in _lazy_map:
        module: _ModuleType = _imp(_lazy_map[name])
        value = getattr(module, name)
        globals()[name] = value
        return value
    raise AttributeError(name)
