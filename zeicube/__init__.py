"""
zeicube - Timeular ZEI orientation cube over Bluetooth Low Energy
"""

__version__ = "0.3.0"

# ---------------------------------------------------------------------------
# Initialise logging on *package import* so every code path (even when the
# CLI is not used) writes to the per-type log files.
# ---------------------------------------------------------------------------
import importlib as _importlib

_importlib.import_module("zeicube.core.log")  # noqa: F401 – side-effect import
