"""
D-Bus layer for zeicube.
BlueZ implementation of the transport consumed by the connection state machine.
"""

from .adapter import system_dbus__bluez_adapter
from .device_le import system_dbus__bluez_device__low_energy
from .signals import system_dbus__bluez_signals
from .service import Service
from .characteristic import Characteristic
from .descriptor import Descriptor

__all__ = [
    "system_dbus__bluez_adapter",
    "system_dbus__bluez_device__low_energy",
    "system_dbus__bluez_signals",
    "Service",
    "Characteristic",
    "Descriptor",
]
