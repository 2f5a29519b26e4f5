"""BlueZ signal hub.

One set of bus-wide receivers (``PropertiesChanged`` and ``InterfacesAdded``)
is attached per bus; listeners register an object-path prefix and receive
only the signals emitted at or below that path.
"""

#!/usr/bin/python3

from __future__ import annotations

from typing import Callable, Dict, List

import dbus

from zeicube.bt_ref.constants import DBUS_OM_IFACE, DBUS_PROPERTIES
from zeicube.core.log import print_and_log, LOG__DEBUG

__all__ = ["system_dbus__bluez_signals", "path_in_prefix"]

# (path, interface, changed, invalidated)
PropertiesListener = Callable[[str, str, dict, list], None]
# (path, interfaces)
InterfacesListener = Callable[[str, dict], None]


def path_in_prefix(path: str, prefix: str) -> bool:
    """True when *path* equals *prefix* or is one of its descendants."""
    prefix = prefix.rstrip("/")
    return path == prefix or path.startswith(prefix + "/")


class system_dbus__bluez_signals:  # noqa: N801 – keep legacy-friendly name
    """Centralised BlueZ signal manager with prefix routing."""

    def __init__(self, bus=None):
        self.bus = bus if bus is not None else dbus.SystemBus()
        self._matches: list = []
        self._properties_listeners: Dict[str, List[PropertiesListener]] = {}
        self._interfaces_listeners: Dict[str, List[InterfacesListener]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def ensure_listening(self):
        """Attach D-Bus signal receivers if they are not already active."""
        if not self._matches:
            self._attach_bus_listeners()

    def add_properties_listener(self, prefix: str, callback: PropertiesListener) -> None:
        self._properties_listeners.setdefault(prefix, [])
        if callback not in self._properties_listeners[prefix]:
            self._properties_listeners[prefix].append(callback)
        self.ensure_listening()

    def remove_properties_listener(self, prefix: str, callback: PropertiesListener) -> None:
        callbacks = self._properties_listeners.get(prefix, [])
        if callback in callbacks:
            callbacks.remove(callback)
        if not callbacks:
            self._properties_listeners.pop(prefix, None)

    def add_interfaces_listener(self, prefix: str, callback: InterfacesListener) -> None:
        self._interfaces_listeners.setdefault(prefix, [])
        if callback not in self._interfaces_listeners[prefix]:
            self._interfaces_listeners[prefix].append(callback)
        self.ensure_listening()

    def remove_interfaces_listener(self, prefix: str, callback: InterfacesListener) -> None:
        callbacks = self._interfaces_listeners.get(prefix, [])
        if callback in callbacks:
            callbacks.remove(callback)
        if not callbacks:
            self._interfaces_listeners.pop(prefix, None)

    def close(self) -> None:
        """Drop every listener and detach from the bus."""
        self._properties_listeners.clear()
        self._interfaces_listeners.clear()
        self._detach_bus_listeners()

    # ------------------------------------------------------------------
    # Bus receivers
    # ------------------------------------------------------------------
    def _attach_bus_listeners(self):
        print_and_log("[DEBUG] Signals manager attaching bus listeners", LOG__DEBUG)
        match_pc = self.bus.add_signal_receiver(
            self._properties_changed,
            dbus_interface=DBUS_PROPERTIES,
            signal_name="PropertiesChanged",
            path_keyword="path",
        )
        match_added = self.bus.add_signal_receiver(
            self._interfaces_added,
            dbus_interface=DBUS_OM_IFACE,
            signal_name="InterfacesAdded",
        )
        self._matches.extend([match_pc, match_added])

    def _detach_bus_listeners(self):
        for match in self._matches:
            try:
                match.remove()
            except dbus.exceptions.DBusException as e:
                print_and_log(f"[DEBUG] Signal match removal failed: {e}", LOG__DEBUG)
        self._matches.clear()

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------
    def _properties_changed(self, interface, changed, invalidated, path: str | None = None):
        if path is None:
            return
        path = str(path)
        for prefix, callbacks in list(self._properties_listeners.items()):
            if not path_in_prefix(path, prefix):
                continue
            for callback in list(callbacks):
                try:
                    callback(path, str(interface), changed, invalidated)
                except Exception as e:
                    print_and_log(f"[ERROR] Property listener error on {path}: {e}", LOG__DEBUG)

    def _interfaces_added(self, object_path, interfaces):
        object_path = str(object_path)
        for prefix, callbacks in list(self._interfaces_listeners.items()):
            if not path_in_prefix(object_path, prefix):
                continue
            for callback in list(callbacks):
                try:
                    callback(object_path, interfaces)
                except Exception as e:
                    print_and_log(
                        f"[ERROR] InterfacesAdded listener error on {object_path}: {e}", LOG__DEBUG
                    )
