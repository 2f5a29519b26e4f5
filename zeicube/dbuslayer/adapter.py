"""
Adapter D-Bus Interface
Provides the system_dbus__bluez_adapter transport: timed LE scans and the
controller factory for the state machine.
"""

#!/usr/bin/python3

from __future__ import annotations

from typing import Any, Dict, Optional

import dbus
import dbus.mainloop.glib
from gi.repository import GLib

from zeicube.bt_ref.constants import (
    ADAPTER_INTERFACE,
    ADVERTISEMENT_PROPERTIES,
    BLUEZ_NAMESPACE,
    BLUEZ_SERVICE_NAME,
    DBUS_OM_IFACE,
    DBUS_PROPERTIES,
    DEVICE_INTERFACE,
)
from zeicube.core.config import DEFAULT_ADAPTER
from zeicube.core.errors import NotReadyError, ZeiError, map_dbus_error
from zeicube.core.events import DeviceDiscovered, Event, ScanFinished
from zeicube.core.log import get_logger, print_and_log, LOG__DEBUG, LOG__GENERAL
from zeicube.core.transport import EventSink, Transport
from zeicube.core.types import AddressType, CoreConfiguration, DeviceInfo
from zeicube.dbuslayer.device_le import system_dbus__bluez_device__low_energy
from zeicube.dbuslayer.signals import system_dbus__bluez_signals
from zeicube.dbuslayer.utils import dbus_to_python

__all__ = ["system_dbus__bluez_adapter", "device_info_from_properties"]

logger = get_logger(__name__)


def device_info_from_properties(properties: Dict[str, Any]) -> DeviceInfo:
    """Build a :class:`DeviceInfo` from ``org.bluez.Device1`` properties.

    BlueZ has no explicit "LE capable" flag; a device counts as LE when it
    uses a random address, carries advertising flags, or has no BR/EDR
    ``Class``.
    """
    props = dbus_to_python(properties)
    raw_type = props.get("AddressType")
    address_type: Optional[AddressType] = None
    if raw_type is not None:
        address_type = AddressType.RANDOM if raw_type == "random" else AddressType.PUBLIC

    core = CoreConfiguration.NONE
    if address_type is AddressType.RANDOM or "AdvertisingFlags" in props or "Class" not in props:
        core |= CoreConfiguration.LOW_ENERGY
    if "Class" in props:
        core |= CoreConfiguration.BASE_RATE

    name = props.get("Name")
    return DeviceInfo(
        address=str(props.get("Address", "")),
        name=str(name) if name is not None else None,
        core_configurations=core,
        address_type=address_type,
    )


class system_dbus__bluez_adapter(Transport):  # noqa: N801 – keep legacy-friendly name
    """Core adapter class for Bluetooth operations."""

    def __init__(self, bluetooth_adapter: str = DEFAULT_ADAPTER, bus=None, signals=None):
        self.adapter_name = bluetooth_adapter
        self.adapter_path = f"{BLUEZ_NAMESPACE}{bluetooth_adapter}"
        self.timer_id = None
        self._scanning = False
        self._sink: Optional[EventSink] = None

        self.bus = bus if bus is not None else self._initialize_dbus()
        self.signals = signals if signals is not None else system_dbus__bluez_signals(self.bus)

        adapter_object = self.bus.get_object(BLUEZ_SERVICE_NAME, self.adapter_path)
        self.adapter_interface = dbus.Interface(adapter_object, ADAPTER_INTERFACE)
        self.adapter_properties = dbus.Interface(adapter_object, DBUS_PROPERTIES)
        self._object_manager = dbus.Interface(
            self.bus.get_object(BLUEZ_SERVICE_NAME, "/"), DBUS_OM_IFACE
        )

    @staticmethod
    def _initialize_dbus():
        """Attach dbus-python to the default GLib main loop and open the system bus."""
        try:
            dbus.mainloop.glib.DBusGMainLoop(set_as_default=True)
            return dbus.SystemBus()
        except dbus.exceptions.DBusException as e:
            logger.error(f"Failed to initialize D-Bus: {e}")
            raise map_dbus_error(e)

    # ------------------------------------------------------------------
    # Adapter state
    # ------------------------------------------------------------------
    def ensure_ready(self) -> None:
        """Raise :class:`NotReadyError` unless the adapter exists and is powered."""
        try:
            powered = bool(self.adapter_properties.Get(ADAPTER_INTERFACE, "Powered"))
        except dbus.exceptions.DBusException as e:
            print_and_log(f"[-] Adapter {self.adapter_name} unavailable: {e}", LOG__DEBUG)
            raise NotReadyError(self.adapter_name)
        if not powered:
            raise NotReadyError(self.adapter_name)

    def get_managed_objects(self) -> Dict[str, Dict[str, Any]]:
        """Get all BlueZ managed objects."""
        try:
            return self._object_manager.GetManagedObjects()
        except dbus.exceptions.DBusException as e:
            raise map_dbus_error(e)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def bind(self, sink: EventSink) -> None:
        self._sink = sink
        self.signals.add_interfaces_listener(self.adapter_path, self._interfaces_added)
        self.signals.add_properties_listener(self.adapter_path, self._properties_changed)

    def emit(self, event: Event) -> None:
        if self._sink is None:
            print_and_log(f"[DEBUG] No sink bound, dropping {event.event_type.value}", LOG__DEBUG)
            return
        self._sink(event)

    def start_scan(self, timeout_ms: int) -> None:
        if self.timer_id is not None:
            GLib.source_remove(self.timer_id)
        self._scanning = True
        try:
            self.adapter_interface.SetDiscoveryFilter(
                dbus.Dictionary({"Transport": dbus.String("le")}, signature="sv"),
                reply_handler=self._start_discovery,
                error_handler=self._discovery_filter_failed,
            )
        except dbus.exceptions.DBusException as e:
            self._start_discovery_failed(e)
        # The timer ends the scan even when StartDiscovery fails
        self.timer_id = GLib.timeout_add(timeout_ms, self._discovery_timeout)

    def create_controller(self, info: DeviceInfo, address_type: AddressType):
        return system_dbus__bluez_device__low_energy(info.address, self, address_type)

    # ------------------------------------------------------------------
    # Scan plumbing
    # ------------------------------------------------------------------
    def _discovery_filter_failed(self, error) -> None:
        print_and_log(f"[-] Failed to set discovery filter: {error}", LOG__DEBUG)
        self._start_discovery()

    def _start_discovery(self) -> None:
        try:
            self.adapter_interface.StartDiscovery(
                reply_handler=lambda: print_and_log("[DEBUG] Discovery started", LOG__DEBUG),
                error_handler=self._start_discovery_failed,
            )
        except dbus.exceptions.DBusException as e:
            self._start_discovery_failed(e)

    def _start_discovery_failed(self, error) -> None:
        mapped = map_dbus_error(error) if hasattr(error, "get_dbus_name") else ZeiError(str(error))
        print_and_log(f"[-] Scan failed to start: {mapped}", LOG__GENERAL)

    def _discovery_timeout(self):
        """Handle discovery timeout."""
        self.timer_id = None
        self._scanning = False
        try:
            self.adapter_interface.StopDiscovery(
                reply_handler=lambda: print_and_log("[DEBUG] Discovery stopped", LOG__DEBUG),
                error_handler=lambda e: print_and_log(f"[DEBUG] StopDiscovery: {e}", LOG__DEBUG),
            )
        except dbus.exceptions.DBusException as e:
            print_and_log(f"[DEBUG] StopDiscovery: {e}", LOG__DEBUG)
        self.emit(ScanFinished())
        return False

    # ------------------------------------------------------------------
    # Signal callbacks
    # ------------------------------------------------------------------
    def _interfaces_added(self, object_path: str, interfaces: dict) -> None:
        if not self._scanning or DEVICE_INTERFACE not in interfaces:
            return
        self.emit(DeviceDiscovered(info=device_info_from_properties(interfaces[DEVICE_INTERFACE])))

    def _properties_changed(self, path: str, interface: str, changed: dict, invalidated) -> None:
        if not self._scanning or interface != DEVICE_INTERFACE:
            return
        if not any(key in changed for key in ADVERTISEMENT_PROPERTIES):
            return
        try:
            dbus.Interface(
                self.bus.get_object(BLUEZ_SERVICE_NAME, path, introspect=False), DBUS_PROPERTIES
            ).GetAll(
                DEVICE_INTERFACE,
                reply_handler=self._device_properties_read,
                error_handler=lambda e: self._device_properties_failed(path, e),
            )
        except dbus.exceptions.DBusException as e:
            self._device_properties_failed(path, e)

    def _device_properties_read(self, properties) -> None:
        # The reply can land after the scan window closed
        if not self._scanning:
            return
        self.emit(DeviceDiscovered(info=device_info_from_properties(properties)))

    def _device_properties_failed(self, path: str, error) -> None:
        mapped = map_dbus_error(error) if hasattr(error, "get_dbus_name") else error
        print_and_log(f"[DEBUG] Could not read {path}: {mapped}", LOG__DEBUG)
