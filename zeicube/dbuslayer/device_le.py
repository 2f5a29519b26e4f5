"""Low-Energy device controller for the BlueZ stack.

Asynchronous counterpart of a central-role connection: every D-Bus call uses
``reply_handler`` / ``error_handler`` and outcomes are reported as
controller events through the owning adapter.
"""

#!/usr/bin/python3

from __future__ import annotations

from typing import Dict, Optional

import dbus
from gi.repository import GLib

from zeicube.bt_ref.constants import (
    BLUEZ_SERVICE_NAME,
    DBUS_PROPERTIES,
    DEVICE_INTERFACE,
    GATT_SERVICE_INTERFACE,
)
from zeicube.bt_ref.utils import device_address_to_path, normalize_uuid
from zeicube.core.errors import ZeiError, controller_error_from_code, map_dbus_error
from zeicube.core.events import (
    ControllerErrorOccurred,
    DeviceConnected,
    DeviceDisconnected,
    ServiceDiscoveryFinished,
    ServiceUuidDiscovered,
)
from zeicube.core.log import print_and_log, LOG__DEBUG, LOG__GENERAL
from zeicube.core.transport import Controller
from zeicube.core.types import AddressType
from zeicube.dbuslayer.service import Service

__all__ = [
    "system_dbus__bluez_device__low_energy",
]


class system_dbus__bluez_device__low_energy(Controller):  # noqa: N801 – preserve legacy name
    """Wrapper around a single LE device exposed by BlueZ."""

    def __init__(self, mac_address: str, adapter, address_type: AddressType = AddressType.RANDOM):
        self.mac_address = mac_address.lower()
        self.address_type = address_type
        self._adapter = adapter
        self._bus = adapter.bus

        self._device_path: str = device_address_to_path(self.mac_address, adapter.adapter_path)
        self._device_iface = None
        self._props_iface = None

        self._last_error = ""
        self._discovery_pending = False
        # uuid -> object path of the last service enumeration
        self._services: Dict[str, str] = {}

        adapter.signals.add_properties_listener(self._device_path, self._properties_changed)

    # ------------------------------------------------------------------
    # Controller
    # ------------------------------------------------------------------
    @property
    def error_string(self) -> str:
        return self._last_error

    def connect_to_device(self) -> None:
        print_and_log(f"[*] Attempting connection to {self.mac_address}", LOG__DEBUG)
        try:
            if self._device_known():
                self._bind_device_object()
                self._device_iface.Connect(
                    reply_handler=self._connect_succeeded,
                    error_handler=self._connect_failed,
                )
            else:
                # Not in the BlueZ cache: let the adapter create and connect it
                params = dbus.Dictionary(
                    {
                        "Address": dbus.String(self.mac_address.upper()),
                        "AddressType": dbus.String(self.address_type.value),
                    },
                    signature="sv",
                )
                self._adapter.adapter_interface.ConnectDevice(
                    params,
                    reply_handler=self._device_created,
                    error_handler=self._connect_failed,
                )
        except dbus.exceptions.DBusException as e:
            raise map_dbus_error(e)

    def disconnect_from_device(self) -> None:
        print_and_log(f"[*] Disconnecting from {self.mac_address}", LOG__GENERAL)
        self._discovery_pending = False
        if self._device_iface is None:
            return
        try:
            self._device_iface.Disconnect(
                reply_handler=lambda: print_and_log(
                    f"[DEBUG] Disconnect acknowledged by {self.mac_address}", LOG__DEBUG
                ),
                error_handler=self._disconnect_failed,
            )
        except dbus.exceptions.DBusException as e:
            raise map_dbus_error(e)

    def discover_services(self) -> None:
        self._services.clear()
        if self.is_services_resolved():
            GLib.idle_add(self._enumerate_services)
        else:
            # Enumerate once BlueZ reports ServicesResolved
            self._discovery_pending = True

    def open_service(self, uuid: str) -> Optional[Service]:
        path = self._services.get(normalize_uuid(uuid))
        if path is None:
            return None
        return Service(self, path, uuid)

    # ------------------------------------------------------------------
    # Properties & state helpers
    # ------------------------------------------------------------------
    def is_services_resolved(self) -> bool:
        if self._props_iface is None:
            return False
        try:
            return bool(self._props_iface.Get(DEVICE_INTERFACE, "ServicesResolved"))
        except dbus.exceptions.DBusException as e:
            print_and_log(f"[DEBUG] ServicesResolved unavailable: {map_dbus_error(e)}", LOG__DEBUG)
            return False

    def _device_known(self) -> bool:
        try:
            return self._device_path in self._adapter.get_managed_objects()
        except ZeiError as e:
            print_and_log(f"[DEBUG] Device lookup failed: {e}", LOG__DEBUG)
            return False

    def _bind_device_object(self) -> None:
        if self._device_iface is not None:
            return
        device_object = self._bus.get_object(BLUEZ_SERVICE_NAME, self._device_path)
        self._device_iface = dbus.Interface(device_object, DEVICE_INTERFACE)
        self._props_iface = dbus.Interface(device_object, DBUS_PROPERTIES)

    # ------------------------------------------------------------------
    # D-Bus replies
    # ------------------------------------------------------------------
    def _device_created(self, object_path=None) -> None:
        print_and_log(f"[DEBUG] BlueZ created {object_path}", LOG__DEBUG)
        try:
            self._bind_device_object()
        except dbus.exceptions.DBusException as e:
            self._connect_failed(e)
            return
        self._connect_succeeded()

    def _connect_succeeded(self) -> None:
        print_and_log(f"[+] Connect succeeded ({self.mac_address})", LOG__GENERAL)
        self._adapter.emit(DeviceConnected())

    def _connect_failed(self, error) -> None:
        if hasattr(error, "get_dbus_name") and error.get_dbus_name() == "org.bluez.Error.AlreadyConnected":
            self._connect_succeeded()
            return
        mapped = map_dbus_error(error) if hasattr(error, "get_dbus_name") else ZeiError(str(error))
        self._last_error = str(mapped)
        print_and_log(f"[-] Connect failed ({self.mac_address}): {mapped}", LOG__GENERAL)
        self._adapter.emit(
            ControllerErrorOccurred(error=controller_error_from_code(mapped.code), message=str(mapped))
        )

    def _disconnect_failed(self, error) -> None:
        mapped = map_dbus_error(error) if hasattr(error, "get_dbus_name") else error
        print_and_log(f"[-] Disconnect failed ({self.mac_address}): {mapped}", LOG__DEBUG)

    def _enumerate_services(self):
        """Idle callback: report every GattService1 below the device path."""
        try:
            managed = self._adapter.get_managed_objects()
        except ZeiError as e:
            self._last_error = str(e)
            print_and_log(f"[-] Service enumeration failed: {e}", LOG__GENERAL)
            self._adapter.emit(
                ControllerErrorOccurred(error=controller_error_from_code(e.code), message=str(e))
            )
            managed = {}

        prefix = self._device_path + "/"
        for path, interfaces in sorted(managed.items()):
            path = str(path)
            if not path.startswith(prefix) or GATT_SERVICE_INTERFACE not in interfaces:
                continue
            uuid = normalize_uuid(interfaces[GATT_SERVICE_INTERFACE].get("UUID", ""))
            self._services[uuid] = path
            print_and_log(f"[DEBUG] Service {uuid} at {path}", LOG__DEBUG)
            self._adapter.emit(ServiceUuidDiscovered(uuid=uuid))

        self._adapter.emit(ServiceDiscoveryFinished())
        return False

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------
    def _properties_changed(self, path, interface, changed, invalidated) -> None:
        if path != self._device_path or interface != DEVICE_INTERFACE:
            return

        if "Connected" in changed and not bool(changed["Connected"]):
            print_and_log(f"[*] Device {self.mac_address} disconnected", LOG__DEBUG)
            self._discovery_pending = False
            self._services.clear()
            self._adapter.emit(DeviceDisconnected())
            return

        if "ServicesResolved" in changed and bool(changed["ServicesResolved"]):
            print_and_log(f"[+] Services resolved for {self.mac_address}", LOG__DEBUG)
            if self._discovery_pending:
                self._discovery_pending = False
                GLib.idle_add(self._enumerate_services)

    def __repr__(self):  # pragma: no cover – debugging aid
        return f"<system_dbus__bluez_device__low_energy {self.mac_address} @ {self._device_path}>"
