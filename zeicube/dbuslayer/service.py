"""GATT service handle on top of BlueZ.

Implements :class:`zeicube.core.transport.ServiceHandle`: detail discovery
reads the characteristic and descriptor objects below the service path, and
the BlueZ properties of those objects are translated into
CHARACTERISTIC_CHANGED / DESCRIPTOR_WRITTEN events.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from gi.repository import GLib

from zeicube.bt_ref.constants import (
    CCCD_DISABLE_NOTIFICATIONS,
    CCCD_ENABLE_NOTIFICATIONS,
    GATT_CHARACTERISTIC_INTERFACE,
)
from zeicube.bt_ref.utils import bytes_to_hex, normalize_uuid, uuids_equal
from zeicube.core.errors import (
    DescriptorNotFoundError,
    InvalidArgumentError,
    NotSupportedError,
    ZeiError,
    controller_error_from_code,
    map_dbus_error,
)
from zeicube.core.events import (
    CharacteristicChanged,
    ControllerErrorOccurred,
    DescriptorWritten,
    ServiceStateChanged,
)
from zeicube.core.log import print_and_log, LOG__DEBUG, LOG__GENERAL
from zeicube.core.transport import ServiceHandle
from zeicube.core.types import CharacteristicRef, DescriptorRef, ServiceState
from zeicube.dbuslayer.characteristic import Characteristic, characteristics_from_managed
from zeicube.dbuslayer.utils import dbus_to_bytes

__all__ = ["Service"]


class Service(ServiceHandle):  # noqa: N801 – keep simple name
    def __init__(self, device, path: str, uuid: str):
        self.device = device
        self.bus = device._bus
        self.path = str(path)
        self.uuid = normalize_uuid(uuid)
        self.characteristics: List[Characteristic] = []
        self._by_path: Dict[str, Characteristic] = {}
        self._closed = False

        self._signals = device._adapter.signals
        self._signals.add_properties_listener(self.path, self._props_changed)

    # ------------------------------------------------------------------
    # ServiceHandle
    # ------------------------------------------------------------------
    def discover_details(self) -> None:
        self._emit(ServiceStateChanged(source=self, state=ServiceState.DISCOVERING))
        GLib.idle_add(self._discover_characteristics)

    def characteristic(self, uuid: str) -> Optional[CharacteristicRef]:
        char = self._find_characteristic(uuid)
        return char.ref() if char is not None else None

    def write_descriptor(self, descriptor: DescriptorRef, value: bytes) -> None:
        char = self._characteristic_owning(descriptor)
        if char is None:
            raise DescriptorNotFoundError(self.uuid, descriptor.uuid)
        desc = next(d for d in char.descriptors if d.path == descriptor.handle)
        if not desc.is_notification_config:
            raise NotSupportedError(f"write to descriptor {descriptor.uuid}")

        value = bytes(value)
        if value == CCCD_ENABLE_NOTIFICATIONS:
            if not char.supports_notifications:
                raise NotSupportedError(f"notifications on characteristic {char.uuid}")
            char.start_notify(
                reply_handler=lambda: print_and_log(f"[+] Notifications on {char.uuid}", LOG__DEBUG),
                error_handler=lambda e: self._notify_failed(char, descriptor, e),
            )
        elif value == CCCD_DISABLE_NOTIFICATIONS:
            char.stop_notify(
                reply_handler=lambda: print_and_log(f"[*] Notifications off {char.uuid}", LOG__DEBUG),
                error_handler=lambda e: print_and_log(f"[-] StopNotify failed: {e}", LOG__DEBUG),
            )
        else:
            raise InvalidArgumentError("value", f"unsupported configuration {bytes_to_hex(value)}")

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._signals.remove_properties_listener(self.path, self._props_changed)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _emit(self, event) -> None:
        if not self._closed:
            self.device._adapter.emit(event)

    def _discover_characteristics(self):
        """Idle callback: enumerate characteristics and descriptors once."""
        if self._closed:
            return False
        try:
            managed = self.device._adapter.get_managed_objects()
        except ZeiError as e:
            print_and_log(f"[-] Characteristic discovery failed for {self.uuid}: {e}", LOG__GENERAL)
            self._discovery_failed(e)
            return False

        self.characteristics = characteristics_from_managed(self.bus, managed, self.path)
        self._by_path = {char.path: char for char in self.characteristics}
        print_and_log(
            f"[DEBUG] Service {self.uuid}: {len(self.characteristics)} characteristic(s)",
            LOG__DEBUG,
        )
        self._emit(ServiceStateChanged(source=self, state=ServiceState.DISCOVERED))
        return False

    def _discovery_failed(self, error: ZeiError) -> None:
        """Report a failed detail discovery and drop the link; the disconnect ends the session."""
        self._emit(ControllerErrorOccurred(error=controller_error_from_code(error.code), message=str(error)))
        try:
            self.device.disconnect_from_device()
        except ZeiError as e:
            print_and_log(f"[-] Disconnect after failed discovery rejected: {e}", LOG__DEBUG)

    def _find_characteristic(self, uuid: str) -> Optional[Characteristic]:
        for char in self.characteristics:
            if uuids_equal(char.uuid, uuid):
                return char
        return None

    def _characteristic_owning(self, descriptor: DescriptorRef) -> Optional[Characteristic]:
        for char in self.characteristics:
            if any(d.path == descriptor.handle for d in char.descriptors):
                return char
        return None

    def _notify_failed(self, char: Characteristic, descriptor: DescriptorRef, error) -> None:
        mapped = map_dbus_error(error) if hasattr(error, "get_dbus_name") else error
        print_and_log(f"[-] StartNotify failed on {char.uuid}: {mapped}", LOG__GENERAL)
        # The configuration stays at "disabled"; report it as such
        self._emit(DescriptorWritten(source=self, descriptor=descriptor, value=CCCD_DISABLE_NOTIFICATIONS))

    def _props_changed(self, path, interface, changed, invalidated) -> None:
        if self._closed or interface != GATT_CHARACTERISTIC_INTERFACE:
            return
        char = self._by_path.get(path)
        if char is None:
            return

        if "Value" in changed:
            self._emit(
                CharacteristicChanged(source=self, uuid=char.uuid, value=dbus_to_bytes(changed["Value"]))
            )

        if "Notifying" in changed:
            desc = char.notification_descriptor()
            if desc is None:
                return
            value = CCCD_ENABLE_NOTIFICATIONS if bool(changed["Notifying"]) else CCCD_DISABLE_NOTIFICATIONS
            self._emit(DescriptorWritten(source=self, descriptor=desc.ref(), value=value))
