"""Simple abstraction of a GATT Characteristic as exposed by BlueZ.

Only what the orientation subscription needs: the descriptor list and the
StartNotify / StopNotify pair.  BlueZ owns the CCCD, so enabling or
disabling notifications goes through those two methods instead of a
descriptor write.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import dbus

from zeicube.bt_ref.constants import BLUEZ_SERVICE_NAME, GATT_CHARACTERISTIC_INTERFACE
from zeicube.bt_ref.utils import normalize_uuid
from zeicube.core.errors import map_dbus_error
from zeicube.core.log import print_and_log, LOG__DEBUG
from zeicube.core.types import CharacteristicRef
from zeicube.dbuslayer.descriptor import Descriptor, descriptors_from_managed
from zeicube.dbuslayer.utils import dbus_to_python

__all__ = ["Characteristic", "characteristics_from_managed"]


class Characteristic:  # noqa: N801 – keep legacy-friendly name
    """Lightweight wrapper around the BlueZ *GattCharacteristic1* interface."""

    def __init__(
        self,
        bus,
        path: str,
        uuid: str,
        flags: Optional[List[str]] = None,
        descriptors: Optional[List[Descriptor]] = None,
    ):
        self.bus = bus
        self.path = str(path)
        self.uuid = normalize_uuid(uuid)
        self.flags: List[str] = list(flags or [])
        self.descriptors: List[Descriptor] = list(descriptors or [])
        self._char_iface = None

    @property
    def char_iface(self):
        if self._char_iface is None:
            self._char_iface = dbus.Interface(
                self.bus.get_object(BLUEZ_SERVICE_NAME, self.path),
                GATT_CHARACTERISTIC_INTERFACE,
            )
        return self._char_iface

    @property
    def supports_notifications(self) -> bool:
        return "notify" in self.flags or "indicate" in self.flags

    def notification_descriptor(self) -> Optional[Descriptor]:
        for desc in self.descriptors:
            if desc.is_notification_config:
                return desc
        return None

    def ref(self) -> CharacteristicRef:
        return CharacteristicRef(
            self.uuid, self.path, tuple(desc.ref() for desc in self.descriptors)
        )

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def start_notify(self, reply_handler: Callable[[], None], error_handler: Callable[[Exception], None]):
        """Ask BlueZ to subscribe; confirmation shows up as ``Notifying = True``."""
        print_and_log(f"[DEBUG] StartNotify on {self.path}", LOG__DEBUG)
        try:
            self.char_iface.StartNotify(reply_handler=reply_handler, error_handler=error_handler)
        except dbus.exceptions.DBusException as e:
            raise map_dbus_error(e)

    def stop_notify(self, reply_handler: Callable[[], None], error_handler: Callable[[Exception], None]):
        print_and_log(f"[DEBUG] StopNotify on {self.path}", LOG__DEBUG)
        try:
            self.char_iface.StopNotify(reply_handler=reply_handler, error_handler=error_handler)
        except dbus.exceptions.DBusException as e:
            raise map_dbus_error(e)

    def __repr__(self):  # pragma: no cover – debugging aid
        return f"<Characteristic {self.uuid} @ {self.path}>"


def characteristics_from_managed(bus, managed: Dict[str, Dict[str, Any]], service_path: str):
    """Build :class:`Characteristic` objects (with descriptors) below *service_path*."""
    char_prefix = f"{service_path}/char"
    found: List[Characteristic] = []
    for path, interfaces in sorted(managed.items()):
        path = str(path)
        if not path.startswith(char_prefix) or "/desc" in path[len(char_prefix):]:
            continue
        if GATT_CHARACTERISTIC_INTERFACE not in interfaces:
            continue
        props = interfaces[GATT_CHARACTERISTIC_INTERFACE]
        uuid = str(props.get("UUID", ""))
        found.append(
            Characteristic(
                bus,
                path,
                uuid,
                flags=dbus_to_python(props.get("Flags", [])),
                descriptors=descriptors_from_managed(managed, path),
            )
        )
    return found
