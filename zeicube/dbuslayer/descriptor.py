"""Minimal wrapper for BlueZ GATT Descriptor objects."""

from __future__ import annotations

from typing import Dict, Any

from zeicube.bt_ref.constants import (
    CLIENT_CHARACTERISTIC_CONFIGURATION_UUID,
    GATT_DESCRIPTOR_INTERFACE,
)
from zeicube.bt_ref.utils import normalize_uuid, uuids_equal
from zeicube.core.types import DescriptorRef

__all__ = ["Descriptor", "descriptors_from_managed"]


class Descriptor:  # noqa: N801
    """One ``GattDescriptor1`` object, built from ``GetManagedObjects`` data."""

    def __init__(self, path: str, uuid: str):
        self.path = str(path)
        self.uuid = normalize_uuid(uuid)

    @classmethod
    def from_properties(cls, path: str, properties: Dict[str, Any]):
        return cls(path, str(properties.get("UUID", "")))

    @property
    def is_notification_config(self) -> bool:
        return uuids_equal(self.uuid, CLIENT_CHARACTERISTIC_CONFIGURATION_UUID)

    def ref(self) -> DescriptorRef:
        # The object path is the transport handle
        return DescriptorRef(self.uuid, self.path)

    def __repr__(self):  # pragma: no cover – debugging aid
        return f"<Descriptor {self.uuid} @ {self.path}>"


def descriptors_from_managed(managed: Dict[str, Dict[str, Any]], char_path: str):
    """Return the descriptors found directly below *char_path*."""
    desc_prefix = f"{char_path}/desc"
    found = []
    for path, interfaces in sorted(managed.items()):
        path = str(path)
        if not path.startswith(desc_prefix):
            continue
        if GATT_DESCRIPTOR_INTERFACE not in interfaces:
            continue
        found.append(
            Descriptor.from_properties(path, interfaces[GATT_DESCRIPTOR_INTERFACE])
        )
    return found
