"""Value types shared by the core layers and the transports."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Tuple

from zeicube.bt_ref.utils import uuids_equal

__all__ = [
    "ConnectionStatus",
    "Orientation",
    "AddressType",
    "CoreConfiguration",
    "ServiceState",
    "ControllerError",
    "DeviceInfo",
    "TargetDeviceIdentity",
    "DescriptorRef",
    "CharacteristicRef",
]


class ConnectionStatus(enum.Enum):
    """Connection lifecycle as observed by the application."""

    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"


class Orientation(enum.IntEnum):
    """Face of the cube pointing up; VERTICAL when standing on its base."""

    VERTICAL = 0
    FACE1 = 1
    FACE2 = 2
    FACE3 = 3
    FACE4 = 4
    FACE5 = 5
    FACE6 = 6
    FACE7 = 7
    FACE8 = 8


class AddressType(enum.Enum):
    PUBLIC = "public"
    RANDOM = "random"


class CoreConfiguration(enum.Flag):
    """Radio capabilities announced by a discovered device."""

    NONE = 0
    LOW_ENERGY = enum.auto()
    BASE_RATE = enum.auto()


class ServiceState(enum.Enum):
    """Detail-discovery state of a remote GATT service."""

    INVALID = "INVALID"
    REMOTE_SERVICE = "REMOTE_SERVICE"
    DISCOVERING = "DISCOVERING"
    DISCOVERED = "DISCOVERED"
    LOCAL_SERVICE = "LOCAL_SERVICE"


class ControllerError(enum.Enum):
    UNKNOWN = "UNKNOWN"
    UNKNOWN_REMOTE_DEVICE = "UNKNOWN_REMOTE_DEVICE"
    NETWORK = "NETWORK"
    INVALID_ADAPTER = "INVALID_ADAPTER"
    CONNECTION = "CONNECTION"
    MISSING_PERMISSIONS = "MISSING_PERMISSIONS"
    REMOTE_HOST_CLOSED = "REMOTE_HOST_CLOSED"


@dataclass(frozen=True)
class DeviceInfo:
    """One advertising device as reported by a scan."""

    address: str
    name: Optional[str] = None
    core_configurations: CoreConfiguration = CoreConfiguration.NONE
    address_type: Optional[AddressType] = None

    @property
    def is_low_energy(self) -> bool:
        return bool(self.core_configurations & CoreConfiguration.LOW_ENERGY)


@dataclass(frozen=True)
class TargetDeviceIdentity:
    """How the peripheral is recognised among all advertising devices."""

    name: str

    def matches(self, info: DeviceInfo) -> bool:
        return info.is_low_energy and info.name == self.name


@dataclass(frozen=True)
class DescriptorRef:
    uuid: str
    handle: str


@dataclass(frozen=True)
class CharacteristicRef:
    uuid: str
    handle: str
    descriptors: Tuple[DescriptorRef, ...] = ()

    def descriptor(self, uuid: str) -> Optional[DescriptorRef]:
        for desc in self.descriptors:
            if uuids_equal(desc.uuid, uuid):
                return desc
        return None
