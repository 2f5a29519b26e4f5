"""
Tagged events consumed by :class:`zeicube.core.state_machine.ConnectionStateMachine`.

Rules:
- Events describe facts that have occurred; they carry data only.
- Transport callbacks are translated into these events and delivered through
  a single sink, one at a time.
- Session-scoped events carry the service handle that raised them so stale
  deliveries (after teardown) can be recognised and dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from zeicube.core.types import ControllerError, DescriptorRef, DeviceInfo, ServiceState

__all__ = [
    "EventType",
    "Event",
    "StartDiscovery",
    "ScanFinished",
    "DeviceDiscovered",
    "DeviceConnected",
    "DeviceDisconnected",
    "ControllerErrorOccurred",
    "ServiceUuidDiscovered",
    "ServiceDiscoveryFinished",
    "ServiceStateChanged",
    "CharacteristicChanged",
    "DescriptorWritten",
    "ServiceNotFound",
    "SessionFailed",
    "NotificationsEnabled",
    "DisconnectRequested",
]


class EventType(str, Enum):
    # ------------------------------------------------------------------
    # Application command
    # ------------------------------------------------------------------
    START_DISCOVERY = "START_DISCOVERY"

    # ------------------------------------------------------------------
    # Scanner
    # ------------------------------------------------------------------
    SCAN_FINISHED = "SCAN_FINISHED"
    DEVICE_DISCOVERED = "DEVICE_DISCOVERED"

    # ------------------------------------------------------------------
    # Controller
    # ------------------------------------------------------------------
    DEVICE_CONNECTED = "DEVICE_CONNECTED"
    DEVICE_DISCONNECTED = "DEVICE_DISCONNECTED"
    CONTROLLER_ERROR = "CONTROLLER_ERROR"
    SERVICE_UUID_DISCOVERED = "SERVICE_UUID_DISCOVERED"
    SERVICE_DISCOVERY_FINISHED = "SERVICE_DISCOVERY_FINISHED"

    # ------------------------------------------------------------------
    # Service handle
    # ------------------------------------------------------------------
    SERVICE_STATE_CHANGED = "SERVICE_STATE_CHANGED"
    CHARACTERISTIC_CHANGED = "CHARACTERISTIC_CHANGED"
    DESCRIPTOR_WRITTEN = "DESCRIPTOR_WRITTEN"

    # ------------------------------------------------------------------
    # Outcomes raised by the core itself
    # ------------------------------------------------------------------
    SERVICE_NOT_FOUND = "SERVICE_NOT_FOUND"
    SESSION_FAILED = "SESSION_FAILED"
    NOTIFICATIONS_ENABLED = "NOTIFICATIONS_ENABLED"
    DISCONNECT_REQUESTED = "DISCONNECT_REQUESTED"


@dataclass(frozen=True)
class Event:
    event_type: ClassVar[EventType]


@dataclass(frozen=True)
class StartDiscovery(Event):
    event_type: ClassVar[EventType] = EventType.START_DISCOVERY


@dataclass(frozen=True)
class ScanFinished(Event):
    event_type: ClassVar[EventType] = EventType.SCAN_FINISHED


@dataclass(frozen=True)
class DeviceDiscovered(Event):
    info: DeviceInfo
    event_type: ClassVar[EventType] = EventType.DEVICE_DISCOVERED


@dataclass(frozen=True)
class DeviceConnected(Event):
    event_type: ClassVar[EventType] = EventType.DEVICE_CONNECTED


@dataclass(frozen=True)
class DeviceDisconnected(Event):
    event_type: ClassVar[EventType] = EventType.DEVICE_DISCONNECTED


@dataclass(frozen=True)
class ControllerErrorOccurred(Event):
    error: ControllerError = ControllerError.UNKNOWN
    message: str = ""
    event_type: ClassVar[EventType] = EventType.CONTROLLER_ERROR


@dataclass(frozen=True)
class ServiceUuidDiscovered(Event):
    uuid: str = ""
    event_type: ClassVar[EventType] = EventType.SERVICE_UUID_DISCOVERED


@dataclass(frozen=True)
class ServiceDiscoveryFinished(Event):
    event_type: ClassVar[EventType] = EventType.SERVICE_DISCOVERY_FINISHED


@dataclass(frozen=True)
class ServiceStateChanged(Event):
    # Identity of the emitting ServiceHandle, compared with ``is``
    source: Any = field(default=None, compare=False)
    state: ServiceState = ServiceState.INVALID
    event_type: ClassVar[EventType] = EventType.SERVICE_STATE_CHANGED


@dataclass(frozen=True)
class CharacteristicChanged(Event):
    source: Any = field(default=None, compare=False)
    uuid: str = ""
    value: bytes = b""
    event_type: ClassVar[EventType] = EventType.CHARACTERISTIC_CHANGED


@dataclass(frozen=True)
class DescriptorWritten(Event):
    source: Any = field(default=None, compare=False)
    descriptor: DescriptorRef = None  # type: ignore[assignment]
    value: bytes = b""
    event_type: ClassVar[EventType] = EventType.DESCRIPTOR_WRITTEN


@dataclass(frozen=True)
class ServiceNotFound(Event):
    event_type: ClassVar[EventType] = EventType.SERVICE_NOT_FOUND


@dataclass(frozen=True)
class SessionFailed(Event):
    reason: str = ""
    event_type: ClassVar[EventType] = EventType.SESSION_FAILED


@dataclass(frozen=True)
class NotificationsEnabled(Event):
    event_type: ClassVar[EventType] = EventType.NOTIFICATIONS_ENABLED


@dataclass(frozen=True)
class DisconnectRequested(Event):
    event_type: ClassVar[EventType] = EventType.DISCONNECT_REQUESTED
