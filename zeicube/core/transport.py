"""Abstract BLE transport consumed by the connection state machine.

A concrete transport (see :mod:`zeicube.dbuslayer`) turns radio activity into
:mod:`zeicube.core.events` and hands them to the sink given to
:meth:`Transport.bind`.  Every call below is fire-and-forget: results arrive
later as events, never as return values.  Synchronous rejection is reported
by raising :class:`zeicube.core.errors.ZeiError`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional

from zeicube.core.events import Event
from zeicube.core.types import AddressType, CharacteristicRef, DescriptorRef, DeviceInfo

__all__ = ["EventSink", "Transport", "Controller", "ServiceHandle"]

EventSink = Callable[[Event], None]


class ServiceHandle(ABC):
    """One remote GATT service.

    Emits SERVICE_STATE_CHANGED, CHARACTERISTIC_CHANGED and
    DESCRIPTOR_WRITTEN with ``source=self``.
    """

    uuid: str

    @abstractmethod
    def discover_details(self) -> None:
        """Resolve characteristics and descriptors of this service."""

    @abstractmethod
    def characteristic(self, uuid: str) -> Optional[CharacteristicRef]:
        """Return the characteristic *uuid* once details are discovered."""

    @abstractmethod
    def write_descriptor(self, descriptor: DescriptorRef, value: bytes) -> None:
        """Write *value* to *descriptor*; confirmation arrives as DESCRIPTOR_WRITTEN."""

    @abstractmethod
    def close(self) -> None:
        """Stop delivering events for this service."""


class Controller(ABC):
    """Central-role connection to one peripheral.

    Emits DEVICE_CONNECTED, DEVICE_DISCONNECTED, CONTROLLER_ERROR,
    SERVICE_UUID_DISCOVERED and SERVICE_DISCOVERY_FINISHED.
    """

    @abstractmethod
    def connect_to_device(self) -> None:
        ...

    @abstractmethod
    def disconnect_from_device(self) -> None:
        ...

    @abstractmethod
    def discover_services(self) -> None:
        ...

    @abstractmethod
    def open_service(self, uuid: str) -> Optional[ServiceHandle]:
        """Return a handle for service *uuid*, or ``None`` if it was not enumerated."""

    @property
    @abstractmethod
    def error_string(self) -> str:
        """Human readable description of the last controller error."""


class Transport(ABC):
    """Scanner plus controller factory for one local adapter.

    Emits DEVICE_DISCOVERED while a scan is active and SCAN_FINISHED when it
    ends.
    """

    @abstractmethod
    def bind(self, sink: EventSink) -> None:
        """Route every event raised by this transport (and its controllers) to *sink*."""

    @abstractmethod
    def start_scan(self, timeout_ms: int) -> None:
        """Start a low-energy scan that ends by itself after *timeout_ms*.

        Never raises: a scan that cannot be started still ends with
        SCAN_FINISHED so the caller keeps retrying.
        """

    @abstractmethod
    def create_controller(self, info: DeviceInfo, address_type: AddressType) -> Controller:
        ...
