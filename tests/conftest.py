"""Shared fixtures: an in-memory transport that records calls and lets tests inject events."""

from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from zeicube.bt_ref.constants import (
    CLIENT_CHARACTERISTIC_CONFIGURATION_UUID,
    ZEI_ORIENTATION_CHARACTERISTIC_UUID,
    ZEI_ORIENTATION_SERVICE_UUID,
)
from zeicube.core.errors import ZeiError
from zeicube.core.events import (
    CharacteristicChanged,
    DescriptorWritten,
    DeviceConnected,
    DeviceDisconnected,
    DeviceDiscovered,
    ScanFinished,
    ServiceDiscoveryFinished,
    ServiceStateChanged,
    ServiceUuidDiscovered,
)
from zeicube.core.transport import Controller, ServiceHandle, Transport
from zeicube.core.types import (
    AddressType,
    CharacteristicRef,
    CoreConfiguration,
    DescriptorRef,
    DeviceInfo,
    ServiceState,
)

ZEI_ADDRESS = "D4:7A:12:34:56:78"

CCCD_REF = DescriptorRef(CLIENT_CHARACTERISTIC_CONFIGURATION_UUID, "char0012/desc0014")
ORIENTATION_CHAR_REF = CharacteristicRef(
    ZEI_ORIENTATION_CHARACTERISTIC_UUID, "char0012", (CCCD_REF,)
)


class FakeService(ServiceHandle):
    def __init__(self, uuid: str, characteristics=(ORIENTATION_CHAR_REF,)):
        self.uuid = uuid
        self.characteristics = list(characteristics)
        self.calls: List[str] = []
        self.writes: List[tuple] = []
        self.write_error: Optional[ZeiError] = None
        self.closed = False

    def discover_details(self) -> None:
        self.calls.append("discover_details")

    def characteristic(self, uuid: str) -> Optional[CharacteristicRef]:
        for char in self.characteristics:
            if char.uuid.lower() == uuid.lower():
                return char
        return None

    def write_descriptor(self, descriptor: DescriptorRef, value: bytes) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.writes.append((descriptor, bytes(value)))

    def close(self) -> None:
        self.closed = True


class FakeController(Controller):
    def __init__(self, info: DeviceInfo, address_type: AddressType):
        self.info = info
        self.address_type = address_type
        self.calls: List[str] = []
        self.services: Dict[str, FakeService] = {}
        self.opened: List[FakeService] = []
        self.last_error = ""

    def connect_to_device(self) -> None:
        self.calls.append("connect")

    def disconnect_from_device(self) -> None:
        self.calls.append("disconnect")

    def discover_services(self) -> None:
        self.calls.append("discover_services")

    def open_service(self, uuid: str) -> Optional[FakeService]:
        template = self.services.get(uuid.lower())
        if template is None:
            return None
        # Every open yields a fresh handle, like a real transport
        service = FakeService(template.uuid, template.characteristics)
        service.write_error = template.write_error
        self.opened.append(service)
        return service

    @property
    def error_string(self) -> str:
        return self.last_error


class FakeTransport(Transport):
    def __init__(self):
        self.sink = None
        self.scans: List[int] = []
        self.controllers: List[FakeController] = []
        self.service_templates: Dict[str, FakeService] = {
            ZEI_ORIENTATION_SERVICE_UUID: FakeService(ZEI_ORIENTATION_SERVICE_UUID)
        }

    def bind(self, sink) -> None:
        self.sink = sink

    def start_scan(self, timeout_ms: int) -> None:
        self.scans.append(timeout_ms)

    def create_controller(self, info: DeviceInfo, address_type: AddressType) -> FakeController:
        controller = FakeController(info, address_type)
        controller.services = self.service_templates
        self.controllers.append(controller)
        return controller

    # ------------------------------------------------------------------
    # Event injection helpers
    # ------------------------------------------------------------------
    def emit(self, event) -> None:
        self.sink(event)

    def advertise(self, name="Timeular ZEI", address=ZEI_ADDRESS, le=True) -> None:
        core = CoreConfiguration.LOW_ENERGY if le else CoreConfiguration.BASE_RATE
        self.emit(DeviceDiscovered(info=DeviceInfo(address, name, core, AddressType.RANDOM)))

    def finish_scan(self) -> None:
        self.emit(ScanFinished())

    def connected(self) -> None:
        self.emit(DeviceConnected())

    def disconnected(self) -> None:
        self.emit(DeviceDisconnected())

    def services_discovered(self, *uuids) -> None:
        for uuid in uuids:
            self.emit(ServiceUuidDiscovered(uuid=uuid))
        self.emit(ServiceDiscoveryFinished())

    def service_state(self, service, state: ServiceState) -> None:
        self.emit(ServiceStateChanged(source=service, state=state))

    def notify(self, service, payload: bytes, uuid=ZEI_ORIENTATION_CHARACTERISTIC_UUID) -> None:
        self.emit(CharacteristicChanged(source=service, uuid=uuid, value=payload))

    def descriptor_written(self, service, value: bytes, descriptor=CCCD_REF) -> None:
        self.emit(DescriptorWritten(source=service, descriptor=descriptor, value=value))


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    """Keep settings lookups away from the real user config directory."""
    monkeypatch.setattr("zeicube.core.config.CONFIG_FILE", tmp_path / "absent.yaml")
