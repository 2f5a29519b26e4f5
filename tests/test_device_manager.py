from zeicube.bt_ref.constants import (
    CCCD_DISABLE_NOTIFICATIONS,
    CCCD_ENABLE_NOTIFICATIONS,
    ZEI_ORIENTATION_SERVICE_UUID,
)
from zeicube.core.config import Settings
from zeicube.core.device_management import DeviceManager
from zeicube.core.types import ConnectionStatus, Orientation, ServiceState


def _manager(transport, **settings):
    manager = DeviceManager(transport, Settings(**settings))
    statuses, orientations = [], []
    manager.add_status_listener(statuses.append)
    manager.add_orientation_listener(orientations.append)
    return manager, statuses, orientations


def test_initial_state(transport):
    manager, statuses, orientations = _manager(transport)

    assert manager.status is ConnectionStatus.DISCONNECTED
    assert manager.orientation is Orientation.VERTICAL
    assert statuses == [] and orientations == []


def test_end_to_end_scenario(transport):
    manager, statuses, orientations = _manager(transport)

    manager.start_discovery()
    transport.advertise()
    transport.connected()
    transport.services_discovered(ZEI_ORIENTATION_SERVICE_UUID)
    service = transport.controllers[0].opened[0]
    transport.service_state(service, ServiceState.DISCOVERING)
    transport.service_state(service, ServiceState.DISCOVERED)
    transport.descriptor_written(service, CCCD_ENABLE_NOTIFICATIONS)

    transport.notify(service, b"\x03")
    transport.notify(service, b"\x03")
    transport.notify(service, b"\x06")

    transport.descriptor_written(service, CCCD_DISABLE_NOTIFICATIONS)
    transport.disconnected()

    assert statuses == [
        ConnectionStatus.CONNECTING,
        ConnectionStatus.CONNECTED,
        ConnectionStatus.DISCONNECTED,
    ]
    assert orientations == [Orientation.FACE3, Orientation.FACE6]
    assert manager.status is ConnectionStatus.DISCONNECTED
    # Last known orientation survives the disconnect
    assert manager.orientation is Orientation.FACE6
    assert transport.controllers[0].calls == ["connect", "discover_services", "disconnect"]


def test_settings_reach_state_machine(transport):
    manager, _, _ = _manager(transport, device_name="Lab Cube", scan_timeout_ms=750)

    manager.start_discovery()
    transport.advertise()
    transport.advertise(name="Lab Cube")

    assert transport.scans == [750]
    assert len(transport.controllers) == 1
    assert manager.state_machine.identity.name == "Lab Cube"


def test_failing_listener_does_not_block_others(transport):
    manager = DeviceManager(transport)
    seen = []

    def broken(_status):
        raise RuntimeError("boom")

    manager.add_status_listener(broken)
    manager.add_status_listener(seen.append)
    manager.start_discovery()

    assert seen == [ConnectionStatus.CONNECTING]
    assert manager.status is ConnectionStatus.CONNECTING


def test_removed_listener_is_not_called(transport):
    manager = DeviceManager(transport)
    seen = []
    manager.add_status_listener(seen.append)
    manager.add_status_listener(seen.append)
    manager.remove_status_listener(seen.append)
    manager.remove_status_listener(seen.append)

    manager.start_discovery()
    assert seen == []


def test_orientation_listener_removal(transport):
    manager = DeviceManager(transport)
    seen = []
    manager.add_orientation_listener(seen.append)
    manager.remove_orientation_listener(seen.append)

    manager.start_discovery()
    transport.advertise()
    transport.connected()
    transport.services_discovered(ZEI_ORIENTATION_SERVICE_UUID)
    service = transport.controllers[0].opened[0]
    transport.service_state(service, ServiceState.DISCOVERED)
    transport.notify(service, b"\x01")

    assert seen == []
    assert manager.orientation is Orientation.FACE1
