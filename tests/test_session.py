import pytest

from conftest import CCCD_REF, ORIENTATION_CHAR_REF, FakeService
from zeicube.bt_ref.constants import (
    CCCD_DISABLE_NOTIFICATIONS,
    CCCD_ENABLE_NOTIFICATIONS,
    ZEI_ORIENTATION_CHARACTERISTIC_UUID,
    ZEI_ORIENTATION_SERVICE_UUID,
)
from zeicube.core.errors import NotAuthorizedError
from zeicube.core.events import EventType
from zeicube.core.session import GattSession
from zeicube.core.types import CharacteristicRef, DescriptorRef, Orientation, ServiceState


@pytest.fixture
def service():
    return FakeService(ZEI_ORIENTATION_SERVICE_UUID)


@pytest.fixture
def session(service):
    s = GattSession(service)
    s.start()
    return s


def test_start_requests_detail_discovery(service, session):
    assert service.calls == ["discover_details"]


def test_discovering_is_a_no_op(service, session):
    assert session.on_service_state_changed(ServiceState.DISCOVERING) is None
    assert service.writes == []


@pytest.mark.parametrize(
    "state", [ServiceState.INVALID, ServiceState.REMOTE_SERVICE, ServiceState.LOCAL_SERVICE]
)
def test_other_states_are_ignored(service, session, state):
    assert session.on_service_state_changed(state) is None
    assert service.writes == []


def test_discovered_writes_enable_and_reports_enabled(service, session):
    outcome = session.on_service_state_changed(ServiceState.DISCOVERED)

    assert outcome.event_type is EventType.NOTIFICATIONS_ENABLED
    assert service.writes == [(CCCD_REF, CCCD_ENABLE_NOTIFICATIONS)]
    assert session.notification_descriptor == CCCD_REF


def test_missing_characteristic_fails(service, session):
    service.characteristics = []
    outcome = session.on_service_state_changed(ServiceState.DISCOVERED)

    assert outcome.event_type is EventType.SESSION_FAILED
    assert ZEI_ORIENTATION_CHARACTERISTIC_UUID in outcome.reason
    assert service.writes == []


def test_missing_descriptor_fails(service, session):
    service.characteristics = [CharacteristicRef(ZEI_ORIENTATION_CHARACTERISTIC_UUID, "char0012")]
    outcome = session.on_service_state_changed(ServiceState.DISCOVERED)

    assert outcome.event_type is EventType.SESSION_FAILED
    assert "00002902" in outcome.reason


def test_rejected_write_fails(service, session):
    service.write_error = NotAuthorizedError("CCCD write")
    outcome = session.on_service_state_changed(ServiceState.DISCOVERED)

    assert outcome.event_type is EventType.SESSION_FAILED
    assert "authorization" in outcome.reason


@pytest.mark.parametrize(
    "payload, expected",
    [
        (b"\x00", Orientation.VERTICAL),
        (b"\x01", Orientation.FACE1),
        (b"\x08", Orientation.FACE8),
        (b"\x09", Orientation.VERTICAL),
        (b"\x05\x00\x00", Orientation.FACE5),
        (b"", Orientation.VERTICAL),
    ],
)
def test_characteristic_change_decodes(session, payload, expected):
    assert session.on_characteristic_changed(ZEI_ORIENTATION_CHARACTERISTIC_UUID, payload) is expected


def test_characteristic_uuid_comparison_ignores_case(session):
    uuid = ZEI_ORIENTATION_CHARACTERISTIC_UUID.upper()
    assert session.on_characteristic_changed(uuid, b"\x02") is Orientation.FACE2


def test_other_characteristic_is_ignored(session):
    assert session.on_characteristic_changed("00002a19-0000-1000-8000-00805f9b34fb", b"\x02") is None


def test_disable_on_cccd_is_disconnect_intent(session):
    session.on_service_state_changed(ServiceState.DISCOVERED)
    outcome = session.on_descriptor_written(CCCD_REF, CCCD_DISABLE_NOTIFICATIONS)
    assert outcome.event_type is EventType.DISCONNECT_REQUESTED


def test_enable_confirmation_is_ignored(session):
    session.on_service_state_changed(ServiceState.DISCOVERED)
    assert session.on_descriptor_written(CCCD_REF, CCCD_ENABLE_NOTIFICATIONS) is None


def test_descriptor_write_before_subscription_is_ignored(session):
    assert session.on_descriptor_written(CCCD_REF, CCCD_DISABLE_NOTIFICATIONS) is None


def test_same_uuid_other_handle_is_not_the_cccd(session):
    session.on_service_state_changed(ServiceState.DISCOVERED)
    other = DescriptorRef(CCCD_REF.uuid, "char0020/desc0022")
    assert session.on_descriptor_written(other, CCCD_DISABLE_NOTIFICATIONS) is None


def test_close_releases_handle_and_makes_session_inert(service, session):
    session.close()
    session.close()

    assert service.closed
    assert session.closed
    assert session.on_service_state_changed(ServiceState.DISCOVERED) is None
    assert session.on_characteristic_changed(ORIENTATION_CHAR_REF.uuid, b"\x03") is None
    assert session.on_descriptor_written(CCCD_REF, CCCD_DISABLE_NOTIFICATIONS) is None
    assert service.writes == []
