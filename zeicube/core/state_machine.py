"""Connection state machine for a single ZEI cube.

The machine is the only owner of the controller and of the GATT session.
Transport callbacks arrive through :meth:`ConnectionStateMachine.dispatch`
as tagged events and are handled one at a time; every status decision is
made by the pure :func:`transition` function.
"""

from __future__ import annotations

import enum
from typing import Callable, Dict, Optional

from zeicube.bt_ref.constants import ZEI_ORIENTATION_SERVICE_UUID
from zeicube.bt_ref.utils import get_name_from_uuid, uuids_equal
from zeicube.core.config import SCAN_TIMEOUT_MS, TARGET_DEVICE_NAME
from zeicube.core.errors import ServiceNotFoundError, ZeiError
from zeicube.core.events import (
    CharacteristicChanged,
    ControllerErrorOccurred,
    DescriptorWritten,
    DeviceDiscovered,
    Event,
    EventType,
    ServiceNotFound,
    ServiceStateChanged,
    ServiceUuidDiscovered,
    SessionFailed,
    StartDiscovery,
)
from zeicube.core.log import print_and_log, LOG__DEBUG, LOG__DEVICE, LOG__GENERAL
from zeicube.core.session import GattSession
from zeicube.core.transport import Controller, Transport
from zeicube.core.types import (
    AddressType,
    ConnectionStatus,
    Orientation,
    TargetDeviceIdentity,
)

__all__ = ["transition", "ConnectionStateMachine"]

StatusCallback = Callable[[ConnectionStatus], None]
OrientationCallback = Callable[[Orientation], None]


def transition(status: ConnectionStatus, event: Event) -> ConnectionStatus:
    """Return the status that follows *status* once *event* has been handled."""
    event_type = event.event_type
    if event_type is EventType.START_DISCOVERY:
        if status is ConnectionStatus.DISCONNECTED:
            return ConnectionStatus.CONNECTING
        return status
    if event_type in (
        EventType.DEVICE_DISCONNECTED,
        EventType.SERVICE_NOT_FOUND,
        EventType.SESSION_FAILED,
    ):
        return ConnectionStatus.DISCONNECTED
    if event_type is EventType.NOTIFICATIONS_ENABLED:
        return ConnectionStatus.CONNECTED
    return status


class _Link(enum.Enum):
    """Physical link as last reported by the controller."""

    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"


class ConnectionStateMachine:
    """Scan, connect, discover and subscribe; recover on any failure."""

    def __init__(
        self,
        transport: Transport,
        identity: Optional[TargetDeviceIdentity] = None,
        scan_timeout_ms: int = SCAN_TIMEOUT_MS,
        service_uuid: str = ZEI_ORIENTATION_SERVICE_UUID,
        on_status_changed: Optional[StatusCallback] = None,
        on_orientation_changed: Optional[OrientationCallback] = None,
    ):
        self._transport = transport
        self.identity = identity or TargetDeviceIdentity(TARGET_DEVICE_NAME)
        self.scan_timeout_ms = scan_timeout_ms
        self.service_uuid = service_uuid
        self.on_status_changed = on_status_changed
        self.on_orientation_changed = on_orientation_changed

        self._status = ConnectionStatus.DISCONNECTED
        self._orientation = Orientation.VERTICAL
        self._controller: Optional[Controller] = None
        self._session: Optional[GattSession] = None
        self._link = _Link.IDLE
        self._scan_active = False
        # Reset on every DEVICE_CONNECTED, set by SERVICE_UUID_DISCOVERED
        self._service_seen = False

        self._handlers: Dict[EventType, Callable[[Event], None]] = {
            EventType.START_DISCOVERY: self._on_start_discovery,
            EventType.SCAN_FINISHED: self._on_scan_finished,
            EventType.DEVICE_DISCOVERED: self._on_device_discovered,
            EventType.DEVICE_CONNECTED: self._on_device_connected,
            EventType.DEVICE_DISCONNECTED: self._on_device_disconnected,
            EventType.CONTROLLER_ERROR: self._on_controller_error,
            EventType.SERVICE_UUID_DISCOVERED: self._on_service_uuid_discovered,
            EventType.SERVICE_DISCOVERY_FINISHED: self._on_service_discovery_finished,
            EventType.SERVICE_STATE_CHANGED: self._on_service_state_changed,
            EventType.CHARACTERISTIC_CHANGED: self._on_characteristic_changed,
            EventType.DESCRIPTOR_WRITTEN: self._on_descriptor_written,
            EventType.SERVICE_NOT_FOUND: self._apply,
            EventType.SESSION_FAILED: self._apply,
            EventType.NOTIFICATIONS_ENABLED: self._apply,
            EventType.DISCONNECT_REQUESTED: self._apply,
        }

        transport.bind(self.dispatch)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def orientation(self) -> Orientation:
        return self._orientation

    @property
    def controller(self) -> Optional[Controller]:
        return self._controller

    @property
    def session(self) -> Optional[GattSession]:
        return self._session

    def start_discovery(self) -> None:
        """Begin looking for the cube; ignored unless DISCONNECTED."""
        self.dispatch(StartDiscovery())

    def dispatch(self, event: Event) -> None:
        """Handle one transport (or internal) event."""
        handler = self._handlers.get(event.event_type)
        if handler is None:
            print_and_log(f"[DEBUG] No handler for {event.event_type.value}", LOG__DEBUG)
            return
        handler(event)

    def shutdown(self) -> None:
        """Close the session and drop the link (used on application exit)."""
        self._teardown_session()
        if self._link is not _Link.IDLE:
            self._drop_link()

    # ------------------------------------------------------------------
    # Scanner events
    # ------------------------------------------------------------------
    def _on_start_discovery(self, event: Event) -> None:
        if self._status is not ConnectionStatus.DISCONNECTED:
            print_and_log(
                f"[DEBUG] start_discovery ignored while {self._status.value}", LOG__DEBUG
            )
            return
        self._advance(event)
        self._start_scan()

    def _on_scan_finished(self, event: Event) -> None:
        self._scan_active = False
        if self._session is not None:
            return
        if self._status is ConnectionStatus.DISCONNECTED:
            self.start_discovery()
        elif self._status is ConnectionStatus.CONNECTING and self._link is _Link.IDLE:
            # Keep looking without another status notification
            print_and_log("[*] Target not connected yet, scanning again", LOG__DEBUG)
            self._start_scan()

    def _on_device_discovered(self, event: DeviceDiscovered) -> None:
        if self._status is not ConnectionStatus.CONNECTING:
            return
        info = event.info
        if not info.is_low_energy:
            return
        if not self.identity.matches(info):
            return

        if self._controller is None:
            print_and_log(f"[+] Found {info.name} ({info.address})", LOG__GENERAL)
            self._controller = self._transport.create_controller(info, AddressType.RANDOM)

        if self._link is not _Link.IDLE:
            print_and_log(
                f"[DEBUG] Connect already {self._link.value.lower()}, ignoring advertisement",
                LOG__DEBUG,
            )
            return

        self._link = _Link.CONNECTING
        print_and_log(f"[*] Connecting to {info.address}", LOG__GENERAL)
        try:
            self._controller.connect_to_device()
        except ZeiError as exc:
            print_and_log(f"[-] Connect request rejected: {exc}", LOG__GENERAL)
            self._link = _Link.IDLE

    # ------------------------------------------------------------------
    # Controller events
    # ------------------------------------------------------------------
    def _on_device_connected(self, event: Event) -> None:
        if self._controller is None:
            return
        self._link = _Link.CONNECTED
        self._service_seen = False
        print_and_log("[+] Connected, discovering services", LOG__GENERAL)
        try:
            self._controller.discover_services()
        except ZeiError as exc:
            print_and_log(f"[-] Service discovery failed to start: {exc}", LOG__GENERAL)
            self._drop_link()

    def _on_device_disconnected(self, event: Event) -> None:
        self._link = _Link.IDLE
        self._teardown_session()
        print_and_log("[*] Device disconnected", LOG__GENERAL)
        self._advance(event)

    def _on_controller_error(self, event: ControllerErrorOccurred) -> None:
        message = event.message
        if not message and self._controller is not None:
            message = self._controller.error_string
        print_and_log(f"[!] Controller error {event.error.value}: {message}", LOG__GENERAL)
        if self._link is not _Link.CONNECTING:
            return
        self._link = _Link.IDLE
        # The scan window may have closed while the connect was pending
        if (
            self._status is ConnectionStatus.CONNECTING
            and self._session is None
            and not self._scan_active
        ):
            print_and_log("[*] Connect failed after scan ended, scanning again", LOG__DEBUG)
            self._start_scan()

    def _on_service_uuid_discovered(self, event: ServiceUuidDiscovered) -> None:
        if uuids_equal(event.uuid, self.service_uuid):
            self._service_seen = True

    def _on_service_discovery_finished(self, event: Event) -> None:
        self._teardown_session()

        service = None
        if self._service_seen and self._controller is not None:
            service = self._controller.open_service(self.service_uuid)

        if service is None:
            error = ServiceNotFoundError(self.identity.name, self.service_uuid)
            print_and_log(f"[-] {error}", LOG__GENERAL)
            self._apply(ServiceNotFound())
            return

        print_and_log(f"[+] Opening {get_name_from_uuid(self.service_uuid)}", LOG__DEBUG)
        session = GattSession(service)
        self._session = session
        try:
            session.start()
        except ZeiError as exc:
            self._apply(SessionFailed(reason=str(exc)))

    # ------------------------------------------------------------------
    # Session events
    # ------------------------------------------------------------------
    def _on_service_state_changed(self, event: ServiceStateChanged) -> None:
        session = self._live_session(event.source)
        if session is None:
            return
        self._apply(session.on_service_state_changed(event.state))

    def _on_characteristic_changed(self, event: CharacteristicChanged) -> None:
        session = self._live_session(event.source)
        if session is None:
            return
        orientation = session.on_characteristic_changed(event.uuid, event.value)
        if orientation is None or orientation is self._orientation:
            return
        self._orientation = orientation
        print_and_log(f"[*] Orientation: {orientation.name}", LOG__DEVICE)
        if self.on_orientation_changed is not None:
            self.on_orientation_changed(orientation)

    def _on_descriptor_written(self, event: DescriptorWritten) -> None:
        session = self._live_session(event.source)
        if session is None:
            return
        self._apply(session.on_descriptor_written(event.descriptor, event.value))

    # ------------------------------------------------------------------
    # Outcomes
    # ------------------------------------------------------------------
    def _apply(self, outcome: Optional[Event]) -> None:
        if outcome is None:
            return
        event_type = outcome.event_type
        if event_type is EventType.DISCONNECT_REQUESTED:
            self._drop_link()
            self._teardown_session()
            return
        if event_type in (EventType.SESSION_FAILED, EventType.SERVICE_NOT_FOUND):
            self._teardown_session()
            self._advance(outcome)
            # Start the next attempt from a clean link
            if self._link is not _Link.IDLE:
                self._drop_link()
            return
        self._advance(outcome)

    def _advance(self, event: Event) -> None:
        new_status = transition(self._status, event)
        if new_status is self._status:
            return
        print_and_log(
            f"[*] Status {self._status.value} -> {new_status.value} ({event.event_type.value})",
            LOG__DEVICE,
        )
        self._status = new_status
        if self.on_status_changed is not None:
            self.on_status_changed(new_status)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _start_scan(self) -> None:
        print_and_log(
            f"[*] Scanning for '{self.identity.name}' ({self.scan_timeout_ms} ms)", LOG__GENERAL
        )
        self._scan_active = True
        self._transport.start_scan(self.scan_timeout_ms)

    def _live_session(self, source) -> Optional[GattSession]:
        session = self._session
        if session is None or session.closed or source is not session.service:
            print_and_log("[DEBUG] Dropping event from stale service handle", LOG__DEBUG)
            return None
        return session

    def _teardown_session(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            session.close()

    def _drop_link(self) -> None:
        if self._controller is None:
            return
        try:
            self._controller.disconnect_from_device()
        except ZeiError as exc:
            print_and_log(f"[-] Disconnect request failed: {exc}", LOG__DEBUG)
