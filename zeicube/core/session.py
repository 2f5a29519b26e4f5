"""GATT session for the ZEI orientation service.

A :class:`GattSession` lives from "target service discovered" until the link
goes down (or the peer disables notifications).  It never talks to the
application: each handler returns either nothing or an outcome event that the
state machine turns into a status transition.
"""

from __future__ import annotations

from typing import Optional

from zeicube.bt_ref.constants import (
    CCCD_DISABLE_NOTIFICATIONS,
    CCCD_ENABLE_NOTIFICATIONS,
    CLIENT_CHARACTERISTIC_CONFIGURATION_UUID,
    ZEI_ORIENTATION_CHARACTERISTIC_UUID,
)
from zeicube.bt_ref.utils import bytes_to_hex, uuids_equal
from zeicube.core.errors import (
    CharacteristicNotFoundError,
    DescriptorNotFoundError,
    ZeiError,
)
from zeicube.core.events import (
    DisconnectRequested,
    Event,
    NotificationsEnabled,
    SessionFailed,
)
from zeicube.core.log import print_and_log, LOG__DEBUG, LOG__GENERAL
from zeicube.core.orientation import decode_payload
from zeicube.core.transport import ServiceHandle
from zeicube.core.types import CharacteristicRef, DescriptorRef, Orientation, ServiceState

__all__ = ["GattSession"]


class GattSession:
    """Detail discovery and notification subscription for one service instance."""

    def __init__(
        self,
        service: ServiceHandle,
        characteristic_uuid: str = ZEI_ORIENTATION_CHARACTERISTIC_UUID,
        descriptor_uuid: str = CLIENT_CHARACTERISTIC_CONFIGURATION_UUID,
    ):
        self.service = service
        self.characteristic_uuid = characteristic_uuid
        self.descriptor_uuid = descriptor_uuid

        self._characteristic: Optional[CharacteristicRef] = None
        self._notification_descriptor: Optional[DescriptorRef] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def notification_descriptor(self) -> Optional[DescriptorRef]:
        return self._notification_descriptor

    def start(self) -> None:
        """Kick off detail discovery; issued once right after construction."""
        print_and_log(f"[*] Discovering details of service {self.service.uuid}", LOG__DEBUG)
        self.service.discover_details()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.service.close()

    # ------------------------------------------------------------------
    # Transport callbacks
    # ------------------------------------------------------------------
    def on_service_state_changed(self, state: ServiceState) -> Optional[Event]:
        if self._closed:
            return None
        if state is ServiceState.DISCOVERING:
            return None
        if state is not ServiceState.DISCOVERED:
            # Transports may report further transient states; nothing to do
            print_and_log(f"[DEBUG] Ignoring service state {state.value}", LOG__DEBUG)
            return None

        try:
            self._characteristic = self._resolve_characteristic()
            self._notification_descriptor = self._resolve_descriptor(self._characteristic)
            self.service.write_descriptor(
                self._notification_descriptor, CCCD_ENABLE_NOTIFICATIONS
            )
        except ZeiError as exc:
            print_and_log(f"[-] Orientation data not available: {exc}", LOG__GENERAL)
            return SessionFailed(reason=str(exc))

        # Connected is reported once the enable write is issued, not confirmed
        print_and_log("[+] Orientation notifications requested", LOG__DEBUG)
        return NotificationsEnabled()

    def on_characteristic_changed(self, uuid: str, value: bytes) -> Optional[Orientation]:
        if self._closed or not uuids_equal(uuid, self.characteristic_uuid):
            return None
        orientation = decode_payload(value)
        print_and_log(f"[DEBUG] Orientation {bytes_to_hex(value)} -> {orientation.name}", LOG__DEBUG)
        return orientation

    def on_descriptor_written(self, descriptor: DescriptorRef, value: bytes) -> Optional[Event]:
        if self._closed or self._notification_descriptor is None:
            return None
        if descriptor != self._notification_descriptor:
            return None
        if bytes(value) != CCCD_DISABLE_NOTIFICATIONS:
            return None
        # Notifications switched off from outside: treat as disconnect intent
        print_and_log("[*] Notifications disabled by peer, disconnecting", LOG__GENERAL)
        return DisconnectRequested()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _resolve_characteristic(self) -> CharacteristicRef:
        characteristic = self.service.characteristic(self.characteristic_uuid)
        if characteristic is None:
            raise CharacteristicNotFoundError(self.service.uuid, self.characteristic_uuid)
        return characteristic

    def _resolve_descriptor(self, characteristic: CharacteristicRef) -> DescriptorRef:
        descriptor = characteristic.descriptor(self.descriptor_uuid)
        if descriptor is None:
            raise DescriptorNotFoundError(characteristic.uuid, self.descriptor_uuid)
        return descriptor
