"""Application-facing facade over the connection state machine."""

from __future__ import annotations

from typing import Callable, List, Optional

from zeicube.core.config import Settings
from zeicube.core.log import get_logger, print_and_log, LOG__DEBUG
from zeicube.core.state_machine import ConnectionStateMachine
from zeicube.core.transport import Transport
from zeicube.core.types import ConnectionStatus, Orientation, TargetDeviceIdentity

__all__ = ["DeviceManager"]

logger = get_logger(__name__)


class DeviceManager:
    """Current status and orientation of the cube, plus change notifications.

    Holds no protocol logic: everything is delegated to
    :class:`~zeicube.core.state_machine.ConnectionStateMachine`, and the
    manager only re-publishes values that actually changed.
    """

    def __init__(self, transport: Transport, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self._status = ConnectionStatus.DISCONNECTED
        self._orientation = Orientation.VERTICAL
        self._status_listeners: List[Callable[[ConnectionStatus], None]] = []
        self._orientation_listeners: List[Callable[[Orientation], None]] = []

        self._machine = ConnectionStateMachine(
            transport,
            identity=TargetDeviceIdentity(self.settings.device_name),
            scan_timeout_ms=self.settings.scan_timeout_ms,
            on_status_changed=self._status_changed,
            on_orientation_changed=self._orientation_changed,
        )

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def orientation(self) -> Orientation:
        return self._orientation

    @property
    def state_machine(self) -> ConnectionStateMachine:
        return self._machine

    def start_discovery(self) -> None:
        self._machine.start_discovery()

    def shutdown(self) -> None:
        self._machine.shutdown()

    # ------------------------------------------------------------------
    # Listener registration
    # ------------------------------------------------------------------
    def add_status_listener(self, callback: Callable[[ConnectionStatus], None]) -> None:
        if callback not in self._status_listeners:
            self._status_listeners.append(callback)

    def remove_status_listener(self, callback: Callable[[ConnectionStatus], None]) -> None:
        if callback in self._status_listeners:
            self._status_listeners.remove(callback)

    def add_orientation_listener(self, callback: Callable[[Orientation], None]) -> None:
        if callback not in self._orientation_listeners:
            self._orientation_listeners.append(callback)

    def remove_orientation_listener(self, callback: Callable[[Orientation], None]) -> None:
        if callback in self._orientation_listeners:
            self._orientation_listeners.remove(callback)

    # ------------------------------------------------------------------
    # State machine callbacks
    # ------------------------------------------------------------------
    def _status_changed(self, status: ConnectionStatus) -> None:
        if status is self._status:
            return
        self._status = status
        self._notify(self._status_listeners, status)

    def _orientation_changed(self, orientation: Orientation) -> None:
        if orientation is self._orientation:
            return
        self._orientation = orientation
        self._notify(self._orientation_listeners, orientation)

    @staticmethod
    def _notify(listeners, value) -> None:
        # Copy: a listener may remove itself while being notified
        for callback in list(listeners):
            try:
                callback(value)
            except Exception as exc:
                print_and_log(f"[ERROR] Listener {callback!r} failed: {exc}", LOG__DEBUG)
                logger.exception("Listener failed")
