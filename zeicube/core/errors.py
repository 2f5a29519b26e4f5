"""Core error classes for zeicube.

Errors are raised by the transport layer and caught by the core layer that
detects them; none of them reaches the application.
"""

from __future__ import annotations

import re
from typing import Optional

from zeicube.bt_ref.constants import (
    RESULT_ERR,
    RESULT_ERR_ACCESS_DENIED,
    RESULT_ERR_ACTION_IN_PROGRESS,
    RESULT_ERR_BAD_ARGS,
    RESULT_ERR_METHOD_SIGNATURE_NOT_EXIST,
    RESULT_ERR_NO_REPLY,
    RESULT_ERR_NOT_AUTHORIZED,
    RESULT_ERR_NOT_CONNECTED,
    RESULT_ERR_NOT_FOUND,
    RESULT_ERR_NOT_PERMITTED,
    RESULT_ERR_NOT_SUPPORTED,
    RESULT_ERR_REMOTE_DISCONNECT,
    RESULT_ERR_UNKNOWN_CHARACTERISTIC,
    RESULT_ERR_UNKNOWN_CONNECT_FAILURE,
    RESULT_ERR_UNKNOWN_DESCRIPTOR,
    RESULT_ERR_UNKNOWN_OBJECT,
    RESULT_ERR_UNKNOWN_SERVCE,
    RESULT_ERR_WRONG_STATE,
)
from zeicube.core.types import ControllerError

# Regex to pull method & interface names from D-Bus error strings (best-effort)
_METHOD_CALL_INTERFACE_RX = re.compile(
    r"method '(?P<method>[^']+)'[\s\S]*interface '(?P<iface>[^']+)'"
)


class ZeiError(Exception):
    """Base exception for zeicube.

    The ``.code`` attribute carries one of the ``RESULT_*`` constants from
    :mod:`zeicube.bt_ref.constants`.
    """

    def __init__(self, message: str, code: int = RESULT_ERR):
        super().__init__(message)
        self.code = code


class DeviceNotFoundError(ZeiError):
    """Raised when a Bluetooth device cannot be found."""

    def __init__(self, device_address: str):
        super().__init__(f"Device {device_address} not found", RESULT_ERR_NOT_FOUND)
        self.device_address = device_address


class ConnectionError(ZeiError):
    """Raised when a connection to a Bluetooth device fails."""

    def __init__(self, device_address: str, reason: Optional[str] = None):
        msg = f"Failed to connect to device {device_address}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, RESULT_ERR_NOT_CONNECTED)
        self.device_address = device_address
        self.reason = reason


class ServiceNotFoundError(ZeiError):
    """Raised when a service cannot be found on a device."""

    def __init__(self, device_address: str, service_uuid: str):
        super().__init__(
            f"Service {service_uuid} not found on device {device_address}",
            RESULT_ERR_UNKNOWN_SERVCE,
        )
        self.device_address = device_address
        self.service_uuid = service_uuid


class CharacteristicNotFoundError(ZeiError):
    """Raised when a characteristic is missing from a discovered service."""

    def __init__(self, service_uuid: str, characteristic_uuid: str):
        super().__init__(
            f"Characteristic {characteristic_uuid} not found in service {service_uuid}",
            RESULT_ERR_UNKNOWN_CHARACTERISTIC,
        )
        self.service_uuid = service_uuid
        self.characteristic_uuid = characteristic_uuid


class DescriptorNotFoundError(ZeiError):
    """Raised when a characteristic lacks an expected descriptor."""

    def __init__(self, characteristic_uuid: str, descriptor_uuid: str):
        super().__init__(
            f"Descriptor {descriptor_uuid} not found on characteristic {characteristic_uuid}",
            RESULT_ERR_UNKNOWN_DESCRIPTOR,
        )
        self.characteristic_uuid = characteristic_uuid
        self.descriptor_uuid = descriptor_uuid


class OperationInProgressError(ZeiError):
    """Raised when an operation is already in progress."""

    def __init__(self, operation: str):
        super().__init__(
            f"Operation already in progress: {operation}", RESULT_ERR_ACTION_IN_PROGRESS
        )
        self.operation = operation


class NotSupportedError(ZeiError):
    """Raised when an operation is not supported."""

    def __init__(self, operation: str):
        super().__init__(f"Operation not supported: {operation}", RESULT_ERR_NOT_SUPPORTED)
        self.operation = operation


class NotAuthorizedError(ZeiError):
    """Raised when an operation requires authorization."""

    def __init__(self, operation: str = "Bluetooth operation"):
        super().__init__(
            f"{operation} requires authorization or pairing", RESULT_ERR_NOT_AUTHORIZED
        )
        self.operation = operation


class NotReadyError(ZeiError):
    """Raised when the Bluetooth adapter is powered off or missing."""

    def __init__(self, adapter_name: str = "hci0"):
        super().__init__(
            f"Bluetooth adapter {adapter_name} not ready. Power it on via bluetoothctl.",
            RESULT_ERR_WRONG_STATE,
        )
        self.adapter_name = adapter_name


class InvalidArgumentError(ZeiError):
    """Raised when invalid arguments (or settings) are provided."""

    def __init__(self, argument: str, reason: Optional[str] = None):
        message = f"Invalid argument: {argument}"
        if reason:
            message += f" ({reason})"
        super().__init__(message, RESULT_ERR_BAD_ARGS)
        self.argument = argument
        self.reason = reason


# ---------------------------------------------------------------------------
# BlueZ/DBus -> RESULT_ERR mapping
# ---------------------------------------------------------------------------

_DBUS_ERROR_NAME_MAP = {
    "org.freedesktop.DBus.Error.NoReply": RESULT_ERR_NO_REPLY,
    "org.freedesktop.DBus.Error.UnknownObject": RESULT_ERR_UNKNOWN_OBJECT,
    "org.freedesktop.DBus.Error.UnknownMethod": RESULT_ERR_METHOD_SIGNATURE_NOT_EXIST,
    "org.freedesktop.DBus.Error.ServiceUnknown": RESULT_ERR_UNKNOWN_SERVCE,
    "org.freedesktop.DBus.Error.InvalidArgs": RESULT_ERR_BAD_ARGS,
    "org.freedesktop.DBus.Error.AccessDenied": RESULT_ERR_ACCESS_DENIED,
    "org.bluez.Error.NotConnected": RESULT_ERR_NOT_CONNECTED,
    "org.bluez.Error.Failed": RESULT_ERR,
    "org.bluez.Error.NotPermitted": RESULT_ERR_NOT_PERMITTED,
    "org.bluez.Error.NotAuthorized": RESULT_ERR_NOT_AUTHORIZED,
    "org.bluez.Error.NotSupported": RESULT_ERR_NOT_SUPPORTED,
    "org.bluez.Error.NotReady": RESULT_ERR_WRONG_STATE,
    "org.bluez.Error.InProgress": RESULT_ERR_ACTION_IN_PROGRESS,
    "org.bluez.Error.AlreadyConnected": RESULT_ERR_ACTION_IN_PROGRESS,
    "org.bluez.Error.InvalidArguments": RESULT_ERR_BAD_ARGS,
    "org.bluez.Error.DoesNotExist": RESULT_ERR_NOT_FOUND,
    "org.bluez.Error.NotFound": RESULT_ERR_NOT_FOUND,
}

# Fallback substring search when the name is generic (BlueZ mixes English strings)
_DBUS_MESSAGE_MAP = {
    "Not Connected": RESULT_ERR_NOT_CONNECTED,
    "Connection Attempt Failed": RESULT_ERR_UNKNOWN_CONNECT_FAILURE,
    "le-connection-abort-by-local": RESULT_ERR_UNKNOWN_CONNECT_FAILURE,
    "Software caused connection abort": RESULT_ERR_UNKNOWN_CONNECT_FAILURE,
    "Operation already in progress": RESULT_ERR_ACTION_IN_PROGRESS,
    "Remote user terminated": RESULT_ERR_REMOTE_DISCONNECT,
    "Timeout": RESULT_ERR_NO_REPLY,
    "not permitted": RESULT_ERR_NOT_PERMITTED,
}


def decode_dbus_error(exc) -> int:
    """Return the ``RESULT_ERR_*`` constant matching *exc*.

    *exc* is a ``dbus.exceptions.DBusException`` or anything exposing
    ``get_dbus_name()`` / ``get_dbus_message()``.
    """
    name = exc.get_dbus_name()
    msg = exc.get_dbus_message() or ""

    # Generic names carry the useful part in the message
    if name != "org.bluez.Error.Failed" and name in _DBUS_ERROR_NAME_MAP:
        return _DBUS_ERROR_NAME_MAP[name]

    lowered = msg.lower()
    for substr, code in _DBUS_MESSAGE_MAP.items():
        if substr.lower() in lowered:
            return code

    return _DBUS_ERROR_NAME_MAP.get(name, RESULT_ERR)


def map_dbus_error(exc) -> ZeiError:
    """Return a :class:`ZeiError` instance for the given D-Bus exception."""
    name = exc.get_dbus_name()
    msg = exc.get_dbus_message() or ""
    code = decode_dbus_error(exc)

    if name == "org.bluez.Error.NotAuthorized":
        return NotAuthorizedError("D-Bus operation")
    if name == "org.bluez.Error.NotSupported":
        return NotSupportedError(msg or "D-Bus operation")
    if name == "org.bluez.Error.NotReady":
        return NotReadyError()
    if code == RESULT_ERR_ACTION_IN_PROGRESS:
        return OperationInProgressError(msg or "D-Bus operation")
    if code in (RESULT_ERR_NOT_CONNECTED, RESULT_ERR_UNKNOWN_CONNECT_FAILURE):
        return ConnectionError("D-Bus operation", msg or name)
    if name in ("org.freedesktop.DBus.Error.UnknownObject", "org.bluez.Error.DoesNotExist"):
        return DeviceNotFoundError(msg or "D-Bus object")

    m = _METHOD_CALL_INTERFACE_RX.search(msg)
    if m:
        return InvalidArgumentError(
            f"Method:{m.group('method')} Interface:{m.group('iface')}",
            f"D-Bus call: {msg}",
        )

    return ZeiError(f"D-Bus operation: {name}: {msg}".rstrip(": "), code)


_CONTROLLER_ERROR_MAP = {
    RESULT_ERR_NOT_FOUND: ControllerError.UNKNOWN_REMOTE_DEVICE,
    RESULT_ERR_UNKNOWN_OBJECT: ControllerError.UNKNOWN_REMOTE_DEVICE,
    RESULT_ERR_NO_REPLY: ControllerError.NETWORK,
    RESULT_ERR_WRONG_STATE: ControllerError.INVALID_ADAPTER,
    RESULT_ERR_NOT_CONNECTED: ControllerError.CONNECTION,
    RESULT_ERR_UNKNOWN_CONNECT_FAILURE: ControllerError.CONNECTION,
    RESULT_ERR_ACCESS_DENIED: ControllerError.MISSING_PERMISSIONS,
    RESULT_ERR_NOT_AUTHORIZED: ControllerError.MISSING_PERMISSIONS,
    RESULT_ERR_NOT_PERMITTED: ControllerError.MISSING_PERMISSIONS,
    RESULT_ERR_REMOTE_DISCONNECT: ControllerError.REMOTE_HOST_CLOSED,
}


def controller_error_from_code(code: int) -> ControllerError:
    """Translate a ``RESULT_ERR_*`` code into the controller error category."""
    return _CONTROLLER_ERROR_MAP.get(code, ControllerError.UNKNOWN)


__all__ = [
    "ZeiError",
    "DeviceNotFoundError",
    "ConnectionError",
    "ServiceNotFoundError",
    "CharacteristicNotFoundError",
    "DescriptorNotFoundError",
    "OperationInProgressError",
    "NotSupportedError",
    "NotAuthorizedError",
    "NotReadyError",
    "InvalidArgumentError",
    "decode_dbus_error",
    "map_dbus_error",
    "controller_error_from_code",
]
