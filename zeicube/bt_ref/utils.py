"""
Bluetooth utility functions.
"""

from . import constants

__all__ = [
    "normalize_uuid",
    "uuids_equal",
    "device_address_to_path",
    "get_name_from_uuid",
    "bytes_to_hex",
]

_BASE_UUID_SUFFIX = "-0000-1000-8000-00805f9b34fb"


def normalize_uuid(uuid) -> str:
    """Return the canonical lower-case 128-bit form of *uuid*.

    Accepts 16-bit (``"2902"``), 32-bit and braced forms
    (``"{C7E70010-...}"``) as well as the canonical string.
    """
    text = str(uuid).strip().strip("{}").lower()
    if text.startswith("0x"):
        text = text[2:]
    if len(text) == 4:
        return f"0000{text}{_BASE_UUID_SUFFIX}"
    if len(text) == 8:
        return f"{text}{_BASE_UUID_SUFFIX}"
    return text


def uuids_equal(left, right) -> bool:
    return normalize_uuid(left) == normalize_uuid(right)


def device_address_to_path(bdaddr, adapter_path):
    # e.g. convert 12:34:44:00:66:D5 on adapter hci0 to /org/bluez/hci0/dev_12_34_44_00_66_D5
    return adapter_path + "/dev_" + bdaddr.upper().replace(":", "_")


def get_name_from_uuid(uuid) -> str:
    return constants.UUID_NAMES.get(normalize_uuid(uuid), "Unknown")


def bytes_to_hex(value) -> str:
    return bytes(value).hex()
