"""D-Bus value helpers used by the BlueZ wrappers."""

import dbus


def dbus_to_python(data):
    """Recursively convert dbus-python wrapper types to plain Python values."""
    if isinstance(data, (dbus.String, dbus.ObjectPath)):
        data = str(data)
    elif isinstance(data, dbus.Boolean):
        data = bool(data)
    elif isinstance(data, (dbus.Int64, dbus.Int32, dbus.Int16, dbus.UInt32, dbus.UInt16, dbus.Byte)):
        data = int(data)
    elif isinstance(data, dbus.Double):
        data = float(data)
    elif isinstance(data, dbus.Array):
        data = [dbus_to_python(value) for value in data]
    elif isinstance(data, dbus.Dictionary):
        data = {dbus_to_python(key): dbus_to_python(value) for key, value in data.items()}
    return data


def dbus_to_bytes(value) -> bytes:
    """Turn a BlueZ ``ay`` value (``dbus.Array`` of ``dbus.Byte``) into bytes."""
    return bytes(int(b) for b in value)
