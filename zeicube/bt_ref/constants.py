"""
Core constants for zeicube.

D-Bus / BlueZ names, result codes and the wire-level identities of the
Timeular ZEI orientation cube.
"""

# D-Bus Core Constants
DBUS_PROPERTIES = "org.freedesktop.DBus.Properties"
DBUS_OM_IFACE = "org.freedesktop.DBus.ObjectManager"

# BlueZ Core Constants
BLUEZ_SERVICE_NAME = "org.bluez"
BLUEZ_NAMESPACE = "/org/bluez/"

# BlueZ Interface Constants
ADAPTER_INTERFACE = BLUEZ_SERVICE_NAME + ".Adapter1"
DEVICE_INTERFACE = BLUEZ_SERVICE_NAME + ".Device1"

# GATT Interface Constants
GATT_SERVICE_INTERFACE = BLUEZ_SERVICE_NAME + ".GattService1"
GATT_CHARACTERISTIC_INTERFACE = BLUEZ_SERVICE_NAME + ".GattCharacteristic1"
GATT_DESCRIPTOR_INTERFACE = BLUEZ_SERVICE_NAME + ".GattDescriptor1"

# Result/Error Codes
RESULT_OK = 0
RESULT_ERR = 1
RESULT_ERR_NOT_CONNECTED = 2
RESULT_ERR_NOT_SUPPORTED = 3
RESULT_ERR_SERVICES_NOT_RESOLVED = 4
RESULT_ERR_WRONG_STATE = 5
RESULT_ERR_ACCESS_DENIED = 6
RESULT_ERR_BAD_ARGS = 8
RESULT_ERR_NOT_FOUND = 9
RESULT_ERR_METHOD_SIGNATURE_NOT_EXIST = 10
RESULT_ERR_NO_REPLY = 14
RESULT_ERR_ACTION_IN_PROGRESS = 16
RESULT_ERR_UNKNOWN_SERVCE = 17
RESULT_ERR_UNKNOWN_OBJECT = 18
RESULT_ERR_REMOTE_DISCONNECT = 19
RESULT_ERR_UNKNOWN_CONNECT_FAILURE = 20
RESULT_ERR_NOT_PERMITTED = 22
RESULT_ERR_NOT_AUTHORIZED = 23
RESULT_ERR_UNKNOWN_CHARACTERISTIC = 27
RESULT_ERR_UNKNOWN_DESCRIPTOR = 28

# Timeular ZEI identities (must match the peripheral exactly)
ZEI_ORIENTATION_SERVICE_UUID = "c7e70010-c847-11e6-8175-8c89a55d403c"
ZEI_ORIENTATION_CHARACTERISTIC_UUID = "c7e70012-c847-11e6-8175-8c89a55d403c"
CLIENT_CHARACTERISTIC_CONFIGURATION_UUID = "00002902-0000-1000-8000-00805f9b34fb"

# CCCD payloads, little-endian
CCCD_ENABLE_NOTIFICATIONS = bytes.fromhex("0100")
CCCD_DISABLE_NOTIFICATIONS = bytes.fromhex("0000")

# Device1 properties whose change means "an advertisement was just seen"
ADVERTISEMENT_PROPERTIES = ("RSSI", "ManufacturerData", "ServiceData", "Name", "TxPower")

# UUID Mapping
UUID_NAMES = {
    ZEI_ORIENTATION_SERVICE_UUID: "ZEI Orientation Service",
    ZEI_ORIENTATION_CHARACTERISTIC_UUID: "ZEI Orientation",
    CLIENT_CHARACTERISTIC_CONFIGURATION_UUID: "Client Characteristic Configuration",
    "00001800-0000-1000-8000-00805f9b34fb": "Generic Access Profile",
    "00001801-0000-1000-8000-00805f9b34fb": "Generic Attribute Service",
    "0000180a-0000-1000-8000-00805f9b34fb": "Device Information Service",
    "0000180f-0000-1000-8000-00805f9b34fb": "Battery Service",
}
