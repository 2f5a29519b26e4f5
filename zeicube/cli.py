"""
Command-line interface for zeicube.
"""

import argparse
import sys

# Ensure logging subsystem is initialised immediately
import zeicube.core.log  # noqa: F401  # side-effect import creates log files

from . import __version__
from zeicube.core.config import load_settings
from zeicube.core.errors import InvalidArgumentError, ZeiError
from zeicube.core.log import print_and_log, set_level, LOG__DEBUG, LOG__GENERAL
from zeicube.core.orientation import decode_payload
from zeicube.core.types import ConnectionStatus


def parse_args(args=None):
    parser = argparse.ArgumentParser(
        description="zeicube - Timeular ZEI orientation cube over Bluetooth LE"
    )
    parser.add_argument("--version", action="version", version=f"zeicube {__version__}")
    parser.add_argument("--config", help="Settings file (default: $XDG_CONFIG_HOME/zeicube/config.yaml)")
    parser.add_argument("--adapter", help="Local Bluetooth adapter, e.g. hci0")
    parser.add_argument("--device-name", dest="device_name", help="Advertised name of the cube")
    parser.add_argument("--scan-timeout", dest="scan_timeout_ms", type=int, help="Scan window (ms)")

    subparsers = parser.add_subparsers(dest="mode", help="Operation mode")

    # Watch mode (default)
    watch_parser = subparsers.add_parser("watch", help="Connect and print orientation changes")
    watch_parser.add_argument(
        "--duration", type=int, default=0, help="Stop after N seconds (0 = run until interrupted)"
    )
    watch_parser.add_argument(
        "--no-reconnect", dest="auto_reconnect", action="store_false", default=None,
        help="Stay disconnected after a link loss instead of scanning again",
    )

    # Offline decode helper
    decode_parser = subparsers.add_parser("decode", help="Decode a hex notification payload")
    decode_parser.add_argument("payload", help="Hex bytes, e.g. 05 or 0500")

    parsed = parser.parse_args(args)
    if parsed.mode is None:
        parsed.mode = "watch"
        parsed.duration = 0
        parsed.auto_reconnect = None
    return parsed


def _run_decode(payload_hex: str) -> int:
    try:
        payload = bytes.fromhex(payload_hex.replace(":", "").replace(" ", ""))
    except ValueError:
        raise InvalidArgumentError("payload", "expected hex bytes")
    orientation = decode_payload(payload)
    print(f"{orientation.name} ({int(orientation)})")
    return 0


def _run_watch(settings, duration: int) -> int:
    from gi.repository import GLib

    from zeicube.core.device_management import DeviceManager
    from zeicube.dbuslayer.adapter import system_dbus__bluez_adapter

    transport = system_dbus__bluez_adapter(settings.adapter)
    transport.ensure_ready()
    manager = DeviceManager(transport, settings)
    mainloop = GLib.MainLoop()

    def _restart_discovery():
        manager.start_discovery()
        return False

    def _on_status(status):
        print_and_log(f"[*] Status: {status.value}", LOG__GENERAL)
        if status is ConnectionStatus.DISCONNECTED and settings.auto_reconnect:
            GLib.idle_add(_restart_discovery)

    def _on_orientation(orientation):
        print_and_log(f"[+] Orientation: {orientation.name}", LOG__GENERAL)

    def _stop():
        print_and_log(f"[*] Watch duration of {duration}s elapsed", LOG__DEBUG)
        mainloop.quit()
        return False

    manager.add_status_listener(_on_status)
    manager.add_orientation_listener(_on_orientation)
    if duration > 0:
        GLib.timeout_add_seconds(duration, _stop)

    manager.start_discovery()
    try:
        mainloop.run()
    finally:
        manager.shutdown()
    return 0


def main(args=None):
    """Main entry point for zeicube."""
    args = parse_args(args)

    try:
        settings = load_settings(
            args.config,
            adapter=args.adapter,
            device_name=args.device_name,
            scan_timeout_ms=args.scan_timeout_ms,
            auto_reconnect=getattr(args, "auto_reconnect", None),
        )
        set_level(settings.log_level)

        if args.mode == "decode":
            return _run_decode(args.payload)

        return _run_watch(settings, args.duration)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 0
    except ZeiError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
