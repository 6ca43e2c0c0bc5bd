"""Exception types raised by the device registry and the WOL dispatcher."""

from pathlib import Path
from typing import Any


class WolClientError(Exception):
    """Base class for all wolclient errors."""


class ConfigDirUnavailableError(WolClientError):
    """Raised when no writable configuration directory can be supplied."""

    def __init__(self, path: Any, reason: Any) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Config directory unavailable ({path}): {reason}")


class RegistryIOError(WolClientError):
    """Raised when the registry document cannot be read or written."""

    def __init__(self, path: Path, operation: str, reason: Any) -> None:
        self.path = path
        self.operation = operation
        self.reason = reason
        super().__init__(f"Failed to {operation} device file {path}: {reason}")


class DeserializationError(WolClientError):
    """Raised when the registry document does not match the expected schema."""

    def __init__(self, path: Any, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid device data in {path}: {detail}")


class DeviceNotFoundError(WolClientError):
    """Raised by update/delete when no device carries the given id."""

    def __init__(self, device_id: str, action: str) -> None:
        self.device_id = device_id
        self.action = action
        super().__init__(f"Device with id '{device_id}' not found; cannot {action}")


class InvalidMacFormatError(WolClientError, ValueError):
    """Raised when a MAC address is not six ':'-separated hex byte groups."""

    def __init__(self, mac: str) -> None:
        self.mac = mac
        super().__init__(f"Invalid MAC address format provided: '{mac}'")


class InvalidPortError(WolClientError, ValueError):
    """Raised when a UDP port falls outside 0..65535."""

    def __init__(self, port: Any) -> None:
        self.port = port
        super().__init__(f"Invalid UDP port: {port!r} (expected 0-65535)")


class NetworkSendError(WolClientError):
    """Raised when the transport refuses the magic-packet datagram."""

    def __init__(self, mac: str, destination: str, reason: Any) -> None:
        self.mac = mac
        self.destination = destination
        self.reason = reason
        super().__init__(f"Failed to send WOL packet to MAC {mac} via {destination}: {reason}")
