"""Device record model and its JSON (de)serialization."""

from dataclasses import dataclass
from typing import Any, Optional

from wolclient.errors import DeserializationError

MAX_PORT = 65535


@dataclass
class Device:
    """A registered machine that can be woken over the network."""

    id: str
    name: str
    mac: str
    # Destination host/IP. None means the limited broadcast address at send time.
    target_addr: Optional[str] = None
    # UDP port. None means the default WOL port at send time.
    port: Optional[int] = None


def device_to_raw(device: Device) -> dict[str, Any]:
    """Serialize a Device to the document format; absent optional fields are omitted."""
    d: dict[str, Any] = {
        "id": device.id,
        "name": device.name,
        "mac": device.mac,
    }
    if device.target_addr is not None:
        d["targetAddr"] = device.target_addr
    if device.port is not None:
        d["port"] = device.port
    return d


def device_from_raw(raw: Any, index: Optional[int] = 0, source: Any = "<document>") -> Device:
    """
    Build a Device from one record of the registry document.

    Optional keys that are missing (or null) become None, so documents written
    before a field existed still load. Unknown keys are ignored.

    Args:
        raw: Decoded JSON value for one record
        index: Position of the record in the document, used in error messages;
            None for a standalone record (e.g. an API request body)
        source: Document path, used in error messages

    Raises:
        DeserializationError: If the record does not match the schema
    """
    prefix = f"devices[{index}]" if index is not None else "device"
    if not isinstance(raw, dict):
        raise DeserializationError(source, f"{prefix}: must be an object")

    for field in ("id", "name", "mac"):
        if not isinstance(raw.get(field), str):
            raise DeserializationError(source, f"{prefix}: missing or non-string field '{field}'")

    target_addr = raw.get("targetAddr")
    if target_addr is not None and not isinstance(target_addr, str):
        raise DeserializationError(source, f"{prefix}: 'targetAddr' must be a string")

    port = raw.get("port")
    if port is not None:
        # bool is an int subclass; true/false is not a port
        if isinstance(port, bool) or not isinstance(port, int):
            raise DeserializationError(source, f"{prefix}: 'port' must be an integer")
        if not 0 <= port <= MAX_PORT:
            raise DeserializationError(source, f"{prefix}: 'port' {port} out of range 0-{MAX_PORT}")

    return Device(
        id=raw["id"],
        name=raw["name"],
        mac=raw["mac"],
        target_addr=target_addr,
        port=port,
    )
