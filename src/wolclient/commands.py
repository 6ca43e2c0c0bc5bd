"""Command boundary between the UI shells and the registry/dispatcher core.

Every command is a coroutine that runs the blocking core call in a worker
thread and reports either the value or a single human-readable error message.
"""

import logging
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from starlette.concurrency import run_in_threadpool

from wolclient.core import wol
from wolclient.core.device import Device, device_from_raw, device_to_raw
from wolclient.errors import WolClientError
from wolclient.store.registry import DeviceStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CommandResult(Generic[T]):
    """Outcome of a boundary command: a value on success, a message on failure."""

    value: Optional[T] = None
    error: Optional[str] = None
    # The underlying exception, kept for callers that map error kinds (HTTP status).
    exception: Optional[WolClientError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _normalize_draft(raw: dict[str, Any]) -> dict[str, Any]:
    """Treat a blank targetAddr from a form as absent."""
    d = dict(raw)
    target = d.get("targetAddr")
    if isinstance(target, str) and not target.strip():
        d["targetAddr"] = None
    return d


def _check_required(raw: dict[str, Any]) -> Optional[str]:
    for field in ("name", "mac"):
        value = raw.get(field)
        if not isinstance(value, str) or not value.strip():
            return f"Device '{field}' is required"
    return None


async def _run(label: str, func: Any, *args: Any) -> CommandResult[Any]:
    try:
        value = await run_in_threadpool(func, *args)
    except WolClientError as exc:
        logger.error("Error %s: %s", label, exc)
        return CommandResult(error=str(exc), exception=exc)
    return CommandResult(value=value)


def _dump(devices: list[Device]) -> list[dict[str, Any]]:
    return [device_to_raw(d) for d in devices]


async def load_devices(store: Optional[DeviceStore] = None) -> CommandResult[list[dict[str, Any]]]:
    store = store or DeviceStore()
    logger.debug("Executing load_devices")
    result = await _run("loading devices", store.load)
    if result.ok:
        result.value = _dump(result.value)
    return result


async def add_device(
    draft: dict[str, Any], store: Optional[DeviceStore] = None
) -> CommandResult[list[dict[str, Any]]]:
    """Register a new device. Any 'id' in the draft is discarded by the store."""
    store = store or DeviceStore()
    draft = _normalize_draft(draft)
    missing = _check_required(draft)
    if missing:
        return CommandResult(error=missing)
    logger.debug("Executing add_device for %s", draft.get("name"))
    try:
        device = device_from_raw({**draft, "id": ""}, index=None, source="request")
    except WolClientError as exc:
        return CommandResult(error=str(exc))
    result = await _run("adding device", store.create, device)
    if result.ok:
        result.value = _dump(result.value)
    return result


async def update_device(
    device: dict[str, Any], store: Optional[DeviceStore] = None
) -> CommandResult[list[dict[str, Any]]]:
    """Replace a registered device (matched by id) with the given record."""
    store = store or DeviceStore()
    device = _normalize_draft(device)
    missing = _check_required(device)
    if missing:
        return CommandResult(error=missing)
    logger.debug("Executing update_device for %s", device.get("id"))
    try:
        parsed = device_from_raw(device, index=None, source="request")
    except WolClientError as exc:
        return CommandResult(error=str(exc))
    result = await _run("updating device", store.update, parsed)
    if result.ok:
        result.value = _dump(result.value)
    return result


async def delete_device(
    device_id: str, store: Optional[DeviceStore] = None
) -> CommandResult[list[dict[str, Any]]]:
    store = store or DeviceStore()
    logger.debug("Executing delete_device for %s", device_id)
    result = await _run("deleting device", store.delete, device_id)
    if result.ok:
        result.value = _dump(result.value)
    return result


async def send_wake_packet(
    mac: str, target_addr: Optional[str] = None, port: Optional[int] = None
) -> CommandResult[None]:
    """Send one magic packet; success means the transport accepted the datagram."""
    logger.debug("Executing send_wake_packet for %s", mac)
    return await _run("sending WOL packet", wol.send, mac, target_addr, port)
