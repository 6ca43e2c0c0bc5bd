"""JSON-backed device registry with atomic whole-document rewrites."""

import json
import logging
import os
import threading
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Optional

from wolclient.config.paths import DEVICES_FILE, config_dir
from wolclient.core.device import Device, device_from_raw, device_to_raw
from wolclient.errors import (
    ConfigDirUnavailableError,
    DeserializationError,
    DeviceNotFoundError,
    RegistryIOError,
)

logger = logging.getLogger(__name__)

# Serializes every load-mutate-persist cycle in this process.
_REGISTRY_LOCK = threading.Lock()


def read_devices(path: Path) -> list[Device]:
    """
    Read the device list from a JSON document.

    A missing document is treated as an empty registry (first run).

    Raises:
        RegistryIOError: If the file exists but cannot be opened or read
        DeserializationError: If the content is not a list of device records
    """
    try:
        with open(path, encoding="utf-8") as f:
            raw: Any = json.load(f)
    except FileNotFoundError:
        logger.info("Device file not found at %s, returning empty list", path)
        return []
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DeserializationError(path, str(exc)) from exc
    except OSError as exc:
        raise RegistryIOError(path, "read", exc) from exc

    if not isinstance(raw, list):
        raise DeserializationError(path, "document root must be a JSON array")
    return [device_from_raw(item, i, path) for i, item in enumerate(raw)]


def write_devices(path: Path, devices: list[Device]) -> None:
    """
    Atomically write the full device list as one JSON array.

    Uses a temp-file + os.replace so a crash mid-write never leaves a
    half-written document.

    Raises:
        RegistryIOError: If the temp file cannot be written or moved into place
    """
    tmp = path.with_suffix(".json.tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump([device_to_raw(d) for d in devices], f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp, path)
    except OSError as exc:
        tmp.unlink(missing_ok=True)
        raise RegistryIOError(path, "write", exc) from exc
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
    logger.debug("Wrote %d device(s) to %s", len(devices), path)


class DeviceStore:
    """
    Durable registry of Device records.

    Every operation loads the document afresh, mutates the list and writes it
    back whole; nothing is cached between calls.
    """

    def __init__(self, path_provider: Optional[Callable[[], Path]] = None) -> None:
        self._path_provider = path_provider or config_dir

    @property
    def path(self) -> Path:
        """Path of the backing devices.json, resolving the config directory."""
        try:
            directory = self._path_provider()
        except OSError as exc:
            raise ConfigDirUnavailableError("<unresolved>", exc) from exc
        return Path(directory) / DEVICES_FILE

    def load(self) -> list[Device]:
        path = self.path
        logger.debug("Reading devices from %s", path)
        with _REGISTRY_LOCK:
            return read_devices(path)

    def create(self, draft: Device) -> list[Device]:
        """Append a new device with a freshly minted id; any id on the draft is ignored."""
        path = self.path
        with _REGISTRY_LOCK:
            devices = read_devices(path)
            existing = {d.id for d in devices}
            new_id = str(uuid.uuid4())
            while new_id in existing:
                new_id = str(uuid.uuid4())
            device = replace(draft, id=new_id)
            devices.append(device)
            write_devices(path, devices)
        logger.info("Device '%s' added with id %s (%d total)", device.name, new_id, len(devices))
        return devices

    def update(self, device: Device) -> list[Device]:
        """Replace the device with the same id in place."""
        path = self.path
        with _REGISTRY_LOCK:
            devices = read_devices(path)
            index = next((i for i, d in enumerate(devices) if d.id == device.id), None)
            if index is None:
                raise DeviceNotFoundError(device.id, "update")
            devices[index] = device
            write_devices(path, devices)
        logger.info("Device %s updated", device.id)
        return devices

    def delete(self, device_id: str) -> list[Device]:
        """Remove the device with the given id, keeping the order of the rest."""
        path = self.path
        with _REGISTRY_LOCK:
            devices = read_devices(path)
            remaining = [d for d in devices if d.id != device_id]
            if len(remaining) == len(devices):
                raise DeviceNotFoundError(device_id, "delete")
            write_devices(path, remaining)
        logger.info("Device %s deleted (%d remaining)", device_id, len(remaining))
        return remaining

    def find(self, key: str) -> Optional[Device]:
        """Look a device up by id, falling back to an exact name match."""
        devices = self.load()
        match = next((d for d in devices if d.id == key), None)
        if match is None:
            match = next((d for d in devices if d.name == key), None)
        return match
