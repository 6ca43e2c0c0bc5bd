"""Tests for the JSON device registry store."""

import json
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from unittest.mock import patch

import pytest

from wolclient.core.device import Device
from wolclient.errors import (
    ConfigDirUnavailableError,
    DeserializationError,
    DeviceNotFoundError,
    RegistryIOError,
)
from wolclient.store.registry import DeviceStore, read_devices, write_devices


def _store(tmp_path: Path) -> DeviceStore:
    return DeviceStore(lambda: tmp_path)


def _draft(name: str = "desktop", mac: str = "AA:BB:CC:DD:EE:FF", **kwargs: object) -> Device:
    return Device(id="", name=name, mac=mac, **kwargs)  # type: ignore[arg-type]


def _doc(tmp_path: Path) -> list:
    return json.loads((tmp_path / "devices.json").read_text(encoding="utf-8"))


class TestLoad:
    """Tests for DeviceStore.load."""

    def test_missing_document_returns_empty_list(self, tmp_path: Path) -> None:
        """Should return an empty list without creating the file."""
        assert _store(tmp_path).load() == []
        assert not (tmp_path / "devices.json").exists()

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        """Should raise DeserializationError naming the document."""
        (tmp_path / "devices.json").write_text("[{not json")
        with pytest.raises(DeserializationError) as exc_info:
            _store(tmp_path).load()
        assert "devices.json" in str(exc_info.value)

    def test_non_array_root_raises(self, tmp_path: Path) -> None:
        (tmp_path / "devices.json").write_text('{"id": "1"}')
        with pytest.raises(DeserializationError):
            _store(tmp_path).load()

    def test_legacy_document_without_optional_fields(self, tmp_path: Path) -> None:
        """Should load records written before targetAddr/port existed."""
        (tmp_path / "devices.json").write_text(
            json.dumps([{"id": "a", "name": "nas", "mac": "11:22:33:44:55:66"}])
        )
        devices = _store(tmp_path).load()
        assert devices == [Device(id="a", name="nas", mac="11:22:33:44:55:66")]

    def test_directory_in_place_of_file_raises_io_error(self, tmp_path: Path) -> None:
        """Should report an unreadable document as a read RegistryIOError."""
        (tmp_path / "devices.json").mkdir()
        with pytest.raises(RegistryIOError) as exc_info:
            _store(tmp_path).load()
        assert exc_info.value.operation == "read"


class TestConfigDirFailure:
    """Tests for config directory resolution failures."""

    def test_provider_failure_surfaces_before_any_io(self, tmp_path: Path) -> None:
        """Should fail before touching the document when the directory is unavailable."""

        def _broken() -> Path:
            raise ConfigDirUnavailableError("/nowhere", "permission denied")

        store = DeviceStore(_broken)
        with patch("wolclient.store.registry.read_devices") as mock_read:
            with pytest.raises(ConfigDirUnavailableError):
                store.create(_draft())
            with pytest.raises(ConfigDirUnavailableError):
                store.load()
            mock_read.assert_not_called()

    def test_provider_os_error_is_wrapped(self) -> None:
        """Should wrap a raw OSError from the provider."""

        def _broken() -> Path:
            raise PermissionError("denied")

        with pytest.raises(ConfigDirUnavailableError):
            DeviceStore(_broken).load()


class TestCreate:
    """Tests for DeviceStore.create."""

    def test_create_mints_id_and_persists(self, tmp_path: Path) -> None:
        """Should assign a fresh id and write the device to disk."""
        store = _store(tmp_path)
        devices = store.create(_draft())
        assert len(devices) == 1
        assert devices[0].id
        assert devices[0].name == "desktop"
        assert store.load() == devices

    def test_caller_supplied_id_is_discarded(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        devices = store.create(Device(id="forged", name="pc", mac="AA:BB:CC:DD:EE:FF"))
        assert devices[0].id != "forged"

    def test_ids_stay_unique_with_duplicate_drafts(self, tmp_path: Path) -> None:
        """Should mint distinct ids for identical drafts."""
        store = _store(tmp_path)
        for _ in range(10):
            devices = store.create(Device(id="same", name="pc", mac="AA:BB:CC:DD:EE:FF"))
        ids = [d.id for d in devices]
        assert len(ids) == 10
        assert len(set(ids)) == 10

    def test_regenerates_colliding_id(self, tmp_path: Path) -> None:
        """Should draw again when a new id collides with an existing one."""
        store = _store(tmp_path)
        first = store.create(_draft())[0]
        with patch(
            "wolclient.store.registry.uuid.uuid4",
            side_effect=[first.id, "fresh-id"],
        ):
            devices = store.create(_draft("laptop"))
        assert devices[1].id == "fresh-id"

    def test_duplicate_macs_allowed(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        store.create(_draft())
        devices = store.create(_draft())
        assert len(devices) == 2
        assert devices[0].mac == devices[1].mac

    def test_appends_in_order(self, tmp_path: Path) -> None:
        """Should keep insertion order."""
        store = _store(tmp_path)
        for name in ("a", "b", "c"):
            devices = store.create(_draft(name))
        assert [d.name for d in devices] == ["a", "b", "c"]


class TestConcurrency:
    """Tests for concurrent mutations of one registry."""

    def test_parallel_creates_lose_no_devices(self, tmp_path: Path) -> None:
        """Should persist every device when many creates run at once."""
        store = _store(tmp_path)
        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(lambda i: store.create(_draft(f"pc{i}")), range(64)))

        devices = store.load()
        assert len(devices) == 64
        assert len({d.id for d in devices}) == 64
        assert {d.name for d in devices} == {f"pc{i}" for i in range(64)}

    def test_parallel_creates_across_store_instances(self, tmp_path: Path) -> None:
        """Should serialize writers even when each uses its own DeviceStore."""
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda i: _store(tmp_path).create(_draft(f"pc{i}")), range(32)))

        assert len(_doc(tmp_path)) == 32


class TestRoundTrip:
    """Tests for document round trips."""

    def test_absent_fields_stay_absent(self, tmp_path: Path) -> None:
        """Should not write null for optional fields that were never set."""
        store = _store(tmp_path)
        store.create(_draft("plain"))
        store.create(_draft("full", target_addr="192.168.0.255", port=7))
        doc = _doc(tmp_path)
        assert "targetAddr" not in doc[0]
        assert "port" not in doc[0]
        assert doc[1]["targetAddr"] == "192.168.0.255"
        assert doc[1]["port"] == 7

        reloaded = store.load()
        assert reloaded[0].target_addr is None
        assert reloaded[0].port is None
        assert reloaded[1].port == 7

    def test_write_then_read_is_equal(self, tmp_path: Path) -> None:
        path = tmp_path / "devices.json"
        devices = [
            Device(id="1", name="ünïcode", mac="AA:BB:CC:DD:EE:FF"),
            Device(id="2", name="srv", mac="11:22:33:44:55:66", target_addr="srv.lan", port=0),
        ]
        write_devices(path, devices)
        assert read_devices(path) == devices
        assert "ünïcode" in path.read_text(encoding="utf-8")


class TestUpdate:
    """Tests for DeviceStore.update."""

    def test_update_replaces_in_place(self, tmp_path: Path) -> None:
        """Should replace the matching record and keep its position."""
        store = _store(tmp_path)
        store.create(_draft("a"))
        devices = store.create(_draft("b"))
        target = devices[0]
        updated = Device(id=target.id, name="renamed", mac="11:22:33:44:55:66", port=9)
        result = store.update(updated)
        assert result[0] == updated
        assert result[1] == devices[1]
        assert store.load() == result

    def test_update_can_clear_optional_fields(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        d = store.create(_draft(target_addr="10.0.0.1", port=7))[0]
        store.update(Device(id=d.id, name=d.name, mac=d.mac))
        assert "targetAddr" not in _doc(tmp_path)[0]

    def test_update_unknown_id_leaves_document_untouched(self, tmp_path: Path) -> None:
        """Should raise DeviceNotFoundError without rewriting the document."""
        store = _store(tmp_path)
        store.create(_draft())
        before = (tmp_path / "devices.json").read_bytes()
        with pytest.raises(DeviceNotFoundError) as exc_info:
            store.update(Device(id="ghost", name="x", mac="AA:BB:CC:DD:EE:FF"))
        assert "ghost" in str(exc_info.value)
        assert (tmp_path / "devices.json").read_bytes() == before

    def test_update_on_empty_registry_writes_nothing(self, tmp_path: Path) -> None:
        with pytest.raises(DeviceNotFoundError):
            _store(tmp_path).update(Device(id="ghost", name="x", mac="m"))
        assert not (tmp_path / "devices.json").exists()


class TestDelete:
    """Tests for DeviceStore.delete."""

    def test_delete_removes_exactly_one_and_keeps_order(self, tmp_path: Path) -> None:
        """Should drop only the matching record."""
        store = _store(tmp_path)
        for name in ("a", "b", "c", "d"):
            devices = store.create(_draft(name))
        result = store.delete(devices[1].id)
        assert len(result) == 3
        assert [d.name for d in result] == ["a", "c", "d"]
        assert devices[1].id not in {d.id for d in store.load()}

    def test_delete_unknown_id_leaves_document_untouched(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        store.create(_draft())
        before = (tmp_path / "devices.json").read_bytes()
        with pytest.raises(DeviceNotFoundError):
            store.delete("ghost")
        assert (tmp_path / "devices.json").read_bytes() == before

    def test_delete_last_device_writes_empty_array(self, tmp_path: Path) -> None:
        """Should leave an empty array rather than removing the file."""
        store = _store(tmp_path)
        d = store.create(_draft())[0]
        assert store.delete(d.id) == []
        assert _doc(tmp_path) == []


class TestAtomicWrite:
    """Tests for the temp-file-and-replace write path."""

    def test_no_tmp_left_on_success(self, tmp_path: Path) -> None:
        _store(tmp_path).create(_draft())
        assert not (tmp_path / "devices.json.tmp").exists()

    def test_failed_write_keeps_previous_document(self, tmp_path: Path) -> None:
        """Should leave the previous document intact when serialization fails."""
        store = _store(tmp_path)
        store.create(_draft())
        before = (tmp_path / "devices.json").read_bytes()
        with patch("wolclient.store.registry.json.dump", side_effect=TypeError("boom")):
            with pytest.raises(TypeError):
                store.create(_draft("second"))
        assert (tmp_path / "devices.json").read_bytes() == before
        assert not (tmp_path / "devices.json.tmp").exists()

    def test_os_error_wrapped_with_path(self, tmp_path: Path) -> None:
        """Should wrap OSError as a write RegistryIOError naming the document."""
        store = _store(tmp_path)
        with patch("wolclient.store.registry.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(RegistryIOError) as exc_info:
                store.create(_draft())
        assert exc_info.value.operation == "write"
        assert "devices.json" in str(exc_info.value)
        assert not (tmp_path / "devices.json.tmp").exists()


class TestFind:
    """Tests for DeviceStore.find."""

    def test_find_by_id_or_name(self, tmp_path: Path) -> None:
        """Should match on id first, then on name."""
        store = _store(tmp_path)
        d = store.create(_draft("media"))[0]
        assert store.find(d.id) == d
        assert store.find("media") == d
        assert store.find("nothing") is None
