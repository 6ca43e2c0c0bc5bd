"""Command-line interface for wolclient."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click
import yaml

from wolclient import __version__

ENV_CONFIG_DIR = "WOLCLIENT_CONFIG_DIR"


def _setup_logging(verbose: bool, level_name: str = "INFO") -> None:
    level = logging.DEBUG if verbose else getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_settings(config_dir: Optional[str]) -> dict[str, Any]:
    from wolclient.config.paths import SETTINGS_FILE, default_config_dir
    from wolclient.config.settings import load_settings, merge_settings, validate_settings

    base = Path(config_dir) if config_dir else default_config_dir()
    path = base / SETTINGS_FILE
    try:
        raw = load_settings(path)
    except (OSError, yaml.YAMLError) as exc:
        click.echo(f"Ignoring unreadable settings file {path}: {exc}", err=True)
        return merge_settings(None)
    if raw is None:
        return merge_settings(None)
    errors = validate_settings(raw)
    if errors:
        click.echo("Settings validation errors (using defaults):", err=True)
        for e in errors:
            click.echo(f"  • {e}", err=True)
        return merge_settings(None)
    return merge_settings(raw)


def _store(ctx: click.Context) -> Any:
    from wolclient.config.paths import config_dir
    from wolclient.store.registry import DeviceStore

    override = ctx.obj.get("config_dir")
    return DeviceStore(lambda: config_dir(Path(override) if override else None))


def _unwrap(result: Any) -> Any:
    """Return a command's value, or print its error and exit 1."""
    if not result.ok:
        click.echo(f"Error: {result.error}", err=True)
        sys.exit(1)
    return result.value


def _print_devices(devices: list[dict[str, Any]]) -> None:
    if not devices:
        click.echo("No devices registered.")
        return
    click.echo(f"{'ID':<38} {'NAME':<20} {'MAC':<19} {'TARGET':<18} {'PORT'}")
    click.echo("─" * 82)
    for d in devices:
        click.echo(
            f"{d['id']:<38} {d['name']:<20} {d['mac']:<19} "
            f"{d.get('targetAddr', 'broadcast'):<18} {d.get('port', 9)}"
        )


# ── Root group ────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=__version__, prog_name="wolclient")
@click.option(
    "--config-dir",
    "-d",
    default=None,
    envvar=ENV_CONFIG_DIR,
    help="Directory holding devices.json and settings.yaml",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_dir: Optional[str], verbose: bool) -> None:
    """wolclient: register machines and wake them with Wake-on-LAN."""
    settings = _load_settings(config_dir)
    _setup_logging(verbose, settings["log_level"])
    ctx.ensure_object(dict)
    ctx.obj["config_dir"] = config_dir
    ctx.obj["settings"] = settings


# ── devices group ─────────────────────────────────────────────────────────────


@main.group()
def devices() -> None:
    """Manage registered devices."""


@devices.command("list")
@click.pass_context
def devices_list(ctx: click.Context) -> None:
    """List all registered devices."""
    from wolclient.commands import load_devices

    _print_devices(_unwrap(asyncio.run(load_devices(_store(ctx)))))


@devices.command("add")
@click.argument("name")
@click.argument("mac")
@click.option("--target", "-t", default=None, help="Destination host/IP (default: broadcast)")
@click.option("--port", "-p", type=click.IntRange(0, 65535), default=None, help="UDP port (default: 9)")
@click.pass_context
def devices_add(
    ctx: click.Context, name: str, mac: str, target: Optional[str], port: Optional[int]
) -> None:
    """Register a new device."""
    from wolclient.commands import add_device

    draft = {"name": name, "mac": mac, "targetAddr": target, "port": port}
    updated = _unwrap(asyncio.run(add_device(draft, _store(ctx))))
    click.echo(f"✓  Added '{name}' ({updated[-1]['id']})")


@devices.command("edit")
@click.argument("device_id")
@click.option("--name", default=None, help="New display name")
@click.option("--mac", default=None, help="New MAC address")
@click.option("--target", "-t", default=None, help="New destination host/IP")
@click.option("--port", "-p", type=click.IntRange(0, 65535), default=None, help="New UDP port")
@click.option("--clear-target", is_flag=True, help="Revert to the broadcast address")
@click.option("--clear-port", is_flag=True, help="Revert to port 9")
@click.pass_context
def devices_edit(
    ctx: click.Context,
    device_id: str,
    name: Optional[str],
    mac: Optional[str],
    target: Optional[str],
    port: Optional[int],
    clear_target: bool,
    clear_port: bool,
) -> None:
    """Update fields of a registered device."""
    from wolclient.commands import load_devices, update_device

    store = _store(ctx)
    current = _unwrap(asyncio.run(load_devices(store)))
    existing = next((d for d in current if d["id"] == device_id), None)
    if existing is None:
        click.echo(f"Error: Device with id '{device_id}' not found", err=True)
        sys.exit(1)

    record = dict(existing)
    if name is not None:
        record["name"] = name
    if mac is not None:
        record["mac"] = mac
    if target is not None:
        record["targetAddr"] = target
    if port is not None:
        record["port"] = port
    if clear_target:
        record.pop("targetAddr", None)
    if clear_port:
        record.pop("port", None)

    _unwrap(asyncio.run(update_device(record, store)))
    click.echo(f"✓  Updated '{record['name']}'")


@devices.command("remove")
@click.argument("device_id")
@click.pass_context
def devices_remove(ctx: click.Context, device_id: str) -> None:
    """Delete a registered device by id."""
    from wolclient.commands import delete_device

    remaining = _unwrap(asyncio.run(delete_device(device_id, _store(ctx))))
    click.echo(f"✓  Removed {device_id} ({len(remaining)} device(s) left)")


# ── wake command ─────────────────────────────────────────────────────────────


@main.command()
@click.argument("device", required=False)
@click.option("--mac", "-m", default=None, help="Wake an unregistered MAC address")
@click.option("--target", "-t", default=None, help="Destination host/IP (default: broadcast)")
@click.option("--port", "-p", type=click.IntRange(0, 65535), default=None, help="UDP port (default: 9)")
@click.pass_context
def wake(
    ctx: click.Context,
    device: Optional[str],
    mac: Optional[str],
    target: Optional[str],
    port: Optional[int],
) -> None:
    """Send a Wake-on-LAN packet to a registered DEVICE (id or name) or to --mac."""
    from wolclient.commands import send_wake_packet
    from wolclient.errors import WolClientError

    if bool(device) == bool(mac):
        click.echo("Give either a DEVICE id/name or --mac.", err=True)
        sys.exit(1)

    if device:
        try:
            match = _store(ctx).find(device)
        except WolClientError as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(1)
        if match is None:
            click.echo(f"Device '{device}' not found.", err=True)
            sys.exit(1)
        mac = match.mac
        target = target if target is not None else match.target_addr
        port = port if port is not None else match.port

    _unwrap(asyncio.run(send_wake_packet(str(mac), target, port)))
    click.echo(f"WOL packet sent to {mac} ({target or 'broadcast'})")


# ── serve command ─────────────────────────────────────────────────────────────


@main.command()
@click.option("--host", default=None, help="Bind host (default: settings server.host)")
@click.option("--port", default=None, type=int, help="Bind port (default: settings server.port)")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int]) -> None:
    """Start the wolclient web UI and API server."""
    import uvicorn

    from wolclient.api.routes import create_app

    server = ctx.obj["settings"]["server"]
    host = host or server["host"]
    port = port or server["port"]
    app = create_app(config_dir=ctx.obj["config_dir"])
    click.echo(f"Starting wolclient web UI at http://{host}:{port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
