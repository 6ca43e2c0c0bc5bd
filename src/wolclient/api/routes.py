"""FastAPI routes for the wolclient web UI and API."""

import logging
from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from wolclient import __version__, commands
from wolclient.api.models import DeviceDraft, DeviceResponse, WakeRequest, WakeResponse
from wolclient.commands import CommandResult
from wolclient.config import paths
from wolclient.core import wol
from wolclient.errors import (
    DeviceNotFoundError,
    InvalidMacFormatError,
    InvalidPortError,
    NetworkSendError,
)
from wolclient.store.registry import DeviceStore

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).parent / "templates"


def _status_for(result: CommandResult[Any]) -> int:
    exc = result.exception
    if isinstance(exc, DeviceNotFoundError):
        return 404
    if isinstance(exc, (InvalidMacFormatError, InvalidPortError)):
        return 400
    if isinstance(exc, NetworkSendError):
        return 502
    if exc is None:
        # Rejected before reaching the store (invalid request data).
        return 400
    return 500


def _error_response(result: CommandResult[Any]) -> JSONResponse:
    return JSONResponse({"error": result.error}, status_code=_status_for(result))


def create_app(config_dir: Optional[str] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config_dir: Directory holding devices.json. If None, uses the default
            location (WOLCLIENT_CONFIG_DIR or the platform config dir).

    Returns:
        FastAPI application instance
    """
    override = Path(config_dir) if config_dir else None

    app = FastAPI(
        title="wolclient",
        version=__version__,
        description="Register machines and wake them with Wake-on-LAN",
    )
    app.state.store = DeviceStore(lambda: paths.config_dir(override))
    templates = Jinja2Templates(directory=str(_TEMPLATES_DIR))

    def _store() -> DeviceStore:
        store: DeviceStore = app.state.store
        return store

    # ── HTML Dashboard ────────────────────────────────────────────────────────

    @app.get("/", response_class=HTMLResponse)
    async def dashboard(request: Request) -> HTMLResponse:
        result = await commands.load_devices(_store())
        error = request.query_params.get("error") or result.error
        return templates.TemplateResponse(
            request,
            "dashboard.html",
            {
                "devices": result.value or [],
                "message": request.query_params.get("msg", ""),
                "error": error or "",
            },
        )

    def _back(result: CommandResult[Any], msg: str) -> RedirectResponse:
        if result.ok:
            return RedirectResponse(f"/?msg={quote(msg)}", status_code=303)
        return RedirectResponse(f"/?error={quote(result.error or '')}", status_code=303)

    def _draft_from_form(form: Any) -> tuple[dict[str, Any], Optional[str]]:
        """Parse a submitted device form; returns (draft, error message)."""
        draft: dict[str, Any] = {
            "name": str(form.get("name", "")).strip(),
            "mac": str(form.get("mac", "")).strip(),
            "targetAddr": str(form.get("targetAddr", "")),
        }
        port = str(form.get("port", "")).strip()
        if port:
            if not port.isdigit():
                return draft, "Port must be a number"
            draft["port"] = int(port)
        return draft, None

    @app.post("/ui/devices")
    async def ui_add_device(request: Request) -> RedirectResponse:
        draft, error = _draft_from_form(await request.form())
        if error:
            return RedirectResponse(f"/?error={quote(error)}", status_code=303)
        result = await commands.add_device(draft, _store())
        return _back(result, f"Device '{draft['name']}' added")

    @app.post("/ui/devices/{device_id}/edit")
    async def ui_edit_device(request: Request, device_id: str) -> RedirectResponse:
        draft, error = _draft_from_form(await request.form())
        if error:
            return RedirectResponse(f"/?error={quote(error)}", status_code=303)
        draft["id"] = device_id
        result = await commands.update_device(draft, _store())
        return _back(result, f"Device '{draft['name']}' updated")

    @app.post("/ui/devices/{device_id}/delete")
    async def ui_delete_device(device_id: str) -> RedirectResponse:
        result = await commands.delete_device(device_id, _store())
        return _back(result, "Device deleted")

    @app.post("/ui/devices/{device_id}/wake")
    async def ui_wake_device(device_id: str) -> RedirectResponse:
        loaded = await commands.load_devices(_store())
        if not loaded.ok:
            return _back(loaded, "")
        device = next((d for d in loaded.value or [] if d["id"] == device_id), None)
        if device is None:
            logger.warning("Dashboard wake for unknown device %s", device_id)
            return RedirectResponse(f"/?error={quote('Device not found')}", status_code=303)
        result = await commands.send_wake_packet(
            device["mac"], device.get("targetAddr"), device.get("port")
        )
        return _back(result, f"WOL packet sent to {device['mac']}")

    # ── JSON API: devices ─────────────────────────────────────────────────────

    @app.get("/devices", response_model=list[DeviceResponse])
    async def get_devices() -> JSONResponse:
        result = await commands.load_devices(_store())
        if not result.ok:
            return _error_response(result)
        return JSONResponse(result.value)

    @app.post("/devices", response_model=list[DeviceResponse])
    async def post_device(draft: DeviceDraft) -> JSONResponse:
        result = await commands.add_device(draft.model_dump(), _store())
        if not result.ok:
            return _error_response(result)
        return JSONResponse(result.value)

    @app.put("/devices/{device_id}", response_model=list[DeviceResponse])
    async def put_device(device_id: str, draft: DeviceDraft) -> JSONResponse:
        payload = draft.model_dump()
        payload["id"] = device_id
        result = await commands.update_device(payload, _store())
        if not result.ok:
            return _error_response(result)
        return JSONResponse(result.value)

    @app.delete("/devices/{device_id}", response_model=list[DeviceResponse])
    async def remove_device(device_id: str) -> JSONResponse:
        result = await commands.delete_device(device_id, _store())
        if not result.ok:
            return _error_response(result)
        return JSONResponse(result.value)

    # ── JSON API: wake ────────────────────────────────────────────────────────

    async def _wake(mac: str, target_addr: Optional[str], port: Optional[int]) -> JSONResponse:
        result = await commands.send_wake_packet(mac, target_addr, port)
        if not result.ok:
            return _error_response(result)
        host, resolved_port = wol.resolve_destination(target_addr, port)
        body = WakeResponse(status="wol_sent", mac=mac, destination=f"{host}:{resolved_port}")
        return JSONResponse(body.model_dump())

    @app.post("/wake", response_model=WakeResponse)
    async def post_wake(req: WakeRequest) -> JSONResponse:
        return await _wake(req.mac, req.targetAddr, req.port)

    @app.post("/devices/{device_id}/wake", response_model=WakeResponse)
    async def post_device_wake(device_id: str) -> JSONResponse:
        loaded = await commands.load_devices(_store())
        if not loaded.ok:
            return _error_response(loaded)
        device = next((d for d in loaded.value or [] if d["id"] == device_id), None)
        if device is None:
            return JSONResponse({"error": f"Device '{device_id}' not found"}, status_code=404)
        return await _wake(device["mac"], device.get("targetAddr"), device.get("port"))

    return app
