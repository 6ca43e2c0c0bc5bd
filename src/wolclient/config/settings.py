"""YAML settings file loader and validator."""

from pathlib import Path
from typing import Any, Optional

import yaml

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

DEFAULT_SETTINGS: dict[str, Any] = {
    "log_level": "INFO",
    "server": {"host": "127.0.0.1", "port": 8000},
}


def load_settings(path: Path) -> Optional[dict[str, Any]]:
    """
    Load settings from a YAML file.

    Args:
        path: Path to settings.yaml

    Returns:
        Parsed settings dictionary, or None if the file is missing or empty

    Raises:
        yaml.YAMLError: If YAML is invalid
    """
    if not path.exists():
        return None
    with open(path, encoding="utf-8") as f:
        result: Optional[dict[str, Any]] = yaml.safe_load(f)
        return result


def validate_settings(settings: Any) -> list[str]:
    """
    Validate a loaded settings dictionary.

    Returns:
        List of validation error messages (empty list = valid)
    """
    if not isinstance(settings, dict):
        return ["Settings root must be a YAML mapping"]

    errors: list[str] = []
    level = settings.get("log_level")
    if level is not None and str(level).upper() not in LOG_LEVELS:
        errors.append(f"log_level: unknown level '{level}' (expected one of {', '.join(LOG_LEVELS)})")

    server = settings.get("server")
    if server is None:
        return errors
    if not isinstance(server, dict):
        errors.append("server: must be a mapping")
        return errors
    host = server.get("host")
    if host is not None and (not isinstance(host, str) or not host.strip()):
        errors.append("server.host: must be a non-empty string")
    port = server.get("port")
    if port is not None and (isinstance(port, bool) or not isinstance(port, int) or not 1 <= port <= 65535):
        errors.append(f"server.port: invalid port '{port}'")
    return errors


def merge_settings(settings: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Overlay user settings on top of the defaults."""
    merged: dict[str, Any] = {
        "log_level": DEFAULT_SETTINGS["log_level"],
        "server": dict(DEFAULT_SETTINGS["server"]),
    }
    if not settings:
        return merged
    if settings.get("log_level"):
        merged["log_level"] = str(settings["log_level"]).upper()
    merged["server"].update(settings.get("server") or {})
    return merged
