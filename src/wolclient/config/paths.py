"""Resolution of the per-application configuration directory."""

import logging
import os
from pathlib import Path
from typing import Optional

import platformdirs

from wolclient.errors import ConfigDirUnavailableError

logger = logging.getLogger(__name__)

APP_NAME = "wolclient"
ENV_VAR = "WOLCLIENT_CONFIG_DIR"
DEVICES_FILE = "devices.json"
SETTINGS_FILE = "settings.yaml"


def default_config_dir() -> Path:
    """Return the configured directory without creating it.

    Resolution order:
    1. WOLCLIENT_CONFIG_DIR environment variable
    2. platformdirs.user_config_dir("wolclient")
    """
    return Path(os.environ.get(ENV_VAR) or platformdirs.user_config_dir(APP_NAME))


def config_dir(override: Optional[Path] = None) -> Path:
    """
    Return a writable configuration directory, creating it on demand.

    Args:
        override: Explicit directory to use instead of the default resolution

    Raises:
        ConfigDirUnavailableError: If the directory cannot be created
    """
    path = Path(override) if override else default_config_dir()
    if not path.exists():
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigDirUnavailableError(path, exc) from exc
        logger.info("Config directory created at %s", path)
    elif not path.is_dir():
        raise ConfigDirUnavailableError(path, "not a directory")
    return path
