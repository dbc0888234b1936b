"""
Plugin configuration.

Defaults live here as module constants; a small settings.json in the plugin's
settings directory (and a few environment variables) can override them.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Decky exports this for every plugin; fall back to a user data dir when run outside Decky
SETTINGS_DIR = Path(
    os.environ.get("DECKY_PLUGIN_SETTINGS_DIR")
    or Path.home() / ".local" / "share" / "winecellar"
)
SETTINGS_FILE = SETTINGS_DIR / "settings.json"

DEFAULT_WEBSOCKET_HOST = "localhost"
DEFAULT_WEBSOCKET_PORT = 8887

# Seconds allowed for a single runtime payload download
DOWNLOAD_TIMEOUT = 60 * 30

# Minimum percent change between two download progress broadcasts
PROGRESS_STEP_PERCENT = 1.0


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load settings.json. Returns {} when missing or unreadable."""
    settings_file = Path(path) if path else SETTINGS_FILE
    try:
        if settings_file.exists():
            with open(settings_file, "r") as f:
                data = json.load(f)
            if isinstance(data, dict):
                return data
            logger.warning(f"[Config] Ignoring non-object settings in {settings_file}")
    except Exception as e:
        logger.error(f"[Config] Error loading settings: {e}")
    return {}


def save_settings(settings: Dict[str, Any], path: Optional[Path] = None) -> bool:
    """Save settings.json. Returns True on success."""
    settings_file = Path(path) if path else SETTINGS_FILE
    try:
        settings_file.parent.mkdir(parents=True, exist_ok=True)
        with open(settings_file, "w") as f:
            json.dump(settings, f, indent=2)
        return True
    except Exception as e:
        logger.error(f"[Config] Error saving settings: {e}")
        return False


def get_websocket_host(settings: Optional[Dict[str, Any]] = None) -> str:
    """Host the peer websocket server binds to (env > settings > default)."""
    if settings is None:
        settings = load_settings()
    return os.environ.get("WINECELLAR_WS_HOST") or settings.get("websocket_host") or DEFAULT_WEBSOCKET_HOST


def get_websocket_port(settings: Optional[Dict[str, Any]] = None) -> int:
    """Port the peer websocket server listens on (env > settings > default)."""
    if settings is None:
        settings = load_settings()
    raw = os.environ.get("WINECELLAR_WS_PORT") or settings.get("websocket_port")
    if raw is None:
        return DEFAULT_WEBSOCKET_PORT
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning(f"[Config] Invalid websocket port {raw!r}, using {DEFAULT_WEBSOCKET_PORT}")
        return DEFAULT_WEBSOCKET_PORT


def get_steam_home_override(settings: Optional[Dict[str, Any]] = None) -> Optional[str]:
    """Home directory to search for Steam in, if the user configured one."""
    if settings is None:
        settings = load_settings()
    return os.environ.get("WINECELLAR_STEAM_HOME") or settings.get("steam_home") or None
