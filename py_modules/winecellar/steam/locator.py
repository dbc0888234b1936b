"""
Steam installation discovery.

Probes the known Steam layouts under the user's home directory. A layout is
only accepted once Steam has been logged into at least once: a fresh install
has config.vdf but no libraryfolders.vdf yet.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from ..config import get_steam_home_override
from ..errors import HomeDirectoryNotFound, SteamDirectoryNotFound

logger = logging.getLogger(__name__)

# Ordered: first match wins
POSSIBLE_STEAM_ROOTS = (
    ".local/share/Steam",
    ".steam/root",
    ".steam/steam",
    ".steam/debian-installation",
    ".var/app/com.valvesoftware.Steam/data/Steam",  # flatpak
)

# libraryfolders.vdf moved from config/ to steamapps/ in newer clients
LIBRARY_FOLDERS_LOCATIONS = (
    ("steamapps", "libraryfolders.vdf"),
    ("config", "libraryfolders.vdf"),
)


def resolve_home_directory(user_home_directory: Optional[str] = None) -> Optional[Path]:
    """Explicit override, else USERPROFILE, else HOME."""
    if user_home_directory:
        return Path(user_home_directory)
    for var in ("USERPROFILE", "HOME"):
        value = os.environ.get(var)
        if value:
            return Path(value)
    return None


def is_steam_root(path: Path) -> bool:
    """True if path holds both the main config and a library-folders document."""
    if not (path / "config" / "config.vdf").is_file():
        return False
    return any((path / parent / name).is_file() for parent, name in LIBRARY_FOLDERS_LOCATIONS)


def find_steam_directory(user_home_directory: Optional[str] = None) -> Path:
    """
    Find the Steam installation root.

    Args:
        user_home_directory: Home directory to search in. Defaults to the
            configured override, then the environment.

    Returns:
        Path to the Steam root directory

    Raises:
        HomeDirectoryNotFound: no home directory could be resolved
        SteamDirectoryNotFound: no known layout under home qualifies
    """
    home = resolve_home_directory(user_home_directory or get_steam_home_override())
    if home is None:
        raise HomeDirectoryNotFound()

    logger.info(f"[SteamUtil] Looking for Steam directory in {home}")
    for steam_dir in POSSIBLE_STEAM_ROOTS:
        candidate = home / steam_dir
        if is_steam_root(candidate):
            logger.info(f"[SteamUtil] Found Steam directory: {candidate}")
            return candidate

    raise SteamDirectoryNotFound(str(home))
