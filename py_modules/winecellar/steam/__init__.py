# Steam on-disk state: discovery, VDF access, app catalog, compatibility tools
from .locator import find_steam_directory
from .models import CompatibilityTool, SteamApp
from .steam_util import SteamUtil

__all__ = [
    'CompatibilityTool',
    'SteamApp',
    'SteamUtil',
    'find_steam_directory',
]
