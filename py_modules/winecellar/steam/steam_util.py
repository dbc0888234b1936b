"""Steam installation handle: binds the catalog and registry readers to one Steam root."""

from pathlib import Path
from typing import Dict, List, Optional

from . import compat_tools, library
from .locator import find_steam_directory
from .models import CompatibilityTool, SteamApp


class SteamUtil:
    """Read-only view of a Steam installation. Every call re-reads the disk."""

    def __init__(self, steam_path: Path):
        self.steam_path = Path(steam_path)

    @classmethod
    def find(cls, user_home_directory: Optional[str] = None) -> "SteamUtil":
        """Locate Steam (see find_steam_directory) and return a handle to it."""
        return cls(find_steam_directory(user_home_directory))

    def get_compatibility_tools_directory(self) -> Path:
        return compat_tools.get_compatibility_tools_directory(self.steam_path)

    def list_compatibility_tools(self) -> List[CompatibilityTool]:
        return compat_tools.list_compatibility_tools(self.steam_path)

    def get_compatibility_tools_mappings(self) -> Dict[int, str]:
        return compat_tools.get_compatibility_tools_mappings(self.steam_path)

    def list_library_folders(self) -> List[Path]:
        return library.list_library_folders(self.steam_path)

    def list_installed_applications(self) -> List[SteamApp]:
        return library.list_installed_applications(self.steam_path)

    def list_installed_applications_by_userdata(self) -> List[SteamApp]:
        return library.list_installed_applications_by_userdata(self.steam_path)

    def list_shortcuts(self) -> List[SteamApp]:
        return library.list_shortcuts(self.steam_path)

    def list_applications(self) -> List[SteamApp]:
        return library.list_applications(self.steam_path)
