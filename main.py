import decky  # Required for Decky Loader framework
import os
import sys
from typing import Any, Dict, List, Optional

# Add plugin directory to Python path for local imports
DECKY_PLUGIN_DIR = os.environ.get("DECKY_PLUGIN_DIR")
if DECKY_PLUGIN_DIR:
    sys.path.insert(0, os.path.join(DECKY_PLUGIN_DIR, "py_modules"))

from winecellar.cask import InstallRequest, UninstallRequest, WineCask
from winecellar.config import get_websocket_host, get_websocket_port, load_settings
from winecellar.errors import WineCellarError
from winecellar.server import PeerMap, WineCellarServer
from winecellar.steam import SteamUtil

# Use Decky's logger for proper integration
logger = decky.logger


def _error(e: Exception) -> Dict[str, Any]:
    if isinstance(e, WineCellarError):
        return {'success': False, 'error': e.message, 'code': e.code, 'details': e.details}
    return {'success': False, 'error': str(e)}


class Plugin:
    """Wine Cellar plugin: Steam app catalog and compatibility tool manager"""

    async def _main(self):
        settings = load_settings()
        self.peers = PeerMap()
        self.wine_cask = WineCask(self.peers, steam_locator=self._steam)
        self.server = WineCellarServer(
            self.wine_cask,
            self.peers,
            host=get_websocket_host(settings),
            port=get_websocket_port(settings),
            steam_locator=self._steam,
        )

        try:
            steam = self._steam()
            logger.info(f"[INIT] Using Steam installation at {steam.steam_path}")
        except WineCellarError as e:
            # Not fatal: Steam may be installed or logged into later
            logger.error(f"[INIT] {e}")

        self.wine_cask.start()
        await self.server.start()
        logger.info("[INIT] Wine Cellar started")

    async def _unload(self):
        """Cleanup on plugin unload"""
        logger.info("[UNLOAD] Stopping websocket server and task queue")
        if getattr(self, 'server', None):
            await self.server.stop()
        if getattr(self, 'wine_cask', None):
            await self.wine_cask.stop()
        logger.info("[UNLOAD] Wine Cellar unloaded")

    def _steam(self) -> SteamUtil:
        # Re-located on every use so a moved or freshly logged-in Steam is picked up
        return SteamUtil.find()

    async def get_installed_applications(self, by_userdata: bool = False) -> Dict[str, Any]:
        """Installed Steam apps. by_userdata restricts to apps in a local user's config."""
        try:
            steam = self._steam()
            apps = steam.list_installed_applications_by_userdata() if by_userdata else steam.list_installed_applications()
            return {'success': True, 'applications': [app.to_dict() for app in apps]}
        except WineCellarError as e:
            logger.error(f"Error listing installed applications: {e}")
            return _error(e)

    async def get_shortcuts(self) -> Dict[str, Any]:
        try:
            return {'success': True, 'applications': [app.to_dict() for app in self._steam().list_shortcuts()]}
        except WineCellarError as e:
            logger.error(f"Error listing shortcuts: {e}")
            return _error(e)

    async def get_compatibility_tools(self) -> Dict[str, Any]:
        try:
            tools = self._steam().list_compatibility_tools()
            return {'success': True, 'compatibility_tools': [tool.to_dict() for tool in tools]}
        except WineCellarError as e:
            logger.error(f"Error listing compatibility tools: {e}")
            return _error(e)

    async def get_compatibility_tools_mappings(self) -> Dict[str, Any]:
        try:
            mappings = self._steam().get_compatibility_tools_mappings()
            # JSON object keys must be strings
            return {'success': True, 'mappings': {str(app_id): name for app_id, name in mappings.items()}}
        except WineCellarError as e:
            logger.error(f"Error reading compatibility tool mappings: {e}")
            return _error(e)

    async def install_compatibility_tool(self, name: str, url: str, display_name: Optional[str] = None) -> Dict[str, Any]:
        try:
            request = InstallRequest.from_dict({'name': name, 'url': url, 'display_name': display_name})
            task = self.wine_cask.add_install(request)
            return {'success': True, 'task': task.to_dict()}
        except WineCellarError as e:
            return _error(e)

    async def uninstall_compatibility_tool(self, name: str) -> Dict[str, Any]:
        try:
            task = self.wine_cask.add_uninstall(UninstallRequest.from_dict({'name': name}))
            return {'success': True, 'task': task.to_dict()}
        except WineCellarError as e:
            return _error(e)

    async def get_queue_state(self) -> Dict[str, Any]:
        return {'success': True, **self.wine_cask.get_state()}

    async def get_server_port(self) -> Dict[str, Any]:
        return {'success': True, 'host': self.server.host, 'port': self.server.port}

    async def get_library_folders(self) -> Dict[str, Any]:
        try:
            folders: List[str] = [str(path) for path in self._steam().list_library_folders()]
            return {'success': True, 'library_folders': folders}
        except WineCellarError as e:
            logger.error(f"Error listing library folders: {e}")
            return _error(e)
