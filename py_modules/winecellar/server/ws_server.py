"""
Websocket server for the plugin frontend.

Frontends send JSON requests:

    {"type": "RequestState"}
    {"type": "RequestApplications"}
    {"type": "Install", "install": {"name": ..., "url": ..., "display_name": ...}}
    {"type": "Uninstall", "uninstall": {"name": ...}}

and receive State / Applications replies plus the queue's Progress and
TaskStatus broadcasts. A bad request gets an Error reply to the sender only.
"""

import json
import logging
from typing import Any, Callable, Dict, Optional

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from .peers import PeerMap
from ..cask import InstallRequest, UninstallRequest, WineCask
from ..errors import WineCellarError
from ..steam import SteamUtil

logger = logging.getLogger(__name__)


def error_message(message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {'type': 'Error', 'message': message, 'details': details or {}}


class WineCellarServer:
    """Accepts peer connections and routes their requests"""

    def __init__(
        self,
        wine_cask: WineCask,
        peers: PeerMap,
        host: str,
        port: int,
        steam_locator: Callable[[], SteamUtil] = SteamUtil.find,
    ):
        self.wine_cask = wine_cask
        self.peers = peers
        self.host = host
        self.port = port
        self.steam_locator = steam_locator
        self._server: Optional[Server] = None

    async def start(self) -> None:
        self._server = await serve(self._handle_connection, self.host, self.port)
        if not self.port:
            # port 0: report the one the OS picked
            self.port = next(iter(self._server.sockets)).getsockname()[1]
        logger.info(f"[Server] Listening on ws://{self.host}:{self.port}")

    async def stop(self) -> None:
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
            logger.info("[Server] Stopped")

    async def _handle_connection(self, websocket: ServerConnection) -> None:
        self.peers.add(websocket)
        try:
            async for raw in websocket:
                reply = self.dispatch(raw)
                if reply is not None:
                    await websocket.send(json.dumps(reply))
        except ConnectionClosed:
            pass
        finally:
            self.peers.remove(websocket)

    def dispatch(self, raw: Any) -> Optional[Dict[str, Any]]:
        """Handle one request. Returns the reply for the sender, if any."""
        try:
            request = json.loads(raw)
        except (TypeError, ValueError):
            return error_message("Request is not valid JSON")
        if not isinstance(request, dict):
            return error_message("Request must be a JSON object")

        message_type = request.get('type')
        try:
            if message_type == 'RequestState':
                return {'type': 'State', **self.wine_cask.get_state()}

            if message_type == 'RequestApplications':
                steam = self.steam_locator()
                return {
                    'type': 'Applications',
                    'applications': [app.to_dict() for app in steam.list_applications()],
                }

            if message_type == 'Install':
                self.wine_cask.add_install(InstallRequest.from_dict(request.get('install')))
                return None

            if message_type == 'Uninstall':
                self.wine_cask.add_uninstall(UninstallRequest.from_dict(request.get('uninstall')))
                return None
        except WineCellarError as e:
            logger.warning(f"[Server] {message_type} request failed: {e}")
            return error_message(e.message, e.to_dict())
        except OSError as e:
            logger.error(f"[Server] {message_type} request failed: {e}", exc_info=True)
            return error_message(str(e), {"error": "OS_ERROR"})

        return error_message(f"Unknown request type: {message_type!r}")
