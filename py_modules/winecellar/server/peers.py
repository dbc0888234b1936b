"""Connected frontend peers."""

import json
import logging
from typing import Any, Dict, Iterator, Set

from websockets.asyncio.server import ServerConnection, broadcast

logger = logging.getLogger(__name__)


class PeerMap:
    """
    The set of open websocket connections.

    Membership is managed by the server's connection handler; everyone else
    only broadcasts. broadcast() never blocks: a message is written to each
    connection's buffer, and a closed or failing connection is skipped
    without affecting the others.
    """

    def __init__(self):
        self._connections: Set[ServerConnection] = set()

    def add(self, connection: ServerConnection) -> None:
        self._connections.add(connection)
        logger.info(f"[Server] Peer connected ({len(self._connections)} total)")

    def remove(self, connection: ServerConnection) -> None:
        self._connections.discard(connection)
        logger.info(f"[Server] Peer disconnected ({len(self._connections)} total)")

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[ServerConnection]:
        return iter(set(self._connections))

    def broadcast(self, message: Dict[str, Any]) -> None:
        if not self._connections:
            return
        broadcast(set(self._connections), json.dumps(message))
