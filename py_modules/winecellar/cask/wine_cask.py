"""
Wine Cask: the compatibility tool task queue.

Install and uninstall requests are processed strictly one at a time, in the
order they arrived. That is the only thing keeping two tasks from writing to
compatibilitytools.d at the same time, so handlers must never be run outside
this queue.

Lifecycle: start() on plugin load, stop() on unload. A failing task is
logged and reported to peers; the worker then waits for the next one.
"""

import asyncio
import logging
from collections import deque
from pathlib import Path
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, Protocol

from . import install, uninstall
from .tasks import InstallRequest, Task, TaskStatus, TaskType, UninstallRequest
from ..errors import WineCellarError
from ..steam import SteamUtil

logger = logging.getLogger(__name__)


class Peers(Protocol):
    """Anything that can fan a message out to connected frontends"""

    def broadcast(self, message: Dict[str, Any]) -> None:
        ...


InstallHandler = Callable[[Path, InstallRequest, Peers], Awaitable[None]]
UninstallHandler = Callable[[Path, UninstallRequest], Awaitable[None]]


class WineCask:
    """Owns the task queue and its single worker"""

    def __init__(
        self,
        peers: Peers,
        steam_locator: Callable[[], SteamUtil] = SteamUtil.find,
        install_handler: InstallHandler = install.install_compatibility_tool,
        uninstall_handler: UninstallHandler = uninstall.uninstall_compatibility_tool,
    ):
        self.peers = peers
        self.steam_locator = steam_locator
        self.install_handler = install_handler
        self.uninstall_handler = uninstall_handler

        self._queue: asyncio.Queue = asyncio.Queue()
        self._pending: Deque[Task] = deque()  # mirrors _queue for get_state()
        self.in_progress: Optional[Task] = None
        self._worker: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------ lifecycle

    def start(self) -> None:
        """Start the worker (no-op if already running)"""
        if self._worker and not self._worker.done():
            logger.warning("[WineCask] Worker already running")
            return
        self._worker = asyncio.create_task(self.run())
        logger.info("[WineCask] Worker started")

    async def stop(self) -> None:
        """Stop the worker. A task in progress is abandoned; pending tasks are dropped."""
        if self._worker:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        logger.info("[WineCask] Worker stopped")

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    # ------------------------------------------------------------------ producers

    def enqueue(self, task: Task) -> Task:
        """Append a task. Safe to call from any coroutine on the loop."""
        self._pending.append(task)
        self._queue.put_nowait(task)
        logger.info(f"[WineCask] Queued {task.type.value} of {task.name} (task {task.id}, position {len(self._pending)})")
        self._broadcast({'type': 'State', **self.get_queue_state()})
        return task

    def add_install(self, request: InstallRequest) -> Task:
        return self.enqueue(Task.install(request))

    def add_uninstall(self, request: UninstallRequest) -> Task:
        return self.enqueue(Task.uninstall(request))

    async def join(self) -> None:
        """Wait until every queued task has been processed"""
        await self._queue.join()

    # ------------------------------------------------------------------ worker

    async def run(self) -> None:
        """Worker loop: idle on an empty queue, otherwise process the head task."""
        while True:
            task = await self._queue.get()
            self._pending.popleft()
            self.in_progress = task
            try:
                await self.process(task)
            finally:
                self.in_progress = None
                self._queue.task_done()

    async def process(self, task: Task) -> None:
        """Run one task to completion or failure, then report it. Never raises Exception."""
        logger.info(f"[WineCask] Processing {task.type.value} of {task.name} (task {task.id})")
        status = TaskStatus.COMPLETED
        error = None
        try:
            tools_directory = self.steam_locator().get_compatibility_tools_directory()
            if task.type == TaskType.INSTALL_COMPATIBILITY_TOOL:
                await self.install_handler(tools_directory, task.payload, self.peers)
            elif task.type == TaskType.UNINSTALL_COMPATIBILITY_TOOL:
                await self.uninstall_handler(tools_directory, task.payload)
            else:
                raise WineCellarError(f"Unknown task type: {task.type}")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            status = TaskStatus.FAILED
            error = str(e)
            logger.error(f"[WineCask] Task {task.id} ({task.type.value} {task.name}) failed: {e}", exc_info=True)
        else:
            logger.info(f"[WineCask] Task {task.id} ({task.type.value} {task.name}) completed")

        self._broadcast({
            'type': 'TaskStatus',
            'task': task.to_dict(),
            'status': status.value,
            'error': error,
        })

    def _broadcast(self, message: Dict[str, Any]) -> None:
        try:
            self.peers.broadcast(message)
        except Exception as e:
            logger.warning(f"[WineCask] Broadcast failed: {e}")

    # ------------------------------------------------------------------ introspection

    def get_queue_state(self) -> Dict[str, Any]:
        return {
            'in_progress': self.in_progress.to_dict() if self.in_progress else None,
            'queued': [task.to_dict() for task in self._pending],
        }

    def get_state(self) -> Dict[str, Any]:
        """Queue state plus the installed tools and their app assignments."""
        state = self.get_queue_state()
        state['compatibility_tools'] = []
        state['mappings'] = {}
        state['error'] = None
        try:
            steam = self.steam_locator()
            state['compatibility_tools'] = [tool.to_dict() for tool in steam.list_compatibility_tools()]
            state['mappings'] = {str(app_id): name for app_id, name in steam.get_compatibility_tools_mappings().items()}
        except WineCellarError as e:
            logger.error(f"[WineCask] Could not read Steam state: {e}")
            state['error'] = e.to_dict()
        return state
