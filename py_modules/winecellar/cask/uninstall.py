"""Compatibility tool removal."""

import asyncio
import logging
import os
from pathlib import Path

from .fs_utils import recursive_delete_dir_entry
from .tasks import UninstallRequest
from ..errors import TaskError

logger = logging.getLogger(__name__)


def resolve_tool_directory(tools_directory: Path, name: str) -> Path:
    """tools_directory/name, refusing names that leave tools_directory.

    The entry itself is not resolved: a symlinked tool is the link, not its target.
    """
    tools_directory = Path(tools_directory).resolve()
    target = tools_directory / name
    if name in (".", "..") or Path(os.path.normpath(target)).parent != tools_directory:
        raise TaskError(f"Refusing to remove {target}: not inside {tools_directory}", name=name)
    return target


async def uninstall_compatibility_tool(tools_directory: Path, request: UninstallRequest) -> None:
    """
    Delete compatibilitytools.d/<request.name> and everything in it.

    Raises:
        TaskError: the tool is not installed, or the name leaves the tools directory
    """
    target = resolve_tool_directory(tools_directory, request.name)
    if target.is_symlink():
        logger.info(f"[WineCask] Removing link {target} -> {os.readlink(target)}")
        target.unlink()
        logger.info(f"[WineCask] Uninstalled {request.name}")
        return
    if not target.is_dir():
        raise TaskError(f"Compatibility tool {request.name} is not installed", path=str(target))

    logger.info(f"[WineCask] Removing {target}")
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, recursive_delete_dir_entry, target)
    logger.info(f"[WineCask] Uninstalled {request.name}")
