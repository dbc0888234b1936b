"""Compatibility tool installation.

Downloads a runtime archive, unpacks it, copies it into
compatibilitytools.d/<name> and writes the descriptor Steam reads.
"""

import asyncio
import logging
import os
import tarfile
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlparse

import aiohttp

from .fs_utils import copy_dir, generate_compatibility_tool_vdf, recursive_delete_dir_entry
from .tasks import InstallRequest
from ..config import DOWNLOAD_TIMEOUT, PROGRESS_STEP_PERCENT
from ..errors import TaskError
from ..steam.compat_tools import COMPAT_TOOL_VDF

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def _progress_message(request: InstallRequest, phase: str, percent: float, **extra: Any) -> Dict[str, Any]:
    return {
        'type': 'Progress',
        'name': request.name,
        'phase': phase,  # downloading|extracting|installing
        'percent': round(percent, 1),
        **extra,
    }


async def download_file(
    url: str,
    destination: Path,
    on_progress: Optional[Callable[[int, int], None]] = None,
) -> int:
    """
    Stream url to destination.

    Args:
        on_progress: called with (downloaded_bytes, total_bytes); total is 0
            when the server sends no Content-Length

    Returns:
        Number of bytes written

    Raises:
        TaskError: on HTTP errors, connection errors or timeout
    """
    timeout = aiohttp.ClientTimeout(total=DOWNLOAD_TIMEOUT)
    downloaded = 0
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url) as response:
                if response.status != 200:
                    raise TaskError(f"Download failed: HTTP {response.status}", url=url)
                total = response.content_length or 0
                with open(destination, 'wb') as f:
                    async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                        f.write(chunk)
                        downloaded += len(chunk)
                        if on_progress:
                            on_progress(downloaded, total)
    except asyncio.TimeoutError as e:
        raise TaskError("Download timed out", url=url) from e
    except aiohttp.ClientError as e:
        raise TaskError(f"Download failed: {e}", url=url) from e

    logger.info(f"[WineCask] Downloaded {downloaded} bytes from {url}")
    return downloaded


def extract_archive(archive: Path, destination: Path) -> Path:
    """Unpack a tar archive (any compression tarfile knows) into destination."""
    destination.mkdir(parents=True, exist_ok=True)
    root = destination.resolve()
    try:
        with tarfile.open(archive, "r:*") as tar:
            for member in tar.getmembers():
                target = (root / member.name).resolve()
                if target != root and root not in target.parents:
                    raise TaskError(f"Archive member escapes extraction directory: {member.name}")
            tar.extractall(destination, filter="data")
    except (tarfile.TarError, OSError) as e:
        raise TaskError(f"Could not extract {archive.name}: {e}") from e
    return destination


def find_payload_root(extracted: Path) -> Path:
    """Runtime archives usually wrap everything in one top-level directory."""
    entries = list(extracted.iterdir())
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return extracted


def _archive_name(url: str) -> str:
    name = os.path.basename(urlparse(url).path)
    return name or "payload.tar"


async def install_compatibility_tool(tools_directory: Path, request: InstallRequest, peers) -> Path:
    """
    Install a compatibility tool into tools_directory/<request.name>.

    Args:
        tools_directory: compatibilitytools.d of the Steam installation
        request: what to install
        peers: receives Progress broadcasts

    Returns:
        The tool directory

    Raises:
        TaskError: the tool exists already, or download/extraction failed
    """
    tools_directory = Path(tools_directory)
    destination = tools_directory / request.name
    if destination.exists():
        raise TaskError(f"Compatibility tool {request.name} is already installed", path=str(destination))

    loop = asyncio.get_running_loop()
    last_percent = [-PROGRESS_STEP_PERCENT]

    def on_progress(downloaded: int, total: int) -> None:
        if not total:
            return
        percent = downloaded * 100.0 / total
        if percent - last_percent[0] >= PROGRESS_STEP_PERCENT or downloaded == total:
            last_percent[0] = percent
            peers.broadcast(_progress_message(request, 'downloading', percent, downloaded_bytes=downloaded, total_bytes=total))

    with tempfile.TemporaryDirectory(prefix="winecellar-") as tmp:
        tmp_path = Path(tmp)
        archive = tmp_path / _archive_name(request.url)

        logger.info(f"[WineCask] Downloading {request.label} from {request.url}")
        peers.broadcast(_progress_message(request, 'downloading', 0))
        await download_file(request.url, archive, on_progress)

        peers.broadcast(_progress_message(request, 'extracting', 100))
        extracted = await loop.run_in_executor(None, extract_archive, archive, tmp_path / "extracted")
        payload = find_payload_root(extracted)

        peers.broadcast(_progress_message(request, 'installing', 100))
        try:
            await loop.run_in_executor(None, copy_dir, payload, destination)
            await loop.run_in_executor(
                None,
                generate_compatibility_tool_vdf,
                destination / COMPAT_TOOL_VDF,
                request.internal_name,
                request.label,
            )
        except BaseException:
            if destination.exists():
                logger.warning(f"[WineCask] Removing partial install at {destination}")
                recursive_delete_dir_entry(destination)
            raise

    logger.info(f"[WineCask] Installed {request.label} to {destination}")
    return destination
