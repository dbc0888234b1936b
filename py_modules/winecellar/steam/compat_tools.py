"""
Compatibility Tool Registry

Reads the compatibility tools installed under compatibilitytools.d and the
per-app tool assignments ("Force the use of a specific Steam Play
compatibility tool") from config/config.vdf.

Descriptor layout (compatibilitytool.vdf):

    "compatibilitytools"
    {
      "compat_tools"
      {
        "<internal name>"
        {
          "install_path" "."
          "display_name" "<display name>"
          "from_oslist"  "windows"
          "to_oslist"    "linux"
        }
      }
    }
"""

import logging
from pathlib import Path
from typing import Dict, List

from .keyvalues import first_child, get_object, get_str, read_document
from .models import CompatibilityTool
from ..errors import (
    CompatibilityToolsDirectoryCreationFailed,
    MissingKeyError,
    SteamConfigVdfNotFound,
    SteamUtilError,
)

logger = logging.getLogger(__name__)

COMPAT_TOOLS_DIRNAME = "compatibilitytools.d"
COMPAT_TOOL_VDF = "compatibilitytool.vdf"
COMPAT_TOOL_MAPPING_PATH = ("Software", "Valve", "Steam", "CompatToolMapping")


def get_compatibility_tools_directory(steam_path: Path) -> Path:
    """
    Return <steam>/compatibilitytools.d, creating it if needed.

    Steam does not create this directory on a fresh install.

    Raises:
        CompatibilityToolsDirectoryCreationFailed: it is missing and could not be created
    """
    steam_path = Path(steam_path)
    path = steam_path / COMPAT_TOOLS_DIRNAME
    if not path.exists() and steam_path.exists():
        logger.warning("[SteamUtil] Steam compatibility tools directory does not exist, creating it...")
        try:
            path.mkdir()
        except OSError as e:
            raise CompatibilityToolsDirectoryCreationFailed(str(path), str(e)) from e
    return path


def read_compatibility_tool(compat_tool_vdf: Path) -> CompatibilityTool:
    """
    Parse one compatibilitytool.vdf.

    Raises:
        VdfParsingError: the file could not be read or parsed
        MissingKeyError: a required key is absent
    """
    compat_tool_vdf = Path(compat_tool_vdf)
    doc = read_document(compat_tool_vdf)
    _, root = first_child(doc, "<root>")
    _, compat_tools = first_child(root, "compatibilitytools")
    internal_name, tool = first_child(compat_tools, "compat_tools")

    path = compat_tool_vdf.parent
    return CompatibilityTool(
        path=str(path),
        directory_name=path.name,
        internal_name=internal_name,
        display_name=get_str(tool, "display_name"),
        from_os_list=get_str(tool, "from_oslist"),
        to_os_list=get_str(tool, "to_oslist"),
    )


def list_compatibility_tools(steam_path: Path) -> List[CompatibilityTool]:
    """
    List installed compatibility tools, sorted by directory name.

    Directories without a descriptor are not tools. A tool whose descriptor
    is malformed is skipped with a warning; the rest are still listed.
    """
    tools_directory = get_compatibility_tools_directory(steam_path)
    if not tools_directory.is_dir():
        return []

    tools: List[CompatibilityTool] = []
    try:
        entries = sorted(tools_directory.iterdir())
    except OSError as e:
        raise SteamUtilError(
            f"Could not list {tools_directory}: {e}",
            code="COMPAT_TOOLS_DIRECTORY_UNREADABLE",
            details={"path": str(tools_directory)},
        ) from e
    for entry in entries:
        descriptor = entry / COMPAT_TOOL_VDF
        if not entry.is_dir() or not descriptor.is_file():
            continue
        try:
            tools.append(read_compatibility_tool(descriptor))
        except SteamUtilError as e:
            logger.warning(f"[SteamUtil] Skipping compatibility tool {entry.name}: {e}")

    return tools


def get_compatibility_tools_mappings(steam_path: Path) -> Dict[int, str]:
    """
    Read app id -> compatibility tool internal name from config/config.vdf.

    Returns {} when the config has no CompatToolMapping section. Entries with
    a blank tool name (Steam writes these when the override is cleared) are
    dropped.

    Raises:
        SteamConfigVdfNotFound: config/config.vdf does not exist
        VdfParsingError: config.vdf could not be parsed
    """
    config_file = Path(steam_path) / "config" / "config.vdf"
    if not config_file.is_file():
        raise SteamConfigVdfNotFound(str(config_file))

    doc = read_document(config_file)
    try:
        _, store = first_child(doc, "InstallConfigStore")
        mappings_obj = get_object(store, COMPAT_TOOL_MAPPING_PATH, case_fallback=True)
    except MissingKeyError as e:
        logger.info(f"[SteamUtil] No compatibility tool mappings in {config_file}: {e}")
        return {}

    mappings: Dict[int, str] = {}
    for key, value in mappings_obj.items():
        try:
            app_id = int(key)
        except ValueError:
            logger.warning(f"[SteamUtil] Ignoring non-numeric app id {key!r} in CompatToolMapping")
            continue
        if not isinstance(value, dict):
            continue
        name = value.get("name")
        if isinstance(name, str) and name.strip():
            mappings[app_id] = name

    return mappings
