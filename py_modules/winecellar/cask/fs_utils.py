"""Filesystem helpers used by the install/uninstall handlers.

None of these lock anything: callers rely on the task queue running one task
at a time.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

COMPATIBILITY_TOOL_VDF_TEMPLATE = '''"compatibilitytools"
{{
  "compat_tools"
  {{
    "{internal_name}"
    {{
      "install_path" "."
      "display_name" "{display_name}"
      "from_oslist"  "windows"
      "to_oslist"    "linux"
    }}
  }}
}}
'''


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def generate_compatibility_tool_vdf(path: PathLike, internal_name: str, display_name: str) -> None:
    """Write a compatibilitytool.vdf registering the tool with Steam."""
    content = COMPATIBILITY_TOOL_VDF_TEMPLATE.format(
        internal_name=_escape(internal_name),
        display_name=_escape(display_name),
    )
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    logger.debug(f"[WineCask] Wrote {path}")


def copy_dir(source: PathLike, destination: PathLike) -> None:
    """Recursively copy source into destination, creating directories as needed."""
    source = Path(source)
    destination = Path(destination)
    destination.mkdir(parents=True, exist_ok=True)

    for entry in source.iterdir():
        destination_path = destination / entry.name
        if entry.is_dir() and not entry.is_symlink():
            copy_dir(entry, destination_path)
        elif entry.is_symlink():
            # Proton builds ship relative symlinks (e.g. lib -> lib64); keep them as links
            if destination_path.is_symlink() or destination_path.exists():
                destination_path.unlink()
            os.symlink(os.readlink(entry), destination_path)
        else:
            shutil.copy2(entry, destination_path)


def recursive_delete_dir_entry(entry_path: PathLike) -> None:
    """Delete a file, or a directory after deleting everything inside it."""
    entry_path = Path(entry_path)
    if entry_path.is_dir() and not entry_path.is_symlink():
        for entry in entry_path.iterdir():
            recursive_delete_dir_entry(entry)
        entry_path.rmdir()
    else:
        entry_path.unlink()
