"""Entities derived from Steam's on-disk state. Never persisted, rebuilt per query."""

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class SteamApp:
    """An installed title (from an app manifest) or a user-added shortcut"""
    app_id: int
    name: str
    shortcut: bool = False  # False: appmanifest_*.acf, True: shortcuts.vdf

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CompatibilityTool:
    """A runtime installed under compatibilitytools.d"""
    path: str
    directory_name: str
    internal_name: str
    display_name: str
    from_os_list: str
    to_os_list: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
