"""Install/uninstall task model for the compatibility tool queue"""

import itertools
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..errors import TaskError

_task_ids = itertools.count(1)


class TaskType(str, Enum):
    INSTALL_COMPATIBILITY_TOOL = "install"
    UNINSTALL_COMPATIBILITY_TOOL = "uninstall"


class TaskStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


def validate_tool_name(name: Any) -> str:
    """Tool names become directory names under compatibilitytools.d."""
    if not isinstance(name, str) or not name.strip():
        raise TaskError("Compatibility tool name is required")
    name = name.strip()
    if name in (".", "..") or "/" in name or "\\" in name or "\x00" in name:
        raise TaskError(f"Invalid compatibility tool name: {name!r}", name=name)
    return name


@dataclass(frozen=True)
class InstallRequest:
    """Download url, unpack it and register it as compatibilitytools.d/<name>"""
    name: str                           # directory and internal name
    url: str                            # .tar.gz / .tar.xz archive of the runtime
    display_name: Optional[str] = None  # shown in Steam's compatibility dropdown

    @property
    def internal_name(self) -> str:
        return self.name

    @property
    def label(self) -> str:
        return self.display_name or self.name

    @classmethod
    def from_dict(cls, data: Any) -> 'InstallRequest':
        if not isinstance(data, dict):
            raise TaskError("Install request must be an object")
        url = data.get("url")
        if not isinstance(url, str) or not url.startswith(("http://", "https://")):
            raise TaskError("Install request needs an http(s) url", url=url)
        display_name = data.get("display_name")
        return cls(
            name=validate_tool_name(data.get("name")),
            url=url,
            display_name=display_name if isinstance(display_name, str) and display_name.strip() else None,
        )


@dataclass(frozen=True)
class UninstallRequest:
    """Remove compatibilitytools.d/<name>"""
    name: str

    @classmethod
    def from_dict(cls, data: Any) -> 'UninstallRequest':
        if not isinstance(data, dict):
            raise TaskError("Uninstall request must be an object")
        return cls(name=validate_tool_name(data.get("name")))


@dataclass(frozen=True)
class Task:
    """One queued mutation of compatibilitytools.d. Consumed exactly once."""
    type: TaskType
    payload: Union[InstallRequest, UninstallRequest]
    id: int = field(default_factory=lambda: next(_task_ids))

    @classmethod
    def install(cls, request: InstallRequest) -> 'Task':
        return cls(type=TaskType.INSTALL_COMPATIBILITY_TOOL, payload=request)

    @classmethod
    def uninstall(cls, request: UninstallRequest) -> 'Task':
        return cls(type=TaskType.UNINSTALL_COMPATIBILITY_TOOL, payload=request)

    @property
    def name(self) -> str:
        return self.payload.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'type': self.type.value,
            'name': self.name,
            'payload': asdict(self.payload),
        }
