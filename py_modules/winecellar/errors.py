"""
Wine Cellar Exception Hierarchy

Every filesystem or parse failure in the Steam metadata engine surfaces as one
of these, so callers (RPC methods, the websocket router) can report a
structured error instead of crashing the plugin.
"""

from typing import Any, Dict, Optional, Sequence


class WineCellarError(Exception):
    """
    Base exception for all Wine Cellar errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context as key-value pairs
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def __str__(self):
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# Steam directory / document errors
# =============================================================================

class SteamUtilError(WineCellarError):
    """Base for errors raised while reading Steam's on-disk state."""
    pass


class HomeDirectoryNotFound(SteamUtilError):
    def __init__(self):
        super().__init__("Home directory not found", code="HOME_NOT_FOUND")


class SteamDirectoryNotFound(SteamUtilError):
    def __init__(self, home: Optional[str] = None):
        super().__init__(
            "Steam directory not found",
            code="STEAM_DIRECTORY_NOT_FOUND",
            details={"home": home} if home else None,
        )


class CompatibilityToolsDirectoryCreationFailed(SteamUtilError):
    """Fatal: without the tools directory no compatibility tool can be listed or installed."""
    def __init__(self, path: str, reason: str = ""):
        super().__init__(
            "Steam compatibility tools directory could not be created!",
            code="COMPAT_TOOLS_DIRECTORY_CREATION_FAILED",
            details={"path": path, "reason": reason},
        )


class SteamAppsDirectoryNotFound(SteamUtilError):
    def __init__(self, path: str):
        super().__init__(
            "Steam apps directory not found",
            code="STEAMAPPS_DIRECTORY_NOT_FOUND",
            details={"path": path},
        )


class LibraryFoldersVdfNotFound(SteamUtilError):
    def __init__(self, path: str):
        super().__init__(
            "Steam library folders VDF file not found",
            code="LIBRARY_FOLDERS_VDF_NOT_FOUND",
            details={"path": path},
        )


class SteamConfigVdfNotFound(SteamUtilError):
    def __init__(self, path: str):
        super().__init__(
            "Steam config file not found",
            code="STEAM_CONFIG_VDF_NOT_FOUND",
            details={"path": path},
        )


class VdfParsingError(SteamUtilError):
    """A VDF document (text or binary) could not be read or decoded."""
    def __init__(self, source: str, detail: str):
        super().__init__(
            f"Failed to parse VDF file {source}: {detail}",
            code="VDF_PARSING_ERROR",
            details={"source": source, "detail": detail},
        )
        self.source = source
        self.detail = detail


class MissingKeyError(SteamUtilError):
    """A key along a document path was absent (or was not an object)."""
    def __init__(self, segment: str, path: Sequence[str] = ()):
        path = list(path) or [segment]
        super().__init__(
            f"Missing key '{segment}' in path {'/'.join(path)}",
            code="MISSING_KEY",
            details={"segment": segment, "path": path},
        )
        self.segment = segment
        self.path = path


# =============================================================================
# Task errors
# =============================================================================

class TaskError(WineCellarError):
    """An install or uninstall task could not be completed."""
    def __init__(self, message: str, **details: Any):
        super().__init__(message, code="TASK_FAILED", details=details)
