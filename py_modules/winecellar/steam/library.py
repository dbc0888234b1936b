"""
Steam Application Catalog

Reconciles the three sources Steam keeps application records in:
  1. appmanifest_*.acf files in every library folder (installed titles)
  2. userdata/<user>/config/shortcuts.vdf (user-added non-Steam shortcuts)
  3. userdata/<user>/config/localconfig.vdf (apps a given user owns/has run)

Everything is re-read on every call; nothing is cached.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Set

from . import binary_vdf
from .keyvalues import first_child, get_nested, get_object, get_str, read_document
from .models import SteamApp
from ..errors import (
    LibraryFoldersVdfNotFound,
    MissingKeyError,
    SteamAppsDirectoryNotFound,
    SteamUtilError,
    VdfParsingError,
)

logger = logging.getLogger(__name__)

LOCAL_CONFIG_APPS_PATH = ("Software", "Valve", "Steam", "Apps")


def list_library_folders(steam_path: Path) -> List[Path]:
    """
    List library folder paths from steamapps/libraryfolders.vdf.

    Raises:
        SteamAppsDirectoryNotFound: <steam>/steamapps is missing
        LibraryFoldersVdfNotFound: the library folders document is missing
        VdfParsingError / MissingKeyError: the document is malformed
    """
    steam_apps_directory = Path(steam_path) / "steamapps"
    if not steam_apps_directory.is_dir():
        raise SteamAppsDirectoryNotFound(str(steam_apps_directory))

    library_folders_vdf = steam_apps_directory / "libraryfolders.vdf"
    if not library_folders_vdf.is_file():
        raise LibraryFoldersVdfNotFound(str(library_folders_vdf))

    doc = read_document(library_folders_vdf)
    _, folders_obj = first_child(doc, "libraryfolders")

    library_folders: List[Path] = []
    for key, value in folders_obj.items():
        if isinstance(value, dict):
            path = get_str(value, "path")
        elif key.isdigit():
            # Pre-2021 format: "1"  "/mnt/games/SteamLibrary"
            path = value
        else:
            continue
        if path.strip():
            library_folders.append(Path(path))

    return library_folders


def read_app_manifest(manifest_path: Path) -> SteamApp:
    """Parse one appmanifest_<id>.acf into a SteamApp."""
    doc = read_document(manifest_path)
    app_state = get_object(doc, ["AppState"], case_fallback=True)
    raw_id = get_str(app_state, "appid", case_fallback=True)
    try:
        app_id = int(raw_id)
    except ValueError as e:
        raise VdfParsingError(str(manifest_path), f"invalid appid {raw_id!r}") from e
    return SteamApp(app_id=app_id, name=get_str(app_state, "name"), shortcut=False)


def find_installed_applications(steam_apps_directory: Path) -> List[SteamApp]:
    """
    Read every app manifest in one library's steamapps directory.

    Any unreadable manifest fails the whole folder.
    """
    try:
        manifests = sorted(Path(steam_apps_directory).glob("appmanifest_*.acf"))
    except OSError as e:
        raise SteamAppsDirectoryNotFound(str(steam_apps_directory)) from e
    return [read_app_manifest(manifest) for manifest in manifests if manifest.is_file()]


def list_installed_applications(steam_path: Path) -> List[SteamApp]:
    """
    List installed applications across all library folders.

    Folder scan order, then manifest order. An app id found in more than one
    folder is reported once, from the first folder. A folder that has no
    steamapps directory (e.g. an unmounted SD card) is skipped; a folder that
    fails to read aborts the whole listing.
    """
    apps: List[SteamApp] = []
    seen: Set[int] = set()

    for library_folder in list_library_folders(steam_path):
        steam_apps_directory = library_folder / "steamapps"
        if not steam_apps_directory.is_dir():
            logger.error(f"[SteamUtil] Library folder {steam_apps_directory} does not exist")
            continue
        try:
            folder_apps = find_installed_applications(steam_apps_directory)
        except SteamUtilError as e:
            logger.error(f"[SteamUtil] Failed to find installed games in library folder {steam_apps_directory}: {e}")
            raise
        for app in folder_apps:
            if app.app_id in seen:
                logger.debug(f"[SteamUtil] Skipping duplicate app {app.app_id} in {steam_apps_directory}")
                continue
            seen.add(app.app_id)
            apps.append(app)

    return apps


def _user_config_files(steam_path: Path, file_name: str) -> Iterator[Path]:
    userdata = Path(steam_path) / "userdata"
    if not userdata.is_dir():
        return
    try:
        user_directories = sorted(userdata.iterdir())
    except OSError as e:
        raise SteamUtilError(
            f"Could not list {userdata}: {e}",
            code="USERDATA_UNREADABLE",
            details={"path": str(userdata)},
        ) from e
    for user_directory in user_directories:
        config_file = user_directory / "config" / file_name
        if user_directory.is_dir() and config_file.is_file():
            yield config_file


def _shortcut_from_record(record: Dict[str, Any]) -> SteamApp:
    app_id = get_nested(record, ["appid"], case_fallback=True)
    if not isinstance(app_id, int):
        raise MissingKeyError("appid")
    name = get_str(record, "AppName", case_fallback=True)
    return SteamApp(app_id=app_id, name=name, shortcut=True)


def read_shortcuts_file(shortcuts_file: Path) -> List[SteamApp]:
    """Decode one shortcuts.vdf. Malformed records are skipped with a warning."""
    try:
        tree = binary_vdf.load(shortcuts_file)
    except (binary_vdf.BinaryVdfDecodeError, OSError) as e:
        raise VdfParsingError(str(shortcuts_file), str(e)) from e

    shortcuts = get_object(tree, ["shortcuts"], case_fallback=True)
    apps: List[SteamApp] = []
    for index, record in shortcuts.items():
        if not isinstance(record, dict):
            continue
        try:
            apps.append(_shortcut_from_record(record))
        except MissingKeyError as e:
            logger.warning(f"[SteamUtil] Skipping shortcut {index} in {shortcuts_file}: {e}")
    return apps


def list_shortcuts(steam_path: Path) -> List[SteamApp]:
    """
    List non-Steam shortcuts for every user.

    shortcuts.vdf is written by third-party tools as often as by Steam, so a
    file that fails to decode is logged and skipped instead of failing the list.
    """
    apps: List[SteamApp] = []
    for shortcuts_file in _user_config_files(steam_path, "shortcuts.vdf"):
        try:
            apps.extend(read_shortcuts_file(shortcuts_file))
        except SteamUtilError as e:
            logger.error(f"[SteamUtil] Failed to read shortcuts {shortcuts_file}: {e}")
    return apps


def read_user_app_ids(local_config: Path) -> List[int]:
    """App ids listed under Software/Valve/Steam/Apps of a user's localconfig.vdf."""
    doc = read_document(local_config)
    _, store = first_child(doc, "UserLocalConfigStore")
    apps = get_object(store, LOCAL_CONFIG_APPS_PATH, case_fallback=True)
    app_ids = []
    for key in apps:
        try:
            app_ids.append(int(key))
        except ValueError:
            logger.debug(f"[SteamUtil] Ignoring non-numeric app key {key!r} in {local_config}")
    return app_ids


def list_installed_applications_by_userdata(steam_path: Path) -> List[SteamApp]:
    """
    Installed applications that at least one local user has in their config.

    Filters out things like runtimes and redistributables that live in the
    library folders but never show up in a user's app list.
    """
    installed = list_installed_applications(steam_path)
    by_id = {app.app_id: app for app in installed}

    selected: List[SteamApp] = []
    selected_ids: Set[int] = set()
    for local_config in _user_config_files(steam_path, "localconfig.vdf"):
        try:
            app_ids = read_user_app_ids(local_config)
        except SteamUtilError as e:
            logger.warning(f"[SteamUtil] Skipping {local_config}: {e}")
            continue
        for app_id in app_ids:
            if app_id in by_id and app_id not in selected_ids:
                selected_ids.add(app_id)
                selected.append(by_id[app_id])

    return selected


def list_applications(steam_path: Path) -> List[SteamApp]:
    """Installed applications followed by shortcuts."""
    return list_installed_applications(steam_path) + list_shortcuts(steam_path)
