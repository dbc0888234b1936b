from __future__ import annotations

from pathlib import Path
import struct
import sys
from typing import Dict, Iterable, List, Optional

import pytest
import vdf

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))
# Some modules live under py_modules in Decky projects
sys.path.insert(0, str(ROOT / "py_modules"))

# shortcuts.vdf as written by Steam for one non-Steam shortcut
# ("An Anime Game Launcher", appid 3578490465)
SHORTCUTS_VDF_SAMPLE = bytes.fromhex(
    "00 73 68 6f 72 74 63 75 74 73 00 00 30 00 02 61 70 70 69 64 00 61 6e 4b d5 01 41 70 70 4e 61 6d "
    "65 00 41 6e 20 41 6e 69 6d 65 20 47 61 6d 65 20 4c 61 75 6e 63 68 65 72 00 01 45 78 65 00 22 61 "
    "6e 2d 61 6e 69 6d 65 2d 67 61 6d 65 2d 6c 61 75 6e 63 68 65 72 22 00 01 53 74 61 72 74 44 69 72 "
    "00 2e 2f 00 01 69 63 6f 6e 00 00 01 53 68 6f 72 74 63 75 74 50 61 74 68 00 2f 75 73 72 2f 73 68 "
    "61 72 65 2f 61 70 70 6c 69 63 61 74 69 6f 6e 73 2f 61 6e 2d 61 6e 69 6d 65 2d 67 61 6d 65 2d 6c "
    "61 75 6e 63 68 65 72 2e 64 65 73 6b 74 6f 70 00 01 4c 61 75 6e 63 68 4f 70 74 69 6f 6e 73 00 00 "
    "02 49 73 48 69 64 64 65 6e 00 00 00 00 00 02 41 6c 6c 6f 77 44 65 73 6b 74 6f 70 43 6f 6e 66 69 "
    "67 00 01 00 00 00 02 41 6c 6c 6f 77 4f 76 65 72 6c 61 79 00 01 00 00 00 02 4f 70 65 6e 56 52 00 "
    "00 00 00 00 02 44 65 76 6b 69 74 00 00 00 00 00 01 44 65 76 6b 69 74 47 61 6d 65 49 44 00 00 02 "
    "44 65 76 6b 69 74 4f 76 65 72 72 69 64 65 41 70 70 49 44 00 00 00 00 00 02 4c 61 73 74 50 6c 61 "
    "79 54 69 6d 65 00 00 00 00 00 01 46 6c 61 74 70 61 6b 41 70 70 49 44 00 00 00 74 61 67 73 00 08 "
    "08 08 08"
)

CONFIG_VDF = '''"InstallConfigStore"
{
    "Software"
    {
        "Valve"
        {
            "Steam"
            {
                "CompatToolMapping"
                {
                    "730"
                    {
                        "name"		"Sample-Compatibility-Tool-1"
                        "config"		""
                        "priority"		"250"
                    }
                    "1145360"
                    {
                        "name"		"Sample-Compatibility-Tool-2"
                        "config"		""
                        "priority"		"250"
                    }
                    "0"
                    {
                        "name"		""
                        "config"		""
                        "priority"		"75"
                    }
                }
            }
        }
    }
}
'''


def compat_tool_vdf(internal_name: str, display_name: str) -> str:
    return f'''"compatibilitytools"
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


def app_manifest(app_id: int, name: str) -> str:
    return f'''"AppState"
{{
    "appid"		"{app_id}"
    "name"		"{name}"
    "StateFlags"		"4"
}}
'''


def signed_app_id(app_id: int) -> int:
    """Steam stores shortcut appids as int32; vdf.binary_dumps packs signed."""
    return struct.unpack("i", struct.pack("I", app_id))[0]


def shortcuts_vdf(tree: Dict) -> bytes:
    """Encode a shortcuts tree the way Steam writes it, with unsigned appids."""
    def convert(node):
        return {
            key: convert(value) if isinstance(value, dict)
            else signed_app_id(value) if isinstance(value, int) and value > 0x7FFFFFFF
            else value
            for key, value in node.items()
        }
    return vdf.binary_dumps(convert(tree))


class FakeSteam:
    """Builds a Steam directory tree under tmp_path"""

    def __init__(self, root: Path):
        self.root = root
        (root / "config").mkdir(parents=True, exist_ok=True)
        (root / "steamapps").mkdir(parents=True, exist_ok=True)
        (root / "config" / "config.vdf").write_text(CONFIG_VDF)
        self.write_library_folders([root])

    @property
    def tools_directory(self) -> Path:
        return self.root / "compatibilitytools.d"

    def write_library_folders(self, folders: Iterable[Path]) -> None:
        entries = "\n".join(
            f'''    "{index}"
    {{
        "path"		"{folder}"
        "label"		""
        "contentid"		"123"
    }}'''
            for index, folder in enumerate(folders)
        )
        (self.root / "steamapps" / "libraryfolders.vdf").write_text(
            f'"libraryfolders"\n{{\n{entries}\n}}\n'
        )

    def add_app(self, app_id: int, name: str, library: Optional[Path] = None) -> Path:
        steamapps = (library or self.root) / "steamapps"
        steamapps.mkdir(parents=True, exist_ok=True)
        manifest = steamapps / f"appmanifest_{app_id}.acf"
        manifest.write_text(app_manifest(app_id, name))
        return manifest

    def add_tool(self, directory: str, internal_name: str, display_name: str) -> Path:
        tool_dir = self.tools_directory / directory
        tool_dir.mkdir(parents=True, exist_ok=True)
        (tool_dir / "compatibilitytool.vdf").write_text(compat_tool_vdf(internal_name, display_name))
        return tool_dir

    def user_config(self, user: str) -> Path:
        path = self.root / "userdata" / user / "config"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def add_shortcuts(self, user: str, shortcuts: List[Dict]) -> Path:
        tree = {"shortcuts": {str(i): shortcut for i, shortcut in enumerate(shortcuts)}}
        path = self.user_config(user) / "shortcuts.vdf"
        path.write_bytes(shortcuts_vdf(tree))
        return path

    def add_local_config(self, user: str, app_ids: Iterable[int], valve_key: str = "Valve", apps_key: str = "Apps") -> Path:
        apps = "\n".join(f'                    "{app_id}"\n                    {{\n                        "LastPlayed"		"1700000000"\n                    }}' for app_id in app_ids)
        content = f'''"UserLocalConfigStore"
{{
    "Software"
    {{
        "{valve_key}"
        {{
            "Steam"
            {{
                "{apps_key}"
                {{
{apps}
                }}
            }}
        }}
    }}
}}
'''
        path = self.user_config(user) / "localconfig.vdf"
        path.write_text(content)
        return path


class FakePeers:
    """Records every broadcast"""

    def __init__(self):
        self.messages: List[Dict] = []

    def broadcast(self, message: Dict) -> None:
        self.messages.append(message)

    def of_type(self, message_type: str) -> List[Dict]:
        return [m for m in self.messages if m.get("type") == message_type]


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep tests away from the real settings file and env overrides."""
    from winecellar import config

    settings_file = tmp_path / "settings" / "settings.json"
    monkeypatch.setattr(config, "SETTINGS_FILE", settings_file)
    for var in ("WINECELLAR_STEAM_HOME", "WINECELLAR_WS_HOST", "WINECELLAR_WS_PORT"):
        monkeypatch.delenv(var, raising=False)
    return settings_file


@pytest.fixture
def fake_steam(tmp_path: Path) -> FakeSteam:
    return FakeSteam(tmp_path / "root")


@pytest.fixture
def fake_peers() -> FakePeers:
    return FakePeers()
