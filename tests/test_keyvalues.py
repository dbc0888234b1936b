from __future__ import annotations

from pathlib import Path

import pytest

from winecellar.errors import MissingKeyError, VdfParsingError
from winecellar.steam.keyvalues import first_child, get_nested, get_object, get_str, parse_document, read_document

DOC = parse_document('''"UserLocalConfigStore"
{
    "Software"
    {
        "valve"
        {
            "Steam"
            {
                "apps"
                {
                    "730"
                    {
                        "LastPlayed"		"1700000000"
                    }
                }
            }
        }
    }
}
''')


def test_get_nested_exact_keys() -> None:
    node = get_nested(DOC, ["UserLocalConfigStore", "Software"])
    assert "valve" in node


def test_get_nested_case_fallback() -> None:
    apps = get_object(DOC, ["UserLocalConfigStore", "Software", "Valve", "Steam", "Apps"], case_fallback=True)
    assert list(apps) == ["730"]


def test_get_nested_without_fallback_names_missing_segment() -> None:
    with pytest.raises(MissingKeyError) as exc_info:
        get_nested(DOC, ["UserLocalConfigStore", "Software", "Valve", "Steam"])
    assert exc_info.value.segment == "Valve"
    assert exc_info.value.path == ["UserLocalConfigStore", "Software", "Valve"]


def test_descending_into_string_is_missing_key() -> None:
    path = ["UserLocalConfigStore", "Software", "valve", "Steam", "apps", "730", "LastPlayed", "deeper"]
    with pytest.raises(MissingKeyError) as exc_info:
        get_nested(DOC, path)
    assert exc_info.value.segment == "deeper"


def test_get_str_rejects_objects() -> None:
    with pytest.raises(MissingKeyError):
        get_str(DOC, "UserLocalConfigStore")


def test_first_child() -> None:
    key, value = first_child(DOC)
    assert key == "UserLocalConfigStore"
    assert "Software" in value
    with pytest.raises(MissingKeyError):
        first_child({})


def test_read_document_missing_file(tmp_path: Path) -> None:
    with pytest.raises(VdfParsingError) as exc_info:
        read_document(tmp_path / "nope.vdf")
    assert exc_info.value.source.endswith("nope.vdf")


def test_read_document_malformed(tmp_path: Path) -> None:
    path = tmp_path / "broken.vdf"
    path.write_text('"AppState"\n{\n    "appid" "730"\n')
    with pytest.raises(VdfParsingError):
        read_document(path)
