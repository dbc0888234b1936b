from __future__ import annotations

import os
from pathlib import Path

from winecellar.cask.fs_utils import copy_dir, generate_compatibility_tool_vdf, recursive_delete_dir_entry
from winecellar.steam.compat_tools import read_compatibility_tool


def _make_tree(root: Path) -> None:
    (root / "files" / "lib").mkdir(parents=True)
    (root / "proton").write_bytes(b"#!/usr/bin/env python3\n")
    (root / "files" / "lib" / "wine.so").write_bytes(bytes(range(256)))
    (root / "version").write_text("GE-Proton9-20\n")


def test_copy_dir_copies_bytes_and_creates_destination(tmp_path: Path) -> None:
    source = tmp_path / "source"
    _make_tree(source)
    destination = tmp_path / "a" / "b" / "destination"

    copy_dir(source, destination)

    assert (destination / "files" / "lib" / "wine.so").read_bytes() == bytes(range(256))
    assert (destination / "proton").read_bytes() == b"#!/usr/bin/env python3\n"
    assert (destination / "version").read_text() == "GE-Proton9-20\n"


def test_copy_dir_keeps_relative_symlinks(tmp_path: Path) -> None:
    source = tmp_path / "source"
    _make_tree(source)
    os.symlink("lib", source / "files" / "lib64")

    copy_dir(source, tmp_path / "destination")

    link = tmp_path / "destination" / "files" / "lib64"
    assert link.is_symlink()
    assert os.readlink(link) == "lib"


def test_recursive_delete_dir_entry(tmp_path: Path) -> None:
    tool = tmp_path / "tool"
    _make_tree(tool)
    recursive_delete_dir_entry(tool)
    assert not tool.exists()


def test_recursive_delete_single_file(tmp_path: Path) -> None:
    path = tmp_path / "file.txt"
    path.write_text("x")
    recursive_delete_dir_entry(path)
    assert not path.exists()


def test_recursive_delete_does_not_follow_symlinks(tmp_path: Path) -> None:
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "keep.txt").write_text("keep")
    tool = tmp_path / "tool"
    tool.mkdir()
    os.symlink(outside, tool / "link")

    recursive_delete_dir_entry(tool)

    assert not tool.exists()
    assert (outside / "keep.txt").exists()


def test_generated_descriptor_is_readable(tmp_path: Path) -> None:
    tool = tmp_path / "wine-ge-8-26"
    tool.mkdir()
    generate_compatibility_tool_vdf(tool / "compatibilitytool.vdf", "wine-ge-8-26", 'Wine-GE "8-26"')

    parsed = read_compatibility_tool(tool / "compatibilitytool.vdf")

    assert parsed.internal_name == "wine-ge-8-26"
    assert parsed.display_name == 'Wine-GE "8-26"'
    assert parsed.from_os_list == "windows"
    assert parsed.to_os_list == "linux"
    assert parsed.directory_name == "wine-ge-8-26"
