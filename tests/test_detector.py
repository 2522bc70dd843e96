from __future__ import annotations

from pathlib import Path

import pefile
import pytest

from fontpatcher.unity import detector as detector_module
from fontpatcher.unity.detector import TargetVersionDetector, locate_runtime_library


@pytest.fixture
def game(tmp_path: Path) -> Path:
    game_dir = tmp_path / "Game"
    (game_dir / "Game_Data").mkdir(parents=True)
    (game_dir / "Game.exe").write_bytes(b"MZ")
    (game_dir / "UnityPlayer.dll").write_bytes(b"MZ")
    return game_dir


def test_locate_runtime_library_from_any_entry_point(game: Path) -> None:
    library = game / "UnityPlayer.dll"
    assert locate_runtime_library(game) == library
    assert locate_runtime_library(game / "Game.exe") == library
    assert locate_runtime_library(game / "Game_Data") == library
    assert locate_runtime_library(library) == library


def test_locate_runtime_library_missing(tmp_path: Path) -> None:
    assert locate_runtime_library(tmp_path) is None
    assert locate_runtime_library(tmp_path / "missing.exe") is None


def test_detect_prefers_product_version(game: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[Path] = []

    def fake_read(path: Path) -> dict[str, str]:
        seen.append(path)
        return {"ProductVersion": "2021.3.16f1 (5a6b7c8d9e0f)", "FileVersion": "2019.4.1f1"}

    monkeypatch.setattr(detector_module, "read_version_strings", fake_read)
    version = TargetVersionDetector().detect(game / "Game.exe")

    assert str(version) == "2021.3.16f1"
    assert seen == [game / "UnityPlayer.dll"]


def test_detect_falls_back_to_other_fields(game: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        detector_module,
        "read_version_strings",
        lambda _path: {"ProductVersion": "  ", "Comments": "Built with 2020.3.48f1"},
    )
    assert str(TargetVersionDetector().detect(game)) == "2020.3.48f1"


def test_detect_returns_none_on_unreadable_library(game: Path) -> None:
    # The placeholder DLL is not a valid PE image.
    assert TargetVersionDetector().detect(game) is None


def test_detect_swallows_pe_errors(game: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(_path: Path) -> dict[str, str]:
        raise pefile.PEFormatError("truncated")

    monkeypatch.setattr(detector_module, "read_version_strings", broken)
    assert TargetVersionDetector().detect(game) is None
    assert TargetVersionDetector().detect(None) is None
