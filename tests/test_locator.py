from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from fontpatcher.core.exceptions import EditorNotFoundError
from fontpatcher.unity.locator import (
    EDITOR_PATH_ENV,
    HUB_PATH_ENV,
    EditorLocator,
    HubLocator,
    editor_executable,
    version_dir_for,
)
from fontpatcher.unity.version import EditorVersion


def _locator(environ: dict[str, str] | None = None) -> EditorLocator:
    return EditorLocator(platform="linux", environ=environ or {}, include_default_roots=False)


@pytest.mark.parametrize(
    ("platform", "parts"),
    [
        ("windows", ("Editor", "Unity.exe")),
        ("linux", ("Editor", "Unity")),
        ("darwin", ("Unity.app", "Contents", "MacOS", "Unity")),
    ],
)
def test_executable_layout_round_trips(platform: str, parts: tuple[str, ...]) -> None:
    version_dir = Path("/editors/2022.3.10f1")
    executable = editor_executable(version_dir, platform)
    assert executable == version_dir.joinpath(*parts)
    assert version_dir_for(executable, platform) == version_dir


def test_discover_orders_newest_first(
    tmp_path: Path, make_editor: Callable[..., Path]
) -> None:
    root = tmp_path / "editors"
    make_editor(root, "2021.3.16f1")
    make_editor(root, "2022.3.62f1")
    make_editor(root, "2022.3.10f1")
    (root / "not-a-version" / "Editor").mkdir(parents=True)
    (root / "2020.3.1f1").mkdir()  # no executable

    editors = _locator().discover(root)

    assert [str(editor.version) for editor in editors] == [
        "2022.3.62f1",
        "2022.3.10f1",
        "2021.3.16f1",
    ]
    assert all(editor.root == root for editor in editors)


def test_discover_accepts_root_that_is_a_version_folder(
    tmp_path: Path, make_editor: Callable[..., Path]
) -> None:
    executable = make_editor(tmp_path, "2022.3.10f1")
    editors = _locator().discover(tmp_path / "2022.3.10f1")
    assert [editor.path for editor in editors] == [executable]


def test_discover_reports_each_install_once(
    tmp_path: Path, make_editor: Callable[..., Path], monkeypatch: pytest.MonkeyPatch
) -> None:
    root = tmp_path / "editors"
    shared = make_editor(root, "2022.3.10f1")
    other = make_editor(root, "2021.3.16f1")
    locator = EditorLocator(platform="linux", environ={})
    monkeypatch.setattr(
        locator, "default_roots", lambda: [root, root / "2022.3.10f1", root / "."]
    )

    editors = locator.discover(root)

    assert [editor.path for editor in editors] == [shared, other]
    assert all(editor.root == root for editor in editors)


def test_discover_missing_root_is_empty(tmp_path: Path) -> None:
    assert _locator().discover(tmp_path / "missing") == []


def test_find_exact_and_latest(tmp_path: Path, make_editor: Callable[..., Path]) -> None:
    root = tmp_path / "editors"
    older = make_editor(root, "2021.3.16f1")
    newer = make_editor(root, "2022.3.10f1")
    locator = _locator()

    assert locator.find_exact_version(root, EditorVersion.parse("2021.3.16f1")) == older
    assert locator.find_exact_version(root, EditorVersion.parse("2021.3.17f1")) is None
    assert locator.find_latest_installed(root) == newer


def test_resolve_explicit_path_joins_editor_folder(
    tmp_path: Path, make_editor: Callable[..., Path]
) -> None:
    executable = make_editor(tmp_path, "2022.3.10f1")
    locator = _locator()
    assert locator.resolve_explicit_path(tmp_path / "2022.3.10f1") == executable
    assert locator.resolve_explicit_path(executable) == executable


def test_resolve_explicit_path_raises_when_missing(tmp_path: Path) -> None:
    with pytest.raises(EditorNotFoundError, match="was not found at provided path"):
        _locator().resolve_explicit_path(tmp_path / "nowhere" / "Unity")


def test_from_environment(tmp_path: Path, make_editor: Callable[..., Path]) -> None:
    executable = make_editor(tmp_path, "2022.3.10f1")
    locator = _locator(environ={EDITOR_PATH_ENV: str(executable)})
    assert locator.from_environment() == executable
    assert _locator(environ={EDITOR_PATH_ENV: str(tmp_path / "x")}).from_environment() is None
    assert _locator().from_environment() is None


def test_windows_default_roots_come_from_environment() -> None:
    locator = EditorLocator(
        platform="windows",
        environ={"ProgramFiles": r"C:\Program Files", "LOCALAPPDATA": r"C:\Users\me\AppData\Local"},
    )
    roots = [str(root) for root in locator.default_roots()]
    assert any(root.endswith("Hub/Editor") or root.endswith("Hub\\Editor") for root in roots)
    assert len(roots) == 4


def test_hub_locator_resolution_order(tmp_path: Path) -> None:
    explicit = tmp_path / "explicit" / "unityhub"
    from_env = tmp_path / "env" / "unityhub"
    for path in (explicit, from_env):
        path.parent.mkdir(parents=True)
        path.write_bytes(b"")

    locator = HubLocator(platform="linux", environ={HUB_PATH_ENV: str(from_env)})
    assert locator.resolve(explicit) == explicit
    assert locator.resolve(explicit.parent) == explicit
    assert locator.resolve() == from_env
    assert locator.resolve(tmp_path / "missing-hub") is None
