from __future__ import annotations

from collections.abc import Callable, Iterator
import logging
from pathlib import Path
import sys
import textwrap

import pytest

from fontpatcher.core.user_dir import user_dir_context
from fontpatcher.ui.cli import state as cli_state
from fontpatcher.unity.locator import editor_executable


FAKE_EDITOR_SCRIPT = textwrap.dedent(
    """
    import json
    import os
    from pathlib import Path
    import sys

    args = sys.argv[1:]


    def value(flag):
        return args[args.index(flag) + 1] if flag in args else None


    record = os.environ.get("FAKE_UNITY_RECORD")
    if record:
        with open(record, "a", encoding="utf-8") as handle:
            handle.write(json.dumps({"args": args, "cwd": os.getcwd()}) + "\\n")

    mode = os.environ.get("FAKE_UNITY_MODE", "ok")
    log = Path(value("-logFile"))

    if "-createProject" in args:
        if mode == "create-fail":
            log.write_text("Creating project\\nAn error occurred\\n", encoding="utf-8")
            sys.exit(4)
        project = Path(value("-createProject"))
        (project / "Packages").mkdir(parents=True)
        manifest = {"dependencies": {"com.unity.ugui": "1.0.0"}}
        (project / "Packages" / "manifest.json").write_text(json.dumps(manifest))
        log.write_text("Creating project\\nProject created successfully\\n", encoding="utf-8")
        sys.exit(0)

    job = json.loads(Path(value("--job-manifest")).read_text(encoding="utf-8"))
    if mode == "license":
        log.write_text("[Licensing::Module] License client failed\\n", encoding="utf-8")
        sys.exit(1)
    if mode == "build-fail":
        log.write_text("Compiling\\nerror: build failed\\n", encoding="utf-8")
        sys.exit(3)

    output = Path(job["absoluteBundleOutputDir"])
    if mode != "no-bundle":
        name = job["assetBundleName"]
        (output / name).write_bytes(b"UnityFS")
        if mode != "no-manifest":
            (output / (name + ".manifest")).write_text("ManifestFileVersion: 0\\n")
    log.write_text("Building bundle\\nwarning: slow atlas\\nBuild completed", encoding="utf-8")
    """
)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    home = tmp_path / "fontpatcher-home"
    monkeypatch.setenv("FONTPATCHER_HOME", str(home))
    monkeypatch.setenv("FONTPATCHER_CACHE_DIR", str(home / "cache"))
    for variable in ("UNITY_EDITOR_PATH", "UNITY_HUB_PATH", "FONTPATCHER_LOG_LEVEL"):
        monkeypatch.delenv(variable, raising=False)

    package_logger = logging.getLogger("fontpatcher")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    state_token = cli_state._STATE_VAR.set(None)
    with user_dir_context(root=home, cache_root=home / "cache"):
        yield
    cli_state._STATE_VAR.reset(state_token)
    for handler in list(package_logger.handlers):
        if handler not in handlers:
            package_logger.removeHandler(handler)
            handler.close()
    package_logger.setLevel(level)


@pytest.fixture
def make_editor() -> Callable[..., Path]:
    """Create an empty Editor executable at the platform-specific location."""

    def factory(root: Path, version: str, platform: str = "linux") -> Path:
        executable = editor_executable(root / version, platform)
        executable.parent.mkdir(parents=True, exist_ok=True)
        executable.write_bytes(b"")
        return executable

    return factory


@pytest.fixture
def fake_editor(tmp_path: Path) -> Path:
    """Install a scripted stand-in for the Unity Editor under a version folder."""
    if sys.platform.startswith("win"):
        pytest.skip("the fake Editor relies on a POSIX shell wrapper")

    script = tmp_path / "fake_unity.py"
    script.write_text(FAKE_EDITOR_SCRIPT, encoding="utf-8")
    executable = editor_executable(tmp_path / "editors" / "2022.3.10f1", "linux")
    executable.parent.mkdir(parents=True, exist_ok=True)
    executable.write_text(
        f'#!/bin/sh\nexec "{sys.executable}" "{script}" "$@"\n', encoding="utf-8"
    )
    executable.chmod(0o755)
    return executable


@pytest.fixture
def font_file(tmp_path: Path) -> Path:
    font = tmp_path / "fonts" / "Noto Sans-Regular.ttf"
    font.parent.mkdir(parents=True, exist_ok=True)
    font.write_bytes(b"\x00\x01\x00\x00fake-font")
    return font
