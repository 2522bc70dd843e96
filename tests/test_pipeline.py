from __future__ import annotations

from collections.abc import Mapping
import json
from pathlib import Path
from typing import Any

import pytest

from fontpatcher.core.exceptions import (
    ArtifactMissingError,
    ConfigurationError,
    EditorExecutionError,
)
from fontpatcher.core.options import ConversionOptions
from fontpatcher.pipeline import LICENSING_HINT, ConversionPipeline, EditorLogLine, LogSeverity
from fontpatcher.pipeline.conversion import build_arguments, create_project_arguments
from fontpatcher.unity.locator import EditorLocator
from fontpatcher.unity.provisioner import AutoProvisioner
from fontpatcher.unity.version import Epoch, EpochMode


class RecordingEmitter:
    debug_enabled = False

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        return

    def error(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        self.events.append((name, dict(payload)))


@pytest.fixture
def record(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "invocations.jsonl"
    monkeypatch.setenv("FAKE_UNITY_RECORD", str(path))
    monkeypatch.delenv("FAKE_UNITY_MODE", raising=False)
    return path


@pytest.fixture
def lines() -> list[EditorLogLine]:
    return []


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def pipeline(
    tmp_path: Path, lines: list[EditorLogLine], emitter: RecordingEmitter
) -> ConversionPipeline:
    locator = EditorLocator(platform="linux", environ={}, include_default_roots=False)
    return ConversionPipeline(
        provisioner=AutoProvisioner(locator=locator, unlock_delay=0),
        emitter=emitter,
        on_line=lines.append,
        temp_root=tmp_path / "work",
    )


def _options(
    tmp_path: Path, font_file: Path, fake_editor: Path, **changes: Any
) -> ConversionOptions:
    return ConversionOptions(
        font_path=font_file, output_dir=tmp_path / "out", editor_path=fake_editor, **changes
    )


def _invocations(record: Path) -> list[dict[str, Any]]:
    return [json.loads(line) for line in record.read_text(encoding="utf-8").splitlines()]


def test_argument_builders(tmp_path: Path) -> None:
    project = tmp_path / "p"
    log = tmp_path / "l.log"
    assert create_project_arguments(project, log, False) == [
        "-batchmode",
        "-quit",
        "-createProject",
        str(project),
        "-logFile",
        str(log),
    ]
    assert build_arguments(project, "A.B.Run", tmp_path / "job.json", log, True) == [
        "-batchmode",
        "-nographics",
        "-quit",
        "-projectPath",
        str(project),
        "-executeMethod",
        "A.B.Run",
        "--job-manifest",
        str(tmp_path / "job.json"),
        "-logFile",
        str(log),
    ]


def test_successful_conversion(
    tmp_path: Path,
    font_file: Path,
    fake_editor: Path,
    record: Path,
    pipeline: ConversionPipeline,
    lines: list[EditorLogLine],
    emitter: RecordingEmitter,
) -> None:
    options = _options(tmp_path, font_file, fake_editor)

    result = pipeline.run(options)

    bundle = tmp_path / "out" / options.resolved_bundle_name()
    assert result.bundle_path == bundle
    assert bundle.read_bytes() == b"UnityFS"
    assert result.manifest_path == bundle.with_name(f"{bundle.name}.manifest")
    assert result.manifest_path.is_file()
    assert result.asset_name == options.resolved_asset_name()
    assert result.editor_path == fake_editor
    assert result.epoch is Epoch.MID
    assert result.adapter_name == "mid-2021-2022"
    assert result.use_no_graphics is False
    assert result.arguments_mode == "batchmode"
    assert result.workspace_path is None
    assert list((tmp_path / "work").iterdir()) == []

    create_call, build_call = _invocations(record)
    assert "-createProject" in create_call["args"]
    assert "-nographics" not in create_call["args"]
    entry = build_call["args"][build_call["args"].index("-executeMethod") + 1]
    assert entry == "FontPatcher.Editor.FontBundleBuilder.Run"
    project = Path(build_call["args"][build_call["args"].index("-projectPath") + 1])
    assert Path(build_call["cwd"]).resolve() == project.resolve()

    texts = [(line.phase.rsplit(":", 1)[-1], line.text) for line in lines]
    assert ("create", "Project created successfully") in texts
    assert texts[-3:] == [
        ("build", "Building bundle"),
        ("build", "warning: slow atlas"),
        ("build", "Build completed"),
    ]
    assert lines[-1].severity is LogSeverity.SUCCESS

    names = [name for name, _ in emitter.events]
    assert names == ["epoch_resolved", "phase", "phase", "phase", "phase"]
    assert emitter.events[0][1] == {"adapter": "mid-2021-2022", "version": "2022.3.10f1"}
    assert emitter.events[2][1]["exit_code"] == 0


def test_nographics_override_and_forced_epoch(
    tmp_path: Path,
    font_file: Path,
    fake_editor: Path,
    record: Path,
    pipeline: ConversionPipeline,
) -> None:
    options = _options(
        tmp_path, font_file, fake_editor, use_no_graphics=True, epoch_mode=EpochMode.MODERN
    )

    result = pipeline.run(options)

    assert result.epoch is Epoch.MODERN
    assert result.arguments_mode == "batchmode+nographics"
    assert all("-nographics" in call["args"] for call in _invocations(record))


def test_keep_temp_preserves_project(
    tmp_path: Path, font_file: Path, fake_editor: Path, record: Path, pipeline: ConversionPipeline
) -> None:
    options = _options(tmp_path, font_file, fake_editor, keep_temp=True, bundle_name="UI Font")

    result = pipeline.run(options)

    project = result.workspace_path
    assert project is not None and project.is_dir()
    assert result.bundle_path.name == "ui_font"
    job = json.loads((project / "FontPatcherJob.json").read_text(encoding="utf-8"))
    assert job["assetBundleName"] == "ui_font"
    assert job["absoluteBundleOutputDir"] == str(tmp_path / "out")
    assert (project / "Assets" / "Editor" / "FontBundleBuilder.cs").is_file()
    assert (project / "Assets" / "InputFonts" / font_file.name).is_file()
    manifest = json.loads((project / "Packages" / "manifest.json").read_text(encoding="utf-8"))
    assert "com.unity.textmeshpro" in manifest["dependencies"]


def test_licensing_failure(
    tmp_path: Path,
    font_file: Path,
    fake_editor: Path,
    record: Path,
    pipeline: ConversionPipeline,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("FAKE_UNITY_MODE", "license")

    with pytest.raises(EditorExecutionError) as excinfo:
        pipeline.run(_options(tmp_path, font_file, fake_editor))

    error = excinfo.value
    assert error.licensing is True
    assert error.exit_code == 1
    assert str(error).startswith(f"Unity batch build failed. Exit code: 1\n{LICENSING_HINT}\n")
    assert "License client failed" in error.log_tail
    assert list((tmp_path / "work").iterdir()) == []


def test_create_project_failure(
    tmp_path: Path,
    font_file: Path,
    fake_editor: Path,
    record: Path,
    pipeline: ConversionPipeline,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("FAKE_UNITY_MODE", "create-fail")

    with pytest.raises(EditorExecutionError, match="Unity failed creating worker project"):
        pipeline.run(_options(tmp_path, font_file, fake_editor))

    assert len(_invocations(record)) == 1


def test_build_failure_includes_log_tail(
    tmp_path: Path,
    font_file: Path,
    fake_editor: Path,
    record: Path,
    pipeline: ConversionPipeline,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("FAKE_UNITY_MODE", "build-fail")

    with pytest.raises(EditorExecutionError) as excinfo:
        pipeline.run(_options(tmp_path, font_file, fake_editor))

    assert excinfo.value.licensing is False
    assert excinfo.value.exit_code == 3
    assert str(excinfo.value).endswith("Compiling\nerror: build failed")


def test_missing_bundle(
    tmp_path: Path,
    font_file: Path,
    fake_editor: Path,
    record: Path,
    pipeline: ConversionPipeline,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("FAKE_UNITY_MODE", "no-bundle")

    with pytest.raises(ArtifactMissingError, match="AssetBundle was not produced"):
        pipeline.run(_options(tmp_path, font_file, fake_editor))


def test_missing_bundle_manifest(
    tmp_path: Path,
    font_file: Path,
    fake_editor: Path,
    record: Path,
    pipeline: ConversionPipeline,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("FAKE_UNITY_MODE", "no-manifest")
    options = _options(tmp_path, font_file, fake_editor)

    with pytest.raises(ArtifactMissingError) as excinfo:
        pipeline.run(options)

    message = str(excinfo.value)
    assert "AssetBundle manifest was not produced" in message
    assert f"{options.resolved_bundle_name()}.manifest" in message
    assert "unity-build.log" in message
    assert (options.output_dir / options.resolved_bundle_name()).is_file()


@pytest.mark.parametrize(
    ("font_name", "message"),
    [
        ("missing.ttf", "Input font not found"),
        ("notes.txt", "Unsupported font extension: .txt"),
    ],
)
def test_font_validation(
    tmp_path: Path, pipeline: ConversionPipeline, font_name: str, message: str
) -> None:
    if font_name.endswith(".txt"):
        (tmp_path / font_name).write_text("not a font", encoding="utf-8")
    options = ConversionOptions(font_path=tmp_path / font_name, output_dir=tmp_path / "out")

    with pytest.raises(ConfigurationError, match=message):
        pipeline.run(options)


def test_conflicting_options_fail_before_any_work(
    tmp_path: Path, font_file: Path, pipeline: ConversionPipeline
) -> None:
    options = ConversionOptions(
        font_path=font_file, output_dir=tmp_path / "out", force_static=True, force_dynamic=True
    )
    with pytest.raises(ConfigurationError, match="--force-static or --force-dynamic"):
        pipeline.run(options)
    assert not (tmp_path / "out").exists()
