from __future__ import annotations

import json
from pathlib import Path

import pytest

from fontpatcher.core.exceptions import AdapterRegistryError, BuilderScriptError
from fontpatcher.unity.epochs import (
    AdapterRegistry,
    EpochResolver,
    MidEpochAdapter,
    ModernEpochAdapter,
    version_from_editor_path,
)
from fontpatcher.unity.scripts import (
    DEFAULT_OUTPUT_FILE_NAME,
    BuilderScriptRegistry,
    default_registry,
)
from fontpatcher.unity.version import EditorVersion, Epoch, EpochMode


class StubDetector:
    def __init__(self, version: str | None = None) -> None:
        self.version = EditorVersion.parse(version) if version else None
        self.calls: list[object] = []

    def detect(self, target: object) -> EditorVersion | None:
        self.calls.append(target)
        return self.version


def _write_definitions(root: Path, *definitions: dict[str, object]) -> Path:
    definitions_dir = root / "definitions"
    definitions_dir.mkdir(parents=True)
    (root / "sources").mkdir()
    (root / "sources" / "Builder.cs").write_text("class Builder {}", encoding="utf-8")
    for index, definition in enumerate(definitions):
        path = definitions_dir / f"def{index}.builder.json"
        path.write_text(json.dumps(definition), encoding="utf-8")
    return definitions_dir


def _definition(**overrides: object) -> dict[str, object]:
    data: dict[str, object] = {
        "id": "test",
        "sourceFile": "sources/Builder.cs",
        "entryMethod": "Builder.Run",
        "epochs": ["legacy", "mid", "modern"],
    }
    data.update(overrides)
    return data


def test_version_from_editor_path() -> None:
    path = Path("/opt/editors/2021.3.16f1/Editor/Unity")
    assert str(version_from_editor_path(path)) == "2021.3.16f1"
    assert version_from_editor_path(Path("/usr/bin/unity")) is None
    assert version_from_editor_path(None) is None


def test_resolver_prefers_editor_folder_version() -> None:
    detector = StubDetector("2019.4.1f1")
    resolution = EpochResolver(detector).resolve(
        "/editors/2023.2.5f1/Editor/Unity",
        explicit_version="2021.3.16f1",
        target_game="/games/demo",
    )
    assert resolution.epoch is Epoch.MODERN
    assert str(resolution.version) == "2023.2.5f1"
    assert detector.calls == []


def test_resolver_falls_back_to_explicit_then_detected_version() -> None:
    detector = StubDetector("2019.4.1f1")
    resolver = EpochResolver(detector)

    explicit = resolver.resolve("/usr/bin/unity", explicit_version="2021.3.16f1")
    assert explicit.epoch is Epoch.MID

    detected = resolver.resolve("/usr/bin/unity", explicit_version="garbage", target_game="g")
    assert detected.epoch is Epoch.LEGACY
    assert detector.calls == ["g"]


def test_resolver_defaults_to_mid_without_version() -> None:
    resolution = EpochResolver(StubDetector()).resolve("/usr/bin/unity")
    assert resolution.epoch is Epoch.MID
    assert resolution.version is None


def test_forced_mode_overrides_version() -> None:
    resolution = EpochResolver(StubDetector()).resolve(
        "/editors/2023.2.5f1/Editor/Unity", mode=EpochMode.LEGACY
    )
    assert resolution.epoch is Epoch.LEGACY
    assert str(resolution.version) == "2023.2.5f1"


def test_default_registry_covers_every_epoch() -> None:
    registry = AdapterRegistry.create_default()
    for epoch in Epoch:
        adapter = registry.get(epoch)
        assert adapter.epoch is epoch
        assert adapter.name == epoch.adapter_name
        assert adapter.default_use_no_graphics is False


def test_registry_reports_missing_adapter() -> None:
    registry = AdapterRegistry([MidEpochAdapter()])
    with pytest.raises(AdapterRegistryError, match="modern-2023-plus"):
        registry.get(Epoch.MODERN)


def test_bundled_builder_script_is_shared_by_all_epochs() -> None:
    registry = default_registry()
    scripts = {registry.get(epoch) for epoch in Epoch}
    assert len(scripts) == 1
    script = scripts.pop()
    assert script.output_file_name == "FontBundleBuilder.cs"
    assert script.entry_method.endswith(".Run")
    assert "FontBundleBuilder" in script.source_code


def test_adapter_uses_injected_script_registry(tmp_path: Path) -> None:
    definitions = _write_definitions(tmp_path, _definition(epochs=["modern-2023-plus"]))
    adapter = ModernEpochAdapter(BuilderScriptRegistry(definitions))
    script = adapter.builder_script()
    assert script.entry_method == "Builder.Run"
    assert script.output_file_name == DEFAULT_OUTPUT_FILE_NAME
    assert script.source_code == "class Builder {}"


def test_registry_keys_are_case_insensitive(tmp_path: Path) -> None:
    definition = {
        "ID": "test",
        "SourceFile": "sources/Builder.cs",
        "EntryMethod": "Builder.Run",
        "OutputFileName": "Custom.cs",
        "Epochs": ["MID"],
    }
    registry = BuilderScriptRegistry(_write_definitions(tmp_path, definition))
    assert registry.get(Epoch.MID).output_file_name == "Custom.cs"
    with pytest.raises(BuilderScriptError, match="No builder script is registered"):
        registry.get(Epoch.LEGACY)


@pytest.mark.parametrize(
    ("definition", "message"),
    [
        (_definition(entryMethod=""), "entryMethod is missing"),
        (_definition(epochs=[]), "epochs list is empty"),
        (_definition(epochs=["future"]), "Unknown epoch token"),
        (_definition(sourceFile="sources/Missing.cs"), "was not found"),
    ],
)
def test_invalid_definitions(tmp_path: Path, definition: dict[str, object], message: str) -> None:
    registry = BuilderScriptRegistry(_write_definitions(tmp_path, definition))
    with pytest.raises(BuilderScriptError, match=message):
        registry.get(Epoch.MID)


def test_duplicate_epoch_registration_fails(tmp_path: Path) -> None:
    definitions = _write_definitions(
        tmp_path, _definition(epochs=["mid"]), _definition(epochs=["mid-2021-2022"])
    )
    with pytest.raises(BuilderScriptError, match="More than one builder script"):
        BuilderScriptRegistry(definitions).get(Epoch.MID)


def test_missing_or_empty_definitions_dir(tmp_path: Path) -> None:
    with pytest.raises(BuilderScriptError, match="directory was not found"):
        BuilderScriptRegistry(tmp_path / "missing").get(Epoch.MID)

    empty = _write_definitions(tmp_path / "empty")
    with pytest.raises(BuilderScriptError, match="No builder script definitions"):
        BuilderScriptRegistry(empty).get(Epoch.MID)


def test_malformed_definition_json(tmp_path: Path) -> None:
    definitions = _write_definitions(tmp_path)
    (definitions / "broken.builder.json").write_text("{", encoding="utf-8")
    with pytest.raises(BuilderScriptError, match="Cannot parse"):
        BuilderScriptRegistry(definitions).get(Epoch.MID)
