"""Temporary Editor project used for one conversion job."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from pathlib import Path
import shutil
import tempfile
from typing import Any

from fontpatcher.core.exceptions import ConfigurationError
from fontpatcher.core.options import ConversionOptions
from fontpatcher.unity.scripts import DEFAULT_OUTPUT_FILE_NAME, BuilderScript


logger = logging.getLogger(__name__)

JOB_FILE_NAME = "FontPatcherJob.json"
INPUT_FONTS_DIR = "Assets/InputFonts"
GENERATED_ASSETS_DIR = "Assets/Generated"
EDITOR_SCRIPTS_DIR = "Assets/Editor"
TEXTMESHPRO_PACKAGE = "com.unity.textmeshpro"
TEXTMESHPRO_VERSION = "3.0.6"


@dataclass(slots=True)
class Workspace:
    """Layout of a job's temporary directory."""

    root: Path

    @classmethod
    def create(cls, base_dir: Path | None = None) -> Workspace:
        if base_dir is not None:
            base_dir.mkdir(parents=True, exist_ok=True)
        root = Path(tempfile.mkdtemp(prefix="fontpatcher-", dir=base_dir))
        return cls(root=root)

    @property
    def tag(self) -> str:
        return self.root.name

    @property
    def project(self) -> Path:
        return self.root / "UnityWorker"

    @property
    def create_log(self) -> Path:
        return self.root / "unity-create.log"

    @property
    def build_log(self) -> Path:
        return self.root / "unity-build.log"

    @property
    def job_file(self) -> Path:
        return self.project / JOB_FILE_NAME

    def cleanup(self) -> None:
        try:
            shutil.rmtree(self.root)
        except OSError as exc:
            logger.debug("Unable to remove workspace %s: %s", self.root, exc)


def ensure_textmeshpro_dependency(project: Path) -> bool:
    """Add the TextMeshPro package to the project manifest when absent.

    Returns ``True`` when the manifest was modified.
    """
    manifest = project / "Packages" / "manifest.json"
    if not manifest.is_file():
        raise ConfigurationError(f"Unity project manifest was not found: {manifest}")
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Unity project manifest is invalid JSON: {manifest}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Unity project manifest is invalid JSON: {manifest}")

    dependencies = data.get("dependencies")
    if not isinstance(dependencies, dict):
        dependencies = {}
        data["dependencies"] = dependencies
    if dependencies.get(TEXTMESHPRO_PACKAGE) is not None:
        return False
    dependencies[TEXTMESHPRO_PACKAGE] = TEXTMESHPRO_VERSION
    manifest.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return True


def build_job_description(
    options: ConversionOptions, font_file_name: str, output_dir: Path
) -> dict[str, Any]:
    """Return the job document read by the builder script inside the Editor."""
    return {
        "fontAssetPath": f"{INPUT_FONTS_DIR}/{font_file_name}",
        "unityOutputDirAssetPath": GENERATED_ASSETS_DIR,
        "absoluteBundleOutputDir": str(output_dir),
        "assetBundleName": options.resolved_bundle_name(),
        "tmpAssetName": options.resolved_asset_name(),
        "buildTarget": options.build_target.strip(),
        "atlasSizes": list(options.atlas_sizes),
        "samplingPointSize": options.point_size,
        "padding": options.padding,
        "scanUpperBound": options.scan_upper_bound,
        "forceDynamic": options.force_dynamic,
        "forceStatic": options.force_static,
        "includeControlCharacters": options.include_control,
        "dynamicWarmupLimit": options.dynamic_warmup_limit,
        "dynamicWarmupBatchSize": options.dynamic_warmup_batch,
    }


def prepare_payload(
    workspace: Workspace,
    options: ConversionOptions,
    script: BuilderScript,
    output_dir: Path,
) -> Path:
    """Copy the font and builder script into the project and write the job file."""
    if options.font_path is None:
        raise ConfigurationError("Font path is required.")

    project = workspace.project
    fonts_dir = project / INPUT_FONTS_DIR
    scripts_dir = project / EDITOR_SCRIPTS_DIR
    fonts_dir.mkdir(parents=True, exist_ok=True)
    scripts_dir.mkdir(parents=True, exist_ok=True)

    font_name = options.font_path.name
    shutil.copy2(options.font_path, fonts_dir / font_name)
    ensure_textmeshpro_dependency(project)

    script_name = script.output_file_name or DEFAULT_OUTPUT_FILE_NAME
    (scripts_dir / script_name).write_text(script.source_code, encoding="utf-8")

    job = build_job_description(options, font_name, output_dir)
    workspace.job_file.write_text(json.dumps(job, indent=2), encoding="utf-8")
    return workspace.job_file


__all__ = [
    "JOB_FILE_NAME",
    "TEXTMESHPRO_PACKAGE",
    "TEXTMESHPRO_VERSION",
    "Workspace",
    "build_job_description",
    "ensure_textmeshpro_dependency",
    "prepare_payload",
]
