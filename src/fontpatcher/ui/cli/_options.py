"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


INPUT_PANEL = "Input & Output"
EDITOR_PANEL = "Unity Editor"
BUNDLE_PANEL = "Bundle"
ATLAS_PANEL = "Atlas"
BATCH_PANEL = "Batch"

FontOption = Annotated[
    Path | None,
    typer.Option(
        "--font",
        help="Font file to convert (.ttf, .otf, .ttc or .otc).",
        dir_okay=False,
        rich_help_panel=INPUT_PANEL,
    ),
]

OutputOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        help="Directory receiving the AssetBundle and its manifest.",
        file_okay=False,
        rich_help_panel=INPUT_PANEL,
    ),
]

KeepTempOption = Annotated[
    bool,
    typer.Option(
        "--keep-temp",
        help="Keep the temporary Unity project after the run.",
        rich_help_panel=INPUT_PANEL,
    ),
]

EditorPathOption = Annotated[
    Path | None,
    typer.Option(
        "--unity",
        help="Unity Editor executable or install folder (also UNITY_EDITOR_PATH).",
        rich_help_panel=EDITOR_PANEL,
    ),
]

HubPathOption = Annotated[
    Path | None,
    typer.Option(
        "--unity-hub",
        help="Unity Hub executable (also UNITY_HUB_PATH).",
        rich_help_panel=EDITOR_PANEL,
    ),
]

EditorVersionOption = Annotated[
    str | None,
    typer.Option(
        "--unity-version",
        help="Required Unity version, for example 2022.3.62f1.",
        rich_help_panel=EDITOR_PANEL,
    ),
]

TargetGameOption = Annotated[
    Path | None,
    typer.Option(
        "--target-game",
        help="Game executable or folder whose Unity version should be matched.",
        rich_help_panel=EDITOR_PANEL,
    ),
]

InstallRootOption = Annotated[
    Path | None,
    typer.Option(
        "--unity-install-root",
        help="Folder holding managed Unity installs.",
        rich_help_panel=EDITOR_PANEL,
    ),
]

EpochOption = Annotated[
    str,
    typer.Option(
        "--epoch",
        help="Editor epoch adapter: auto, legacy, mid or modern.",
        rich_help_panel=EDITOR_PANEL,
    ),
]

NoGraphicsOption = Annotated[
    bool | None,
    typer.Option(
        "--use-nographics/--no-nographics",
        help="Force or disable -nographics (defaults to the epoch adapter's choice).",
        show_default=False,
        rich_help_panel=EDITOR_PANEL,
    ),
]

NoAutoInstallEditorOption = Annotated[
    bool,
    typer.Option(
        "--no-auto-install-unity",
        help="Fail instead of installing a missing Unity Editor.",
        rich_help_panel=EDITOR_PANEL,
    ),
]

NoAutoInstallHubOption = Annotated[
    bool,
    typer.Option(
        "--no-auto-install-hub",
        help="Fail instead of installing a missing Unity Hub.",
        rich_help_panel=EDITOR_PANEL,
    ),
]

PreferNonLtsOption = Annotated[
    bool,
    typer.Option(
        "--prefer-non-lts",
        help="Prefer the newest release over LTS when installing.",
        rich_help_panel=EDITOR_PANEL,
    ),
]

BundleNameOption = Annotated[
    str | None,
    typer.Option(
        "--bundle-name",
        help="AssetBundle file name (defaults to the lower-cased font stem).",
        rich_help_panel=BUNDLE_PANEL,
    ),
]

TmpNameOption = Annotated[
    str | None,
    typer.Option(
        "--tmp-name",
        help="TextMeshPro font asset name (defaults to TMP_<font stem>).",
        rich_help_panel=BUNDLE_PANEL,
    ),
]

BuildTargetOption = Annotated[
    str,
    typer.Option(
        "--build-target",
        help="Unity BuildTarget for the bundle.",
        rich_help_panel=BUNDLE_PANEL,
    ),
]

AtlasSizesOption = Annotated[
    str | None,
    typer.Option(
        "--atlas-sizes",
        help="Comma separated atlas sizes to try, each in [256..8192].",
        rich_help_panel=ATLAS_PANEL,
    ),
]

PointSizeOption = Annotated[
    int,
    typer.Option("--point-size", min=1, help="Sampling point size.", rich_help_panel=ATLAS_PANEL),
]

PaddingOption = Annotated[
    int,
    typer.Option("--padding", min=0, help="Glyph padding in pixels.", rich_help_panel=ATLAS_PANEL),
]

ScanUpperBoundOption = Annotated[
    int,
    typer.Option(
        "--scan-upper-bound",
        min=0,
        help="Highest code point scanned for glyphs.",
        rich_help_panel=ATLAS_PANEL,
    ),
]

ForceStaticOption = Annotated[
    bool,
    typer.Option(
        "--force-static",
        help="Fail instead of falling back to a dynamic atlas.",
        rich_help_panel=ATLAS_PANEL,
    ),
]

ForceDynamicOption = Annotated[
    bool,
    typer.Option(
        "--force-dynamic",
        help="Skip static atlas attempts.",
        rich_help_panel=ATLAS_PANEL,
    ),
]

DynamicWarmupLimitOption = Annotated[
    int,
    typer.Option(
        "--dynamic-warmup-limit",
        min=0,
        help="Maximum glyphs pre-rendered into a dynamic atlas.",
        rich_help_panel=ATLAS_PANEL,
    ),
]

DynamicWarmupBatchOption = Annotated[
    int,
    typer.Option(
        "--dynamic-warmup-batch",
        min=1,
        help="Glyphs added per dynamic warmup call.",
        rich_help_panel=ATLAS_PANEL,
    ),
]

IncludeControlOption = Annotated[
    bool,
    typer.Option(
        "--include-control",
        help="Include control characters in the character set.",
        rich_help_panel=ATLAS_PANEL,
    ),
]

JobsFileOption = Annotated[
    Path,
    typer.Option(
        "--jobs-file",
        help='JSON document of the form {"jobs": [...]}.',
        dir_okay=False,
        rich_help_panel=BATCH_PANEL,
    ),
]

MaxWorkersOption = Annotated[
    int,
    typer.Option(
        "--max-workers",
        min=1,
        help="Parallel jobs when --continue-on-job-error is set.",
        rich_help_panel=BATCH_PANEL,
    ),
]

ContinueOnErrorOption = Annotated[
    bool,
    typer.Option(
        "--continue-on-job-error",
        help="Run every job even when some fail.",
        rich_help_panel=BATCH_PANEL,
    ),
]


__all__ = [
    "AtlasSizesOption",
    "BuildTargetOption",
    "BundleNameOption",
    "ContinueOnErrorOption",
    "DynamicWarmupBatchOption",
    "DynamicWarmupLimitOption",
    "EditorPathOption",
    "EditorVersionOption",
    "EpochOption",
    "FontOption",
    "ForceDynamicOption",
    "ForceStaticOption",
    "HubPathOption",
    "IncludeControlOption",
    "InstallRootOption",
    "JobsFileOption",
    "KeepTempOption",
    "MaxWorkersOption",
    "NoAutoInstallEditorOption",
    "NoAutoInstallHubOption",
    "NoGraphicsOption",
    "OutputOption",
    "PaddingOption",
    "PointSizeOption",
    "PreferNonLtsOption",
    "ScanUpperBoundOption",
    "TargetGameOption",
    "TmpNameOption",
]
