"""Helpers shared by the conversion commands."""

from __future__ import annotations

from pathlib import Path

import typer

from fontpatcher.core.exceptions import ConfigurationError
from fontpatcher.core.options import DEFAULT_ATLAS_SIZES, ConversionOptions, parse_atlas_sizes
from fontpatcher.core.process import ProcessRunner
from fontpatcher.pipeline.conversion import ConversionPipeline
from fontpatcher.unity.detector import TargetVersionDetector
from fontpatcher.unity.epochs import AdapterRegistry, EpochResolver
from fontpatcher.unity.provisioner import AutoProvisioner
from fontpatcher.unity.version import EpochMode

from .diagnostics import CliEmitter, EditorLineRenderer
from .state import CLIState


def _absolute(path: Path | None) -> Path | None:
    return path.expanduser().absolute() if path is not None else None


def build_conversion_options(
    *,
    font: Path | None,
    output: Path | None,
    unity: Path | None,
    unity_hub: Path | None,
    unity_version: str | None,
    target_game: Path | None,
    install_root: Path | None,
    epoch: str,
    use_nographics: bool | None,
    no_auto_install_unity: bool,
    no_auto_install_hub: bool,
    prefer_non_lts: bool,
    bundle_name: str | None,
    tmp_name: str | None,
    build_target: str,
    atlas_sizes: str | None,
    point_size: int,
    padding: int,
    scan_upper_bound: int,
    force_static: bool,
    force_dynamic: bool,
    dynamic_warmup_limit: int,
    dynamic_warmup_batch: int,
    include_control: bool,
    keep_temp: bool,
) -> ConversionOptions:
    """Translate parsed command-line values into validated options.

    Invalid combinations surface as :class:`typer.BadParameter` so that they
    exit with the usage error status.
    """
    try:
        options = ConversionOptions(
            font_path=_absolute(font),
            output_dir=_absolute(output),
            editor_path=_absolute(unity),
            hub_path=_absolute(unity_hub),
            editor_version=unity_version.strip() if unity_version else None,
            target_game=_absolute(target_game),
            install_root=_absolute(install_root),
            auto_install_editor=not no_auto_install_unity,
            auto_install_hub=not no_auto_install_hub,
            prefer_lts=not prefer_non_lts,
            bundle_name=bundle_name or None,
            asset_name=tmp_name or None,
            build_target=build_target,
            atlas_sizes=(
                parse_atlas_sizes(atlas_sizes) if atlas_sizes is not None else DEFAULT_ATLAS_SIZES
            ),
            point_size=point_size,
            padding=padding,
            scan_upper_bound=scan_upper_bound,
            keep_temp=keep_temp,
            force_dynamic=force_dynamic,
            force_static=force_static,
            dynamic_warmup_limit=dynamic_warmup_limit,
            dynamic_warmup_batch=dynamic_warmup_batch,
            include_control=include_control,
            epoch_mode=EpochMode.parse(epoch),
            use_no_graphics=use_nographics,
        )
        options.validate()
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return options


def create_pipeline(state: CLIState) -> ConversionPipeline:
    """Wire a pipeline whose diagnostics and Editor log lines go to the console."""
    emitter = CliEmitter(state)
    runner = ProcessRunner()
    detector = TargetVersionDetector()
    return ConversionPipeline(
        provisioner=AutoProvisioner(detector=detector, runner=runner, emitter=emitter),
        runner=runner,
        resolver=EpochResolver(detector),
        registry=AdapterRegistry.create_default(),
        emitter=emitter,
        on_line=EditorLineRenderer(state),
    )


__all__ = ["build_conversion_options", "create_pipeline"]
