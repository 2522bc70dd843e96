"""Implementation of the `fontpatcher convert` command."""

from __future__ import annotations

import typer

from fontpatcher.core.cancellation import CancellationToken
from fontpatcher.core.exceptions import FontPatcherError
from fontpatcher.core.options import DEFAULT_BUILD_TARGET

from .._options import (
    AtlasSizesOption,
    BuildTargetOption,
    BundleNameOption,
    DynamicWarmupBatchOption,
    DynamicWarmupLimitOption,
    EditorPathOption,
    EditorVersionOption,
    EpochOption,
    FontOption,
    ForceDynamicOption,
    ForceStaticOption,
    HubPathOption,
    IncludeControlOption,
    InstallRootOption,
    KeepTempOption,
    NoAutoInstallEditorOption,
    NoAutoInstallHubOption,
    NoGraphicsOption,
    OutputOption,
    PaddingOption,
    PointSizeOption,
    PreferNonLtsOption,
    ScanUpperBoundOption,
    TargetGameOption,
    TmpNameOption,
)
from ..presenter import present_conversion
from ..state import debug_enabled, emit_error, get_cli_state
from ..utils import build_conversion_options, create_pipeline


def convert(
    font: FontOption = None,
    output: OutputOption = None,
    unity: EditorPathOption = None,
    unity_hub: HubPathOption = None,
    unity_version: EditorVersionOption = None,
    target_game: TargetGameOption = None,
    install_root: InstallRootOption = None,
    epoch: EpochOption = "auto",
    use_nographics: NoGraphicsOption = None,
    no_auto_install_unity: NoAutoInstallEditorOption = False,
    no_auto_install_hub: NoAutoInstallHubOption = False,
    prefer_non_lts: PreferNonLtsOption = False,
    bundle_name: BundleNameOption = None,
    tmp_name: TmpNameOption = None,
    build_target: BuildTargetOption = DEFAULT_BUILD_TARGET,
    atlas_sizes: AtlasSizesOption = None,
    point_size: PointSizeOption = 90,
    padding: PaddingOption = 8,
    scan_upper_bound: ScanUpperBoundOption = 0x10FFFF,
    force_static: ForceStaticOption = False,
    force_dynamic: ForceDynamicOption = False,
    dynamic_warmup_limit: DynamicWarmupLimitOption = 20_000,
    dynamic_warmup_batch: DynamicWarmupBatchOption = 1024,
    include_control: IncludeControlOption = False,
    keep_temp: KeepTempOption = False,
) -> None:
    """Convert one font into a TextMeshPro AssetBundle."""
    if font is None:
        raise typer.BadParameter("Missing required option --font.", param_hint="--font")
    if output is None:
        raise typer.BadParameter("Missing required option --output.", param_hint="--output")

    options = build_conversion_options(
        font=font,
        output=output,
        unity=unity,
        unity_hub=unity_hub,
        unity_version=unity_version,
        target_game=target_game,
        install_root=install_root,
        epoch=epoch,
        use_nographics=use_nographics,
        no_auto_install_unity=no_auto_install_unity,
        no_auto_install_hub=no_auto_install_hub,
        prefer_non_lts=prefer_non_lts,
        bundle_name=bundle_name,
        tmp_name=tmp_name,
        build_target=build_target,
        atlas_sizes=atlas_sizes,
        point_size=point_size,
        padding=padding,
        scan_upper_bound=scan_upper_bound,
        force_static=force_static,
        force_dynamic=force_dynamic,
        dynamic_warmup_limit=dynamic_warmup_limit,
        dynamic_warmup_batch=dynamic_warmup_batch,
        include_control=include_control,
        keep_temp=keep_temp,
    )

    state = get_cli_state()
    pipeline = create_pipeline(state)
    cancel = CancellationToken()
    try:
        result = pipeline.run(options, cancel)
    except KeyboardInterrupt:
        cancel.cancel()
        raise
    except FontPatcherError as exc:
        if debug_enabled():
            raise
        emit_error("Conversion failed.")
        state.err_console.print(str(exc), markup=False, highlight=False, soft_wrap=True)
        raise typer.Exit(code=1) from exc

    present_conversion(state, result)
