"""Implementation of the `fontpatcher batch` command."""

from __future__ import annotations

from functools import partial

import typer

from fontpatcher.batch.orchestrator import BatchOrchestrator
from fontpatcher.core.cancellation import CancellationToken
from fontpatcher.core.exceptions import FontPatcherError
from fontpatcher.core.options import DEFAULT_BUILD_TARGET

from .._options import (
    AtlasSizesOption,
    BuildTargetOption,
    BundleNameOption,
    ContinueOnErrorOption,
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
    JobsFileOption,
    KeepTempOption,
    MaxWorkersOption,
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
from ..presenter import present_batch
from ..state import debug_enabled, emit_error, get_cli_state
from ..utils import build_conversion_options, create_pipeline


def batch(
    jobs_file: JobsFileOption,
    max_workers: MaxWorkersOption = 1,
    continue_on_job_error: ContinueOnErrorOption = False,
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
    """Run every job of a jobs file; shared options apply to each job.

    Exits with status 0 only when every job succeeded.
    """
    base = build_conversion_options(
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
    orchestrator = BatchOrchestrator(
        partial(create_pipeline, state),
        max_workers=max_workers,
        continue_on_error=continue_on_job_error,
    )
    cancel = CancellationToken()
    try:
        result = orchestrator.run_file(base, jobs_file, cancel)
    except KeyboardInterrupt:
        cancel.cancel()
        raise
    except FontPatcherError as exc:
        if debug_enabled():
            raise
        emit_error("Batch failed.")
        state.err_console.print(str(exc), markup=False, highlight=False, soft_wrap=True)
        raise typer.Exit(code=1) from exc

    present_batch(state, result, max_workers)
    if not result.all_succeeded:
        raise typer.Exit(code=1)
