"""Drive one font through the Editor and into an AssetBundle."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import logging
import os
from pathlib import Path

from fontpatcher.core.cancellation import CancellationToken, ensure_token
from fontpatcher.core.diagnostics import DiagnosticEmitter, ensure_emitter
from fontpatcher.core.exceptions import ArtifactMissingError, ConfigurationError
from fontpatcher.core.options import SUPPORTED_FONT_EXTENSIONS, ConversionOptions
from fontpatcher.core.process import ProcessResult, ProcessRunner
from fontpatcher.unity.epochs import AdapterRegistry, EpochAdapter, EpochResolver
from fontpatcher.unity.provisioner import AutoProvisioner
from fontpatcher.unity.version import Epoch

from .failures import classify_failure
from .logtail import LineCallback, LogTailer
from .workspace import Workspace, prepare_payload


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PipelineResult:
    """Artifacts and decisions produced by a successful conversion."""

    bundle_path: Path
    manifest_path: Path
    asset_name: str
    editor_path: Path
    epoch: Epoch
    adapter_name: str
    use_no_graphics: bool
    workspace_path: Path | None = None

    @property
    def arguments_mode(self) -> str:
        return "batchmode+nographics" if self.use_no_graphics else "batchmode"


def batch_arguments(use_no_graphics: bool) -> list[str]:
    arguments = ["-batchmode"]
    if use_no_graphics:
        arguments.append("-nographics")
    arguments.append("-quit")
    return arguments


def create_project_arguments(project: Path, log_file: Path, use_no_graphics: bool) -> list[str]:
    return [
        *batch_arguments(use_no_graphics),
        "-createProject",
        str(project),
        "-logFile",
        str(log_file),
    ]


def build_arguments(
    project: Path,
    entry_method: str,
    job_file: Path,
    log_file: Path,
    use_no_graphics: bool,
) -> list[str]:
    return [
        *batch_arguments(use_no_graphics),
        "-projectPath",
        str(project),
        "-executeMethod",
        entry_method,
        "--job-manifest",
        str(job_file),
        "-logFile",
        str(log_file),
    ]


def validate_font(font_path: Path | None) -> Path:
    if font_path is None:
        raise ConfigurationError("Font path is required.")
    if not font_path.is_file():
        raise ConfigurationError(f"Input font not found: {font_path}")
    extension = font_path.suffix.lower()
    if extension not in SUPPORTED_FONT_EXTENSIONS:
        supported = ", ".join(sorted(SUPPORTED_FONT_EXTENSIONS))
        raise ConfigurationError(
            f"Unsupported font extension: {font_path.suffix or '<none>'}. Supported: {supported}"
        )
    return font_path


class ConversionPipeline:
    """Resolve an Editor, run the two batch phases and verify the bundle.

    Each run works in its own temporary directory, removed afterwards unless
    ``keep_temp`` is set, so concurrent runs never share state.
    """

    def __init__(
        self,
        *,
        provisioner: AutoProvisioner | None = None,
        runner: ProcessRunner | None = None,
        resolver: EpochResolver | None = None,
        registry: AdapterRegistry | None = None,
        emitter: DiagnosticEmitter | None = None,
        on_line: LineCallback | None = None,
        temp_root: Path | None = None,
    ) -> None:
        self.emitter = ensure_emitter(emitter)
        self.runner = runner or ProcessRunner()
        self.provisioner = provisioner or AutoProvisioner(runner=self.runner, emitter=self.emitter)
        self.resolver = resolver or EpochResolver(self.provisioner.detector)
        self.registry = registry or AdapterRegistry.create_default()
        self.on_line = on_line
        self.temp_root = temp_root

    def run(
        self, options: ConversionOptions, cancel: CancellationToken | None = None
    ) -> PipelineResult:
        token = ensure_token(cancel)
        options.validate()
        font_path = validate_font(options.font_path)
        if options.output_dir is None:
            raise ConfigurationError("Output directory is required.")

        editor_path = self.provisioner.resolve_editor(options, token)
        resolution = self.resolver.resolve(
            editor_path,
            mode=options.epoch_mode,
            explicit_version=options.editor_version,
            target_game=options.target_game,
        )
        adapter = self.registry.get(resolution.epoch)
        use_no_graphics = (
            options.use_no_graphics
            if options.use_no_graphics is not None
            else adapter.default_use_no_graphics
        )
        self.emitter.event(
            "epoch_resolved",
            {
                "adapter": adapter.name,
                "version": str(resolution.version) if resolution.version else None,
            },
        )

        output_dir = Path(os.path.abspath(options.output_dir))
        output_dir.mkdir(parents=True, exist_ok=True)
        workspace = Workspace.create(self.temp_root)
        try:
            self._create_project(editor_path, workspace, use_no_graphics, token)
            script = adapter.builder_script()
            job_file = prepare_payload(
                workspace, options.replace(font_path=font_path), script, output_dir
            )
            self._build(editor_path, workspace, adapter, job_file, use_no_graphics, token)

            bundle_path = output_dir / options.resolved_bundle_name()
            if not bundle_path.is_file():
                raise ArtifactMissingError(
                    f"AssetBundle was not produced at expected path: {bundle_path}\n"
                    f"Unity log: {workspace.build_log}"
                )
            manifest_path = bundle_path.with_name(f"{bundle_path.name}.manifest")
            if not manifest_path.is_file():
                raise ArtifactMissingError(
                    f"AssetBundle manifest was not produced at expected path: {manifest_path}\n"
                    f"Unity log: {workspace.build_log}"
                )
            return PipelineResult(
                bundle_path=bundle_path,
                manifest_path=manifest_path,
                asset_name=options.resolved_asset_name(),
                editor_path=editor_path,
                epoch=resolution.epoch,
                adapter_name=adapter.name,
                use_no_graphics=use_no_graphics,
                workspace_path=workspace.project if options.keep_temp else None,
            )
        finally:
            if not options.keep_temp:
                workspace.cleanup()

    def _create_project(
        self,
        editor_path: Path,
        workspace: Workspace,
        use_no_graphics: bool,
        token: CancellationToken,
    ) -> None:
        arguments = create_project_arguments(
            workspace.project, workspace.create_log, use_no_graphics
        )
        result = self._run_phase(
            editor_path,
            arguments,
            cwd=None,
            log_file=workspace.create_log,
            phase=f"unity:{workspace.tag}:create",
            token=token,
        )
        if result.exit_code != 0:
            raise classify_failure(
                "Unity failed creating worker project.",
                result.exit_code,
                workspace.create_log,
                cancel=token,
            )

    def _build(
        self,
        editor_path: Path,
        workspace: Workspace,
        adapter: EpochAdapter,
        job_file: Path,
        use_no_graphics: bool,
        token: CancellationToken,
    ) -> None:
        arguments = build_arguments(
            workspace.project,
            adapter.builder_script().entry_method,
            job_file,
            workspace.build_log,
            use_no_graphics,
        )
        result = self._run_phase(
            editor_path,
            arguments,
            cwd=workspace.project,
            log_file=workspace.build_log,
            phase=f"unity:{workspace.tag}:build",
            token=token,
        )
        if result.exit_code != 0:
            raise classify_failure(
                "Unity batch build failed.",
                result.exit_code,
                workspace.build_log,
                cancel=token,
            )

    def _run_phase(
        self,
        editor_path: Path,
        arguments: Sequence[str],
        *,
        cwd: Path | None,
        log_file: Path,
        phase: str,
        token: CancellationToken,
    ) -> ProcessResult:
        self.emitter.event("phase", {"phase": phase, "status": "start"})
        with LogTailer(log_file, phase, self.on_line, cancel=token):
            result = self.runner.run(editor_path, arguments, cwd=cwd, cancel=token)
        self.emitter.event(
            "phase", {"phase": phase, "status": "completed", "exit_code": result.exit_code}
        )
        return result


__all__ = [
    "ConversionPipeline",
    "PipelineResult",
    "build_arguments",
    "create_project_arguments",
    "validate_font",
]
