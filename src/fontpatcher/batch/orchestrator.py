"""Run many conversion jobs from a single document."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
import logging
import os
from pathlib import Path

from fontpatcher.core.cancellation import CancellationToken, ensure_token
from fontpatcher.core.exceptions import ConfigurationError, OperationCancelled
from fontpatcher.core.options import ConversionOptions, parse_atlas_sizes
from fontpatcher.pipeline.conversion import ConversionPipeline, PipelineResult
from fontpatcher.unity.version import EpochMode

from .models import JobDescriptor, JobDocument, load_job_document


logger = logging.getLogger(__name__)

PipelineFactory = Callable[[], ConversionPipeline]


@dataclass(frozen=True, slots=True)
class BatchJobResult:
    """Outcome of one job, identified by its position in the document."""

    index: int
    name: str
    success: bool
    message: str
    result: PipelineResult | None = None

    @classmethod
    def succeeded(cls, index: int, name: str, result: PipelineResult) -> BatchJobResult:
        message = f"ok | bundle={result.bundle_path} | unity={result.editor_path}"
        return cls(index=index, name=name, success=True, message=message, result=result)

    @classmethod
    def failed(cls, index: int, name: str, error: str) -> BatchJobResult:
        return cls(index=index, name=name, success=False, message=error)


@dataclass(slots=True)
class BatchResult:
    jobs: list[BatchJobResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for job in self.jobs if job.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for job in self.jobs if not job.success)

    @property
    def all_succeeded(self) -> bool:
        return self.failure_count == 0


def job_name(descriptor: JobDescriptor, index: int) -> str:
    if descriptor.id and descriptor.id.strip():
        return descriptor.id
    return f"job-{index + 1}"


def _first_text(primary: str | None, fallback: str | os.PathLike[str] | None) -> str | None:
    if primary and primary.strip():
        return primary
    if fallback is None:
        return None
    text = os.fspath(fallback)
    return text if text.strip() else None


def _optional_path(value: str | None) -> Path | None:
    return Path(os.path.abspath(value)) if value else None


def _pick(value: object, fallback: object) -> object:
    return fallback if value is None else value


def merge_job(base: ConversionOptions, descriptor: JobDescriptor) -> ConversionOptions:
    """Overlay a descriptor on the shared options; a present field always wins."""
    font = _first_text(descriptor.font, base.font_path)
    output = _first_text(descriptor.output, base.output_dir)
    if font is None:
        raise ConfigurationError("Batch job is missing 'font'.")
    if output is None:
        raise ConfigurationError("Batch job is missing 'output'.")

    epoch_mode = base.epoch_mode
    if descriptor.epoch and descriptor.epoch.strip():
        try:
            epoch_mode = EpochMode.parse(descriptor.epoch)
        except ConfigurationError as exc:
            raise ConfigurationError(f"Unknown epoch value in job: {descriptor.epoch}") from exc

    atlas_sizes = base.atlas_sizes
    if descriptor.atlas_sizes is not None:
        atlas_sizes = parse_atlas_sizes(descriptor.atlas_sizes)

    return base.replace(
        font_path=_optional_path(font),
        output_dir=_optional_path(output),
        editor_path=_optional_path(_first_text(descriptor.unity, base.editor_path)),
        editor_version=_first_text(descriptor.unity_version, base.editor_version),
        target_game=_optional_path(_first_text(descriptor.target_game, base.target_game)),
        build_target=_first_text(descriptor.build_target, base.build_target) or base.build_target,
        bundle_name=_first_text(descriptor.bundle_name, base.bundle_name),
        asset_name=_first_text(descriptor.tmp_name, base.asset_name),
        epoch_mode=epoch_mode,
        use_no_graphics=_pick(descriptor.use_no_graphics, base.use_no_graphics),
        point_size=_pick(descriptor.point_size, base.point_size),
        padding=_pick(descriptor.padding, base.padding),
        scan_upper_bound=_pick(descriptor.scan_upper_bound, base.scan_upper_bound),
        atlas_sizes=atlas_sizes,
        include_control=_pick(descriptor.include_control, base.include_control),
        keep_temp=_pick(descriptor.keep_temp, base.keep_temp),
        force_dynamic=_pick(descriptor.force_dynamic, base.force_dynamic),
        force_static=_pick(descriptor.force_static, base.force_static),
        dynamic_warmup_limit=_pick(descriptor.dynamic_warmup_limit, base.dynamic_warmup_limit),
        dynamic_warmup_batch=_pick(descriptor.dynamic_warmup_batch, base.dynamic_warmup_batch),
    )


class BatchOrchestrator:
    """Execute every job of a document against a fresh pipeline per job.

    Without ``continue_on_error`` jobs run one after another and the batch
    stops at the first failure. With it, jobs run on a pool of
    ``max_workers`` threads and every job is attempted.
    """

    def __init__(
        self,
        pipeline_factory: PipelineFactory,
        *,
        max_workers: int = 1,
        continue_on_error: bool = False,
    ) -> None:
        self.pipeline_factory = pipeline_factory
        self.max_workers = max(1, max_workers)
        self.continue_on_error = continue_on_error

    def run_file(
        self,
        base: ConversionOptions,
        jobs_file: str | os.PathLike[str],
        cancel: CancellationToken | None = None,
    ) -> BatchResult:
        return self.run(base, load_job_document(jobs_file), cancel)

    def run(
        self,
        base: ConversionOptions,
        document: JobDocument,
        cancel: CancellationToken | None = None,
    ) -> BatchResult:
        token = ensure_token(cancel)
        if not document.jobs:
            raise ConfigurationError("Jobs file does not contain any jobs.")
        if not self.continue_on_error:
            return self._run_sequential(base, document, token)
        return self._run_parallel(base, document, token)

    def _run_sequential(
        self, base: ConversionOptions, document: JobDocument, token: CancellationToken
    ) -> BatchResult:
        results: list[BatchJobResult] = []
        for index, descriptor in enumerate(document.jobs):
            token.raise_if_cancelled()
            outcome = self.run_job(base, descriptor, index, token)
            results.append(outcome)
            if not outcome.success:
                break
        return BatchResult(results)

    def _run_parallel(
        self, base: ConversionOptions, document: JobDocument, token: CancellationToken
    ) -> BatchResult:
        results: list[BatchJobResult] = []
        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="fontpatcher-job"
        ) as executor:
            futures: list[Future[BatchJobResult]] = [
                executor.submit(self.run_job, base, descriptor, index, token)
                for index, descriptor in enumerate(document.jobs)
            ]
            try:
                for future in as_completed(futures):
                    results.append(future.result())
            except BaseException:
                # Running jobs stop at their next polling point; queued ones never start.
                token.cancel()
                executor.shutdown(wait=False, cancel_futures=True)
                raise
        results.sort(key=lambda item: item.index)
        return BatchResult(results)

    def run_job(
        self,
        base: ConversionOptions,
        descriptor: JobDescriptor,
        index: int,
        token: CancellationToken,
    ) -> BatchJobResult:
        name = job_name(descriptor, index)
        token.raise_if_cancelled()
        try:
            options = merge_job(base, descriptor)
            result = self.pipeline_factory().run(options, token)
        except OperationCancelled:
            raise
        except Exception as exc:  # job failures never abort sibling jobs
            logger.debug("Batch job %s failed", name, exc_info=True)
            return BatchJobResult.failed(index, name, str(exc) or type(exc).__name__)
        return BatchJobResult.succeeded(index, name, result)


__all__ = [
    "BatchJobResult",
    "BatchOrchestrator",
    "BatchResult",
    "PipelineFactory",
    "job_name",
    "merge_job",
]
