"""Primary public API for fontpatcher."""

from __future__ import annotations

from fontpatcher.batch import (
    BatchJobResult,
    BatchOrchestrator,
    BatchResult,
    JobDescriptor,
    JobDocument,
    load_job_document,
)
from fontpatcher.core.cancellation import CancellationToken
from fontpatcher.core.exceptions import (
    ArtifactMissingError,
    ConfigurationError,
    EditorExecutionError,
    EditorNotFoundError,
    FontPatcherError,
    OperationCancelled,
    ProvisioningError,
)
from fontpatcher.core.options import ConversionOptions
from fontpatcher.pipeline import ConversionPipeline, PipelineResult
from fontpatcher.unity.detector import TargetVersionDetector
from fontpatcher.unity.facade import ProvisioningFacade
from fontpatcher.unity.locator import EditorLocator, HubLocator
from fontpatcher.unity.provisioner import AutoProvisioner
from fontpatcher.unity.version import EditorVersion, Epoch, EpochMode
from fontpatcher.version import get_version


__version__ = get_version()

__all__ = [
    "ArtifactMissingError",
    "AutoProvisioner",
    "BatchJobResult",
    "BatchOrchestrator",
    "BatchResult",
    "CancellationToken",
    "ConfigurationError",
    "ConversionOptions",
    "ConversionPipeline",
    "EditorExecutionError",
    "EditorLocator",
    "EditorNotFoundError",
    "EditorVersion",
    "Epoch",
    "EpochMode",
    "FontPatcherError",
    "HubLocator",
    "JobDescriptor",
    "JobDocument",
    "OperationCancelled",
    "PipelineResult",
    "ProvisioningError",
    "ProvisioningFacade",
    "TargetVersionDetector",
    "__version__",
    "get_version",
    "load_job_document",
]
