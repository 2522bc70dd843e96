"""Batch execution of conversion jobs."""

from __future__ import annotations

from .models import JobDescriptor, JobDocument, load_job_document
from .orchestrator import BatchJobResult, BatchOrchestrator, BatchResult, merge_job


__all__ = [
    "BatchJobResult",
    "BatchOrchestrator",
    "BatchResult",
    "JobDescriptor",
    "JobDocument",
    "load_job_document",
    "merge_job",
]
