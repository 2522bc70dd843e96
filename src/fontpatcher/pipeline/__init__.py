"""Single-job conversion pipeline."""

from __future__ import annotations

from .conversion import ConversionPipeline, PipelineResult
from .failures import LICENSING_HINT, looks_like_licensing_issue, read_log_tail
from .logtail import EditorLogLine, LogSeverity, LogTailer, classify_line
from .workspace import Workspace, ensure_textmeshpro_dependency


__all__ = [
    "LICENSING_HINT",
    "ConversionPipeline",
    "EditorLogLine",
    "LogSeverity",
    "LogTailer",
    "PipelineResult",
    "Workspace",
    "classify_line",
    "ensure_textmeshpro_dependency",
    "looks_like_licensing_issue",
    "read_log_tail",
]
