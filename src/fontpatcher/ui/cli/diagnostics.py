"""Diagnostic emitter bridging the core pipeline with CLI rendering utilities."""

from __future__ import annotations

from collections.abc import Mapping
from threading import Lock
from typing import Any

from fontpatcher.core.diagnostics import DiagnosticEmitter, format_event_message
from fontpatcher.pipeline.logtail import EditorLogLine, LogSeverity

from .state import CLIState, emit_error, emit_warning, get_cli_state, render_message


_LINE_STYLES = {
    LogSeverity.ERROR: "red",
    LogSeverity.WARNING: "yellow",
    LogSeverity.SUCCESS: "green",
    LogSeverity.INFO: "",
}


class CliEmitter(DiagnosticEmitter):
    """Emit diagnostics using the rich-enabled CLI helpers."""

    def __init__(self, state: CLIState | None = None, *, debug_enabled: bool | None = None) -> None:
        self._state = state or get_cli_state()
        if debug_enabled is None:
            debug_enabled = self._state.show_tracebacks
        self.debug_enabled = bool(debug_enabled)
        self._lock = Lock()

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        emit_warning(message, exception=exc)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        emit_error(message, exception=exc)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        message = format_event_message(name, dict(payload))
        if not message:
            return
        with self._lock:
            render_message("info", message)


class EditorLineRenderer:
    """Print tailed Editor log lines, coloured by severity.

    Informational lines are only shown from ``-v`` upwards; warnings, errors
    and success markers are always printed.
    """

    def __init__(self, state: CLIState | None = None) -> None:
        self._state = state or get_cli_state()
        self._lock = Lock()

    def __call__(self, line: EditorLogLine) -> None:
        if line.severity is LogSeverity.INFO and self._state.verbosity < 1:
            return
        from rich.text import Text

        text = Text.assemble((f"[{line.phase}] ", "dim"), (line.text, _LINE_STYLES[line.severity]))
        with self._lock:
            self._state.err_console.print(text)


__all__ = ["CliEmitter", "EditorLineRenderer"]
