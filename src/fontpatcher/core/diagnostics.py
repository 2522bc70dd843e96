"""Diagnostic abstractions shared across provisioning and conversion."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any, Protocol, runtime_checkable


logger = logging.getLogger(__name__)


@runtime_checkable
class DiagnosticEmitter(Protocol):
    """Interface used to surface warnings, errors, and structured events."""

    debug_enabled: bool

    def warning(self, message: str, exc: BaseException | None = None) -> None: ...

    def error(self, message: str, exc: BaseException | None = None) -> None: ...

    def event(self, name: str, payload: Mapping[str, Any]) -> None: ...


class NullEmitter:
    """Emitter that ignores every diagnostic."""

    debug_enabled: bool = False

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        return

    def error(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        return


class LoggingEmitter:
    """Emitter that forwards diagnostics to the standard logging module."""

    def __init__(
        self, *, logger_obj: logging.Logger | None = None, debug_enabled: bool = False
    ) -> None:
        self._logger = logger_obj or logger
        self.debug_enabled = debug_enabled

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.warning(message, exc_info=exc)
        else:
            self._logger.warning(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.error(message, exc_info=exc)
        else:
            self._logger.error(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        message = format_event_message(name, payload)
        if message:
            self._logger.info(message)
            return
        self._logger.debug("diagnostic event %s: %s", name, dict(payload))


def ensure_emitter(emitter: DiagnosticEmitter | None) -> DiagnosticEmitter:
    """Return ``emitter`` or a logging-backed default."""
    return emitter if emitter is not None else LoggingEmitter()


def format_event_message(name: str, payload: Mapping[str, Any]) -> str | None:
    """Return a human-friendly summary for selected diagnostic events."""
    data = dict(payload)

    if name == "editor_resolved":
        path = data.get("path") or "<unknown>"
        source = data.get("source")
        suffix = f" ({source})" if source else ""
        return f"Using Unity Editor: {path}{suffix}"

    if name == "release_substituted":
        return (
            f"Requested Unity {data.get('requested')} is unavailable in Hub releases. "
            f"Using closest available {data.get('selected')}."
        )

    if name == "editor_install":
        return f"Installing Unity {data.get('version')} into {data.get('root')}"

    if name == "direct_installer":
        status = data.get("status") or "start"
        version = data.get("version")
        if status == "start":
            return f"Trying direct Unity installer fallback for {version}."
        if status == "ok":
            return f"Direct installer fallback succeeded for {version}."
        return None

    if name == "hub_install":
        return "Downloading and installing Unity Hub"

    if name == "phase":
        phase = data.get("phase") or "<phase>"
        status = data.get("status")
        if status == "start":
            return f"[{phase}] start"
        if status == "completed":
            return f"[{phase}] completed (exit={data.get('exit_code')})"
        return None

    if name == "epoch_resolved":
        version = data.get("version") or "unknown version"
        return f"Epoch adapter: {data.get('adapter')} ({version})"

    return None


__all__ = [
    "DiagnosticEmitter",
    "LoggingEmitter",
    "NullEmitter",
    "ensure_emitter",
    "format_event_message",
]
