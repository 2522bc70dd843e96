"""Incremental tailing of Editor log files while a phase runs."""

from __future__ import annotations

from collections.abc import Callable
import codecs
from dataclasses import dataclass
from enum import Enum
import logging
from pathlib import Path
import re
from threading import Event, Thread
from types import TracebackType

from fontpatcher.core.cancellation import CancellationToken, ensure_token


logger = logging.getLogger(__name__)


class LogSeverity(Enum):
    """Presentation severity inferred from an Editor log line."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class EditorLogLine:
    """A complete line read from an Editor log during a phase."""

    phase: str
    text: str
    severity: LogSeverity

    def __str__(self) -> str:
        return f"[{self.phase}] {self.text}"


_SEVERITY_PATTERNS: list[tuple[re.Pattern[str], LogSeverity]] = [
    (re.compile(r"error|failed|exception", re.I), LogSeverity.ERROR),
    (re.compile(r"warn", re.I), LogSeverity.WARNING),
    (re.compile(r"success|completed", re.I), LogSeverity.SUCCESS),
]


def classify_line(text: str) -> LogSeverity:
    for pattern, severity in _SEVERITY_PATTERNS:
        if pattern.search(text):
            return severity
    return LogSeverity.INFO


LineCallback = Callable[[EditorLogLine], None]


def log_line(line: EditorLogLine) -> None:
    """Default sink forwarding tailed lines to the module logger."""
    if line.severity is LogSeverity.ERROR:
        logger.error("%s", line)
    elif line.severity is LogSeverity.WARNING:
        logger.warning("%s", line)
    else:
        logger.info("%s", line)


class LogTailer:
    """Poll a growing log file on a background thread and emit whole lines.

    The trailing partial line is held across polls. Once :meth:`stop` signals
    that the process exited, polling continues on a shorter interval until
    ``idle_polls`` consecutive polls return nothing, then the pending partial
    line is flushed.
    """

    def __init__(
        self,
        path: Path,
        phase: str,
        on_line: LineCallback | None = None,
        *,
        poll_interval: float = 0.25,
        exit_poll_interval: float = 0.12,
        idle_polls: int = 3,
        cancel: CancellationToken | None = None,
    ) -> None:
        self.path = path
        self.phase = phase
        self.on_line = on_line or log_line
        self.poll_interval = poll_interval
        self.exit_poll_interval = exit_poll_interval
        self.idle_polls = idle_polls
        self._token = ensure_token(cancel)
        self._exited = Event()
        self._offset = 0
        self._pending = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._thread = Thread(target=self._run, name=f"fontpatcher-tail-{phase}", daemon=True)

    def __enter__(self) -> LogTailer:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        """Signal process exit and wait for the final lines to drain."""
        self._exited.set()
        self._thread.join()

    def _run(self) -> None:
        idle_after_exit = 0
        while not self._token.cancelled:
            had_data = self._poll()
            if not self._exited.is_set():
                self._token.wait(self.poll_interval)
                continue
            idle_after_exit = 0 if had_data else idle_after_exit + 1
            if idle_after_exit >= self.idle_polls:
                break
            self._token.wait(self.exit_poll_interval)
        self._flush()

    def _poll(self) -> bool:
        chunk = self._read_new_bytes()
        if not chunk:
            return False
        text = self._decoder.decode(chunk)
        if not text:
            return True
        parts = (self._pending + text).split("\n")
        self._pending = parts.pop()
        for part in parts:
            self._emit(part)
        return True

    def _read_new_bytes(self) -> bytes:
        try:
            with self.path.open("rb") as handle:
                size = handle.seek(0, 2)
                if self._offset > size:
                    self._offset = 0
                if self._offset >= size:
                    return b""
                handle.seek(self._offset)
                data = handle.read(size - self._offset)
        except OSError:
            return b""
        self._offset += len(data)
        return data

    def _flush(self) -> None:
        self._pending += self._decoder.decode(b"", final=True)
        if self._pending:
            self._emit(self._pending)
            self._pending = ""

    def _emit(self, raw: str) -> None:
        text = raw.rstrip("\r\n")
        if not text.strip():
            return
        try:
            self.on_line(EditorLogLine(self.phase, text, classify_line(text)))
        except Exception:
            logger.debug("Log line callback failed", exc_info=True)


__all__ = [
    "EditorLogLine",
    "LineCallback",
    "LogSeverity",
    "LogTailer",
    "classify_line",
    "log_line",
]
