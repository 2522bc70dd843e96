"""Failure classification for Editor invocations."""

from __future__ import annotations

import logging
from pathlib import Path

from fontpatcher.core.cancellation import CancellationToken, ensure_token
from fontpatcher.core.exceptions import EditorExecutionError


logger = logging.getLogger(__name__)

LICENSING_EXIT_CODE = 199
LOG_TAIL_LINES = 120
LICENSING_HINT = (
    "Unity licensing issue detected. Open this Unity editor version once interactively "
    "and complete license activation, then re-run fontpatcher in batch mode."
)
_LICENSING_MARKERS = (
    "license client",
    "licensing::module",
    "ipc channel to licensingclient",
    "failed to activate/update license",
)


def read_log_lines(
    path: Path,
    *,
    attempts: int = 15,
    delay: float = 0.5,
    cancel: CancellationToken | None = None,
) -> list[str]:
    """Read every line of ``path``, retrying while the Editor still holds it."""
    token = ensure_token(cancel)
    for attempt in range(1, attempts + 1):
        try:
            with path.open("r", encoding="utf-8", errors="replace") as handle:
                return [line.rstrip("\r\n") for line in handle]
        except OSError as exc:
            if attempt == attempts:
                logger.debug("Giving up reading %s: %s", path, exc)
                break
            token.sleep(delay)
    return []


def read_log_tail(
    path: Path,
    max_lines: int = LOG_TAIL_LINES,
    *,
    attempts: int = 15,
    delay: float = 0.5,
    cancel: CancellationToken | None = None,
) -> str:
    if not path.exists():
        return f"Unity log file is missing: {path}"
    lines = read_log_lines(path, attempts=attempts, delay=delay, cancel=cancel)
    return f"Unity log tail ({path}):\n" + "\n".join(lines[-max_lines:])


def looks_like_licensing_issue(exit_code: int, log_text: str) -> bool:
    if exit_code == LICENSING_EXIT_CODE:
        return True
    lowered = log_text.lower()
    return any(marker in lowered for marker in _LICENSING_MARKERS)


def classify_failure(
    summary: str,
    exit_code: int,
    log_path: Path,
    *,
    cancel: CancellationToken | None = None,
) -> EditorExecutionError:
    """Build the error raised for a non-zero Editor exit.

    The message embeds the log tail, prefixed by the licensing hint when the
    exit code or the log points at an activation problem.
    """
    tail = read_log_tail(log_path, cancel=cancel)
    licensing = looks_like_licensing_issue(exit_code, tail)
    hint = f"{LICENSING_HINT}\n" if licensing else ""
    return EditorExecutionError(
        f"{summary} Exit code: {exit_code}\n{hint}{tail}",
        exit_code=exit_code,
        log_tail=tail,
        licensing=licensing,
    )


__all__ = [
    "LICENSING_EXIT_CODE",
    "LICENSING_HINT",
    "LOG_TAIL_LINES",
    "classify_failure",
    "looks_like_licensing_issue",
    "read_log_lines",
    "read_log_tail",
]
