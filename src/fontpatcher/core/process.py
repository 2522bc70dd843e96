"""Subprocess execution with transient file-lock retries and cancellation."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
import errno
import logging
from pathlib import Path
import subprocess

import psutil

from .cancellation import CancellationToken, ensure_token
from .exceptions import FontPatcherError


logger = logging.getLogger(__name__)

_WINDOWS_SHARING_VIOLATION = 32
_WINDOWS_LOCK_VIOLATION = 33
_LOCK_MESSAGES = ("used by another process", "cannot access the file", "text file busy")


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Exit status and captured output of a finished process."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def combined(self) -> str:
        return f"{self.stdout}\n{self.stderr}"

    def merged_output(self) -> str:
        """Render both streams for inclusion in an error message."""
        stdout = self.stdout.strip()
        stderr = self.stderr.strip()
        if not stdout and not stderr:
            return "No command output."
        return f"stdout:\n{stdout}\n\nstderr:\n{stderr}"


def is_transient_lock_error(exc: BaseException) -> bool:
    """Return whether ``exc`` looks like a file held open by another process."""
    if isinstance(exc, OSError):
        winerror = getattr(exc, "winerror", None)
        if winerror in {_WINDOWS_SHARING_VIOLATION, _WINDOWS_LOCK_VIOLATION}:
            return True
        if exc.errno == errno.ETXTBSY:
            return True
    message = str(exc).lower()
    return any(token in message for token in _LOCK_MESSAGES)


def kill_process_tree(pid: int) -> None:
    """Forcefully terminate ``pid`` and every child it spawned."""
    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return
    try:
        children = parent.children(recursive=True)
    except psutil.Error:
        children = []
    for proc in [*children, parent]:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            logger.debug("Access denied while killing process %s", proc.pid)
    psutil.wait_procs([*children, parent], timeout=5)


class ProcessRunner:
    """Start external programs and collect their output.

    Launch failures caused by a locked executable (common right after an
    installer finished writing it) are retried with a fixed backoff.
    """

    def __init__(
        self,
        *,
        start_attempts: int = 10,
        start_retry_delay: float = 2.0,
        poll_interval: float = 0.25,
    ) -> None:
        self.start_attempts = max(1, start_attempts)
        self.start_retry_delay = start_retry_delay
        self.poll_interval = poll_interval

    def run(
        self,
        executable: str | Path,
        arguments: Sequence[str] = (),
        *,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        cancel: CancellationToken | None = None,
    ) -> ProcessResult:
        token = ensure_token(cancel)
        argv = [str(executable), *arguments]
        process = self._start(argv, cwd=cwd, env=env, token=token)
        logger.debug("Started pid %s: %s", process.pid, argv)

        try:
            while True:
                if token.cancelled:
                    kill_process_tree(process.pid)
                    process.communicate()
                    token.raise_if_cancelled()
                try:
                    out, err = process.communicate(timeout=self.poll_interval)
                except subprocess.TimeoutExpired:
                    continue
                break
        except KeyboardInterrupt:
            kill_process_tree(process.pid)
            raise

        return ProcessResult(
            exit_code=process.returncode,
            stdout=out or "",
            stderr=err or "",
        )

    def _start(
        self,
        argv: list[str],
        *,
        cwd: str | Path | None,
        env: Mapping[str, str] | None,
        token: CancellationToken,
    ) -> subprocess.Popen[str]:
        last_error: OSError | None = None
        for attempt in range(1, self.start_attempts + 1):
            token.raise_if_cancelled()
            try:
                return subprocess.Popen(
                    argv,
                    cwd=str(cwd) if cwd is not None else None,
                    env=dict(env) if env is not None else None,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    text=True,
                    encoding="utf-8",
                    errors="replace",
                )
            except OSError as exc:
                if not is_transient_lock_error(exc) or attempt == self.start_attempts:
                    last_error = exc
                    break
                logger.debug(
                    "Executable %s is locked (attempt %s/%s): %s",
                    argv[0],
                    attempt,
                    self.start_attempts,
                    exc,
                )
                token.sleep(self.start_retry_delay)
        raise FontPatcherError(f"Failed to start process: {argv[0]}") from last_error


__all__ = [
    "ProcessResult",
    "ProcessRunner",
    "is_transient_lock_error",
    "kill_process_tree",
]
