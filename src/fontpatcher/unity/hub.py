"""Thin driver around the Hub's headless command line."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import Enum
import logging
import os
from pathlib import Path
import re
from threading import Lock

from fontpatcher.core.cancellation import CancellationToken
from fontpatcher.core.exceptions import HubError
from fontpatcher.core.process import ProcessResult, ProcessRunner

from .version import VERSION_PATTERN, EditorVersion


logger = logging.getLogger(__name__)

_CHANGESET_RE = re.compile(r"\b[a-f0-9]{12,40}\b", re.IGNORECASE)
_NOISE_MARKERS = ("invalid key:", "unityrelease:", "bit.ly/2xbvrpr#15")
_VERSION_NOT_FOUND_MARKERS = (
    "provided editor version does not match",
    "does not match to any known unity editor versions",
    "unknown unity editor version",
)
_DIRECT_UNSUPPORTED = "bad option: --headless"
_DOUBLE_DASH_UNSUPPORTED = "cannot find module '--headless'"


class HubCliMode(Enum):
    """Argument convention accepted by the installed Hub build."""

    DIRECT = "direct"
    DOUBLE_DASH = "double-dash"


@dataclass(frozen=True, slots=True)
class HubRelease:
    """An installable Editor release advertised by the Hub or the archive."""

    version: EditorVersion
    is_lts: bool = False
    changeset: str | None = None
    installer_url: str | None = None


def _lowered(result: ProcessResult) -> str:
    return result.combined.lower()


def is_direct_syntax_unsupported(result: ProcessResult) -> bool:
    return _DIRECT_UNSUPPORTED in _lowered(result)


def is_double_dash_syntax_unsupported(result: ProcessResult) -> bool:
    return _DOUBLE_DASH_UNSUPPORTED in _lowered(result)


def _is_syntax_issue(result: ProcessResult) -> bool:
    return is_direct_syntax_unsupported(result) or is_double_dash_syntax_unsupported(result)


def is_version_not_found(result: ProcessResult) -> bool:
    text = _lowered(result)
    return any(marker in text for marker in _VERSION_NOT_FOUND_MARKERS)


def parse_release_output(output: str) -> list[HubRelease]:
    """Parse ``editors --releases`` output into releases, newest first.

    Lines repeating a version are merged: the LTS flag is OR-ed and the first
    changeset seen is kept.
    """
    releases: dict[str, HubRelease] = {}
    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        lowered = line.lower()
        if any(marker in lowered for marker in _NOISE_MARKERS):
            continue

        lts = "lts" in lowered
        changeset_match = _CHANGESET_RE.search(line)
        changeset = changeset_match.group(0) if changeset_match else None
        for match in VERSION_PATTERN.finditer(line):
            version = EditorVersion.try_parse(match.group(0))
            if version is None:
                continue
            key = str(version)
            existing = releases.get(key)
            if existing is None:
                releases[key] = HubRelease(version=version, is_lts=lts, changeset=changeset)
                continue
            releases[key] = replace(
                existing,
                is_lts=existing.is_lts or lts,
                changeset=existing.changeset or changeset,
            )

    return sorted(releases.values(), key=lambda release: release.version, reverse=True)


class HubClient:
    """Run headless Hub commands, adapting to the accepted argument convention.

    The convention is detected once per client with ``--headless help`` and
    memoised; a later call reporting the active convention unsupported flips
    the mode and retries once.
    """

    def __init__(
        self,
        hub_path: str | os.PathLike[str],
        *,
        runner: ProcessRunner | None = None,
        cancel: CancellationToken | None = None,
    ) -> None:
        self.hub_path = Path(hub_path)
        self.runner = runner or ProcessRunner()
        self.cancel = cancel
        self._mode: HubCliMode | None = None
        self._mode_lock = Lock()

    @property
    def mode(self) -> HubCliMode | None:
        return self._mode

    def _invoke(self, arguments: Sequence[str]) -> ProcessResult:
        return self.runner.run(self.hub_path, list(arguments), cancel=self.cancel)

    @staticmethod
    def _arguments(mode: HubCliMode, arguments: Sequence[str]) -> list[str]:
        if mode is HubCliMode.DOUBLE_DASH:
            return ["--", *arguments]
        return list(arguments)

    def detect_mode(self) -> HubCliMode:
        with self._mode_lock:
            if self._mode is not None:
                return self._mode

            mode = HubCliMode.DIRECT
            direct = self._invoke(["--headless", "help"])
            if is_direct_syntax_unsupported(direct):
                legacy = self._invoke(["--", "--headless", "help"])
                if not is_double_dash_syntax_unsupported(legacy):
                    mode = HubCliMode.DOUBLE_DASH
            logger.debug("Hub CLI mode: %s", mode.value)
            self._mode = mode
            return mode

    def run(self, *arguments: str) -> ProcessResult:
        """Run ``--headless <arguments>`` using the memoised convention."""
        headless = ["--headless", *arguments]
        mode = self.detect_mode()
        result = self._invoke(self._arguments(mode, headless))

        fallback: HubCliMode | None = None
        if mode is HubCliMode.DIRECT and is_direct_syntax_unsupported(result):
            fallback = HubCliMode.DOUBLE_DASH
        elif mode is HubCliMode.DOUBLE_DASH and is_double_dash_syntax_unsupported(result):
            fallback = HubCliMode.DIRECT
        if fallback is None:
            return result

        with self._mode_lock:
            self._mode = fallback
        logger.debug("Hub rejected %s syntax, switching to %s", mode.value, fallback.value)
        return self._invoke(self._arguments(fallback, headless))

    def set_install_path(self, root: Path) -> None:
        root.mkdir(parents=True, exist_ok=True)
        result = self.run("install-path", "-s", str(root.resolve()))
        if result.exit_code != 0:
            raise HubError(
                f"Failed to configure Unity install root. Exit code: {result.exit_code}.\n"
                f"{result.merged_output()}"
            )

    def list_releases(self) -> list[HubRelease]:
        last: ProcessResult | None = None
        for variant in (("editors", "-r"), ("editors", "--releases")):
            result = self.run(*variant)
            last = result
            releases = parse_release_output(result.combined)
            if releases:
                return releases
            if result.exit_code == 0:
                continue
            if not _is_syntax_issue(result):
                break

        detail = f"\n{last.merged_output()}" if last is not None else ""
        raise HubError(f"Unable to get Unity release list from Hub CLI.{detail}")

    def install(self, release: HubRelease) -> ProcessResult:
        """Install ``release`` and return the last Hub invocation result.

        The changeset-qualified command is tried first; the plain one only
        runs when the Hub reports the version as unknown.
        """
        attempts: list[list[str]] = []
        if release.changeset:
            attempts.append(
                ["install", "--version", str(release.version), "--changeset", release.changeset]
            )
        attempts.append(["install", "--version", str(release.version)])

        result = self.run(*attempts[0])
        for attempt in attempts[1:]:
            if result.exit_code == 0 or not is_version_not_found(result):
                break
            result = self.run(*attempt)
        return result


__all__ = [
    "HubCliMode",
    "HubClient",
    "HubRelease",
    "is_direct_syntax_unsupported",
    "is_double_dash_syntax_unsupported",
    "is_version_not_found",
    "parse_release_output",
]
