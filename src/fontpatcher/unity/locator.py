"""Discovery of installed Editors and of the Hub executable."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
import logging
import os
from pathlib import Path
import sys

from fontpatcher.core.exceptions import EditorNotFoundError

from .version import EditorVersion


logger = logging.getLogger(__name__)

EDITOR_PATH_ENV = "UNITY_EDITOR_PATH"
HUB_PATH_ENV = "UNITY_HUB_PATH"

_EDITOR_EXECUTABLES: dict[str, tuple[str, ...]] = {
    "windows": ("Editor", "Unity.exe"),
    "linux": ("Editor", "Unity"),
    "darwin": ("Unity.app", "Contents", "MacOS", "Unity"),
}

_HUB_EXECUTABLES: dict[str, tuple[str, ...]] = {
    "windows": ("Unity Hub.exe",),
    "linux": ("unityhub",),
    "darwin": ("Unity Hub.app", "Contents", "MacOS", "Unity Hub"),
}


def current_platform() -> str:
    """Return ``windows``, ``darwin`` or ``linux`` for the running interpreter."""
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "darwin"
    return "linux"


def editor_executable(version_dir: Path, platform: str | None = None) -> Path:
    """Return the Editor executable path expected inside ``version_dir``."""
    return version_dir.joinpath(*_EDITOR_EXECUTABLES[platform or current_platform()])


def version_dir_for(executable: Path, platform: str | None = None) -> Path:
    """Return the version folder that owns an Editor executable."""
    depth = len(_EDITOR_EXECUTABLES[platform or current_platform()])
    folder = executable
    for _ in range(depth):
        folder = folder.parent
    return folder


@dataclass(frozen=True, slots=True)
class InstalledEditor:
    """An Editor found on disk during a discovery scan."""

    version: EditorVersion
    path: Path
    root: Path


def _absolute(path: str | os.PathLike[str]) -> Path:
    return Path(os.path.abspath(os.path.expanduser(os.fspath(path))))


def _path_key(path: Path) -> str:
    return os.path.normcase(str(path)).lower()


class EditorLocator:
    """Scan candidate install roots for version folders holding an Editor."""

    def __init__(
        self,
        *,
        platform: str | None = None,
        environ: Mapping[str, str] | None = None,
        include_default_roots: bool = True,
    ) -> None:
        self.platform = platform or current_platform()
        self._environ = environ
        self.include_default_roots = include_default_roots

    @property
    def environ(self) -> Mapping[str, str]:
        return os.environ if self._environ is None else self._environ

    def executable_in(self, version_dir: Path) -> Path:
        return editor_executable(version_dir, self.platform)

    def resolve_candidate(self, candidate: str | os.PathLike[str]) -> Path:
        """Join a directory candidate with the Editor executable when present."""
        full = _absolute(candidate)
        if full.is_dir():
            joined = self.executable_in(full)
            if joined.is_file():
                return joined
        return full

    def resolve_explicit_path(self, explicit: str | os.PathLike[str]) -> Path:
        resolved = self.resolve_candidate(explicit)
        if resolved.is_file():
            return resolved
        raise EditorNotFoundError(f"Unity Editor was not found at provided path: {resolved}")

    def from_environment(self) -> Path | None:
        value = self.environ.get(EDITOR_PATH_ENV, "").strip()
        if not value:
            return None
        resolved = self.resolve_candidate(value)
        return resolved if resolved.is_file() else None

    def default_roots(self) -> list[Path]:
        env = self.environ
        roots: list[Path] = []
        if self.platform == "windows":
            for variable in ("ProgramFiles", "ProgramFiles(x86)", "ProgramW6432"):
                base = env.get(variable, "").strip()
                if base:
                    roots.append(Path(base, "Unity", "Hub", "Editor"))
                    roots.append(Path(base, "Unity"))
            local = env.get("LOCALAPPDATA", "").strip()
            if local:
                roots.append(Path(local, "Programs", "Unity", "Hub", "Editor"))
                roots.append(Path(local, "Unity", "Hub", "Editor"))
        elif self.platform == "darwin":
            roots.append(Path("/Applications/Unity/Hub/Editor"))
            roots.append(Path.home() / "Applications" / "Unity" / "Hub" / "Editor")
        else:
            roots.append(Path.home() / "Unity" / "Hub" / "Editor")
            roots.append(Path("/opt/unity/editors"))
            roots.append(Path("/opt/Unity/Hub/Editor"))
        return roots

    def candidate_roots(self, install_root: str | os.PathLike[str] | None) -> list[Path]:
        roots: list[Path] = []
        if install_root:
            roots.append(_absolute(install_root))
        if self.include_default_roots:
            roots.extend(self.default_roots())

        unique: list[Path] = []
        seen: set[str] = set()
        for root in roots:
            key = _path_key(root)
            if key not in seen:
                seen.add(key)
                unique.append(root)
        return unique

    def discover(self, install_root: str | os.PathLike[str] | None = None) -> list[InstalledEditor]:
        """Return every installed Editor, newest first, ties ordered by path."""
        found: dict[str, InstalledEditor] = {}
        for root in self.candidate_roots(install_root):
            self._collect(found, root, root)
            if not root.is_dir():
                continue
            try:
                children = sorted(child for child in root.iterdir() if child.is_dir())
            except OSError as exc:
                logger.debug("Unable to scan Editor root %s: %s", root, exc)
                continue
            for child in children:
                self._collect(found, root, child)

        editors = sorted(found.values(), key=lambda item: _path_key(item.path))
        editors.sort(key=lambda item: item.version, reverse=True)
        return editors

    def find_exact_version(
        self, install_root: str | os.PathLike[str] | None, version: EditorVersion
    ) -> Path | None:
        for editor in self.discover(install_root):
            if editor.version == version:
                return editor.path
        return None

    def find_latest_installed(self, install_root: str | os.PathLike[str] | None) -> Path | None:
        editors = self.discover(install_root)
        return editors[0].path if editors else None

    def _collect(self, found: dict[str, InstalledEditor], root: Path, version_dir: Path) -> None:
        version = EditorVersion.from_name(version_dir.name)
        if version is None:
            return
        executable = self.executable_in(version_dir)
        if not executable.is_file():
            return
        found.setdefault(_path_key(executable), InstalledEditor(version, executable, root))


class HubLocator:
    """Resolve the Hub executable from an explicit path, the environment or defaults."""

    def __init__(
        self,
        *,
        platform: str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.platform = platform or current_platform()
        self._environ = environ

    @property
    def environ(self) -> Mapping[str, str]:
        return os.environ if self._environ is None else self._environ

    def resolve_candidate(self, candidate: str | os.PathLike[str]) -> Path:
        full = _absolute(candidate)
        if full.is_dir():
            joined = full.joinpath(*_HUB_EXECUTABLES[self.platform])
            if joined.is_file():
                return joined
        return full

    def resolve(self, explicit: str | os.PathLike[str] | None = None) -> Path | None:
        """Return the first existing Hub executable, or ``None``.

        An explicit path that does not exist yields ``None`` without falling
        back to other locations.
        """
        if explicit:
            resolved = self.resolve_candidate(explicit)
            return resolved if resolved.is_file() else None

        from_env = self.environ.get(HUB_PATH_ENV, "").strip()
        if from_env:
            resolved = self.resolve_candidate(from_env)
            if resolved.is_file():
                return resolved

        return self.installed_path()

    def installed_path(self) -> Path | None:
        return next(_existing(self.default_candidates()), None)

    def default_candidates(self) -> list[Path]:
        env = self.environ
        if self.platform == "windows":
            candidates = []
            program_files = env.get("ProgramFiles", "").strip()
            if program_files:
                candidates.append(Path(program_files, "Unity Hub", "Unity Hub.exe"))
            local = env.get("LOCALAPPDATA", "").strip()
            if local:
                candidates.append(Path(local, "Programs", "Unity Hub", "Unity Hub.exe"))
            return candidates
        if self.platform == "darwin":
            return [Path("/Applications/Unity Hub.app/Contents/MacOS/Unity Hub")]
        return [
            Path("/usr/bin/unityhub"),
            Path("/opt/unityhub/unityhub"),
            Path.home() / "Applications" / "Unity Hub.AppImage",
        ]


def _existing(paths: Iterable[Path]) -> Iterator[Path]:
    return (path for path in paths if path.is_file())


__all__ = [
    "EDITOR_PATH_ENV",
    "HUB_PATH_ENV",
    "EditorLocator",
    "HubLocator",
    "InstalledEditor",
    "current_platform",
    "editor_executable",
    "version_dir_for",
]
