"""Managed home for provisioned Editors and downloaded installers."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
import os
from pathlib import Path
import sys
from threading import RLock


HOME_ENV = "FONTPATCHER_HOME"
CACHE_ENV = "FONTPATCHER_CACHE_DIR"
EDITORS_NAMESPACE = "editors"
INSTALLERS_NAMESPACE = "installers"

_OVERRIDE: FontPatcherUserDir | None = None
_LOCK = RLock()


def _default_home() -> Path:
    if sys.platform.startswith("win"):
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            return Path(local_app_data) / "FontPatcher"
    return Path.home() / ".fontpatcher"


@dataclass(frozen=True, slots=True)
class FontPatcherUserDir:
    """Resolved home and cache roots.

    The home holds the managed Editor install root; the cache holds
    installers while they are downloaded and run.
    """

    root: Path
    cache_root: Path

    @classmethod
    def resolve(
        cls,
        root: str | os.PathLike[str] | None = None,
        cache_root: str | os.PathLike[str] | None = None,
    ) -> FontPatcherUserDir:
        """Resolve explicit values first, then the environment, then the defaults."""
        home_value = root or os.environ.get(HOME_ENV, "").strip()
        home = Path(home_value).expanduser() if home_value else _default_home()
        cache_value = cache_root or os.environ.get(CACHE_ENV, "").strip()
        cache = Path(cache_value).expanduser() if cache_value else home / "cache"
        return cls(root=home, cache_root=cache)

    @property
    def editors_root(self) -> Path:
        return self.root / EDITORS_NAMESPACE

    @property
    def installers_dir(self) -> Path:
        return self.cache_root / INSTALLERS_NAMESPACE

    def installer_path(self, name: str) -> Path:
        """Return where a downloaded installer named ``name`` is stored."""
        self.installers_dir.mkdir(parents=True, exist_ok=True)
        return self.installers_dir / name


def get_user_dir() -> FontPatcherUserDir:
    """Return the active override, or resolve from the current environment."""
    with _LOCK:
        if _OVERRIDE is not None:
            return _OVERRIDE
    return FontPatcherUserDir.resolve()


def default_install_root() -> Path:
    """Return the managed Editor install root (never created implicitly)."""
    return get_user_dir().editors_root


@contextmanager
def user_dir_context(
    *,
    root: str | os.PathLike[str] | None = None,
    cache_root: str | os.PathLike[str] | None = None,
) -> Iterator[FontPatcherUserDir]:
    """Temporarily pin the user dir, restoring the previous one on exit."""
    global _OVERRIDE
    current = FontPatcherUserDir.resolve(root, cache_root)
    with _LOCK:
        previous = _OVERRIDE
        _OVERRIDE = current
    try:
        yield current
    finally:
        with _LOCK:
            _OVERRIDE = previous


__all__ = [
    "CACHE_ENV",
    "HOME_ENV",
    "FontPatcherUserDir",
    "default_install_root",
    "get_user_dir",
    "user_dir_context",
]
