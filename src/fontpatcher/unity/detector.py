"""Detect the engine version a shipped game was built with."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pefile

from .version import EditorVersion


logger = logging.getLogger(__name__)

RUNTIME_LIBRARY = "UnityPlayer.dll"
_VERSION_FIELDS = ("ProductVersion", "FileVersion", "Comments")


def _text(value: bytes | str) -> str:
    return value.decode("utf-8", "replace") if isinstance(value, bytes) else value


def read_version_strings(path: Path) -> dict[str, str]:
    """Return the ``StringFileInfo`` entries of a PE file's version resource."""
    pe = pefile.PE(str(path), fast_load=True)
    try:
        pe.parse_data_directories(
            directories=[pefile.DIRECTORY_ENTRY["IMAGE_DIRECTORY_ENTRY_RESOURCE"]]
        )
        strings: dict[str, str] = {}
        for group in getattr(pe, "FileInfo", None) or []:
            entries = group if isinstance(group, list) else [group]
            for entry in entries:
                if getattr(entry, "Key", b"") != b"StringFileInfo":
                    continue
                for table in entry.StringTable:
                    for key, value in table.entries.items():
                        strings.setdefault(_text(key), _text(value))
        return strings
    finally:
        pe.close()


def locate_runtime_library(target: Path) -> Path | None:
    """Find the runtime library for a game executable, directory or ``*_Data`` folder."""
    if target.is_file():
        if target.name.lower() == RUNTIME_LIBRARY.lower():
            return target
        sibling = target.parent / RUNTIME_LIBRARY
        return sibling if sibling.is_file() else None

    if not target.is_dir():
        return None

    direct = target / RUNTIME_LIBRARY
    if direct.is_file():
        return direct

    if target.name.lower().endswith("_data"):
        sibling = target.parent / RUNTIME_LIBRARY
        if sibling.is_file():
            return sibling

    for child in sorted(target.iterdir()):
        if child.is_file() and child.name.lower() == RUNTIME_LIBRARY.lower():
            return child
    return None


class TargetVersionDetector:
    """Best-effort version detection from a game's runtime library."""

    def detect(self, target: str | os.PathLike[str] | None) -> EditorVersion | None:
        if not target:
            return None
        try:
            library = locate_runtime_library(Path(os.path.abspath(target)))
            if library is None:
                return None
            strings = read_version_strings(library)
        except (OSError, pefile.PEFormatError) as exc:
            logger.debug("Unable to read version info from %s: %s", target, exc)
            return None

        raw = next(
            (strings[name] for name in _VERSION_FIELDS if strings.get(name, "").strip()),
            None,
        )
        version = EditorVersion.extract(raw)
        if version is not None:
            logger.debug("Detected engine version %s from %s", version, library)
        return version


__all__ = [
    "RUNTIME_LIBRARY",
    "TargetVersionDetector",
    "locate_runtime_library",
    "read_version_strings",
]
