"""Epoch adapters and the resolver that picks one for a job."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Protocol

from fontpatcher.core.exceptions import AdapterRegistryError

from .detector import TargetVersionDetector
from .scripts import BuilderScript, BuilderScriptRegistry, default_registry
from .version import EditorVersion, Epoch, EpochMode, epoch_for_version


logger = logging.getLogger(__name__)


class EpochAdapter(Protocol):
    """Per-epoch behaviour consumed by the conversion pipeline."""

    epoch: Epoch
    name: str
    default_use_no_graphics: bool

    def builder_script(self) -> BuilderScript: ...


class _BaseEpochAdapter:
    epoch: Epoch
    default_use_no_graphics = False

    def __init__(self, scripts: BuilderScriptRegistry | None = None) -> None:
        self._scripts = scripts

    @property
    def name(self) -> str:
        return self.epoch.adapter_name

    def builder_script(self) -> BuilderScript:
        scripts = self._scripts if self._scripts is not None else default_registry()
        return scripts.get(self.epoch)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class LegacyEpochAdapter(_BaseEpochAdapter):
    """Editors from 2018 through 2020."""

    epoch = Epoch.LEGACY


class MidEpochAdapter(_BaseEpochAdapter):
    """Editors from 2021 through 2022."""

    epoch = Epoch.MID


class ModernEpochAdapter(_BaseEpochAdapter):
    """Editors from 2023 onwards, including the 6000 series."""

    epoch = Epoch.MODERN


class AdapterRegistry:
    """Closed epoch to adapter lookup."""

    def __init__(self, adapters: Iterable[EpochAdapter]) -> None:
        self._adapters: dict[Epoch, EpochAdapter] = {
            adapter.epoch: adapter for adapter in adapters
        }

    def get(self, epoch: Epoch) -> EpochAdapter:
        try:
            return self._adapters[epoch]
        except KeyError as exc:
            raise AdapterRegistryError(
                f"No epoch adapter registered for {epoch.adapter_name}."
            ) from exc

    @classmethod
    def create_default(cls, scripts: BuilderScriptRegistry | None = None) -> AdapterRegistry:
        return cls(
            [
                LegacyEpochAdapter(scripts),
                MidEpochAdapter(scripts),
                ModernEpochAdapter(scripts),
            ]
        )


@dataclass(frozen=True, slots=True)
class EpochResolution:
    """Selected epoch and the version it was derived from, if any."""

    epoch: Epoch
    version: EditorVersion | None


def version_from_editor_path(editor_path: str | os.PathLike[str] | None) -> EditorVersion | None:
    """Walk the executable's parent folders for one named after a version."""
    if not editor_path:
        return None
    for folder in Path(editor_path).parents:
        version = EditorVersion.try_parse(folder.name)
        if version is not None:
            return version
    return None


class EpochResolver:
    """Decide which epoch adapter drives a conversion."""

    def __init__(self, detector: TargetVersionDetector | None = None) -> None:
        self.detector = detector or TargetVersionDetector()

    def resolve(
        self,
        editor_path: str | os.PathLike[str] | None,
        *,
        mode: EpochMode = EpochMode.AUTO,
        explicit_version: str | None = None,
        target_game: str | os.PathLike[str] | None = None,
    ) -> EpochResolution:
        version = version_from_editor_path(editor_path)
        if version is None and explicit_version:
            version = EditorVersion.try_parse(explicit_version)
        if version is None:
            version = self.detector.detect(target_game)

        forced = mode.epoch
        if forced is not None:
            epoch = forced
        elif version is not None:
            epoch = epoch_for_version(version)
        else:
            epoch = Epoch.MID
        logger.debug(
            "Resolved epoch %s (version=%s, mode=%s)", epoch.adapter_name, version, mode.value
        )
        return EpochResolution(epoch=epoch, version=version)


__all__ = [
    "AdapterRegistry",
    "Epoch",
    "EpochAdapter",
    "EpochMode",
    "EpochResolution",
    "EpochResolver",
    "LegacyEpochAdapter",
    "MidEpochAdapter",
    "ModernEpochAdapter",
    "version_from_editor_path",
]
