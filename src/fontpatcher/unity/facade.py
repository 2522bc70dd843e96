"""Check, list and install flows used by front ends."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path

from fontpatcher.core.cancellation import CancellationToken
from fontpatcher.core.exceptions import EditorNotFoundError
from fontpatcher.core.options import ConversionOptions

from .detector import TargetVersionDetector
from .epochs import version_from_editor_path
from .locator import EditorLocator, InstalledEditor, version_dir_for
from .provisioner import AutoProvisioner, effective_install_root
from .version import EditorVersion


logger = logging.getLogger(__name__)

MAX_LISTED_VERSIONS = 6


@dataclass(slots=True)
class RequirementCheck:
    """Outcome of checking whether the required Editor is installed."""

    has_required_version: bool
    required_version: str | None
    is_installed: bool
    installed_path: Path | None
    message: str


@dataclass(slots=True)
class InstallOutcome:
    """Outcome of an install request."""

    success: bool
    required_version: str | None
    installed_path: Path | None
    message: str


def installed_versions_hint(editors: list[InstalledEditor]) -> str:
    if not editors:
        return " No installed Unity editors were detected."
    versions: list[str] = []
    for editor in editors:
        text = str(editor.version)
        if text not in versions:
            versions.append(text)
        if len(versions) == MAX_LISTED_VERSIONS:
            break
    return f" Installed versions: {', '.join(versions)}."


class ProvisioningFacade:
    def __init__(
        self,
        *,
        locator: EditorLocator | None = None,
        detector: TargetVersionDetector | None = None,
        provisioner: AutoProvisioner | None = None,
    ) -> None:
        self.locator = locator or EditorLocator()
        self.detector = detector or TargetVersionDetector()
        self._provisioner = provisioner

    @property
    def provisioner(self) -> AutoProvisioner:
        if self._provisioner is None:
            self._provisioner = AutoProvisioner(locator=self.locator, detector=self.detector)
        return self._provisioner

    def check_required_version(
        self,
        required_version: str | None = None,
        *,
        target_game: str | os.PathLike[str] | None = None,
        install_root: str | os.PathLike[str] | None = None,
        editor_path: str | os.PathLike[str] | None = None,
    ) -> RequirementCheck:
        raw = self._required_version(required_version, target_game)
        if raw is None:
            return RequirementCheck(
                has_required_version=False,
                required_version=None,
                is_installed=False,
                installed_path=None,
                message=(
                    "Unity version is not defined yet. "
                    "Select a target game or set the target version manually."
                ),
            )

        required = EditorVersion.try_parse(raw)
        if required is None:
            return RequirementCheck(
                has_required_version=False,
                required_version=raw,
                is_installed=False,
                installed_path=None,
                message=f"Unity version '{raw}' has invalid format. Example: 2022.3.62f1",
            )

        explicit = self._match_explicit_editor(required, editor_path)
        if explicit is not None:
            return RequirementCheck(
                has_required_version=True,
                required_version=str(required),
                is_installed=True,
                installed_path=explicit,
                message=f"Unity {required} is installed (explicit path).",
            )

        discovered = self._discover(install_root, editor_path)
        for editor in discovered:
            if editor.version == required:
                return RequirementCheck(
                    has_required_version=True,
                    required_version=str(required),
                    is_installed=True,
                    installed_path=editor.path,
                    message=f"Unity {required} is installed.",
                )

        return RequirementCheck(
            has_required_version=True,
            required_version=str(required),
            is_installed=False,
            installed_path=None,
            message=f"Unity {required} was not found.{installed_versions_hint(discovered)}",
        )

    def discover_installed_versions(
        self,
        install_root: str | os.PathLike[str] | None = None,
        editor_path: str | os.PathLike[str] | None = None,
    ) -> list[InstalledEditor]:
        return self._discover(install_root, editor_path)

    def install_required_version(
        self,
        required_version: str | None = None,
        *,
        target_game: str | os.PathLike[str] | None = None,
        install_root: str | os.PathLike[str] | None = None,
        hub_path: str | os.PathLike[str] | None = None,
        editor_path: str | os.PathLike[str] | None = None,
        prefer_lts: bool = True,
        auto_install_hub: bool = True,
        cancel: CancellationToken | None = None,
    ) -> InstallOutcome:
        initial = self.check_required_version(
            required_version,
            target_game=target_game,
            install_root=install_root,
            editor_path=editor_path,
        )
        if not initial.has_required_version or initial.is_installed:
            return InstallOutcome(
                success=initial.is_installed,
                required_version=initial.required_version,
                installed_path=initial.installed_path,
                message=initial.message,
            )

        options = ConversionOptions(
            hub_path=_optional_path(hub_path),
            editor_version=initial.required_version,
            target_game=_optional_path(target_game),
            install_root=_optional_path(install_root),
            auto_install_editor=True,
            auto_install_hub=auto_install_hub,
            prefer_lts=prefer_lts,
        )
        resolved = self.provisioner.resolve_editor(options, cancel)

        after = self.check_required_version(
            initial.required_version,
            target_game=target_game,
            install_root=install_root,
            editor_path=resolved,
        )
        if after.is_installed:
            return InstallOutcome(
                success=True,
                required_version=after.required_version,
                installed_path=after.installed_path,
                message=f"Unity {after.required_version} installed successfully.",
            )

        detected = version_from_editor_path(resolved)
        suffix = f" Detected installed version: {detected}." if detected else ""
        return InstallOutcome(
            success=False,
            required_version=initial.required_version,
            installed_path=resolved,
            message=(
                f"Unity {initial.required_version} is still missing after install attempt.{suffix}"
            ),
        )

    def _required_version(
        self, required_version: str | None, target_game: str | os.PathLike[str] | None
    ) -> str | None:
        if required_version and required_version.strip():
            return required_version.strip()
        detected = self.detector.detect(target_game)
        return str(detected) if detected else None

    def _resolve_explicit(self, editor_path: str | os.PathLike[str] | None) -> Path | None:
        if not editor_path:
            return None
        try:
            return self.locator.resolve_explicit_path(editor_path)
        except EditorNotFoundError:
            return None

    def _match_explicit_editor(
        self, required: EditorVersion, editor_path: str | os.PathLike[str] | None
    ) -> Path | None:
        resolved = self._resolve_explicit(editor_path)
        if resolved is None:
            return None
        return resolved if version_from_editor_path(resolved) == required else None

    def _discover(
        self,
        install_root: str | os.PathLike[str] | None,
        editor_path: str | os.PathLike[str] | None,
    ) -> list[InstalledEditor]:
        found: dict[str, InstalledEditor] = {}
        roots: list[Path] = [effective_install_root(install_root)]
        explicit = self._resolve_explicit(editor_path)
        if explicit is not None:
            roots.append(version_dir_for(explicit, self.locator.platform).parent)

        for root in roots:
            for editor in self.locator.discover(root):
                found.setdefault(os.path.normcase(str(editor.path)).lower(), editor)

        editors = sorted(found.values(), key=lambda item: str(item.path).lower())
        editors.sort(key=lambda item: item.version, reverse=True)
        return editors


def _optional_path(value: str | os.PathLike[str] | None) -> Path | None:
    return Path(os.path.abspath(value)) if value else None


__all__ = [
    "InstallOutcome",
    "ProvisioningFacade",
    "RequirementCheck",
    "installed_versions_hint",
]
