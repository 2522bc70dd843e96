"""Resolve a runnable Editor, installing one through the Hub when needed.

Resolution is an ordered chain of resolvers; the first one returning a path
wins. Only the final resolver touches the network or installs software.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
import os
from pathlib import Path
import shutil
import time
import uuid

import psutil

from fontpatcher.core.cancellation import CancellationToken, ensure_token
from fontpatcher.core.diagnostics import DiagnosticEmitter, ensure_emitter
from fontpatcher.core.exceptions import (
    FontPatcherError,
    HubError,
    OperationCancelled,
    ProvisioningError,
    VersionFormatError,
)
from fontpatcher.core.options import ConversionOptions
from fontpatcher.core.process import ProcessRunner
from fontpatcher.core.user_dir import default_install_root, get_user_dir

from .archive import HUB_INSTALLER_URL, ReleaseArchive
from .detector import TargetVersionDetector
from .hub import HubClient, HubRelease
from .locator import EditorLocator, HubLocator, version_dir_for
from .version import EditorVersion, closest_in_train


logger = logging.getLogger(__name__)

INSTALLER_PROCESS_PREFIX = "unitysetup64"


def _same_path(left: Path, right: Path) -> bool:
    def key(path: Path) -> str:
        return os.path.normcase(os.path.abspath(path)).rstrip("\\/").lower()

    return key(left) == key(right)


def normalize_install_root(path: str | os.PathLike[str]) -> Path:
    """Walk a user-supplied root up to the folder that holds version folders.

    Accepts the Editor executable itself, an ``Editor`` folder or a version
    folder, and returns other paths unchanged.
    """
    full = Path(os.path.abspath(os.path.expanduser(os.fspath(path))))
    if full.is_file():
        for ancestor in full.parents:
            if EditorVersion.try_parse(ancestor.name) is not None:
                return ancestor.parent
        editor_dir = full.parent
        return editor_dir.parent if editor_dir.name.lower() == "editor" else editor_dir

    if not full.is_dir():
        return full
    if full.name.lower() == "editor" and EditorVersion.try_parse(full.parent.name) is not None:
        return full.parent.parent
    if EditorVersion.try_parse(full.name) is not None:
        return full.parent
    return full


def effective_install_root(install_root: str | os.PathLike[str] | None) -> Path:
    if install_root:
        return normalize_install_root(install_root)
    return default_install_root()


def select_release(
    releases: list[HubRelease],
    desired: EditorVersion | None,
    *,
    prefer_lts: bool,
    archive_lookup: Callable[[EditorVersion], HubRelease | None] | None = None,
) -> HubRelease:
    """Pick the release to install from the Hub's list."""
    if not releases:
        raise ProvisioningError(
            "Unity Hub returned an empty release list. Pass --unity-version explicitly."
        )

    if desired is not None:
        for release in releases:
            if release.version == desired:
                return release

        by_version = {release.version: release for release in releases}
        closest = closest_in_train(list(by_version), desired)
        if closest is not None:
            return by_version[closest]

        if archive_lookup is not None:
            archived = archive_lookup(desired)
            if archived is not None:
                return archived

        trains = sorted({release.version.train for release in releases})
        raise ProvisioningError(
            f"No compatible Hub release found for Unity train {desired.train}. "
            f"Known trains: {', '.join(trains)}. "
            "Install matching editor manually with --unity or pass --unity-version "
            "from an available train."
        )

    preferred = [release for release in releases if release.is_lts == prefer_lts]
    pool = preferred or releases
    return max(pool, key=lambda release: release.version)


@dataclass(slots=True)
class ProvisioningRequest:
    """Per-call state shared by the resolver chain."""

    options: ConversionOptions
    install_root: Path
    desired: EditorVersion | None
    token: CancellationToken


Resolver = Callable[[ProvisioningRequest], Path | None]


class AutoProvisioner:
    """Return a ready-to-run Editor executable for a job."""

    def __init__(
        self,
        *,
        locator: EditorLocator | None = None,
        hub_locator: HubLocator | None = None,
        detector: TargetVersionDetector | None = None,
        runner: ProcessRunner | None = None,
        archive: ReleaseArchive | None = None,
        emitter: DiagnosticEmitter | None = None,
        unlock_attempts: int = 20,
        unlock_delay: float = 2.0,
        installer_poll_interval: float = 3.0,
        installer_timeout: float = 20 * 60.0,
    ) -> None:
        self.locator = locator or EditorLocator()
        self.hub_locator = hub_locator or HubLocator(platform=self.locator.platform)
        self.detector = detector or TargetVersionDetector()
        self.runner = runner or ProcessRunner()
        self.archive = archive or ReleaseArchive()
        self.emitter = ensure_emitter(emitter)
        self.unlock_attempts = max(1, unlock_attempts)
        self.unlock_delay = unlock_delay
        self.installer_poll_interval = installer_poll_interval
        self.installer_timeout = installer_timeout
        self._resolvers: list[tuple[str, Resolver]] = [
            ("explicit path", self._from_explicit_path),
            ("environment", self._from_environment),
            ("exact version", self._from_exact_version),
            ("closest in train", self._from_same_train),
            ("newest installed", self._from_newest_installed),
            ("auto-install", self._from_install),
        ]

    # Resolution chain -----------------------------------------------------

    def resolve_editor(
        self, options: ConversionOptions, cancel: CancellationToken | None = None
    ) -> Path:
        token = ensure_token(cancel)
        request = ProvisioningRequest(
            options=options,
            install_root=effective_install_root(options.install_root),
            desired=None,
            token=token,
        )
        if options.editor_path is None:
            request.desired = self.desired_version(options)

        for source, resolver in self._resolvers:
            token.raise_if_cancelled()
            path = resolver(request)
            if path is None:
                continue
            self.wait_until_unlocked(path, token)
            self.emitter.event("editor_resolved", {"path": str(path), "source": source})
            return path

        raise ProvisioningError(
            "Unity installation finished but the Editor executable was not found. "
            f"Use --unity-install-root to point to the correct editor folder "
            f"(expected under {request.install_root})."
        )

    def desired_version(self, options: ConversionOptions) -> EditorVersion | None:
        if options.editor_version and options.editor_version.strip():
            version = EditorVersion.try_parse(options.editor_version)
            if version is None:
                raise VersionFormatError(
                    f"Invalid --unity-version value: {options.editor_version}. "
                    "Example: 2022.3.62f1"
                )
            return version
        return self.detector.detect(options.target_game)

    def _from_explicit_path(self, request: ProvisioningRequest) -> Path | None:
        if request.options.editor_path is None:
            return None
        return self.locator.resolve_explicit_path(request.options.editor_path)

    def _from_environment(self, request: ProvisioningRequest) -> Path | None:
        path = self.locator.from_environment()
        if path is None:
            return None
        if request.desired is None:
            return path
        folder = version_dir_for(path, self.locator.platform)
        return path if EditorVersion.try_parse(folder.name) == request.desired else None

    def _from_exact_version(self, request: ProvisioningRequest) -> Path | None:
        if request.desired is None:
            return None
        return self.locator.find_exact_version(request.install_root, request.desired)

    def _from_same_train(self, request: ProvisioningRequest) -> Path | None:
        if request.desired is None:
            return None
        editors = self.locator.discover(request.install_root)
        best = closest_in_train([editor.version for editor in editors], request.desired)
        if best is None:
            return None
        return next(editor.path for editor in editors if editor.version == best)

    def _from_newest_installed(self, request: ProvisioningRequest) -> Path | None:
        if request.desired is not None:
            return None
        return self.locator.find_latest_installed(request.install_root)

    def _from_install(self, request: ProvisioningRequest) -> Path | None:
        options = request.options
        if not options.auto_install_editor:
            raise ProvisioningError(
                "Unity Editor is not installed and auto-install is disabled. "
                "Set --unity <path> or remove --no-auto-install-unity."
            )

        hub_path = self.ensure_hub(options, request.token)
        hub = HubClient(hub_path, runner=self.runner, cancel=request.token)
        hub.set_install_path(request.install_root)
        release = select_release(
            hub.list_releases(),
            request.desired,
            prefer_lts=options.prefer_lts,
            archive_lookup=self.archive.find_release,
        )
        if request.desired is not None and release.version != request.desired:
            self.emitter.event(
                "release_substituted",
                {"requested": str(request.desired), "selected": str(release.version)},
            )

        self.install_editor(hub, release, request.install_root, request.token)
        self.trim_managed_cache(request.install_root, release.version)

        installed = self.locator.find_exact_version(request.install_root, release.version)
        if installed is not None:
            return installed
        return self.locator.find_latest_installed(request.install_root)

    # Hub and installers ---------------------------------------------------

    def ensure_hub(self, options: ConversionOptions, token: CancellationToken) -> Path:
        existing = self.hub_locator.resolve(options.hub_path)
        if existing is not None:
            return existing

        if not options.auto_install_hub:
            raise HubError(
                "Unity Hub is missing and auto-install is disabled. "
                "Set --unity-hub <path> or remove --no-auto-install-hub."
            )
        if self.hub_locator.platform != "windows":
            raise HubError(
                "Unity Hub was not found and automatic Hub installation is only "
                "supported on Windows. Install the Hub or pass --unity-hub <path>."
            )

        self.emitter.event("hub_install", {"url": HUB_INSTALLER_URL})
        installer = self._installer_path(f"UnityHubSetup-{uuid.uuid4().hex}.exe")
        try:
            self.archive.download(HUB_INSTALLER_URL, installer, cancel=token)
            result = self.runner.run(installer, ["/S"], cancel=token)
            if result.exit_code != 0:
                raise HubError(
                    f"Unity Hub silent install failed with exit code {result.exit_code}.\n"
                    f"{result.merged_output()}"
                )
        finally:
            _remove_file(installer)

        installed = self.hub_locator.resolve(options.hub_path)
        if installed is None:
            raise HubError("Unity Hub was installed but executable was not found.")
        return installed

    def install_editor(
        self,
        hub: HubClient,
        release: HubRelease,
        install_root: Path,
        token: CancellationToken,
    ) -> None:
        self.emitter.event(
            "editor_install", {"version": str(release.version), "root": str(install_root)}
        )
        result = hub.install(release)
        if result.exit_code == 0:
            return

        if self.install_with_direct_installer(release, install_root, token):
            return
        raise ProvisioningError(
            f"Unity Editor install failed for {release.version}. "
            f"Exit code: {result.exit_code}.\n{result.merged_output()}"
        )

    def install_with_direct_installer(
        self, release: HubRelease, install_root: Path, token: CancellationToken
    ) -> bool:
        """Run the standalone installer linked from the release page.

        Returns ``False`` instead of raising so the caller can report the Hub
        failure, which is usually more informative.
        """
        if not release.installer_url or self.locator.platform != "windows":
            return False

        self.emitter.event("direct_installer", {"status": "start", "version": str(release.version)})
        version_root = install_root / str(release.version)
        executable = self.locator.executable_in(version_root)
        if executable.is_file():
            return True

        version_root.mkdir(parents=True, exist_ok=True)
        installer = self._installer_path(f"UnitySetup64-{release.version}-{uuid.uuid4().hex}.exe")
        try:
            self.archive.download(release.installer_url, installer, cancel=token)
            result = self.runner.run(installer, ["/S", f"/D={version_root}"], cancel=token)
            if result.exit_code != 0:
                logger.debug("Direct installer exited with %s", result.exit_code)
                return False
            self.wait_for_installers(release.version, token)
        except OperationCancelled:
            raise
        except (OSError, FontPatcherError) as exc:
            logger.debug("Direct installer fallback failed: %s", exc)
            return False
        finally:
            _remove_file(installer)

        installed = executable.is_file()
        if installed:
            self.emitter.event(
                "direct_installer", {"status": "ok", "version": str(release.version)}
            )
        return installed

    def wait_for_installers(self, version: EditorVersion, token: CancellationToken) -> None:
        """Block while detached ``UnitySetup64*`` processes for ``version`` still run."""
        version_token = str(version).lower()
        deadline = time.monotonic() + self.installer_timeout
        while time.monotonic() < deadline:
            token.raise_if_cancelled()
            active = [
                proc
                for proc in psutil.process_iter(["name"])
                if _is_installer_for(proc.info.get("name"), version_token)
            ]
            if not active:
                return
            logger.debug("Waiting for %d installer process(es) to exit", len(active))
            token.sleep(self.installer_poll_interval)
        logger.warning("Installer processes for %s still running after timeout", version)

    def wait_until_unlocked(self, executable: Path, token: CancellationToken) -> None:
        """Wait until ``executable`` can be opened for reading."""
        if not executable.is_file():
            raise ProvisioningError(f"Unity executable was not found: {executable}")
        for attempt in range(1, self.unlock_attempts + 1):
            token.raise_if_cancelled()
            try:
                with executable.open("rb"):
                    return
            except OSError as exc:
                if attempt == self.unlock_attempts:
                    raise ProvisioningError(
                        f"Unity executable is still locked and cannot be opened: {executable}"
                    ) from exc
                logger.debug("Editor executable locked (attempt %s): %s", attempt, exc)
                token.sleep(self.unlock_delay)

    def trim_managed_cache(self, install_root: Path, keep: EditorVersion) -> list[Path]:
        """Delete other versions from the managed root; custom roots are never touched."""
        if not _same_path(install_root, default_install_root()) or not install_root.is_dir():
            return []
        removed: list[Path] = []
        for child in sorted(install_root.iterdir()):
            version = EditorVersion.try_parse(child.name)
            if not child.is_dir() or version is None or version == keep:
                continue
            try:
                shutil.rmtree(child)
            except OSError as exc:
                logger.debug("Unable to remove cached editor %s: %s", child, exc)
                continue
            removed.append(child)
        return removed

    def _installer_path(self, name: str) -> Path:
        return get_user_dir().installer_path(name)


def _is_installer_for(name: str | None, version_token: str) -> bool:
    if not name:
        return False
    lowered = name.lower()
    return lowered.startswith(INSTALLER_PROCESS_PREFIX) and version_token in lowered


def _remove_file(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.debug("Unable to remove %s: %s", path, exc)


__all__ = [
    "AutoProvisioner",
    "ProvisioningRequest",
    "effective_install_root",
    "normalize_install_root",
    "select_release",
]
