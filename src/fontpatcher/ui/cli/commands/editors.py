"""Implementation of the Editor discovery and provisioning commands."""

from __future__ import annotations

import typer

from fontpatcher.core.exceptions import FontPatcherError
from fontpatcher.unity.facade import ProvisioningFacade
from fontpatcher.unity.provisioner import AutoProvisioner

from .._options import (
    EditorPathOption,
    EditorVersionOption,
    HubPathOption,
    InstallRootOption,
    NoAutoInstallHubOption,
    PreferNonLtsOption,
    TargetGameOption,
)
from ..diagnostics import CliEmitter
from ..presenter import present_editors, present_install, present_requirement
from ..state import debug_enabled, emit_error, get_cli_state


def _facade() -> ProvisioningFacade:
    provisioner = AutoProvisioner(emitter=CliEmitter(get_cli_state()))
    return ProvisioningFacade(
        locator=provisioner.locator,
        detector=provisioner.detector,
        provisioner=provisioner,
    )


def editors(
    install_root: InstallRootOption = None,
    unity: EditorPathOption = None,
) -> None:
    """List installed Unity editors, newest first."""
    state = get_cli_state()
    present_editors(state, _facade().discover_installed_versions(install_root, unity))


def check(
    unity_version: EditorVersionOption = None,
    target_game: TargetGameOption = None,
    install_root: InstallRootOption = None,
    unity: EditorPathOption = None,
) -> None:
    """Check whether the required Unity version is installed.

    Exits with status 1 when the version is unknown or missing.
    """
    state = get_cli_state()
    outcome = _facade().check_required_version(
        unity_version,
        target_game=target_game,
        install_root=install_root,
        editor_path=unity,
    )
    present_requirement(state, outcome)
    if not outcome.is_installed:
        raise typer.Exit(code=1)


def install(
    unity_version: EditorVersionOption = None,
    target_game: TargetGameOption = None,
    install_root: InstallRootOption = None,
    unity_hub: HubPathOption = None,
    unity: EditorPathOption = None,
    prefer_non_lts: PreferNonLtsOption = False,
    no_auto_install_hub: NoAutoInstallHubOption = False,
) -> None:
    """Install the required Unity version through the Hub."""
    state = get_cli_state()
    try:
        outcome = _facade().install_required_version(
            unity_version,
            target_game=target_game,
            install_root=install_root,
            hub_path=unity_hub,
            editor_path=unity,
            prefer_lts=not prefer_non_lts,
            auto_install_hub=not no_auto_install_hub,
        )
    except FontPatcherError as exc:
        if debug_enabled():
            raise
        emit_error("Unity installation failed.")
        state.err_console.print(str(exc), markup=False, highlight=False, soft_wrap=True)
        raise typer.Exit(code=1) from exc

    present_install(state, outcome)
    if not outcome.success:
        raise typer.Exit(code=1)
