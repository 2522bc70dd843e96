"""Rich presenters for command results."""

from __future__ import annotations

from collections.abc import Sequence

from rich import box
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from fontpatcher.batch.orchestrator import BatchResult
from fontpatcher.pipeline.conversion import PipelineResult
from fontpatcher.unity.facade import InstallOutcome, RequirementCheck
from fontpatcher.unity.locator import InstalledEditor

from .state import CLIState


def _table(title: str | None, columns: Sequence[str]) -> Table:
    table = Table(title=title, box=box.SQUARE, header_style="bold cyan")
    for column in columns:
        table.add_column(column)
    return table


def present_conversion(state: CLIState, result: PipelineResult) -> None:
    table = _table("Conversion completed", ["Item", "Value"])
    table.add_row("Unity editor", Text(str(result.editor_path)))
    table.add_row("Epoch adapter", Text(f"{result.adapter_name} ({result.epoch.value})"))
    table.add_row("Unity args mode", Text(result.arguments_mode))
    table.add_row("Bundle", Text(str(result.bundle_path)))
    table.add_row("Manifest", Text(str(result.manifest_path)))
    table.add_row("TMP asset name", Text(result.asset_name))
    if result.workspace_path is not None:
        table.add_row("Temp Unity project", Text(str(result.workspace_path)))
    state.console.print(table)


def present_batch(state: CLIState, result: BatchResult, max_workers: int) -> None:
    table = _table("Batch jobs", ["Job", "Status", "Message"])
    for job in result.jobs:
        status = "[green]ok[/green]" if job.success else "[red]failed[/red]"
        table.add_row(Text(job.name), status, Text(job.message))
    state.console.print(table)
    state.console.print(
        f"Batch completed. Success={result.success_count}, "
        f"Failed={result.failure_count}, Workers={max_workers}"
    )


def present_editors(state: CLIState, editors: Sequence[InstalledEditor]) -> None:
    if not editors:
        state.console.print("No installed Unity editors were detected.")
        return
    table = _table("Installed Unity editors", ["Version", "Executable"])
    for editor in editors:
        table.add_row(str(editor.version), Text(str(editor.path)))
    state.console.print(table)


def present_requirement(state: CLIState, check: RequirementCheck) -> None:
    style = "green" if check.is_installed else "yellow"
    state.console.print(Text(check.message, style=style))
    if check.installed_path is not None:
        state.console.print(f"Path: {escape(str(check.installed_path))}")


def present_install(state: CLIState, outcome: InstallOutcome) -> None:
    style = "green" if outcome.success else "red"
    state.console.print(Text(outcome.message, style=style))
    if outcome.installed_path is not None:
        state.console.print(f"Path: {escape(str(outcome.installed_path))}")


__all__ = [
    "present_batch",
    "present_conversion",
    "present_editors",
    "present_install",
    "present_requirement",
]
