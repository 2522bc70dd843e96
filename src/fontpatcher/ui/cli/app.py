"""Typer application wiring for the fontpatcher CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from fontpatcher.core.exceptions import exception_hint
from fontpatcher.version import get_version

from .commands import batch, check, convert, editors, install
from .logging import setup_logging
from .state import debug_enabled, emit_error, get_cli_state, set_cli_state


DIAGNOSTICS_PANEL = "Diagnostics"

app = typer.Typer(
    help="Convert fonts into TextMeshPro AssetBundles with a provisioned Unity Editor.",
    context_settings={"help_option_names": ["--help", "-h"]},
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(get_version())
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
            rich_help_panel=DIAGNOSTICS_PANEL,
        ),
    ] = 0,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Show full tracebacks when an unexpected error occurs.",
            rich_help_panel=DIAGNOSTICS_PANEL,
        ),
    ] = False,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Also write debug logs to this file.",
            dir_okay=False,
            rich_help_panel=DIAGNOSTICS_PANEL,
        ),
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ] = False,
) -> None:
    """Configure diagnostics shared by every command."""
    _ = version
    state = set_cli_state(ctx=ctx, verbosity=verbose, debug=debug)
    setup_logging(state.verbosity, log_file=log_file, console=state.err_console)


app.command()(convert)
app.command()(batch)
app.command()(editors)
app.command()(check)
app.command()(install)


def main() -> None:
    """Entry point compatible with console scripts."""
    try:
        app()
    except KeyboardInterrupt as exc:
        if debug_enabled():
            raise
        emit_error("Operation cancelled by user.", exception=exc)
        raise SystemExit(1) from exc
    except SystemExit:
        raise
    except Exception as exc:  # pragma: no cover
        state = get_cli_state()
        if state.show_tracebacks:
            from rich.traceback import Traceback

            tb = Traceback.from_exception(
                type(exc),
                exc,
                exc.__traceback__,
                show_locals=state.verbosity >= 2,
            )
            state.err_console.print(tb)
        else:
            emit_error(exception_hint(exc) or type(exc).__name__, exception=exc)
        raise SystemExit(1) from exc


__all__ = ["app", "main"]
