from __future__ import annotations

import logging

import pytest

from fontpatcher.core.diagnostics import LoggingEmitter, NullEmitter, format_event_message
from fontpatcher.core.exceptions import EditorNotFoundError, exception_messages
from fontpatcher.pipeline.logtail import EditorLogLine, LogSeverity
from fontpatcher.ui.cli.diagnostics import CliEmitter, EditorLineRenderer
from fontpatcher.ui.cli.state import CLIState, set_cli_state


def test_null_emitter_is_noop(caplog: pytest.LogCaptureFixture) -> None:
    emitter = NullEmitter()
    with caplog.at_level(logging.WARNING):
        emitter.warning("nothing to see")
        emitter.error("still quiet")
    assert not caplog.records
    emitter.event("ignored", {"value": 1})
    assert emitter.debug_enabled is False


def test_logging_emitter_logs_messages(caplog: pytest.LogCaptureFixture) -> None:
    emitter = LoggingEmitter(debug_enabled=True)
    with caplog.at_level(logging.DEBUG):
        emitter.error("boom")
        emitter.event("editor_install", {"version": "2022.3.62f1", "root": "/editors"})
        emitter.event("custom", {"value": 1})
    messages = [record.getMessage() for record in caplog.records]
    assert "boom" in messages
    assert "Installing Unity 2022.3.62f1 into /editors" in messages
    assert "diagnostic event custom: {'value': 1}" in messages
    assert emitter.debug_enabled is True


@pytest.mark.parametrize(
    ("name", "payload", "expected"),
    [
        (
            "editor_resolved",
            {"path": "/e/Unity", "source": "environment"},
            "Using Unity Editor: /e/Unity (environment)",
        ),
        (
            "release_substituted",
            {"requested": "2022.3.10f1", "selected": "2022.3.62f1"},
            "Requested Unity 2022.3.10f1 is unavailable in Hub releases. "
            "Using closest available 2022.3.62f1.",
        ),
        ("phase", {"phase": "unity:a:create", "status": "start"}, "[unity:a:create] start"),
        (
            "phase",
            {"phase": "unity:a:build", "status": "completed", "exit_code": 0},
            "[unity:a:build] completed (exit=0)",
        ),
        (
            "epoch_resolved",
            {"adapter": "mid-2021-2022", "version": None},
            "Epoch adapter: mid-2021-2022 (unknown version)",
        ),
        ("direct_installer", {"status": "other"}, None),
        ("unknown", {}, None),
    ],
)
def test_format_event_message(name: str, payload: dict, expected: str | None) -> None:
    assert format_event_message(name, payload) == expected


def test_exception_messages_follow_cause_chain() -> None:
    try:
        try:
            raise OSError("disk unavailable")
        except OSError as exc:
            raise EditorNotFoundError("Unity Editor was not found") from exc
    except EditorNotFoundError as error:
        assert exception_messages(error) == ["Unity Editor was not found", "disk unavailable"]


def test_cli_emitter_renders_known_events_only(capsys: pytest.CaptureFixture[str]) -> None:
    state = CLIState()
    emitter = CliEmitter(state)

    emitter.event("hub_install", {"url": "https://example.test/hub.exe"})
    emitter.event("custom", {"value": 1})

    err = capsys.readouterr().err
    assert err.count("Downloading and installing Unity Hub") == 1
    assert err.strip().count("\n") == 0
    assert not hasattr(state, "events")


def test_cli_emitter_warning_includes_details_when_verbose(
    capsys: pytest.CaptureFixture[str],
) -> None:
    state = set_cli_state(verbosity=1)
    CliEmitter(state).warning("Editor locked", ValueError("retrying"))
    err = capsys.readouterr().err
    assert "warning: Editor locked" in err
    assert "retrying" in err
    assert "type: ValueError" in err


def test_line_renderer_hides_info_unless_verbose(capsys: pytest.CaptureFixture[str]) -> None:
    quiet = EditorLineRenderer(CLIState(verbosity=0))
    quiet(EditorLogLine("unity:a:build", "Refreshing", LogSeverity.INFO))
    quiet(EditorLogLine("unity:a:build", "Compilation failed", LogSeverity.ERROR))
    err = capsys.readouterr().err
    assert "Refreshing" not in err
    assert "[unity:a:build] Compilation failed" in err

    verbose = EditorLineRenderer(CLIState(verbosity=1))
    verbose(EditorLogLine("unity:a:build", "Refreshing", LogSeverity.INFO))
    assert "[unity:a:build] Refreshing" in capsys.readouterr().err
