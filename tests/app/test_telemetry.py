from __future__ import annotations

import json

import pytest
from jsonschema import ValidationError

from genshell.domain.diagnostics import Diagnostic, DiagnosticKind
from genshell.utils.telemetry import (
    CommandEvent,
    clear,
    iter_events,
    record_command_event,
    summarize,
    telemetry_path,
)


@pytest.fixture(autouse=True)
def telemetry_on(monkeypatch) -> None:
    monkeypatch.setenv("GENSHELL_TELEMETRY", "1")


def test_resolution_failure_carries_the_diagnostic(settings) -> None:
    diagnostic = Diagnostic(
        DiagnosticKind.MISSING_MANDATORY_OPTION,
        "You must specify option --repository",
        option="repository",
        command="service",
    )
    record_command_event(settings, CommandEvent.resolved("service", diagnostic, 1.5))
    record = json.loads(telemetry_path(settings).read_text(encoding="utf-8"))
    assert record["event"] == "command.resolve"
    assert record["status"] == "MissingMandatoryOption"
    assert record["diagnostic"] == {
        "kind": "MissingMandatoryOption",
        "message": "You must specify option --repository",
        "option": "repository",
        "command": "service",
    }


def test_summary_groups_by_event_status_and_command(settings) -> None:
    record_command_event(settings, CommandEvent.resolved("service", None, 0.2))
    record_command_event(settings, CommandEvent.dispatched("service", "LookupError: no service-api", 3.0))
    record_command_event(settings, CommandEvent.resolved(None, Diagnostic(DiagnosticKind.UNKNOWN_COMMAND, "x"), 0.1))
    summary = summarize(iter_events(settings))
    assert summary["total"] == 3
    assert summary["by_event"] == {"command.resolve": 2, "command.dispatch": 1}
    assert summary["by_status"] == {"success": 1, "failure": 1, "UnknownCommand": 1}
    assert summary["by_command"] == {"service": 2, "unknown": 1}


def test_unreadable_lines_are_skipped(settings) -> None:
    record_command_event(settings, CommandEvent.dispatched("security setup", None, 0.0))
    with telemetry_path(settings).open("a", encoding="utf-8") as fh:
        fh.write("{not json\n\n")
    assert [evt["command"] for evt in iter_events(settings)] == ["security setup"]


def test_records_are_validated(settings) -> None:
    with pytest.raises(ValidationError):
        record_command_event(settings, CommandEvent("command.replay", "service", "success", 0.0))
    assert not telemetry_path(settings).exists()


def test_disabled_and_clear(settings, monkeypatch) -> None:
    record_command_event(settings, CommandEvent.resolved("service", None, 0.0))
    clear(settings)
    clear(settings)
    assert list(iter_events(settings)) == []
    monkeypatch.setenv("GENSHELL_TELEMETRY", "off")
    record_command_event(settings, CommandEvent.resolved("service", None, 0.0))
    assert not telemetry_path(settings).exists()
