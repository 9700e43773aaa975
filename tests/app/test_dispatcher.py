from __future__ import annotations

import json

import pytest

from genshell.app.dispatcher import Dispatcher, STATUS_FAILED, STATUS_OK
from genshell.app.resolver import ResolvedArguments
from genshell.domain.command import CommandBuilder


def _command(handler):
    return CommandBuilder("demo").option("name").handler(handler).build()


def test_handler_is_called_once_with_arguments(settings) -> None:
    calls = []
    command = _command(lambda arguments: calls.append(arguments.as_dict()) or "done")
    result = Dispatcher(settings).execute(command, ResolvedArguments(command, {"name": "x"}))
    assert result.ok
    assert result.status == STATUS_OK
    assert result.value == "done"
    assert calls == [{"name": "x"}]
    assert result.to_dict() == {"command": "demo", "status": 0, "result": "done"}


def test_handler_exception_becomes_failure(settings) -> None:
    def boom(arguments):
        raise RuntimeError("disk full")

    command = _command(boom)
    result = Dispatcher(settings).execute(command, ResolvedArguments(command, {}))
    assert not result.ok
    assert result.status == STATUS_FAILED
    assert result.error == "RuntimeError: disk full"


def test_refuses_unresolved_arguments(settings) -> None:
    command = _command(lambda arguments: None)
    with pytest.raises(TypeError):
        Dispatcher(settings).execute(command, {"name": "x"})  # type: ignore[arg-type]


def test_refuses_arguments_of_another_command(settings) -> None:
    command = _command(lambda arguments: None)
    other = CommandBuilder("other").handler(lambda arguments: None).build()
    with pytest.raises(ValueError):
        Dispatcher(settings).execute(command, ResolvedArguments(other, {}))


def test_dispatch_is_recorded(settings, monkeypatch) -> None:
    monkeypatch.setenv("GENSHELL_TELEMETRY", "1")
    command = _command(lambda arguments: None)
    Dispatcher(settings).execute(command, ResolvedArguments(command, {}))
    lines = (settings.log_dir / "telemetry.jsonl").read_text(encoding="utf-8").splitlines()
    record = json.loads(lines[-1])
    assert record["event"] == "command.dispatch"
    assert record["status"] == "success"
    assert record["command"] == "demo"
    assert "error" not in record
