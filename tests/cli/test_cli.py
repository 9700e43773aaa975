from __future__ import annotations

import json
from pathlib import Path

import pytest

from genshell.cli import main as cli_main
from genshell.settings import RuntimeSettings

FIXTURES = Path(__file__).resolve().parents[1] / "fixtures"
SINGLE = str(FIXTURES / "petclinic.project.yaml")
MULTI = str(FIXTURES / "petclinic-multimodule.project.yaml")


@pytest.fixture(autouse=True)
def runtime_settings(settings: RuntimeSettings, monkeypatch: pytest.MonkeyPatch) -> RuntimeSettings:
    monkeypatch.setattr(cli_main, "SETTINGS", settings, raising=False)
    return settings


def test_run_prints_handler_result(capsys) -> None:
    exit_code = cli_main.main(["--project", SINGLE, "--no-addons", "run", "service", "--all"])
    captured = capsys.readouterr()
    assert exit_code == 0
    assert json.loads(captured.out)["action"] == "add_all_services"


def test_run_single_argument_is_used_verbatim(capsys) -> None:
    exit_code = cli_main.main(["--project", SINGLE, "--no-addons", "run", "service --entity ~.domain.Owner"])
    assert exit_code == 0
    assert json.loads(capsys.readouterr().out)["action"] == "add_service"


def test_run_reports_diagnostics_on_stderr(capsys) -> None:
    exit_code = cli_main.main(["--project", MULTI, "--no-addons", "run", "service", "--entity", "~.Owner"])
    captured = capsys.readouterr()
    assert exit_code == 2
    assert captured.err.strip().startswith("genshell: MissingMandatoryOption [--repository]:")


def test_run_json_outcome(capsys) -> None:
    exit_code = cli_main.main(["--project", SINGLE, "--no-addons", "run", "--json", "jpa", "setup"])
    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 2
    assert payload["diagnostic"]["kind"] == "UnknownCommand"
    assert payload["exit_code"] == 2


def test_run_handler_failure_exit_code(tmp_path: Path, capsys) -> None:
    project = tmp_path / "genshell.project.yaml"
    project.write_text(
        "features: [jpa]\nmodules:\n  - top_level_package: com.acme\n  - name: model\n    top_level_package: com.acme.model\n",
        encoding="utf-8",
    )
    exit_code = cli_main.main(["--project", str(project), "--no-addons", "run", "service", "--all"])
    assert exit_code == 1
    assert "service failed" in capsys.readouterr().err


def test_missing_project_file(tmp_path: Path, capsys) -> None:
    exit_code = cli_main.main(["--project", str(tmp_path / "missing.yaml"), "commands"])
    assert exit_code == 2
    assert "Project descriptor missing" in capsys.readouterr().err


def test_invalid_project_file(tmp_path: Path, capsys) -> None:
    project = tmp_path / "genshell.project.yaml"
    project.write_text("modules: []\n", encoding="utf-8")
    assert cli_main.main(["--project", str(project), "commands"]) == 2
    assert "Invalid project descriptor" in capsys.readouterr().err


def test_complete(capsys) -> None:
    exit_code = cli_main.main(["--project", SINGLE, "--no-addons", "complete", "service --entity "])
    assert exit_code == 0
    assert capsys.readouterr().out.splitlines() == ["~.domain.Owner", "~.domain.Pet"]


def test_complete_with_cursor_json(capsys) -> None:
    line = "service --entity ~.domain.Owner"
    exit_code = cli_main.main(
        ["--project", SINGLE, "--no-addons", "complete", line, "--cursor", str(len("service --e")), "--json"]
    )
    assert exit_code == 0
    assert json.loads(capsys.readouterr().out) == ["--entity"]


def test_commands_json(capsys) -> None:
    exit_code = cli_main.main(["--project", SINGLE, "--no-addons", "commands", "--json"])
    rows = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert [row["name"] for row in rows] == ["security setup", "service"]
    service = rows[1]
    assert service["available"] is True
    assert [option["key"] for option in service["options"]][:2] == ["all", "entity"]


def test_check(capsys) -> None:
    assert cli_main.main(["--project", SINGLE, "--no-addons", "check"]) == 0
    assert "2 commands" in capsys.readouterr().out


def test_telemetry_roundtrip(monkeypatch, runtime_settings, capsys) -> None:
    monkeypatch.setenv("GENSHELL_TELEMETRY", "1")
    cli_main.main(["--project", SINGLE, "--no-addons", "run", "service"])
    capsys.readouterr()
    assert cli_main.main(["telemetry", "summary"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["by_event"] == {"command.resolve": 1, "command.dispatch": 1}
    assert cli_main.main(["telemetry", "tail", "--limit", "1"]) == 0
    assert json.loads(capsys.readouterr().out)["event"] == "command.dispatch"
    assert cli_main.main(["telemetry", "clear"]) == 0
    assert not (runtime_settings.log_dir / "telemetry.jsonl").exists()


def test_completer_strips_typed_command_words(settings) -> None:
    from genshell.adapters.project_file import ProjectFileModel
    from genshell.app.shell import ShellSession

    session = ShellSession.create(settings, ProjectFileModel.load(Path(MULTI)), entry_points=False)
    line = "security se"
    completer = cli_main.Completer(session, lambda: line, lambda: len("security "), lambda: len(line))
    assert completer.complete("se", 0) == "setup"
    assert completer.complete("se", 1) is None


def test_completer_uses_the_cursor_position(settings) -> None:
    from genshell.adapters.project_file import ProjectFileModel
    from genshell.app.shell import ShellSession

    session = ShellSession.create(settings, ProjectFileModel.load(Path(SINGLE)), entry_points=False)
    line = "service --entity ~.domain.O --all"
    begin = line.index("~.domain.O")
    completer = cli_main.Completer(session, lambda: line, lambda: begin, lambda: begin + len("~.domain.O"))
    assert completer.complete("~.domain.O", 0) == "~.domain.Owner"
    assert completer.complete("~.domain.O", 1) is None


def test_malformed_project_file_is_an_operator_error(tmp_path: Path, capsys) -> None:
    project = tmp_path / "genshell.project.yaml"
    project.write_text("modules: [\n", encoding="utf-8")
    assert cli_main.main(["--project", str(project), "commands"]) == 2
    assert "is not valid YAML" in capsys.readouterr().err


def test_commands_shows_one_command(capsys) -> None:
    assert cli_main.main(["--project", MULTI, "--no-addons", "commands", "security", "setup", "--json"]) == 0
    rows = json.loads(capsys.readouterr().out)
    assert [row["name"] for row in rows] == ["security setup"]
    assert [option["key"] for option in rows[0]["options"]] == ["provider", "module"]
    assert cli_main.main(["--project", MULTI, "--no-addons", "commands", "jpa"]) == 2
    assert "Command jpa not registered" in capsys.readouterr().err
