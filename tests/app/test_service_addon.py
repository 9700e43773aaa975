from __future__ import annotations

import logging

import pytest

from genshell.adapters.project_file import ProjectFileModel
from genshell.app.shell import ShellSession
from genshell.domain.diagnostics import DiagnosticKind
from genshell.domain.model import ModuleDetails


@pytest.fixture
def single(settings, single_project) -> ShellSession:
    return ShellSession.create(settings, single_project, entry_points=False)


@pytest.fixture
def multi(settings, multi_project) -> ShellSession:
    return ShellSession.create(settings, multi_project, entry_points=False)


def test_service_without_entity_or_all_is_a_no_op(single) -> None:
    outcome = single.run("service")
    assert outcome.exit_code == 0
    assert outcome.dispatch.value == {"action": "none"}


def test_entity_on_multimodule_requires_repository(multi) -> None:
    outcome = multi.run("service --entity ~.Owner")
    assert outcome.diagnostic.kind is DiagnosticKind.MISSING_MANDATORY_OPTION
    assert outcome.diagnostic.option == "repository"
    assert outcome.exit_code == 2


def test_entity_on_multimodule_then_requires_interface(multi) -> None:
    outcome = multi.run("service --entity ~.Owner --repository repository:~.OwnerRepository")
    assert outcome.diagnostic.option == "interface"


def test_all_ignores_entity_specific_options(multi) -> None:
    outcome = multi.run("service --all --apiPackage com.example.api --repository com.example.Repo")
    assert outcome.exit_code == 0
    assert outcome.dispatch.value == {
        "action": "add_all_services",
        "api_package": "com.example.api",
        "impl_package": "service-impl:com.acme.service.impl",
    }


def test_all_on_single_module_uses_service_packages(single) -> None:
    assert single.run("service --all").dispatch.value == {
        "action": "add_all_services",
        "api_package": "com.acme.petclinic.service.api",
        "impl_package": "com.acme.petclinic.service.impl",
    }


def test_all_wins_over_entity_typed_alongside(single, multi) -> None:
    outcome = single.run("service --all --apiPackage ~.api --entity ~.domain.Owner")
    assert outcome.exit_code == 0
    assert outcome.dispatch.value == {
        "action": "add_all_services",
        "api_package": "com.acme.petclinic.api",
        "impl_package": "com.acme.petclinic.service.impl",
    }
    assert multi.run("service --entity ~.Owner --all").dispatch.value["action"] == "add_all_services"


def test_all_without_default_module_fails_in_handler(settings) -> None:
    project = ProjectFileModel(
        [ModuleDetails("", "com.acme"), ModuleDetails("model", "com.acme.model")],
        features=["jpa"],
    )
    session = ShellSession.create(settings, project, entry_points=False)
    outcome = session.run("service --all")
    assert outcome.exit_code == 1
    assert "apiPackage" in outcome.dispatch.error


def test_service_for_entity_derives_names(single) -> None:
    outcome = single.run("service --entity ~.domain.Owner --repository ~.repository.OwnerRepository")
    assert outcome.dispatch.value == {
        "action": "add_service",
        "entity": "com.acme.petclinic.domain.Owner",
        "repository": "com.acme.petclinic.repository.OwnerRepository",
        "interface": "com.acme.petclinic.service.api.OwnerService",
        "class": "com.acme.petclinic.service.impl.OwnerServiceImpl",
    }


def test_service_with_explicit_interface(multi) -> None:
    outcome = multi.run(
        "service --entity ~.Owner --repository repository:~.OwnerRepository "
        "--interface service-api:~.OwnerApi --class service-impl:~.OwnerApiImpl"
    )
    assert outcome.dispatch.value["interface"] == "service-api:com.acme.service.api.OwnerApi"
    assert outcome.dispatch.value["class"] == "service-impl:com.acme.service.impl.OwnerApiImpl"


def test_entity_must_be_a_jpa_entity(single) -> None:
    outcome = single.run("service --entity ~.domain.Money")
    assert outcome.diagnostic.kind is DiagnosticKind.INVALID_VALUE
    assert outcome.diagnostic.option == "entity"


def test_entity_without_repository_warns(single, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="genshell.addons.service"):
        outcome = single.run("service --entity ~.domain.Pet --repository ~.repository.OwnerRepository")
    assert outcome.diagnostic.kind is DiagnosticKind.INVALID_VALUE
    assert outcome.diagnostic.option == "repository"
    assert "does not have any repository" in caplog.text


def test_service_requires_jpa(settings) -> None:
    project = ProjectFileModel([ModuleDetails("", "com.acme")])
    session = ShellSession.create(settings, project, entry_points=False)
    assert session.run("service").diagnostic.kind is DiagnosticKind.UNKNOWN_COMMAND
    assert session.complete("serv") == []


def test_complete_entities_and_repositories(single) -> None:
    assert single.complete("service --entity ") == ["~.domain.Owner", "~.domain.Pet"]
    assert single.complete("service --entity ~.domain.Owner --repository ") == ["~.repository.OwnerRepository"]


def test_complete_keys_follow_visibility(single) -> None:
    assert single.complete("service ") == ["--all", "--entity"]
    assert single.complete("service --all ") == ["--apiPackage", "--implPackage"]
    assert single.complete("service --entity ~.domain.Owner ") == ["--repository", "--interface", "--class"]


def test_complete_interface_stems(single, multi) -> None:
    assert single.complete("service --entity ~.domain.Owner --interface ") == ["~.service.api.", "~."]
    assert single.complete("service --entity ~.domain.Owner --class ~.s") == ["~.service.impl."]
    assert multi.complete("service --entity ~.Owner --interface ") == [
        "repository:~.",
        "service-api:~.",
        "service-impl:~.",
        "application:~.",
        "~.",
    ]
