from __future__ import annotations

from pathlib import Path

from hypothesis import given, settings
from hypothesis import strategies as st

from genshell.adapters.project_file import ProjectFileModel
from genshell.app.shell import ShellSession
from genshell.settings import SETTINGS

FIXTURES = Path(__file__).resolve().parents[1] / "fixtures"

LINES = [
    "service --entity ~.domain.Owner --repository ~.repository.OwnerRepository",
    "service --all --apiPackage ~.api --implPackage ~.impl",
    "service --entity ~.Owner --interface service-api:~.OwnerService",
    "security setup --provider DEFAULT --module application",
    "security setup --module ~",
]


def _session(name: str) -> ShellSession:
    project = ProjectFileModel.load(FIXTURES / name)
    return ShellSession.create(SETTINGS, project, entry_points=False)


SESSIONS = [_session("petclinic.project.yaml"), _session("petclinic-multimodule.project.yaml")]


@settings(max_examples=150)
@given(session=st.sampled_from(SESSIONS), line=st.sampled_from(LINES), data=st.data())
def test_completion_is_repeatable_and_leaves_sticky_state_alone(session, line, data) -> None:
    cursor = data.draw(st.integers(min_value=0, max_value=len(line)))
    before = session.sticky.snapshot()
    first = session.complete(line, cursor)
    second = session.complete(line, cursor)
    assert first == second
    assert session.sticky.snapshot() == before
    assert all(first)
    assert len(set(first)) == len(first)
