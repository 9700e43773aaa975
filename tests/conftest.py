from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
FIXTURES = Path(__file__).resolve().parent / "fixtures"
SANDBOX_HOME = ROOT / ".test_place" / "global-home"
os.environ.setdefault("GENSHELL_HOME", str(SANDBOX_HOME))
os.environ.setdefault("GENSHELL_TELEMETRY", "0")
SANDBOX_HOME.mkdir(parents=True, exist_ok=True)
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from genshell.adapters.project_file import ProjectFileModel  # noqa: E402
from genshell.domain.context import StickyState  # noqa: E402
from genshell.settings import RuntimeSettings  # noqa: E402


def make_settings(tmp_path: Path, **overrides) -> RuntimeSettings:
    dirs = {name: tmp_path / name for name in ("home", "state", "logs")}
    for path in dirs.values():
        path.mkdir(parents=True, exist_ok=True)
    return RuntimeSettings(
        home_dir=dirs["home"],
        state_dir=dirs["state"],
        log_dir=dirs["logs"],
        cli_version="0.3.0",
        **overrides,
    )


@pytest.fixture
def settings(tmp_path: Path) -> RuntimeSettings:
    return make_settings(tmp_path)


@pytest.fixture
def single_project() -> ProjectFileModel:
    return ProjectFileModel.load(FIXTURES / "petclinic.project.yaml")


@pytest.fixture
def multi_project() -> ProjectFileModel:
    return ProjectFileModel.load(FIXTURES / "petclinic-multimodule.project.yaml")


@pytest.fixture
def sticky() -> StickyState:
    return StickyState()
