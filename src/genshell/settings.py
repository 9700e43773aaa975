"""Runtime settings for the genshell engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from genshell import __version__

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class RuntimeSettings:
    home_dir: Path
    state_dir: Path
    log_dir: Path
    cli_version: str = __version__
    strict_visibility: bool = False
    project_file: Path | None = None

    @property
    def history_file(self) -> Path:
        return self.state_dir / "shell_history"


def _default_home_dir() -> Path:
    override = os.environ.get("GENSHELL_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".genshell"


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


def load_settings() -> RuntimeSettings:
    base = _default_home_dir()
    project = os.environ.get("GENSHELL_PROJECT")
    return RuntimeSettings(
        home_dir=base,
        state_dir=base / "state",
        log_dir=base / "logs",
        strict_visibility=_env_flag("GENSHELL_STRICT_VISIBILITY"),
        project_file=Path(project).expanduser() if project else None,
    )


SETTINGS = load_settings()
