"""Command telemetry: one JSON line per resolved or dispatched command line.

Recording is on by default; ``GENSHELL_TELEMETRY=0`` turns it off.
"""

from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Optional

from jsonschema import Draft202012Validator

from genshell.domain.diagnostics import Diagnostic
from genshell.resources import load_schema
from genshell.settings import RuntimeSettings

RESOLVE_EVENT = "command.resolve"
DISPATCH_EVENT = "command.dispatch"
TELEMETRY_FILE = "telemetry.jsonl"

_OFF = {"0", "false", "no", "off"}
_validator: Draft202012Validator | None = None


@dataclass(frozen=True)
class CommandEvent:
    event: str
    command: str
    status: str
    duration_ms: float
    diagnostic: Optional[Diagnostic] = None
    error: Optional[str] = None

    @classmethod
    def resolved(cls, command: Optional[str], diagnostic: Optional[Diagnostic], duration_ms: float) -> "CommandEvent":
        status = "success" if diagnostic is None else diagnostic.kind.value
        return cls(RESOLVE_EVENT, command or "", status, duration_ms, diagnostic=diagnostic)

    @classmethod
    def dispatched(cls, command: str, error: Optional[str], duration_ms: float) -> "CommandEvent":
        return cls(DISPATCH_EVENT, command, "failure" if error else "success", duration_ms, error=error)

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "ts": time.time(),
            "event": self.event,
            "command": self.command,
            "status": self.status,
            "durationMs": round(max(self.duration_ms, 0.0), 3),
        }
        if self.diagnostic is not None:
            record["diagnostic"] = self.diagnostic.to_dict()
        if self.error:
            record["error"] = self.error
        return record


def telemetry_enabled() -> bool:
    return os.getenv("GENSHELL_TELEMETRY", "1").strip().lower() not in _OFF


def telemetry_path(settings: RuntimeSettings) -> Path:
    return settings.log_dir / TELEMETRY_FILE


def record_command_event(settings: RuntimeSettings, event: CommandEvent) -> None:
    if not telemetry_enabled():
        return
    record = event.to_record()
    _record_validator().validate(record)
    path = telemetry_path(settings)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(record, ensure_ascii=False) + "\n")


def iter_events(settings: RuntimeSettings) -> Iterator[Dict[str, Any]]:
    """Yield recorded events oldest first, skipping lines that are not JSON."""
    path = telemetry_path(settings)
    if not path.exists():
        return
    with path.open("r", encoding="utf-8") as fh:
        for line in fh:
            if not line.strip():
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                continue


def summarize(events: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    summary: Dict[str, Any] = {"total": 0, "by_event": {}, "by_status": {}, "by_command": {}}
    for evt in events:
        summary["total"] += 1
        for field, bucket in (("event", "by_event"), ("status", "by_status"), ("command", "by_command")):
            key = evt.get(field) or "unknown"
            summary[bucket][key] = summary[bucket].get(key, 0) + 1
    return summary


def clear(settings: RuntimeSettings) -> None:
    telemetry_path(settings).unlink(missing_ok=True)


def _record_validator() -> Draft202012Validator:
    global _validator
    if _validator is None:
        _validator = Draft202012Validator(load_schema("telemetry.schema.json"))
    return _validator


__all__ = [
    "CommandEvent",
    "DISPATCH_EVENT",
    "RESOLVE_EVENT",
    "clear",
    "iter_events",
    "record_command_event",
    "summarize",
    "telemetry_enabled",
    "telemetry_path",
]
