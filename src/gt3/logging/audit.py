"""Structured JSONL run log utilities."""

from __future__ import annotations

import json
import threading
import uuid
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

_VERBATIM_STRING_KEYS = frozenset({"path", "locale", "command", "reason", "kind", "base_locale"})


@dataclass(slots=True, frozen=True)
class RunEvent:
    """Sanitized representation of one step of a command run."""

    timestamp: str
    run_id: str
    event: str
    path: str | None
    ok: bool
    detail: dict[str, object]


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_run_id() -> str:
    """Return a fresh identifier shared by every event of one command run."""
    return uuid.uuid4().hex


def sanitize_detail(detail: dict[str, object]) -> dict[str, object]:
    """Reduce event details to scalars so template text never lands in the log."""
    sanitized: dict[str, object] = {}
    for key in sorted(detail.keys()):
        value = detail[key]
        if key in _VERBATIM_STRING_KEYS and isinstance(value, str):
            sanitized[key] = value
            continue
        if isinstance(value, (int, float, bool)) or value is None:
            sanitized[key] = value
            continue
        if isinstance(value, str):
            sanitized[f"{key}_length"] = len(value)
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            sanitized[f"{key}_count"] = len(value)
            continue
        if isinstance(value, dict):
            sanitized[f"{key}_keys"] = sorted(str(k) for k in value.keys())
            continue
        sanitized[f"{key}_type"] = type(value).__name__
    return sanitized


class JsonlAuditLogger:
    """Append-only JSONL run logger."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    def append(self, event: RunEvent) -> None:
        """Append an event as one JSON object per line."""
        line = json.dumps(asdict(event), sort_keys=True)
        with self._lock, self._path.open("a", encoding="utf-8") as handle:
            handle.write(line)
            handle.write("\n")

