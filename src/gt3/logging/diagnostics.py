"""Injected diagnostics sinks for the analysis pipeline."""

from __future__ import annotations

import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from gt3.location import Position
from gt3.logging.audit import (
    JsonlAuditLogger,
    RunEvent,
    new_run_id,
    sanitize_detail,
    utc_timestamp,
)
from gt3.paths import resolve_theme_path


class DiagnosticsSink(Protocol):
    """Receives masked buffers and per-file events during a run."""

    def masked_source(self, source: str, lines: Sequence[str]) -> None:
        """Observe the fully masked buffer of one template."""

    def event(
        self,
        name: str,
        *,
        path: str | None = None,
        ok: bool = True,
        detail: dict[str, object] | None = None,
    ) -> None:
        """Record one named pipeline event."""


class NullDiagnostics:
    """Default sink that discards everything."""

    def masked_source(self, source: str, lines: Sequence[str]) -> None:
        _ = (source, lines)

    def event(
        self,
        name: str,
        *,
        path: str | None = None,
        ok: bool = True,
        detail: dict[str, object] | None = None,
    ) -> None:
        _ = (name, path, ok, detail)


class AuditDiagnostics:
    """Sink that appends sanitized events to a JSONL run log."""

    def __init__(self, logger: JsonlAuditLogger, run_id: str | None = None) -> None:
        self._logger = logger
        self._run_id = run_id or new_run_id()

    @property
    def run_id(self) -> str:
        """Return the identifier stamped on every event of this run."""
        return self._run_id

    def masked_source(self, source: str, lines: Sequence[str]) -> None:
        self.event("masked_source", path=source, detail={"lines": len(lines)})

    def event(
        self,
        name: str,
        *,
        path: str | None = None,
        ok: bool = True,
        detail: dict[str, object] | None = None,
    ) -> None:
        self._logger.append(
            RunEvent(
                timestamp=utc_timestamp(),
                run_id=self._run_id,
                event=name,
                path=path,
                ok=ok,
                detail=sanitize_detail(detail or {}),
            )
        )


class DebugDirectoryDiagnostics:
    """Sink that mirrors each masked buffer into a debug directory for inspection."""

    def __init__(self, directory: Path) -> None:
        self._directory = directory
        self._lock = threading.Lock()

    def masked_source(self, source: str, lines: Sequence[str]) -> None:
        target = resolve_theme_path(self._directory, source)
        with self._lock:
            target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("\n".join(lines), encoding="utf-8", newline="")

    def event(
        self,
        name: str,
        *,
        path: str | None = None,
        ok: bool = True,
        detail: dict[str, object] | None = None,
    ) -> None:
        _ = (name, path, ok, detail)


class CompositeDiagnostics:
    """Fan one stream of diagnostics out to several sinks."""

    def __init__(self, sinks: Sequence[DiagnosticsSink]) -> None:
        self._sinks = tuple(sinks)

    def masked_source(self, source: str, lines: Sequence[str]) -> None:
        for sink in self._sinks:
            sink.masked_source(source, lines)

    def event(
        self,
        name: str,
        *,
        path: str | None = None,
        ok: bool = True,
        detail: dict[str, object] | None = None,
    ) -> None:
        for sink in self._sinks:
            sink.event(name, path=path, ok=ok, detail=detail)


def debug_get_source(lines: Sequence[str], start: Position, end: Position) -> str:
    """Return the text between two positions of a line buffer."""
    selected = list(lines[start.line - 1 : end.line])
    if not selected:
        return ""
    # Trim the last line first so the first-line column stays valid on single-line spans.
    selected[-1] = selected[-1][: end.column]
    selected[0] = selected[0][start.column :]
    return "\n".join(selected)
