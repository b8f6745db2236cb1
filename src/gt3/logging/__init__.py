"""Structured logging and diagnostics utilities."""

from .audit import JsonlAuditLogger, RunEvent, new_run_id, sanitize_detail, utc_timestamp
from .diagnostics import (
    AuditDiagnostics,
    CompositeDiagnostics,
    DebugDirectoryDiagnostics,
    DiagnosticsSink,
    NullDiagnostics,
    debug_get_source,
)

__all__ = [
    "AuditDiagnostics",
    "CompositeDiagnostics",
    "DebugDirectoryDiagnostics",
    "DiagnosticsSink",
    "JsonlAuditLogger",
    "NullDiagnostics",
    "RunEvent",
    "debug_get_source",
    "new_run_id",
    "sanitize_detail",
    "utc_timestamp",
]
