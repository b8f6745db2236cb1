"""Error families shared across the analysis and rewrite pipeline."""

from __future__ import annotations


class Gt3Error(Exception):
    """Base exception for all toolkit errors."""


class InputError(Gt3Error):
    """Malformed input that only affects the file it came from."""


class ContractViolation(Gt3Error):
    """An invariant the engine depends on was violated; the operation must stop.

    Carries the file and position when they are known so the diagnostic can
    point at the offending source.
    """

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source = source
        self.line = line
        self.column = column

    def describe(self) -> str:
        """Return the message prefixed with `file:line:column` when known."""
        if self.source is None:
            return self.message
        if self.line is None:
            return f"{self.source}: {self.message}"
        if self.column is None:
            return f"{self.source}:{self.line}: {self.message}"
        return f"{self.source}:{self.line}:{self.column + 1}: {self.message}"
