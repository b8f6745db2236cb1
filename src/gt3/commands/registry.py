"""Deterministic command registration primitives."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TextIO

from gt3.config import ToolConfig
from gt3.logging.diagnostics import DiagnosticsSink


@dataclass(slots=True, frozen=True)
class CommandEnvironment:
    """Everything a command needs besides its parsed arguments."""

    config: ToolConfig
    diagnostics: DiagnosticsSink
    out: TextIO
    err: TextIO
    theme_label: str

    def locale_file_label(self, locale: str) -> str:
        """Return the user-facing path of one locale catalog."""
        return f"{self.theme_label}/{self.config.locales.directory}/{locale}.json"


CommandHandler = Callable[[dict[str, object], CommandEnvironment], int]


@dataclass(slots=True, frozen=True)
class CommandDispatchError(Exception):
    """Represents deterministic command dispatch failures."""

    code: str
    message: str


@dataclass(slots=True)
class CommandRegistry:
    """In-memory command registry preserving deterministic insertion order."""

    _handlers: dict[str, CommandHandler] = field(default_factory=dict)

    def register(self, name: str, handler: CommandHandler) -> None:
        """Register a named handler."""
        self._handlers[name] = handler

    def get(self, name: str) -> CommandHandler | None:
        """Return a handler by name."""
        return self._handlers.get(name)

    def names(self) -> tuple[str, ...]:
        """Return registered command names in deterministic order."""
        return tuple(self._handlers.keys())

    def dispatch(
        self, name: str, arguments: dict[str, object], environment: CommandEnvironment
    ) -> int:
        """Dispatch to a registered command by name and return its exit code."""
        handler = self.get(name)
        if handler is None:
            raise CommandDispatchError(code="UNKNOWN_COMMAND", message=f"Unknown command: {name}")
        return handler(arguments, environment)
