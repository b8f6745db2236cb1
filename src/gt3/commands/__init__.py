"""Command handlers and their registration."""

from .find import FindOptions, run_find
from .registry import CommandDispatchError, CommandEnvironment, CommandHandler, CommandRegistry
from .status import StatusOptions, run_status


def register_commands(registry: CommandRegistry) -> None:
    """Register the built-in commands in help order."""
    registry.register("find", run_find)
    registry.register("status", run_status)


__all__ = [
    "CommandDispatchError",
    "CommandEnvironment",
    "CommandHandler",
    "CommandRegistry",
    "FindOptions",
    "StatusOptions",
    "register_commands",
    "run_find",
    "run_status",
]
