"""Shared stderr reporting for commands."""

from __future__ import annotations

from gt3.commands.registry import CommandEnvironment
from gt3.theme import ParsedTheme


def report_template_failures(theme: ParsedTheme, environment: CommandEnvironment) -> None:
    """Print one line per template that could not be analysed."""
    for failure in theme.failures:
        print(
            f"Error: skipped {environment.theme_label}/{failure.describe()}",
            file=environment.err,
        )
