"""Command-line entrypoint for the theme translation toolkit."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TextIO

from gt3.commands import (
    CommandDispatchError,
    CommandEnvironment,
    CommandRegistry,
    register_commands,
)
from gt3.config import CliOverrides, ToolConfig, load_effective_config
from gt3.errors import ContractViolation, InputError
from gt3.location import ResolverMisuseError
from gt3.logging import (
    AuditDiagnostics,
    CompositeDiagnostics,
    DebugDirectoryDiagnostics,
    DiagnosticsSink,
    JsonlAuditLogger,
    NullDiagnostics,
)
from gt3.paths import PathBlockedError

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONTRACT_VIOLATION = 2

DESCRIPTION = "GT3 - The Ghost Theme Translation Toolkit"


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per registered command."""
    parser = argparse.ArgumentParser(prog="gt3", description=DESCRIPTION)
    subparsers = parser.add_subparsers(dest="command", required=True, metavar="command")

    find = subparsers.add_parser("find", help="Finds untranslated strings")
    _add_common_arguments(find)
    find.add_argument(
        "--special-characters",
        dest="special_characters",
        action="store_true",
        help="Consider strings of only special characters as untranslated",
    )
    find.add_argument(
        "--update",
        action="store_true",
        help="Wrap untranslated strings in the helper. This modifies theme files!",
    )
    find.add_argument(
        "--fail",
        action="store_true",
        help="Exit non-zero if any untranslated strings are found",
    )
    find.add_argument("--json", action="store_true", help="Output the results as JSON")
    find.add_argument(
        "--verbose", action="store_true", help="Include file name and line number in the output"
    )

    status = subparsers.add_parser(
        "status", help="Reports the translation status of each locale"
    )
    _add_common_arguments(status)
    status.add_argument(
        "--all",
        action="store_true",
        help="Report fully translated locales, not just those with differences",
    )
    status.add_argument("--verbose", action="store_true", help="List the differing keys")
    status.add_argument("--json", action="store_true", help="Output the results as JSON")
    status.add_argument("--fail", action="store_true", help="Exit non-zero on missing keys")
    status.add_argument(
        "--strict", action="store_true", help="With --fail, also exit non-zero on extra keys"
    )
    status.add_argument(
        "--update", action="store_true", help="Add missing and remove extra keys in every locale"
    )
    status.add_argument(
        "--base-locale",
        "--base-lang",
        dest="base_locale",
        default=None,
        help="Use this locale as the fully translated reference instead of the templates",
    )
    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("theme", help="Path to the theme directory")
    parser.add_argument("--workers", type=int, default=None)
    parser.add_argument("--helper", dest="helper_name", default=None)
    parser.add_argument("--audit-log", dest="audit_log", default=None)
    parser.add_argument("--debug-dir", dest="debug_dir", default=None)


def build_diagnostics(config: ToolConfig) -> DiagnosticsSink:
    """Build the diagnostics sink selected by the logging configuration."""
    sinks: list[DiagnosticsSink] = []
    if config.logging.audit_log is not None:
        sinks.append(AuditDiagnostics(JsonlAuditLogger(config.logging.audit_log)))
    if config.logging.debug_dir is not None:
        sinks.append(DebugDirectoryDiagnostics(config.logging.debug_dir))
    if not sinks:
        return NullDiagnostics()
    if len(sinks) == 1:
        return sinks[0]
    return CompositeDiagnostics(sinks)


def main(
    argv: list[str] | None = None,
    *,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Entrypoint for the gt3 command line."""
    out_stream = out or sys.stdout
    err_stream = err or sys.stderr
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    arguments = vars(args)
    command = str(arguments.pop("command"))
    theme_path = str(arguments.pop("theme"))

    theme_root = Path(theme_path)
    if not theme_root.is_dir():
        print(f"Error: theme directory not found: {theme_path}", file=err_stream)
        return EXIT_FAILURE

    overrides = CliOverrides(
        base_locale=arguments.pop("base_locale", None),
        helper_name=arguments.pop("helper_name", None),
        workers=arguments.pop("workers", None),
        audit_log=_optional_path(arguments.pop("audit_log", None)),
        debug_dir=_optional_path(arguments.pop("debug_dir", None)),
    )
    try:
        config = load_effective_config(theme_root, overrides)
    except ValueError as exc:
        print(f"Error: {exc}", file=err_stream)
        return EXIT_FAILURE

    diagnostics = build_diagnostics(config)
    environment = CommandEnvironment(
        config=config,
        diagnostics=diagnostics,
        out=out_stream,
        err=err_stream,
        theme_label=theme_path.replace("\\", "/").rstrip("/") or theme_path,
    )
    registry = CommandRegistry()
    register_commands(registry)

    diagnostics.event("command_started", detail={"command": command})
    try:
        code = registry.dispatch(command, arguments, environment)
    except CommandDispatchError as exc:
        print(f"Error: {exc.message}", file=err_stream)
        code = EXIT_FAILURE
    except ContractViolation as exc:
        print(f"Error: {exc.describe()}", file=err_stream)
        code = EXIT_CONTRACT_VIOLATION
    except ResolverMisuseError as exc:
        print(f"Error: {exc}", file=err_stream)
        code = EXIT_CONTRACT_VIOLATION
    except PathBlockedError as exc:
        print(f"Error: {exc.reason} {exc.hint}", file=err_stream)
        code = EXIT_CONTRACT_VIOLATION
    except InputError as exc:
        print(f"Error: {exc}", file=err_stream)
        code = EXIT_FAILURE
    diagnostics.event(
        "command_finished", ok=code == EXIT_OK, detail={"command": command, "exit_code": code}
    )
    return code


def _optional_path(value: object) -> Path | None:
    if value is None:
        return None
    return Path(str(value))


if __name__ == "__main__":
    raise SystemExit(main())
