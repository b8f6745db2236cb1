"""`gt3 status`: compare every locale catalog with the expected keys."""

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from gt3.commands.locale_updates import schedule_locale_updates
from gt3.commands.registry import CommandEnvironment
from gt3.commands.reporting import report_template_failures
from gt3.locales import (
    MissingBaseLocaleError,
    StatusReport,
    build_status_report,
    expected_keys,
)
from gt3.theme import ParsedTheme, read_theme


@dataclass(slots=True, frozen=True)
class StatusOptions:
    """Flags accepted by the status command."""

    all: bool = False
    verbose: bool = False
    json: bool = False
    fail: bool = False
    strict: bool = False
    update: bool = False

    @classmethod
    def from_arguments(cls, arguments: dict[str, object]) -> StatusOptions:
        """Build options from parsed command-line arguments."""
        return cls(
            all=bool(arguments.get("all", False)),
            verbose=bool(arguments.get("verbose", False)),
            json=bool(arguments.get("json", False)),
            fail=bool(arguments.get("fail", False)),
            strict=bool(arguments.get("strict", False)),
            update=bool(arguments.get("update", False)),
        )


def run_status(arguments: dict[str, object], environment: CommandEnvironment) -> int:
    """Print per-locale missing/extra counts, or fix the catalogs with --update."""
    options = StatusOptions.from_arguments(arguments)
    if options.strict and not options.fail:
        print("Error: --strict can only be used with --fail", file=environment.err)
        return 1
    if options.update and options.fail:
        print("Error: Cannot use --update and --fail together", file=environment.err)
        return 1

    config = environment.config
    base_locale = config.locales.base_locale
    theme = read_theme(config.theme_root, config, environment.diagnostics)
    report_template_failures(theme, environment)

    try:
        expected = expected_keys(theme.translated_strings.keys(), theme.locales, base_locale)
    except MissingBaseLocaleError as exc:
        print(
            f"Error: missing base locale {environment.locale_file_label(exc.locale)}",
            file=environment.err,
        )
        return 1

    report = build_status_report(expected, theme.locales, base_locale, include_all=options.all)
    environment.diagnostics.event(
        "status_computed",
        detail={
            "base_locale": base_locale,
            "locales": len(report.statuses),
            "has_missing": report.has_missing,
            "has_extra": report.has_extra,
        },
    )

    if options.update:
        if options.json:
            _print_json(report, environment)
        return _update(theme, report, options, environment)

    if options.strict:
        code = int(report.has_extra or report.has_missing)
    elif options.fail:
        code = int(report.has_missing)
    else:
        code = 0

    if options.json:
        _print_json(report, environment)
        return code

    out = environment.out
    for status in report.ranked():
        diff = status.diff
        print(
            f"{environment.locale_file_label(status.locale)}: "
            f"+{len(diff.extra)}/-{len(diff.missing)}",
            file=out,
        )
        if not options.verbose:
            continue
        for name, keys in (("extra", diff.extra), ("missing", diff.missing)):
            if not keys:
                print(f"  No {name} strings", file=out)
                continue
            print(f"  {name.capitalize()} strings:", file=out)
            for key in keys:
                print(f"    * {key}", file=out)
        print("", file=out)
    return code


def _print_json(report: StatusReport, environment: CommandEnvironment) -> None:
    print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False), file=environment.out)


def _update(
    theme: ParsedTheme,
    report: StatusReport,
    options: StatusOptions,
    environment: CommandEnvironment,
) -> int:
    changes = {status.locale: status.diff for status in report.statuses}
    with ThreadPoolExecutor(max_workers=environment.config.run.workers) as executor:
        futures = schedule_locale_updates(
            executor,
            environment,
            theme.locales,
            changes,
            quiet=options.json,
            verbose=options.verbose,
        )
        for future in futures:
            future.result()
    return 0
