"""Shared catalog update step for the find and status commands."""

from __future__ import annotations

from collections.abc import Mapping
from concurrent.futures import Executor, Future
from pathlib import Path

from gt3.commands.registry import CommandEnvironment
from gt3.locales import LocaleCatalog, LocaleDiff, apply_locale_diff
from gt3.rewrite import apply_locale_changes


def schedule_locale_updates(
    executor: Executor,
    environment: CommandEnvironment,
    catalogs: Mapping[str, LocaleCatalog],
    changes: Mapping[str, LocaleDiff],
    *,
    quiet: bool = False,
    verbose: bool = False,
) -> list[Future[Path]]:
    """Apply per-locale diffs in memory, report them, and schedule the writes."""
    out = environment.out
    report_changes = verbose and not quiet
    updated: list[LocaleCatalog] = []
    for locale, diff in changes.items():
        catalog = catalogs.get(locale)
        if catalog is None:
            continue
        if not quiet:
            print(f"Updating {environment.locale_file_label(locale)}", file=out)
        new_catalog, added, removed = apply_locale_diff(catalog, diff.missing, diff.extra)
        if report_changes:
            for key in added:
                print(f'  - Add "{key}"', file=out)
            for key in removed:
                print(f'  - Remove "{key}"', file=out)
            print("", file=out)
        updated.append(new_catalog)
    environment.diagnostics.event(
        "locales_scheduled", detail={"locales": [catalog.locale for catalog in updated]}
    )
    return apply_locale_changes(
        executor,
        environment.config.theme_root,
        environment.config.locales.directory,
        updated,
    )
