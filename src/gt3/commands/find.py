"""`gt3 find`: list, or wrap, template text that is not yet translated."""

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from gt3.commands.locale_updates import schedule_locale_updates
from gt3.commands.registry import CommandEnvironment
from gt3.commands.reporting import report_template_failures
from gt3.locales import LocaleDiff
from gt3.rewrite import (
    apply_source_changes,
    describe_change_set,
    prepare_changes,
    render_source_changes,
    translatable_texts,
)
from gt3.theme import ParsedTheme, read_theme


@dataclass(slots=True, frozen=True)
class FindOptions:
    """Flags accepted by the find command."""

    update: bool = False
    fail: bool = False
    json: bool = False
    verbose: bool = False
    special_characters: bool = False

    @classmethod
    def from_arguments(cls, arguments: dict[str, object]) -> FindOptions:
        """Build options from parsed command-line arguments."""
        return cls(
            update=bool(arguments.get("update", False)),
            fail=bool(arguments.get("fail", False)),
            json=bool(arguments.get("json", False)),
            verbose=bool(arguments.get("verbose", False)),
            special_characters=bool(arguments.get("special_characters", False)),
        )


def run_find(arguments: dict[str, object], environment: CommandEnvironment) -> int:
    """Report untranslated text, or rewrite templates and catalogs with --update."""
    options = FindOptions.from_arguments(arguments)
    if options.update and options.fail:
        print("Error: Cannot use --update and --fail together", file=environment.err)
        return 1

    theme = read_theme(environment.config.theme_root, environment.config, environment.diagnostics)
    report_template_failures(theme, environment)
    texts = translatable_texts(theme.text_to_translate, options.special_characters)

    if options.update:
        return _update(theme, texts, options, environment)

    out = environment.out
    if options.json:
        print(json.dumps(texts, indent=2, ensure_ascii=False), file=out)
    else:
        for text in texts:
            print(f'"{text}"', file=out)
            if not options.verbose:
                continue
            for span in theme.text_to_translate[text]:
                print(
                    f" - {environment.theme_label}/{span.source}:"
                    f"{span.start.line}:{span.start.column + 1}",
                    file=out,
                )
            print("", file=out)

    if options.fail:
        return int(bool(texts))
    return 0


def _update(
    theme: ParsedTheme,
    texts: list[str],
    options: FindOptions,
    environment: CommandEnvironment,
) -> int:
    config = environment.config
    helper = config.helper.name
    changes = prepare_changes(theme.text_to_translate, options.special_characters)
    # Raises before any output or write when one file cannot be rewritten.
    rendered = render_source_changes(theme.templates, changes, helper=helper)

    for path in rendered:
        change_set = changes[path]
        label = f"{environment.theme_label}/{path}"
        if options.verbose:
            messages = describe_change_set(change_set, label, helper)
        else:
            messages = [f"Updating {label}"]
        for message in messages:
            print(message, file=environment.out)

    locale_changes = {
        locale: LocaleDiff(missing=tuple(texts), extra=()) for locale in theme.locales
    }
    with ThreadPoolExecutor(max_workers=config.run.workers) as executor:
        futures = apply_source_changes(executor, theme.root, rendered)
        futures.extend(
            schedule_locale_updates(
                executor,
                environment,
                theme.locales,
                locale_changes,
                verbose=options.verbose,
            )
        )
        written: list[Path] = [future.result() for future in futures]
    environment.diagnostics.event("files_written", detail={"files": len(written)})
    return 0
