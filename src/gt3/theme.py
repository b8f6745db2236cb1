"""Theme discovery and concurrent per-file analysis."""

from __future__ import annotations

import fnmatch
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from gt3.config import ScanConfig, ToolConfig
from gt3.locales.catalog import LocaleCatalog, read_catalog
from gt3.logging.diagnostics import DiagnosticsSink, NullDiagnostics
from gt3.marker import ReservedCharacterError
from gt3.paths import resolve_theme_path
from gt3.template.parser import TemplateSyntaxError
from gt3.template.source import TemplateFile, load_template
from gt3.visitors import (
    DEFAULT_VISITORS,
    TextToTranslate,
    TranslatedStrings,
    VisitorContext,
    create_context,
    merge_contexts,
    run_many,
)


@dataclass(slots=True, frozen=True)
class TemplateFailure:
    """A template skipped because it could not be read or parsed."""

    path: str
    message: str
    line: int | None = None
    column: int | None = None

    def describe(self) -> str:
        """Return `path:line:column: message`, omitting unknown parts."""
        if self.line is None:
            return f"{self.path}: {self.message}"
        return f"{self.path}:{self.line}:{(self.column or 0) + 1}: {self.message}"


@dataclass(slots=True)
class ParsedTheme:
    """Aggregated analysis of every template and catalog in one theme."""

    root: Path
    templates: list[TemplateFile] = field(default_factory=list)
    locales: dict[str, LocaleCatalog] = field(default_factory=dict)
    context: VisitorContext = field(default_factory=dict)
    failures: list[TemplateFailure] = field(default_factory=list)

    @property
    def text_to_translate(self) -> TextToTranslate:
        """Return untranslated text mapped to every span it occurs at."""
        return self.context["text_to_translate"]

    @property
    def translated_strings(self) -> TranslatedStrings:
        """Return translation keys mapped to their call sites."""
        return self.context["translated_strings"]


@dataclass(slots=True, frozen=True)
class _FileOutcome:
    template: TemplateFile | None
    context: VisitorContext | None
    failure: TemplateFailure | None


def discover_templates(theme_root: Path, config: ScanConfig) -> list[str]:
    """Return theme-relative template paths in deterministic sorted order."""
    root = theme_root.resolve()
    include_extensions = {extension.lower() for extension in config.include_extensions}
    excluded_dir_names = _excluded_dir_names(config.exclude_globs)
    found: list[str] = []
    stack: list[Path] = [root]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                ordered_entries = sorted(entries, key=lambda item: item.name)
        except OSError:
            continue
        for entry in reversed(ordered_entries):
            full_path = Path(entry.path)
            relative = full_path.relative_to(root).as_posix()
            if entry.is_dir(follow_symlinks=False):
                if entry.name in excluded_dir_names and should_exclude(
                    f"{relative}/", config.exclude_globs
                ):
                    continue
                stack.append(full_path)
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            if should_exclude(relative, config.exclude_globs):
                continue
            if Path(relative).suffix.lower() not in include_extensions:
                continue
            found.append(relative)
    found.sort()
    return found


def should_exclude(relative_path: str, exclude_globs: tuple[str, ...]) -> bool:
    """Return True when a path matches configured ignore globs."""
    anchored = f"/{relative_path}"
    return any(
        fnmatch.fnmatch(relative_path, pattern) or fnmatch.fnmatch(anchored, pattern)
        for pattern in exclude_globs
    )


def read_locales(theme_root: Path, directory: str) -> dict[str, LocaleCatalog]:
    """Read every `<locale>.json` catalog, keyed by locale code in sorted order."""
    locales_dir = resolve_theme_path(theme_root, directory)
    if not locales_dir.is_dir():
        return {}
    catalogs: dict[str, LocaleCatalog] = {}
    for path in sorted(locales_dir.glob("*.json"), key=lambda item: item.name):
        if not path.is_file():
            continue
        catalog = read_catalog(path)
        catalogs[catalog.locale] = catalog
    return catalogs


def read_theme(
    theme_root: Path,
    config: ToolConfig,
    diagnostics: DiagnosticsSink | None = None,
) -> ParsedTheme:
    """Discover, parse and analyse every template, then load the catalogs."""
    sink = diagnostics or NullDiagnostics()
    root = theme_root.resolve()
    paths = discover_templates(root, config.scan)
    sink.event("discovered", path=None, detail={"templates": len(paths)})

    theme = ParsedTheme(root=root, context=create_context(DEFAULT_VISITORS))
    with ThreadPoolExecutor(max_workers=config.run.workers) as executor:
        futures = [
            executor.submit(_analyze_file, root, path, config.helper.name, sink)
            for path in paths
        ]
        # Merge on this thread in discovery order so output never depends on scheduling.
        for future in futures:
            outcome = future.result()
            if outcome.failure is not None:
                theme.failures.append(outcome.failure)
                continue
            if outcome.template is None or outcome.context is None:
                continue
            theme.templates.append(outcome.template)
            merge_contexts(DEFAULT_VISITORS, theme.context, outcome.context)

    theme.locales = read_locales(root, config.locales.directory)
    sink.event(
        "theme_read",
        detail={
            "templates": len(theme.templates),
            "failures": len(theme.failures),
            "locales": len(theme.locales),
        },
    )
    return theme


def _analyze_file(
    root: Path, relative: str, helper_name: str, sink: DiagnosticsSink
) -> _FileOutcome:
    try:
        with resolve_theme_path(root, relative).open("r", encoding="utf-8", newline="") as handle:
            contents = handle.read()
    except UnicodeDecodeError:
        sink.event("template_failed", path=relative, ok=False, detail={"reason": "encoding"})
        return _FileOutcome(None, None, TemplateFailure(relative, "File is not valid UTF-8."))
    except OSError as exc:
        sink.event("template_failed", path=relative, ok=False, detail={"reason": "unreadable"})
        message = f"Cannot read file ({exc.strerror or type(exc).__name__})."
        return _FileOutcome(None, None, TemplateFailure(relative, message))
    try:
        template = load_template(relative, contents)
    except TemplateSyntaxError as exc:
        sink.event("template_failed", path=relative, ok=False, detail={"reason": "syntax"})
        failure = TemplateFailure(relative, exc.message, exc.line, exc.column)
        return _FileOutcome(None, None, failure)
    try:
        _, context = run_many(
            DEFAULT_VISITORS, template, helper_name=helper_name, diagnostics=sink
        )
    except ReservedCharacterError as exc:
        sink.event("template_failed", path=relative, ok=False, detail={"reason": "reserved"})
        failure = TemplateFailure(relative, exc.message, exc.line, exc.column)
        return _FileOutcome(None, None, failure)
    sink.event("template_analyzed", path=relative)
    return _FileOutcome(template, context, None)


def _excluded_dir_names(exclude_globs: tuple[str, ...]) -> set[str]:
    """Extract directory-name prunes from **/name/** glob patterns."""
    output: set[str] = set()
    for pattern in exclude_globs:
        if not pattern.startswith("**/") or not pattern.endswith("/**"):
            continue
        name = pattern[3:-3].strip("/")
        if not name:
            continue
        if any(char in name for char in "*?[]{}"):
            continue
        output.add(name)
    return output
