"""Bottom-up source rewriting and concurrent catalog/template writers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from pathlib import Path

from gt3.errors import ContractViolation
from gt3.locales.catalog import LocaleCatalog, write_catalog
from gt3.location import SourceSpan
from gt3.paths import resolve_theme_path
from gt3.template.source import TemplateFile
from gt3.visitors.text_extractor import TextToTranslate


class MultilineEditError(ContractViolation):
    """Raised when an edit spans more than one line; the helper syntax is single-line."""


@dataclass(slots=True, frozen=True)
class Edit:
    """Replace the text at `span` with a translation-helper call for `text`."""

    text: str
    span: SourceSpan


@dataclass(slots=True, frozen=True)
class ChangeSet:
    """Edits for one file, applied in the order stored."""

    source: str
    edits: tuple[Edit, ...]

    @classmethod
    def from_edits(cls, source: str, edits: Sequence[Edit]) -> ChangeSet:
        """Build a change set sorted by (line, column) descending."""
        ordered = sorted(edits, key=lambda edit: edit.span.start, reverse=True)
        return cls(source=source, edits=tuple(ordered))


def has_letters(text: str) -> bool:
    """Return True when text contains at least one Unicode letter."""
    return any(char.isalpha() for char in text)


def translatable_texts(
    text_to_translate: TextToTranslate, include_special_characters: bool = False
) -> list[str]:
    """Return extracted texts, dropping letterless ones unless requested."""
    return [
        text
        for text in text_to_translate
        if include_special_characters or has_letters(text)
    ]


def prepare_changes(
    text_to_translate: TextToTranslate, include_special_characters: bool = False
) -> dict[str, ChangeSet]:
    """Group extracted text locations by file into descending change sets."""
    grouped: dict[str, list[Edit]] = {}
    for text in translatable_texts(text_to_translate, include_special_characters):
        for span in text_to_translate[text]:
            grouped.setdefault(span.source, []).append(Edit(text=text, span=span))
    return {source: ChangeSet.from_edits(source, edits) for source, edits in grouped.items()}


def wrap_in_translation_helper(text: str, helper: str = "t") -> str:
    """Wrap text in a helper call, picking the quote that avoids escaping."""
    quote = '"'
    body = text
    if '"' in text:
        if "'" in text:
            body = text.replace('"', '\\"')
        else:
            quote = "'"
    return f"{{{{{helper} {quote}{body}{quote}}}}}"


def apply_change_set(contents: str, change_set: ChangeSet, helper: str = "t") -> str:
    """Splice every edit of a change set into contents and return the result."""
    lines = contents.split("\n")
    for edit in change_set.edits:
        span = edit.span
        if not span.is_single_line:
            raise MultilineEditError(
                "Cannot wrap text that spans multiple lines.",
                source=change_set.source,
                line=span.start.line,
                column=span.start.column,
            )
        index = span.start.line - 1
        line = lines[index]
        lines[index] = (
            line[: span.start.column]
            + wrap_in_translation_helper(edit.text, helper)
            + line[span.end.column :]
        )
    return "\n".join(lines)


def describe_change_set(change_set: ChangeSet, label: str, helper: str = "t") -> list[str]:
    """Return one report line per edit, top of the file first."""
    return [
        f"{label}:{edit.span.start.line} {edit.text} -> "
        f"{wrap_in_translation_helper(edit.text, helper)}"
        for edit in reversed(change_set.edits)
    ]


def render_source_changes(
    templates: Sequence[TemplateFile],
    changes: Mapping[str, ChangeSet],
    *,
    helper: str = "t",
) -> dict[str, str]:
    """Return the rewritten contents of every changed template, keyed by path.

    Every change set is applied before anything is written, so a
    `MultilineEditError` in one file leaves the whole theme untouched.
    """
    rendered: dict[str, str] = {}
    for template in templates:
        change_set = changes.get(template.path)
        if change_set is None:
            continue
        rendered[template.path] = apply_change_set(template.contents, change_set, helper)
    return rendered


def apply_source_changes(
    executor: Executor, theme_root: Path, rendered: Mapping[str, str]
) -> list[Future[Path]]:
    """Schedule one write task per rendered template."""
    futures: list[Future[Path]] = []
    for path, contents in rendered.items():
        target = resolve_theme_path(theme_root, path)
        futures.append(executor.submit(_write_template, target, contents))
    return futures


def apply_locale_changes(
    executor: Executor,
    theme_root: Path,
    locales_directory: str,
    catalogs: Sequence[LocaleCatalog],
) -> list[Future[Path]]:
    """Schedule one write task per updated catalog."""
    futures: list[Future[Path]] = []
    for catalog in catalogs:
        target = resolve_theme_path(theme_root, f"{locales_directory}/{catalog.locale}.json")
        futures.append(executor.submit(_write_catalog, target, catalog))
    return futures


def _write_template(target: Path, contents: str) -> Path:
    target.write_text(contents, encoding="utf-8", newline="")
    return target


def _write_catalog(target: Path, catalog: LocaleCatalog) -> Path:
    write_catalog(target, catalog)
    return target
