"""Format-preserving JSON locale catalogs."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from gt3.errors import ContractViolation, InputError

DEFAULT_NEWLINE: Final[str] = "\n"
DEFAULT_INDENTATION: Final[str] = "\t"
_FORMAT_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\s*[{\[]((?:\r?\n)+)([\s\t]*)")


class CatalogReadError(InputError):
    """Raised when a catalog file is not a JSON object."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class CatalogFormatError(ContractViolation):
    """Raised when a catalog without formatting metadata is about to be written."""


@dataclass(slots=True, frozen=True)
class CatalogFormat:
    """Whitespace conventions observed in a catalog file."""

    newline: str = DEFAULT_NEWLINE
    indentation: str = DEFAULT_INDENTATION
    trailing_newline: bool = False


@dataclass(slots=True, frozen=True)
class LocaleCatalog:
    """Key to translation mapping of one locale, paired with its file formatting."""

    locale: str
    entries: dict[str, object]
    format: CatalogFormat | None

    def keys(self) -> tuple[str, ...]:
        """Return translation keys in file order."""
        return tuple(self.entries.keys())


def detect_format(contents: str) -> CatalogFormat:
    """Detect the newline sequence and indentation from the opening brace."""
    newline = DEFAULT_NEWLINE
    indentation = DEFAULT_INDENTATION
    match = _FORMAT_PATTERN.match(contents)
    if match is not None:
        newline = match.group(1)
        indentation = match.group(2)
    return CatalogFormat(
        newline=newline,
        indentation=indentation,
        trailing_newline=contents.endswith(newline),
    )


def parse_catalog(locale: str, contents: str, *, path: str | None = None) -> LocaleCatalog:
    """Parse catalog text, recording its formatting alongside the entries."""
    label = path or f"{locale}.json"
    try:
        payload = json.loads(contents)
    except json.JSONDecodeError as exc:
        raise CatalogReadError(label, f"invalid JSON ({exc.msg} at line {exc.lineno}).") from exc
    if not isinstance(payload, dict):
        raise CatalogReadError(label, "top-level value must be an object.")
    return LocaleCatalog(locale=locale, entries=payload, format=detect_format(contents))


def read_catalog(path: Path) -> LocaleCatalog:
    """Read a `<locale>.json` file without translating its newlines."""
    try:
        with path.open("r", encoding="utf-8", newline="") as handle:
            contents = handle.read()
    except UnicodeDecodeError as exc:
        raise CatalogReadError(path.name, "file is not valid UTF-8.") from exc
    return parse_catalog(path.stem, contents, path=path.name)


def serialize_catalog(catalog: LocaleCatalog) -> str:
    """Serialize entries using the catalog's own newline and indentation."""
    if catalog.format is None:
        raise CatalogFormatError(
            f"Catalog '{catalog.locale}' has no formatting metadata; refusing to guess.",
            source=f"{catalog.locale}.json",
        )
    fmt = catalog.format
    serialized = json.dumps(catalog.entries, indent=fmt.indentation, ensure_ascii=False)
    if fmt.newline != "\n":
        serialized = serialized.replace("\n", fmt.newline)
    if fmt.trailing_newline:
        serialized += fmt.newline
    return serialized


def write_catalog(path: Path, catalog: LocaleCatalog) -> None:
    """Write a catalog back to disk byte-for-byte in its original format."""
    path.write_text(serialize_catalog(catalog), encoding="utf-8", newline="")
