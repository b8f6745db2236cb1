"""Locale catalogs and key diffs."""

from .catalog import (
    CatalogFormat,
    CatalogFormatError,
    CatalogReadError,
    LocaleCatalog,
    detect_format,
    parse_catalog,
    read_catalog,
    serialize_catalog,
    write_catalog,
)
from .diff import (
    LocaleDiff,
    LocaleStatus,
    MissingBaseLocaleError,
    StatusReport,
    analyze_locale,
    apply_locale_diff,
    build_status_report,
    expected_keys,
)

__all__ = [
    "CatalogFormat",
    "CatalogFormatError",
    "CatalogReadError",
    "LocaleCatalog",
    "LocaleDiff",
    "LocaleStatus",
    "MissingBaseLocaleError",
    "StatusReport",
    "analyze_locale",
    "apply_locale_diff",
    "build_status_report",
    "detect_format",
    "expected_keys",
    "parse_catalog",
    "read_catalog",
    "serialize_catalog",
    "write_catalog",
]
