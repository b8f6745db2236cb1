"""Missing/extra key analysis between expected keys and locale catalogs."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from gt3.errors import InputError
from gt3.locales.catalog import LocaleCatalog


class MissingBaseLocaleError(InputError):
    """Raised when the requested base locale has no catalog."""

    def __init__(self, locale: str) -> None:
        super().__init__(f"Missing base locale '{locale}'.")
        self.locale = locale


@dataclass(slots=True, frozen=True)
class LocaleDiff:
    """Keys a locale lacks and keys it has that nothing expects."""

    missing: tuple[str, ...]
    extra: tuple[str, ...]

    @property
    def score(self) -> int:
        """Return the total number of differences."""
        return len(self.missing) + len(self.extra)


@dataclass(slots=True, frozen=True)
class LocaleStatus:
    locale: str
    diff: LocaleDiff


@dataclass(slots=True, frozen=True)
class StatusReport:
    """Per-locale differences, in catalog order."""

    statuses: tuple[LocaleStatus, ...]

    def ranked(self) -> list[LocaleStatus]:
        """Return statuses by descending score; ties keep catalog order."""
        return sorted(self.statuses, key=lambda status: -status.diff.score)

    @property
    def has_missing(self) -> bool:
        """Return True when any locale lacks an expected key."""
        return any(status.diff.missing for status in self.statuses)

    @property
    def has_extra(self) -> bool:
        """Return True when any locale carries an unexpected key."""
        return any(status.diff.extra for status in self.statuses)

    def to_dict(self) -> dict[str, dict[str, list[str]]]:
        """Return the JSON report shape keyed by locale."""
        return {
            status.locale: {
                "missing": list(status.diff.missing),
                "extra": list(status.diff.extra),
            }
            for status in self.statuses
        }


def analyze_locale(expected: Iterable[str], locale_keys: Iterable[str]) -> LocaleDiff:
    """Diff one locale's keys against the expected keys, preserving input order."""
    expected_order = list(dict.fromkeys(expected))
    expected_set = set(expected_order)
    present: set[str] = set()
    extra: list[str] = []
    for key in locale_keys:
        if key in expected_set:
            present.add(key)
        else:
            extra.append(key)
    missing = tuple(key for key in expected_order if key not in present)
    return LocaleDiff(missing=missing, extra=tuple(extra))


def expected_keys(
    collected_keys: Iterable[str],
    catalogs: Mapping[str, LocaleCatalog],
    base_locale: str | None = None,
) -> tuple[str, ...]:
    """Return the keys every locale should carry: the base locale's, or the collected ones."""
    if base_locale is None:
        return tuple(collected_keys)
    catalog = catalogs.get(base_locale)
    if catalog is None:
        raise MissingBaseLocaleError(base_locale)
    return catalog.keys()


def build_status_report(
    expected: Iterable[str],
    catalogs: Mapping[str, LocaleCatalog],
    base_locale: str | None = None,
    include_all: bool = False,
) -> StatusReport:
    """Diff every non-base locale; fully translated locales only appear with include_all."""
    expected_order = tuple(expected)
    statuses: list[LocaleStatus] = []
    for locale, catalog in catalogs.items():
        if locale == base_locale:
            continue
        diff = analyze_locale(expected_order, catalog.keys())
        if diff.score == 0 and not include_all:
            continue
        statuses.append(LocaleStatus(locale=locale, diff=diff))
    return StatusReport(statuses=tuple(statuses))


def apply_locale_diff(
    catalog: LocaleCatalog, missing: Iterable[str], extra: Iterable[str]
) -> tuple[LocaleCatalog, tuple[str, ...], tuple[str, ...]]:
    """Add missing keys with empty values and drop extra keys.

    Existing translations are never overwritten. Returns the updated catalog
    together with the keys actually added and removed.
    """
    entries = dict(catalog.entries)
    added: list[str] = []
    removed: list[str] = []
    for key in missing:
        if key in entries:
            continue
        entries[key] = ""
        added.append(key)
    for key in extra:
        if key in entries:
            del entries[key]
            removed.append(key)
    updated = LocaleCatalog(locale=catalog.locale, entries=entries, format=catalog.format)
    return updated, tuple(added), tuple(removed)
