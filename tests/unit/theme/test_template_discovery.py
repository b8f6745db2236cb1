from __future__ import annotations

from pathlib import Path

from gt3.config import ScanConfig, default_config
from gt3.theme import discover_templates, read_locales, should_exclude


def _touch(root: Path, relative: str, contents: str = "") -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(contents, encoding="utf-8")


def test_discovery_is_sorted_and_skips_ignored_directories(tmp_path: Path) -> None:
    for relative in (
        "post.hbs",
        "default.hbs",
        "partials/card.hbs",
        "node_modules/pkg/index.hbs",
        ".git/hooks/x.hbs",
        "assets/built/screen.css",
        "README.md",
    ):
        _touch(tmp_path, relative)

    found = discover_templates(tmp_path, default_config(tmp_path).scan)

    assert found == ["default.hbs", "partials/card.hbs", "post.hbs"]


def test_custom_scan_config_controls_extensions_and_globs(tmp_path: Path) -> None:
    _touch(tmp_path, "a.hbs")
    _touch(tmp_path, "b.handlebars")
    _touch(tmp_path, "drafts/c.handlebars")
    config = ScanConfig(include_extensions=(".handlebars",), exclude_globs=("drafts/*",))

    assert discover_templates(tmp_path, config) == ["b.handlebars"]


def test_should_exclude_matches_anchored_patterns() -> None:
    globs = ("**/node_modules/**", "**/.DS_Store")

    assert should_exclude("node_modules/x/y.hbs", globs)
    assert should_exclude("partials/.DS_Store", globs)
    assert not should_exclude("partials/card.hbs", globs)


def test_read_locales_is_keyed_by_locale_in_sorted_order(tmp_path: Path) -> None:
    _touch(tmp_path, "locales/fr.json", '{\n\t"a": "A"\n}')
    _touch(tmp_path, "locales/de.json", "{}")
    _touch(tmp_path, "locales/notes.txt", "ignored")

    catalogs = read_locales(tmp_path, "locales")

    assert list(catalogs) == ["de", "fr"]
    assert catalogs["fr"].entries == {"a": "A"}


def test_missing_locales_directory_reads_as_empty(tmp_path: Path) -> None:
    assert read_locales(tmp_path, "locales") == {}
