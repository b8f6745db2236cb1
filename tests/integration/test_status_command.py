from __future__ import annotations

import io
import json
from pathlib import Path

from gt3.cli import main

DE_JSON = '{\n    "Read more": "Weiterlesen",\n    "Old": "Alt"\n}'


def _make_theme(tmp_path: Path) -> Path:
    theme = tmp_path / "theme"
    (theme / "locales").mkdir(parents=True)
    (theme / "post.hbs").write_text(
        '<a>{{t "Read more"}}</a>\n<p>{{t "Share" network="x"}}</p>\n', encoding="utf-8"
    )
    (theme / "locales" / "en.json").write_text(
        '{\n\t"Read more": "Read more",\n\t"Share": "Share"\n}\n', encoding="utf-8"
    )
    (theme / "locales" / "de.json").write_text(DE_JSON, encoding="utf-8")
    (theme / "locales" / "fr.json").write_text(
        '{\n\t"Read more": "Lire la suite",\n\t"Share": "Partager"\n}\n', encoding="utf-8"
    )
    return theme


def _run(*argv: str) -> tuple[int, str, str]:
    out = io.StringIO()
    err = io.StringIO()
    code = main(list(argv), out=out, err=err)
    return code, out.getvalue(), err.getvalue()


def test_status_prints_one_line_per_incomplete_locale(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)

    code, out, err = _run("status", str(theme))

    assert code == 0
    assert err == ""
    assert out == f"{theme}/locales/de.json: +1/-1\n"


def test_status_all_includes_complete_locales(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)

    _, out, _ = _run("status", str(theme), "--all")

    assert out.splitlines() == [
        f"{theme}/locales/de.json: +1/-1",
        f"{theme}/locales/en.json: +0/-0",
        f"{theme}/locales/fr.json: +0/-0",
    ]


def test_status_verbose_lists_each_category(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)

    _, out, _ = _run("status", str(theme), "--verbose")

    assert out.splitlines() == [
        f"{theme}/locales/de.json: +1/-1",
        "  Extra strings:",
        "    * Old",
        "  Missing strings:",
        "    * Share",
        "",
    ]


def test_status_json_is_keyed_by_locale(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)

    _, out, _ = _run("status", str(theme), "--json")

    assert json.loads(out) == {"de": {"missing": ["Share"], "extra": ["Old"]}}


def test_fail_and_strict_exit_codes(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)
    (theme / "locales" / "de.json").write_text(
        '{\n\t"Read more": "Weiterlesen",\n\t"Share": "Teilen",\n\t"Old": "Alt"\n}',
        encoding="utf-8",
    )

    assert _run("status", str(theme), "--fail")[0] == 0
    assert _run("status", str(theme), "--fail", "--strict")[0] == 1


def test_fail_exits_non_zero_on_missing_keys(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)

    assert _run("status", str(theme), "--fail")[0] == 1


def test_strict_requires_fail(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)

    code, _, err = _run("status", str(theme), "--strict")

    assert code == 1
    assert err == "Error: --strict can only be used with --fail\n"


def test_base_locale_defines_expected_keys(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)
    (theme / "locales" / "en.json").write_text('{\n\t"Read more": ""\n}\n', encoding="utf-8")

    _, out, _ = _run("status", str(theme), "--base-lang", "en", "--all")

    assert out.splitlines() == [
        f"{theme}/locales/de.json: +1/-0",
        f"{theme}/locales/fr.json: +1/-0",
    ]


def test_missing_base_locale_is_reported(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)

    code, out, err = _run("status", str(theme), "--base-locale", "es")

    assert code == 1
    assert out == ""
    assert err == f"Error: missing base locale {theme}/locales/es.json\n"


def test_status_update_fixes_catalogs_in_their_own_format(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)

    code, out, _ = _run("status", str(theme), "--update", "--verbose")

    assert code == 0
    assert out.splitlines() == [
        f"Updating {theme}/locales/de.json",
        '  - Add "Share"',
        '  - Remove "Old"',
        "",
    ]
    assert (theme / "locales" / "de.json").read_text(encoding="utf-8") == (
        '{\n    "Read more": "Weiterlesen",\n    "Share": ""\n}'
    )
    assert _run("status", str(theme), "--fail", "--strict")[0] == 0


def test_status_update_with_json_prints_only_the_report(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)

    _, out, _ = _run("status", str(theme), "--update", "--json")

    assert json.loads(out) == {"de": {"missing": ["Share"], "extra": ["Old"]}}
    assert "Old" not in (theme / "locales" / "de.json").read_text(encoding="utf-8")
