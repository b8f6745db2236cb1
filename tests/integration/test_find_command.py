from __future__ import annotations

import io
import json
from pathlib import Path

from gt3.cli import main

DEFAULT_HBS = "\n".join(
    [
        "<html>",
        "<body>",
        "  <h1>Welcome</h1>",
        '  <p>{{t "Read more"}}</p>',
        "  {{#if @site.title}}<span>{{@site.title}}</span>{{else}}<span>Untitled</span>{{/if}}",
        "  <p>&copy; 2024</p>",
        "</body>",
        "</html>",
        "",
    ]
)
CARD_HBS = '<article>\n  <h2>{{title}}</h2>\n  <a href="{{url}}">Read more</a>\n</article>\n'


def _make_theme(tmp_path: Path) -> Path:
    theme = tmp_path / "theme"
    (theme / "partials").mkdir(parents=True)
    (theme / "locales").mkdir()
    (theme / "default.hbs").write_text(DEFAULT_HBS, encoding="utf-8")
    (theme / "partials" / "card.hbs").write_text(CARD_HBS, encoding="utf-8")
    (theme / "locales" / "en.json").write_text(
        '{\n\t"Read more": "Read more"\n}\n', encoding="utf-8"
    )
    return theme


def _run(*argv: str) -> tuple[int, str, str]:
    out = io.StringIO()
    err = io.StringIO()
    code = main(list(argv), out=out, err=err)
    return code, out.getvalue(), err.getvalue()


def test_find_lists_untranslated_text_in_discovery_order(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)

    code, out, err = _run("find", str(theme))

    assert code == 0
    assert err == ""
    assert out == '"Welcome"\n"Untitled"\n"Read more"\n'


def test_find_json_output_is_a_list(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)

    code, out, _ = _run("find", str(theme), "--json")

    assert code == 0
    assert json.loads(out) == ["Welcome", "Untitled", "Read more"]


def test_find_special_characters_includes_letterless_text(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)

    _, out, _ = _run("find", str(theme), "--json", "--special-characters")

    assert json.loads(out) == ["Welcome", "Untitled", "© 2024", "Read more"]


def test_find_verbose_prints_one_based_columns(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)

    _, out, _ = _run("find", str(theme), "--verbose")

    label = str(theme)
    assert out.splitlines()[:3] == ['"Welcome"', f" - {label}/default.hbs:3:7", ""]
    assert f" - {label}/default.hbs:5:64" in out
    assert f" - {label}/partials/card.hbs:3:21" in out


def test_find_fail_exits_non_zero_when_text_is_found(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)

    code, _, _ = _run("find", str(theme), "--fail")

    assert code == 1


def test_find_update_and_fail_are_mutually_exclusive(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)

    code, out, err = _run("find", str(theme), "--update", "--fail")

    assert code == 1
    assert out == ""
    assert err == "Error: Cannot use --update and --fail together\n"
    assert (theme / "default.hbs").read_text(encoding="utf-8") == DEFAULT_HBS


def test_unparseable_template_is_reported_and_skipped(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)
    (theme / "broken.hbs").write_text("<p>Lost</p>{{#if a}}", encoding="utf-8")

    code, out, err = _run("find", str(theme))

    assert code == 0
    assert err == f"Error: skipped {theme}/broken.hbs:1:12: Unterminated block.\n"
    assert '"Lost"' not in out
    assert '"Welcome"' in out


def test_contract_violation_exits_with_code_two(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)
    (theme / "bad.hbs").write_text("<p>{{t title}}</p>", encoding="utf-8")

    code, _, err = _run("find", str(theme))

    assert code == 2
    assert err.startswith("Error: bad.hbs:1:4: ")


def test_missing_theme_directory_is_a_usage_error(tmp_path: Path) -> None:
    code, _, err = _run("find", str(tmp_path / "nope"))

    assert code == 1
    assert "theme directory not found" in err
