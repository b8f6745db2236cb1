from __future__ import annotations

import io
import json
from pathlib import Path

from gt3.cli import main


def _make_theme(tmp_path: Path) -> Path:
    theme = tmp_path / "theme"
    (theme / "partials").mkdir(parents=True)
    (theme / "locales").mkdir()
    (theme / "index.hbs").write_text(
        "<h1>Hello and Goodbye</h1>\r\n<p>{{title}} Read more</p>\r\n<p>Don't say \"no\"</p>\r\n",
        encoding="utf-8",
        newline="",
    )
    (theme / "partials" / "nav.hbs").write_text(
        '<nav>{{#if @member}}Sign out{{else}}Sign in{{/if}}</nav>', encoding="utf-8"
    )
    (theme / "locales" / "en.json").write_text(
        '{\n\t"Sign in": "Sign in"\n}\n', encoding="utf-8"
    )
    (theme / "locales" / "de.json").write_text(
        '{\r\n  "Sign in": "Anmelden",\r\n  "Unused": "x"\r\n}', encoding="utf-8", newline=""
    )
    return theme


def _run(*argv: str) -> tuple[int, str, str]:
    out = io.StringIO()
    err = io.StringIO()
    code = main(list(argv), out=out, err=err)
    return code, out.getvalue(), err.getvalue()


def test_find_update_wraps_text_and_adds_catalog_keys(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)

    code, out, err = _run("find", str(theme), "--update")

    assert code == 0
    assert err == ""
    assert out.splitlines() == [
        f"Updating {theme}/index.hbs",
        f"Updating {theme}/partials/nav.hbs",
        f"Updating {theme}/locales/de.json",
        f"Updating {theme}/locales/en.json",
    ]
    assert (theme / "index.hbs").read_bytes().decode("utf-8") == (
        '<h1>{{t "Hello and Goodbye"}}</h1>\r\n'
        '<p>{{title}} {{t "Read more"}}</p>\r\n'
        "<p>{{t \"Don't say \\\"no\\\"\"}}</p>\r\n"
    )
    assert (theme / "partials" / "nav.hbs").read_text(encoding="utf-8") == (
        '<nav>{{#if @member}}{{t "Sign out"}}{{else}}{{t "Sign in"}}{{/if}}</nav>'
    )

    de = (theme / "locales" / "de.json").read_bytes().decode("utf-8")
    assert de.startswith('{\r\n  "Sign in": "Anmelden",\r\n  "Unused": "x",\r\n')
    assert not de.endswith("\n")
    assert json.loads(de)["Sign in"] == "Anmelden"
    en = json.loads((theme / "locales" / "en.json").read_text(encoding="utf-8"))
    assert en == {
        "Sign in": "Sign in",
        "Hello and Goodbye": "",
        "Read more": "",
        "Don't say \"no\"": "",
        "Sign out": "",
    }


def test_after_update_nothing_is_left_to_translate(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)
    _run("find", str(theme), "--update")

    code, out, _ = _run("find", str(theme), "--fail")

    assert code == 0
    assert out == ""

    code, out, _ = _run("status", str(theme), "--json")
    assert json.loads(out) == {"de": {"missing": [], "extra": ["Unused"]}}


def test_find_update_verbose_reports_each_edit_top_down(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)

    _, out, _ = _run("find", str(theme), "--update", "--verbose")

    lines = out.splitlines()
    assert lines[:3] == [
        f'{theme}/index.hbs:1 Hello and Goodbye -> {{{{t "Hello and Goodbye"}}}}',
        f'{theme}/index.hbs:2 Read more -> {{{{t "Read more"}}}}',
        f"{theme}/index.hbs:3 Don't say \"no\" -> {{{{t \"Don't say \\\"no\\\"\"}}}}",
    ]
    assert '  - Add "Sign out"' in lines


def test_configured_helper_name_is_written(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)
    (theme / "gt3.toml").write_text('[helper]\nname = "tr"\n', encoding="utf-8")

    _run("find", str(theme), "--update")

    nav = (theme / "partials" / "nav.hbs").read_text(encoding="utf-8")
    assert nav == '<nav>{{#if @member}}{{tr "Sign out"}}{{else}}{{tr "Sign in"}}{{/if}}</nav>'


def test_audit_log_and_debug_dir_are_written(tmp_path: Path) -> None:
    theme = _make_theme(tmp_path)
    audit_log = tmp_path / "logs" / "run.jsonl"
    debug_dir = tmp_path / "debug"

    code, _, _ = _run(
        "find", str(theme), "--audit-log", str(audit_log), "--debug-dir", str(debug_dir)
    )

    assert code == 0
    events = [json.loads(line) for line in audit_log.read_text(encoding="utf-8").splitlines()]
    names = [event["event"] for event in events]
    assert names[0] == "command_started"
    assert names[-1] == "command_finished"
    assert "theme_read" in names
    assert len({event["run_id"] for event in events}) == 1
    assert all("Hello" not in json.dumps(event) for event in events)
    masked = (debug_dir / "partials" / "nav.hbs").read_text(encoding="utf-8")
    assert "Sign out" in masked
    assert "{{" not in masked


def test_multi_line_text_aborts_update_before_anything_is_written(tmp_path: Path) -> None:
    theme = tmp_path / "theme"
    (theme / "locales").mkdir(parents=True)
    (theme / "a.hbs").write_text("<p>Single</p>", encoding="utf-8")
    (theme / "b.hbs").write_text("<p>Two\nlines</p>", encoding="utf-8")
    catalog = '{\n\t"Hello": "Hello"\n}\n'
    (theme / "locales" / "en.json").write_text(catalog, encoding="utf-8")

    code, out, err = _run("find", str(theme), "--update")

    assert code == 2
    assert out == ""
    assert err == "Error: b.hbs:1:4: Cannot wrap text that spans multiple lines.\n"
    assert (theme / "a.hbs").read_text(encoding="utf-8") == "<p>Single</p>"
    assert (theme / "b.hbs").read_text(encoding="utf-8") == "<p>Two\nlines</p>"
    assert (theme / "locales" / "en.json").read_text(encoding="utf-8") == catalog
