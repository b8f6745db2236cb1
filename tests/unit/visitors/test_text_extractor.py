from __future__ import annotations

from collections.abc import Sequence

import pytest

from gt3.location import Position, SourceSpan
from gt3.marker import MARKER_FILL, ReservedCharacterError, marker_of_width
from gt3.template import load_template
from gt3.visitors import (
    DEFAULT_VISITORS,
    TextExtractor,
    TextToTranslate,
    UnsupportedNodeError,
    run_many,
)


def _extract(contents: str, path: str = "index.hbs") -> TextToTranslate:
    _, context = run_many(DEFAULT_VISITORS, load_template(path, contents))
    return context["text_to_translate"]


def test_text_around_a_mustache_is_split_at_the_marker() -> None:
    text = _extract("<p>Hello {{name}}!</p>")

    assert list(text) == ["Hello", "!"]
    assert text["Hello"] == [SourceSpan("index.hbs", Position(1, 3), Position(1, 8))]
    assert text["!"] == [SourceSpan("index.hbs", Position(1, 17), Position(1, 18))]


def test_comment_separates_two_runs() -> None:
    text = _extract("<p>Hello{{!-- note --}}World</p>")

    assert list(text) == ["Hello", "World"]
    assert text["World"][0].start == Position(1, 23)


def test_block_branches_are_extracted_but_tags_are_not() -> None:
    text = _extract("{{#if a}}Yes{{else}}No{{/if}}")

    assert list(text) == ["Yes", "No"]
    assert text["Yes"][0].start == Position(1, 9)
    assert text["No"][0].start == Position(1, 20)
    assert text["No"][0].end == Position(1, 22)


def test_else_if_chain_masks_every_tag_once() -> None:
    text = _extract("{{#if a}}A{{else if (eq b 1)}}B{{else}}C{{/if}}")

    assert list(text) == ["A", "B", "C"]


def test_text_inside_indented_markup_resolves_to_its_line() -> None:
    text = _extract("<p>\n  Hello\n</p>")

    assert text["Hello"] == [SourceSpan("index.hbs", Position(2, 2), Position(2, 7))]


def test_entities_are_decoded_in_keys_but_spans_cover_the_raw_text() -> None:
    text = _extract("<p>Fish &amp; Chips</p>")

    assert text["Fish & Chips"] == [SourceSpan("index.hbs", Position(1, 3), Position(1, 19))]


def test_attributes_and_scripts_are_not_text() -> None:
    text = _extract('<a title="Tooltip" href="{{url}}">Link</a><script>var x = "y";</script>')

    assert list(text) == ["Link"]


def test_translated_text_leaves_only_the_surrounding_text() -> None:
    text = _extract('Hello {{t "world"}}')

    assert list(text) == ["Hello"]


def test_same_text_in_one_file_keeps_every_location() -> None:
    text = _extract("<p>Hi</p>\n<p>Hi</p>")

    assert [span.start for span in text["Hi"]] == [Position(1, 3), Position(2, 3)]


def test_partial_blocks_are_unsupported() -> None:
    with pytest.raises(UnsupportedNodeError) as excinfo:
        _extract("{{#> layout}}x{{/layout}}", "layout.hbs")

    assert excinfo.value.source == "layout.hbs"


def test_masked_buffer_is_handed_to_diagnostics() -> None:
    seen: list[tuple[str, list[str]]] = []

    class Recorder:
        def masked_source(self, source: str, lines: Sequence[str]) -> None:
            seen.append((source, list(lines)))

        def event(self, name: str, **kwargs: object) -> None:
            _ = (name, kwargs)

    run_many((TextExtractor,), load_template("a.hbs", "Hi {{name}}"), diagnostics=Recorder())

    assert seen == [("a.hbs", ["Hi " + marker_of_width(8)])]


def test_inverse_block_with_else_masks_mustaches_in_both_branches() -> None:
    text = _extract("{{^if a}}{{name}} none{{else}}{{title}} some{{/if}}")

    assert list(text) == ["none", "some"]
    assert text["none"] == [SourceSpan("index.hbs", Position(1, 18), Position(1, 22))]
    assert text["some"] == [SourceSpan("index.hbs", Position(1, 40), Position(1, 44))]


def test_text_touching_a_mustache_is_kept_whole() -> None:
    text = _extract("<p>KEY_T{{value}}</p>")

    assert list(text) == ["KEY_T"]
    assert text["KEY_T"] == [SourceSpan("index.hbs", Position(1, 3), Position(1, 8))]


def test_underscore_text_between_mustaches_is_not_split() -> None:
    text = _extract("<p>{{a}}_T..._{{b}} _T_ ok</p>")

    assert list(text) == ["_T..._", "_T_ ok"]


def test_reserved_marker_characters_in_source_are_rejected() -> None:
    with pytest.raises(ReservedCharacterError) as excinfo:
        _extract(f"<p>ok</p>\n<p>a{MARKER_FILL}b</p>", "odd.hbs")

    assert excinfo.value.source == "odd.hbs"
    assert excinfo.value.line == 2
    assert excinfo.value.column == 4
