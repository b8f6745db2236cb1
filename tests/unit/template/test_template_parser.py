from __future__ import annotations

import pytest

from gt3.location import Position
from gt3.template import TemplateSyntaxError, iter_children, parse_template
from gt3.template.nodes import (
    BlockStatement,
    CommentStatement,
    ContentStatement,
    MustacheStatement,
    PartialStatement,
    StringLiteral,
    SubExpression,
)


def test_mustache_between_content_carries_exact_span() -> None:
    program = parse_template("Hello {{name}}!", "a.hbs")

    kinds = [node.kind for node in program.body]
    assert kinds == ["ContentStatement", "MustacheStatement", "ContentStatement"]
    mustache = program.body[1]
    assert isinstance(mustache, MustacheStatement)
    assert mustache.loc.start == Position(1, 6)
    assert mustache.loc.end == Position(1, 14)
    assert mustache.path.original == "name"
    assert mustache.escaped is True


def test_positions_on_later_lines_are_one_based_lines_zero_based_columns() -> None:
    program = parse_template("a\n  {{x}}", "a.hbs")

    mustache = program.body[1]
    assert mustache.loc.start == Position(2, 2)
    assert mustache.loc.end == Position(2, 7)


def test_string_params_are_separate_tokens() -> None:
    program = parse_template('{{t "a" "b"}}', "a.hbs")

    mustache = program.body[0]
    assert [param.value for param in mustache.params] == ["a", "b"]


def test_escaped_quotes_inside_string_literal() -> None:
    program = parse_template('{{t "say \\"hi\\""}}', "a.hbs")

    literal = program.body[0].params[0]
    assert isinstance(literal, StringLiteral)
    assert literal.value == 'say "hi"'


def test_closing_braces_inside_string_do_not_end_the_tag() -> None:
    program = parse_template('{{t "a }} b"}}', "a.hbs")

    assert len(program.body) == 1
    assert program.body[0].params[0].value == "a }} b"


def test_hash_values_may_be_sub_expressions() -> None:
    program = parse_template('{{t "key" count=(add 1 2)}}', "a.hbs")

    mustache = program.body[0]
    assert mustache.hash is not None
    pair = mustache.hash.pairs[0]
    assert pair.key == "count"
    assert isinstance(pair.value, SubExpression)
    assert [param.value for param in pair.value.params] == [1, 2]


def test_block_with_else_has_program_and_inverse_spans() -> None:
    program = parse_template("{{#if a}}Yes{{else}}No{{/if}}", "a.hbs")

    block = program.body[0]
    assert isinstance(block, BlockStatement)
    assert block.loc.end == Position(1, 29)
    assert block.program.loc.start == Position(1, 9)
    assert block.program.loc.end == Position(1, 12)
    assert block.inverse.loc.start == Position(1, 20)
    assert block.inverse.loc.end == Position(1, 22)


def test_else_if_chain_nests_a_block_inside_a_chained_inverse() -> None:
    program = parse_template("{{#if a}}A{{else if b}}B{{/if}}", "a.hbs")

    outer = program.body[0]
    inverse = outer.inverse
    assert inverse.chained is True
    nested = inverse.body[0]
    assert isinstance(nested, BlockStatement)
    assert inverse.loc == nested.loc
    assert nested.loc.start == Position(1, 10)
    assert nested.loc.end == Position(1, 24)
    assert outer.loc.end == Position(1, 31)
    assert nested.program.loc.start == Position(1, 23)


def test_block_params_are_attached_to_the_program() -> None:
    program = parse_template("{{#each posts as |post|}}{{post.title}}{{/each}}", "a.hbs")

    block = program.body[0]
    assert block.program.block_params == ("post",)
    inner = block.program.body[0]
    assert inner.path.parts == ("post", "title")


def test_partials_and_comments_are_recognized() -> None:
    program = parse_template('{{> card title="x"}}{{!-- a }} b --}}', "a.hbs")

    partial, comment = program.body
    assert isinstance(partial, PartialStatement)
    assert partial.name.original == "card"
    assert isinstance(comment, CommentStatement)
    assert comment.value == "a }} b"


def test_backslash_escaped_mustache_is_content() -> None:
    program = parse_template("\\{{name}}", "a.hbs")

    assert len(program.body) == 1
    content = program.body[0]
    assert isinstance(content, ContentStatement)
    assert content.value == "{{name}}"


def test_children_follow_path_params_hash_then_bodies() -> None:
    program = parse_template('{{#if (eq a "b") x=1}}Y{{/if}}', "a.hbs")

    block = program.body[0]
    kinds = [child.kind for child in iter_children(block)]
    assert kinds == ["PathExpression", "SubExpression", "Hash", "Program"]


def test_node_ids_follow_creation_order() -> None:
    program = parse_template("a{{b}}c", "a.hbs")

    assert program.node_id == 0
    ids = [node.node_id for node in program.body]
    assert ids == sorted(ids)
    assert len(set(ids)) == len(ids)


def test_mismatched_close_tag_is_a_syntax_error() -> None:
    with pytest.raises(TemplateSyntaxError, match="doesn't match"):
        parse_template("{{#if a}}x{{/each}}", "broken.hbs")


def test_unterminated_block_reports_the_open_tag_position() -> None:
    with pytest.raises(TemplateSyntaxError) as excinfo:
        parse_template("line\n  {{#if a}}x", "broken.hbs")

    assert excinfo.value.line == 2
    assert excinfo.value.column == 2
    assert excinfo.value.source == "broken.hbs"


def test_raw_blocks_are_rejected() -> None:
    with pytest.raises(TemplateSyntaxError, match="Raw blocks"):
        parse_template("{{{{raw}}}}x{{{{/raw}}}}", "raw.hbs")


def test_inverse_block_children_follow_source_order() -> None:
    program = parse_template("{{^if a}}none{{else}}some{{/if}}", "a.hbs")

    block = program.body[0]
    bodies = [child for child in iter_children(block) if child.kind == "Program"]
    assert [body.loc.start for body in bodies] == [Position(1, 9), Position(1, 21)]
    assert bodies[0] is block.inverse
