"""Location-exact recursive-descent parser for Handlebars templates."""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass
from typing import Final

from gt3.errors import InputError
from gt3.location import Position, SourceSpan
from gt3.template.nodes import (
    BlockStatement,
    BooleanLiteral,
    CommentStatement,
    ContentStatement,
    Decorator,
    DecoratorBlock,
    Hash,
    HashPair,
    MustacheStatement,
    Node,
    NullLiteral,
    NumberLiteral,
    PartialBlockStatement,
    PartialStatement,
    PathExpression,
    Program,
    StringLiteral,
    SubExpression,
    UndefinedLiteral,
)

_LOOKAHEAD: Final[str] = r"(?=[=~}\s/.)|]|\Z)"
_LITERAL_LOOKAHEAD: Final[str] = r"(?=[~}\s)]|\Z)"
_ID_CHARS: Final[str] = r"[^\s!\"#%&'()*+,./;<=>@\[\\\]^`{|}~]+"

_TOKEN_RULES: Final[tuple[tuple[str, re.Pattern[str]], ...]] = (
    ("WS", re.compile(r"\s+")),
    ("OPEN_BLOCK_PARAMS", re.compile(r"as\s+\|")),
    ("CLOSE_BLOCK_PARAMS", re.compile(r"\|")),
    ("OPEN_SEXPR", re.compile(r"\(")),
    ("CLOSE_SEXPR", re.compile(r"\)")),
    ("EQUALS", re.compile(r"=")),
    ("STRING", re.compile(r'"(?:\\"|[^"])*"')),
    ("STRING", re.compile(r"'(?:\\'|[^'])*'")),
    ("DATA", re.compile(r"@")),
    ("NUMBER", re.compile(r"-?[0-9]+(?:\.[0-9]+)?" + _LITERAL_LOOKAHEAD)),
    ("BOOLEAN", re.compile(r"(?:true|false)" + _LITERAL_LOOKAHEAD)),
    ("UNDEFINED", re.compile(r"undefined" + _LITERAL_LOOKAHEAD)),
    ("NULL", re.compile(r"null" + _LITERAL_LOOKAHEAD)),
    ("ID", re.compile(r"\.\.")),
    ("ID", re.compile(r"\." + _LOOKAHEAD)),
    ("SEP", re.compile(r"[./]")),
    ("ID", re.compile(_ID_CHARS + _LOOKAHEAD)),
    ("ID", re.compile(r"\[(?:\\\]|[^\]])*\]")),
)

_ELSE_PATTERN: Final[re.Pattern[str]] = re.compile(r"\s*else(?=\s|~?}})")
_INVERSE_PATTERN: Final[re.Pattern[str]] = re.compile(r"\^\s*~?}}")
_SEGMENT_KEYWORDS: Final[frozenset[str]] = frozenset({"this", ".", ".."})


class TemplateSyntaxError(InputError):
    """Template source that cannot be parsed; only the offending file is skipped."""

    def __init__(self, message: str, source: str, line: int, column: int) -> None:
        super().__init__(f"{source}:{line}:{column + 1}: {message}")
        self.message = message
        self.source = source
        self.line = line
        self.column = column


@dataclass(slots=True, frozen=True)
class _Token:
    type: str
    value: str
    start: int
    end: int


@dataclass(slots=True, frozen=True)
class _Tag:
    """One `{{...}}` occurrence; `inner_start`/`inner_end` bound the expression text."""

    kind: str
    start: int
    end: int
    inner_start: int
    inner_end: int


@dataclass(slots=True, frozen=True)
class _Call:
    callee: Node
    params: tuple[Node, ...]
    hash: Hash | None
    block_params: tuple[str, ...]


def parse_template(text: str, source: str) -> Program:
    """Parse template text into a Program whose nodes carry exact source spans."""
    return _Parser(text, source).parse()


class _Parser:
    def __init__(self, text: str, source: str) -> None:
        self._text = text
        self._source = source
        self._pos = 0
        self._next_node_id = 0
        self._line_starts = [0] + [match.end() for match in re.finditer(r"\n", text)]

    def parse(self) -> Program:
        root_id = self._allocate_id()
        body, stop = self._parse_body()
        if stop is not None:
            raise self._error(f"Unexpected {self._describe(stop)}.", stop.start)
        return Program(node_id=root_id, loc=self._span(0, len(self._text)), body=tuple(body))

    # Statements

    def _parse_body(self) -> tuple[list[Node], _Tag | None]:
        body: list[Node] = []
        while True:
            content = self._read_content()
            if content is not None:
                body.append(content)
            if self._pos >= len(self._text):
                return body, None
            tag = self._read_tag()
            if tag.kind in {"else", "inverse", "close"}:
                return body, tag
            body.append(self._statement_for(tag))

    def _statement_for(self, tag: _Tag) -> Node:
        if tag.kind == "comment":
            return CommentStatement(
                node_id=self._allocate_id(),
                loc=self._span(tag.start, tag.end),
                value=self._text[tag.inner_start : tag.inner_end].strip(),
            )
        if tag.kind in {"mustache", "unescaped"}:
            node_id = self._allocate_id()
            call = self._parse_call(tag, allow_block_params=False)
            return MustacheStatement(
                node_id=node_id,
                loc=self._span(tag.start, tag.end),
                path=call.callee,
                params=call.params,
                hash=call.hash,
                escaped=tag.kind == "mustache",
            )
        if tag.kind == "partial":
            node_id = self._allocate_id()
            call = self._parse_call(tag, allow_block_params=False)
            return PartialStatement(
                node_id=node_id,
                loc=self._span(tag.start, tag.end),
                name=call.callee,
                params=call.params,
                hash=call.hash,
            )
        if tag.kind == "decorator":
            node_id = self._allocate_id()
            call = self._parse_call(tag, allow_block_params=False)
            return Decorator(
                node_id=node_id,
                loc=self._span(tag.start, tag.end),
                path=call.callee,
                params=call.params,
                hash=call.hash,
            )
        if tag.kind in {"block", "inverse_block"}:
            return self._parse_block(tag)
        if tag.kind in {"partial_block", "decorator_block"}:
            return self._parse_simple_block(tag)
        raise self._error("Unsupported tag.", tag.start)

    def _parse_block(self, open_tag: _Tag) -> BlockStatement:
        node_id = self._allocate_id()
        call = self._parse_call(open_tag, allow_block_params=True)
        first, second, close = self._parse_branches(open_tag, call)
        if open_tag.kind == "inverse_block":
            program, inverse = second, first
        else:
            program, inverse = first, second
        self._check_close(open_tag, call.callee, close)
        return BlockStatement(
            node_id=node_id,
            loc=self._span(open_tag.start, close.end),
            path=call.callee,
            params=call.params,
            hash=call.hash,
            program=program,
            inverse=inverse,
        )

    def _parse_branches(
        self, open_tag: _Tag, call: _Call
    ) -> tuple[Program, Program | None, _Tag]:
        """Parse the body after an open tag up to the matching close tag.

        The close tag is consumed but not returned as part of any branch;
        a chained `{{else if}}` shares the close tag of the outermost block.
        """
        program_id = self._allocate_id()
        body, stop = self._parse_body()
        if stop is None:
            raise self._error("Unterminated block.", open_tag.start)
        first = Program(
            node_id=program_id,
            loc=self._span(open_tag.end, stop.start),
            body=tuple(body),
            block_params=call.block_params,
        )
        if stop.kind == "close":
            return first, None, stop
        if self._is_chained_else(stop):
            nested, close = self._parse_chained_block(stop)
            inverse = Program(
                node_id=self._allocate_id(),
                loc=nested.loc,
                body=(nested,),
                chained=True,
            )
            return first, inverse, close
        inverse_id = self._allocate_id()
        inverse_body, close = self._parse_body()
        if close is None:
            raise self._error("Unterminated block.", open_tag.start)
        if close.kind != "close":
            raise self._error(f"Unexpected {self._describe(close)}.", close.start)
        inverse = Program(
            node_id=inverse_id,
            loc=self._span(stop.end, close.start),
            body=tuple(inverse_body),
        )
        return first, inverse, close

    def _parse_chained_block(self, else_tag: _Tag) -> tuple[BlockStatement, _Tag]:
        node_id = self._allocate_id()
        chained_tag = _Tag(
            kind="block",
            start=else_tag.start,
            end=else_tag.end,
            inner_start=else_tag.inner_start,
            inner_end=else_tag.inner_end,
        )
        call = self._parse_call(chained_tag, allow_block_params=True)
        program, inverse, close = self._parse_branches(chained_tag, call)
        nested = BlockStatement(
            node_id=node_id,
            loc=self._span(else_tag.start, close.start),
            path=call.callee,
            params=call.params,
            hash=call.hash,
            program=program,
            inverse=inverse,
        )
        return nested, close

    def _parse_simple_block(self, open_tag: _Tag) -> Node:
        node_id = self._allocate_id()
        call = self._parse_call(open_tag, allow_block_params=True)
        program, inverse, close = self._parse_branches(open_tag, call)
        if inverse is not None:
            raise self._error(
                "Partial and decorator blocks cannot have an else branch.", open_tag.start
            )
        self._check_close(open_tag, call.callee, close)
        if open_tag.kind == "partial_block":
            return PartialBlockStatement(
                node_id=node_id,
                loc=self._span(open_tag.start, close.end),
                name=call.callee,
                params=call.params,
                hash=call.hash,
                program=program,
            )
        return DecoratorBlock(
            node_id=node_id,
            loc=self._span(open_tag.start, close.end),
            path=call.callee,
            params=call.params,
            hash=call.hash,
            program=program,
        )

    def _check_close(self, open_tag: _Tag, callee: Node, close: _Tag) -> None:
        opened = _callee_name(callee)
        closed = self._text[close.inner_start : close.inner_end].strip()
        if opened != closed:
            raise self._error(f"'{opened}' doesn't match '{closed}'.", close.start)

    def _is_chained_else(self, tag: _Tag) -> bool:
        return tag.kind == "else" and bool(self._text[tag.inner_start : tag.inner_end].strip())

    # Raw scanning

    def _read_content(self) -> ContentStatement | None:
        start = self._pos
        pieces: list[str] = []
        cursor = start
        while True:
            index = self._text.find("{{", cursor)
            if index == -1:
                pieces.append(self._text[cursor:])
                self._pos = len(self._text)
                break
            if index > 0 and self._text[index - 1] == "\\":
                if index > 1 and self._text[index - 2] == "\\":
                    # `\\{{` is a literal backslash before a real mustache.
                    pieces.append(self._text[cursor : index - 1])
                    self._pos = index
                    break
                pieces.append(self._text[cursor : index - 1])
                pieces.append("{{")
                cursor = index + 2
                continue
            pieces.append(self._text[cursor:index])
            self._pos = index
            break
        if self._pos == start:
            return None
        return ContentStatement(
            node_id=self._allocate_id(),
            loc=self._span(start, self._pos),
            value="".join(pieces),
            original=self._text[start : self._pos],
        )

    def _read_tag(self) -> _Tag:
        start = self._pos
        text = self._text
        if text.startswith("{{{{", start):
            raise self._error("Raw blocks are not supported.", start)
        cursor = start + 2
        if text.startswith("~", cursor):
            cursor += 1

        if text.startswith("!--", cursor):
            close = self._find_close(r"--~?}}", cursor + 3, start, "comment")
            return _Tag("comment", start, close.end(), cursor + 3, close.start())
        if text.startswith("!", cursor):
            close = self._find_close(r"~?}}", cursor + 1, start, "comment")
            return _Tag("comment", start, close.end(), cursor + 1, close.start())
        if text.startswith("{", cursor):
            close = self._find_close(r"~?}}}", cursor + 1, start, "mustache")
            return _Tag("unescaped", start, close.end(), cursor + 1, close.start())

        inverse = _INVERSE_PATTERN.match(text, cursor)
        if inverse is not None:
            self._pos = inverse.end()
            return _Tag("inverse", start, inverse.end(), cursor + 1, cursor + 1)
        else_match = _ELSE_PATTERN.match(text, cursor)
        if else_match is not None:
            return self._close_tag("else", start, else_match.end())

        sigils = (
            ("#>", "partial_block"),
            ("#*", "decorator_block"),
            ("#", "block"),
            ("^", "inverse_block"),
            ("/", "close"),
            (">", "partial"),
            ("*", "decorator"),
            ("&", "unescaped"),
        )
        for sigil, kind in sigils:
            if text.startswith(sigil, cursor):
                return self._close_tag(kind, start, cursor + len(sigil))
        return self._close_tag("mustache", start, cursor)

    def _close_tag(self, kind: str, start: int, inner_start: int) -> _Tag:
        close = self._find_close(r"~?}}", inner_start, start, "mustache")
        return _Tag(kind, start, close.end(), inner_start, close.start())

    def _find_close(self, pattern: str, cursor: int, start: int, what: str) -> re.Match[str]:
        if what == "mustache":
            match = self._scan_expression_close(pattern, cursor)
        else:
            match = re.compile(pattern).search(self._text, cursor)
        if match is None:
            raise self._error(f"Unterminated {what}.", start)
        self._pos = match.end()
        return match

    def _scan_expression_close(self, pattern: str, cursor: int) -> re.Match[str] | None:
        # Skip string literals so `}}` inside quotes does not end the tag.
        closer = re.compile(pattern)
        text = self._text
        index = cursor
        while index < len(text):
            char = text[index]
            if char in "\"'":
                end = index + 1
                while end < len(text) and text[end] != char:
                    end += 2 if text[end] == "\\" else 1
                if end >= len(text):
                    return None
                index = end + 1
                continue
            match = closer.match(text, index)
            if match is not None:
                return match
            index += 1
        return None

    # Expressions

    def _parse_call(self, tag: _Tag, *, allow_block_params: bool) -> _Call:
        tokens = self._tokenize(tag.inner_start, tag.inner_end)
        if not tokens:
            raise self._error("Expected an expression.", tag.start)
        stream = _TokenStream(tokens)
        callee = self._parse_operand(stream)
        params, hash_node = self._parse_arguments(stream)
        block_params: tuple[str, ...] = ()
        if stream.peek_type() == "OPEN_BLOCK_PARAMS":
            opener = stream.take()
            if not allow_block_params:
                raise self._error("Block params are only allowed on blocks.", opener.start)
            names: list[str] = []
            while stream.peek_type() == "ID":
                names.append(stream.take().value)
            closer = stream.take()
            if closer is None or closer.type != "CLOSE_BLOCK_PARAMS" or not names:
                raise self._error("Malformed block params.", opener.start)
            block_params = tuple(names)
        leftover = stream.take()
        if leftover is not None:
            raise self._error(f"Unexpected '{leftover.value}'.", leftover.start)
        return _Call(callee=callee, params=params, hash=hash_node, block_params=block_params)

    def _parse_arguments(self, stream: _TokenStream) -> tuple[tuple[Node, ...], Hash | None]:
        params: list[Node] = []
        while self._starts_operand(stream) and not stream.is_hash_key():
            params.append(self._parse_operand(stream))
        pairs: list[HashPair] = []
        while stream.is_hash_key():
            key = stream.take()
            stream.take()
            if not self._starts_operand(stream):
                raise self._error(f"Expected a value for '{key.value}'.", key.start)
            value = self._parse_operand(stream)
            pairs.append(
                HashPair(
                    node_id=self._allocate_id(),
                    loc=self._span(key.start, self._offset(value.loc.end)),
                    key=key.value,
                    value=value,
                )
            )
        hash_node: Hash | None = None
        if pairs:
            hash_node = Hash(
                node_id=self._allocate_id(),
                loc=SourceSpan(
                    source=self._source, start=pairs[0].loc.start, end=pairs[-1].loc.end
                ),
                pairs=tuple(pairs),
            )
        return tuple(params), hash_node

    def _starts_operand(self, stream: _TokenStream) -> bool:
        return stream.peek_type() in {
            "ID",
            "DATA",
            "STRING",
            "NUMBER",
            "BOOLEAN",
            "UNDEFINED",
            "NULL",
            "OPEN_SEXPR",
        }

    def _parse_operand(self, stream: _TokenStream) -> Node:
        token = stream.peek()
        if token is None:
            raise self._error("Unexpected end of expression.", self._pos)
        if token.type == "OPEN_SEXPR":
            return self._parse_sub_expression(stream)
        if token.type in {"ID", "DATA"}:
            return self._parse_path(stream)
        stream.take()
        node_id = self._allocate_id()
        loc = self._span(token.start, token.end)
        if token.type == "STRING":
            quote = token.value[0]
            value = token.value[1:-1].replace("\\" + quote, quote)
            return StringLiteral(node_id=node_id, loc=loc, value=value, original=value)
        if token.type == "NUMBER":
            number: int | float = float(token.value) if "." in token.value else int(token.value)
            return NumberLiteral(node_id=node_id, loc=loc, value=number, original=token.value)
        if token.type == "BOOLEAN":
            return BooleanLiteral(
                node_id=node_id, loc=loc, value=token.value == "true", original=token.value
            )
        if token.type == "UNDEFINED":
            return UndefinedLiteral(node_id=node_id, loc=loc)
        if token.type == "NULL":
            return NullLiteral(node_id=node_id, loc=loc)
        raise self._error(f"Unexpected '{token.value}'.", token.start)

    def _parse_sub_expression(self, stream: _TokenStream) -> SubExpression:
        opener = stream.take()
        node_id = self._allocate_id()
        if not self._starts_operand(stream):
            raise self._error("Expected an expression after '('.", opener.start)
        callee = self._parse_operand(stream)
        params, hash_node = self._parse_arguments(stream)
        closer = stream.take()
        if closer is None or closer.type != "CLOSE_SEXPR":
            position = opener.start if closer is None else closer.start
            raise self._error("Unterminated sub-expression.", position)
        return SubExpression(
            node_id=node_id,
            loc=self._span(opener.start, closer.end),
            path=callee,
            params=params,
            hash=hash_node,
        )

    def _parse_path(self, stream: _TokenStream) -> PathExpression:
        first = stream.peek()
        data = False
        if first.type == "DATA":
            stream.take()
            data = True
            if stream.peek_type() != "ID":
                raise self._error("Expected a name after '@'.", first.start)
        segment = stream.take()
        segments = [segment.value]
        end = segment.end
        while stream.peek_type() == "SEP" and stream.peek_adjacent(end):
            separator = stream.take()
            following = stream.take()
            if following is None or following.type != "ID" or following.start != separator.end:
                raise self._error("Expected a path segment.", separator.start)
            segments.append(following.value)
            end = following.end
        parts: list[str] = []
        depth = 0
        for value in segments:
            if value == "..":
                depth += 1
                continue
            if value in _SEGMENT_KEYWORDS:
                continue
            parts.append(value[1:-1] if value.startswith("[") and value.endswith("]") else value)
        return PathExpression(
            node_id=self._allocate_id(),
            loc=self._span(first.start, end),
            original=self._text[first.start : end],
            parts=tuple(parts),
            data=data,
            depth=depth,
        )

    def _tokenize(self, start: int, end: int) -> list[_Token]:
        tokens: list[_Token] = []
        cursor = start
        while cursor < end:
            for token_type, pattern in _TOKEN_RULES:
                match = pattern.match(self._text, cursor, end)
                if match is None or match.end() == cursor:
                    continue
                if token_type != "WS":
                    tokens.append(_Token(token_type, match.group(0), cursor, match.end()))
                cursor = match.end()
                break
            else:
                raise self._error(f"Unexpected character '{self._text[cursor]}'.", cursor)
        return tokens

    # Helpers

    def _allocate_id(self) -> int:
        node_id = self._next_node_id
        self._next_node_id += 1
        return node_id

    def _offset(self, position: Position) -> int:
        return self._line_starts[position.line - 1] + position.column

    def _position(self, offset: int) -> Position:
        line = bisect.bisect_right(self._line_starts, offset)
        return Position(line=line, column=offset - self._line_starts[line - 1])

    def _span(self, start: int, end: int) -> SourceSpan:
        return SourceSpan(source=self._source, start=self._position(start), end=self._position(end))

    def _error(self, message: str, offset: int) -> TemplateSyntaxError:
        position = self._position(min(offset, len(self._text)))
        return TemplateSyntaxError(message, self._source, position.line, position.column)

    def _describe(self, tag: _Tag) -> str:
        return {"else": "{{else}}", "inverse": "{{^}}", "close": "close tag"}.get(tag.kind, "tag")


class _TokenStream:
    def __init__(self, tokens: list[_Token]) -> None:
        self._tokens = tokens
        self._index = 0

    def peek(self) -> _Token | None:
        if self._index >= len(self._tokens):
            return None
        return self._tokens[self._index]

    def peek_type(self) -> str | None:
        token = self.peek()
        return None if token is None else token.type

    def peek_adjacent(self, offset: int) -> bool:
        token = self.peek()
        return token is not None and token.start == offset

    def take(self) -> _Token | None:
        token = self.peek()
        if token is not None:
            self._index += 1
        return token

    def is_hash_key(self) -> bool:
        if self.peek_type() != "ID":
            return False
        following = self._index + 1
        return following < len(self._tokens) and self._tokens[following].type == "EQUALS"


def _callee_name(callee: Node) -> str:
    if isinstance(callee, PathExpression):
        return callee.original
    if isinstance(callee, (StringLiteral, NumberLiteral, BooleanLiteral)):
        return callee.original
    return ""
