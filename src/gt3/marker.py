"""Width-preserving placeholders written over removed template syntax."""

from __future__ import annotations

import re
from typing import Final, Protocol

from gt3.errors import ContractViolation, InputError
from gt3.location import Position, SourceSpan

# Private-use code points never appear in theme text, so a marker cannot be
# confused with the text around it.
MARKER_START: Final[str] = "\ue000"
MARKER_FILL: Final[str] = "\ue001"
MARKER_END: Final[str] = "\ue002"
MARKER_CHARACTERS: Final[frozenset[str]] = frozenset(MARKER_START + MARKER_FILL + MARKER_END)
MIN_MARKER_WIDTH: Final[int] = len(MARKER_START) + len(MARKER_END)
MARKER_PATTERN: Final[re.Pattern[str]] = re.compile(
    rf"{MARKER_START}[{MARKER_FILL}\n]*{MARKER_END}"
)

MutableSourceBuffer = list[str]


class MarkerWidthError(ContractViolation):
    """Raised when a span is too narrow to hold a marker or marking changed a line length."""


class ImpossibleBlockError(ContractViolation):
    """Raised when a block statement has neither a program nor an inverse branch."""


class ReservedCharacterError(InputError):
    """Raised when a template already contains a code point reserved for markers."""

    def __init__(self, source: str, line: int, column: int) -> None:
        super().__init__(f"{source}:{line}:{column + 1}: reserved character U+E000-U+E002.")
        self.message = "Template contains a reserved character (U+E000-U+E002)."
        self.source = source
        self.line = line
        self.column = column


class _Located(Protocol):
    loc: SourceSpan


class _BlockLike(Protocol):
    loc: SourceSpan
    program: _Located | None
    inverse: _Located | None


def marker_of_width(width: int) -> str:
    """Return a placeholder exactly `width` characters wide."""
    if width < MIN_MARKER_WIDTH:
        raise MarkerWidthError(
            f"Cannot fit a marker into {width} characters; "
            f"the minimum is {MIN_MARKER_WIDTH}."
        )
    return MARKER_START + MARKER_FILL * (width - MIN_MARKER_WIDTH) + MARKER_END


def split_lines(text: str) -> MutableSourceBuffer:
    """Split source text into a buffer of lines on `\\n` only."""
    return text.split("\n")


def reject_reserved_characters(lines: MutableSourceBuffer, source: str) -> None:
    """Raise ReservedCharacterError at the first marker code point in the source."""
    for index, line in enumerate(lines):
        for column, char in enumerate(line):
            if char in MARKER_CHARACTERS:
                raise ReservedCharacterError(source, index + 1, column)


def mark_source(
    buffer: MutableSourceBuffer,
    start: Position,
    end: Position,
    *,
    source: str | None = None,
) -> None:
    """Overwrite the range [start, end) in buffer with a same-width marker."""
    if start == end:
        return
    if start.line == end.line:
        _mark_single_line(buffer, start, end, source)
        return
    _mark_multi_line(buffer, start, end, source)


def mark_block(buffer: MutableSourceBuffer, node: _BlockLike, *, source: str | None = None) -> None:
    """Mark the open tag, branch separators and close tag of a block statement."""
    branches = [branch for branch in (node.program, node.inverse) if branch is not None]
    if not branches:
        raise ImpossibleBlockError(
            "Block statement has neither a program nor an inverse branch.",
            source=source,
            line=node.loc.start.line,
            column=node.loc.start.column,
        )
    branches.sort(key=lambda branch: branch.loc.start)
    cursor = node.loc.start
    for branch in branches:
        mark_source(buffer, cursor, branch.loc.start, source=source)
        cursor = branch.loc.end
    # A chained `{{else if}}` branch runs to the outer close tag; anything left is that tag.
    mark_source(buffer, cursor, node.loc.end, source=source)


def _mark_single_line(
    buffer: MutableSourceBuffer, start: Position, end: Position, source: str | None
) -> None:
    index = start.line - 1
    line = buffer[index]
    width = end.column - start.column
    try:
        marker = marker_of_width(width)
    except MarkerWidthError as exc:
        raise MarkerWidthError(
            exc.message, source=source, line=start.line, column=start.column
        ) from exc
    updated = line[: start.column] + marker + line[end.column :]
    if len(updated) != len(line):
        raise MarkerWidthError(
            f"Marking columns {start.column}-{end.column} changed the line length "
            f"from {len(line)} to {len(updated)}.",
            source=source,
            line=start.line,
            column=start.column,
        )
    buffer[index] = updated


def _mark_multi_line(
    buffer: MutableSourceBuffer, start: Position, end: Position, source: str | None
) -> None:
    segments: list[tuple[int, int, int]] = []
    total = 0
    for line_number in range(start.line, end.line + 1):
        line = buffer[line_number - 1]
        begin = start.column if line_number == start.line else 0
        finish = end.column if line_number == end.line else len(line)
        segments.append((line_number - 1, begin, finish))
        total += finish - begin

    try:
        marker = marker_of_width(total)
    except MarkerWidthError as exc:
        raise MarkerWidthError(
            exc.message, source=source, line=start.line, column=start.column
        ) from exc

    consumed = 0
    for index, begin, finish in segments:
        width = finish - begin
        line = buffer[index]
        buffer[index] = line[:begin] + marker[consumed : consumed + width] + line[finish:]
        consumed += width
