"""Source positions, spans, and forward-only offset resolution."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True, order=True)
class Position:
    """A point in source text: 1-based line, 0-based column."""

    line: int
    column: int


@dataclass(slots=True, frozen=True)
class SourceSpan:
    """Contiguous range of original text within one source file."""

    source: str
    start: Position
    end: Position

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(
                f"Span end {self.end.line}:{self.end.column} precedes start "
                f"{self.start.line}:{self.start.column} in {self.source}."
            )

    @property
    def is_single_line(self) -> bool:
        """Return True when the span starts and ends on the same line."""
        return self.start.line == self.end.line


class ResolverMisuseError(RuntimeError):
    """Raised when offsets are resolved out of order.

    This is an internal sequencing bug, never a property of the input.
    """


def newline_offsets(text: str) -> list[int]:
    """Return the offset of every newline character in text."""
    offsets: list[int] = []
    index = text.find("\n")
    while index != -1:
        offsets.append(index)
        index = text.find("\n", index + 1)
    return offsets


class LocationResolver:
    """Map offsets within a text block to absolute source spans.

    The text may be embedded in a larger file: ``line_offset`` is the line the
    block starts on and ``column_offset`` the column of its first character.
    Queries must be non-decreasing; the cursor only ever scans forward, so
    resolving every run in a block stays linear in the block size.
    """

    def __init__(
        self,
        source: str,
        text: str,
        line_offset: int = 1,
        column_offset: int = 0,
    ) -> None:
        self._source = source
        self._line_offset = line_offset
        self._column_offset = column_offset
        self._newlines = newline_offsets(text)
        self._previous = -1
        self._current = 0

    def resolve(self, start: int, end: int) -> SourceSpan:
        """Resolve the half-open offset range [start, end) to a span."""
        if start > end:
            raise ResolverMisuseError(f"Start offset {start} is after end offset {end}.")
        if self._previous >= 0 and start <= self._newlines[self._previous]:
            raise ResolverMisuseError(
                f"Start offset {start} is before the last resolved newline "
                f"at {self._newlines[self._previous]}."
            )
        start_position = self._position(start)
        end_position = self._position(end)
        return SourceSpan(source=self._source, start=start_position, end=end_position)

    def _position(self, index: int) -> Position:
        self._advance_to(index)
        return Position(
            line=self._current + self._line_offset,
            column=index - self._previous_newline() - 1,
        )

    def _previous_newline(self) -> int:
        if self._previous < 0:
            return -self._column_offset - 1
        return self._newlines[self._previous]

    def _advance_to(self, index: int) -> None:
        while self._current < len(self._newlines) and index > self._newlines[self._current]:
            self._previous = self._current
            self._current += 1
