"""Character-data runs from marked-up text with raw source positions."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from html.parser import HTMLParser

from gt3.location import newline_offsets

NON_TEXT_ELEMENTS = frozenset({"script", "style"})


@dataclass(slots=True, frozen=True)
class TextRun:
    """Contiguous raw character data and the position of its first character."""

    raw: str
    line: int
    column: int


class _TextRunCollector(HTMLParser):
    """HTMLParser that slices raw character data between markup events.

    Character references are left unconverted so every run is a verbatim
    slice of the input and its offsets map straight back to the source.
    """

    def __init__(self, text: str) -> None:
        super().__init__(convert_charrefs=False)
        self._text = text
        self._line_starts = [0] + [offset + 1 for offset in newline_offsets(text)]
        self._run_start: tuple[int, int] | None = None
        self._skip_depth = 0
        self.runs: list[TextRun] = []

    def handle_data(self, data: str) -> None:
        self._begin_run()

    def handle_entityref(self, name: str) -> None:
        self._begin_run()

    def handle_charref(self, name: str) -> None:
        self._begin_run()

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._end_run()
        if tag in NON_TEXT_ELEMENTS:
            self._skip_depth += 1

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._end_run()

    def handle_endtag(self, tag: str) -> None:
        self._end_run()
        if tag in NON_TEXT_ELEMENTS and self._skip_depth:
            self._skip_depth -= 1

    def handle_comment(self, data: str) -> None:
        self._end_run()

    def handle_decl(self, decl: str) -> None:
        self._end_run()

    def handle_pi(self, data: str) -> None:
        self._end_run()

    def unknown_decl(self, data: str) -> None:
        self._end_run()

    def finish(self) -> list[TextRun]:
        """Flush buffered input and return every collected run."""
        self.close()
        self._end_run(len(self._text))
        return self.runs

    def _offset(self, line: int, column: int) -> int:
        return self._line_starts[line - 1] + column

    def _begin_run(self) -> None:
        if self._skip_depth or self._run_start is not None:
            return
        self._run_start = self.getpos()

    def _end_run(self, end: int | None = None) -> None:
        if self._run_start is None:
            return
        line, column = self._run_start
        self._run_start = None
        start = self._offset(line, column)
        stop = self._offset(*self.getpos()) if end is None else end
        raw = self._text[start:stop]
        if raw:
            self.runs.append(TextRun(raw=raw, line=line, column=column))


def iter_text_runs(text: str) -> Iterator[TextRun]:
    """Yield character-data runs outside script and style elements, in document order."""
    collector = _TextRunCollector(text)
    collector.feed(text)
    yield from collector.finish()
