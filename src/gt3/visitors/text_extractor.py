"""Extraction of human-visible text runs from masked template source."""

from __future__ import annotations

import html

from gt3.errors import ContractViolation
from gt3.location import LocationResolver, Position, SourceSpan
from gt3.marker import (
    MARKER_PATTERN,
    mark_block,
    mark_source,
    reject_reserved_characters,
    split_lines,
)
from gt3.markup import TextRun, iter_text_runs
from gt3.template.nodes import BlockStatement, Node
from gt3.visitors.base import FileContext, VisitorContext, unsupported

TextToTranslate = dict[str, list[SourceSpan]]


class SpanMismatchError(ContractViolation):
    """Raised when a recorded span does not cover the text it was extracted from."""


class TextExtractor:
    """Mask template syntax in a private buffer, then read text runs from the markup.

    Nodes are visited before their children and block branches in source
    order, so anything lying inside an already masked tag (sub-expressions,
    paths, hash values) is skipped; re-marking it would split the enclosing
    marker.
    """

    @classmethod
    def create_context(cls) -> VisitorContext:
        """Return this visitor's empty slice of the shared context."""
        return {"text_to_translate": {}}

    @classmethod
    def merge_context(cls, target: VisitorContext, source: VisitorContext) -> None:
        """Append one file's recorded spans to an aggregate context."""
        store: TextToTranslate = target["text_to_translate"]
        for text, spans in source["text_to_translate"].items():
            store.setdefault(text, []).extend(spans)

    def __init__(self, file_context: FileContext, context: VisitorContext) -> None:
        self._file = file_context
        self._source_lines = split_lines(file_context.text)
        reject_reserved_characters(self._source_lines, file_context.source)
        self._lines = list(self._source_lines)
        self._store: TextToTranslate = context["text_to_translate"]
        self._masked_to = Position(line=0, column=0)

    @property
    def lines(self) -> list[str]:
        """Return the current state of the masked buffer."""
        return self._lines

    def visit_MustacheStatement(self, node: Node) -> None:  # noqa: N802
        self._mark(node)

    def visit_PartialStatement(self, node: Node) -> None:  # noqa: N802
        self._mark(node)

    def visit_CommentStatement(self, node: Node) -> None:  # noqa: N802
        self._mark(node)

    def visit_SubExpression(self, node: Node) -> None:  # noqa: N802
        self._mark(node)

    def visit_BlockStatement(self, node: BlockStatement) -> None:  # noqa: N802
        if node.loc.start < self._masked_to:
            return
        mark_block(self._lines, node, source=self._file.source)
        branches = [
            branch.loc.start for branch in (node.program, node.inverse) if branch is not None
        ]
        # Only the open tag is masked as a whole; bodies still need their own visits.
        self._masked_to = max(self._masked_to, min(branches))

    def visit_PartialBlockStatement(self, node: Node) -> None:  # noqa: N802
        raise unsupported(node, self._file.source)

    def visit_Decorator(self, node: Node) -> None:  # noqa: N802
        raise unsupported(node, self._file.source)

    def visit_DecoratorBlock(self, node: Node) -> None:  # noqa: N802
        raise unsupported(node, self._file.source)

    def all_visited(self) -> None:
        """Parse the masked buffer and record every remaining text run."""
        self._file.diagnostics.masked_source(self._file.source, self._lines)
        for run in iter_text_runs("\n".join(self._lines)):
            self._analyze_run(run)

    def _mark(self, node: Node) -> None:
        if node.loc.start < self._masked_to:
            return
        mark_source(self._lines, node.loc.start, node.loc.end, source=self._file.source)
        self._masked_to = max(self._masked_to, node.loc.end)

    def _analyze_run(self, run: TextRun) -> None:
        raw = run.raw
        if not MARKER_PATTERN.sub("", raw).strip():
            return
        resolver = LocationResolver(self._file.source, raw, run.line, run.column)
        cursor = 0
        for match in MARKER_PATTERN.finditer(raw):
            self._store_text(raw, cursor, match.start(), resolver)
            cursor = match.end()
        self._store_text(raw, cursor, len(raw), resolver)

    def _store_text(self, raw: str, start: int, end: int, resolver: LocationResolver) -> None:
        segment = raw[start:end]
        without_leading = segment.lstrip()
        trimmed = without_leading.rstrip()
        if not trimmed:
            return
        start += len(segment) - len(without_leading)
        end = start + len(trimmed)
        span = resolver.resolve(start, end)
        if self._source_slice(span) != trimmed:
            raise SpanMismatchError(
                f"Extracted text {trimmed!r} does not match its source span.",
                source=self._file.source,
                line=span.start.line,
                column=span.start.column,
            )
        self._store.setdefault(html.unescape(trimmed), []).append(span)

    def _source_slice(self, span: SourceSpan) -> str:
        first = span.start.line - 1
        last = span.end.line - 1
        if first == last:
            return self._source_lines[first][span.start.column : span.end.column]
        parts = [self._source_lines[first][span.start.column :]]
        parts.extend(self._source_lines[first + 1 : last])
        parts.append(self._source_lines[last][: span.end.column])
        return "\n".join(parts)
