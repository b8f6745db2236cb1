"""Single-walk traversal that fans every node out to several visitors."""

from __future__ import annotations

from collections.abc import Sequence

from gt3.logging.diagnostics import DiagnosticsSink, NullDiagnostics
from gt3.template.nodes import Node, iter_children
from gt3.template.source import TemplateFile
from gt3.visitors.base import (
    NODE_KINDS,
    FileContext,
    NodeHandler,
    VisitorContext,
    VisitorType,
    build_dispatch_table,
    unsupported,
)

_KNOWN_KINDS = frozenset(NODE_KINDS)


def create_context(visitor_types: Sequence[VisitorType]) -> VisitorContext:
    """Merge every visitor's initial context into one shared mapping."""
    context: VisitorContext = {}
    for visitor_type in visitor_types:
        context.update(visitor_type.create_context())
    return context


def merge_contexts(
    visitor_types: Sequence[VisitorType], target: VisitorContext, source: VisitorContext
) -> None:
    """Fold one file's context into an aggregate, visitor by visitor."""
    for visitor_type in visitor_types:
        visitor_type.merge_context(target, source)


def run_many(
    visitor_types: Sequence[VisitorType],
    template: TemplateFile,
    *,
    helper_name: str = "t",
    diagnostics: DiagnosticsSink | None = None,
) -> tuple[FileContext, VisitorContext]:
    """Walk one template once, invoking every visitor's handler for each node."""
    file_context = FileContext(
        source=template.path,
        text=template.contents,
        helper_name=helper_name,
        diagnostics=diagnostics or NullDiagnostics(),
    )
    context = create_context(visitor_types)
    visitors = [visitor_type(file_context, context) for visitor_type in visitor_types]
    tables = [build_dispatch_table(visitor) for visitor in visitors]

    _walk(template.program, tables, file_context)

    for visitor in visitors:
        hook = getattr(visitor, "all_visited", None)
        if callable(hook):
            hook()
    return file_context, context


def _walk(node: Node, tables: list[dict[str, NodeHandler]], file_context: FileContext) -> None:
    if node.kind not in _KNOWN_KINDS:
        raise unsupported(node, file_context.source)
    for table in tables:
        handler = table.get(node.kind)
        if handler is not None:
            handler(node)
    for child in iter_children(node):
        _walk(child, tables, file_context)
