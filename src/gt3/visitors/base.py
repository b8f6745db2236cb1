"""Visitor capability sets and node-kind dispatch tables."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from gt3.errors import ContractViolation
from gt3.logging.diagnostics import DiagnosticsSink, NullDiagnostics
from gt3.template.nodes import Node

NodeHandler = Callable[[Node], None]
VisitorContext = dict[str, Any]

NODE_KINDS: tuple[str, ...] = (
    "Program",
    "BlockStatement",
    "PartialStatement",
    "PartialBlockStatement",
    "DecoratorBlock",
    "Decorator",
    "MustacheStatement",
    "ContentStatement",
    "CommentStatement",
    "SubExpression",
    "PathExpression",
    "StringLiteral",
    "NumberLiteral",
    "BooleanLiteral",
    "UndefinedLiteral",
    "NullLiteral",
    "Hash",
    "HashPair",
)


class UnsupportedNodeError(ContractViolation):
    """Raised when traversal meets a node kind the analyses cannot handle safely."""


@dataclass(slots=True)
class FileContext:
    """State scoped to one file's traversal, discarded when the pass completes."""

    source: str
    text: str
    helper_name: str = "t"
    diagnostics: DiagnosticsSink = field(default_factory=NullDiagnostics)
    visited: set[tuple[str, int]] = field(default_factory=set)

    def first_visit(self, owner: str, node: Node) -> bool:
        """Record `node` for `owner`; return False when it was already recorded."""
        marker = (owner, node.node_id)
        if marker in self.visited:
            return False
        self.visited.add(marker)
        return True


class VisitorType(Protocol):
    """Class side of a visitor: builds and merges its slice of the shared context."""

    def __call__(self, file_context: FileContext, context: VisitorContext) -> object: ...

    def create_context(self) -> VisitorContext: ...

    def merge_context(self, target: VisitorContext, source: VisitorContext) -> None: ...


def build_dispatch_table(visitor: object) -> dict[str, NodeHandler]:
    """Collect a visitor's `visit_<Kind>` handlers keyed by node kind."""
    table: dict[str, NodeHandler] = {}
    for kind in NODE_KINDS:
        handler = getattr(visitor, f"visit_{kind}", None)
        if callable(handler):
            table[kind] = handler
    return table


def unsupported(node: Node, source: str) -> UnsupportedNodeError:
    """Build the error raised for a node kind that cannot be analysed."""
    return UnsupportedNodeError(
        f"{node.kind} is not supported.",
        source=source,
        line=node.loc.start.line,
        column=node.loc.start.column,
    )
