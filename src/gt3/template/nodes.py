"""Handlebars syntax tree node types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from gt3.location import SourceSpan


@dataclass(slots=True, frozen=True, eq=False)
class Node:
    """Base syntax node; identity is the parse-order `node_id`."""

    kind: ClassVar[str] = "Node"

    node_id: int
    loc: SourceSpan


@dataclass(slots=True, frozen=True, eq=False)
class PathExpression(Node):
    """Reference such as `title`, `../post.url`, `@site.locale` or `this`."""

    kind: ClassVar[str] = "PathExpression"

    original: str
    parts: tuple[str, ...]
    data: bool
    depth: int


@dataclass(slots=True, frozen=True, eq=False)
class StringLiteral(Node):
    kind: ClassVar[str] = "StringLiteral"

    value: str
    original: str


@dataclass(slots=True, frozen=True, eq=False)
class NumberLiteral(Node):
    kind: ClassVar[str] = "NumberLiteral"

    value: int | float
    original: str


@dataclass(slots=True, frozen=True, eq=False)
class BooleanLiteral(Node):
    kind: ClassVar[str] = "BooleanLiteral"

    value: bool
    original: str


@dataclass(slots=True, frozen=True, eq=False)
class UndefinedLiteral(Node):
    kind: ClassVar[str] = "UndefinedLiteral"


@dataclass(slots=True, frozen=True, eq=False)
class NullLiteral(Node):
    kind: ClassVar[str] = "NullLiteral"


@dataclass(slots=True, frozen=True, eq=False)
class HashPair(Node):
    kind: ClassVar[str] = "HashPair"

    key: str
    value: Node


@dataclass(slots=True, frozen=True, eq=False)
class Hash(Node):
    """Named arguments of an invocation, in source order."""

    kind: ClassVar[str] = "Hash"

    pairs: tuple[HashPair, ...]


@dataclass(slots=True, frozen=True, eq=False)
class SubExpression(Node):
    """Parenthesised invocation such as `(t "Read more")`."""

    kind: ClassVar[str] = "SubExpression"

    path: Node
    params: tuple[Node, ...]
    hash: Hash | None


@dataclass(slots=True, frozen=True, eq=False)
class Program(Node):
    """Sequence of statements; the template root or one branch of a block.

    `chained` marks the inverse program synthesized for an `{{else if}}`
    chain, whose only statement is the nested block.
    """

    kind: ClassVar[str] = "Program"

    body: tuple[Node, ...]
    block_params: tuple[str, ...] = ()
    chained: bool = False


@dataclass(slots=True, frozen=True, eq=False)
class ContentStatement(Node):
    kind: ClassVar[str] = "ContentStatement"

    value: str
    original: str


@dataclass(slots=True, frozen=True, eq=False)
class CommentStatement(Node):
    kind: ClassVar[str] = "CommentStatement"

    value: str


@dataclass(slots=True, frozen=True, eq=False)
class MustacheStatement(Node):
    kind: ClassVar[str] = "MustacheStatement"

    path: Node
    params: tuple[Node, ...]
    hash: Hash | None
    escaped: bool


@dataclass(slots=True, frozen=True, eq=False)
class BlockStatement(Node):
    """`{{#name}}...{{else}}...{{/name}}`; `loc` covers open through close tag."""

    kind: ClassVar[str] = "BlockStatement"

    path: Node
    params: tuple[Node, ...]
    hash: Hash | None
    program: Program | None
    inverse: Program | None


@dataclass(slots=True, frozen=True, eq=False)
class PartialStatement(Node):
    kind: ClassVar[str] = "PartialStatement"

    name: Node
    params: tuple[Node, ...]
    hash: Hash | None


@dataclass(slots=True, frozen=True, eq=False)
class PartialBlockStatement(Node):
    kind: ClassVar[str] = "PartialBlockStatement"

    name: Node
    params: tuple[Node, ...]
    hash: Hash | None
    program: Program


@dataclass(slots=True, frozen=True, eq=False)
class Decorator(Node):
    kind: ClassVar[str] = "Decorator"

    path: Node
    params: tuple[Node, ...]
    hash: Hash | None


@dataclass(slots=True, frozen=True, eq=False)
class DecoratorBlock(Node):
    kind: ClassVar[str] = "DecoratorBlock"

    path: Node
    params: tuple[Node, ...]
    hash: Hash | None
    program: Program


def iter_children(node: Node) -> tuple[Node, ...]:
    """Return a node's children in traversal order: path, params, hash, then bodies."""
    if isinstance(node, Program):
        return node.body
    if isinstance(node, (MustacheStatement, SubExpression, Decorator)):
        return _call_children(node.path, node.params, node.hash)
    if isinstance(node, BlockStatement):
        # `{{^x}}a{{else}}b{{/x}}` stores `b` as the program, so order by position.
        bodies = sorted(
            (branch for branch in (node.program, node.inverse) if branch is not None),
            key=lambda branch: branch.loc.start,
        )
        return _call_children(node.path, node.params, node.hash) + tuple(bodies)
    if isinstance(node, DecoratorBlock):
        return _call_children(node.path, node.params, node.hash) + (node.program,)
    if isinstance(node, PartialStatement):
        return _call_children(node.name, node.params, node.hash)
    if isinstance(node, PartialBlockStatement):
        return _call_children(node.name, node.params, node.hash) + (node.program,)
    if isinstance(node, Hash):
        return node.pairs
    if isinstance(node, HashPair):
        return (node.value,)
    return ()


def _call_children(
    callee: Node, params: tuple[Node, ...], hash_node: Hash | None
) -> tuple[Node, ...]:
    children = (callee, *params)
    if hash_node is not None:
        children = (*children, hash_node)
    return children
