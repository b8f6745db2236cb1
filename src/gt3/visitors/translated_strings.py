"""Collection of translation-helper call sites and their literal keys."""

from __future__ import annotations

from dataclasses import dataclass, field

from gt3.errors import ContractViolation
from gt3.location import SourceSpan
from gt3.template.nodes import MustacheStatement, PathExpression, StringLiteral, SubExpression
from gt3.visitors.base import FileContext, VisitorContext

_OWNER = "translated_strings"


class UnsupportedHelperUsageError(ContractViolation):
    """Raised when the translation helper is called with anything but one string literal."""


@dataclass(slots=True, frozen=True)
class KeyLocation:
    """One call site of a key and the named parameters passed there."""

    span: SourceSpan
    parameters: tuple[str, ...]


@dataclass(slots=True)
class TranslatedString:
    """Every call site of one key plus the union of their parameter names."""

    parameters: set[str] = field(default_factory=set)
    locations: list[KeyLocation] = field(default_factory=list)


TranslatedStrings = dict[str, TranslatedString]


class TranslatedStringsCollector:
    """Record `{{t "key" name=value}}` and `(t "key")` invocations."""

    @classmethod
    def create_context(cls) -> VisitorContext:
        """Return this visitor's empty slice of the shared context."""
        return {"translated_strings": {}}

    @classmethod
    def merge_context(cls, target: VisitorContext, source: VisitorContext) -> None:
        """Union parameters and append call sites from one file into an aggregate."""
        store: TranslatedStrings = target["translated_strings"]
        for key, entry in source["translated_strings"].items():
            merged = store.setdefault(key, TranslatedString())
            merged.parameters.update(entry.parameters)
            merged.locations.extend(entry.locations)

    def __init__(self, file_context: FileContext, context: VisitorContext) -> None:
        self._file = file_context
        self._store: TranslatedStrings = context["translated_strings"]

    def visit_MustacheStatement(self, node: MustacheStatement) -> None:  # noqa: N802
        self._consume(node)

    def visit_SubExpression(self, node: SubExpression) -> None:  # noqa: N802
        self._consume(node)

    def _consume(self, node: MustacheStatement | SubExpression) -> None:
        if not self._file.first_visit(_OWNER, node):
            return
        callee = node.path
        if not isinstance(callee, PathExpression) or callee.original != self._file.helper_name:
            return
        if len(node.params) != 1 or not isinstance(node.params[0], StringLiteral):
            raise UnsupportedHelperUsageError(
                f"The '{self._file.helper_name}' helper expects exactly one string literal key.",
                source=self._file.source,
                line=node.loc.start.line,
                column=node.loc.start.column,
            )
        key = node.params[0].value
        parameters = tuple(pair.key for pair in node.hash.pairs) if node.hash else ()
        entry = self._store.setdefault(key, TranslatedString())
        entry.parameters.update(parameters)
        entry.locations.append(KeyLocation(span=node.loc, parameters=parameters))
