"""Single-pass template analyses."""

from .base import (
    NODE_KINDS,
    FileContext,
    UnsupportedNodeError,
    VisitorContext,
    VisitorType,
    build_dispatch_table,
)
from .many import create_context, merge_contexts, run_many
from .text_extractor import SpanMismatchError, TextExtractor, TextToTranslate
from .translated_strings import (
    KeyLocation,
    TranslatedString,
    TranslatedStrings,
    TranslatedStringsCollector,
    UnsupportedHelperUsageError,
)

DEFAULT_VISITORS: tuple[VisitorType, ...] = (TextExtractor, TranslatedStringsCollector)

__all__ = [
    "DEFAULT_VISITORS",
    "NODE_KINDS",
    "FileContext",
    "KeyLocation",
    "SpanMismatchError",
    "TextExtractor",
    "TextToTranslate",
    "TranslatedString",
    "TranslatedStrings",
    "TranslatedStringsCollector",
    "UnsupportedHelperUsageError",
    "UnsupportedNodeError",
    "VisitorContext",
    "VisitorType",
    "build_dispatch_table",
    "create_context",
    "merge_contexts",
    "run_many",
]
