"""Parsed template files."""

from __future__ import annotations

from dataclasses import dataclass

from gt3.template.nodes import Program
from gt3.template.parser import parse_template


@dataclass(slots=True, frozen=True)
class TemplateFile:
    """One template: theme-relative path, verbatim contents and its syntax tree."""

    path: str
    contents: str
    program: Program


def load_template(path: str, contents: str) -> TemplateFile:
    """Parse contents and pair the tree with its source text."""
    return TemplateFile(path=path, contents=contents, program=parse_template(contents, path))
