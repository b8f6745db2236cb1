"""Handlebars template parsing."""

from .nodes import Node, Program, iter_children
from .parser import TemplateSyntaxError, parse_template
from .source import TemplateFile, load_template

__all__ = [
    "Node",
    "Program",
    "TemplateFile",
    "TemplateSyntaxError",
    "iter_children",
    "load_template",
    "parse_template",
]
