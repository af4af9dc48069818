"""Template compiler and the compiled Template Tree."""

from __future__ import annotations

from .nodes import LiteralSegment, PropBinding, PropSegment, Template, TemplateNode, TextSegment
from .parser import TemplateParser, compile_template

__all__ = [
    "PropBinding",
    "LiteralSegment",
    "PropSegment",
    "TextSegment",
    "TemplateNode",
    "Template",
    "TemplateParser",
    "compile_template",
]
