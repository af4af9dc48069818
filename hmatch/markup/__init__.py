from __future__ import annotations

from .model import Document, MarkupNode
from .parser import parse_document
from .selectors import parse_selector, select, select_all, select_or_raise

__all__ = [
    "Document",
    "MarkupNode",
    "parse_document",
    "parse_selector",
    "select",
    "select_all",
    "select_or_raise",
]
