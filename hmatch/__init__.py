"""
hmatch: declarative extraction of structured records from HTML-like markup.

A template is markup-shaped text with typed bindings:

    >>> extract_first('<a href={url}>{title}</a>', '<p><a href="/x">Home</a></p>')
    {'title': 'Home', 'url': '/x'}
"""

from __future__ import annotations

from .api import extract_all, extract_first, extract_typed, match_html, match_html_all
from .config import ConfigLoadError, ExtractorConfig, default_config, load_config
from .errors import (
    HMatchError,
    MatchBudgetExceededError,
    NoMatchError,
    NotFoundError,
    SelectorSyntaxError,
    TemplateSyntaxError,
)
from .markup.model import Document, MarkupNode
from .markup.parser import parse_document
from .template.nodes import Template, TemplateNode
from .template.parser import compile_template
from .typed import TypedLoadError, load_typed
from .version import package_version

__version__ = package_version()

__all__ = [
    # compile / parse
    "compile_template",
    "parse_document",
    "Template",
    "TemplateNode",
    "Document",
    "MarkupNode",
    # extraction
    "extract_first",
    "extract_all",
    "match_html",
    "match_html_all",
    "extract_typed",
    "load_typed",
    # configuration
    "ExtractorConfig",
    "load_config",
    "default_config",
    # errors
    "HMatchError",
    "TemplateSyntaxError",
    "SelectorSyntaxError",
    "NotFoundError",
    "NoMatchError",
    "MatchBudgetExceededError",
    "TypedLoadError",
    "ConfigLoadError",
]
