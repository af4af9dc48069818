"""
Public entry points.

Templates and documents may be passed either as text or already compiled /
parsed; compiled templates are cached by text, so passing text repeatedly is
cheap. Every call builds its own Extractor, hence its own claim set: the same
Template and Document may be shared freely between calls and threads.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Optional, Type, TypeVar, Union

from .config import ExtractorConfig, default_config
from .errors import NoMatchError
from .extract.engine import Candidate, Extractor, Record
from .markup.model import Document
from .markup.parser import parse_document
from .markup.selectors import select_or_raise
from .template.nodes import Template
from .template.parser import compile_template
from .typed import load_typed

logger = logging.getLogger(__name__)

T = TypeVar("T")

TemplateLike = Union[str, Template]
DocumentLike = Union[str, Document]


def _as_template(template: TemplateLike) -> Template:
    if isinstance(template, Template):
        return template
    return compile_template(template)


def _as_document(document: DocumentLike, skip_tags: Iterable[str] = ()) -> Document:
    if isinstance(document, Document):
        return document
    return parse_document(document, skip_tags)


def _candidates(
    template: TemplateLike,
    document: DocumentLike,
    root_selector: Optional[str],
    max_attempts: Optional[int],
) -> tuple[Document, List[Candidate]]:
    tmpl = _as_template(template)
    doc = _as_document(document)
    root = doc.root
    if root_selector:
        root = select_or_raise(doc, doc.root, root_selector)
    extractor = Extractor(doc, max_attempts=max_attempts)
    found = extractor.match_many(root, tmpl.root, match_self=True)
    logger.debug("%d record(s) after %d attempt(s)", len(found), extractor.attempts)
    return doc, found


def extract_first(
    template: TemplateLike,
    document: DocumentLike,
    root_selector: Optional[str] = None,
    *,
    max_attempts: Optional[int] = None,
) -> Record:
    """
    Record of the most specific match: the surviving candidate with the
    largest depth sum, the first one in document order on ties.

    Raises:
        NotFoundError: root_selector matches nothing
        NoMatchError: nothing satisfies the template
        MatchBudgetExceededError: more than max_attempts attempts were made
    """
    doc, found = _candidates(template, document, root_selector, max_attempts)
    if not found:
        raise NoMatchError(root_selector=root_selector, document_error=doc.error)
    return max(found, key=lambda c: c.depth_sum).record


def extract_all(
    template: TemplateLike,
    document: DocumentLike,
    root_selector: Optional[str] = None,
    *,
    max_attempts: Optional[int] = None,
) -> List[Record]:
    """
    Records of every surviving candidate in document order; empty when
    nothing matches.

    Raises:
        NotFoundError: root_selector matches nothing
        MatchBudgetExceededError: more than max_attempts attempts were made
    """
    _, found = _candidates(template, document, root_selector, max_attempts)
    return [c.record for c in found]


def _bind(
    template: TemplateLike,
    root_selector: Optional[str],
    config: Optional[ExtractorConfig],
    extract: Callable[..., Any],
) -> Callable[[str], Any]:
    tmpl = _as_template(template)
    cfg = config if config is not None else default_config()
    selector = root_selector if root_selector is not None else cfg.root_selector
    skip_tags = tuple(cfg.skip_tags)

    def matcher(html: str) -> Any:
        doc = parse_document(html, skip_tags)
        return extract(tmpl, doc, selector, max_attempts=cfg.max_attempts)

    return matcher


def match_html(
    template: TemplateLike,
    root_selector: Optional[str] = None,
    *,
    config: Optional[ExtractorConfig] = None,
) -> Callable[[str], Record]:
    """
    Matcher bound to one template: `match_html(t)(html) == extract_first(t, html)`.

    The template is compiled right away, so syntax errors surface here.
    Without an explicit config, settings come from `default_config()`.
    """
    return _bind(template, root_selector, config, extract_first)


def match_html_all(
    template: TemplateLike,
    root_selector: Optional[str] = None,
    *,
    config: Optional[ExtractorConfig] = None,
) -> Callable[[str], List[Record]]:
    """Like match_html, but the matcher returns every record (extract_all)."""
    return _bind(template, root_selector, config, extract_all)


def extract_typed(
    template: TemplateLike,
    document: DocumentLike,
    target_type: Type[T],
    root_selector: Optional[str] = None,
) -> T:
    """
    First record projected onto `target_type` (dataclass, pydantic model
    or typing annotation).

    Raises:
        NotFoundError, NoMatchError: as extract_first
        TypedLoadError: the record does not fit target_type
    """
    record = extract_first(template, document, root_selector)
    return load_typed(target_type, record)


__all__ = [
    "extract_first",
    "extract_all",
    "match_html",
    "match_html_all",
    "extract_typed",
]
