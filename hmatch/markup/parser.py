"""
Tolerant markup tokenizer.

Scans HTML-like text in a single forward pass and builds the flat node arena
of a Document. The parser never raises: irrecoverable input (unterminated
comments, tags, quoted values or raw-text elements) yields an error document
that selectors treat as empty.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, Iterable, List, Optional

from .model import FRAGMENT_TAG, Document, MarkupNode, make_error_document

logger = logging.getLogger(__name__)

VOID_TAGS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})
RAW_TEXT_TAGS = frozenset({"style", "script"})

_TAG_RE = re.compile(r"</?([a-z][a-z0-9_:\-]*)", re.IGNORECASE)
_ATTR_NAME_RE = re.compile(r"[^\s\"'>/=]+")
_BARE_VALUE_RE = re.compile(r"[^\s>]+")
_SPACE_RE = re.compile(r"\s*")


@lru_cache(maxsize=64)
def _balanced_tag_re(tag: str) -> re.Pattern:
    return re.compile(rf"</?{re.escape(tag)}(?=[\s/>])", re.IGNORECASE)


@lru_cache(maxsize=None)
def _raw_text_end_re(tag: str) -> re.Pattern:
    return re.compile(rf"</{tag}\s*>", re.IGNORECASE)


class MarkupParseError(Exception):
    """Internal signal: the input cannot be turned into a tree."""

    def __init__(self, message: str, position: int):
        super().__init__(message)
        self.message = message
        self.position = position


@dataclass
class _NodeBuilder:
    tag: str
    parent: Optional[int]
    depth: int
    id: Optional[str] = None
    classes: List[str] = field(default_factory=list)
    attrs: Dict[str, str] = field(default_factory=dict)
    texts: List[str] = field(default_factory=list)
    children: List[int] = field(default_factory=list)

    def add_attr(self, name: str, value: str) -> None:
        if name == "class":
            for cls in value.split():
                if cls not in self.classes:
                    self.classes.append(cls)
        elif name == "id":
            if self.id is None:
                self.id = value
        else:
            self.attrs.setdefault(name, value)

    def add_text(self, text: str) -> None:
        trimmed = text.strip()
        if trimmed:
            self.texts.append(trimmed)


class MarkupParser:
    """
    Single-pass tokenizer that builds the node arena.

    State is the cursor (`index`) and the stack of open elements; nodes are
    appended in document order so arena order equals pre-order.
    """

    def __init__(self, text: str, skip_tags: Iterable[str] = ()):
        self.text = text
        self.length = len(text)
        self.skip_tags = frozenset(t.lower() for t in skip_tags)
        self.index = 0
        self.nodes: List[_NodeBuilder] = []
        self.open: List[int] = []
        self.top_level: List[int] = []
        self.top_level_texts: List[str] = []

    def parse(self) -> Document:
        try:
            self._run()
        except MarkupParseError as e:
            self._log_position(e.position, e.message)
            return make_error_document(f"{e.message} at offset {e.position}")
        if not self.nodes:
            return make_error_document("Document contains no elements")
        return self._freeze()

    # ------------------------------------------------------------------ scan

    def _run(self) -> None:
        text_start = 0
        while True:
            lt = self.text.find("<", self.index)
            if lt < 0:
                self._add_text(self.text[text_start:])
                return
            nxt = self.text[lt + 1:lt + 2]
            if nxt == "!" or nxt == "?":
                self._add_text(self.text[text_start:lt])
                self._skip_markup_declaration(lt)
                text_start = self.index
                continue
            m = _TAG_RE.match(self.text, lt)
            if not m:
                # a lone "<" is text
                self.index = lt + 1
                continue
            self._add_text(self.text[text_start:lt])
            tag = m.group(1).lower()
            self.index = m.end()
            if m.group(0)[1] == "/":
                self._close_tag(tag, lt)
            else:
                self._open_tag(tag, lt)
            text_start = self.index

    def _skip_markup_declaration(self, start: int) -> None:
        if self.text.startswith("<!--", start):
            end = self.text.find("-->", start + 4)
            if end < 0:
                raise MarkupParseError("Unterminated comment", start)
            self.index = end + 3
            return
        end = self.text.find(">", start)
        if end < 0:
            raise MarkupParseError("Unterminated declaration", start)
        self.index = end + 1

    def _close_tag(self, tag: str, start: int) -> None:
        end = self.text.find(">", self.index)
        if end < 0:
            raise MarkupParseError(f"Unterminated closing tag </{tag}>", start)
        self.index = end + 1
        for depth in range(len(self.open) - 1, -1, -1):
            if self.nodes[self.open[depth]].tag == tag:
                del self.open[depth:]
                return
        logger.debug("Ignoring stray closing tag </%s> at offset %d", tag, start)

    def _open_tag(self, tag: str, start: int) -> None:
        if tag in self.skip_tags:
            self._skip_element(tag, start)
            return
        node_index = self._enter(tag)
        self_closed = self._read_attributes(self.nodes[node_index], start)
        if self_closed or tag in VOID_TAGS:
            self._exit(node_index)
        elif tag in RAW_TEXT_TAGS:
            self._read_raw_text(tag, node_index, start)

    def _read_attributes(self, node: Optional[_NodeBuilder], start: int) -> bool:
        """Reads attributes up to the closing '>'; returns True for '/>'."""
        text = self.text
        while True:
            self.index = _SPACE_RE.match(text, self.index).end()
            if self.index >= self.length:
                raise MarkupParseError("Unterminated tag", start)
            ch = text[self.index]
            if ch == ">":
                self.index += 1
                return False
            if text.startswith("/>", self.index):
                self.index += 2
                return True
            m = _ATTR_NAME_RE.match(text, self.index)
            if not m:
                # stray quote or slash
                self.index += 1
                continue
            name = m.group(0).lower()
            self.index = _SPACE_RE.match(text, m.end()).end()
            if not text.startswith("=", self.index):
                if node is not None:
                    node.add_attr(name, name)
                continue
            self.index = _SPACE_RE.match(text, self.index + 1).end()
            value = self._read_attribute_value()
            if node is not None:
                node.add_attr(name, value)

    def _read_attribute_value(self) -> str:
        text = self.text
        quote = text[self.index:self.index + 1]
        if quote in ("\"", "'"):
            end = text.find(quote, self.index + 1)
            if end < 0:
                raise MarkupParseError("Unterminated attribute value", self.index)
            value = text[self.index + 1:end]
            self.index = end + 1
            return value
        m = _BARE_VALUE_RE.match(text, self.index)
        if not m:
            # <a href=>
            return ""
        value = m.group(0)
        if value.endswith("/") and text.startswith(">", m.end()):
            # <a href=x/> keeps "/>" as the self-closing marker
            value = value[:-1]
        self.index = m.start() + len(value)
        return value

    def _read_raw_text(self, tag: str, node_index: int, start: int) -> None:
        m = _raw_text_end_re(tag).search(self.text, self.index)
        if not m:
            raise MarkupParseError(f"Unterminated <{tag}> element", start)
        self.nodes[node_index].add_text(self.text[self.index:m.start()])
        self.index = m.end()
        self._exit(node_index)

    def _skip_element(self, tag: str, start: int) -> None:
        """Discards a skipped element together with its balanced subtree."""
        if self._read_attributes(None, start) or tag in VOID_TAGS:
            return
        pattern = _balanced_tag_re(tag)
        depth = 0
        while True:
            m = pattern.search(self.text, self.index)
            if not m:
                raise MarkupParseError(f"Unterminated skipped element <{tag}>", start)
            self.index = m.end()
            if m.group(0)[1] == "/":
                end = self.text.find(">", self.index)
                if end < 0:
                    raise MarkupParseError(f"Unterminated closing tag </{tag}>", m.start())
                self.index = end + 1
                if depth == 0:
                    return
                depth -= 1
            elif not self._read_attributes(None, m.start()):
                depth += 1

    # ------------------------------------------------------------------ tree

    def _enter(self, tag: str) -> int:
        parent = self.open[-1] if self.open else None
        depth = 0 if parent is None else self.nodes[parent].depth + 1
        index = len(self.nodes)
        self.nodes.append(_NodeBuilder(tag=tag, parent=parent, depth=depth))
        if parent is None:
            self.top_level.append(index)
        else:
            self.nodes[parent].children.append(index)
        self.open.append(index)
        return index

    def _exit(self, node_index: int) -> None:
        if self.open and self.open[-1] == node_index:
            self.open.pop()

    def _add_text(self, text: str) -> None:
        if self.open:
            self.nodes[self.open[-1]].add_text(text)
        elif text.strip():
            self.top_level_texts.append(text.strip())

    def _freeze(self) -> Document:
        # several top-level elements hang off a synthetic fragment root
        shift = 0 if len(self.top_level) == 1 else 1
        nodes: List[MarkupNode] = []
        if shift:
            nodes.append(MarkupNode(
                index=0,
                tag=FRAGMENT_TAG,
                text=" ".join(self.top_level_texts),
                children=tuple(i + 1 for i in self.top_level),
            ))
        for i, b in enumerate(self.nodes):
            parent = b.parent
            if parent is None:
                parent = 0 if shift else None
            else:
                parent += shift
            nodes.append(MarkupNode(
                index=i + shift,
                tag=b.tag,
                id=b.id,
                classes=tuple(b.classes),
                attrs=b.attrs,
                text=" ".join(b.texts),
                parent=parent,
                children=tuple(c + shift for c in b.children),
                depth=b.depth + shift,
            ))
        return Document(nodes=nodes)

    def _log_position(self, position: int, message: str) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        width = 80
        line_start = self.text.rfind("\n", 0, position) + 1
        line_end = self.text.find("\n", position)
        if line_end < 0:
            line_end = self.length
        start = max(line_start, position - width // 2)
        end = min(line_end, start + width)
        logger.debug("%s at offset %d of %d", message, position, self.length)
        logger.debug("%s", self.text[start:end])
        logger.debug("%s^", " " * (position - start))


def parse_document(text: str, skip_tags: Iterable[str] = ()) -> Document:
    """
    Parses markup into a Document.

    Args:
        text: markup text
        skip_tags: tag names whose whole subtree is discarded

    Returns:
        Document; on malformed input an error document (never raises)
    """
    return MarkupParser(text, skip_tags).parse()


__all__ = [
    "VOID_TAGS",
    "RAW_TEXT_TAGS",
    "MarkupParser",
    "parse_document",
]
