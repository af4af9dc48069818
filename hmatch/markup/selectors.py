from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Tuple

from .model import Document, MarkupNode
from ..errors import NotFoundError, SelectorSyntaxError

_IDENT = r"[A-Za-z_][A-Za-z0-9_:\-]*"
_TAG_RE = re.compile(rf"\*|{_IDENT}")
_NAME_RE = re.compile(r"[^\s.#\[\]]+")
_ATTR_RE = re.compile(
    r"""\[\s*(?P<name>[^\s=\]"']+)\s*"""
    r"""(?:=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s\]"']+))\s*)?\]"""
)


@dataclass(frozen=True)
class AttrCondition:
    name: str
    value: Optional[str] = None         # None → presence check


@dataclass(frozen=True)
class CompoundSelector:
    """Conjunction of simple selectors that must all hold for one node."""
    tag: Optional[str] = None
    id: Optional[str] = None
    classes: Tuple[str, ...] = ()
    attrs: Tuple[AttrCondition, ...] = ()

    def matches(self, node: MarkupNode) -> bool:
        if self.tag is not None and node.tag != self.tag:
            return False
        if self.id is not None and node.id != self.id:
            return False
        for cls in self.classes:
            if cls not in node.classes:
                return False
        for cond in self.attrs:
            if cond.value is None:
                if not node.has_attribute(cond.name):
                    return False
            elif node.raw_attribute(cond.name) != cond.value:
                return False
        return True


def _split_steps(text: str) -> List[str]:
    """Splits on whitespace that is outside brackets and quotes."""
    steps: List[str] = []
    buf: List[str] = []
    quote: Optional[str] = None
    in_brackets = False
    for ch in text:
        if quote:
            buf.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in "\"'" and in_brackets:
            quote = ch
        elif ch == "[":
            in_brackets = True
        elif ch == "]":
            in_brackets = False
        elif ch.isspace() and not in_brackets:
            if buf:
                steps.append("".join(buf))
                buf = []
            continue
        buf.append(ch)
    if quote or in_brackets:
        raise SelectorSyntaxError("Unterminated attribute selector", text)
    if buf:
        steps.append("".join(buf))
    return steps


def _parse_compound(step: str, selector: str) -> CompoundSelector:
    pos = 0
    tag: Optional[str] = None
    element_id: Optional[str] = None
    classes: List[str] = []
    attrs: List[AttrCondition] = []

    m = _TAG_RE.match(step)
    if m:
        tag = None if m.group(0) == "*" else m.group(0).lower()
        pos = m.end()

    while pos < len(step):
        ch = step[pos]
        if ch in ".#":
            m = _NAME_RE.match(step, pos + 1)
            if not m:
                raise SelectorSyntaxError(f"Expected name after {ch!r}", selector)
            if ch == ".":
                classes.append(m.group(0))
            elif element_id is not None and element_id != m.group(0):
                raise SelectorSyntaxError("Conflicting id selectors", selector)
            else:
                element_id = m.group(0)
            pos = m.end()
        elif ch == "[":
            m = _ATTR_RE.match(step, pos)
            if not m:
                raise SelectorSyntaxError("Malformed attribute selector", selector)
            value = next((v for v in (m.group("dq"), m.group("sq"), m.group("bare")) if v is not None), None)
            attrs.append(AttrCondition(name=m.group("name").lower(), value=value))
            pos = m.end()
        elif ch == ">" or ch == "+" or ch == "~":
            raise SelectorSyntaxError(f"Unsupported combinator {ch!r}", selector)
        else:
            raise SelectorSyntaxError(f"Unexpected character {ch!r}", selector)

    return CompoundSelector(tag=tag, id=element_id, classes=tuple(classes), attrs=tuple(attrs))


@lru_cache(maxsize=1024)
def parse_selector(text: str) -> Tuple[CompoundSelector, ...]:
    """
    Parses a selector into descendant steps.

    Raises:
        SelectorSyntaxError: for empty or malformed selectors
    """
    steps = _split_steps(text.strip())
    if not steps:
        raise SelectorSyntaxError("Empty selector", text)
    return tuple(_parse_compound(step, text) for step in steps)


def select_all(
    doc: Document,
    root: MarkupNode,
    selector: str,
    match_self: bool = True,
    max_depth: Optional[int] = None,
) -> List[MarkupNode]:
    """
    All nodes under `root` (pre-order, document order) matching `selector`.

    Each step may be satisfied by any ancestor, not only the immediate parent.
    A matched node's subtree is still searched. `max_depth` limits the search
    to that many levels below `root`.
    """
    if doc.is_error:
        return []
    steps = parse_selector(selector)
    last = len(steps) - 1
    found: List[MarkupNode] = []
    # (node index, progress into steps)
    stack: List[Tuple[int, int]] = [(root.index, 0)]
    while stack:
        index, progress = stack.pop()
        node = doc.node(index)
        if steps[progress].matches(node):
            if progress == last:
                if match_self or node.index != root.index:
                    found.append(node)
            else:
                progress += 1
        if max_depth is not None and node.depth - root.depth >= max_depth:
            continue
        stack.extend((child, progress) for child in reversed(node.children))
    return found


def select(
    doc: Document,
    root: MarkupNode,
    selector: str,
    match_self: bool = True,
) -> Optional[MarkupNode]:
    matches = select_all(doc, root, selector, match_self)
    return matches[0] if matches else None


def select_or_raise(
    doc: Document,
    root: MarkupNode,
    selector: str,
    match_self: bool = True,
) -> MarkupNode:
    node = select(doc, root, selector, match_self)
    if node is None:
        raise NotFoundError(selector)
    return node


__all__ = [
    "AttrCondition",
    "CompoundSelector",
    "parse_selector",
    "select_all",
    "select",
    "select_or_raise",
]
