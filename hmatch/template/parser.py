"""
Template compiler.

Recursive-descent scanner that turns template text such as

    <li>
      <a href={url}>{title?}</a>
      <?span class="price">{price?:number} $</span>
      <ul>{{tags: <li>{tag}</li>}}</ul>
    </li>

into a tree of TemplateNode objects. Nested `{{name: ...}}` sub-templates are
compiled by a separate parser instance over a slice of the same source, so
error positions always refer to the outermost template text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional, Tuple

from .nodes import (
    PROP_TYPES, LiteralSegment, PropBinding, PropSegment, Template, TemplateNode, TextSegment,
)
from ..errors import SelectorSyntaxError, TemplateSyntaxError
from ..markup.selectors import parse_selector

_PROP_NAME_RE = re.compile(r"[A-Za-z_$][A-Za-z0-9_$\-]*")
_SELECTOR_TOKEN_RE = re.compile(r"[^\s/>{}]+")
_ATTR_NAME_RE = re.compile(r"[^\s=/>{}\"']+")
_BARE_VALUE_RE = re.compile(r"[^\s>]+")
_SPACE_RE = re.compile(r"\s*")


@dataclass
class _Frame:
    """Mutable element under construction."""
    selector: str
    position: int
    is_optional: bool = False
    is_direct_child: bool = False
    in_optional: bool = False           # self or some ancestor is optional
    attribute_bindings: List[Tuple[str, PropBinding]] = field(default_factory=list)
    text_content: List[TextSegment] = field(default_factory=list)
    sub_query_prop: Optional[str] = None
    sub_query: Optional[TemplateNode] = None
    children: List[_Frame] = field(default_factory=list)

    def freeze(self) -> TemplateNode:
        return TemplateNode(
            selector=self.selector,
            is_optional=self.is_optional,
            is_direct_child=self.is_direct_child,
            attribute_bindings=tuple(self.attribute_bindings),
            text_content=tuple(self.text_content),
            sub_query_prop=self.sub_query_prop,
            sub_query=self.sub_query,
            children=tuple(child.freeze() for child in self.children),
        )


class TemplateParser:
    """
    Parser for one template element tree.

    Scans `source[start:end]`; the cursor and the stack of open elements are
    private to the instance.
    """

    def __init__(self, source: str, start: int = 0, end: Optional[int] = None):
        self.source = source
        self.start = start
        self.end = len(source) if end is None else end
        self.position = start
        self.root: Optional[_Frame] = None
        self.stack: List[_Frame] = []

    def parse(self) -> TemplateNode:
        """
        Returns:
            Root node of the template

        Raises:
            TemplateSyntaxError: on malformed template text
        """
        while True:
            self.position = self._scan_content(self.position)
            if self.position >= self.end:
                break
            if self.source.startswith("</", self.position):
                self._parse_closing_tag()
            else:
                self._parse_open_tag()
        if self.root is None:
            raise self._error("Template has no root element", self.start)
        return self.root.freeze()

    # ---------------------------------------------------------------- tags

    def _parse_closing_tag(self) -> None:
        gt = self.source.find(">", self.position, self.end)
        if gt < 0:
            raise self._error("Unterminated tag", self.position)
        self.position = gt + 1
        if self.stack:
            self.stack.pop()

    def _parse_open_tag(self) -> None:
        tag_start = self.position
        pos = tag_start + 1
        is_optional = is_direct_child = False
        while pos < self.end and self.source[pos] in "?!":
            if self.source[pos] == "?":
                is_optional = True
            else:
                is_direct_child = True
            pos += 1

        m = _SELECTOR_TOKEN_RE.match(self.source, pos, self.end)
        if not m:
            raise self._error("Expected tag name", pos)
        frame = _Frame(
            selector=m.group(0),
            position=tag_start,
            is_optional=is_optional,
            is_direct_child=is_direct_child,
        )
        self.position = m.end()
        self_closed = self._parse_attributes(frame, tag_start)
        self._validate_selector(frame)

        if self.stack:
            parent = self.stack[-1]
            frame.in_optional = frame.is_optional or parent.in_optional
            parent.children.append(frame)
        elif self.root is None:
            if frame.is_optional:
                raise self._error("Root element cannot be optional", tag_start)
            if frame.is_direct_child:
                raise self._error("Root element cannot be a direct child", tag_start)
            self.root = frame
        else:
            raise self._error("Template has more than one root element", tag_start)

        if not self_closed:
            self.stack.append(frame)

    def _parse_attributes(self, frame: _Frame, tag_start: int) -> bool:
        """Reads attributes up to '>' or '/>'; returns True when self-closed."""
        src = self.source
        while True:
            self.position = _SPACE_RE.match(src, self.position, self.end).end()
            if self.position >= self.end:
                raise self._error("Unterminated tag", tag_start)
            if src[self.position] == ">":
                self.position += 1
                return False
            if src.startswith("/>", self.position):
                self.position += 2
                return True

            m = _ATTR_NAME_RE.match(src, self.position, self.end)
            if not m:
                raise self._error(f"Unexpected character {src[self.position]!r} in tag", self.position)
            name = m.group(0).lower()
            self.position = m.end()
            if not src.startswith("=", self.position):
                frame.selector += f"[{name}]"
                continue
            self.position += 1
            value_start = self.position
            ch = src[self.position:self.position + 1]
            if ch == "{":
                close = src.find("}", self.position, self.end)
                if close < 0:
                    raise self._error("Unterminated attribute binding", value_start)
                prop = self._parse_prop(src[self.position + 1:close], value_start)
                if any(existing == name for existing, _ in frame.attribute_bindings):
                    raise self._error(f"Duplicate attribute binding: {name}", value_start)
                frame.attribute_bindings.append((name, prop))
                self.position = close + 1
            elif ch == "\"":
                close = src.find("\"", self.position + 1, self.end)
                if close < 0:
                    raise self._error("Unterminated attribute value", value_start)
                frame.selector += _fold_literal_attribute(name, src[self.position + 1:close])
                self.position = close + 1
            else:
                m = _BARE_VALUE_RE.match(src, self.position, self.end)
                value = m.group(0) if m else ""
                if value.endswith("/") and src.startswith(">", self.position + len(value)):
                    value = value[:-1]
                frame.selector += _fold_literal_attribute(name, value)
                self.position += len(value)

    def _validate_selector(self, frame: _Frame) -> None:
        try:
            parse_selector(frame.selector)
        except SelectorSyntaxError as e:
            raise self._error(e.message, frame.position) from e

    # ------------------------------------------------------------- content

    def _scan_content(self, pos: int) -> int:
        """
        Consumes one text run starting at `pos` and attaches its segments to
        the open element; returns the position of the next tag (or end).
        """
        src = self.source
        segments: List[TextSegment] = []
        has_sub_query = False
        while True:
            lt = src.find("<", pos, self.end)
            stop = self.end if lt < 0 else lt
            brace = src.find("{", pos, stop)
            if brace < 0:
                _append_literal(segments, src[pos:stop])
                break
            _append_literal(segments, src[pos:brace])
            current = self.stack[-1] if self.stack else None
            if current is None:
                raise self._error("Binding outside of an element", brace)
            if src.startswith("{{", brace):
                if has_sub_query or current.sub_query is not None:
                    raise self._error("Duplicate array binding", brace)
                pos = self._parse_sub_query(current, brace)
                has_sub_query = True
                continue
            close = src.find("}", brace, self.end)
            if close < 0:
                raise self._error("Unterminated text binding", brace)
            prop = self._parse_prop(src[brace + 1:close], brace)
            if current.in_optional and not prop.nullable:
                raise self._error(
                    f"Prop '{prop.name}' inside an optional element must be nullable", brace
                )
            segments.append(PropSegment(prop))
            pos = close + 1

        if self.stack and not has_sub_query:
            self.stack[-1].text_content.extend(segments)
        return stop

    def _parse_sub_query(self, frame: _Frame, brace: int) -> int:
        close = self._find_array_end(brace)
        colon = self.source.find(":", brace + 2, close)
        if colon < 0:
            raise self._error("Expected ':' in array binding", brace)
        name = self.source[brace + 2:colon].strip()
        if not _PROP_NAME_RE.fullmatch(name):
            raise self._error(f"Invalid prop name: {name!r}", brace + 2)
        frame.sub_query_prop = name
        frame.sub_query = TemplateParser(self.source, colon + 1, close).parse()
        return close + 2

    def _find_array_end(self, brace: int) -> int:
        """Index of the '}}' closing the array binding opened at `brace`."""
        depth = 0
        for i in range(brace, self.end):
            ch = self.source[i]
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return i - 1
        raise self._error("Unterminated array binding", brace)

    # --------------------------------------------------------------- props

    def _parse_prop(self, body: str, position: int) -> PropBinding:
        """Parses `ident ['?'] [':' type]`."""
        head, colon, type_token = body.partition(":")
        head = head.strip()
        nullable = head.endswith("?")
        if nullable:
            head = head[:-1].rstrip()
        if not _PROP_NAME_RE.fullmatch(head):
            raise self._error(f"Invalid prop name: {head!r}", position)
        prop_type = type_token.strip() if colon else "string"
        if prop_type not in PROP_TYPES:
            raise self._error(f"Invalid type: {prop_type}", position)
        return PropBinding(name=head, type=prop_type, nullable=nullable)  # type: ignore[arg-type]

    def _error(self, message: str, position: int) -> TemplateSyntaxError:
        return TemplateSyntaxError(message, self.source, position)


def _append_literal(segments: List[TextSegment], text: str) -> None:
    trimmed = text.strip()
    if trimmed:
        segments.append(LiteralSegment(trimmed))


def _fold_literal_attribute(name: str, value: str) -> str:
    """Selector fragment for an attribute that only filters, never binds."""
    if name == "class":
        return "".join(f".{cls}" for cls in value.split())
    return f"[{name}=\"{value}\"]"


@lru_cache(maxsize=256)
def compile_template(text: str) -> Template:
    """
    Compiles template text; results are cached by text.

    Raises:
        TemplateSyntaxError: on malformed template text
    """
    return Template(source=text, root=TemplateParser(text).parse())


__all__ = [
    "TemplateParser",
    "compile_template",
]
