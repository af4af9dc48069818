"""
Template Tree nodes.

A compiled template is a tree of TemplateNode objects; every node stands for
one element of the template text and carries the binding instructions used
by the extraction engine. All nodes are frozen so a compiled template can be
cached and shared freely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Literal, Mapping, Optional, Tuple, Union

PropType = Literal["string", "number"]

PROP_TYPES: Tuple[str, ...] = ("string", "number")


@dataclass(frozen=True)
class PropBinding:
    """Named, typed, optionally nullable extraction slot."""
    name: str
    type: PropType = "string"
    nullable: bool = False

    def __str__(self) -> str:
        return f"{{{self.name}{'?' if self.nullable else ''}:{self.type}}}"


@dataclass(frozen=True)
class LiteralSegment:
    """Constant text that must be present in the element text."""
    text: str


@dataclass(frozen=True)
class PropSegment:
    """Text slot bound to a prop."""
    prop: PropBinding


TextSegment = Union[LiteralSegment, PropSegment]


@dataclass(frozen=True)
class TemplateNode:
    """
    One element of the template.

    `attribute_bindings` keeps (attribute name, binding) pairs in declaration
    order; use `attributes` for mapping-style access.
    """
    selector: str
    is_optional: bool = False
    is_direct_child: bool = False
    attribute_bindings: Tuple[Tuple[str, PropBinding], ...] = ()
    text_content: Tuple[TextSegment, ...] = ()
    sub_query_prop: Optional[str] = None
    sub_query: Optional[TemplateNode] = None
    children: Tuple[TemplateNode, ...] = ()

    @property
    def attributes(self) -> Mapping[str, PropBinding]:
        return MappingProxyType(dict(self.attribute_bindings))

    def text_props(self) -> Iterator[PropBinding]:
        for segment in self.text_content:
            if isinstance(segment, PropSegment):
                yield segment.prop

    def prop_names(self) -> List[str]:
        """Every prop name bound anywhere in this subtree, in declaration order."""
        return list(self.empty_record())

    def empty_record(self) -> Dict[str, Any]:
        """
        Record produced for this subtree when it is optional and absent:
        scalar props become None and array props become empty lists.
        """
        record: Dict[str, Any] = {}

        def visit(node: TemplateNode) -> None:
            for prop in node.text_props():
                record.setdefault(prop.name, None)
            for _, prop in node.attribute_bindings:
                record.setdefault(prop.name, None)
            for child in node.children:
                visit(child)
            if node.sub_query_prop is not None:
                record.setdefault(node.sub_query_prop, [])

        visit(self)
        return record


@dataclass(frozen=True)
class Template:
    """Compiled template: the source text plus its root node."""
    source: str = field(repr=False)
    root: TemplateNode


def format_template_tree(node: TemplateNode, indent: int = 0) -> str:
    """Formats the template tree for debugging."""
    prefix = "  " * indent
    flags = ("?" if node.is_optional else "") + ("!" if node.is_direct_child else "")
    line = f"{prefix}<{flags}{node.selector}>"
    if node.attribute_bindings:
        line += " " + " ".join(f"{name}={prop}" for name, prop in node.attribute_bindings)
    if node.text_content:
        parts = []
        for segment in node.text_content:
            if isinstance(segment, LiteralSegment):
                parts.append(repr(segment.text))
            else:
                parts.append(str(segment.prop))
        line += " text=" + " ".join(parts)
    lines = [line]
    for child in node.children:
        lines.append(format_template_tree(child, indent + 1))
    if node.sub_query is not None:
        lines.append(f"{prefix}  {{{{{node.sub_query_prop}:")
        lines.append(format_template_tree(node.sub_query, indent + 2))
        lines.append(f"{prefix}  }}}}")
    return "\n".join(lines)


__all__ = [
    "PropType",
    "PROP_TYPES",
    "PropBinding",
    "LiteralSegment",
    "PropSegment",
    "TextSegment",
    "TemplateNode",
    "Template",
    "format_template_tree",
]
