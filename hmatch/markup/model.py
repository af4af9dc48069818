from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

FRAGMENT_TAG = "#fragment"
ERROR_TAG = ""


@dataclass(frozen=True)
class MarkupNode:
    """
    One element of a parsed document.

    Nodes live in a flat arena (Document.nodes); parent and children are
    arena indices, never object references.
    """
    index: int
    tag: str
    id: Optional[str] = None
    classes: Tuple[str, ...] = ()
    attrs: Dict[str, str] = field(default_factory=dict, hash=False)
    text: str = ""                      # own text runs, not descendants'
    parent: Optional[int] = None
    children: Tuple[int, ...] = ()
    depth: int = 0

    def raw_attribute(self, name: str) -> Optional[str]:
        """Attribute value as written; `class` and `id` resolve through their dedicated fields."""
        if name == "class":
            return " ".join(self.classes) if self.classes else None
        if name == "id":
            return self.id
        return self.attrs.get(name)

    def get_attribute(self, name: str) -> Optional[str]:
        """Attribute value, or None when it is absent or empty."""
        return self.raw_attribute(name) or None

    def has_attribute(self, name: str) -> bool:
        return self.raw_attribute(name) is not None


@dataclass
class Document:
    """Parsed markup: an index arena rooted at nodes[0]."""
    nodes: List[MarkupNode]
    error: Optional[str] = None

    @property
    def root(self) -> MarkupNode:
        return self.nodes[0]

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def node(self, index: int) -> MarkupNode:
        return self.nodes[index]

    def parent_of(self, node: MarkupNode) -> Optional[MarkupNode]:
        return None if node.parent is None else self.node(node.parent)

    def iter_children(self, node: MarkupNode) -> Iterator[MarkupNode]:
        for i in node.children:
            yield self.node(i)

    def iter_ancestors(self, node: MarkupNode) -> Iterator[MarkupNode]:
        current = self.parent_of(node)
        while current is not None:
            yield current
            current = self.parent_of(current)

    def is_ancestor(self, ancestor: MarkupNode, node: MarkupNode) -> bool:
        """True if `ancestor` is a strict ancestor of `node`."""
        if ancestor.depth >= node.depth:
            return False
        return any(a.index == ancestor.index for a in self.iter_ancestors(node))

    def text_content(self, node: MarkupNode, separator: str = "\t", recursive: bool = True) -> str:
        """Own text of `node` (and, if recursive, of its descendants in document order)."""
        if not recursive:
            return node.text
        chunks: List[str] = []
        stack = [node.index]
        while stack:
            current = self.node(stack.pop())
            if current.text:
                chunks.append(current.text)
            stack.extend(reversed(current.children))
        return separator.join(chunks)

    def to_dict(self, node: Optional[MarkupNode] = None) -> Dict[str, Any]:
        """Nested, JSON-serializable dump of the subtree rooted at `node`."""
        node = self.root if node is None else node
        return {
            "tag": node.tag,
            "id": node.id,
            "depth": node.depth,
            "classes": list(node.classes),
            "attrs": dict(node.attrs),
            "textContent": node.text or None,
            "children": [self.to_dict(child) for child in self.iter_children(node)],
        }


def make_error_document(message: str) -> Document:
    """Document whose only node is the error sentinel; selectors find nothing in it."""
    return Document(nodes=[MarkupNode(index=0, tag=ERROR_TAG)], error=message)


__all__ = [
    "FRAGMENT_TAG",
    "ERROR_TAG",
    "MarkupNode",
    "Document",
    "make_error_document",
]
