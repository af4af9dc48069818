"""
Backtracking matcher.

Walks a compiled template against a parsed document. Every template node is
tried against each markup node its selector finds; a candidate succeeds when
its text, attributes, required children and sub-query all bind. Among the
successful candidates of one template node the deepest one wins, and markup
nodes consumed by a successful match cannot be bound again within the same
extraction call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

from .text import match_text
from .values import Invalid, coerce
from ..errors import MatchBudgetExceededError
from ..markup.model import Document, MarkupNode
from ..markup.selectors import select_all
from ..template.nodes import TemplateNode

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class ClaimSet:
    """
    Markup nodes bound by successful matches in one extraction call.

    Backtracking uses checkpoints instead of copies: `rollback` undoes every
    claim made since a checkpoint and returns them, `replay` re-applies a
    returned batch once the owning candidate has been chosen.
    """

    def __init__(self) -> None:
        self._claimed: Set[int] = set()
        self._journal: List[int] = []

    def __contains__(self, index: int) -> bool:
        return index in self._claimed

    def __len__(self) -> int:
        return len(self._claimed)

    def claim(self, index: int) -> None:
        if index not in self._claimed:
            self._claimed.add(index)
            self._journal.append(index)

    def checkpoint(self) -> int:
        return len(self._journal)

    def rollback(self, checkpoint: int) -> Tuple[int, ...]:
        undone = tuple(self._journal[checkpoint:])
        del self._journal[checkpoint:]
        self._claimed.difference_update(undone)
        return undone

    def replay(self, indices: Tuple[int, ...]) -> None:
        for index in indices:
            self.claim(index)


@dataclass
class Candidate:
    """Successful match of one template node against one markup node."""
    node: MarkupNode
    record: Record
    depth_sum: int
    claimed: Tuple[int, ...]


class Extractor:
    """
    State of one extraction call over one document.

    The document and template are only read; the claim set, the attempt
    counter and the text cache belong to this instance.
    """

    def __init__(self, document: Document, max_attempts: Optional[int] = None):
        self.document = document
        self.max_attempts = max_attempts
        self.claims = ClaimSet()
        self.attempts = 0
        self._texts: Dict[int, str] = {}

    def match_many(
        self,
        node: MarkupNode,
        template: TemplateNode,
        match_self: bool,
        direct_child: bool = False,
    ) -> List[Candidate]:
        """
        Tries `template` against every unclaimed node its selector finds
        under `node`; returns the successful candidates that are not
        ancestors of another successful candidate.
        """
        found = select_all(
            self.document,
            node,
            template.selector,
            match_self=match_self,
            max_depth=1 if direct_child else None,
        )
        candidates: List[Candidate] = []
        for markup in found:
            if markup.index in self.claims:
                continue
            checkpoint = self.claims.checkpoint()
            outcome = self.match_one(markup, template)
            claimed = self.claims.rollback(checkpoint)
            if outcome is not None:
                record, depth_sum = outcome
                candidates.append(Candidate(markup, record, depth_sum, claimed))

        survivors = self._drop_ancestors(candidates)
        logger.debug(
            "<%s>: %d found, %d matched, %d kept under #%d",
            template.selector, len(found), len(candidates), len(survivors), node.index,
        )
        return survivors

    def match_one(self, node: MarkupNode, template: TemplateNode) -> Optional[Tuple[Record, int]]:
        """
        Binds `template` to `node`.

        Returns:
            (record, depth_sum) on success, None when the node does not fit
        """
        self._count_attempt()
        record: Record = {}

        if template.text_content:
            bound = match_text(template.text_content, self._text_of(node))
            if isinstance(bound, Invalid):
                logger.debug("#%d rejected for <%s>: %s", node.index, template.selector, bound.reason)
                return None
            record.update(bound)

        for name, prop in template.attribute_bindings:
            result = coerce(prop, node.raw_attribute(name))
            if isinstance(result, Invalid):
                logger.debug("#%d rejected for <%s>: %s", node.index, template.selector, result.reason)
                return None
            record[prop.name] = result.value

        depth_sum = node.depth
        for child in template.children:
            candidates = self.match_many(node, child, match_self=False, direct_child=child.is_direct_child)
            if not candidates:
                if not child.is_optional:
                    return None
                record.update(child.empty_record())
                continue
            # max() keeps the first of equally deep candidates
            best = max(candidates, key=lambda c: c.depth_sum)
            self.claims.replay(best.claimed)
            record.update(best.record)
            depth_sum += best.depth_sum

        if template.sub_query is not None:
            items = self.match_many(node, template.sub_query, match_self=False)
            for item in items:
                self.claims.replay(item.claimed)
            record[template.sub_query_prop] = [item.record for item in items]

        self.claims.claim(node.index)
        return record, depth_sum

    def _drop_ancestors(self, candidates: List[Candidate]) -> List[Candidate]:
        if len(candidates) < 2:
            return candidates
        indices = {c.node.index for c in candidates}
        ancestors: Set[int] = set()
        for c in candidates:
            for parent in self.document.iter_ancestors(c.node):
                if parent.index in indices:
                    ancestors.add(parent.index)
        return [c for c in candidates if c.node.index not in ancestors]

    def _text_of(self, node: MarkupNode) -> str:
        text = self._texts.get(node.index)
        if text is None:
            text = self._texts[node.index] = self.document.text_content(node)
        return text

    def _count_attempt(self) -> None:
        self.attempts += 1
        if self.max_attempts is not None and self.attempts > self.max_attempts:
            raise MatchBudgetExceededError(self.max_attempts)


__all__ = ["Record", "ClaimSet", "Candidate", "Extractor"]
