from __future__ import annotations

import re
from functools import lru_cache
from typing import Dict, List, Tuple, Union

from .values import Invalid, Scalar, coerce
from ..template.nodes import LiteralSegment, PropBinding, PropSegment, TextSegment


def _literal_pattern(text: str) -> str:
    # whitespace inside a literal matches any whitespace run
    return r"\s+".join(re.escape(word) for word in text.split())


@lru_cache(maxsize=512)
def compile_text_pattern(segments: Tuple[TextSegment, ...]) -> Tuple[re.Pattern, Tuple[PropBinding, ...]]:
    """
    Single regex for an ordered run of text segments.

    Props capture greedily: `(.*)` when nullable, `(.+)` otherwise. Segments
    are separated by optional whitespace. A prop at either edge anchors the
    pattern to that edge of the text; a literal at an edge may float.
    """
    parts: List[str] = []
    props: List[PropBinding] = []
    for segment in segments:
        if isinstance(segment, LiteralSegment):
            parts.append(_literal_pattern(segment.text))
        else:
            parts.append("(.*)" if segment.prop.nullable else "(.+)")
            props.append(segment.prop)
    pattern = r"\s*".join(parts)
    if isinstance(segments[0], PropSegment):
        pattern = r"\A\s*" + pattern
    if isinstance(segments[-1], PropSegment):
        pattern = pattern + r"\s*\Z"
    return re.compile(pattern, re.DOTALL), tuple(props)


def match_text(segments: Tuple[TextSegment, ...], text: str) -> Union[Dict[str, Scalar], Invalid]:
    """
    Matches element text against the template's text segments.

    Returns:
        Bound prop values, or Invalid when the text does not fit
    """
    if not segments:
        return {}

    if len(segments) == 1 and isinstance(segments[0], PropSegment):
        prop = segments[0].prop
        result = coerce(prop, text)
        if isinstance(result, Invalid):
            return result
        return {prop.name: result.value}

    pattern, props = compile_text_pattern(segments)
    m = pattern.search(text)
    if not m:
        return Invalid(f"text does not match {pattern.pattern!r}")

    out: Dict[str, Scalar] = {}
    for prop, raw in zip(props, m.groups()):
        result = coerce(prop, raw)
        if isinstance(result, Invalid):
            return result
        out[prop.name] = result.value
    return out


__all__ = ["compile_text_pattern", "match_text"]
