"""
Typed-value coercion shared by text and attribute bindings.

Coercion returns an explicit result: `Value` on success, `Invalid` when the
raw text cannot satisfy the binding. Invalid results abort the current
candidate only; they are never raised.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Union

from ..template.nodes import PropBinding

Scalar = Union[str, float, None]

_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass(frozen=True)
class Value:
    value: Scalar


@dataclass(frozen=True)
class Invalid:
    reason: str


Coerced = Union[Value, Invalid]


def coerce(prop: PropBinding, raw: Optional[str]) -> Coerced:
    """
    Applies the binding's type and nullability to raw text.

    Missing or blank text is None for nullable bindings and Invalid otherwise;
    numbers must be the whole trimmed text.
    """
    trimmed = raw.strip() if raw is not None else ""
    if not trimmed:
        if prop.nullable:
            return Value(None)
        return Invalid(f"'{prop.name}' is required but empty")
    if prop.type == "string":
        return Value(trimmed)
    if prop.type == "number":
        if not _NUMBER_RE.fullmatch(trimmed):
            return Invalid(f"'{prop.name}' expects a number, got {trimmed!r}")
        return Value(float(trimmed))
    raise ValueError(f"Invalid property type: {prop.type}")


__all__ = ["Scalar", "Value", "Invalid", "Coerced", "coerce"]
