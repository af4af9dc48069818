"""
Base exceptions for user-facing errors.

All expected errors that should be displayed to the user
as clean messages (without stack traces) inherit from HMatchError:
bad templates, bad selectors, missing root elements, documents that
do not satisfy a template.

Local match failures inside the extraction engine are NOT exceptions;
they abort one candidate branch and only surface here when nothing matched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class HMatchError(Exception):
    """Base class for all user-facing errors in hmatch."""
    pass


def _line_column(source: str, position: int) -> tuple[int, int]:
    line = source.count("\n", 0, position) + 1
    column = position - (source.rfind("\n", 0, position) + 1) + 1
    return line, column


class TemplateSyntaxError(HMatchError):
    """Template text could not be compiled."""

    def __init__(self, message: str, source: str, position: int):
        self.message = message
        self.position = position
        self.line, self.column = _line_column(source, position)
        super().__init__(f"{message} at {self.line}:{self.column}")


class SelectorSyntaxError(HMatchError):
    """Selector text could not be parsed."""

    def __init__(self, message: str, selector: str):
        self.message = message
        self.selector = selector
        super().__init__(f"{message} in selector {selector!r}")


@dataclass
class NotFoundError(HMatchError):
    """An explicit root selector matched nothing in the document."""
    selector: str

    def __str__(self) -> str:
        return f"Unable to find root element {self.selector!r}"


@dataclass
class NoMatchError(HMatchError):
    """The document (or the selected root) does not satisfy the template."""
    root_selector: Optional[str] = None
    document_error: Optional[str] = None

    def __str__(self) -> str:
        msg = "No elements found matching the template"
        if self.root_selector:
            msg += f" under {self.root_selector!r}"
        if self.document_error:
            msg += f" (document could not be parsed: {self.document_error})"
        return msg


@dataclass
class MatchBudgetExceededError(HMatchError):
    """The extraction call tried more candidates than allowed."""
    max_attempts: int

    def __str__(self) -> str:
        return f"Extraction aborted after {self.max_attempts} match attempts"


__all__ = [
    "HMatchError",
    "TemplateSyntaxError",
    "SelectorSyntaxError",
    "NotFoundError",
    "NoMatchError",
    "MatchBudgetExceededError",
]
