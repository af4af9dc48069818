"""
Typed projection of extracted records.

Records produced by the engine are plain dicts of str / float / None / list
values. `load_typed` validates such raw values against a dataclass, pydantic
model or typing annotation with a pydantic TypeAdapter and reports the path
of the first offending field. The same loader validates YAML configuration.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Optional, Tuple, Union

from pydantic import TypeAdapter, ValidationError

from .errors import HMatchError

_LOG = logging.getLogger("hmatch.typed")

DEBUG_ENV_VAR = "HMATCH_TYPED_DEBUG"

# pydantic error types reworded for users
_MESSAGES = {
    "missing": "required field missing",
    "extra_forbidden": "unknown key",
}


def _configure_debug_logging() -> None:
    if not os.environ.get(DEBUG_ENV_VAR) or _LOG.handlers:
        return
    _LOG.setLevel(logging.DEBUG)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    _LOG.addHandler(handler)


_configure_debug_logging()


class TypedLoadError(HMatchError, ValueError):
    """Raw value does not fit the target type; the message starts with the field path."""
    pass


@lru_cache(maxsize=256)
def _adapter(tp: Any) -> TypeAdapter[Any]:
    return TypeAdapter(tp)


def _format_location(loc: Tuple[Union[int, str], ...]) -> str:
    return "".join(f"[{part}]" if isinstance(part, int) else f".{part}" for part in loc)


def load_typed(tp: Any, val: Any, *, path: str = "$", strict: Optional[bool] = None) -> Any:
    """
    Validates a raw value against `tp`.

    Numbers extracted from markup are floats; in the default (lax) mode an
    integral float is accepted for an `int` annotation. `strict` overrides
    the strictness configured on the target model.

    Raises:
        TypedLoadError: with the path of the first field that does not fit
    """
    _LOG.debug("Validating %s at %s", getattr(tp, "__name__", tp), path)
    try:
        return _adapter(tp).validate_python(val, strict=strict)
    except ValidationError as e:
        first = e.errors()[0]
        where = path + _format_location(first["loc"])
        message = _MESSAGES.get(first["type"], first["msg"])
        _LOG.debug("%d error(s), first at %s: %s", e.error_count(), where, first["type"])
        raise TypedLoadError(f"{where}: {message}") from e


__all__ = ["TypedLoadError", "load_typed"]
