"""Extraction engine: binds a compiled template to a parsed document."""

from __future__ import annotations

from .engine import Candidate, ClaimSet, Extractor, Record

__all__ = ["Candidate", "ClaimSet", "Extractor", "Record"]
