from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .typed import TypedLoadError, load_typed

SCHEMA_VERSION = 1
CONFIG_ENV_VAR = "HMATCH_CONFIG"

_yaml = YAML(typ="safe")


class ConfigLoadError(TypedLoadError):
    """Configuration file is unreadable, of another schema, or does not fit ExtractorConfig."""
    pass


class ExtractorConfig(BaseModel):
    """
    Defaults applied by match_html / match_html_all.

    skip_tags: tags discarded together with their subtree while parsing
    max_attempts: ceiling on match attempts per extraction call (None: no limit)
    root_selector: selector of the element the search is scoped to
    """
    model_config = ConfigDict(extra="forbid", strict=True)

    skip_tags: List[str] = Field(default_factory=list)
    max_attempts: Optional[int] = None
    root_selector: Optional[str] = None


def _validate(raw: Dict[str, Any], source: str) -> ExtractorConfig:
    version = raw.pop("schema_version", SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        raise ConfigLoadError(
            f"{source}: unsupported config schema {version} (expected {SCHEMA_VERSION})"
        )
    try:
        cfg = load_typed(ExtractorConfig, raw, path=source)
    except TypedLoadError as e:
        raise ConfigLoadError(str(e)) from e
    if cfg.max_attempts is not None and cfg.max_attempts <= 0:
        raise ConfigLoadError(f"{source}.max_attempts: must be positive, got {cfg.max_attempts}")
    return cfg


def load_config(path: Path) -> ExtractorConfig:
    """
    Loads extractor settings from a YAML file.

    • Missing file → defaults.
    • Missing schema_version → the current one.
    • Unknown keys and wrong value types are rejected.
    """
    if not path.exists():
        return ExtractorConfig()

    try:
        with path.open(encoding="utf-8") as f:
            raw = _yaml.load(f) or {}
    except YAMLError as e:
        raise ConfigLoadError(f"{path}: invalid YAML: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigLoadError(f"{path}: expected a mapping at top level, got {type(raw).__name__}")
    return _validate(dict(raw), str(path))


def default_config() -> ExtractorConfig:
    """Settings from the file named by HMATCH_CONFIG, or defaults when it is unset."""
    location = os.environ.get(CONFIG_ENV_VAR)
    if not location:
        return ExtractorConfig()
    return load_config(Path(location))


__all__ = [
    "SCHEMA_VERSION",
    "CONFIG_ENV_VAR",
    "ConfigLoadError",
    "ExtractorConfig",
    "load_config",
    "default_config",
]
