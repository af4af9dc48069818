from __future__ import annotations

from importlib import metadata


def package_version() -> str:
    """
    Version of the installed distribution.
    Imports nothing else from the package (no cycles).
    """
    try:
        return metadata.version("hmatch")
    except metadata.PackageNotFoundError:
        return "0.0.0"

__all__ = ["package_version"]
