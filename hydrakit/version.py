from __future__ import annotations

from importlib import metadata


def tool_version() -> str:
    """
    Version of the installed package.
    Imports nothing from the package itself (avoids import cycles).
    """
    try:
        return metadata.version("hydrakit")
    except metadata.PackageNotFoundError:
        return "0.0.0"

__all__ = ["tool_version"]
