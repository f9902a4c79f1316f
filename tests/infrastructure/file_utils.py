"""
File helpers for tests.
"""

from __future__ import annotations

from pathlib import Path


def write(p: Path, text: str) -> Path:
    """
    Writes text to a file, creating parent directories as needed.

    Args:
        p: File path
        text: Content

    Returns:
        The path written
    """
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")
    return p


def write_component(root: Path, name: str, text: str, extension: str = ".sfc") -> Path:
    """Writes ``<root>/<name><extension>`` (name may contain slashes)."""
    return write(root / f"{name}{extension}", text)
