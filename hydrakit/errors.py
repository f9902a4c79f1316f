"""
Exception hierarchy for hydrakit.

All expected errors that point at an authoring or configuration defect
inherit from HydrakitError. Programming errors should NOT inherit from it;
they propagate with full tracebacks.
"""

from __future__ import annotations

import re
from pathlib import PurePath
from typing import List, Optional


class HydrakitError(Exception):
    """
    Base class for all user-facing errors.

    These errors indicate problems the template author can fix:
    malformed component files, colliding hydration namespaces,
    invalid configuration, missing templates.
    """
    pass


class ParseError(HydrakitError):
    """
    Syntax or structure error in a component file or template.

    Always carries the position of the offending token so the author
    can jump straight to it.
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        source_type: Optional[str] = None,
        file_path: Optional[str] = None,
    ):
        self.reason = message
        self.line = line
        self.column = column
        self.source_type = source_type
        self.file_path = file_path

        location = f" at line {line}, column {column}" if line is not None and column is not None else ""
        source = f" in {source_type}" if source_type else ""
        origin = f" ({file_path})" if file_path else ""
        super().__init__(f"{message}{location}{source}{origin}")


class RenderError(HydrakitError):
    """Template could not be rendered (parse failure or evaluation fault)."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class JSONSerializationError(HydrakitError):
    """Legacy <data> section is not valid JSON after interpolation."""

    def __init__(self, message: str, source_path: str = ""):
        super().__init__(message)
        self.source_path = source_path


class ConfigurationError(HydrakitError):
    """Invalid configuration values."""

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__(f"Configuration errors: {', '.join(self.problems)}")


class TemplateNotFoundError(HydrakitError):
    """A composition could not load a named document."""
    pass


class CircularDependencyError(HydrakitError):
    """Partials or layouts reference each other in a cycle."""

    def __init__(self, template_name: str, chain: List[str]):
        self.template_name = template_name
        self.chain = list(chain)
        super().__init__(
            f"Circular dependency detected: {template_name} -> {' -> '.join(self.chain)}"
        )


class HydrationCollisionError(HydrakitError):
    """
    Two documents contribute data to the same window attribute.

    Raised when neither contribution is empty and no merge strategy was
    declared, or when a shallow/strict merge finds the same key twice
    (then window_attribute is scoped as ``attr.key``).
    """

    def __init__(self, window_attribute: str, first_path: str, conflict_path: str):
        self.window_attribute = window_attribute
        self.first_path = first_path
        self.conflict_path = conflict_path
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        base_attr = self.window_attribute.split(".", 1)[0]
        return (
            "Window attribute collision detected\n"
            "\n"
            f"Attribute: '{self.window_attribute}'\n"
            f"First defined: {self.first_path}\n"
            f"Conflict with: {self.conflict_path}\n"
            "\n"
            "Quick fixes:\n"
            f"  1. Rename one: <data window=\"{self.suggested_alternative_name()}\">\n"
            f"  2. Enable merging: <data window=\"{base_attr}\" merge=\"deep\">"
        )

    def suggested_alternative_name(self) -> str:
        """Proposes a window attribute name that would not collide."""
        attr = self.window_attribute.split(".", 1)[0]
        if attr == "data":
            return _base_name_from_path(self.conflict_path) + "Data"
        for suffix, replacement in (("Data", "State"), ("State", "Config"), ("Config", "Settings")):
            if attr.endswith(suffix):
                return attr[: -len(suffix)] + replacement
        return attr + "Data"


def _base_name_from_path(path: str) -> str:
    # "templates/header.sfc:3" -> "header"
    file_part = re.sub(r":\d+$", "", path)
    stem = PurePath(file_part).name.split(".", 1)[0]
    if stem in ("index", "main", "application", "<inline>", ""):
        return "page"
    if stem.startswith("_") or stem == "partial":
        return "partial"
    return re.sub(r"[^a-zA-Z0-9]", "", stem).lower() or "page"


__all__ = [
    "HydrakitError",
    "ParseError",
    "RenderError",
    "JSONSerializationError",
    "ConfigurationError",
    "TemplateNotFoundError",
    "CircularDependencyError",
    "HydrationCollisionError",
]
