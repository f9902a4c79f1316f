"""
hydrakit: server-side component templates with client-side data hydration.
"""

from __future__ import annotations

from .composition import Composition
from .config import Configuration, load_config
from .context import Context
from .document import ComponentDocument, parse_component
from .errors import (
    CircularDependencyError, ConfigurationError, HydrakitError, HydrationCollisionError,
    JSONSerializationError, ParseError, RenderError, TemplateNotFoundError,
)
from .hydration import HydrationDataAggregator, aggregate
from .loader import TemplateLoader
from .template import TemplateEngine, parse_template, render
from .view import RenderResult, View

__all__ = [
    "Composition",
    "Configuration",
    "load_config",
    "Context",
    "ComponentDocument",
    "parse_component",
    "HydrakitError",
    "ParseError",
    "RenderError",
    "JSONSerializationError",
    "ConfigurationError",
    "TemplateNotFoundError",
    "CircularDependencyError",
    "HydrationCollisionError",
    "HydrationDataAggregator",
    "aggregate",
    "TemplateLoader",
    "TemplateEngine",
    "parse_template",
    "render",
    "View",
    "RenderResult",
]
