"""
Component files: section grammar and the parsed document model.
"""

from __future__ import annotations

from .lexer import SectionLexer, SectionToken, SectionTokenType
from .model import ComponentDocument, parse_component
from .parser import KNOWN_SECTIONS, MERGE_STRATEGIES, SectionNode, SectionParser, parse_sections

__all__ = [
    "SectionLexer",
    "SectionToken",
    "SectionTokenType",
    "SectionParser",
    "SectionNode",
    "parse_sections",
    "KNOWN_SECTIONS",
    "MERGE_STRATEGIES",
    "ComponentDocument",
    "parse_component",
]
