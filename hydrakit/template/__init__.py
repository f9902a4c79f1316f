"""
Handlebars-style expression grammar and rendering engine.

Pipeline: TemplateLexer -> TemplateParser -> Template AST -> TemplateEngine.
"""

from __future__ import annotations

from .engine import ScopedPartialResolver, TemplateEngine, escape_html, is_truthy, render
from .lexer import TemplateLexer, tokenize_template
from .nodes import (
    CommentNode, EachBlockNode, IfBlockNode, Location, PartialNode,
    Template, TemplateNode, TextNode, UnlessBlockNode, VariableNode,
)
from .parser import TemplateParser, parse_template
from .tokens import Token, TokenType

__all__ = [
    "TemplateLexer",
    "tokenize_template",
    "TemplateParser",
    "parse_template",
    "TemplateEngine",
    "ScopedPartialResolver",
    "render",
    "escape_html",
    "is_truthy",
    "Token",
    "TokenType",
    "Location",
    "TemplateNode",
    "Template",
    "TextNode",
    "VariableNode",
    "IfBlockNode",
    "UnlessBlockNode",
    "EachBlockNode",
    "PartialNode",
    "CommentNode",
]
