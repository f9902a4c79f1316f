"""
AST nodes of the expression grammar.

Defines the hierarchy of immutable node classes produced by the template
parser. Source locations are kept for diagnostics but excluded from
equality so that structurally identical trees compare equal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, List, Optional


@dataclass(frozen=True)
class Location:
    """Span of a node in the source text (1-based, end exclusive)."""
    start_line: int
    start_column: int
    end_line: int
    end_column: int


@dataclass(frozen=True)
class TemplateNode:
    """Base class for all template AST nodes."""
    node_type: ClassVar[str] = "node"


@dataclass(frozen=True)
class TextNode(TemplateNode):
    """
    Literal text.

    Output as is, including HTML comments written in the template.
    """
    node_type: ClassVar[str] = "text"
    text: str
    location: Optional[Location] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class VariableNode(TemplateNode):
    """{{name}} or, when ``raw`` is set, {{{name}}}."""
    node_type: ClassVar[str] = "variable_expression"
    name: str
    raw: bool = False
    location: Optional[Location] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class IfBlockNode(TemplateNode):
    """{{#if condition}} ... {{else}} ... {{/if}}."""
    node_type: ClassVar[str] = "if_block"
    condition: str
    if_content: List[TemplateNode] = field(default_factory=list)
    else_content: List[TemplateNode] = field(default_factory=list)
    location: Optional[Location] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class UnlessBlockNode(TemplateNode):
    """{{#unless condition}} ... {{else}} ... {{/unless}}."""
    node_type: ClassVar[str] = "unless_block"
    condition: str
    content: List[TemplateNode] = field(default_factory=list)
    else_content: List[TemplateNode] = field(default_factory=list)
    location: Optional[Location] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class EachBlockNode(TemplateNode):
    """{{#each items}} ... {{/each}}; the body is rendered once per item."""
    node_type: ClassVar[str] = "each_block"
    items: str
    content: List[TemplateNode] = field(default_factory=list)
    location: Optional[Location] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class PartialNode(TemplateNode):
    """{{> name}}; resolved through the caller's partial resolver."""
    node_type: ClassVar[str] = "partial_expression"
    name: str
    location: Optional[Location] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class CommentNode(TemplateNode):
    """{{! ... }}; never rendered."""
    node_type: ClassVar[str] = "comment"
    text: str
    location: Optional[Location] = field(default=None, compare=False, repr=False)


BlockNode = (IfBlockNode, UnlessBlockNode, EachBlockNode)


@dataclass(frozen=True)
class Template(TemplateNode):
    """
    Root node of a parsed template.

    Holds the ordered list of top-level nodes and offers introspection
    helpers used by documents, compositions and tests.
    """
    node_type: ClassVar[str] = "template"
    children: List[TemplateNode] = field(default_factory=list)
    location: Optional[Location] = field(default=None, compare=False, repr=False)

    def variables(self) -> List[str]:
        """Every variable, condition and each-items reference (unique, in order)."""
        from .analysis import collect_variables
        return collect_variables(self.children)

    def partials(self) -> List[str]:
        """Names of all referenced partials (unique, in order)."""
        from .analysis import collect_partials
        return collect_partials(self.children)

    def blocks(self) -> List[TemplateNode]:
        """Flat list of all block nodes, nested ones included."""
        from .analysis import collect_blocks
        return collect_blocks(self.children)



__all__ = [
    "Location",
    "TemplateNode",
    "TextNode",
    "VariableNode",
    "IfBlockNode",
    "UnlessBlockNode",
    "EachBlockNode",
    "PartialNode",
    "CommentNode",
    "BlockNode",
    "Template",
]
