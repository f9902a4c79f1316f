"""
Static analysis of template ASTs.

Walks the tree without rendering it, collecting variable references,
partial names and block nodes for validation and dependency discovery.
"""

from __future__ import annotations

from typing import Callable, Iterable, Iterator, List

from .nodes import (
    BlockNode, EachBlockNode, IfBlockNode, PartialNode,
    Template, TemplateNode, UnlessBlockNode, VariableNode,
)


def iter_nodes(nodes: Iterable[TemplateNode]) -> Iterator[TemplateNode]:
    """Depth-first pre-order traversal over nodes and their block bodies."""
    for node in nodes:
        yield node
        if isinstance(node, Template):
            yield from iter_nodes(node.children)
        elif isinstance(node, IfBlockNode):
            yield from iter_nodes(node.if_content)
            yield from iter_nodes(node.else_content)
        elif isinstance(node, UnlessBlockNode):
            yield from iter_nodes(node.content)
            yield from iter_nodes(node.else_content)
        elif isinstance(node, EachBlockNode):
            yield from iter_nodes(node.content)


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def _references(node: TemplateNode) -> List[str]:
    if isinstance(node, VariableNode):
        return [node.name]
    if isinstance(node, (IfBlockNode, UnlessBlockNode)):
        return [node.condition]
    if isinstance(node, EachBlockNode):
        return [node.items]
    return []


def collect_variables(nodes: Iterable[TemplateNode]) -> List[str]:
    """
    Collects every variable reference in the tree.

    Includes plain and raw variables, if/unless conditions and each-items
    expressions, dotted paths kept as written.
    """
    return _unique(name for node in iter_nodes(nodes) for name in _references(node))


def collect_partials(nodes: Iterable[TemplateNode]) -> List[str]:
    """Collects names of referenced partials."""
    return _unique(node.name for node in iter_nodes(nodes) if isinstance(node, PartialNode))


def collect_blocks(nodes: Iterable[TemplateNode]) -> List[TemplateNode]:
    """Collects if/unless/each nodes, outer blocks before the nested ones."""
    return [node for node in iter_nodes(nodes) if isinstance(node, BlockNode)]


def find_nodes(nodes: Iterable[TemplateNode], predicate: Callable[[TemplateNode], bool]) -> List[TemplateNode]:
    """Returns all nodes matching the predicate."""
    return [node for node in iter_nodes(nodes) if predicate(node)]


__all__ = [
    "iter_nodes",
    "collect_variables",
    "collect_partials",
    "collect_blocks",
    "find_nodes",
]
