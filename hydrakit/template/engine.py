"""
Rendering engine.

Walks a Template AST against a scope and produces the final string:
- {{name}} is HTML-escaped, {{{name}}} is passed through
- {{#if}} / {{#unless}} use the engine's truthiness rules
- {{#each}} renders its body once per item in a child scope
- {{> name}} is delegated to the caller's partial resolver

Missing variables render as empty strings. Only malformed templates and
unexpected evaluation faults raise, always as RenderError.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, FrozenSet, Iterable, List, Mapping, Optional, Union

from .nodes import (
    CommentNode, EachBlockNode, IfBlockNode, PartialNode, Template,
    TemplateNode, TextNode, UnlessBlockNode, VariableNode,
)
from .parser import parse_template
from .scope import EachScope, LocalsScope, Scope, as_scope, thaw
from ..errors import ParseError, RenderError

logger = logging.getLogger(__name__)

# Nesting limit for partials rendering partials
MAX_PARTIAL_DEPTH = 32

# Names whose raw output is expected and not worth a warning
DEFAULT_RAW_ALLOWLIST: FrozenSet[str] = frozenset({"content"})

_ESCAPE_TABLE = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#39;",
})


class ScopedPartialResolver(ABC):
    """
    Partial resolver that also receives the current scope.

    Plain callables ``resolver(name) -> str | None`` are accepted as well;
    subclass this when the partial must see loop variables of the
    enclosing {{#each}}.
    """

    @abstractmethod
    def resolve(self, name: str, scope: Scope, depth: int) -> Optional[str]:
        """Returns the rendered partial or None when it does not exist."""
        pass

    def __call__(self, name: str) -> Optional[str]:
        return self.resolve(name, as_scope(None), 0)


PartialResolver = Union[Callable[[str], Optional[str]], ScopedPartialResolver]


def escape_html(text: str) -> str:
    """Escapes the five HTML-significant characters."""
    return text.translate(_ESCAPE_TABLE)


def is_truthy(value: Any) -> bool:
    """
    Truthiness used by {{#if}} and {{#unless}}.

    None, False and the string "false" in any letter case are falsy;
    everything else, including "", 0 and empty collections, is truthy.
    """
    if value is None or value is False:
        return False
    if isinstance(value, str) and value.lower() == "false":
        return False
    return True


def stringify(value: Any) -> str:
    """Converts a resolved value to its output text."""
    if value is None:
        return ""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(thaw(value), ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


class TemplateEngine:
    """
    Stateless template renderer.

    One engine may be shared between threads; all per-render state lives
    in the call stack of ``render``.
    """

    def __init__(self, raw_allowlist: Optional[Iterable[str]] = None):
        """
        Args:
            raw_allowlist: Variable names allowed in {{{...}}} without a warning
        """
        allow = set(DEFAULT_RAW_ALLOWLIST)
        if raw_allowlist:
            allow.update(raw_allowlist)
        self.raw_allowlist: FrozenSet[str] = frozenset(allow)

    @classmethod
    def from_config(cls, config: Any) -> "TemplateEngine":
        return cls(raw_allowlist=getattr(config, "raw_allowlist", None))

    def render(
        self,
        template: Union[str, Template],
        context: Any = None,
        partial_resolver: Optional[PartialResolver] = None,
        locals: Optional[Mapping[str, Any]] = None,
        partial_depth: int = 0,
    ) -> str:
        """
        Renders a template.

        Args:
            template: Parsed Template or template source text
            context: Context, scope-like object or plain mapping
            partial_resolver: Callable resolving {{> name}}
            locals: Extra names layered over the context
            partial_depth: Current partial nesting (set by resolvers)

        Returns:
            Rendered text

        Raises:
            RenderError: On a parse failure or unexpected evaluation fault
        """
        try:
            ast = parse_template(template) if isinstance(template, str) else template
            scope = as_scope(context)
            if locals:
                scope = LocalsScope(scope, locals)
            return self._render_nodes(ast.children, scope, partial_resolver, partial_depth)
        except RenderError:
            raise
        except ParseError as e:
            raise RenderError(f"Template parsing failed: {e}", cause=e) from e
        except Exception as e:
            raise RenderError(f"Template rendering failed: {e}", cause=e) from e

    # ======= Node evaluation =======

    def _render_nodes(
        self,
        nodes: List[TemplateNode],
        scope: Scope,
        resolver: Optional[PartialResolver],
        depth: int,
    ) -> str:
        parts = []
        for node in nodes:
            rendered = self._render_node(node, scope, resolver, depth)
            if rendered:
                parts.append(rendered)
        return "".join(parts)

    def _render_node(self, node: TemplateNode, scope: Scope, resolver: Optional[PartialResolver], depth: int) -> str:
        if isinstance(node, TextNode):
            return node.text
        if isinstance(node, VariableNode):
            return self._render_variable(node, scope)
        if isinstance(node, IfBlockNode):
            branch = node.if_content if is_truthy(scope.get(node.condition)) else node.else_content
            return self._render_nodes(branch, scope, resolver, depth)
        if isinstance(node, UnlessBlockNode):
            branch = node.else_content if is_truthy(scope.get(node.condition)) else node.content
            return self._render_nodes(branch, scope, resolver, depth)
        if isinstance(node, EachBlockNode):
            return self._render_each(node, scope, resolver, depth)
        if isinstance(node, PartialNode):
            return self._render_partial(node, scope, resolver, depth)
        if isinstance(node, CommentNode):
            return ""
        raise RenderError(f"Unknown node type: {type(node).__name__}")

    def _render_variable(self, node: VariableNode, scope: Scope) -> str:
        text = stringify(scope.get(node.name))
        if not node.raw:
            return escape_html(text)
        if node.name not in self.raw_allowlist:
            location = node.location
            logger.warning(
                "Raw (unescaped) output of '%s'%s",
                node.name,
                f" at line {location.start_line}, column {location.start_column}" if location else "",
            )
        return text

    def _render_each(self, node: EachBlockNode, scope: Scope, resolver: Optional[PartialResolver], depth: int) -> str:
        items = scope.get(node.items)

        if isinstance(items, Mapping):
            entries = [(str(key), value) for key, value in items.items()]
        elif isinstance(items, (list, tuple)):
            entries = [(None, value) for value in items]
        else:
            return ""

        parts = []
        for index, (key, item) in enumerate(entries):
            item_scope = EachScope(scope, item, index, len(entries), key)
            parts.append(self._render_nodes(node.content, item_scope, resolver, depth))
        return "".join(parts)

    def _render_partial(self, node: PartialNode, scope: Scope, resolver: Optional[PartialResolver], depth: int) -> str:
        if resolver is None:
            return ""
        if depth >= MAX_PARTIAL_DEPTH:
            raise RenderError(f"Partial nesting too deep while rendering '{node.name}'")

        if isinstance(resolver, ScopedPartialResolver):
            output = resolver.resolve(node.name, scope, depth + 1)
        else:
            output = resolver(node.name)
        return output or ""


_default_engine = TemplateEngine()


def render(
    template: Union[str, Template],
    context: Any = None,
    partial_resolver: Optional[PartialResolver] = None,
    locals: Optional[Mapping[str, Any]] = None,
) -> str:
    """Renders with a default engine (see TemplateEngine.render)."""
    return _default_engine.render(template, context, partial_resolver=partial_resolver, locals=locals)


__all__ = [
    "MAX_PARTIAL_DEPTH",
    "DEFAULT_RAW_ALLOWLIST",
    "ScopedPartialResolver",
    "PartialResolver",
    "escape_html",
    "is_truthy",
    "stringify",
    "TemplateEngine",
    "render",
]
