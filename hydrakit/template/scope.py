"""
Variable scopes for template rendering.

A scope is anything with ``get(path) -> value | None``. The root scope is
usually a Context; blocks and layouts stack lightweight scopes on top of
it. Lookups never raise for missing data.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Protocol, runtime_checkable

# Sentinel distinguishing "not found" from an explicit None value
MISSING = object()


@runtime_checkable
class Scope(Protocol):
    """Anything able to resolve a dotted variable path."""

    def get(self, path: str) -> Any:
        ...


def lookup_key(value: Any, key: str) -> Any:
    """
    Resolves one path segment against a value.

    Mappings are indexed by key, sequences by integer index, other objects
    by public non-callable attribute.

    Returns:
        The value or MISSING
    """
    if isinstance(value, Mapping):
        return value.get(key, MISSING)
    if isinstance(value, (list, tuple)):
        if key.lstrip("-").isdigit():
            index = int(key)
            if -len(value) <= index < len(value):
                return value[index]
        return MISSING
    if value is None or isinstance(value, (str, bytes, int, float, bool)):
        return MISSING
    if key.startswith("_"):
        return MISSING
    attr = getattr(value, key, MISSING)
    if attr is not MISSING and callable(attr):
        return MISSING
    return attr


def freeze(data: Any) -> Any:
    """Read-only copy of nested data: mappings become proxies, lists become tuples."""
    if isinstance(data, Mapping):
        return MappingProxyType({key: freeze(value) for key, value in data.items()})
    if isinstance(data, (list, tuple)):
        return tuple(freeze(item) for item in data)
    return data


def thaw(data: Any) -> Any:
    """Mutable copy of frozen data (plain dicts and lists), safe to hand to callers."""
    if isinstance(data, Mapping):
        return {key: thaw(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [thaw(item) for item in data]
    return data


def resolve_path(value: Any, parts: Iterable[str]) -> Any:
    """Walks path segments; returns None as soon as a segment is missing."""
    current = value
    for part in parts:
        current = lookup_key(current, part)
        if current is MISSING or current is None:
            return None
    return current


class MappingScope:
    """Root scope over a plain mapping (used when no Context is supplied)."""

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self.data = data or {}

    def get(self, path: str) -> Any:
        return resolve_path(self.data, path.split("."))


class LocalsScope:
    """Extra names layered over a parent scope (e.g. ``content`` for layouts)."""

    def __init__(self, parent: Scope, local_vars: Mapping[str, Any]):
        self.parent = parent
        self.local_vars = dict(local_vars)

    def get(self, path: str) -> Any:
        parts = path.split(".")
        if parts[0] in self.local_vars:
            return resolve_path(self.local_vars, parts)
        return self.parent.get(path)


class EachScope:
    """
    Scope of one {{#each}} iteration.

    Exposes the item (``this`` / ``.``), its fields by name and the loop
    variables ``@index``, ``@first``, ``@last`` and ``@key``. Anything else
    falls through to the parent scope, so outer variables stay reachable.
    """

    def __init__(self, parent: Scope, item: Any, index: int, length: int, key: Optional[str] = None):
        self.parent = parent
        self.item = item
        self.index = index
        self.length = length
        self.key = key

    def get(self, path: str) -> Any:
        if path in ("this", "."):
            return self.item
        if path == "@index":
            return self.index
        if path == "@first":
            return self.index == 0
        if path == "@last":
            return self.index == self.length - 1
        if path == "@key":
            return self.key

        parts = path.split(".")
        if parts[0] == "this":
            return resolve_path(self.item, parts[1:])

        found = lookup_key(self.item, parts[0])
        if found is not MISSING:
            return resolve_path(found, parts[1:])

        return self.parent.get(path)


def as_scope(context: Any) -> Scope:
    """Adapts a Context, any scope-like object or a plain mapping."""
    if context is None:
        return MappingScope({})
    if isinstance(context, Mapping):
        return MappingScope(context)
    if isinstance(context, Scope):
        return context
    raise TypeError(f"Unsupported render context: {type(context).__name__}")


__all__ = [
    "MISSING",
    "Scope",
    "lookup_key",
    "resolve_path",
    "freeze",
    "thaw",
    "MappingScope",
    "LocalsScope",
    "EachScope",
    "as_scope",
]
