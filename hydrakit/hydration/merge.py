"""
Merge strategies for hydration contributions sharing a window attribute.

- deep: recursive; where both sides hold mappings they are merged,
  otherwise the later value wins
- shallow: top-level keys only; a key present on both sides is a collision
- strict: like shallow, only disjoint key sets merge
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from ..errors import HydrationCollisionError

MERGE_STRATEGIES = ("deep", "shallow", "strict")


def is_empty_data(data: Any) -> bool:
    """None and empty collections or strings never cause collisions."""
    if data is None:
        return True
    if isinstance(data, (Mapping, list, tuple, set, str)):
        return len(data) == 0
    return False


def deep_merge(target: Mapping[str, Any], source: Mapping[str, Any]) -> Dict[str, Any]:
    result = dict(target)
    for key, value in source.items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value
    return result


def shallow_merge(
    target: Mapping[str, Any],
    source: Mapping[str, Any],
    window_attribute: str,
    first_path: str,
    conflict_path: str,
) -> Dict[str, Any]:
    result = dict(target)
    for key, value in source.items():
        if key in result:
            raise HydrationCollisionError(f"{window_attribute}.{key}", first_path, conflict_path)
        result[key] = value
    return result


def strict_merge(
    target: Mapping[str, Any],
    source: Mapping[str, Any],
    window_attribute: str,
    first_path: str,
    conflict_path: str,
) -> Dict[str, Any]:
    for key in target:
        if key in source:
            raise HydrationCollisionError(f"{window_attribute}.{key}", first_path, conflict_path)
    result = dict(target)
    result.update(source)
    return result


def merge_contributions(
    existing: Any,
    new: Any,
    strategy: str,
    window_attribute: str,
    first_path: str,
    conflict_path: str,
) -> Any:
    """
    Combines two contributions to the same window attribute.

    Non-mapping values cannot be merged key by key: under ``deep`` the new
    value replaces the old one, under ``shallow`` and ``strict`` it is a
    collision on the attribute itself.

    Raises:
        HydrationCollisionError: On a shallow/strict key conflict
        ValueError: On an unknown strategy
    """
    if strategy not in MERGE_STRATEGIES:
        raise ValueError(f"Unknown merge strategy: {strategy}")

    if isinstance(existing, Mapping) and isinstance(new, Mapping):
        if strategy == "deep":
            return deep_merge(existing, new)
        if strategy == "shallow":
            return shallow_merge(existing, new, window_attribute, first_path, conflict_path)
        return strict_merge(existing, new, window_attribute, first_path, conflict_path)

    if strategy == "deep":
        return new
    raise HydrationCollisionError(window_attribute, first_path, conflict_path)


__all__ = [
    "MERGE_STRATEGIES",
    "is_empty_data",
    "deep_merge",
    "shallow_merge",
    "strict_merge",
    "merge_contributions",
]
