"""
Hydration: merging per-document data into window-attribute payloads.
"""

from __future__ import annotations

from .aggregator import HydrationDataAggregator, WindowProvenance, aggregate
from .merge import MERGE_STRATEGIES, deep_merge, is_empty_data, merge_contributions, shallow_merge, strict_merge
from .payload import HydrationPayload, build_payloads, render_script_tags, serialize_json
from .schema_keys import KeyMismatch, SchemaKeyExtractor, compare_keys, extract_zod_keys

__all__ = [
    "HydrationDataAggregator",
    "WindowProvenance",
    "aggregate",
    "MERGE_STRATEGIES",
    "deep_merge",
    "shallow_merge",
    "strict_merge",
    "merge_contributions",
    "is_empty_data",
    "HydrationPayload",
    "build_payloads",
    "render_script_tags",
    "serialize_json",
    "SchemaKeyExtractor",
    "KeyMismatch",
    "compare_keys",
    "extract_zod_keys",
]
