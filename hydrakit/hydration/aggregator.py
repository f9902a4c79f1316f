"""
Hydration data aggregation.

Walks a Composition in render order and combines the data contribution of
every document into one map keyed by window attribute:

- a document with a <schema> section contributes the context's client
  data verbatim
- a document with only a legacy <data> section contributes that text with
  {{...}} markers rendered against the context, parsed as JSON

Two non-empty contributions to the same attribute collide unless the later
document declares a merge strategy.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .merge import is_empty_data, merge_contributions
from .schema_keys import SchemaKeyExtractor, compare_keys
from ..composition import Composition
from ..context import Context
from ..document import ComponentDocument
from ..errors import HydrationCollisionError, JSONSerializationError, RenderError
from ..logging_utils import format_log_message, log_timed
from ..template import TemplateEngine
from ..template.scope import thaw

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowProvenance:
    """Where the data of a window attribute was first defined."""
    source_path: str
    merge_strategy: Optional[str]
    section_type: str


class HydrationDataAggregator:
    """
    Aggregator for one render.

    State is reset at the start of every ``aggregate`` call, so an instance
    never carries data from one render into another.
    """

    def __init__(
        self,
        context: Context,
        engine: Optional[TemplateEngine] = None,
        schema_keys: Optional[SchemaKeyExtractor] = None,
    ):
        self.context = context
        self.engine = engine or TemplateEngine.from_config(context.config)
        self.schema_keys = schema_keys or SchemaKeyExtractor(context.config.schemas_dir)
        self.merged: Dict[str, Any] = {}
        self.provenance: Dict[str, WindowProvenance] = {}

    def aggregate(self, composition: Composition) -> Dict[str, Any]:
        """
        Produces the merged hydration map.

        Returns:
            Mapping of window attribute to JSON-serializable value

        Raises:
            HydrationCollisionError: On unresolved collisions
            JSONSerializationError: When a data section is not valid JSON
        """
        self.merged = {}
        self.provenance = {}

        with log_timed(logger, logging.DEBUG, "Hydration aggregation", template_count=len(composition)) as meta:
            for name, document in composition.each_document_in_render_order():
                self._process(name, document)
            meta["windows"] = list(self.merged)

        return dict(self.merged)

    # ======= Per document =======

    def _process(self, name: str, document: ComponentDocument) -> None:
        mode = document.contribution_mode
        if mode is None:
            return

        window_attr = document.window_attribute
        strategy = document.merge_strategy
        source_path = document.source_path(mode)

        contribution = self.contribution(document)
        self._validate_keys(name, document, window_attr, contribution, source_path)

        if window_attr not in self.merged:
            self.merged[window_attr] = contribution
            self.provenance[window_attr] = WindowProvenance(source_path, strategy, mode)
            return

        existing = self.merged[window_attr]
        first = self.provenance[window_attr]

        if is_empty_data(contribution):
            return
        if is_empty_data(existing):
            self.merged[window_attr] = contribution
            self.provenance[window_attr] = WindowProvenance(source_path, strategy, mode)
            return
        if strategy is None:
            raise HydrationCollisionError(window_attr, first.source_path, source_path)

        self.merged[window_attr] = merge_contributions(
            existing,
            contribution,
            strategy,
            window_attr,
            first.source_path,
            source_path,
        )

    def contribution(self, document: ComponentDocument) -> Any:
        """
        Data a single document contributes, before any merging.

        Raises:
            JSONSerializationError: When a data section is not valid JSON
        """
        mode = document.contribution_mode
        if mode is None:
            return None
        if mode == "schema":
            return thaw(self.context.client)

        source_path = document.source_path(mode)

        data_template = document.data_template
        try:
            text = self.engine.render(data_template, self.context)
        except RenderError as e:
            raise JSONSerializationError(
                f"Failed to render data section at {source_path}: {e}", source_path
            ) from e

        if not text.strip():
            return {}
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise JSONSerializationError(
                f"Invalid JSON in data section at {source_path}: {e}", source_path
            ) from e

    def _validate_keys(
        self,
        name: str,
        document: ComponentDocument,
        window_attr: str,
        contribution: Any,
        source_path: str,
    ) -> None:
        expected = self.schema_keys.expected_keys(name, document)
        if not expected or not isinstance(contribution, dict):
            return

        mismatch = compare_keys(expected, contribution.keys())
        if mismatch.ok:
            logger.debug(format_log_message(
                "Schema validation passed", template=source_path, window_attribute=window_attr,
                key_count=len(expected),
            ))
            return

        logger.warning(format_log_message(
            "Hydration schema mismatch",
            template=source_path,
            window_attribute=window_attr,
            missing_keys=mismatch.missing,
            extra_keys=mismatch.extra,
        ))


def aggregate(composition: Composition, context: Context) -> Dict[str, Any]:
    """One-shot aggregation with a fresh aggregator."""
    return HydrationDataAggregator(context).aggregate(composition)


__all__ = ["WindowProvenance", "HydrationDataAggregator", "aggregate"]
