"""
Two-pass page rendering.

Pass 1 resolves the composition of the requested template and aggregates
hydration data from every document in it. Pass 2 renders the root
template (and its partials) and wraps it into the layout chain, where
the inner HTML is available as {{{content}}}.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .composition import Composition
from .context import Context
from .errors import TemplateNotFoundError
from .hydration import HydrationDataAggregator, WindowProvenance, build_payloads, render_script_tags
from .loader import TemplateLoader
from .logging_utils import log_timed
from .template import TemplateEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderResult:
    html: str
    hydration: Dict[str, Any] = field(default_factory=dict)
    provenance: Dict[str, WindowProvenance] = field(default_factory=dict)
    scripts: str = ""

    def __str__(self) -> str:
        return self.html


class View:
    """
    Renders templates for one request context.

    Template variables use direct access only: a value a document puts on
    ``window.user`` is reached in the template as ``{{name}}`` through the
    context, never as ``{{user.name}}`` through the window attribute.
    """

    def __init__(self, context: Context, loader: TemplateLoader, engine: Optional[TemplateEngine] = None):
        self.context = context
        self.loader = loader
        self.engine = engine or TemplateEngine.from_config(context.config)

    def render(self, name: str) -> RenderResult:
        """
        Renders the named template with hydration.

        Raises:
            TemplateNotFoundError: When a template of the composition is missing
            CircularDependencyError: When partials/layouts form a cycle
            ParseError: When a component file is malformed
            HydrationCollisionError: On conflicting hydration data
            JSONSerializationError: When a data section is not valid JSON
            RenderError: When rendering fails
        """
        with log_timed(logger, logging.DEBUG, "View rendered", template=name) as meta:
            composition = self.loader.composition(name)

            aggregator = HydrationDataAggregator(self.context, self.engine)
            hydration = aggregator.aggregate(composition)
            provenance = dict(aggregator.provenance)

            html = self._render_html(composition, aggregator)
            scripts = render_script_tags(build_payloads(hydration, provenance), nonce=self.context.nonce)
            meta["windows"] = list(hydration)

        return RenderResult(html=html, hydration=hydration, provenance=provenance, scripts=scripts)

    def render_template_only(self, name: str) -> str:
        """Renders HTML without producing hydration scripts."""
        composition = self.loader.composition(name)
        aggregator = HydrationDataAggregator(self.context, self.engine)
        return self._render_html(composition, aggregator)

    def data_hash(self, name: str) -> Dict[str, Any]:
        """Hydration map only (for API endpoints and tests)."""
        composition = self.loader.composition(name)
        return HydrationDataAggregator(self.context, self.engine).aggregate(composition)

    # ======= HTML =======

    def _render_html(self, composition: Composition, aggregator: HydrationDataAggregator) -> str:
        root = composition.root
        context = self._root_context(root, aggregator)
        resolver = self.loader.partial_resolver(self.engine, composition)

        html = self.engine.render(root.template, context, partial_resolver=resolver) if root.template else ""

        seen = {composition.root_name}
        layout_name = root.layout
        while layout_name:
            if layout_name in seen:
                break
            seen.add(layout_name)
            layout = composition.template(layout_name)
            if layout is None:
                raise TemplateNotFoundError(f"Layout not found: {layout_name}")
            if layout.template is not None:
                html = self.engine.render(layout.template, context, partial_resolver=resolver, locals={"content": html})
            layout_name = layout.layout
        return html

    def _root_context(self, root, aggregator: HydrationDataAggregator) -> Context:
        # Legacy data of the root document is visible to its template
        if root.contribution_mode != "data":
            return self.context
        data = aggregator.contribution(root)
        if isinstance(data, dict) and data:
            return self.context.merge_client(data)
        return self.context


def render_view(context: Context, loader: TemplateLoader, name: str) -> RenderResult:
    """One-shot helper: ``View(context, loader).render(name)``."""
    return View(context, loader).render(name)


__all__ = ["RenderResult", "View", "render_view"]
