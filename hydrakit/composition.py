"""
View composition: the dependency graph of one render.

A Composition knows which documents (layout, view, partials) take part in
rendering a root template and in which order. It is data-agnostic: no
context is involved, so a resolved composition can be cached and shared.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from .document import ComponentDocument
from .errors import CircularDependencyError, TemplateNotFoundError
from .logging_utils import format_log_message, log_timed

logger = logging.getLogger(__name__)

DocumentLoader = Callable[[str], Optional[ComponentDocument]]


class Composition:
    """
    Resolved set of documents for one root template.

    Render order: the layout chain of the root first, then the root and
    its partials depth-first with dependencies before dependents. Every
    document appears once.
    """

    def __init__(self, root_name: str, loader: Optional[DocumentLoader] = None):
        self.root_name = root_name
        self._loader = loader
        self._templates: Dict[str, ComponentDocument] = {}
        self._dependencies: Dict[str, List[str]] = {}
        self._loading: List[str] = []
        self._static_order: Optional[List[str]] = None
        self._resolved = False

    @classmethod
    def from_documents(cls, documents: Iterable[ComponentDocument]) -> "Composition":
        """
        Builds a static composition whose render order is the given order.

        Document names must be unique; the first document is the root.
        """
        documents = list(documents)
        if not documents:
            raise ValueError("Composition needs at least one document")

        names = [_unique_name(doc, i) for i, doc in enumerate(documents)]
        composition = cls(names[0])
        for name, document in zip(names, documents):
            composition._templates[name] = document.parse()
            composition._dependencies[name] = []
        composition._static_order = names
        composition._resolved = True
        return composition

    # ======= Resolution =======

    def resolve(self) -> "Composition":
        """
        Loads the root template and, recursively, its partials and layouts.

        Raises:
            TemplateNotFoundError: When the loader has no such template
            CircularDependencyError: When templates include each other
        """
        if self._resolved:
            return self
        if self._loader is None:
            raise TemplateNotFoundError(f"No loader configured to resolve '{self.root_name}'")

        with log_timed(logger, logging.DEBUG, "Template dependency resolution", root_template=self.root_name):
            self._load(self.root_name, None)
        self._resolved = True

        logger.info(format_log_message(
            "Template composition resolved",
            root_template=self.root_name,
            total_templates=len(self._templates),
            total_dependencies=sum(len(deps) for deps in self._dependencies.values()),
            layout=self.layout,
        ))
        return self

    def _load(self, name: str, parent: Optional[str]) -> None:
        if name in self._loading:
            logger.error(format_log_message(
                "Circular dependency detected", template=name, dependency_chain=self._loading,
            ))
            raise CircularDependencyError(name, self._loading)
        if name in self._templates:
            return

        self._loading.append(name)
        try:
            document = self._loader(name)
            if document is None:
                logger.error(format_log_message("Template not found", template=name, parent=parent))
                raise TemplateNotFoundError(f"Template not found: {name}")

            document.parse()
            self._templates[name] = document
            self._dependencies[name] = []

            for partial in document.partials:
                self._dependencies[name].append(partial)
                self._load(partial, name)

            if document.layout and document.layout not in self._templates:
                logger.debug(format_log_message("Layout resolution", template=name, layout=document.layout))
                self._load(document.layout, name)
        finally:
            self._loading.pop()

    # ======= Traversal =======

    def each_document_in_render_order(self) -> Iterator[Tuple[str, ComponentDocument]]:
        """Yields ``(name, document)`` pairs in render order."""
        self._require_resolved()

        if self._static_order is not None:
            for name in self._static_order:
                yield name, self._templates[name]
            return

        visited: Set[str] = set()
        for name in self._layout_chain():
            yield from self._walk(name, visited)
        yield from self._walk(self.root_name, visited)

    def _layout_chain(self) -> List[str]:
        # Outermost layout first
        chain: List[str] = []
        current = self._templates.get(self.root_name)
        while current is not None and current.layout and current.layout not in chain:
            if current.layout not in self._templates:
                break
            chain.append(current.layout)
            current = self._templates[current.layout]
        return list(reversed(chain))

    def _walk(self, name: str, visited: Set[str]) -> Iterator[Tuple[str, ComponentDocument]]:
        if name in visited:
            return
        visited.add(name)
        for dependency in self._dependencies.get(name, []):
            yield from self._walk(dependency, visited)
        if name in self._templates:
            yield name, self._templates[name]

    # ======= Accessors =======

    def template(self, name: str) -> Optional[ComponentDocument]:
        return self._templates.get(name)

    def has_template(self, name: str) -> bool:
        return name in self._templates

    @property
    def template_names(self) -> List[str]:
        return list(self._templates)

    def dependencies_of(self, name: str) -> List[str]:
        return list(self._dependencies.get(name, []))

    @property
    def root(self) -> Optional[ComponentDocument]:
        return self._templates.get(self.root_name)

    @property
    def layout(self) -> Optional[str]:
        root = self.root
        return root.layout if root is not None else None

    @property
    def is_resolved(self) -> bool:
        return self._resolved

    def _require_resolved(self) -> None:
        if not self._resolved:
            raise RuntimeError("Composition is not resolved; call resolve() first")

    def __len__(self) -> int:
        return len(self._templates)

    def __repr__(self) -> str:
        return f"Composition({self.root_name!r}, templates={self.template_names})"


def _unique_name(document: ComponentDocument, index: int) -> str:
    # Inline documents share a name; keep them apart by position
    if document.file_path:
        return str(document.file_path)
    return f"{document.name}#{index}"


__all__ = ["Composition", "DocumentLoader"]
