"""
Loading component files from template directories.

Templates are addressed by name relative to a template root without the
extension (``"pages/home"`` -> ``<root>/pages/home.sfc``). Roots are
searched in order; the first match wins. Parsed documents are cached per
path and modification time.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pathspec

from .composition import Composition
from .config import Configuration
from .document import ComponentDocument
from .errors import TemplateNotFoundError
from .template import ScopedPartialResolver, TemplateEngine
from .template.scope import Scope

logger = logging.getLogger(__name__)


def build_ignore_spec(patterns: Iterable[str]) -> Optional[pathspec.PathSpec]:
    """PathSpec of gitwildmatch patterns, or None when there are none."""
    lines = [p.strip() for p in patterns if p and p.strip() and not p.strip().startswith("#")]
    if not lines:
        return None
    return pathspec.PathSpec.from_lines("gitwildmatch", lines)


class TemplateLoader:
    """
    Finds, parses and caches component documents.

    Args:
        template_paths: Template roots, searched in order
        extension: Component file extension
        ignore: gitwildmatch patterns (relative to a root) to hide
        cache: Keep parsed documents between loads
    """

    def __init__(
        self,
        template_paths: Sequence[Path],
        extension: str = ".sfc",
        ignore: Iterable[str] = (),
        cache: bool = True,
    ):
        self.template_paths = [Path(p) for p in template_paths]
        self.extension = extension
        self.ignore_spec = build_ignore_spec(ignore)
        self.cache_enabled = cache
        self._cache: Dict[Path, Tuple[int, ComponentDocument]] = {}

    @classmethod
    def from_config(cls, config: Configuration) -> "TemplateLoader":
        return cls(
            [Path(p) for p in config.template_paths],
            extension=config.template_extension,
            ignore=config.template_ignore,
            cache=config.cache_parsed_templates,
        )

    # ======= Lookup =======

    def find(self, name: str) -> Optional[Path]:
        """Path of the named template, or None."""
        relative = name if name.endswith(self.extension) else f"{name}{self.extension}"
        for root in self.template_paths:
            root = root.resolve()
            candidate = (root / relative).resolve()
            try:
                rel_posix = candidate.relative_to(root).as_posix()
            except ValueError:
                # Names must not escape their root
                continue
            if self._is_ignored(rel_posix):
                continue
            if candidate.is_file():
                return candidate
        return None

    def load(self, name: str) -> ComponentDocument:
        """
        Parsed document of the named template.

        Raises:
            TemplateNotFoundError: When no root contains the template
            ParseError: When the file is malformed
        """
        path = self.find(name)
        if path is None:
            searched = ", ".join(str(p) for p in self.template_paths) or "<no template paths>"
            raise TemplateNotFoundError(f"Template not found: {name} (searched: {searched})")
        return self._load_path(path)

    def __call__(self, name: str) -> Optional[ComponentDocument]:
        path = self.find(name)
        return self._load_path(path) if path is not None else None

    def _load_path(self, path: Path) -> ComponentDocument:
        mtime = path.stat().st_mtime_ns
        if self.cache_enabled:
            cached = self._cache.get(path)
            if cached is not None and cached[0] == mtime:
                return cached[1]

        document = ComponentDocument.parse_file(path)
        logger.debug("Parsed component %s", path)
        if self.cache_enabled:
            self._cache[path] = (mtime, document)
        return document

    def _is_ignored(self, rel_posix: str) -> bool:
        return bool(self.ignore_spec and self.ignore_spec.match_file(rel_posix))

    # ======= Discovery =======

    def discover(self) -> List[str]:
        """Names of all templates under all roots (first root wins on duplicates)."""
        names: Dict[str, None] = {}
        for root in self.template_paths:
            if not root.is_dir():
                continue
            root = root.resolve()
            for dirpath, dirnames, filenames in os.walk(root):
                dirnames[:] = sorted(
                    d for d in dirnames
                    if not d.startswith(".")
                    and not self._is_ignored(Path(dirpath, d).relative_to(root).as_posix() + "/")
                )
                for filename in sorted(filenames):
                    if not filename.endswith(self.extension):
                        continue
                    rel_posix = Path(dirpath, filename).relative_to(root).as_posix()
                    if self._is_ignored(rel_posix):
                        continue
                    names.setdefault(rel_posix[: -len(self.extension)])
        return list(names)

    # ======= Rendering helpers =======

    def composition(self, name: str) -> Composition:
        """Resolved composition rooted at the named template."""
        return Composition(name, self).resolve()

    def partial_resolver(
        self,
        engine: TemplateEngine,
        composition: Optional[Composition] = None,
    ) -> "DocumentPartialResolver":
        return DocumentPartialResolver(self, engine, composition)


class DocumentPartialResolver(ScopedPartialResolver):
    """
    Renders {{> name}} from the template section of another document.

    The partial is rendered in the scope of the inclusion site, so inside
    {{#each}} it sees the current item as well as everything outside.
    Documents already in the composition are used without touching disk.
    """

    def __init__(self, loader: TemplateLoader, engine: TemplateEngine, composition: Optional[Composition] = None):
        self.loader = loader
        self.engine = engine
        self.composition = composition

    def resolve(self, name: str, scope: Scope, depth: int) -> Optional[str]:
        document = self.composition.template(name) if self.composition is not None else None
        if document is None:
            document = self.loader(name)
        if document is None or document.template is None:
            logger.debug("Partial '%s' not found or without template section", name)
            return None
        return self.engine.render(document.template, scope, partial_resolver=self, partial_depth=depth)


__all__ = ["TemplateLoader", "DocumentPartialResolver", "build_ignore_spec"]
