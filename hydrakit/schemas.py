"""
Inventory of schema sections across a template directory.

Used by tooling that generates JSON schemas from the schema code of
component files.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import HydrakitError
from .loader import TemplateLoader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchemaInfo:
    template_name: str
    template_path: str
    schema_code: str
    lang: Optional[str]
    version: Optional[str]
    envelope: Optional[str]
    window: str
    merge: Optional[str]
    layout: Optional[str]
    extends: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SchemaExtractor:
    """
    Collects schema sections of all component files under a directory.

    Raises:
        HydrakitError: When the directory does not exist
    """

    def __init__(self, templates_dir: Path, extension: str = ".sfc", ignore: Iterable[str] = ()):
        self.templates_dir = Path(templates_dir).resolve()
        if not self.templates_dir.is_dir():
            raise HydrakitError(f"Templates directory does not exist: {self.templates_dir}")
        self.loader = TemplateLoader([self.templates_dir], extension=extension, ignore=ignore, cache=False)

    def template_names(self) -> List[str]:
        return self.loader.discover()

    def extract_all(self) -> List[SchemaInfo]:
        """Schema info of every file with a schema section; broken files are skipped."""
        return self._scan(self.template_names())[0]

    def _scan(self, names: List[str]) -> Tuple[List[SchemaInfo], List[str]]:
        """Schema infos plus names of files that failed to load."""
        schemas: List[SchemaInfo] = []
        failed: List[str] = []
        for name in names:
            try:
                info = self.extract(name)
            except HydrakitError as e:
                logger.warning("Failed to extract schema from %s: %s", name, e)
                failed.append(name)
                continue
            if info is not None:
                schemas.append(info)
        return schemas, failed

    def extract(self, name: str) -> Optional[SchemaInfo]:
        """Schema info of one template, or None without schema section."""
        document = self.loader.load(name)
        node = document.section_node("schema")
        if node is None:
            return None

        attrs = node.attributes
        return SchemaInfo(
            template_name=name,
            template_path=str(document.file_path),
            schema_code=node.content.strip(),
            lang=attrs.get("lang"),
            version=attrs.get("version"),
            envelope=attrs.get("envelope"),
            window=attrs.get("window") or "data",
            merge=attrs.get("merge"),
            layout=attrs.get("layout"),
            extends=attrs.get("extends"),
        )

    def extract_from_file(self, path: Path) -> Optional[SchemaInfo]:
        path = Path(path).resolve()
        name = path.relative_to(self.templates_dir).as_posix()
        if name.endswith(self.loader.extension):
            name = name[: -len(self.loader.extension)]
        return self.extract(name)

    def stats(self) -> Dict[str, Any]:
        names = self.template_names()
        schemas, failed = self._scan(names)
        return {
            "total_files": len(names),
            "files_with_schemas": len(schemas),
            "files_without_schemas": len(names) - len(schemas) - len(failed),
            "files_with_errors": len(failed),
            "schemas_by_lang": dict(Counter(s.lang for s in schemas)),
        }


__all__ = ["SchemaInfo", "SchemaExtractor"]
