"""
Expected hydration keys of a document, for observability only.

Keys come from a JSON-schema artifact when one exists (``properties`` of
the file named by ``<data schema="...">`` or ``<schemas_dir>/<name>.json``);
otherwise they are guessed from the schema section with a simple pattern
matching ``name: z.``. Missing or broken artifacts are a cache miss, never
an error.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..document import ComponentDocument
from ..logging_utils import format_log_message

logger = logging.getLogger(__name__)

_ZOD_KEY_RE = re.compile(r"(\w+):\s*z\.")


@dataclass(frozen=True)
class KeyMismatch:
    missing: List[str] = field(default_factory=list)
    extra: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing and not self.extra


def compare_keys(expected: Iterable[str], actual: Iterable[str]) -> KeyMismatch:
    """Order-preserving difference of expected and actual key lists."""
    expected = list(expected)
    actual = [str(k) for k in actual]
    return KeyMismatch(
        missing=[k for k in expected if k not in actual],
        extra=[k for k in actual if k not in expected],
    )


def extract_zod_keys(schema_text: Optional[str]) -> List[str]:
    """Best-effort key names of a Zod object literal (first-seen order)."""
    if not schema_text:
        return []
    return list(dict.fromkeys(_ZOD_KEY_RE.findall(schema_text)))


class SchemaKeyExtractor:
    """
    Resolves expected keys per document with a per-instance file cache.

    Args:
        schemas_dir: Directory of generated ``<name>.json`` schemas
    """

    def __init__(self, schemas_dir: Optional[Path] = None):
        self.schemas_dir = Path(schemas_dir) if schemas_dir else None
        self._cache: Dict[Path, Optional[Dict[str, Any]]] = {}

    def expected_keys(self, name: str, document: ComponentDocument) -> List[str]:
        """
        Keys the document's schema declares, or [] when nothing is known.
        """
        for path in self._candidate_paths(name, document):
            schema = self._load(path)
            if schema is None:
                continue
            properties = schema.get("properties")
            if isinstance(properties, dict) and properties:
                logger.debug(format_log_message(
                    "Schema keys extracted from JSON schema", template=name, key_count=len(properties),
                ))
                return list(properties)

        schema_text = document.section("schema")
        keys = extract_zod_keys(schema_text if isinstance(schema_text, str) else None)
        if keys:
            logger.debug(format_log_message(
                "Schema keys extracted from schema section", template=name, key_count=len(keys),
            ))
        return keys

    def _candidate_paths(self, name: str, document: ComponentDocument) -> List[Path]:
        paths: List[Path] = []
        declared = document.schema_path
        if declared:
            path = Path(declared)
            if not path.is_absolute() and document.file_path:
                path = Path(document.file_path).parent / path
            paths.append(path)
        if self.schemas_dir is not None:
            paths.append(self.schemas_dir / f"{Path(name).stem}.json")
        return paths

    def _load(self, path: Path) -> Optional[Dict[str, Any]]:
        if path in self._cache:
            return self._cache[path]

        schema: Optional[Dict[str, Any]] = None
        if path.is_file():
            try:
                loaded = json.loads(path.read_text(encoding="utf-8"))
                schema = loaded if isinstance(loaded, dict) else None
            except (OSError, ValueError) as e:
                logger.debug(format_log_message(
                    "Schema file error", path=path, error_class=type(e).__name__,
                ))
        self._cache[path] = schema
        return schema


__all__ = ["KeyMismatch", "compare_keys", "extract_zod_keys", "SchemaKeyExtractor"]
