from __future__ import annotations

import dataclasses
import json
from pathlib import PurePath
from typing import Any


def _default(obj: Any) -> Any:
    # Report values: SchemaInfo and similar dataclasses, paths, sets
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, PurePath):
        return obj.as_posix()
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    return str(obj)


def dumps(obj: Any) -> str:
    """
    JSON for CLI responses.
    No pretty-printing; ensure_ascii=False; the trailing newline is up to the caller.
    """
    return json.dumps(obj, ensure_ascii=False, default=_default)
