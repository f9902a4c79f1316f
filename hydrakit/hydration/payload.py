"""
Hydration payloads and their script-tag form.

Each window attribute becomes a JSON data block plus a small loader that
assigns it to ``window[NAME]``:

    <script type="application/json" id="hydration-data" data-window="data">{...}</script>
    <script>window["data"] = JSON.parse(document.getElementById("hydration-data").textContent);</script>

Where the tags are placed in the page is up to the caller.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from ..errors import JSONSerializationError
from ..template.engine import escape_html

# Characters that would let JSON text break out of a <script> element
_SCRIPT_SAFE_TABLE = str.maketrans({
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
})


def serialize_json(value: Any) -> str:
    """
    Compact JSON safe for embedding inside <script>.

    Raises:
        JSONSerializationError: When the value is not JSON-serializable
    """
    try:
        text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise JSONSerializationError(f"Hydration data is not JSON-serializable: {e}") from e
    return text.translate(_SCRIPT_SAFE_TABLE)


@dataclass(frozen=True)
class HydrationPayload:
    window_attribute: str
    data: Any
    merge_strategy: Optional[str] = None

    @property
    def element_id(self) -> str:
        return f"hydration-{_slug(self.window_attribute)}"

    def to_json(self) -> str:
        return serialize_json(self.data)


def _slug(name: str) -> str:
    # Reversible: letters, digits and "_" are kept, anything else becomes -<hex>-
    return "".join(ch if ch.isalnum() or ch == "_" else f"-{ord(ch):x}-" for ch in name)


def build_payloads(merged: Mapping[str, Any], provenance: Optional[Mapping[str, Any]] = None) -> List[HydrationPayload]:
    """Payloads in window-attribute insertion order."""
    provenance = provenance or {}
    payloads = []
    for window_attribute, data in merged.items():
        origin = provenance.get(window_attribute)
        payloads.append(HydrationPayload(
            window_attribute=window_attribute,
            data=data,
            merge_strategy=getattr(origin, "merge_strategy", None),
        ))
    return payloads


def render_script_tags(payloads: List[HydrationPayload], nonce: Optional[str] = None) -> str:
    """Data blocks followed by their loader scripts, one pair per payload."""
    nonce_attr = f' nonce="{escape_html(nonce)}"' if nonce else ""
    lines: List[str] = []
    for payload in payloads:
        element_id = escape_html(payload.element_id)
        window_name = escape_html(payload.window_attribute)
        lines.append(
            f'<script type="application/json" id="{element_id}" data-window="{window_name}">'
            f"{payload.to_json()}</script>"
        )
        target = json.dumps(payload.window_attribute).translate(_SCRIPT_SAFE_TABLE)
        lines.append(
            f"<script{nonce_attr}>window[{target}] = "
            f'JSON.parse(document.getElementById("{element_id}").textContent);</script>'
        )
    return "\n".join(lines)


__all__ = [
    "serialize_json",
    "HydrationPayload",
    "build_payloads",
    "render_script_tags",
]
