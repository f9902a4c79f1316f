"""
Tests for hydration payloads and their script tags.
"""

import pytest

from hydrakit.errors import JSONSerializationError
from hydrakit.hydration import HydrationPayload, WindowProvenance, build_payloads, render_script_tags, serialize_json


class TestSerializeJson:

    def test_compact_and_unicode(self):
        assert serialize_json({"name": "Zoë", "n": [1, 2]}) == '{"name":"Zoë","n":[1,2]}'

    def test_script_breakout_is_escaped(self):
        text = serialize_json({"html": "</script><script>alert(1)</script>", "amp": "a&b"})

        assert "</script>" not in text
        assert "\\u003c/script\\u003e" in text
        assert "a\\u0026b" in text

    def test_line_separators_are_escaped(self):
        assert serialize_json("a\u2028b\u2029c") == '"a\\u2028b\\u2029c"'

    def test_not_serializable(self):
        with pytest.raises(JSONSerializationError, match="not JSON-serializable"):
            serialize_json({"x": object()})


class TestPayloads:

    def test_element_id_slug(self):
        assert HydrationPayload("appState", {}).element_id == "hydration-appState"
        assert HydrationPayload("my data", {}).element_id == "hydration-my-20-data"

    def test_similar_window_names_get_distinct_ids(self):
        payloads = build_payloads({"a.b": {"x": 1}, "a-b": {"x": 2}, "a_b": {"x": 3}})

        ids = [p.element_id for p in payloads]

        assert ids == ["hydration-a-2e-b", "hydration-a-2d-b", "hydration-a_b"]

    def test_script_tags_load_each_block_by_its_own_id(self):
        html = render_script_tags(build_payloads({"a.b": 1, "a-b": 2}))

        assert 'getElementById("hydration-a-2e-b")' in html
        assert 'getElementById("hydration-a-2d-b")' in html

    def test_build_payloads_keeps_order_and_strategy(self):
        merged = {"b": 1, "a": {"x": 2}}
        provenance = {"a": WindowProvenance("p.sfc:1", "deep", "schema")}

        payloads = build_payloads(merged, provenance)

        assert [p.window_attribute for p in payloads] == ["b", "a"]
        assert payloads[0].merge_strategy is None
        assert payloads[1].merge_strategy == "deep"

    def test_script_tags(self):
        html = render_script_tags([HydrationPayload("user", {"id": 1})], nonce="abc")

        assert html == (
            '<script type="application/json" id="hydration-user" data-window="user">{"id":1}</script>\n'
            '<script nonce="abc">window["user"] = '
            'JSON.parse(document.getElementById("hydration-user").textContent);</script>'
        )

    def test_script_tags_without_nonce(self):
        html = render_script_tags([HydrationPayload("a", 1), HydrationPayload("b", 2)])

        assert html.count("<script>") == 2
        assert "nonce" not in html

    def test_no_payloads(self):
        assert render_script_tags([]) == ""
