"""
Tests for expected-key extraction used by hydration observability.
"""

import json
import logging

from hydrakit.hydration import SchemaKeyExtractor, compare_keys, extract_zod_keys

from tests.infrastructure import component, document, write


class TestKeyHelpers:

    def test_extract_zod_keys(self):
        schema = """
        const schema = z.object({
          user: z.object({ id: z.number(), name: z.string() }),
          items: z.array(z.string()),
          user: z.any(),
        });
        """

        assert extract_zod_keys(schema) == ["user", "id", "name", "items"]

    def test_extract_zod_keys_empty(self):
        assert extract_zod_keys(None) == []
        assert extract_zod_keys("const x = 1;") == []

    def test_compare_keys(self):
        mismatch = compare_keys(["a", "b", "c"], ["c", "a", "d"])

        assert mismatch.missing == ["b"]
        assert mismatch.extra == ["d"]
        assert not mismatch.ok
        assert compare_keys(["a"], ["a"]).ok


class TestSchemaKeyExtractor:

    def test_falls_back_to_schema_section(self):
        doc = document(component(schema="z.object({ title: z.string() })", template="x"))

        assert SchemaKeyExtractor().expected_keys("page", doc) == ["title"]

    def test_nothing_known(self):
        doc = document(component(data="{}"))

        assert SchemaKeyExtractor().expected_keys("page", doc) == []

    def test_schemas_dir_artifact_by_stem(self, tmp_path):
        write(tmp_path / "schemas" / "home.json", json.dumps({"properties": {"a": {}, "b": {}}}))
        doc = document(component(schema="z.object({ other: z.string() })"))

        keys = SchemaKeyExtractor(tmp_path / "schemas").expected_keys("pages/home", doc)

        assert keys == ["a", "b"]

    def test_declared_schema_is_relative_to_document(self, tmp_path):
        write(tmp_path / "pages" / "user.schema.json", json.dumps({"properties": {"id": {}}}))
        doc = document(
            component(data="{}", data_attrs={"schema": "user.schema.json"}),
            str(tmp_path / "pages" / "user.sfc"),
        )

        assert SchemaKeyExtractor().expected_keys("pages/user", doc) == ["id"]

    def test_broken_artifact_is_a_miss(self, tmp_path, caplog):
        caplog.set_level(logging.DEBUG, logger="hydrakit.hydration.schema_keys")
        write(tmp_path / "home.json", "{not json")
        doc = document(component(schema="z.object({ k: z.string() })"))

        keys = SchemaKeyExtractor(tmp_path).expected_keys("home", doc)

        assert keys == ["k"]
        assert "Schema file error" in caplog.text

    def test_files_are_cached(self, tmp_path):
        path = write(tmp_path / "home.json", json.dumps({"properties": {"a": {}}}))
        extractor = SchemaKeyExtractor(tmp_path)
        doc = document(component(schema="z"))

        assert extractor.expected_keys("home", doc) == ["a"]
        path.write_text(json.dumps({"properties": {"b": {}}}), encoding="utf-8")
        assert extractor.expected_keys("home", doc) == ["a"]
