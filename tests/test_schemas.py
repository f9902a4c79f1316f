"""
Tests for the schema-section inventory of a template directory.
"""

import logging

import pytest

from hydrakit.errors import HydrakitError
from hydrakit.schemas import SchemaExtractor

from tests.infrastructure import component, write_component


@pytest.fixture
def schema_tree(templates_dir):
    write_component(templates_dir, "cards/user", component(
        schema="z.object({ id: z.number() })",
        schema_attrs={"lang": "ts-zod", "version": "2", "window": "user", "merge": "deep"},
        template="{{id}}",
    ))
    write_component(templates_dir, "broken", "<schema>no lang</schema>\n")
    return templates_dir


class TestSchemaExtractor:

    def test_missing_directory(self, tmp_path):
        with pytest.raises(HydrakitError, match="Templates directory does not exist"):
            SchemaExtractor(tmp_path / "missing")

    def test_extract(self, schema_tree):
        info = SchemaExtractor(schema_tree).extract("cards/user")

        assert info.template_name == "cards/user"
        assert info.template_path.endswith("user.sfc")
        assert info.schema_code == "z.object({ id: z.number() })"
        assert info.lang == "ts-zod"
        assert info.version == "2"
        assert info.window == "user"
        assert info.merge == "deep"
        assert info.layout is None
        assert info.to_dict()["lang"] == "ts-zod"

    def test_extract_without_schema(self, schema_tree):
        assert SchemaExtractor(schema_tree).extract("partials/item") is None

    def test_page_attributes(self, schema_tree):
        info = SchemaExtractor(schema_tree).extract("pages/home")

        assert info.window == "appState"
        assert info.layout == "layouts/main"

    def test_extract_all_skips_broken_files(self, schema_tree, caplog):
        caplog.set_level(logging.WARNING, logger="hydrakit.schemas")

        infos = SchemaExtractor(schema_tree).extract_all()

        assert [i.template_name for i in infos] == ["cards/user", "pages/home"]
        assert "Failed to extract schema from broken" in caplog.text

    def test_extract_from_file(self, schema_tree):
        info = SchemaExtractor(schema_tree).extract_from_file(schema_tree / "cards" / "user.sfc")

        assert info.template_name == "cards/user"

    def test_stats(self, schema_tree):
        assert SchemaExtractor(schema_tree).stats() == {
            "total_files": 6,
            "files_with_schemas": 2,
            "files_without_schemas": 3,
            "files_with_errors": 1,
            "schemas_by_lang": {"ts-zod": 1, "js-zod": 1},
        }
