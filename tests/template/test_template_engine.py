"""
Tests for the rendering engine: escaping, truthiness, blocks, partials.
"""

import logging

import pytest

from hydrakit.errors import RenderError
from hydrakit.template import ScopedPartialResolver, TemplateEngine, escape_html, is_truthy, parse_template, render
from hydrakit.template.engine import MAX_PARTIAL_DEPTH, stringify
from hydrakit.template.scope import freeze, thaw


class TestEscaping:

    def test_escape_html(self):
        assert escape_html("<a href=\"x\">Tom & 'Jerry'</a>") == (
            "&lt;a href=&quot;x&quot;&gt;Tom &amp; &#39;Jerry&#39;&lt;/a&gt;"
        )

    def test_variables_are_escaped(self):
        assert render("{{v}}", {"v": "<b>&</b>"}) == "&lt;b&gt;&amp;&lt;/b&gt;"

    def test_raw_variables_are_not_escaped(self):
        assert render("{{{content}}}", {"content": "<b>x</b>"}) == "<b>x</b>"

    def test_raw_output_outside_allowlist_warns(self, caplog):
        caplog.set_level(logging.WARNING, logger="hydrakit.template.engine")

        assert render("{{{bio}}}", {"bio": "<i>b</i>"}) == "<i>b</i>"
        assert "Raw (unescaped) output of 'bio' at line 1, column 1" in caplog.text

    def test_custom_allowlist_silences_warning(self, caplog):
        caplog.set_level(logging.WARNING, logger="hydrakit.template.engine")

        engine = TemplateEngine(raw_allowlist=["bio"])
        assert engine.render("{{{bio}}}", {"bio": "<i>b</i>"}) == "<i>b</i>"
        assert "Raw (unescaped)" not in caplog.text
        assert "content" in engine.raw_allowlist


class TestValues:

    @pytest.mark.parametrize("value, expected", [
        (None, False),
        (False, False),
        ("false", False),
        ("FALSE", False),
        (True, True),
        ("", True),
        (0, True),
        ([], True),
        ({}, True),
        ("no", True),
    ])
    def test_is_truthy(self, value, expected):
        assert is_truthy(value) is expected

    @pytest.mark.parametrize("value, expected", [
        (None, ""),
        (True, "true"),
        (False, "false"),
        (3, "3"),
        ("s", "s"),
        ([1, "a"], '[1,"a"]'),
        ({"k": "é"}, '{"k":"é"}'),
    ])
    def test_stringify(self, value, expected):
        assert stringify(value) == expected

    def test_stringify_frozen_data(self):
        assert stringify(freeze({"a": [1, {"b": 2}]})) == '{"a":[1,{"b":2}]}'

    def test_missing_variable_renders_empty(self):
        assert render("[{{nope}}][{{a.b.c}}]", {"a": {"b": None}}) == "[][]"

    def test_dotted_path_and_list_index(self):
        ctx = {"user": {"name": "Ann", "tags": ["x", "y"]}}

        assert render("{{user.name}}/{{user.tags.1}}", ctx) == "Ann/y"

    def test_object_attributes(self):
        class User:
            name = "Bob"

            def secret(self):
                return "s"

        assert render("{{u.name}}{{u.secret}}{{u._hidden}}", {"u": User()}) == "Bob"


class TestFrozenData:

    def test_freeze_is_read_only(self):
        frozen = freeze({"user": {"tags": ["x"]}})

        with pytest.raises(TypeError):
            frozen["user"]["name"] = "Ann"
        assert frozen["user"]["tags"] == ("x",)

    def test_thaw_returns_independent_copy(self):
        frozen = freeze({"user": {"tags": ["x"]}})

        data = thaw(frozen)
        data["user"]["tags"].append("y")

        assert data == {"user": {"tags": ["x", "y"]}}
        assert frozen["user"]["tags"] == ("x",)

    def test_frozen_context_renders_blocks(self):
        ctx = freeze({"items": [{"n": 1}, {"n": 2}], "user": {"name": "Ann"}})

        assert render("{{#each items}}{{n}}{{/each}} {{user.name}}", ctx) == "12 Ann"


class TestBlocks:

    def test_if_else(self):
        tpl = "{{#if on}}ON{{else}}OFF{{/if}}"

        assert render(tpl, {"on": True}) == "ON"
        assert render(tpl, {"on": "false"}) == "OFF"
        assert render(tpl, {}) == "OFF"
        assert render(tpl, {"on": ""}) == "ON"

    def test_unless_else(self):
        tpl = "{{#unless hidden}}shown{{else}}hidden{{/unless}}"

        assert render(tpl, {"hidden": False}) == "shown"
        assert render(tpl, {"hidden": 1}) == "hidden"

    def test_each_list_with_loop_variables(self):
        tpl = "{{#each xs}}{{@index}}:{{this}}{{#if @first}}F{{/if}}{{#if @last}}L{{/if}};{{/each}}"

        assert render(tpl, {"xs": ["a", "b", "c"]}) == "0:aF;1:b;2:cL;"

    def test_each_mapping_exposes_key(self):
        assert render("{{#each m}}{{@key}}={{.}} {{/each}}", {"m": {"a": 1, "b": 2}}) == "a=1 b=2 "

    def test_each_item_fields_and_outer_scope(self):
        tpl = "{{#each users}}{{name}}@{{site}} {{/each}}"
        ctx = {"site": "ex", "users": [{"name": "a"}, {"name": "b"}]}

        assert render(tpl, ctx) == "a@ex b@ex "

    def test_each_item_field_shadows_outer(self):
        ctx = {"name": "outer", "xs": [{"name": "inner"}]}

        assert render("{{#each xs}}{{name}}|{{this.name}}{{/each}}", ctx) == "inner|inner"

    def test_each_over_non_collection_renders_nothing(self):
        assert render("{{#each xs}}x{{/each}}", {"xs": "abc"}) == ""
        assert render("{{#each xs}}x{{/each}}", {}) == ""

    def test_comments_are_dropped(self):
        assert render("a{{! hidden }}b{{!-- {{x}} --}}c", {}) == "abc"


class TestPartials:

    def test_plain_callable_resolver(self):
        partials = {"hdr": "<h1>H</h1>"}

        assert render("{{> hdr}}|{{> nope}}", {}, partial_resolver=partials.get) == "<h1>H</h1>|"

    def test_no_resolver_renders_empty(self):
        assert render("a{{> x}}b", {}) == "ab"

    def test_scoped_resolver_sees_loop_item(self):
        engine = TemplateEngine()

        class Resolver(ScopedPartialResolver):
            def resolve(self, name, scope, depth):
                return engine.render("<li>{{this}}</li>", scope, partial_resolver=self, partial_depth=depth)

        out = engine.render("{{#each xs}}{{> item}}{{/each}}", {"xs": [1, 2]}, partial_resolver=Resolver())
        assert out == "<li>1</li><li>2</li>"

    def test_recursive_partials_hit_depth_limit(self):
        engine = TemplateEngine()
        depths = []

        class Loop(ScopedPartialResolver):
            def resolve(self, name, scope, depth):
                depths.append(depth)
                return engine.render("{{> self}}", scope, partial_resolver=self, partial_depth=depth)

        with pytest.raises(RenderError, match="Partial nesting too deep while rendering 'self'"):
            engine.render("{{> self}}", {}, partial_resolver=Loop())
        assert max(depths) == MAX_PARTIAL_DEPTH


class TestEngineErrors:

    def test_parse_failure_is_render_error(self):
        with pytest.raises(RenderError) as exc:
            render("{{#if x}}open", {})

        assert str(exc.value).startswith("Template parsing failed: Missing closing tag for {{#if}}")
        assert exc.value.cause is not None

    def test_unsupported_context_is_render_error(self):
        with pytest.raises(RenderError, match="Template rendering failed"):
            render("x", 42)

    def test_locals_layer_over_context(self):
        ast = parse_template("{{content}} {{title}}")

        out = TemplateEngine().render(ast, {"title": "T", "content": "ctx"}, locals={"content": "loc"})
        assert out == "loc T"
