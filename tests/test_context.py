"""
Tests for the request-scoped rendering context and its adapters.
"""

import dataclasses

import pytest

from hydrakit.config import Configuration
from hydrakit.context import (
    AnonymousAuth, AnonymousSession, AuthenticatedAuth, AuthenticatedSession, Context,
    SimpleRequest, adapt_auth, adapt_session, normalize_keys, parse_accept_language,
)


class TestHelpers:

    def test_normalize_keys(self):
        assert normalize_keys({1: {"a": [{2: "x"}]}, "b": (1, 2)}) == {"1": {"a": [{"2": "x"}]}, "b": [1, 2]}

    @pytest.mark.parametrize("header, expected", [
        (None, "en"),
        ("", "en"),
        ("fr-CA;q=0.9, en", "fr-CA"),
        ("  de , en", "de"),
        (";q=1", "en"),
    ])
    def test_parse_accept_language(self, header, expected):
        assert parse_accept_language(header, "en") == expected


class TestAdapters:

    def test_unknown_objects_become_anonymous(self):
        assert isinstance(adapt_session(object()), AnonymousSession)
        assert isinstance(adapt_auth({"id": 1}), AnonymousAuth)

    def test_capable_objects_pass_through(self):
        session = AuthenticatedSession({"sid": "s"})
        user = AuthenticatedAuth({"id": 5, "name": "Ann", "theme": "dark", "roles": ["admin", 3]})

        assert adapt_session(session) is session
        assert adapt_auth(user) is user
        assert user.user_id == 5
        assert user.display_name == "Ann"
        assert user.theme_preference() == "dark"
        assert user.has_role("admin")
        assert user.has_role("3")
        assert not user.has_role("editor")

    def test_anonymous_auth(self):
        auth = AnonymousAuth()

        assert auth.is_anonymous()
        assert auth.theme_preference() == "light"
        assert auth.display_name == "Anonymous"
        assert auth.user_id is None
        assert not auth.has_role("admin")

    def test_authenticated_defaults(self):
        user = AuthenticatedAuth()

        assert user.display_name == "User"
        assert user.theme_preference() == "light"


class TestBuild:

    def test_request_values(self):
        request = SimpleRequest(env={
            "HTTP_ACCEPT_LANGUAGE": "es-ES,es;q=0.9",
            "csrf_token": "tok",
            "nonce": "n0nce",
            "request_id": "r-1",
        })

        ctx = Context.build(request=request, client={"a": 1})

        assert ctx.locale == "es-ES"
        assert ctx.runtime == {"csrf_token": "tok", "nonce": "n0nce", "request_id": "r-1"}
        assert ctx.nonce == "n0nce"
        assert ctx.request is request

    def test_explicit_locale_wins(self):
        ctx = Context.build(request=SimpleRequest(env={"HTTP_ACCEPT_LANGUAGE": "de"}), locale="it")

        assert ctx.locale == "it"

    def test_default_locale_from_config(self):
        ctx = Context.build(config=Configuration(default_locale="pt"))

        assert ctx.locale == "pt"

    def test_generated_nonce(self):
        ctx = Context.minimal()

        assert len(ctx.nonce) == 32
        assert Context.minimal().nonce != ctx.nonce

    def test_no_nonce_when_not_needed(self):
        config = Configuration(auto_nonce=False, csp_enabled=False)

        assert Context.minimal(config=config).nonce is None

    def test_nonce_required_by_policy(self):
        config = Configuration(auto_nonce=False)

        assert Context.minimal(config=config).nonce is not None

    def test_client_keys_are_normalized(self):
        ctx = Context.minimal(client={1: {2: "x"}})

        assert ctx.client == {"1": {"2": "x"}}


class TestImmutability:

    def test_frozen(self):
        ctx = Context.minimal(client={"a": 1})

        with pytest.raises(dataclasses.FrozenInstanceError):
            ctx.locale = "fr"

    def test_with_client_returns_new_context(self):
        ctx = Context.minimal(client={"a": 1})

        other = ctx.with_client({"b": 2})

        assert other is not ctx
        assert ctx.client == {"a": 1}
        assert other.client == {"b": 2}
        assert other.nonce == ctx.nonce

    def test_merge_client_is_shallow(self):
        ctx = Context.minimal(client={"a": {"x": 1}, "b": 1})

        other = ctx.merge_client({"a": {"y": 2}})

        assert other.client == {"a": {"y": 2}, "b": 1}
        assert ctx.client == {"a": {"x": 1}, "b": 1}

    def test_with_server_keeps_runtime(self):
        ctx = Context.minimal(app_data={"title": "T"})

        other = ctx.with_server({"title": "U"})

        assert other.get("title") == "U"
        assert other.runtime == ctx.runtime

    def test_client_data_is_read_only(self):
        ctx = Context.minimal(client={"a": 1, "user": {"name": "Ann"}, "items": [1, 2]})

        with pytest.raises(TypeError):
            ctx.client["a"] = 2
        with pytest.raises(TypeError):
            ctx.client["user"]["name"] = "Bob"
        with pytest.raises(AttributeError):
            ctx.client["items"].append(3)
        assert ctx.get("a") == 1
        assert ctx.get("user.name") == "Ann"

    def test_app_data_is_read_only(self):
        ctx = Context.minimal(app_data={"site": {"name": "Ex"}})

        with pytest.raises(TypeError):
            ctx.app_data["site"]["name"] = "Other"
        assert ctx.get("app.site.name") == "Ex"

    def test_source_data_is_copied(self):
        source = {"user": {"name": "Ann"}}
        ctx = Context.minimal(client=source)

        source["user"]["name"] = "Bob"

        assert ctx.get("user.name") == "Ann"

    def test_merge_client_does_not_share_nested_data(self):
        ctx = Context.minimal(client={"a": {"x": 1}})

        other = ctx.merge_client({"b": 2})

        assert other.client["a"] is not ctx.client["a"]
        assert other.client == {"a": {"x": 1}, "b": 2}


class TestComputedValues:

    def test_anonymous_context(self):
        ctx = Context.minimal()

        assert not ctx.authenticated
        assert ctx.theme_class == "theme-light"

    def test_authenticated_user(self):
        ctx = Context.build(session=AuthenticatedSession(), auth=AuthenticatedAuth({"theme": "dark"}))

        assert ctx.authenticated
        assert ctx.theme_class == "theme-dark"

    def test_authenticated_session_with_anonymous_user(self):
        ctx = Context.build(session=AuthenticatedSession())

        assert not ctx.authenticated

    def test_client_theme_wins(self):
        ctx = Context.build(client={"theme": "solar"}, auth=AuthenticatedAuth({"theme": "dark"}))

        assert ctx.theme_class == "theme-solar"

    def test_server_layer(self):
        config = Configuration(
            app_environment="production",
            features={"beta": True},
            site_host="example.com",
            site_ssl_enabled=True,
        )
        ctx = Context.minimal(app_data={"title": "Home", "locale": "xx"}, config=config)

        server = ctx.server
        assert server["environment"] == "production"
        assert server["features"] == {"beta": True}
        assert server["api_base_url"] == "https://example.com/api"
        assert server["development"] is False
        assert server["authenticated"] is False
        assert server["theme_class"] == "theme-light"
        assert server["title"] == "Home"
        # app data is layered over computed values
        assert server["locale"] == "xx"


class TestLookup:

    @pytest.fixture
    def ctx(self):
        return Context.minimal(
            client={"user": {"name": "Ann", "tags": ["a", "b"]}, "title": "Client title"},
            app_data={"title": "Server title", "site": {"name": "Ex"}},
        )

    def test_client_before_server(self, ctx):
        assert ctx.get("title") == "Client title"
        assert ctx.get("site.name") == "Ex"

    def test_explicit_prefixes(self, ctx):
        assert ctx.get("app.title") == "Server title"
        assert ctx.get("server.title") == "Server title"
        assert ctx.get("client.title") == "Client title"

    def test_nested_and_index(self, ctx):
        assert ctx.get("user.name") == "Ann"
        assert ctx.get("user.tags.0") == "a"

    def test_missing_is_none(self, ctx):
        assert ctx.get("user.age") is None
        assert ctx.get("nope.deeper") is None
        assert ctx.get("app.nope") is None

    def test_computed_values_are_reachable(self, ctx):
        assert ctx.get("theme_class") == "theme-light"
        assert ctx.get("locale") == "en"
        assert ctx.get("authenticated") is False

    def test_has_variable(self, ctx):
        assert ctx.has_variable("user.name")
        assert not ctx.has_variable("user.age")

    def test_available_variables(self, ctx):
        paths = ctx.available_variables()

        assert paths[:4] == ["user", "user.name", "user.tags", "title"]
        assert "site.name" in paths
        assert "app.site.name" in paths
        assert "app.nonce" in paths
        assert paths.count("title") == 1

    def test_context_renders_as_scope(self, ctx):
        from hydrakit.template import render

        assert render("{{user.name}} / {{app.title}} / {{theme_class}}", ctx) == "Ann / Server title / theme-light"
