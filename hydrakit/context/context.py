"""
Request-scoped rendering context.

A Context combines three layers of data:

- client: business data (props), the only layer serialized to the page
- server: runtime values (csrf token, nonce, locale, feature flags,
  computed ``authenticated`` / ``theme_class``) merged with app data
- the originating request, session, user and configuration

Contexts are immutable: client, app and runtime data are stored as read-only
copies, and builder methods return new instances.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .adapters import (
    AnonymousAuth, AnonymousSession, AuthCapability, SessionCapability,
    adapt_auth, adapt_session, request_env,
)
from ..config import Configuration
from ..template.scope import MISSING, freeze, lookup_key, resolve_path, thaw

ACCEPT_LANGUAGE_KEY = "HTTP_ACCEPT_LANGUAGE"

# Prefixes that address the server layer explicitly
SERVER_PREFIXES = ("app", "server")
CLIENT_PREFIX = "client"


def normalize_keys(data: Any) -> Any:
    """Recursively converts mapping keys to strings (lists are walked too)."""
    if isinstance(data, Mapping):
        return {str(key): normalize_keys(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [normalize_keys(item) for item in data]
    return data


def parse_accept_language(header: Optional[str], default: str) -> str:
    """
    Extracts the preferred locale from an Accept-Language header.

    Takes the first comma-separated entry, trims it and strips quality
    parameters; falls back to ``default``.

    >>> parse_accept_language("fr-CA;q=0.9, en", "en")
    'fr-CA'
    """
    if not header:
        return default
    first = header.split(",", 1)[0].split(";", 1)[0].strip()
    return first or default


def generate_nonce() -> str:
    """32 hex characters of cryptographic randomness."""
    return secrets.token_hex(16)


@dataclass(frozen=True)
class Context:
    client: Mapping[str, Any] = field(default_factory=dict)
    app_data: Mapping[str, Any] = field(default_factory=dict)
    runtime: Mapping[str, Any] = field(default_factory=dict)
    request: Any = None
    session: SessionCapability = field(default_factory=AnonymousSession)
    auth: AuthCapability = field(default_factory=AnonymousAuth)
    config: Configuration = field(default_factory=Configuration)
    locale: str = "en"

    def __post_init__(self):
        for name in ("client", "app_data", "runtime"):
            object.__setattr__(self, name, freeze(getattr(self, name)))

    # ======= Factories =======

    @classmethod
    def build(
        cls,
        request: Any = None,
        session: Any = None,
        auth: Any = None,
        locale: Optional[str] = None,
        client: Optional[Mapping[str, Any]] = None,
        app_data: Optional[Mapping[str, Any]] = None,
        config: Optional[Configuration] = None,
    ) -> "Context":
        """
        Creates a context for one render.

        Args:
            request: Host request object (its ``env`` mapping is consulted)
            session: Host session; wrapped as anonymous when it lacks
                ``is_authenticated()``
            auth: Host user; wrapped as anonymous when it lacks
                ``is_anonymous()`` / ``theme_preference()``
            locale: Explicit locale, else Accept-Language, else default
            client: Business data serialized to the page
            app_data: Template-only server data
            config: Configuration snapshot
        """
        config = config or Configuration()
        env = request_env(request)

        if not locale:
            locale = parse_accept_language(env.get(ACCEPT_LANGUAGE_KEY), config.default_locale)

        runtime = {
            "csrf_token": env.get(config.csrf_token_name),
            "nonce": cls._nonce(env, config),
            "request_id": env.get("request_id"),
        }

        return cls(
            client=normalize_keys(dict(client or {})),
            app_data=normalize_keys(dict(app_data or {})),
            runtime=runtime,
            request=request,
            session=adapt_session(session),
            auth=adapt_auth(auth),
            config=config,
            locale=locale,
        )

    @classmethod
    def minimal(
        cls,
        client: Optional[Mapping[str, Any]] = None,
        app_data: Optional[Mapping[str, Any]] = None,
        config: Optional[Configuration] = None,
    ) -> "Context":
        """Context without request/session/user (tests, offline rendering)."""
        return cls.build(client=client, app_data=app_data, config=config, locale="en")

    @staticmethod
    def _nonce(env: Mapping[str, Any], config: Configuration) -> Optional[str]:
        existing = env.get(config.nonce_header_name)
        if existing:
            return existing
        if config.auto_nonce or config.nonce_required():
            return generate_nonce()
        return None

    # ======= Builders =======

    def with_client(self, client: Mapping[str, Any]) -> "Context":
        """New context with ``client`` replacing the business data."""
        return self._replace(client=normalize_keys(dict(client)))

    def merge_client(self, partial: Mapping[str, Any]) -> "Context":
        """New context with ``partial`` shallow-merged over the business data."""
        merged = thaw(self.client)
        merged.update(normalize_keys(dict(partial)))
        return self._replace(client=merged)

    def with_server(self, app_data: Mapping[str, Any]) -> "Context":
        """New context with ``app_data`` replacing the app data (runtime values are kept)."""
        return self._replace(app_data=normalize_keys(dict(app_data)))

    def _replace(self, **changes: Any) -> "Context":
        values = {
            "client": self.client,
            "app_data": self.app_data,
            "runtime": self.runtime,
            "request": self.request,
            "session": self.session,
            "auth": self.auth,
            "config": self.config,
            "locale": self.locale,
        }
        values.update(changes)
        return Context(**values)

    # ======= Server layer =======

    @property
    def nonce(self) -> Optional[str]:
        return self.runtime.get("nonce")

    @property
    def authenticated(self) -> bool:
        return bool(self.session.is_authenticated() and not self.auth.is_anonymous())

    @property
    def theme_class(self) -> str:
        theme = self.client.get("theme")
        if theme:
            return f"theme-{theme}"
        preference = self.auth.theme_preference()
        return f"theme-{preference}" if preference else "theme-light"

    @property
    def server(self) -> Dict[str, Any]:
        """Runtime and computed values with app data layered on top."""
        data = dict(self.runtime)
        data.update({
            "locale": self.locale,
            "environment": self.config.app_environment,
            "api_base_url": self.config.api_url(),
            "features": dict(self.config.features),
            "development": self.config.is_development(),
            "authenticated": self.authenticated,
            "theme_class": self.theme_class,
        })
        data.update(self.app_data)
        return data

    # ======= Lookup =======

    def get(self, path: str) -> Any:
        """
        Resolves a dotted variable path.

        Priority: explicit ``app.`` / ``server.`` prefix, explicit
        ``client.`` prefix, client data, server data. Missing paths
        resolve to None.
        """
        parts = path.split(".")
        head, rest = parts[0], parts[1:]

        if head in SERVER_PREFIXES and rest:
            return resolve_path(self.server, rest)
        if head == CLIENT_PREFIX and rest:
            return resolve_path(self.client, rest)

        found = lookup_key(self.client, head)
        if found is not MISSING:
            return resolve_path(found, rest) if rest else found

        server = self.server
        found = lookup_key(server, head)
        if found is not MISSING:
            return resolve_path(found, rest) if rest else found
        return None

    def has_variable(self, path: str) -> bool:
        return self.get(path) is not None

    def available_variables(self) -> List[str]:
        """Every resolvable dotted path (client first, then server under ``app.``)."""
        paths = _collect_paths(self.client)
        server = self.server
        paths.extend(p for p in _collect_paths(server) if p not in paths)
        paths.extend(_collect_paths(server, "app"))
        return paths

    def __repr__(self) -> str:
        return f"Context(client={sorted(self.client)}, locale={self.locale!r})"


def _collect_paths(data: Mapping[str, Any], prefix: str = "") -> List[str]:
    paths: List[str] = []
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        paths.append(path)
        if isinstance(value, Mapping):
            paths.extend(_collect_paths(value, path))
    return paths


__all__ = [
    "Context",
    "normalize_keys",
    "parse_accept_language",
    "generate_nonce",
]
