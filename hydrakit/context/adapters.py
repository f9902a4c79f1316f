"""
Capability adapters for the objects a Context is built from.

Sessions and users come from the host application and may have any shape.
The Context only relies on the small Protocols below; anything that does
not implement them is replaced by the anonymous variant at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Protocol, runtime_checkable


@runtime_checkable
class SessionCapability(Protocol):
    def is_authenticated(self) -> bool:
        ...


@runtime_checkable
class AuthCapability(Protocol):
    def is_anonymous(self) -> bool:
        ...

    def theme_preference(self) -> str:
        ...


# ======= Sessions =======

class AnonymousSession:
    """Session of a visitor who has not signed in."""

    def is_authenticated(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "AnonymousSession()"


@dataclass(frozen=True)
class AuthenticatedSession:
    """Signed-in session; ``data`` is whatever the host stores in it."""
    data: Dict[str, Any] = field(default_factory=dict)

    def is_authenticated(self) -> bool:
        return True


# ======= Users =======

class AnonymousAuth:
    """User object of an anonymous visitor."""

    user_id = None
    display_name = "Anonymous"

    def is_anonymous(self) -> bool:
        return True

    def theme_preference(self) -> str:
        return "light"

    def has_role(self, role: str) -> bool:
        return False

    @property
    def attributes(self) -> Dict[str, Any]:
        return {}

    def __repr__(self) -> str:
        return "AnonymousAuth()"


@dataclass(frozen=True)
class AuthenticatedAuth:
    """Signed-in user backed by a plain mapping (id, name, theme, roles)."""
    user_data: Dict[str, Any] = field(default_factory=dict)

    def is_anonymous(self) -> bool:
        return False

    def theme_preference(self) -> str:
        return self.user_data.get("theme") or "light"

    @property
    def user_id(self) -> Any:
        return self.user_data.get("id")

    @property
    def display_name(self) -> str:
        return self.user_data.get("name") or "User"

    def has_role(self, role: str) -> bool:
        roles: List[Any] = self.user_data.get("roles") or []
        return role in roles or str(role) in [str(r) for r in roles]

    @property
    def attributes(self) -> Dict[str, Any]:
        return dict(self.user_data)


# ======= Requests =======

@dataclass(frozen=True)
class SimpleRequest:
    """Minimal request adapter for framework integration and tests."""
    path: str = "/"
    method: str = "GET"
    ip: str = "127.0.0.1"
    params: Dict[str, Any] = field(default_factory=dict)
    env: Dict[str, Any] = field(default_factory=dict)


# ======= Boundary adapters =======

def adapt_session(session: Any) -> SessionCapability:
    """Returns the session itself when it is usable, else AnonymousSession."""
    if isinstance(session, SessionCapability):
        return session
    return AnonymousSession()


def adapt_auth(auth: Any) -> AuthCapability:
    """Returns the user object itself when it is usable, else AnonymousAuth."""
    if isinstance(auth, AuthCapability):
        return auth
    return AnonymousAuth()


def request_env(request: Any) -> Mapping[str, Any]:
    """Environment mapping of a request, or an empty mapping."""
    if request is None:
        return {}
    env = getattr(request, "env", None)
    return env if isinstance(env, Mapping) else {}


__all__ = [
    "SessionCapability",
    "AuthCapability",
    "AnonymousSession",
    "AuthenticatedSession",
    "AnonymousAuth",
    "AuthenticatedAuth",
    "SimpleRequest",
    "adapt_session",
    "adapt_auth",
    "request_env",
]
