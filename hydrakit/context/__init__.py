"""
Request-scoped rendering context and its capability adapters.
"""

from __future__ import annotations

from .adapters import (
    AnonymousAuth, AnonymousSession, AuthCapability, AuthenticatedAuth,
    AuthenticatedSession, SessionCapability, SimpleRequest, adapt_auth, adapt_session,
)
from .context import Context, generate_nonce, normalize_keys, parse_accept_language

__all__ = [
    "Context",
    "normalize_keys",
    "parse_accept_language",
    "generate_nonce",
    "SessionCapability",
    "AuthCapability",
    "AnonymousSession",
    "AuthenticatedSession",
    "AnonymousAuth",
    "AuthenticatedAuth",
    "SimpleRequest",
    "adapt_session",
    "adapt_auth",
]
