"""Middleware module for Storefront Auth."""

from storefront_auth.middleware.auth_gate import AuthContext, AuthGate, AuthGateMiddleware

__all__ = [
    "AuthContext",
    "AuthGate",
    "AuthGateMiddleware",
]
