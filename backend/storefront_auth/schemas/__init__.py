# Storefront Auth Schemas
from storefront_auth.schemas.auth import (
    HealthResponse,
    IdentityResponse,
    LoginRequest,
    LogoutAllResponse,
    LogoutResponse,
    RefreshResponse,
    SessionResponse,
    TokenResponse,
)

__all__ = [
    "HealthResponse",
    "IdentityResponse",
    "LoginRequest",
    "LogoutAllResponse",
    "LogoutResponse",
    "RefreshResponse",
    "SessionResponse",
    "TokenResponse",
]
