"""Bearer-token authentication gate for protected routes.

Every protected request passes through AuthGate.authenticate():

    header present? -> signature valid? -> live session row? -> identity exists?

Any "no" ends the request. Signature failures never reach the session store,
and storage faults are reported as 503, not as an invalid token.
"""

import asyncio
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

from storefront_auth.core.errors import (
    AuthBackendError,
    AuthenticationError,
    AuthenticationRequiredError,
    IdentityNotFoundError,
    InvalidSessionError,
    SessionStoreError,
)
from storefront_auth.core.logging import get_logger
from storefront_auth.models.account import Identity
from storefront_auth.services.identity import IdentityLookup
from storefront_auth.services.session_store import SessionTokenStore
from storefront_auth.services.token_codec import TokenCodec

logger = get_logger("auth_gate")

T = TypeVar("T")

BEARER_PREFIX = "Bearer "

DEFAULT_LOOKUP_TIMEOUT_SECONDS = 5.0

# Path prefixes that require a session (segment-boundary match)
DEFAULT_PROTECTED_PATHS = ("/auth", "/api")

# Paths under a protected prefix that stay open
DEFAULT_EXCLUDED_PATHS = ("/auth/login",)


@dataclass(frozen=True)
class AuthContext:
    """A fully resolved caller: identity, raw token and its claims."""

    identity: Identity
    token: str
    claims: dict[str, Any] = field(default_factory=dict)


def extract_bearer_token(authorization: str | None) -> str | None:
    """Token from an "Authorization: Bearer <token>" value, or None if malformed."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX) :]
    # Exactly one token after "Bearer ", with no surrounding or embedded whitespace
    if not token or any(ch.isspace() for ch in token):
        return None
    return token


class AuthGate:
    """Resolves a bearer credential to an identity or raises AuthenticationError.

    Holds no per-request state and takes no locks; the session store is
    the only serialization point.
    """

    def __init__(
        self,
        codec: TokenCodec,
        store: SessionTokenStore,
        identities: IdentityLookup,
        lookup_timeout_seconds: float = DEFAULT_LOOKUP_TIMEOUT_SECONDS,
    ):
        self.codec = codec
        self.store = store
        self.identities = identities
        self.lookup_timeout_seconds = lookup_timeout_seconds

    async def _bounded(self, operation: str, awaitable: Awaitable[T]) -> T:
        """Await a store or identity lookup, turning faults into AuthBackendError."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.lookup_timeout_seconds)
        except TimeoutError as e:
            logger.error(f"{operation} timed out after {self.lookup_timeout_seconds}s")
            raise AuthBackendError(f"{operation} timed out") from e
        except SessionStoreError as e:
            logger.error(f"{operation} failed: {e}")
            raise AuthBackendError(f"{operation} failed") from e
        except Exception as e:
            logger.exception(f"{operation} failed unexpectedly: {e}")
            raise AuthBackendError(f"{operation} failed") from e

    async def authenticate(self, authorization: str | None) -> AuthContext:
        token = extract_bearer_token(authorization)
        if token is None:
            raise AuthenticationRequiredError("Missing or malformed Authorization header")

        claims = self.codec.verify(token)
        if claims is None:
            logger.debug("Rejected token: signature invalid or token expired")
            raise InvalidSessionError("Token failed signature verification")

        record = await self._bounded("Session store lookup", self.store.verify(token))
        if record is None:
            logger.debug("Rejected token: no live session")
            raise InvalidSessionError("No live session for token")

        identity = await self._bounded(
            "Identity lookup", self.identities.find_identity_by_id(record.owner_id)
        )
        if identity is None:
            logger.warning(f"Live session {record.id} belongs to missing owner {record.owner_id}")
            raise IdentityNotFoundError(f"Owner {record.owner_id} not found")

        return AuthContext(identity=identity, token=token, claims=claims)


def _path_matches(path: str, prefixes: Sequence[str]) -> bool:
    """Exact or segment-boundary match: /auth matches /auth/me, not /authx."""
    return any(path == prefix or path.startswith(prefix + "/") for prefix in prefixes)


def rejection_response(error: AuthenticationError | AuthBackendError) -> JSONResponse:
    """Client-facing response for a gate failure."""
    if isinstance(error, AuthBackendError):
        return JSONResponse(status_code=503, content={"detail": error.detail})
    return JSONResponse(
        status_code=401,
        content={"detail": error.detail},
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthGateMiddleware(BaseHTTPMiddleware):
    """Middleware that authenticates protected paths using the AuthGate.

    On success request.state carries identity, token and token_claims.
    """

    def __init__(
        self,
        app: ASGIApp,
        gate: AuthGate,
        protected_paths: Sequence[str] = DEFAULT_PROTECTED_PATHS,
        excluded_paths: Sequence[str] = DEFAULT_EXCLUDED_PATHS,
    ):
        super().__init__(app)
        self.gate = gate
        self.protected_paths = tuple(protected_paths)
        self.excluded_paths = tuple(excluded_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path

        # CORS preflight is handled by CORSMiddleware
        if request.method == "OPTIONS":
            return await call_next(request)

        if _path_matches(path, self.excluded_paths):
            return await call_next(request)

        if not _path_matches(path, self.protected_paths):
            return await call_next(request)

        try:
            context = await self.gate.authenticate(request.headers.get("Authorization"))
        except AuthenticationError as e:
            logger.debug(f"Auth rejected for {request.method} {path}: {e}")
            return rejection_response(e)
        except AuthBackendError as e:
            logger.error(f"Auth backend unavailable for {request.method} {path}: {e}")
            return rejection_response(e)

        request.state.identity = context.identity
        request.state.token = context.token
        request.state.token_claims = context.claims
        return await call_next(request)
