"""FastAPI dependencies shared by the routers."""

from fastapi import HTTPException, Request, status

from storefront_auth.container import AuthContainer
from storefront_auth.middleware.auth_gate import AuthContext
from storefront_auth.models.account import Identity
from storefront_auth.services.identity import AccountDirectory
from storefront_auth.services.session_service import SessionService


def get_container(request: Request) -> AuthContainer:
    return request.app.state.container


def get_session_service(request: Request) -> SessionService:
    return get_container(request).sessions


def get_account_directory(request: Request) -> AccountDirectory:
    return get_container(request).accounts


def get_auth_context(request: Request) -> AuthContext:
    """The context attached by AuthGateMiddleware.

    A route that is reachable without passing the gate gets a 401 instead
    of a half-populated identity.
    """
    identity = getattr(request.state, "identity", None)
    token = getattr(request.state, "token", None)
    if identity is None or token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AuthContext(
        identity=identity,
        token=token,
        claims=getattr(request.state, "token_claims", None) or {},
    )


def get_current_identity(request: Request) -> Identity:
    return get_auth_context(request).identity
