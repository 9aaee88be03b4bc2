"""Session authentication API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from storefront_auth.api.deps import (
    get_account_directory,
    get_auth_context,
    get_current_identity,
    get_session_service,
)
from storefront_auth.core.errors import (
    AccountInactiveError,
    IdentityStoreError,
    InvalidCredentialsError,
    SessionIssueError,
    SessionStoreError,
)
from storefront_auth.middleware.auth_gate import AuthContext
from storefront_auth.models.account import Identity
from storefront_auth.schemas.auth import (
    IdentityResponse,
    LoginRequest,
    LogoutAllResponse,
    LogoutResponse,
    RefreshResponse,
    SessionResponse,
    TokenResponse,
)
from storefront_auth.services.identity import AccountDirectory
from storefront_auth.services.session_service import SessionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _store_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Session store unavailable",
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    accounts: AccountDirectory = Depends(get_account_directory),
    sessions: SessionService = Depends(get_session_service),
) -> TokenResponse:
    """Check credentials and issue a session token.

    Every login creates a new session, even for a device that already has one.
    """
    try:
        identity = await accounts.authenticate(request.email, request.password)
    except (InvalidCredentialsError, AccountInactiveError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        ) from e
    except IdentityStoreError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        ) from e

    try:
        session = await sessions.issue_session(identity.id, request.device_id)
    except SessionIssueError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Unable to create session",
        ) from e

    logger.info(f"User logged in: {identity.email} (device: {session.device_id})")
    return TokenResponse(
        token=session.token,
        expires_at=session.expires_at,
        device_id=session.device_id,
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    context: AuthContext = Depends(get_auth_context),
    sessions: SessionService = Depends(get_session_service),
) -> LogoutResponse:
    """Revoke the session behind the current bearer token."""
    try:
        revoked = await sessions.logout(context.identity.id, context.token)
    except SessionStoreError as e:
        raise _store_unavailable() from e
    logger.info(f"User logged out: {context.identity.email}")
    return LogoutResponse(message="Logged out successfully", revoked=revoked)


@router.post("/logout-all", response_model=LogoutAllResponse)
async def logout_all(
    identity: Identity = Depends(get_current_identity),
    sessions: SessionService = Depends(get_session_service),
) -> LogoutAllResponse:
    """Revoke every session of the current user, including this one."""
    try:
        count = await sessions.logout_everywhere(identity.id)
    except SessionStoreError as e:
        raise _store_unavailable() from e
    logger.info(f"User logged out everywhere: {identity.email} ({count} sessions)")
    return LogoutAllResponse(message="Logged out of all sessions", revoked=count)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(
    context: AuthContext = Depends(get_auth_context),
    sessions: SessionService = Depends(get_session_service),
) -> RefreshResponse:
    """Renew the current token if it is close to expiry.

    The new token is a separate session; the current one stays valid until
    it expires or is revoked.
    """
    try:
        result = await sessions.refresh_session(context.identity.id, context.token)
    except SessionIssueError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Unable to create session",
        ) from e
    except SessionStoreError as e:
        raise _store_unavailable() from e

    if result is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    session, refreshed = result
    return RefreshResponse(
        token=session.token,
        expires_at=session.expires_at,
        device_id=session.device_id,
        refreshed=refreshed,
    )


@router.get("/sessions", response_model=list[SessionResponse])
async def list_sessions(
    context: AuthContext = Depends(get_auth_context),
    sessions: SessionService = Depends(get_session_service),
) -> list[SessionResponse]:
    """List the current user's live sessions (devices)."""
    try:
        records = await sessions.list_sessions(context.identity.id)
    except SessionStoreError as e:
        raise _store_unavailable() from e
    return [
        SessionResponse(
            id=record.id,
            device_id=record.device_id,
            created_at=record.created_at,
            expires_at=record.expires_at,
            current=record.token == context.token,
        )
        for record in records
    ]


@router.get("/me", response_model=IdentityResponse)
async def get_current_user_info(
    identity: Identity = Depends(get_current_identity),
) -> IdentityResponse:
    """Get the current user's information."""
    return IdentityResponse.model_validate(identity)
