"""Pydantic schemas for the session authentication API."""

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Request for login."""

    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=128)
    device_id: str | None = Field(
        None,
        max_length=255,
        description="Client-chosen label for this device; 'unknown' when omitted",
    )


class TokenResponse(BaseModel):
    """A session token for the client to send as a bearer credential."""

    token: str
    token_type: str = "bearer"
    expires_at: int = Field(description="Expiry in milliseconds since the epoch")
    device_id: str


class RefreshResponse(TokenResponse):
    """Response for token refresh."""

    refreshed: bool = Field(description="False when the current token was not yet due for renewal")


class LogoutResponse(BaseModel):
    """Response for logging out the current session."""

    message: str
    revoked: bool


class LogoutAllResponse(BaseModel):
    """Response for logging out every session."""

    message: str
    revoked: int = Field(description="Number of sessions revoked")


class SessionResponse(BaseModel):
    """One live session; the token itself is never listed."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    device_id: str | None
    created_at: int
    expires_at: int
    current: bool = False


class IdentityResponse(BaseModel):
    """Response with the authenticated identity."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    display_name: str | None


class HealthResponse(BaseModel):
    """Response for health check."""

    status: str
    session_store: str
