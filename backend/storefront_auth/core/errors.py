"""Exception hierarchy for the session authentication service."""


class SessionAuthError(Exception):
    """Base error for the session authentication service."""

    pass


# --- Gate rejections ---


class AuthenticationError(SessionAuthError):
    """A request could not be authenticated."""

    detail = "Authentication failed"


class AuthenticationRequiredError(AuthenticationError):
    """Missing or malformed Authorization header."""

    detail = "Authentication required"


class InvalidSessionError(AuthenticationError):
    """Bad signature, or no live session row for the token.

    The two causes share one message so callers cannot tell them apart.
    """

    detail = "Invalid or expired token"


class IdentityNotFoundError(AuthenticationError):
    """The token is live but its owner no longer resolves."""

    detail = "User not found"


class AuthBackendError(SessionAuthError):
    """The session store or identity lookup failed or timed out."""

    detail = "Authentication service unavailable"


# --- Session store ---


class SessionStoreError(SessionAuthError):
    """The session token database failed."""

    pass


class SessionIssueError(SessionStoreError):
    """A signed token could not be persisted, even after retries."""

    pass


# --- Identity directory ---


class IdentityError(SessionAuthError):
    """Base error for account operations."""

    pass


class InvalidCredentialsError(IdentityError):
    """Unknown email or wrong password."""

    pass


class AccountInactiveError(IdentityError):
    """Account is deactivated."""

    pass


class AccountExistsError(IdentityError):
    """An account with this email already exists."""

    pass


class IdentityStoreError(IdentityError):
    """The accounts database failed."""

    pass
