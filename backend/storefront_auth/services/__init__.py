# Storefront Auth Services
from storefront_auth.services.identity import AccountDirectory, IdentityLookup
from storefront_auth.services.session_purge import SessionPurgeService
from storefront_auth.services.session_service import IssuedSession, SessionService
from storefront_auth.services.session_store import SessionTokenStore
from storefront_auth.services.token_codec import TokenCodec

__all__ = [
    "AccountDirectory",
    "IdentityLookup",
    "IssuedSession",
    "SessionPurgeService",
    "SessionService",
    "SessionTokenStore",
    "TokenCodec",
]
