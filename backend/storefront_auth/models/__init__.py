# Storefront Auth Models
from storefront_auth.models.account import Account, Identity
from storefront_auth.models.session_token import UNKNOWN_DEVICE, SessionRecord, SessionToken

__all__ = [
    "Account",
    "Identity",
    "SessionRecord",
    "SessionToken",
    "UNKNOWN_DEVICE",
]
