"""Stateless signing and verification of session tokens (HMAC JWT).

The codec knows nothing about the session store. A token that passes
verify() here is only signature-valid and unexpired; the session store
decides whether it is still live.
"""

import math
import secrets
from collections.abc import Mapping
from typing import Any

import jwt
from jwt.exceptions import PyJWTError

from storefront_auth.core.clock import Clock, system_clock
from storefront_auth.core.config import SECONDS_PER_DAY, Settings
from storefront_auth.core.logging import get_logger

logger = get_logger("token_codec")

DEFAULT_TTL_SECONDS = 7 * SECONDS_PER_DAY
DEFAULT_REFRESH_THRESHOLD_SECONDS = SECONDS_PER_DAY


class TokenCodec:
    """Signs claim sets into compact JWTs and verifies them.

    All times come from the injected clock (milliseconds since the epoch),
    so expiry can be tested without sleeping.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        issuer: str = "storefront",
        default_ttl_seconds: int = DEFAULT_TTL_SECONDS,
        refresh_threshold_seconds: int = DEFAULT_REFRESH_THRESHOLD_SECONDS,
        clock: Clock = system_clock,
    ):
        if not secret:
            raise ValueError("A signing secret is required")
        self._secret = secret
        self._algorithm = algorithm
        self.issuer = issuer
        self.default_ttl_seconds = default_ttl_seconds
        self.refresh_threshold_seconds = refresh_threshold_seconds
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = system_clock) -> "TokenCodec":
        return cls(
            secret=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            issuer=settings.jwt_issuer,
            default_ttl_seconds=settings.token_ttl_seconds,
            refresh_threshold_seconds=settings.token_refresh_threshold_seconds,
            clock=clock,
        )

    def sign(self, claims: Mapping[str, Any], ttl_seconds: float | None = None) -> str:
        """Sign claims into a token that expires ttl_seconds from now.

        claims must carry owner_id and may carry device_id. The token also
        gets issued_at (ms), iat/exp (s), iss and a random jti, so two
        logins in the same millisecond still yield distinct tokens.
        """
        owner_id = claims.get("owner_id")
        if not owner_id:
            raise ValueError("claims must include owner_id")

        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValueError("ttl_seconds must be positive")

        now_ms = self._clock()
        # Round up: a sub-millisecond ttl still yields a token that is live when issued
        expires_ms = now_ms + math.ceil(ttl * 1000)

        payload = dict(claims)
        payload.update(
            {
                "owner_id": str(owner_id),
                "device_id": claims.get("device_id"),
                "issued_at": now_ms,
                "iat": now_ms // 1000,
                # Round up: exp * 1000 never lands before issued_at + ttl
                "exp": -(-expires_ms // 1000),
                "iss": self.issuer,
                "jti": secrets.token_hex(16),
            }
        )
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        return str(token)

    def verify(self, token: str) -> dict[str, Any] | None:
        """Return the claims of a well-signed, unexpired token, else None.

        Never raises. Expiry is checked against the injected clock with no
        grace period.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self.issuer,
                options={
                    # exp and iat are checked below against our own clock
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": ["exp", "iat", "iss", "jti"],
                },
            )
        except PyJWTError as e:
            logger.debug(f"Token rejected by codec: {e}")
            return None
        except (TypeError, ValueError) as e:
            logger.debug(f"Malformed token: {e}")
            return None

        if not payload.get("owner_id"):
            logger.debug("Token rejected by codec: missing owner_id")
            return None

        try:
            expires_ms = self.expires_at_ms(payload)
        except (TypeError, ValueError):
            logger.debug("Token rejected by codec: non-numeric exp")
            return None

        if self._clock() >= expires_ms:
            logger.debug("Token rejected by codec: expired")
            return None

        return payload

    def decode_unsafe(self, token: str) -> dict[str, Any] | None:
        """Read claims WITHOUT checking the signature or expiry.

        Only for display and refresh-horizon decisions; never use the
        result to authorize anything.
        """
        try:
            return jwt.decode(token, options={"verify_signature": False})
        except (PyJWTError, TypeError, ValueError):
            return None

    def refresh(self, token: str) -> str | None:
        """Re-sign a token that is close to expiry.

        Returns None for an invalid token, a new token with the same
        owner/device and a fresh default TTL when less than the refresh
        threshold remains, or the original token otherwise. Persisting a
        new token is the caller's job.
        """
        claims = self.verify(token)
        if claims is None:
            return None

        remaining_ms = self.expires_at_ms(claims) - self._clock()
        if remaining_ms < self.refresh_threshold_seconds * 1000:
            return self.sign(
                {"owner_id": claims["owner_id"], "device_id": claims.get("device_id")}
            )

        return token

    @staticmethod
    def expires_at_ms(claims: Mapping[str, Any]) -> int:
        """The exp claim in milliseconds since the epoch."""
        return int(claims["exp"]) * 1000
