"""Login, logout and refresh flows on top of the codec and the session store."""

from dataclasses import dataclass

from storefront_auth.core.clock import Clock, system_clock
from storefront_auth.core.config import Settings
from storefront_auth.core.errors import SessionIssueError, SessionStoreError
from storefront_auth.core.logging import get_logger
from storefront_auth.core.retry import RetryConfig, retry_async
from storefront_auth.models.session_token import UNKNOWN_DEVICE, SessionRecord
from storefront_auth.services.session_store import SessionTokenStore
from storefront_auth.services.token_codec import TokenCodec

logger = get_logger("session_service")


@dataclass(frozen=True)
class IssuedSession:
    """A signed token together with the row that makes it live."""

    token: str
    record_id: int
    owner_id: str
    device_id: str
    created_at: int
    expires_at: int


class SessionService:
    """Issues and retires sessions.

    A token is only handed out once its row is committed: store write
    failures are retried with backoff and then fail the login, because an
    unpersisted token can never pass the gate.
    """

    def __init__(
        self,
        codec: TokenCodec,
        store: SessionTokenStore,
        retry_config: RetryConfig | None = None,
        clock: Clock = system_clock,
    ):
        self.codec = codec
        self.store = store
        self.retry_config = retry_config or RetryConfig()
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        codec: TokenCodec,
        store: SessionTokenStore,
        clock: Clock = system_clock,
    ) -> "SessionService":
        retry_config = RetryConfig(
            max_retries=settings.session_issue_max_retries,
            base_delay=settings.session_issue_retry_base_delay,
        )
        return cls(codec, store, retry_config=retry_config, clock=clock)

    async def _persist(self, owner_id: str, token: str, device_id: str) -> IssuedSession:
        """Store a freshly signed token, retrying transient store failures."""
        claims = self.codec.decode_unsafe(token) or {}
        created_at = int(claims.get("issued_at", self._clock()))
        expires_at = self.codec.expires_at_ms(claims)

        record_id = await retry_async(
            self.store.issue,
            owner_id,
            token,
            device_id,
            created_at,
            expires_at,
            config=self.retry_config,
        )
        return IssuedSession(
            token=token,
            record_id=record_id,
            owner_id=owner_id,
            device_id=device_id,
            created_at=created_at,
            expires_at=expires_at,
        )

    async def issue_session(
        self,
        owner_id: str,
        device_id: str | None = None,
        ttl_seconds: float | None = None,
    ) -> IssuedSession:
        """Sign a token for owner_id and persist it as a new session row."""
        device = device_id or UNKNOWN_DEVICE
        token = self.codec.sign({"owner_id": owner_id, "device_id": device}, ttl_seconds)

        try:
            session = await self._persist(owner_id, token, device)
        except SessionStoreError as e:
            logger.warning(f"Login for owner {owner_id} failed: session could not be stored")
            raise SessionIssueError("Unable to persist session token") from e

        logger.info(
            f"Issued session {session.record_id} for owner {owner_id} on device {device}",
            extra={"owner_id": owner_id, "device_id": device},
        )
        return session

    async def logout(self, owner_id: str, token: str) -> bool:
        """Revoke the current session."""
        return await self.store.revoke_one(owner_id, token)

    async def logout_everywhere(self, owner_id: str) -> int:
        """Revoke every live session of the owner."""
        return await self.store.revoke_all(owner_id)

    async def list_sessions(self, owner_id: str) -> list[SessionRecord]:
        return await self.store.list_active(owner_id)

    async def refresh_session(self, owner_id: str, token: str) -> tuple[IssuedSession, bool] | None:
        """Swap a near-expiry token for a new one.

        Returns (session, refreshed), or None when the token is not a live
        session of owner_id. A new token is persisted as its own row so it
        can be revoked independently; the old row is left to expire.
        """
        claims = self.codec.verify(token)
        if claims is None or claims.get("owner_id") != owner_id:
            return None

        record = await self.store.verify(token)
        if record is None:
            return None

        new_token = self.codec.refresh(token)
        if new_token is None:
            return None

        if new_token == token:
            current = IssuedSession(
                token=token,
                record_id=record.id,
                owner_id=owner_id,
                device_id=record.device_id or UNKNOWN_DEVICE,
                created_at=record.created_at,
                expires_at=record.expires_at,
            )
            return current, False

        try:
            session = await self._persist(owner_id, new_token, record.device_id or UNKNOWN_DEVICE)
        except SessionStoreError as e:
            logger.warning(f"Refresh for owner {owner_id} failed: session could not be stored")
            raise SessionIssueError("Unable to persist refreshed session token") from e

        logger.info(
            f"Refreshed session {record.id} for owner {owner_id}: new session {session.record_id}"
        )
        return session, True
