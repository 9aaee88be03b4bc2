"""Explicit wiring of the session authentication components.

Everything is built from one Settings object at process start and handed
to the app; nothing lives in module globals.
"""

from storefront_auth.core.clock import Clock, system_clock
from storefront_auth.core.config import Settings
from storefront_auth.core.logging import get_logger
from storefront_auth.middleware.auth_gate import AuthGate
from storefront_auth.services.identity import AccountDirectory
from storefront_auth.services.session_purge import SessionPurgeService
from storefront_auth.services.session_service import SessionService
from storefront_auth.services.session_store import SessionTokenStore
from storefront_auth.services.token_codec import TokenCodec

logger = get_logger("container")


class AuthContainer:
    """Holds the codec, stores, services and gate for one process."""

    def __init__(
        self,
        settings: Settings,
        codec: TokenCodec,
        store: SessionTokenStore,
        accounts: AccountDirectory,
        sessions: SessionService,
        gate: AuthGate,
        purge: SessionPurgeService,
    ):
        self.settings = settings
        self.codec = codec
        self.store = store
        self.accounts = accounts
        self.sessions = sessions
        self.gate = gate
        self.purge = purge

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = system_clock) -> "AuthContainer":
        echo = settings.debug and settings.log_level == "DEBUG"
        codec = TokenCodec.from_settings(settings, clock=clock)
        store = SessionTokenStore.from_url(settings.session_store_url, clock=clock, echo=echo)
        accounts = AccountDirectory.from_url(settings.database_url, echo=echo)
        sessions = SessionService.from_settings(settings, codec, store, clock=clock)
        gate = AuthGate(
            codec,
            store,
            accounts,
            lookup_timeout_seconds=settings.auth_lookup_timeout_seconds,
        )
        purge = SessionPurgeService.from_settings(settings, store)
        return cls(settings, codec, store, accounts, sessions, gate, purge)

    async def init_schema(self) -> None:
        """Create the accounts and session_tokens tables in their databases."""
        await self.accounts.init_schema()
        await self.store.init_schema()

    async def startup(self, start_purge: bool = True) -> None:
        await self.init_schema()
        if start_purge:
            await self.purge.start()

    async def shutdown(self) -> None:
        await self.purge.stop()
        await self.store.dispose()
        await self.accounts.dispose()
        logger.info("Closed session store and application database connections")
