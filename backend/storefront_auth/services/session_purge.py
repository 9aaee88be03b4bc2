"""Session purge service - periodically deletes expired session tokens."""

import asyncio

from storefront_auth.core.config import Settings
from storefront_auth.core.logging import get_logger
from storefront_auth.services.session_store import SessionTokenStore

logger = get_logger("session_purge")

# How often to run the purge (in seconds)
DEFAULT_PURGE_INTERVAL_SECONDS = 3600  # 1 hour

# Delay before the first purge so startup is not slowed down
DEFAULT_INITIAL_DELAY_SECONDS = 60


class SessionPurgeService:
    """Background task that removes expired rows from the session store.

    Runs on its own timer, never inside a request. A purge that is still
    running when the next one is due makes the next one a no-op.
    """

    def __init__(
        self,
        store: SessionTokenStore,
        interval_seconds: float = DEFAULT_PURGE_INTERVAL_SECONDS,
        initial_delay_seconds: float = DEFAULT_INITIAL_DELAY_SECONDS,
    ):
        self._store = store
        self._interval_seconds = interval_seconds
        self._initial_delay_seconds = initial_delay_seconds
        self._running = False
        self._task: asyncio.Task | None = None
        self._purge_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, store: SessionTokenStore) -> "SessionPurgeService":
        return cls(
            store,
            interval_seconds=settings.session_purge_interval_seconds,
            initial_delay_seconds=settings.session_purge_initial_delay_seconds,
        )

    @property
    def running(self) -> bool:
        return self._running

    @property
    def purge_in_progress(self) -> bool:
        return self._purge_lock.locked()

    async def start(self) -> None:
        """Start the background purge task."""
        if self._running:
            logger.warning("Session purge service is already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._purge_loop(), name="session-purge")
        logger.info(
            f"Session purge service started (interval: {self._interval_seconds}s, "
            f"initial delay: {self._initial_delay_seconds}s)"
        )

    async def stop(self) -> None:
        """Stop the background purge task."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Session purge service stopped")

    async def _purge_loop(self) -> None:
        """Main loop that periodically purges expired tokens."""
        await asyncio.sleep(self._initial_delay_seconds)

        while self._running:
            try:
                await self.run_purge_now()
            except Exception as e:
                logger.error(f"Error in session purge: {e}")

            await asyncio.sleep(self._interval_seconds)

    async def run_purge_now(self) -> int | None:
        """Run one purge.

        Returns:
            Number of rows deleted, or None if a purge was already running
        """
        if self._purge_lock.locked():
            logger.debug("Session purge already in progress, skipping")
            return None

        async with self._purge_lock:
            deleted_count = await self._store.purge_expired()

        if deleted_count > 0:
            logger.info(f"Session purge: deleted {deleted_count} expired tokens")
        return deleted_count
