"""Durable bookkeeping of issued session tokens.

The store runs on its own database (SESSION_STORE_URL), separate from the
primary application database, so session churn never contends with
product/order data. Every database failure surfaces as SessionStoreError;
"not found" is only ever reported as None/False/0.

Revocation is eventual: a verify() already in flight when revoke_one()
commits may still observe the row as live.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from storefront_auth.core.clock import Clock, system_clock
from storefront_auth.core.database import SessionStoreBase, create_engine, create_session_factory
from storefront_auth.core.errors import SessionStoreError
from storefront_auth.core.logging import get_logger
from storefront_auth.models.session_token import UNKNOWN_DEVICE, SessionRecord, SessionToken

logger = get_logger("session_store")


class SessionTokenStore:
    """Issue, verify, revoke and purge session token rows."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = system_clock,
        engine: AsyncEngine | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock
        self._engine = engine

    @classmethod
    def from_url(
        cls, url: str, clock: Clock = system_clock, echo: bool = False
    ) -> "SessionTokenStore":
        """Build a store that owns its own engine."""
        engine = create_engine(url, echo=echo)
        return cls(create_session_factory(engine), clock=clock, engine=engine)

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory

    async def init_schema(self) -> None:
        """Create the session_tokens table if it does not exist."""
        if self._engine is None:
            raise RuntimeError("init_schema() needs a store built with an engine")
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(SessionStoreBase.metadata.create_all)
        except SQLAlchemyError as e:
            raise SessionStoreError("Failed to create session store schema") from e
        logger.info("Session store schema ready")

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a session, converting database failures into SessionStoreError."""
        try:
            async with self._session_factory() as db:
                yield db
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Session store {operation} failed: {e}")
            raise SessionStoreError(f"Session store {operation} failed") from e

    async def issue(
        self,
        owner_id: str,
        token: str,
        device_id: str | None,
        created_at: int,
        expires_at: int,
    ) -> int:
        """Insert a new session row and return its id.

        Never upserts: logging in twice from the same device yields two rows.
        """
        if created_at > expires_at:
            raise ValueError("created_at must not be after expires_at")

        row = SessionToken(
            owner_id=owner_id,
            token=token,
            device_id=device_id or UNKNOWN_DEVICE,
            created_at=created_at,
            expires_at=expires_at,
            revoked=False,
        )
        async with self._session("issue") as db:
            db.add(row)
            await db.flush()
            record_id = row.id
            await db.commit()

        logger.debug(f"Session token stored with id {record_id} for owner {owner_id}")
        return record_id

    async def verify(self, token: str, now: int | None = None) -> SessionRecord | None:
        """Return the live row for token, or None.

        Absent, revoked and expired rows all give the same None.
        """
        now = self._clock() if now is None else now
        stmt = select(SessionToken).where(
            SessionToken.token == token,
            SessionToken.revoked.is_(False),
            SessionToken.expires_at > now,
        )
        async with self._session("verify") as db:
            result = await db.execute(stmt)
            row = result.scalar_one_or_none()
            return SessionRecord.from_row(row) if row is not None else None

    async def revoke_one(self, owner_id: str, token: str) -> bool:
        """Revoke the owner's row for token. False if there was nothing to revoke."""
        stmt = (
            update(SessionToken)
            .where(
                SessionToken.owner_id == owner_id,
                SessionToken.token == token,
                SessionToken.revoked.is_(False),
            )
            .values(revoked=True)
        )
        async with self._session("revoke_one") as db:
            result: CursorResult[Any] = await db.execute(stmt)  # type: ignore[assignment]
            await db.commit()

        revoked = result.rowcount > 0
        logger.info(f"Revoke token for owner {owner_id}: revoked={revoked}")
        return revoked

    async def revoke_all(self, owner_id: str) -> int:
        """Revoke every live row of an owner ("log out everywhere")."""
        stmt = (
            update(SessionToken)
            .where(
                SessionToken.owner_id == owner_id,
                SessionToken.revoked.is_(False),
            )
            .values(revoked=True)
        )
        async with self._session("revoke_all") as db:
            result: CursorResult[Any] = await db.execute(stmt)  # type: ignore[assignment]
            await db.commit()

        logger.info(f"Revoked {result.rowcount} tokens for owner {owner_id}")
        return result.rowcount

    async def purge_expired(self, now: int | None = None) -> int:
        """Delete rows with expires_at < now, revoked or not."""
        now = self._clock() if now is None else now
        stmt = delete(SessionToken).where(SessionToken.expires_at < now)
        async with self._session("purge_expired") as db:
            result: CursorResult[Any] = await db.execute(stmt)  # type: ignore[assignment]
            await db.commit()

        deleted_count = result.rowcount
        if deleted_count > 0:
            logger.info(f"Purged {deleted_count} expired session tokens")
        return deleted_count

    async def list_active(self, owner_id: str, now: int | None = None) -> list[SessionRecord]:
        """Live sessions of an owner, newest first."""
        now = self._clock() if now is None else now
        stmt = (
            select(SessionToken)
            .where(
                SessionToken.owner_id == owner_id,
                SessionToken.revoked.is_(False),
                SessionToken.expires_at > now,
            )
            .order_by(SessionToken.created_at.desc(), SessionToken.id.desc())
        )
        async with self._session("list_active") as db:
            result = await db.execute(stmt)
            return [SessionRecord.from_row(row) for row in result.scalars().all()]
