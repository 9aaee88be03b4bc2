"""Account lookups and credential checks for the login flow and auth gate."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from storefront_auth.core.database import AppBase, create_engine, create_session_factory
from storefront_auth.core.errors import (
    AccountExistsError,
    AccountInactiveError,
    IdentityStoreError,
    InvalidCredentialsError,
)
from storefront_auth.core.logging import get_logger
from storefront_auth.models.account import Account, Identity

logger = get_logger("identity")

# Argon2 password hasher with recommended parameters
# Memory: 64 MiB, Time: 3 iterations, Parallelism: 4
ph = PasswordHasher(
    time_cost=3,
    memory_cost=65536,
    parallelism=4,
    hash_len=32,
    salt_len=16,
)

# Verified against on unknown emails so both failure paths cost the same
_DUMMY_HASH = ph.hash("storefront-dummy-password")


def hash_password(password: str) -> str:
    """Hash a password using Argon2id."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash using constant-time comparison."""
    try:
        ph.verify(password_hash, password)
        return True
    except VerifyMismatchError:
        return False
    except (VerificationError, InvalidHashError) as e:
        logger.warning(f"Password verification failed on a malformed hash: {e}")
        return False


class IdentityLookup(Protocol):
    """What the auth gate needs from the identity store."""

    async def find_identity_by_id(self, owner_id: str) -> Identity | None: ...


class AccountDirectory:
    """Accounts in the primary application database."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: AsyncEngine | None = None,
    ):
        self._session_factory = session_factory
        self._engine = engine

    @classmethod
    def from_url(cls, url: str, echo: bool = False) -> "AccountDirectory":
        engine = create_engine(url, echo=echo)
        return cls(create_session_factory(engine), engine=engine)

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory

    async def init_schema(self) -> None:
        """Create the accounts table if it does not exist."""
        if self._engine is None:
            raise RuntimeError("init_schema() needs a directory built with an engine")
        async with self._engine.begin() as conn:
            await conn.run_sync(AppBase.metadata.create_all)

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a session; database faults become IdentityStoreError."""
        try:
            async with self._session_factory() as db:
                yield db
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Account {operation} failed: {e}")
            raise IdentityStoreError(f"Account {operation} failed") from e

    async def _get_by_email(self, db: AsyncSession, email: str) -> Account | None:
        result = await db.execute(select(Account).where(Account.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def create_account(
        self,
        email: str,
        password: str,
        display_name: str | None = None,
    ) -> Identity:
        """Create an active account and return its identity."""
        account = Account(
            email=email.strip().lower(),
            password_hash=hash_password(password),
            display_name=display_name,
            is_active=True,
        )
        async with self._session("create") as db:
            db.add(account)
            try:
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                raise AccountExistsError(f"Account already exists: {email}") from e
            identity = Identity.from_account(account)

        logger.info(f"Created account: {identity.email}")
        return identity

    async def authenticate(self, email: str, password: str) -> Identity:
        """Check credentials and return the account's identity.

        Raises InvalidCredentialsError for both "no such email" and
        "wrong password" to prevent account enumeration.
        """
        async with self._session("lookup") as db:
            account = await self._get_by_email(db, email)

        if account is None:
            verify_password(password, _DUMMY_HASH)
            raise InvalidCredentialsError("Invalid email or password")

        if not verify_password(password, account.password_hash):
            raise InvalidCredentialsError("Invalid email or password")

        if not account.is_active:
            raise AccountInactiveError("Account is deactivated")

        return Identity.from_account(account)

    async def find_identity_by_id(self, owner_id: str) -> Identity | None:
        """Resolve an active account by id; deactivated accounts do not resolve."""
        async with self._session("lookup") as db:
            result = await db.execute(
                select(Account).where(Account.id == owner_id, Account.is_active.is_(True))
            )
            account = result.scalar_one_or_none()
        return Identity.from_account(account) if account is not None else None

    async def deactivate(self, owner_id: str) -> bool:
        """Deactivate an account. Its live tokens stop passing the gate."""
        async with self._session("deactivate") as db:
            account = await db.get(Account, owner_id)
            if account is None:
                return False
            account.is_active = False
            await db.commit()
        logger.info(f"Deactivated account: {owner_id}")
        return True
