"""Customer account model, kept in the primary application database."""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from storefront_auth.core.database import AppBase


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Account(AppBase):
    """A storefront customer who can log in.

    The session store refers to accounts only by id (owner_id); there is no
    foreign key across the two databases.
    """

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Account {self.email}>"


@dataclass(frozen=True)
class Identity:
    """The resolved principal attached to an authenticated request."""

    id: str
    email: str
    display_name: str | None

    @classmethod
    def from_account(cls, account: Account) -> "Identity":
        return cls(id=account.id, email=account.email, display_name=account.display_name)
