"""Issued session tokens, kept in the session store database."""

from dataclasses import dataclass

from sqlalchemy import BigInteger, Boolean, Index, Integer, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from storefront_auth.core.database import SessionStoreBase

# Stored when the client does not label its device
UNKNOWN_DEVICE = "unknown"


class SessionToken(SessionStoreBase):
    """One row per successful login.

    Times are integer milliseconds since the epoch. expires_at mirrors the
    token's exp claim so live-session queries never need to decode the JWT.
    Only the revoked flag changes after insert.
    """

    __tablename__ = "session_tokens"
    # sqlite_autoincrement: ids of purged rows are never handed out again
    __table_args__ = (
        Index("ix_session_tokens_owner_revoked", "owner_id", "revoked"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    token: Mapped[str] = mapped_column(Text, nullable=False, unique=True, index=True)
    device_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expires_at: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    revoked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    def __repr__(self) -> str:
        return f"<SessionToken {self.id} owner={self.owner_id} device={self.device_id}>"


@dataclass(frozen=True)
class SessionRecord:
    """Read-only snapshot of a session_tokens row."""

    id: int
    owner_id: str
    token: str
    device_id: str | None
    created_at: int
    expires_at: int
    revoked: bool

    @classmethod
    def from_row(cls, row: SessionToken) -> "SessionRecord":
        return cls(
            id=row.id,
            owner_id=row.owner_id,
            token=row.token,
            device_id=row.device_id,
            created_at=row.created_at,
            expires_at=row.expires_at,
            revoked=row.revoked,
        )
