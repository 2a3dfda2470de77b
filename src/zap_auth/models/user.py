# src/zap_auth/models/user.py
"""SQLAlchemy model for user accounts."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from zap_auth.db.session import Base


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


class AccountKind(str, Enum):
    """Which login modes an account supports."""

    CREDENTIAL = "credential"
    WALLET = "wallet"
    LINKED = "linked"


class User(Base):
    """Account authenticated by password, wallet signature, or both.

    A row always carries at least one credential: the CHECK constraint
    rejects accounts with neither a password hash nor a wallet address.
    Build new accounts through :meth:`for_credentials` or :meth:`for_wallet`.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "password_hash IS NOT NULL OR wallet_address IS NOT NULL",
            name="ck_users_has_credential",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    username: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    wallet_address: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    @classmethod
    def for_credentials(cls, username: str, email: str, password_hash: str) -> User:
        """Return a new, unverified email/password account."""
        return cls(
            id=str(uuid.uuid4()),
            username=username,
            email=email,
            password_hash=password_hash,
            is_verified=False,
        )

    @classmethod
    def for_wallet(cls, username: str, wallet_address: str, email: str | None = None) -> User:
        """Return a new wallet-only account."""
        return cls(
            id=str(uuid.uuid4()),
            username=username,
            email=email,
            wallet_address=wallet_address,
            is_verified=False,
        )

    @property
    def account_kind(self) -> AccountKind:
        """Return the login modes available to this account."""
        if self.password_hash is not None and self.wallet_address is not None:
            return AccountKind.LINKED
        if self.wallet_address is not None:
            return AccountKind.WALLET
        return AccountKind.CREDENTIAL
