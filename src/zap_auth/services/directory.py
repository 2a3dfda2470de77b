"""Lookup, insert and update of user accounts."""
from __future__ import annotations

from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from zap_auth.core.errors import InvalidInputError, NotFoundError, UniqueViolationError
from zap_auth.models.user import User

__all__ = ["UserDirectory", "normalize_username", "normalize_email"]

_UPDATABLE_FIELDS = frozenset(
    {"username", "email", "password_hash", "wallet_address", "is_verified"}
)


def normalize_username(username: str) -> str:
    """Return the canonical (trimmed, lower-cased) form of a username."""
    return username.strip().lower()


def normalize_email(email: str) -> str:
    """Return the canonical (trimmed, lower-cased) form of an email address."""
    return email.strip().lower()


class UserDirectory:
    """User store backed by a SQLAlchemy session.

    Uniqueness of username, email and wallet address is enforced by the
    database; a rejected write surfaces as :class:`UniqueViolationError`.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_id(self, user_id: str) -> User | None:
        """Return a single user by primary key."""
        return self._db.query(User).filter(User.id == user_id).first()

    def find_by_username(self, username: str) -> User | None:
        return (
            self._db.query(User)
            .filter(User.username == normalize_username(username))
            .first()
        )

    def find_by_email(self, email: str) -> User | None:
        return self._db.query(User).filter(User.email == normalize_email(email)).first()

    def find_by_wallet_address(self, wallet_address: str) -> User | None:
        return (
            self._db.query(User)
            .filter(User.wallet_address == wallet_address.strip())
            .first()
        )

    def find_by_username_or_email(self, username: str, email: str) -> User | None:
        """Return any user holding either the username or the email."""
        return (
            self._db.query(User)
            .filter(
                or_(
                    User.username == normalize_username(username),
                    User.email == normalize_email(email),
                )
            )
            .first()
        )

    def insert(self, user: User) -> User:
        """Persist a new user.

        Raises:
            UniqueViolationError: If the username, email or wallet address is taken.
        """
        self._db.add(user)
        try:
            self._db.commit()
        except IntegrityError as err:
            self._db.rollback()
            raise UniqueViolationError() from err
        self._db.refresh(user)
        return user

    def update(self, user_id: str, **patch: Any) -> User:
        """Apply a partial update to an existing user and return it.

        Raises:
            InvalidInputError: If the patch names a field that cannot be changed.
            NotFoundError: If no user has ``user_id``.
            UniqueViolationError: If the patch collides with another account.
        """
        unknown = set(patch) - _UPDATABLE_FIELDS
        if unknown:
            raise InvalidInputError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        user = self.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.")

        for key, value in patch.items():
            setattr(user, key, value)
        try:
            self._db.commit()
        except IntegrityError as err:
            self._db.rollback()
            raise UniqueViolationError() from err
        self._db.refresh(user)
        return user
