# src/zap_auth/models/__init__.py
"""SQLAlchemy models for the Zap Auth service."""

from .user import AccountKind, User

__all__ = ["AccountKind", "User"]
