# src/zap_auth/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import auth_router, users_router, wallet_router

__all__ = [
    "auth_router",
    "users_router",
    "wallet_router",
]
