# src/zap_auth/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .user import (
    MessageResponse,
    ResendOtpRequest,
    SignInRequest,
    SignInResponse,
    SignUpRequest,
    SignUpResponse,
    UserResponse,
    VerifyOtpRequest,
)
from .wallet import (
    ConnectWalletRequest,
    NonceResponse,
    WalletLoginRequest,
    WalletLoginResponse,
    WalletUserResponse,
)

__all__ = [
    "MessageResponse", "ResendOtpRequest", "SignInRequest", "SignInResponse",
    "SignUpRequest", "SignUpResponse", "UserResponse", "VerifyOtpRequest",
    "ConnectWalletRequest", "NonceResponse", "WalletLoginRequest",
    "WalletLoginResponse", "WalletUserResponse",
]
