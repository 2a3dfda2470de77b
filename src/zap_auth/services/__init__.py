# src/zap_auth/services/__init__.py
"""Business logic services for the Zap Auth service."""

from .credentials import CredentialAuthenticator, SignInResult
from .crypto import CryptoService
from .directory import UserDirectory
from .ephemeral import EphemeralStore, RedisEphemeralStore
from .nonce import NonceManager
from .notifications import LoggingNotifier, Notifier, ResendNotifier
from .otp import OtpManager
from .tokens import TokenClaims, TokenService
from .wallet import WalletAuthenticator, WalletLoginResult

__all__ = [
    "CredentialAuthenticator",
    "CryptoService",
    "EphemeralStore",
    "LoggingNotifier",
    "NonceManager",
    "Notifier",
    "OtpManager",
    "RedisEphemeralStore",
    "ResendNotifier",
    "SignInResult",
    "TokenClaims",
    "TokenService",
    "UserDirectory",
    "WalletAuthenticator",
    "WalletLoginResult",
]
