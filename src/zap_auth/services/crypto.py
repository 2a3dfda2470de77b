# src/zap_auth/services/crypto.py
"""Cryptographic services for wallet authentication."""

from __future__ import annotations

import secrets

import base58
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from zap_auth.core.errors import InvalidInputError

PUBKEY_LENGTH_BYTES = 32
SIGNATURE_LENGTH_BYTES = 64
NONCE_BYTES = 32

LOGIN_CHALLENGE_TEMPLATE = "Verify wallet ownership: {wallet_address}\nNonce: {nonce}"
CONNECT_CHALLENGE_TEMPLATE = "Connect wallet to user account: {user_id}\nNonce: {nonce}"


def build_login_message(wallet_address: str, nonce: str) -> str:
    """Return the message a wallet signs to log in or register."""
    return LOGIN_CHALLENGE_TEMPLATE.format(wallet_address=wallet_address, nonce=nonce)


def build_connect_message(user_id: str, nonce: str) -> str:
    """Return the message a wallet signs to be linked to ``user_id``."""
    return CONNECT_CHALLENGE_TEMPLATE.format(user_id=user_id, nonce=nonce)


class CryptoService:
    """Service handling cryptographic operations."""

    @staticmethod
    def _decode_base58(field: str, data: str, expected_length: int) -> bytes:
        """Decode a base58 string and check its decoded length."""
        cleaned = data.strip()
        if not cleaned:
            raise InvalidInputError(f"{field} is required")
        try:
            decoded = base58.b58decode(cleaned)
        except ValueError as err:
            raise InvalidInputError(f"Invalid base58 encoding for {field}") from err
        if len(decoded) != expected_length:
            raise InvalidInputError(f"{field} must decode to {expected_length} bytes")
        return decoded

    @staticmethod
    def decode_wallet_address(wallet_address: str) -> bytes:
        """Validate and decode a base58 Ed25519 public key."""
        return CryptoService._decode_base58(
            "Wallet address", wallet_address, PUBKEY_LENGTH_BYTES
        )

    @staticmethod
    def decode_signature(signature: str) -> bytes:
        """Validate and decode a base58 detached Ed25519 signature."""
        return CryptoService._decode_base58("Signature", signature, SIGNATURE_LENGTH_BYTES)

    @staticmethod
    def verify_signature_bytes(pubkey_bytes: bytes, message: bytes, signature: bytes) -> bool:
        """Verify an Ed25519 signature over raw bytes."""
        try:
            pubkey = Ed25519PublicKey.from_public_bytes(pubkey_bytes)
            pubkey.verify(signature, message)
            return True
        except (InvalidSignature, ValueError):
            return False

    @staticmethod
    def verify_wallet_signature(wallet_address: str, signature: str, message: str) -> bool:
        """Verify a detached signature of ``message`` by a wallet.

        Args:
            wallet_address: Base58-encoded Ed25519 public key.
            signature: Base58-encoded 64-byte detached signature.
            message: Exact challenge text the wallet signed.

        Returns:
            True if the signature is valid for the UTF-8 bytes of ``message``.

        Raises:
            InvalidInputError: If the address or signature is malformed.
        """
        pubkey_bytes = CryptoService.decode_wallet_address(wallet_address)
        signature_bytes = CryptoService.decode_signature(signature)
        return CryptoService.verify_signature_bytes(
            pubkey_bytes, message.encode("utf-8"), signature_bytes
        )

    @staticmethod
    def generate_nonce() -> str:
        """Generate a cryptographically secure nonce.

        Returns:
            Hex-encoded 256-bit nonce
        """
        return secrets.token_hex(NONCE_BYTES)
