"""Wallet signature login, registration and account linking."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from zap_auth.core.errors import (
    ChallengeNotFoundError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from zap_auth.models.user import User
from zap_auth.services.crypto import CryptoService, build_connect_message, build_login_message
from zap_auth.services.directory import UserDirectory, normalize_email, normalize_username
from zap_auth.services.nonce import NonceManager
from zap_auth.services.tokens import TokenService

logger = logging.getLogger(__name__)

INVALID_SIGNATURE_MESSAGE = "Invalid signature"
NONCE_ALREADY_USED_MESSAGE = "Nonce has already been used. Please request a new one."


@dataclass(frozen=True)
class WalletLoginResult:
    """Outcome of a wallet login: the account, whether it is new, and a token."""

    user: User
    created: bool
    access_token: str


class WalletAuthenticator:
    """Nonce-backed wallet flows plus the signed-header capability check."""

    def __init__(
        self,
        directory: UserDirectory,
        nonce_manager: NonceManager,
        token_service: TokenService,
        crypto_service: CryptoService | None = None,
    ) -> None:
        self._directory = directory
        self._nonces = nonce_manager
        self._tokens = token_service
        self._crypto = crypto_service or CryptoService()

    def request_nonce(self, wallet_address: str) -> str:
        """Issue a nonce for a well-formed wallet address."""
        wallet_address = wallet_address.strip()
        self._crypto.decode_wallet_address(wallet_address)
        return self._nonces.issue_nonce(wallet_address)

    def get_user_by_wallet(self, wallet_address: str) -> User:
        if not wallet_address.strip():
            raise InvalidInputError("Wallet address is required")
        user = self._directory.find_by_wallet_address(wallet_address)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _identity_taken(self, username: str, email: str | None) -> bool:
        if email is None:
            return self._directory.find_by_username(username) is not None
        return self._directory.find_by_username_or_email(username, email) is not None

    def _verify_challenge(self, wallet_address: str, signature: str, message: str) -> None:
        if not self._crypto.verify_wallet_signature(wallet_address, signature, message):
            raise UnauthorizedError(INVALID_SIGNATURE_MESSAGE)

    def login_with_wallet(
        self,
        wallet_address: str,
        signature: str,
        username: str | None = None,
        email: str | None = None,
    ) -> WalletLoginResult:
        """Authenticate a wallet, registering it on first login.

        The nonce survives a bad signature, a missing username or a taken
        username or email so the client can retry; it is retired only once
        everything checks out.

        Raises:
            InvalidInputError: Malformed address/signature, or a username is
                needed to register an unknown wallet.
            ChallengeNotFoundError: No live nonce, or it was already used.
            ChallengeExpiredError: The nonce outlived its TTL.
            UnauthorizedError: The signature does not match the challenge.
            ConflictError: The username or email belongs to another account.
        """
        wallet_address = wallet_address.strip()
        challenge = self._nonces.consume_nonce(wallet_address)
        self._verify_challenge(
            wallet_address, signature, build_login_message(wallet_address, challenge.value)
        )

        user = self._directory.find_by_wallet_address(wallet_address)
        new_user: User | None = None
        if user is None:
            if not username or not username.strip():
                raise InvalidInputError("Username is required for registration")
            new_user = User.for_wallet(
                normalize_username(username),
                wallet_address,
                email=normalize_email(email) if email else None,
            )
            # Advisory only; the unique constraints decide races on insert.
            if self._identity_taken(new_user.username, new_user.email):
                raise ConflictError("User already exists.")

        if not self._nonces.retire_nonce(wallet_address, challenge):
            raise ChallengeNotFoundError(NONCE_ALREADY_USED_MESSAGE)

        created = new_user is not None
        if new_user is not None:
            user = self._directory.insert(new_user)
            logger.info("Registered wallet user %s", user.id)

        token = self._tokens.issue_token(user.id, user.email, user.username)
        return WalletLoginResult(user=user, created=created, access_token=token)

    def connect_wallet(self, user: User, wallet_address: str, signature: str) -> User:
        """Link a wallet to an authenticated account.

        Raises:
            ConflictError: The wallet is already linked to a different account.
        """
        wallet_address = wallet_address.strip()
        challenge = self._nonces.consume_nonce(wallet_address)
        self._verify_challenge(
            wallet_address, signature, build_connect_message(user.id, challenge.value)
        )

        owner = self._directory.find_by_wallet_address(wallet_address)
        if owner is not None and owner.id != user.id:
            raise ConflictError("Wallet is already linked to another account")

        if not self._nonces.retire_nonce(wallet_address, challenge):
            raise ChallengeNotFoundError(NONCE_ALREADY_USED_MESSAGE)

        updated = self._directory.update(user.id, wallet_address=wallet_address)
        logger.info("Linked wallet to user %s", updated.id)
        return updated

    def authenticate_signed_request(
        self,
        wallet_address: str | None,
        signature: str | None,
        message: str | None,
    ) -> User:
        """Check an out-of-band signed message from a registered wallet.

        No server-held nonce is involved, so a captured
        (address, signature, message) triple can be replayed. Use only for
        capability checks; logins go through :meth:`login_with_wallet`.
        """
        if not wallet_address or not signature or not message:
            raise UnauthorizedError(
                "Authentication required: wallet address, signature, and message are required"
            )

        user = self._directory.find_by_wallet_address(wallet_address)
        if user is None:
            raise UnauthorizedError(INVALID_SIGNATURE_MESSAGE)

        try:
            valid = self._crypto.verify_wallet_signature(wallet_address, signature, message)
        except InvalidInputError as err:
            raise UnauthorizedError(INVALID_SIGNATURE_MESSAGE) from err
        if not valid:
            raise UnauthorizedError(INVALID_SIGNATURE_MESSAGE)
        return user
