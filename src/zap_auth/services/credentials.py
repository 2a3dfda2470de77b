"""Email/password sign-up, verification and sign-in."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from zap_auth.core.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from zap_auth.core.security import hash_password, verify_password
from zap_auth.models.user import User
from zap_auth.services.directory import UserDirectory, normalize_email, normalize_username
from zap_auth.services.notifications import Notifier, otp_notification, welcome_notification
from zap_auth.services.otp import OtpManager
from zap_auth.services.tokens import TokenService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."


@dataclass(frozen=True)
class SignInResult:
    """Authenticated user and the session token minted for them."""

    user: User
    access_token: str


class CredentialAuthenticator:
    """Drive the credential flow: Unregistered -> Registered -> Verified."""

    def __init__(
        self,
        directory: UserDirectory,
        otp_manager: OtpManager,
        notifier: Notifier,
        token_service: TokenService,
    ) -> None:
        self._directory = directory
        self._otp = otp_manager
        self._notifier = notifier
        self._tokens = token_service

    def _send_otp(self, user: User, otp: str) -> None:
        if user.email is None:
            logger.warning("User %s has no email; OTP not delivered", user.id)
            return
        if not self._notifier.send(user.email, otp_notification(user.username, otp)):
            logger.warning("OTP email for user %s was not delivered", user.id)

    def sign_up(self, username: str, email: str, password: str) -> User:
        """Register an unverified account and send it a verification code.

        Raises:
            ConflictError: If the username or email is already taken.
            InvalidInputError: If the password cannot be hashed.
        """
        username = normalize_username(username)
        email = normalize_email(email)

        if self._directory.find_by_username_or_email(username, email) is not None:
            raise ConflictError("User already exists.")

        user = User.for_credentials(username, email, hash_password(password))
        # The pre-check is advisory; the unique constraints decide races.
        user = self._directory.insert(user)
        logger.info("Registered user %s", user.id)

        otp = self._otp.issue_otp(user.username)
        self._send_otp(user, otp)
        return user

    def verify_email(self, username: str, code: str) -> User:
        """Consume the one-time code and mark the account verified."""
        username = normalize_username(username)
        self._otp.verify_otp(username, code)

        user = self._directory.find_by_username(username)
        if user is None:
            raise NotFoundError("User not found.")
        user = self._directory.update(user.id, is_verified=True)
        logger.info("Verified user %s", user.id)

        if user.email and not self._notifier.send(
            user.email, welcome_notification(user.username)
        ):
            logger.warning("Welcome email for user %s was not delivered", user.id)
        return user

    def resend_verification(self, username: str) -> None:
        """Issue a fresh code for an account that is still unverified."""
        username = normalize_username(username)
        user = self._directory.find_by_username(username)
        if user is None:
            raise NotFoundError("User not found.")
        if user.is_verified:
            raise InvalidInputError("User is already verified.")

        otp = self._otp.resend_otp(user.username)
        self._send_otp(user, otp)

    def sign_in(self, email: str, password: str) -> SignInResult:
        """Check credentials and mint a session token.

        Raises:
            UnauthorizedError: With the same message whether the account is
                missing, unverified, wallet-only, or the password is wrong.
        """
        user = self._directory.find_by_email(email)
        password_ok = verify_password(password, user.password_hash if user else None)
        if user is None or not password_ok or not user.is_verified:
            raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

        token = self._tokens.issue_token(user.id, user.email, user.username)
        return SignInResult(user=user, access_token=token)
