"""Numeric one-time codes for email verification.

Six decimal digits carry roughly 20 bits of entropy, so a code is only as
strong as its short lifetime. Codes are drawn from :mod:`secrets` anyway, and
resends are throttled and wrong guesses are capped per identity.
"""

from __future__ import annotations

import hmac
import secrets
import string
import time
from collections.abc import Callable
from typing import Final, NoReturn

from zap_auth.core.errors import (
    ChallengeExpiredError,
    ChallengeNotFoundError,
    InvalidInputError,
    OtpMismatchError,
    RateLimitedError,
)
from zap_auth.core.settings import settings
from zap_auth.services.ephemeral import EphemeralStore, StoredChallenge

OTP_KEY_PREFIX: Final[str] = "otp:"
OTP_COOLDOWN_KEY_PREFIX: Final[str] = "otp-cooldown:"
OTP_ATTEMPTS_KEY_PREFIX: Final[str] = "otp-attempts:"

TOO_MANY_ATTEMPTS_MESSAGE = "Too many invalid attempts. Please request a new OTP."


class OtpManager:
    """Issue, resend and verify one-time codes keyed by user identity."""

    def __init__(
        self,
        store: EphemeralStore,
        *,
        length: int | None = None,
        ttl_seconds: int | None = None,
        resend_cooldown_seconds: int | None = None,
        max_attempts: int | None = None,
        grace_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self.length = length if length is not None else settings.otp_length
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.otp_ttl_seconds
        self.resend_cooldown_seconds = (
            resend_cooldown_seconds
            if resend_cooldown_seconds is not None
            else settings.otp_resend_cooldown_seconds
        )
        self.max_attempts = (
            max_attempts if max_attempts is not None else settings.otp_max_attempts
        )
        self._grace_seconds = (
            grace_seconds if grace_seconds is not None else settings.challenge_grace_seconds
        )
        self._clock = clock

    @staticmethod
    def _key(identity: str) -> str:
        if not identity:
            raise InvalidInputError("Username is required")
        return f"{OTP_KEY_PREFIX}{identity}"

    @staticmethod
    def _attempts_key(identity: str) -> str:
        return f"{OTP_ATTEMPTS_KEY_PREFIX}{identity}"

    def generate_code(self) -> str:
        return "".join(secrets.choice(string.digits) for _ in range(self.length))

    def issue_otp(self, identity: str) -> str:
        """Generate a code for ``identity``, replacing any previous one."""
        code = self.generate_code()
        challenge = StoredChallenge.issue(code, self._clock())
        self._store.set(
            self._key(identity),
            challenge.encode(),
            self.ttl_seconds + self._grace_seconds,
        )
        self._store.delete(self._attempts_key(identity))
        return code

    def resend_otp(self, identity: str) -> str:
        """Issue a new code regardless of the state of the previous one.

        Raises:
            RateLimitedError: If a resend for ``identity`` happened within the
                cooldown window.
        """
        if self.resend_cooldown_seconds > 0:
            allowed = self._store.set_if_absent(
                f"{OTP_COOLDOWN_KEY_PREFIX}{identity}",
                "1",
                self.resend_cooldown_seconds,
            )
            if not allowed:
                raise RateLimitedError("Please wait before requesting another OTP.")
        return self.issue_otp(identity)

    def verify_otp(self, identity: str, code: str) -> None:
        """Check ``code`` against the live code for ``identity`` and consume it.

        Raises:
            ChallengeNotFoundError: If no code is live for the identity.
            ChallengeExpiredError: If the code outlived its TTL.
            OtpMismatchError: If the code differs from the issued one. After
                ``max_attempts`` wrong guesses the code is discarded.
        """
        key = self._key(identity)
        raw = self._store.get(key)
        if raw is None:
            raise ChallengeNotFoundError("No OTP found. Please request a new one.")

        challenge = StoredChallenge.decode(raw)
        if challenge is None:
            self._store.delete(key)
            raise ChallengeNotFoundError("No OTP found. Please request a new one.")

        if challenge.is_expired(self._clock(), self.ttl_seconds):
            self._store.compare_and_delete(key, raw)
            raise ChallengeExpiredError("OTP has expired. Please request a new one.")

        if not hmac.compare_digest(challenge.value.encode(), code.strip().encode()):
            self._record_miss(identity, key, raw)

        if not self._store.compare_and_delete(key, raw):
            raise ChallengeNotFoundError("No OTP found. Please request a new one.")
        self._store.delete(self._attempts_key(identity))

    def _record_miss(self, identity: str, key: str, raw: str) -> NoReturn:
        """Count a wrong guess and raise; the code is discarded once the cap is hit."""
        if self.max_attempts > 0:
            attempts = self._store.increment(
                self._attempts_key(identity),
                self.ttl_seconds + self._grace_seconds,
            )
            if attempts >= self.max_attempts:
                self._store.compare_and_delete(key, raw)
                self._store.delete(self._attempts_key(identity))
                raise OtpMismatchError(TOO_MANY_ATTEMPTS_MESSAGE)
        raise OtpMismatchError("Invalid OTP.")
