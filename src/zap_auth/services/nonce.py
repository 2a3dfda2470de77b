"""Single-use, time-boxed nonces for wallet signature challenges."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Final

from zap_auth.core.errors import ChallengeExpiredError, ChallengeNotFoundError, InvalidInputError
from zap_auth.core.settings import settings
from zap_auth.services.crypto import CryptoService
from zap_auth.services.ephemeral import EphemeralStore, StoredChallenge

NONCE_KEY_PREFIX: Final[str] = "nonce:"


def nonce_key(wallet_address: str) -> str:
    return f"{NONCE_KEY_PREFIX}{wallet_address}"


class NonceManager:
    """Issue and consume nonces keyed by wallet address.

    At most one nonce is live per address; issuing again replaces it. A nonce
    is only removed by :meth:`retire_nonce` once the caller has fully
    verified the signature, so a failed attempt does not burn it.
    """

    def __init__(
        self,
        store: EphemeralStore,
        *,
        ttl_seconds: int | None = None,
        grace_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.nonce_ttl_seconds
        self._grace_seconds = (
            grace_seconds if grace_seconds is not None else settings.challenge_grace_seconds
        )
        self._clock = clock

    def issue_nonce(self, wallet_address: str) -> str:
        """Generate and store a fresh nonce for ``wallet_address``."""
        address = wallet_address.strip()
        if not address:
            raise InvalidInputError("Wallet address is required")

        nonce = CryptoService.generate_nonce()
        challenge = StoredChallenge.issue(nonce, self._clock())
        self._store.set(
            nonce_key(address),
            challenge.encode(),
            self.ttl_seconds + self._grace_seconds,
        )
        return nonce

    def consume_nonce(self, wallet_address: str) -> StoredChallenge:
        """Return the live nonce for ``wallet_address`` without deleting it.

        Raises:
            ChallengeNotFoundError: If no nonce was issued (or it was already used).
            ChallengeExpiredError: If the nonce is older than the TTL; the stale
                entry is removed.
        """
        key = nonce_key(wallet_address.strip())
        raw = self._store.get(key)
        if raw is None:
            raise ChallengeNotFoundError("No nonce found for this wallet. Please request a new one.")

        challenge = StoredChallenge.decode(raw)
        if challenge is None:
            self._store.delete(key)
            raise ChallengeNotFoundError("No nonce found for this wallet. Please request a new one.")

        if challenge.is_expired(self._clock(), self.ttl_seconds):
            self._store.compare_and_delete(key, raw)
            raise ChallengeExpiredError("Nonce has expired. Please request a new one.")
        return challenge

    def retire_nonce(self, wallet_address: str, challenge: StoredChallenge) -> bool:
        """Atomically delete ``challenge`` if it is still the live nonce.

        Returns False when another request already used it or a newer nonce
        replaced it.
        """
        return self._store.compare_and_delete(
            nonce_key(wallet_address.strip()),
            challenge.encode(),
        )
