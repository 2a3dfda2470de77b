"""Short-lived key-value storage for nonces and one-time codes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Final, Protocol

import redis

from zap_auth.core.errors import EphemeralStoreError
from zap_auth.core.settings import settings

logger = logging.getLogger(__name__)

# Deletes KEYS[1] only while it still holds ARGV[1].
_COMPARE_AND_DELETE_LUA: Final[str] = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


@dataclass(frozen=True)
class StoredChallenge:
    """A challenge value together with the time it was issued."""

    value: str
    created_at_ms: int

    def encode(self) -> str:
        return f"{self.value}:{self.created_at_ms}"

    @classmethod
    def decode(cls, raw: str) -> StoredChallenge | None:
        """Parse a stored challenge; return None if the payload is corrupt."""
        value, sep, created = raw.rpartition(":")
        if not sep or not value:
            return None
        try:
            return cls(value=value, created_at_ms=int(created))
        except ValueError:
            return None

    @classmethod
    def issue(cls, value: str, now: float) -> StoredChallenge:
        return cls(value=value, created_at_ms=int(now * 1000))

    def is_expired(self, now: float, ttl_seconds: int) -> bool:
        return now * 1000 - self.created_at_ms > ttl_seconds * 1000


class EphemeralStore(Protocol):
    """Key-value store with per-key expiry and atomic single-key operations."""

    def get(self, key: str) -> str | None:
        """Return the value stored at ``key`` or None."""

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` at ``key``, replacing any previous value."""

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""

    def compare_and_delete(self, key: str, expected: str) -> bool:
        """Delete ``key`` only if it still holds ``expected``; return True if deleted."""

    def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Store ``value`` only if ``key`` does not exist; return True if stored."""

    def increment(self, key: str, ttl_seconds: int) -> int:
        """Increment the counter at ``key`` and return it.

        A newly created counter expires after ``ttl_seconds``.
        """


class RedisEphemeralStore:
    """Redis implementation of :class:`EphemeralStore`."""

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    def get(self, key: str) -> str | None:
        try:
            value = self._redis.get(key)
        except redis.RedisError as err:
            logger.error("Ephemeral store GET failed for %s: %s", key, err)
            raise EphemeralStoreError() from err
        if value is None:
            return None
        return value.decode() if isinstance(value, bytes) else str(value)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self._redis.set(key, value, ex=int(ttl_seconds))
        except redis.RedisError as err:
            logger.error("Ephemeral store SET failed for %s: %s", key, err)
            raise EphemeralStoreError() from err

    def delete(self, key: str) -> None:
        try:
            self._redis.delete(key)
        except redis.RedisError as err:
            logger.error("Ephemeral store DEL failed for %s: %s", key, err)
            raise EphemeralStoreError() from err

    def compare_and_delete(self, key: str, expected: str) -> bool:
        try:
            deleted = self._redis.eval(_COMPARE_AND_DELETE_LUA, 1, key, expected)
        except redis.RedisError as err:
            logger.error("Ephemeral store compare-and-delete failed for %s: %s", key, err)
            raise EphemeralStoreError() from err
        return bool(deleted)

    def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        try:
            stored = self._redis.set(key, value, ex=int(ttl_seconds), nx=True)
        except redis.RedisError as err:
            logger.error("Ephemeral store SET NX failed for %s: %s", key, err)
            raise EphemeralStoreError() from err
        return bool(stored)

    def increment(self, key: str, ttl_seconds: int) -> int:
        try:
            count = int(self._redis.incr(key))
            if count == 1:
                self._redis.expire(key, int(ttl_seconds))
        except redis.RedisError as err:
            logger.error("Ephemeral store INCR failed for %s: %s", key, err)
            raise EphemeralStoreError() from err
        return count


@lru_cache(maxsize=1)
def get_ephemeral_store() -> EphemeralStore:
    """Return the process-wide Redis-backed ephemeral store."""
    client = redis.from_url(settings.redis_url, decode_responses=True)  # type: ignore[no-untyped-call]
    return RedisEphemeralStore(client)
