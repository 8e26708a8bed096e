"""Password-reset passcodes in Redis.

Each passcode maps to the email it was issued for and expires on its
own through the Redis TTL. Consumption is an atomic get-and-delete so
two concurrent resets cannot both claim the same passcode.
"""

from __future__ import annotations

from dataclasses import dataclass

from redis.exceptions import RedisError

from fraudbucket.core.errors import InternalError
from fraudbucket.core.logging import get_logger, redact_email
from fraudbucket.core.redis import RedisClient

logger = get_logger(__name__)

DEFAULT_PASSCODE_TTL_SECONDS = 900
UNAVAILABLE_MSG = "Password reset is temporarily unavailable"


@dataclass(frozen=True)
class ClaimedPasscode:
    """A passcode removed from the store, with the TTL it had left."""

    passcode: str
    email: str
    remaining_ms: int


class PasscodeStore:
    """Ephemeral passcode -> email mapping with per-entry expiry."""

    def __init__(
        self,
        redis: RedisClient,
        *,
        key_prefix: str = "passcode:",
        default_ttl_seconds: int = DEFAULT_PASSCODE_TTL_SECONDS,
    ):
        self.redis = redis
        self.key_prefix = key_prefix
        self.default_ttl_seconds = default_ttl_seconds

    def _key(self, passcode: str) -> str:
        return f"{self.key_prefix}{passcode}"

    async def save(self, passcode: str, email: str, ttl_seconds: int | None = None) -> None:
        """Store the mapping, replacing any previous entry and its expiry."""
        ttl = ttl_seconds or self.default_ttl_seconds
        try:
            await self.redis.client.set(self._key(passcode), email, ex=ttl)
        except RedisError as e:
            logger.error("passcode_save_failed", email=redact_email(email), error=str(e))
            raise InternalError(UNAVAILABLE_MSG) from e

    async def get(self, passcode: str) -> str | None:
        """Return the email for a live passcode, or None."""
        try:
            return await self.redis.client.get(self._key(passcode))
        except RedisError as e:
            logger.error("passcode_get_failed", error=str(e))
            raise InternalError(UNAVAILABLE_MSG) from e

    async def delete(self, passcode: str) -> None:
        """Remove a passcode. Deleting an absent passcode is a no-op."""
        try:
            await self.redis.client.delete(self._key(passcode))
        except RedisError as e:
            logger.error("passcode_delete_failed", error=str(e))
            raise InternalError(UNAVAILABLE_MSG) from e

    async def claim(self, passcode: str) -> ClaimedPasscode | None:
        """Atomically read and delete a passcode.

        Runs GET, PTTL and DEL in one MULTI/EXEC transaction. Only one
        caller ever receives a given passcode.
        """
        key = self._key(passcode)
        try:
            async with self.redis.client.pipeline(transaction=True) as pipe:
                pipe.get(key)
                pipe.pttl(key)
                pipe.delete(key)
                email, remaining_ms, _ = await pipe.execute()
        except RedisError as e:
            logger.error("passcode_claim_failed", error=str(e))
            raise InternalError(UNAVAILABLE_MSG) from e

        if email is None:
            return None
        # PTTL is -1 for keys without expiry; keep the default window in that case
        if remaining_ms is None or remaining_ms < 0:
            remaining_ms = self.default_ttl_seconds * 1000
        return ClaimedPasscode(passcode=passcode, email=email, remaining_ms=int(remaining_ms))

    async def release(self, claimed: ClaimedPasscode) -> None:
        """Put a claimed passcode back for the rest of its lifetime.

        Used when the reset that claimed it fails before the password
        is changed. NX keeps a concurrent save from being overwritten.
        """
        if claimed.remaining_ms <= 0:
            return
        try:
            await self.redis.client.set(
                self._key(claimed.passcode), claimed.email, px=claimed.remaining_ms, nx=True
            )
        except RedisError as e:
            logger.error("passcode_release_failed", error=str(e))
            raise InternalError(UNAVAILABLE_MSG) from e
