"""One-time verification codes.

A code is keyed by the normalized (lower-cased) email. Requesting a new code
overwrites the previous one and resets its attempt counter. Verification
counts the attempt *before* comparing, so the last allowed attempt both
consumes the budget and may still succeed. A successful verification deletes
the record.

Two stores share this contract: ``MemoryOtpStore`` for a single process and
``RedisOtpStore`` for deployments with several API instances.
"""

import asyncio
import logging
import secrets
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

import redis.asyncio as redis
from redis.exceptions import WatchError

from core.db import utcnow
from core.metrics import otp_codes_issued_total, otp_verifications_total

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5
DEFAULT_TTL_MINUTES = 10

Clock = Callable[[], datetime]


class OtpOutcome(str, Enum):
    """Result of a verification attempt."""

    VALID = "valid"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    MAX_ATTEMPTS = "max_attempts"
    INVALID_CODE = "invalid_code"


@dataclass
class OtpRecord:
    code: str
    expires_at: datetime
    attempts: int = 0


def generate_code() -> str:
    """Generate a 4-digit code, uniform over 1000-9999."""
    return str(1000 + secrets.randbelow(9000))


def normalize_email(email: str) -> str:
    return email.strip().lower()


class OtpStore(ABC):
    """Storage contract for one-time codes."""

    def __init__(self, max_attempts: int = MAX_ATTEMPTS, clock: Clock = utcnow) -> None:
        self.max_attempts = max_attempts
        self._clock = clock

    @abstractmethod
    async def store(self, email: str, code: str, ttl_minutes: int = DEFAULT_TTL_MINUTES) -> None:
        """Create or overwrite the code for ``email``."""

    @abstractmethod
    async def verify(self, email: str, code: str) -> OtpOutcome:
        """Check ``code`` against the stored record for ``email``."""

    @abstractmethod
    async def delete(self, email: str) -> None:
        """Drop the record for ``email`` if any."""

    @abstractmethod
    async def has_valid(self, email: str) -> bool:
        """Whether a non-expired record exists for ``email``."""

    @abstractmethod
    async def purge_expired(self) -> int:
        """Remove every expired record; return how many were removed."""


class MemoryOtpStore(OtpStore):
    """Process-local store; not shared between API instances."""

    def __init__(self, max_attempts: int = MAX_ATTEMPTS, clock: Clock = utcnow) -> None:
        super().__init__(max_attempts, clock)
        self._records: dict[str, OtpRecord] = {}
        self._lock = asyncio.Lock()

    async def store(self, email: str, code: str, ttl_minutes: int = DEFAULT_TTL_MINUTES) -> None:
        expires_at = self._clock() + timedelta(minutes=ttl_minutes)
        async with self._lock:
            self._records[normalize_email(email)] = OtpRecord(code=code, expires_at=expires_at)

    async def verify(self, email: str, code: str) -> OtpOutcome:
        key = normalize_email(email)
        async with self._lock:
            record = self._records.get(key)
            if record is None:
                return OtpOutcome.NOT_FOUND

            if record.expires_at < self._clock():
                del self._records[key]
                return OtpOutcome.EXPIRED

            if record.attempts >= self.max_attempts:
                return OtpOutcome.MAX_ATTEMPTS

            record.attempts += 1

            if record.code != code:
                return OtpOutcome.INVALID_CODE

            del self._records[key]
            return OtpOutcome.VALID

    async def delete(self, email: str) -> None:
        async with self._lock:
            self._records.pop(normalize_email(email), None)

    async def has_valid(self, email: str) -> bool:
        key = normalize_email(email)
        async with self._lock:
            record = self._records.get(key)
            if record is None:
                return False
            if record.expires_at < self._clock():
                del self._records[key]
                return False
            return True

    async def purge_expired(self) -> int:
        now = self._clock()
        async with self._lock:
            expired = [key for key, record in self._records.items() if record.expires_at < now]
            for key in expired:
                del self._records[key]
        return len(expired)

    def attempts(self, email: str) -> int | None:
        record = self._records.get(normalize_email(email))
        return record.attempts if record else None


class RedisOtpStore(OtpStore):
    """
    Shared store: one hash per email at ``otp:<email>``.

    Verification runs as a WATCH/MULTI transaction so concurrent attempts from
    several instances cannot both spend the same attempt. Keys keep a native TTL
    of expiry plus ``grace_seconds`` so an expired code is reported as
    ``expired`` once before Redis drops it.
    """

    KEY_PREFIX = "otp:"

    def __init__(
        self,
        client: redis.Redis,
        max_attempts: int = MAX_ATTEMPTS,
        clock: Clock = utcnow,
        grace_seconds: int = 300,
    ) -> None:
        super().__init__(max_attempts, clock)
        self._redis = client
        self.grace_seconds = grace_seconds

    def _key(self, email: str) -> str:
        return f"{self.KEY_PREFIX}{normalize_email(email)}"

    def _expired(self, record: dict[str, str]) -> bool:
        return datetime.fromisoformat(record["expires_at"]) < self._clock()

    async def store(self, email: str, code: str, ttl_minutes: int = DEFAULT_TTL_MINUTES) -> None:
        key = self._key(email)
        expires_at = self._clock() + timedelta(minutes=ttl_minutes)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.delete(key)
            pipe.hset(key, mapping={"code": code, "expires_at": expires_at.isoformat(), "attempts": 0})
            pipe.expire(key, ttl_minutes * 60 + self.grace_seconds)
            await pipe.execute()

    async def verify(self, email: str, code: str) -> OtpOutcome:
        key = self._key(email)
        async with self._redis.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(key)
                    record = await pipe.hgetall(key)

                    if not record:
                        await pipe.unwatch()
                        return OtpOutcome.NOT_FOUND

                    if self._expired(record):
                        pipe.multi()
                        pipe.delete(key)
                        await pipe.execute()
                        return OtpOutcome.EXPIRED

                    if int(record["attempts"]) >= self.max_attempts:
                        await pipe.unwatch()
                        return OtpOutcome.MAX_ATTEMPTS

                    pipe.multi()
                    if record["code"] == code:
                        # The attempt is spent and the record consumed in one step
                        pipe.delete(key)
                        outcome = OtpOutcome.VALID
                    else:
                        pipe.hincrby(key, "attempts", 1)
                        outcome = OtpOutcome.INVALID_CODE
                    await pipe.execute()
                    return outcome
                except WatchError:
                    logger.debug(f"Concurrent OTP update for {key}, retrying")
                    continue

    async def delete(self, email: str) -> None:
        await self._redis.delete(self._key(email))

    async def has_valid(self, email: str) -> bool:
        record = await self._redis.hgetall(self._key(email))
        return bool(record) and not self._expired(record)

    async def purge_expired(self) -> int:
        removed = 0
        async for key in self._redis.scan_iter(match=f"{self.KEY_PREFIX}*"):
            record = await self._redis.hgetall(key)
            if record and self._expired(record):
                removed += await self._redis.delete(key)
        return removed


class OtpVerifier:
    """Issues and checks codes against a store; one instance per process."""

    def __init__(self, store: OtpStore, ttl_minutes: int = DEFAULT_TTL_MINUTES) -> None:
        self.store = store
        self.ttl_minutes = ttl_minutes

    async def issue(self, email: str) -> str:
        """Generate a fresh code for ``email``, replacing any previous one."""
        code = generate_code()
        await self.store.store(email, code, self.ttl_minutes)
        otp_codes_issued_total.inc()
        logger.info(f"Verification code issued for {normalize_email(email)}")
        return code

    async def verify(self, email: str, code: str) -> OtpOutcome:
        outcome = await self.store.verify(email, code)
        otp_verifications_total.labels(outcome=outcome.value).inc()
        logger.info(f"Verification for {normalize_email(email)}: {outcome.value}")
        return outcome
