"""Shared Redis client: OTP records (``otp_backend=redis``) and health checks."""

import logging
import redis.asyncio as redis

from core.config import settings

logger = logging.getLogger(__name__)

_redis_client: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    """Return the process-wide client, creating it on first use."""
    global _redis_client
    if _redis_client is None:
        # OTP hashes are read back as str
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            health_check_interval=30,
        )
    return _redis_client


async def close_redis() -> None:
    """Close the client if one was created."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("Redis connection closed")
