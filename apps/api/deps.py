"""FastAPI dependencies."""

from collections.abc import AsyncGenerator

import redis.asyncio as redis
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.db import get_db as _get_db
from core.redis import get_redis as _get_redis
from services.email import EmailSender
from services.otp import OtpVerifier


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async for session in _get_db():
        yield session


async def get_redis_client() -> redis.Redis:
    """Get Redis client dependency."""
    return await _get_redis()


def get_otp_verifier(request: Request) -> OtpVerifier:
    """One-time-code verifier built in the application lifespan."""
    return request.app.state.otp_verifier


def get_email_sender(request: Request) -> EmailSender:
    """Verification email sender built in the application lifespan."""
    return request.app.state.email_sender
