"""Shared fixtures: in-memory SQLite database, OTP store and API client."""

import itertools
import os
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import models  # noqa: F401  (registers tables on Base.metadata)
from apps.api.deps import get_db, get_email_sender, get_otp_verifier
from apps.api.main import app
from core.db import Base, utcnow
from core.security import create_access_token, hash_password
from models.profile import Profile
from models.user import User
from services.otp import MemoryOtpStore, OtpVerifier

TEST_PASSWORD = "password123"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 11, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingEmailSender:
    """Collects verification emails instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    async def send_verification_email(self, email: str, code: str) -> None:
        self.sent.append((email, code))

    def last_code(self, email: str) -> str:
        return [code for to, code in self.sent if to == email][-1]


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(db):
    """Factory creating a verified account, with a profile unless ``with_profile=False``."""
    counter = itertools.count(1)

    async def _make_user(
        display_name: str | None = "User",
        *,
        email: str | None = None,
        with_profile: bool = True,
        created_at: datetime | None = None,
        **profile_fields,
    ) -> User:
        n = next(counter)
        user = User(
            email=email or f"user{n}@mail.mcgill.ca",
            password_hash=TEST_PASSWORD_HASH,
            mcgill_verified=True,
        )
        db.add(user)
        await db.flush()

        if with_profile:
            db.add(
                Profile(
                    user_id=user.id,
                    display_name=display_name,
                    bio=profile_fields.pop("bio", ""),
                    photos=profile_fields.pop("photos", []),
                    gender_preference=profile_fields.pop("gender_preference", []),
                    created_at=created_at or utcnow(),
                    **profile_fields,
                )
            )
        await db.commit()
        return user

    return _make_user


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def otp_store() -> MemoryOtpStore:
    return MemoryOtpStore()


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
async def client(session_factory, otp_store, email_sender) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    verifier = OtpVerifier(otp_store)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_otp_verifier] = lambda: verifier
    app.dependency_overrides[get_email_sender] = lambda: email_sender

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_headers(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}
