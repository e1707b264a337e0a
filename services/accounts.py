"""Accounts and profiles."""

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import EmailAlreadyRegistered, InvalidCredentials, InvalidEmailDomain, ValidationFailed
from core.security import hash_password, verify_password
from models.profile import INTENTS, MAX_PHOTOS, Profile
from models.user import User
from services.otp import normalize_email

logger = logging.getLogger(__name__)

# Fields a profile update may touch
PROFILE_FIELDS = (
    "display_name",
    "bio",
    "photos",
    "faculty",
    "year",
    "pronouns",
    "gender",
    "intent",
    "age_min",
    "age_max",
    "gender_preference",
    "max_distance",
)


def check_email_domain(email: str, domain: str) -> str:
    """Normalize ``email`` and require it to be ``@<domain>``."""
    normalized = normalize_email(email)
    if not normalized.endswith(f"@{domain.lower()}"):
        raise InvalidEmailDomain(f"Invalid email domain (must be @{domain})")
    return normalized


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(func.lower(User.email) == normalize_email(email)))
    return result.scalar_one_or_none()


async def email_exists(db: AsyncSession, email: str) -> bool:
    return await get_user_by_email(db, email) is not None


async def create_verified_user(db: AsyncSession, email: str, password: str) -> User:
    """
    Create an account whose email has just passed code verification.

    Raises:
        EmailAlreadyRegistered: Another account owns the email
    """
    user = User(email=normalize_email(email), password_hash=hash_password(password), mcgill_verified=True)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise EmailAlreadyRegistered() from None
    await db.refresh(user)

    logger.info(f"User account created: {user.email} (ID: {user.id})")
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    """
    Check credentials.

    Raises:
        InvalidCredentials: Unknown email or wrong password (indistinguishable)
    """
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        raise InvalidCredentials()
    return user


async def get_profile(db: AsyncSession, user_id: int) -> Profile | None:
    return await db.get(Profile, user_id)


def _validate_profile(profile: Profile) -> None:
    if len(profile.photos or []) > MAX_PHOTOS:
        raise ValidationFailed(f"At most {MAX_PHOTOS} photos are allowed")
    if profile.intent is not None and profile.intent not in INTENTS:
        raise ValidationFailed(f"Intent must be one of: {', '.join(INTENTS)}")
    if profile.age_min is not None and profile.age_max is not None and profile.age_min > profile.age_max:
        raise ValidationFailed("ageMin cannot be greater than ageMax")


async def upsert_profile(db: AsyncSession, user_id: int, changes: dict[str, Any]) -> Profile:
    """
    Create the profile from ``changes`` or apply them to the existing one.

    Only keys present in ``changes`` are written. Validation runs on the
    merged result, so an update of ``age_min`` alone is checked against the
    stored ``age_max``.
    """
    unknown = set(changes) - set(PROFILE_FIELDS)
    if unknown:
        raise ValidationFailed(f"Unknown profile fields: {', '.join(sorted(unknown))}")

    try:
        profile = await db.get(Profile, user_id)
        if profile is None:
            profile = Profile(
                user_id=user_id,
                display_name=changes.get("display_name") or "",
                bio=changes.get("bio") or "",
                photos=changes.get("photos") or [],
                gender_preference=changes.get("gender_preference") or [],
            )
            for field in ("faculty", "year", "pronouns", "gender", "intent", "age_min", "age_max", "max_distance"):
                setattr(profile, field, changes.get(field))
            db.add(profile)
        else:
            for field, value in changes.items():
                if field in ("photos", "gender_preference"):
                    value = list(value or [])
                elif field == "bio":
                    value = value or ""
                setattr(profile, field, value)

        _validate_profile(profile)
        await db.commit()
        await db.refresh(profile)
    except Exception:
        await db.rollback()
        raise

    return profile
