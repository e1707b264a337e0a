"""Current account and profile endpoints."""

from typing import Any, Literal

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from apps.api.deps import get_db
from apps.api.schemas import CamelModel, ProfileOut, UserOut
from core.auth import current_user_id
from core.errors import UserNotFound
from models.profile import MAX_PHOTOS
from services import accounts

router = APIRouter()


class PreferencesIn(CamelModel):
    age_min: int | None = Field(default=None, ge=18, le=120)
    age_max: int | None = Field(default=None, ge=18, le=120)
    gender_preference: list[str] | None = None
    max_distance: int | None = Field(default=None, ge=0)


class UpdateProfileRequest(CamelModel):
    """Partial update; omitted fields are left unchanged."""

    display_name: str | None = Field(default=None, max_length=64)
    bio: str | None = Field(default=None, max_length=1000)
    photos: list[str] | None = Field(default=None, max_length=MAX_PHOTOS)
    faculty: str | None = Field(default=None, max_length=128)
    year: int | None = Field(default=None, ge=1900, le=2100)
    pronouns: str | None = Field(default=None, max_length=32)
    gender: str | None = Field(default=None, max_length=32)
    intent: Literal["dating", "friendship", "networking", "casual"] | None = None
    preferences: PreferencesIn | None = None

    def changes(self) -> dict[str, Any]:
        """Flatten the provided fields into profile column names."""
        data = self.model_dump(exclude_unset=True, by_alias=False)
        preferences = data.pop("preferences", None) or {}
        data.update(preferences)
        return data


class MeResponse(CamelModel):
    user: UserOut
    profile: ProfileOut | None


class ProfileResponse(CamelModel):
    profile: ProfileOut


@router.get("", response_model=MeResponse)
async def get_me(user_id: int = Depends(current_user_id), db: AsyncSession = Depends(get_db)) -> MeResponse:
    """Return the caller's account and profile (null until created)."""
    user = await accounts.get_user(db, user_id)
    if user is None:
        raise UserNotFound()

    profile = await accounts.get_profile(db, user_id)
    return MeResponse(
        user=UserOut.from_model(user),
        profile=ProfileOut.from_model(profile) if profile else None,
    )


@router.patch("/profile", response_model=ProfileResponse)
async def update_profile(
    body: UpdateProfileRequest,
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """Create the caller's profile or update the provided fields."""
    if await accounts.get_user(db, user_id) is None:
        raise UserNotFound()

    profile = await accounts.upsert_profile(db, user_id, body.changes())
    return ProfileResponse(profile=ProfileOut.from_model(profile))
