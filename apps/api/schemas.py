"""Response payloads shared across routers (camelCase on the wire)."""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from models.match import Match
from models.profile import Profile
from models.user import User


def _utc_iso(value: datetime) -> str:
    """Render a stored naive-UTC timestamp as ISO 8601 with a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


# Timestamps are stored as naive UTC
UtcDatetime = Annotated[datetime, PlainSerializer(_utc_iso, return_type=str, when_used="json")]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserOut(CamelModel):
    id: int
    email: str
    mcgill_verified: bool
    created_at: UtcDatetime

    @classmethod
    def from_model(cls, user: User) -> "UserOut":
        return cls.model_validate(user)


class PreferencesOut(CamelModel):
    age_min: int | None = None
    age_max: int | None = None
    gender_preference: list[str] = []
    max_distance: int | None = None


class ProfileOut(CamelModel):
    user_id: int
    display_name: str
    bio: str
    photos: list[str]
    faculty: str | None = None
    year: int | None = None
    pronouns: str | None = None
    gender: str | None = None
    intent: str | None = None
    preferences: PreferencesOut

    @classmethod
    def from_model(cls, profile: Profile) -> "ProfileOut":
        return cls(
            user_id=profile.user_id,
            display_name=profile.display_name or "",
            bio=profile.bio or "",
            photos=list(profile.photos or []),
            faculty=profile.faculty,
            year=profile.year,
            pronouns=profile.pronouns,
            gender=profile.gender,
            intent=profile.intent,
            preferences=PreferencesOut(
                age_min=profile.age_min,
                age_max=profile.age_max,
                gender_preference=list(profile.gender_preference or []),
                max_distance=profile.max_distance,
            ),
        )


class MatchOut(CamelModel):
    id: int
    user_a_id: int
    user_b_id: int
    created_at: UtcDatetime
    last_message_at: UtcDatetime | None = None

    @classmethod
    def from_model(cls, match: Match) -> "MatchOut":
        return cls(
            id=match.id,
            user_a_id=match.user_a,
            user_b_id=match.user_b,
            created_at=match.created_at,
            last_message_at=match.last_message_at,
        )


class MessageOut(CamelModel):
    id: int
    match_id: int
    sender_id: int
    body: str
    created_at: UtcDatetime
    read_at: UtcDatetime | None = None
