"""Discovery feed endpoint."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from apps.api.deps import get_db
from apps.api.schemas import CamelModel, ProfileOut
from core.auth import current_user_id
from core.config import settings
from services.discovery import discover

router = APIRouter()


class DiscoverResponse(CamelModel):
    profiles: list[ProfileOut]
    has_more: bool


@router.get("", response_model=DiscoverResponse)
async def get_discover(
    limit: int = Query(default=settings.discover_default_limit, ge=1, le=settings.discover_max_limit),
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
) -> DiscoverResponse:
    """Next page of candidate profiles, newest first."""
    page = await discover(db, user_id, limit)
    return DiscoverResponse(
        profiles=[ProfileOut.from_model(profile) for profile in page.profiles],
        has_more=page.has_more,
    )
