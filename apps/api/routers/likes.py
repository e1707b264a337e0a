"""Like endpoint."""

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from apps.api.deps import get_db
from apps.api.schemas import CamelModel
from core.auth import current_user_id
from services import matching

router = APIRouter()


class CreateLikeRequest(CamelModel):
    target_user_id: int


class CreateLikeResponse(CamelModel):
    matched: bool
    match_id: int | None = Field(default=None)


@router.post("", response_model=CreateLikeResponse, response_model_exclude_none=True)
async def create_like(
    body: CreateLikeRequest,
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
) -> CreateLikeResponse:
    """
    Like another user.

    Returns ``matched=true`` with the match ID when the target had already
    liked the caller; the ID is the same whichever side liked first.
    """
    result = await matching.like(db, user_id, body.target_user_id)
    return CreateLikeResponse(matched=result.matched, match_id=result.match_id)
