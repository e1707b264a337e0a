"""Match list and conversation endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from apps.api.deps import get_db
from apps.api.schemas import CamelModel, MatchOut, MessageOut, ProfileOut
from core.auth import current_user_id
from services import conversation, matching

router = APIRouter()


class MatchItem(CamelModel):
    match: MatchOut
    profile: ProfileOut | None


class MatchesResponse(CamelModel):
    matches: list[MatchItem]


class MessagesResponse(CamelModel):
    messages: list[MessageOut]


class CreateMessageRequest(CamelModel):
    # Validated by the conversation service so non-strings map to INVALID_MESSAGE
    body: Any = None


class CreateMessageResponse(CamelModel):
    message: MessageOut


@router.get("", response_model=MatchesResponse)
async def get_matches(user_id: int = Depends(current_user_id), db: AsyncSession = Depends(get_db)) -> MatchesResponse:
    """Caller's matches, most recently active conversation first."""
    summaries = await matching.list_matches(db, user_id)
    return MatchesResponse(
        matches=[
            MatchItem(
                match=MatchOut.from_model(summary.match),
                profile=ProfileOut.from_model(summary.profile) if summary.profile else None,
            )
            for summary in summaries
        ]
    )


@router.get("/{match_id}/messages", response_model=MessagesResponse)
async def get_messages(
    match_id: int,
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
) -> MessagesResponse:
    """Full conversation history, oldest first."""
    messages = await conversation.list_messages(db, match_id, user_id)
    return MessagesResponse(messages=[MessageOut.model_validate(message) for message in messages])


@router.post("/{match_id}/messages", response_model=CreateMessageResponse, status_code=status.HTTP_201_CREATED)
async def post_message(
    match_id: int,
    body: CreateMessageRequest,
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
) -> CreateMessageResponse:
    """Send a message to the other member of the match."""
    message = await conversation.send_message(db, match_id, user_id, body.body)
    return CreateMessageResponse(message=MessageOut.model_validate(message))
