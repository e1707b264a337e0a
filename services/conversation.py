"""Per-match message log."""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.db import utcnow
from core.errors import Forbidden, InvalidMessage, MatchNotFound
from core.metrics import messages_sent_total
from models.match import Match
from models.message import MAX_MESSAGE_LENGTH, Message

logger = logging.getLogger(__name__)


def clean_body(body: Any) -> str:
    """
    Validate and trim a message body.

    Raises:
        InvalidMessage: Not a string, blank after trimming, or too long
    """
    if not isinstance(body, str) or not body:
        raise InvalidMessage("Message body is required")

    trimmed = body.strip()
    if not trimmed:
        raise InvalidMessage("Message body cannot be empty")
    if len(trimmed) > MAX_MESSAGE_LENGTH:
        raise InvalidMessage(f"Message body cannot exceed {MAX_MESSAGE_LENGTH} characters")
    return trimmed


async def get_member_match(db: AsyncSession, match_id: int, user_id: int) -> Match:
    """
    Load a match the caller belongs to.

    Raises:
        MatchNotFound: No such match
        Forbidden: Caller is not one of its two members
    """
    match = await db.get(Match, match_id)
    if match is None:
        raise MatchNotFound()
    if not match.has_member(user_id):
        raise Forbidden()
    return match


async def list_messages(db: AsyncSession, match_id: int, requester_id: int) -> list[Message]:
    """Full history of a match, oldest first, insertion order on equal timestamps."""
    await get_member_match(db, match_id, requester_id)

    # TODO: paginate once conversations grow past a few hundred messages
    result = await db.execute(
        select(Message).where(Message.match_id == match_id).order_by(Message.created_at.asc(), Message.id.asc())
    )
    return list(result.scalars().all())


async def send_message(db: AsyncSession, match_id: int, sender_id: int, body: Any) -> Message:
    """
    Append a message and bump the match's last activity to the same instant.

    Body validation happens before the match lookup, so an invalid body on a
    foreign match reports ``INVALID_MESSAGE``.
    """
    trimmed = clean_body(body)

    try:
        match = await get_member_match(db, match_id, sender_id)

        now = utcnow()
        message = Message(match_id=match.id, sender_id=sender_id, body=trimmed, created_at=now)
        db.add(message)
        match.last_message_at = now

        await db.commit()
        await db.refresh(message)
    except Exception:
        await db.rollback()
        raise

    messages_sent_total.inc()
    logger.debug(f"Message {message.id} sent in match {match_id} by {sender_id}")
    return message
