"""Likes and matches.

A match is stored once per unordered pair, with the lower user ID in
``user_a``. Every lookup or insert normalizes the pair first; the unique
constraint on ``(user_a, user_b)`` together with ``ON CONFLICT DO NOTHING``
makes concurrent opposite-direction likes converge on a single row.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import DateTime, bindparam, case, func, or_, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from core.db import utcnow
from core.errors import AlreadyLiked, InvalidAction, UserNotFound
from core.metrics import likes_total, matches_created_total
from models.like import Like
from models.match import Match
from models.profile import Profile
from models.user import User

logger = logging.getLogger(__name__)

_INSERT_LIKE = text(
    """
    INSERT INTO likes (from_user, to_user, created_at)
    VALUES (:from_user, :to_user, :created_at)
    ON CONFLICT (from_user, to_user) DO NOTHING
    """
).bindparams(bindparam("created_at", type_=DateTime))

_INSERT_MATCH = text(
    """
    INSERT INTO matches (user_a, user_b, created_at)
    VALUES (:user_a, :user_b, :created_at)
    ON CONFLICT (user_a, user_b) DO NOTHING
    """
).bindparams(bindparam("created_at", type_=DateTime))


@dataclass
class LikeResult:
    matched: bool
    match_id: int | None = None


@dataclass
class MatchSummary:
    match: Match
    profile: Profile | None


def canonical_pair(user_x: int, user_y: int) -> tuple[int, int]:
    """Order a pair so the lower ID comes first."""
    return (user_x, user_y) if user_x < user_y else (user_y, user_x)


async def insert_like(db: AsyncSession, from_user: int, to_user: int) -> bool:
    """
    Record a like without committing; duplicates are a silent no-op.

    This is the bulk/seed path. The user-facing path is ``like``.

    Returns:
        True if a new row was written
    """
    if from_user == to_user:
        raise InvalidAction()

    result = await db.execute(
        _INSERT_LIKE, {"from_user": from_user, "to_user": to_user, "created_at": utcnow()}
    )
    created = result.rowcount > 0
    if created:
        likes_total.labels(source="bulk").inc()
    return created


async def get_or_create_match(db: AsyncSession, user_x: int, user_y: int) -> tuple[int, bool]:
    """
    Return the match for an unordered pair, inserting it if absent.

    Does not commit. A concurrent insert of the same pair resolves to the
    existing row instead of failing.

    Returns:
        (match_id, created)
    """
    user_a, user_b = canonical_pair(user_x, user_y)
    if user_a == user_b:
        raise InvalidAction("Cannot match a user with themself")

    result = await db.execute(_INSERT_MATCH, {"user_a": user_a, "user_b": user_b, "created_at": utcnow()})
    created = result.rowcount > 0

    match_id = (
        await db.execute(select(Match.id).where(Match.user_a == user_a, Match.user_b == user_b))
    ).scalar_one()

    if created:
        matches_created_total.inc()
        logger.info(f"Match created: id={match_id}, pair=({user_a}, {user_b})")
    return match_id, created


async def like(db: AsyncSession, from_user: int, to_user: int) -> LikeResult:
    """
    Like another user and create the match if the like is reciprocated.

    Runs as one unit of work: either the like (and match) are committed or
    nothing is.

    Raises:
        InvalidAction: Self-like
        UserNotFound: Target account does not exist
        AlreadyLiked: The like already exists
    """
    if from_user == to_user:
        raise InvalidAction()

    try:
        target = await db.scalar(select(User.id).where(User.id == to_user))
        if target is None:
            raise UserNotFound("Target user not found")

        # Insert doubles as the duplicate check so two racing requests cannot both succeed
        result = await db.execute(
            _INSERT_LIKE, {"from_user": from_user, "to_user": to_user, "created_at": utcnow()}
        )
        if result.rowcount == 0:
            raise AlreadyLiked()

        likes_total.labels(source="user").inc()
        logger.info(f"User {from_user} liked {to_user}")

        reciprocal = await db.scalar(
            select(Like.id).where(Like.from_user == to_user, Like.to_user == from_user)
        )
        if reciprocal is None:
            await db.commit()
            return LikeResult(matched=False)

        match_id, _ = await get_or_create_match(db, from_user, to_user)
        await db.commit()
        return LikeResult(matched=True, match_id=match_id)
    except Exception:
        await db.rollback()
        raise


async def list_matches(db: AsyncSession, user_id: int) -> list[MatchSummary]:
    """
    List a user's matches with the other member's profile.

    Most recently active conversation first: ``coalesce(last_message_at,
    created_at)`` descending.
    """
    other_id = case((Match.user_a == user_id, Match.user_b), else_=Match.user_a)
    last_activity = func.coalesce(Match.last_message_at, Match.created_at)

    result = await db.execute(
        select(Match, Profile)
        .outerjoin(Profile, Profile.user_id == other_id)
        .where(or_(Match.user_a == user_id, Match.user_b == user_id))
        .order_by(last_activity.desc(), Match.id.desc())
    )
    return [MatchSummary(match=match, profile=profile) for match, profile in result.all()]
