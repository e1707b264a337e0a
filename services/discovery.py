"""Discovery feed: the next page of candidate profiles for a browsing user."""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.block import Block
from models.like import Like
from models.profile import Profile


@dataclass
class DiscoverPage:
    profiles: list[Profile]
    has_more: bool


async def discover(db: AsyncSession, user_id: int, limit: int) -> DiscoverPage:
    """
    Select candidate profiles for ``user_id``, newest profile first.

    Excludes the user, anyone they already liked, anyone blocked in either
    direction, and profiles without a display name. Passes are not recorded,
    so skipped profiles come back on later calls.

    ``has_more`` is ``len(profiles) == limit``; it reports True when the last
    page happens to fill the limit exactly.
    """
    liked = select(Like.to_user).where(Like.from_user == user_id)
    blocked = select(Block.target_id).where(Block.blocker_id == user_id)
    blocked_by = select(Block.blocker_id).where(Block.target_id == user_id)

    result = await db.execute(
        select(Profile)
        .where(
            Profile.user_id != user_id,
            Profile.user_id.not_in(liked),
            Profile.user_id.not_in(blocked),
            Profile.user_id.not_in(blocked_by),
            Profile.display_name.is_not(None),
            Profile.display_name != "",
        )
        .order_by(Profile.created_at.desc(), Profile.user_id.desc())
        .limit(limit)
    )
    profiles = list(result.scalars().all())
    return DiscoverPage(profiles=profiles, has_more=len(profiles) == limit)
