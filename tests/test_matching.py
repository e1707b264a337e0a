from datetime import timedelta

import pytest
from sqlalchemy import func, select

from core.db import utcnow
from core.errors import AlreadyLiked, InvalidAction, UserNotFound
from models.like import Like
from models.match import Match
from services import conversation, matching


async def test_canonical_pair():
    assert matching.canonical_pair(7, 3) == (3, 7)
    assert matching.canonical_pair(3, 7) == (3, 7)


async def test_reciprocal_like_creates_match(db, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")

    first = await matching.like(db, alice.id, bob.id)
    assert first.matched is False
    assert first.match_id is None

    second = await matching.like(db, bob.id, alice.id)
    assert second.matched is True
    assert second.match_id is not None

    match = await db.get(Match, second.match_id)
    assert (match.user_a, match.user_b) == matching.canonical_pair(alice.id, bob.id)


@pytest.mark.parametrize("first_liker", ["low", "high"])
async def test_match_id_is_same_regardless_of_order(db, make_user, first_liker):
    low = await make_user("Low")
    high = await make_user("High")
    first, second = (low, high) if first_liker == "low" else (high, low)

    await matching.like(db, first.id, second.id)
    result = await matching.like(db, second.id, first.id)

    match_id, created = await matching.get_or_create_match(db, low.id, high.id)
    assert created is False
    assert match_id == result.match_id
    assert await db.scalar(select(func.count(Match.id))) == 1


async def test_self_like_is_rejected(db, make_user):
    alice = await make_user("Alice")

    with pytest.raises(InvalidAction) as exc_info:
        await matching.like(db, alice.id, alice.id)
    assert exc_info.value.code == "INVALID_ACTION"


async def test_like_unknown_user(db, make_user):
    alice = await make_user("Alice")

    with pytest.raises(UserNotFound):
        await matching.like(db, alice.id, 99999)

    assert await db.scalar(select(func.count(Like.id))) == 0


async def test_duplicate_like_is_reported(db, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    await matching.like(db, alice.id, bob.id)

    with pytest.raises(AlreadyLiked) as exc_info:
        await matching.like(db, alice.id, bob.id)

    assert exc_info.value.status_code == 409
    assert await db.scalar(select(func.count(Like.id))) == 1


async def test_bulk_insert_like_is_idempotent(db, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")

    assert await matching.insert_like(db, alice.id, bob.id) is True
    assert await matching.insert_like(db, alice.id, bob.id) is False
    await db.commit()

    count = await db.scalar(select(func.count(Like.id)).where(Like.from_user == alice.id, Like.to_user == bob.id))
    assert count == 1


async def test_bulk_insert_like_rejects_self(db, make_user):
    alice = await make_user("Alice")

    with pytest.raises(InvalidAction):
        await matching.insert_like(db, alice.id, alice.id)


async def test_get_or_create_match_is_idempotent(db, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")

    match_id, created = await matching.get_or_create_match(db, bob.id, alice.id)
    again_id, again_created = await matching.get_or_create_match(db, alice.id, bob.id)
    await db.commit()

    assert created is True
    assert again_created is False
    assert again_id == match_id


async def test_both_members_see_the_match(db, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    await matching.like(db, alice.id, bob.id)
    result = await matching.like(db, bob.id, alice.id)

    alice_matches = await matching.list_matches(db, alice.id)
    bob_matches = await matching.list_matches(db, bob.id)

    assert [s.match.id for s in alice_matches] == [result.match_id]
    assert [s.match.id for s in bob_matches] == [result.match_id]
    assert alice_matches[0].profile.user_id == bob.id
    assert bob_matches[0].profile.user_id == alice.id


async def test_match_without_profile_is_listed(db, make_user):
    alice = await make_user("Alice")
    ghost = await make_user(with_profile=False)
    await matching.get_or_create_match(db, alice.id, ghost.id)
    await db.commit()

    summaries = await matching.list_matches(db, alice.id)

    assert len(summaries) == 1
    assert summaries[0].profile is None


async def test_matches_ranked_by_last_activity(db, make_user):
    me = await make_user("Me")
    quiet = await make_user("Quiet")
    chatty = await make_user("Chatty")
    fresh = await make_user("Fresh")

    quiet_id, _ = await matching.get_or_create_match(db, me.id, quiet.id)
    chatty_id, _ = await matching.get_or_create_match(db, me.id, chatty.id)
    fresh_id, _ = await matching.get_or_create_match(db, me.id, fresh.id)
    await db.commit()

    base = utcnow() - timedelta(days=1)
    for offset, match_id in enumerate((quiet_id, chatty_id, fresh_id)):
        match = await db.get(Match, match_id)
        match.created_at = base + timedelta(minutes=offset)
    await db.commit()

    # A message moves the middle match ahead of the newer untouched one
    await conversation.send_message(db, chatty_id, me.id, "hello")

    summaries = await matching.list_matches(db, me.id)

    assert [s.match.id for s in summaries] == [chatty_id, fresh_id, quiet_id]
