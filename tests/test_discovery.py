from datetime import timedelta

from core.db import utcnow
from models.block import Block
from services.discovery import discover
from services.matching import insert_like


async def _make_users(make_user, names):
    """Create users whose profiles are one minute apart, oldest first."""
    base = utcnow() - timedelta(hours=1)
    return [await make_user(name, created_at=base + timedelta(minutes=i)) for i, name in enumerate(names)]


async def test_newest_profiles_first_and_excludes_self(db, make_user):
    me, older, newer = await _make_users(make_user, ["Me", "Older", "Newer"])

    page = await discover(db, me.id, limit=10)

    assert [p.user_id for p in page.profiles] == [newer.id, older.id]
    assert page.has_more is False


async def test_liked_users_are_excluded(db, make_user):
    me, liked, other = await _make_users(make_user, ["Me", "Liked", "Other"])
    await insert_like(db, me.id, liked.id)
    await db.commit()

    page = await discover(db, me.id, limit=10)

    assert [p.user_id for p in page.profiles] == [other.id]


async def test_being_liked_does_not_hide_the_liker(db, make_user):
    me, admirer = await _make_users(make_user, ["Me", "Admirer"])
    await insert_like(db, admirer.id, me.id)
    await db.commit()

    page = await discover(db, me.id, limit=10)

    assert [p.user_id for p in page.profiles] == [admirer.id]


async def test_blocks_exclude_in_both_directions(db, make_user):
    me, blocked, blocker, other = await _make_users(make_user, ["Me", "Blocked", "Blocker", "Other"])
    db.add(Block(blocker_id=me.id, target_id=blocked.id))
    db.add(Block(blocker_id=blocker.id, target_id=me.id))
    await db.commit()

    page = await discover(db, me.id, limit=10)

    assert [p.user_id for p in page.profiles] == [other.id]


async def test_profiles_without_display_name_are_hidden(db, make_user):
    me = await make_user("Me")
    await make_user("")
    await make_user(None)
    await make_user(with_profile=False)
    visible = await make_user("Visible")

    page = await discover(db, me.id, limit=10)

    assert [p.user_id for p in page.profiles] == [visible.id]


async def test_has_more_when_page_is_full(db, make_user):
    users = await _make_users(make_user, ["Me", "A", "B", "C"])
    me = users[0]

    first = await discover(db, me.id, limit=2)
    assert len(first.profiles) == 2
    assert first.has_more is True

    # A page that exactly fills the limit still reports more
    exact = await discover(db, me.id, limit=3)
    assert len(exact.profiles) == 3
    assert exact.has_more is True

    short = await discover(db, me.id, limit=5)
    assert short.has_more is False


async def test_passed_profiles_come_back(db, make_user):
    me, other = await _make_users(make_user, ["Me", "Other"])

    first = await discover(db, me.id, limit=10)
    second = await discover(db, me.id, limit=10)

    assert [p.user_id for p in first.profiles] == [p.user_id for p in second.profiles] == [other.id]
