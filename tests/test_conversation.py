from datetime import timedelta

import pytest

from core.db import utcnow
from core.errors import Forbidden, InvalidMessage, MatchNotFound
from models.match import Match
from models.message import Message
from services import conversation
from services.matching import get_or_create_match


@pytest.fixture
async def pair(db, make_user):
    alice = await make_user("Alice")
    bob = await make_user("Bob")
    match_id, _ = await get_or_create_match(db, alice.id, bob.id)
    await db.commit()
    return alice, bob, match_id


async def test_send_and_list(db, pair):
    alice, bob, match_id = pair

    await conversation.send_message(db, match_id, alice.id, "hi bob")
    await conversation.send_message(db, match_id, bob.id, "hi alice")

    messages = await conversation.list_messages(db, match_id, bob.id)

    assert [(m.sender_id, m.body) for m in messages] == [(alice.id, "hi bob"), (bob.id, "hi alice")]


async def test_equal_timestamps_keep_insertion_order(db, pair):
    alice, bob, match_id = pair
    same_instant = utcnow()
    for i in range(1, 6):
        db.add(Message(match_id=match_id, sender_id=alice.id, body=f"msg {i}", created_at=same_instant))
        await db.flush()
    await db.commit()

    messages = await conversation.list_messages(db, match_id, alice.id)

    assert [m.body for m in messages] == [f"msg {i}" for i in range(1, 6)]


async def test_older_timestamp_sorts_first(db, pair):
    alice, bob, match_id = pair
    now = utcnow()
    db.add(Message(match_id=match_id, sender_id=alice.id, body="later", created_at=now))
    db.add(Message(match_id=match_id, sender_id=bob.id, body="earlier", created_at=now - timedelta(seconds=1)))
    await db.commit()

    messages = await conversation.list_messages(db, match_id, alice.id)

    assert [m.body for m in messages] == ["earlier", "later"]


async def test_body_is_trimmed(db, pair):
    alice, _, match_id = pair

    message = await conversation.send_message(db, match_id, alice.id, "  hello  \n")

    assert message.body == "hello"
    assert message.id is not None
    assert message.created_at is not None


async def test_body_length_limit(db, pair):
    alice, _, match_id = pair

    with pytest.raises(InvalidMessage):
        await conversation.send_message(db, match_id, alice.id, "x" * 2001)

    message = await conversation.send_message(db, match_id, alice.id, "  " + "x" * 2000 + "  ")
    assert len(message.body) == 2000


@pytest.mark.parametrize("body", [None, "", "   ", 42, ["hi"]])
async def test_invalid_bodies(db, pair, body):
    alice, _, match_id = pair

    with pytest.raises(InvalidMessage) as exc_info:
        await conversation.send_message(db, match_id, alice.id, body)
    assert exc_info.value.code == "INVALID_MESSAGE"


async def test_non_member_is_forbidden(db, make_user, pair):
    _, _, match_id = pair
    carol = await make_user("Carol")

    with pytest.raises(Forbidden):
        await conversation.list_messages(db, match_id, carol.id)
    with pytest.raises(Forbidden):
        await conversation.send_message(db, match_id, carol.id, "let me in")


async def test_unknown_match(db, pair):
    alice, _, _ = pair

    with pytest.raises(MatchNotFound):
        await conversation.list_messages(db, 99999, alice.id)
    with pytest.raises(MatchNotFound):
        await conversation.send_message(db, 99999, alice.id, "hello?")


async def test_send_updates_last_message_at(db, pair):
    alice, _, match_id = pair
    match = await db.get(Match, match_id)
    assert match.last_message_at is None

    message = await conversation.send_message(db, match_id, alice.id, "hello")

    await db.refresh(match)
    assert match.last_message_at == message.created_at
