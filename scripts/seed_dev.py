#!/usr/bin/env python3
"""
Seed the development database with sample accounts, likes, matches and messages.

Usage:
    python scripts/seed_dev.py [count] [target_email]

Re-running is safe: existing sample accounts are reused and likes and
matches go through the idempotent bulk path.
"""

import asyncio
import os
import random
import sys
from datetime import timedelta

from sqlalchemy import func, select

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.db import AsyncSessionLocal, utcnow
from core.security import hash_password
from models.match import Match
from models.message import Message
from models.profile import INTENTS, Profile
from models.user import User
from services.accounts import get_user_by_email
from services.matching import get_or_create_match, insert_like

SEED_PASSWORD = "password123"
SEED_DOMAIN = "mail.mcgill.ca"

NAMES = [
    "Alex", "Sam", "Jordan", "Taylor", "Morgan", "Casey", "Riley", "Avery",
    "Quinn", "Jamie", "Charlie", "Dakota", "Emerson", "Finley", "Harper", "Rowan",
]
BIOS = [
    "Coffee addict and late-night library regular.",
    "Looking for someone to explore Montreal with.",
    "Mount Royal hikes on weekends, thesis on weekdays.",
    "Ask me about my plant collection.",
    "Amateur chef, professional procrastinator.",
    "Always down for a concert or a pickup game.",
]
FACULTIES = ["Arts", "Science", "Engineering", "Management", "Law", "Medicine", "Music", "Education"]
YEARS = [2025, 2026, 2027, 2028]
PRONOUNS = ["she/her", "he/him", "they/them"]
GENDERS = ["woman", "man", "non-binary"]
OPENERS = [
    "Hey! How's your semester going?",
    "Hi, I saw you're in {faculty} too!",
    "Any good study spots you'd recommend?",
    "Coffee sometime this week?",
    "Haha, love your bio.",
]


async def seed_users(db, count: int) -> list[User]:
    """Create (or reuse) ``count`` verified sample accounts with profiles."""
    users: list[User] = []
    for index in range(count):
        name = NAMES[index % len(NAMES)]
        email = f"{name.lower()}.seed{index}@{SEED_DOMAIN}"

        user = await get_user_by_email(db, email)
        if user is None:
            user = User(email=email, password_hash=hash_password(SEED_PASSWORD), mcgill_verified=True)
            db.add(user)
            await db.flush()

            db.add(
                Profile(
                    user_id=user.id,
                    display_name=name,
                    bio=random.choice(BIOS),
                    photos=[],
                    faculty=random.choice(FACULTIES),
                    year=random.choice(YEARS),
                    pronouns=random.choice(PRONOUNS),
                    gender=random.choice(GENDERS),
                    intent=random.choice(INTENTS),
                    age_min=18,
                    age_max=30,
                    gender_preference=[],
                )
            )
            print(f"   + {email} (ID: {user.id})")
        users.append(user)

    await db.flush()
    return users


async def seed_messages(db, match_id: int, user_a: int, user_b: int, max_messages: int) -> int:
    """Add 1..max_messages alternating messages to a match that has none."""
    existing = await db.scalar(select(func.count(Message.id)).where(Message.match_id == match_id))
    if existing:
        return 0

    count = random.randint(1, max_messages)
    start = utcnow() - timedelta(hours=count)
    sent_at = start
    for index in range(count):
        sender = user_a if index % 2 == 0 else user_b
        body = random.choice(OPENERS).format(faculty=random.choice(FACULTIES))
        sent_at = start + timedelta(hours=index)
        db.add(Message(match_id=match_id, sender_id=sender, body=body, created_at=sent_at))

    match = await db.get(Match, match_id)
    if match is not None:
        match.last_message_at = sent_at
    return count


async def seed_target(db, target: User, users: list[User], max_messages: int = 4) -> None:
    """Give ``target`` some incoming likes and a few matches with conversations."""
    candidates = [user for user in users if user.id != target.id]
    random.shuffle(candidates)

    split = len(candidates) // 2
    admirers, mutuals = candidates[:split], candidates[split:]

    for admirer in admirers:
        await insert_like(db, admirer.id, target.id)
    print(f"   💌 {len(admirers)} incoming likes for {target.email}")

    for other in mutuals:
        await insert_like(db, other.id, target.id)
        await insert_like(db, target.id, other.id)
        match_id, created = await get_or_create_match(db, target.id, other.id)
        seeded = await seed_messages(db, match_id, target.id, other.id, max_messages)
        status = "new" if created else "existing"
        print(f"   💞 match {match_id} with {other.email} ({status}, {seeded} messages seeded)")


async def main() -> None:
    count = int(sys.argv[1]) if len(sys.argv) > 1 else 12
    target_email = sys.argv[2] if len(sys.argv) > 2 else None

    async with AsyncSessionLocal() as db:
        try:
            print(f"👥 Seeding {count} sample accounts (password: {SEED_PASSWORD})")
            users = await seed_users(db, count)

            if target_email:
                target = await get_user_by_email(db, target_email)
                if target is None:
                    print(f"❌ Target account '{target_email}' not found")
                else:
                    await seed_target(db, target, users)

            await db.commit()
            print("✅ Done")
        except Exception as e:
            await db.rollback()
            print(f"❌ Seeding failed: {e}")
            raise


if __name__ == "__main__":
    asyncio.run(main())
