#!/usr/bin/env python3
"""
List accounts with their profile status.
"""

import asyncio
import os
import sys

from sqlalchemy import select

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.db import AsyncSessionLocal
from models.profile import Profile
from models.user import User


async def list_users() -> None:
    async with AsyncSessionLocal() as db:
        result = await db.execute(
            select(User, Profile).outerjoin(Profile, Profile.user_id == User.id).order_by(User.created_at)
        )
        rows = result.all()

        if not rows:
            print("👥 No accounts in the database")
            return

        print(f"👥 Accounts ({len(rows)}):")
        for user, profile in rows:
            verified = "verified" if user.mcgill_verified else "unverified"
            if profile is None:
                status = "no profile"
            elif not profile.display_name:
                status = "profile incomplete (hidden from discovery)"
            else:
                status = f"{profile.display_name}, {profile.faculty or '-'}, {profile.intent or '-'}"
            print(f"   • {user.email} (ID: {user.id}, {verified}) - {status}")


if __name__ == "__main__":
    asyncio.run(list_users())
