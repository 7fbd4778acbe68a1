"""
Rubrik Review Desk — Seed Script
================================
Seeds rubrics, a division and one account per role so the review pipeline
can be exercised locally. Prints a bearer token for each account.

Usage:
    python -m scripts.seed_users

For development/staging only.
"""

import asyncio
import os
import sys

# Add parent dir to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from sqlalchemy import select

from app.core.database import async_session, init_db
from app.core.security import create_access_token
from app.models import Division, Rubric, User, UserRole


RUBRICS = [
    {"name": "Politics", "slug": "politics"},
    {"name": "Economy", "slug": "economy"},
    {"name": "Culture", "slug": "culture"},
]

DIVISION = "Newsroom"

ACCOUNTS = [
    {"name": "Desk Super Admin", "username": "superadmin", "role": UserRole.super_admin, "rubric": None},
    {"name": "Politics Admin", "username": "politics.admin", "role": UserRole.admin_rubric, "rubric": "politics"},
    {"name": "Politics Editor", "username": "politics.editor", "role": UserRole.editor_rubric, "rubric": "politics"},
    {"name": "Economy Editor", "username": "economy.editor", "role": UserRole.editor_rubric, "rubric": "economy"},
    {"name": "Staff Author", "username": "author", "role": UserRole.author, "rubric": None},
]


async def _ensure_rubrics(session) -> dict[str, Rubric]:
    rubrics: dict[str, Rubric] = {}
    for item in RUBRICS:
        result = await session.execute(select(Rubric).where(Rubric.slug == item["slug"]))
        rubric = result.scalar_one_or_none()
        if rubric is None:
            rubric = Rubric(name=item["name"], slug=item["slug"])
            session.add(rubric)
            await session.flush()
            print(f"  + rubric {item['slug']}")
        rubrics[item["slug"]] = rubric
    return rubrics


async def _ensure_division(session) -> Division:
    result = await session.execute(select(Division).where(Division.name == DIVISION))
    division = result.scalar_one_or_none()
    if division is None:
        division = Division(name=DIVISION)
        session.add(division)
        await session.flush()
    return division


async def seed_users():
    await init_db()

    async with async_session() as session:
        rubrics = await _ensure_rubrics(session)
        division = await _ensure_division(session)
        added = 0
        skipped = 0

        for account in ACCOUNTS:
            result = await session.execute(select(User).where(User.username == account["username"]))
            if result.scalar_one_or_none():
                print(f"  = {account['username']} already exists")
                skipped += 1
                continue

            rubric = rubrics.get(account["rubric"]) if account["rubric"] else None
            session.add(
                User(
                    name=account["name"],
                    username=account["username"],
                    role=account["role"],
                    rubric_id=rubric.id if rubric else None,
                    division_id=division.id,
                    is_active=True,
                )
            )
            print(f"  + {account['username']} ({account['role'].value})")
            added += 1

        await session.commit()

    print(f"\n{'=' * 50}")
    print(f"Users: {added} added | {skipped} already present")
    print(f"{'=' * 50}")
    for account in ACCOUNTS:
        print(f"{account['username']}: {create_access_token(account['username'])}")


if __name__ == "__main__":
    asyncio.run(seed_users())
