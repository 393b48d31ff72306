"""
Care Guide Notes API — Demo Users
===================================

Creates one SUPER_ADMIN and one USER account for local development when
SEED_DEMO_USERS is enabled. Existing emails are left untouched, so running
it on every startup is safe.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from careguide.models.user import Role, User
from careguide.security import hash_password

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "123456"

DEMO_USERS = [
    {"name": "Admin", "email": "admin@example.com", "role": Role.SUPER_ADMIN.value},
    {"name": "User", "email": "user@example.com", "role": Role.USER.value},
]


async def seed_demo_users(session_factory: async_sessionmaker[AsyncSession]) -> int:
    """Insert the demo accounts that do not exist yet. Returns how many were created."""
    created = 0
    async with session_factory() as session:
        for account in DEMO_USERS:
            existing = await session.execute(select(User.id).where(User.email == account["email"]))
            if existing.scalar_one_or_none() is not None:
                continue
            session.add(
                User(
                    **account,
                    password_hash=hash_password(DEMO_PASSWORD),
                    auths=[{"provider": "credentials", "provider_id": account["email"]}],
                )
            )
            created += 1
        await session.commit()

    if created:
        logger.info("Seeded %d demo user(s)", created)
    return created
