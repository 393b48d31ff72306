"""
Care Guide Notes API — User Service
=====================================

What:  Registration, profile reads/updates, the admin user listing and the
       two reporting views (users grouped by interest, a user's posts).
Who:   Called by the /api/v1/user route handlers.

Update rules (update_user):
    - USER may only update their own profile
    - ADMIN may not modify a SUPER_ADMIN
    - role: USER may not change roles; ADMIN may not grant SUPER_ADMIN nor
      change the role of an ADMIN or SUPER_ADMIN
    - is_active / is_deleted / is_verified: ADMIN and SUPER_ADMIN only
    - email and password are not updatable here
"""

import logging
import uuid
from collections import defaultdict
from typing import Any, Dict, List, Mapping, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from careguide.exceptions import (
    ConflictError,
    DatabaseError,
    NotFoundError,
    PermissionDeniedError,
)
from careguide.models.user import PRIVILEGED_ROLES, Role, User
from careguide.query_builder import QueryBuilder
from careguide.schemas.common import PaginationMeta
from careguide.schemas.user import UserCreate, UserUpdate
from careguide.security import hash_password

logger = logging.getLogger(__name__)

USER_SEARCHABLE_FIELDS = ["name", "email", "address"]

STATUS_FIELDS = ("is_active", "is_deleted", "is_verified")


class UserService:
    async def create_user(self, db: AsyncSession, payload: UserCreate) -> Dict[str, Any]:
        email = payload.email.lower()
        if await self.find_by_email(db, email) is not None:
            raise ConflictError("User already exists", context={"email": email})

        data = payload.model_dump(exclude={"email", "password"})
        user = User(
            **data,
            email=email,
            password_hash=hash_password(payload.password),
            auths=[{"provider": "credentials", "provider_id": email}],
        )
        try:
            db.add(user)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error registering %s: %s", email, str(e))
            raise DatabaseError(
                message="Could not create the account. Please try again.",
                context={"error_type": type(e).__name__},
            )
        logger.info("User %s registered", user.id)
        return user.to_dict()

    async def find_by_email(self, db: AsyncSession, email: str) -> User | None:
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_all_users(
        self,
        sessions: async_sessionmaker[AsyncSession],
        query: Mapping[str, str],
    ) -> Tuple[List[Dict[str, Any]], PaginationMeta]:
        builder = QueryBuilder(select(User), query)
        builder.filter().search(USER_SEARCHABLE_FIELDS).sort().fields().paginate()
        try:
            return await builder.execute(sessions)
        except SQLAlchemyError as e:
            logger.error("Database error listing users: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve users. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> Dict[str, Any]:
        user = await self._load(db, user_id)
        return user.to_dict()

    async def get_me(self, db: AsyncSession, actor: User) -> Dict[str, Any]:
        return await self.get_user(db, actor.id)

    async def update_user(
        self, db: AsyncSession, user_id: uuid.UUID, payload: UserUpdate, actor: User
    ) -> Dict[str, Any]:
        if actor.role == Role.USER.value and actor.id != user_id:
            raise PermissionDeniedError("You are not authorized")

        target = await self._load(db, user_id)
        if actor.role == Role.ADMIN.value and target.role == Role.SUPER_ADMIN.value:
            raise PermissionDeniedError("You are not authorized")

        changes = payload.model_dump(exclude_unset=True, exclude_none=True, mode="json")

        if "role" in changes:
            if actor.role == Role.USER.value:
                raise PermissionDeniedError("You are not authorized")
            if actor.role == Role.ADMIN.value:
                if changes["role"] == Role.SUPER_ADMIN.value:
                    raise PermissionDeniedError("You are not authorized")
                if target.role in PRIVILEGED_ROLES:
                    raise PermissionDeniedError(
                        "Admins cannot modify other Admins or Super Admins"
                    )

        if any(field in changes for field in STATUS_FIELDS) and not actor.is_privileged:
            raise PermissionDeniedError("You are not authorized")

        for field, value in changes.items():
            setattr(target, field, value)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not update the user. Please try again.",
                context={"user_id": str(user_id)},
            )
        logger.info("User %s updated by %s (%s)", user_id, actor.id, ", ".join(sorted(changes)))
        return target.to_dict()

    async def get_users_by_interests(self, db: AsyncSession) -> List[Dict[str, Any]]:
        """
        One group per distinct interest:
            [{"interest": "cooking", "users": [{id, name, email}, ...], "count": 2}, ...]
        Users with several interests appear in several groups.
        """
        try:
            result = await db.execute(
                select(User.id, User.name, User.email, User.interests).order_by(User.name)
            )
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error("Database error grouping users: %s", str(e))
            raise DatabaseError(
                message="Could not retrieve users. Please try again.",
                context={"error_type": type(e).__name__},
            )

        groups: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        for row in rows:
            for interest in dict.fromkeys(row.interests or []):
                groups[interest].append({"id": row.id, "name": row.name, "email": row.email})

        return [
            {"interest": interest, "users": users, "count": len(users)}
            for interest, users in sorted(groups.items())
        ]

    async def get_user_posts(self, db: AsyncSession, user_id: uuid.UUID) -> Dict[str, Any]:
        user = await self._load(db, user_id, options=[selectinload(User.posts)])
        return {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "posts": [post.to_dict(relationships=False) for post in user.posts],
        }

    async def _load(self, db: AsyncSession, user_id: uuid.UUID, options=()) -> User:
        try:
            result = await db.execute(select(User).where(User.id == user_id).options(*options))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the user. Please try again.",
                context={"user_id": str(user_id)},
            )
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user


user_service = UserService()
