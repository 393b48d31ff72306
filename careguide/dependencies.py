"""
Care Guide Notes API — Authentication & Authorization Dependencies
====================================================================

What:  FastAPI dependencies resolving the current user from the access token
       and restricting routes to roles.
How:   The token is read from the Authorization header (raw token or
       "Bearer <token>") and, failing that, from the `accessToken` cookie set
       at login. The header wins so API clients and tests can act as a
       specific user regardless of cookies.

Usage:
    @router.get("/all-notes")
    async def all_notes(user: User = Depends(require_roles(Role.ADMIN, Role.SUPER_ADMIN))):
        ...
"""

import logging
import uuid
from typing import Callable, Optional

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from careguide.database import get_db_session
from careguide.exceptions import AuthenticationError, PermissionDeniedError
from careguide.models.user import IsActive, Role, User
from careguide.security import decode_access_token

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "accessToken"


def extract_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization")
    if header:
        scheme, _, credentials = header.partition(" ")
        if scheme.lower() == "bearer" and credentials:
            return credentials.strip()
        return header.strip()
    return request.cookies.get(ACCESS_TOKEN_COOKIE)


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> User:
    token = extract_token(request)
    if not token:
        raise AuthenticationError("No token received")

    claims = decode_access_token(token)
    try:
        user_id = uuid.UUID(str(claims["user_id"]))
    except ValueError:
        raise AuthenticationError("Invalid access token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise AuthenticationError("User does not exist")

    if user.is_active in (IsActive.BLOCKED.value, IsActive.INACTIVE.value):
        raise PermissionDeniedError(f"User is {user.is_active}")
    if user.is_deleted:
        raise PermissionDeniedError("User is deleted")
    if not user.is_verified:
        raise PermissionDeniedError("User is not verified")

    request.state.user_id = str(user.id)
    return user


def require_roles(*roles: Role) -> Callable:
    """Dependency factory: the current user must hold one of `roles`."""
    allowed = {role.value for role in roles}

    async def _check_role(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            logger.info("User %s with role %s denied (needs %s)", user.id, user.role, sorted(allowed))
            raise PermissionDeniedError("You are not permitted to view this route")
        return user

    return _check_role


# Shorthands used by the routers
any_user = require_roles(Role.USER, Role.ADMIN, Role.SUPER_ADMIN)
admin_only = require_roles(Role.ADMIN, Role.SUPER_ADMIN)
