"""
Care Guide Notes API — Auth Service
=====================================

What:  Credential login and password change.
How:   bcrypt verification against the stored hash; on success a signed
       access token carrying {user_id, email, role} is issued. The route sets
       it as the `accessToken` cookie and also returns it in the body.
"""

import logging
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from careguide.exceptions import AuthenticationError, PermissionDeniedError
from careguide.models.user import IsActive, User
from careguide.security import create_access_token, hash_password, verify_password
from careguide.services.user_service import user_service

logger = logging.getLogger(__name__)


class AuthService:
    async def login(self, db: AsyncSession, email: str, password: str) -> Dict[str, Any]:
        user = await user_service.find_by_email(db, email)
        # Same message for unknown email and wrong password
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", email.lower())
            raise AuthenticationError("Invalid email or password")

        if user.is_active in (IsActive.BLOCKED.value, IsActive.INACTIVE.value):
            raise PermissionDeniedError(f"User is {user.is_active}")
        if user.is_deleted:
            raise PermissionDeniedError("User is deleted")

        token = create_access_token(
            {"user_id": str(user.id), "email": user.email, "role": user.role}
        )
        logger.info("User %s logged in", user.id)
        return {"access_token": token, "user": user.to_dict()}

    async def change_password(
        self, db: AsyncSession, actor: User, old_password: str, new_password: str
    ) -> None:
        if not verify_password(old_password, actor.password_hash):
            raise AuthenticationError("Old password does not match")
        actor.password_hash = hash_password(new_password)
        await db.flush()
        logger.info("User %s changed their password", actor.id)


auth_service = AuthService()
