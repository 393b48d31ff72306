"""
Care Guide Notes API — Password Hashing & Access Tokens
=========================================================

What:  bcrypt password hashing and HS256 JWT access tokens.
Who:   AuthService (login, change password), UserService (registration),
       the auth dependency (token verification), the demo-user seeder.

Token claims:
    {"user_id": "<uuid>", "email": "...", "role": "USER", "iat": ..., "exp": ...}
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt

from careguide.config import settings
from careguide.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_salt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """Constant-time comparison; accounts without a password never match."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        logger.warning("Stored password hash could not be parsed")
        return False


def create_access_token(claims: Dict[str, Any]) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        **claims,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_access_expires_minutes),
    }
    return jwt.encode(payload, settings.jwt_access_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiry and return the claims.

    Raises:
        AuthenticationError: expired, tampered or otherwise unreadable token
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_access_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "user_id"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired. Please log in again.")
    except jwt.PyJWTError as exc:
        raise AuthenticationError("Invalid access token", context={"reason": str(exc)})
