"""
Care Guide Notes API — User & Auth Request Schemas
====================================================

What:  Request bodies for registration, profile updates, login and password
       changes.

Password length:
    bcrypt only reads the first 72 bytes of a password (and recent releases
    reject longer input), so the API caps passwords at 72 characters.
"""

from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from careguide.models.user import IsActive, Role


class UserCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)
    phone: Optional[str] = Field(default=None, max_length=30)
    picture: Optional[str] = Field(default=None, max_length=500)
    address: Optional[str] = Field(default=None, max_length=255)
    interests: List[str] = Field(default_factory=list)


class UserUpdate(BaseModel):
    """
    Partial profile update.

    role, is_active, is_deleted and is_verified are accepted here but only
    honoured for admins; UserService enforces who may change what.
    """

    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=30)
    picture: Optional[str] = Field(default=None, max_length=500)
    address: Optional[str] = Field(default=None, max_length=255)
    interests: Optional[List[str]] = None
    role: Optional[Role] = None
    is_active: Optional[IsActive] = None
    is_deleted: Optional[bool] = None
    is_verified: Optional[bool] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=72)


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(min_length=1, max_length=72)
    new_password: str = Field(min_length=6, max_length=72)
