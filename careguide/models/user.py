"""
Care Guide Notes API — User Model
===================================

What:  ORM model for the `users` table.
Who:   Used by UserService, AuthService and the auth dependency.

Column notes:
    - email is unique; it is the login identifier and cannot be changed
    - password_hash is hidden: never serialized, never queryable from the API
    - is_active / is_deleted / is_verified gate access in get_current_user
    - interests and auths are small lists stored as JSON
"""

import enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from careguide.database import Base
from careguide.models.mixins import IdMixin, TimestampMixin

if TYPE_CHECKING:
    from careguide.models.note import Note
    from careguide.models.post import Post


class Role(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    USER = "USER"


PRIVILEGED_ROLES = frozenset({Role.ADMIN.value, Role.SUPER_ADMIN.value})


class IsActive(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    BLOCKED = "BLOCKED"


class User(IdMixin, TimestampMixin, Base):
    """
    An account that can log in, write notes and publish posts.

    Query Patterns:
        - Login / auth check: WHERE email = :email (unique index)
        - Admin listing: QueryBuilder over the whole table
    """

    __tablename__ = "users"
    __hidden__ = frozenset({"password_hash"})

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    picture: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[str] = mapped_column(
        String(20), nullable=False, default=IsActive.ACTIVE.value
    )
    # Verification flows are not implemented, so accounts start verified
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.USER.value)

    interests: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    # [{"provider": "credentials", "provider_id": "<email>"}]
    auths: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    notes: Mapped[List["Note"]] = relationship(
        back_populates="author", cascade="all, delete-orphan"
    )
    posts: Mapped[List["Post"]] = relationship(
        back_populates="author", cascade="all, delete-orphan"
    )

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
