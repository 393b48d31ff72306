"""
Care Guide Notes API — Post Model
===================================

What:  ORM model for the `posts` table: public posts in the community feed.
Who:   Used by PostService and UserService.get_user_posts.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from careguide.database import Base
from careguide.models.mixins import IdMixin, TimestampMixin

if TYPE_CHECKING:
    from careguide.models.user import User


class Post(IdMixin, TimestampMixin, Base):
    __tablename__ = "posts"

    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    author: Mapped["User"] = relationship(back_populates="posts")

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, author_id={self.author_id})>"
