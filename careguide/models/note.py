"""
Care Guide Notes API — Note Model
===================================

What:  ORM model for the `notes` table: private notes owned by one user.
Who:   Used by NoteService; listed through the QueryBuilder.

Index on author_id:
    "My notes" (WHERE author_id = :user ORDER BY created_at DESC) is the most
    frequent query in the app.
"""

import enum
import uuid
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from careguide.database import Base
from careguide.models.mixins import IdMixin, TimestampMixin

if TYPE_CHECKING:
    from careguide.models.user import User


class Priority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Note(IdMixin, TimestampMixin, Base):
    __tablename__ = "notes"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    author: Mapped["User"] = relationship(back_populates="notes")

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title='{self.title}', author_id={self.author_id})>"
