"""
Care Guide Notes API — Note Service
=====================================

What:  Business rules for notes: ownership, listing, partial updates.
Who:   Called by the /api/v1/notes route handlers.

Access rules:
    - Every authenticated user creates notes for themself
    - Owners read/update/delete their notes; ADMIN and SUPER_ADMIN may act
      on any note
    - Only admins list every user's notes (with the author's name and email)

Error Handling Strategy:
    Application exceptions (NotFoundError, PermissionDeniedError,
    InvalidQueryError) propagate as-is. SQLAlchemy errors are logged and
    wrapped in DatabaseError so no SQL reaches the client.
"""

import logging
import uuid
from typing import Any, Dict, List, Mapping, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from careguide.exceptions import DatabaseError, NotFoundError, PermissionDeniedError
from careguide.models.note import Note
from careguide.models.user import User
from careguide.query_builder import QueryBuilder
from careguide.schemas.common import PaginationMeta
from careguide.schemas.note import NoteCreate, NoteUpdate

logger = logging.getLogger(__name__)

NOTE_SEARCHABLE_FIELDS = ["title", "content"]


class NoteService:
    """Stateless; every call receives its session (or session factory)."""

    async def create_note(
        self, db: AsyncSession, payload: NoteCreate, actor: User
    ) -> Dict[str, Any]:
        try:
            note = Note(**payload.model_dump(mode="json"), author_id=actor.id)
            db.add(note)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating note for %s: %s", actor.id, str(e))
            raise DatabaseError(
                message="Could not create the note. Please try again.",
                context={"error_type": type(e).__name__},
            )
        logger.info("Note %s created by %s", note.id, actor.id)
        return note.to_dict()

    async def get_my_notes(
        self,
        sessions: async_sessionmaker[AsyncSession],
        query: Mapping[str, str],
        actor: User,
    ) -> Tuple[List[Dict[str, Any]], PaginationMeta]:
        builder = QueryBuilder(select(Note).where(Note.author_id == actor.id), query)
        return await self._list(builder, sessions)

    async def get_all_notes(
        self,
        sessions: async_sessionmaker[AsyncSession],
        query: Mapping[str, str],
    ) -> Tuple[List[Dict[str, Any]], PaginationMeta]:
        base = select(Note).options(
            selectinload(Note.author).load_only(User.name, User.email)
        )
        return await self._list(QueryBuilder(base, query), sessions)

    async def get_note(
        self, db: AsyncSession, note_id: uuid.UUID, actor: User
    ) -> Dict[str, Any]:
        note = await self._load(
            db,
            note_id,
            options=[selectinload(Note.author).load_only(User.name, User.email)],
        )
        if not actor.is_privileged and note.author_id != actor.id:
            raise PermissionDeniedError("You are not authorized to view this note")
        return note.to_dict()

    async def update_note(
        self, db: AsyncSession, note_id: uuid.UUID, payload: NoteUpdate, actor: User
    ) -> Dict[str, Any]:
        note = await self._load(db, note_id)
        if not actor.is_privileged and note.author_id != actor.id:
            raise PermissionDeniedError("You can only update your own notes")

        changes = payload.model_dump(exclude_unset=True, exclude_none=True, mode="json")
        for field, value in changes.items():
            setattr(note, field, value)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not update the note. Please try again.",
                context={"note_id": str(note_id)},
            )
        return note.to_dict()

    async def delete_note(self, db: AsyncSession, note_id: uuid.UUID, actor: User) -> None:
        note = await self._load(db, note_id)
        if not actor.is_privileged and note.author_id != actor.id:
            raise PermissionDeniedError("You can only delete your own notes")
        try:
            await db.delete(note)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not delete the note. Please try again.",
                context={"note_id": str(note_id)},
            )
        logger.info("Note %s deleted by %s", note_id, actor.id)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _list(
        self, builder: QueryBuilder, sessions: async_sessionmaker[AsyncSession]
    ) -> Tuple[List[Dict[str, Any]], PaginationMeta]:
        builder.filter().search(NOTE_SEARCHABLE_FIELDS).sort().fields().paginate()
        try:
            return await builder.execute(sessions)
        except SQLAlchemyError as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def _load(self, db: AsyncSession, note_id: uuid.UUID, options=()) -> Note:
        try:
            result = await db.execute(select(Note).where(Note.id == note_id).options(*options))
            note = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the note. Please try again.",
                context={"note_id": str(note_id)},
            )
        if note is None:
            raise NotFoundError(resource="note", resource_id=str(note_id))
        return note


note_service = NoteService()
