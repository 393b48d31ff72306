"""
Care Guide Notes API — Notes Route Handlers
=============================================

What:  CRUD for notes under /api/v1/notes.
How:   List endpoints hand the raw query string to NoteService, which runs it
       through QueryBuilder:

           GET /api/v1/notes?searchTerm=meds&priority=HIGH&sort=-created_at&page=2&limit=10

       Single-note endpoints use a request-scoped session that commits on
       success.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from careguide.database import get_db_session, get_session_factory
from careguide.dependencies import admin_only, any_user
from careguide.models.user import User
from careguide.schemas.common import ApiResponse, ErrorResponse, send_response
from careguide.schemas.note import NoteCreate, NoteUpdate
from careguide.services.note_service import note_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notes", tags=["Notes"])

_NOTE_ERRORS = {
    403: {"description": "Not the owner of this note", "model": ErrorResponse},
    404: {"description": "Note not found", "model": ErrorResponse},
}


@router.post("", status_code=201, response_model=ApiResponse, summary="Create a note")
async def create_note(
    payload: NoteCreate,
    user: User = Depends(any_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    note = await note_service.create_note(db, payload, user)
    return send_response(201, "Note created successfully", note)


@router.get(
    "",
    response_model=ApiResponse,
    responses={400: {"description": "Malformed filter", "model": ErrorResponse}},
    summary="List the current user's notes",
)
async def get_my_notes(
    request: Request,
    user: User = Depends(any_user),
    sessions: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ApiResponse:
    data, meta = await note_service.get_my_notes(sessions, dict(request.query_params), user)
    return send_response(200, "Notes retrieved successfully", data, meta)


@router.get(
    "/all-notes",
    response_model=ApiResponse,
    responses={400: {"description": "Malformed filter", "model": ErrorResponse}},
    summary="List every user's notes with their authors",
)
async def get_all_notes(
    request: Request,
    _: User = Depends(admin_only),
    sessions: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ApiResponse:
    data, meta = await note_service.get_all_notes(sessions, dict(request.query_params))
    return send_response(200, "All notes retrieved successfully", data, meta)


@router.get("/{note_id}", response_model=ApiResponse, responses=_NOTE_ERRORS, summary="Single note")
async def get_note(
    note_id: UUID,
    user: User = Depends(any_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    return send_response(200, "Note retrieved successfully", await note_service.get_note(db, note_id, user))


@router.patch("/{note_id}", response_model=ApiResponse, responses=_NOTE_ERRORS, summary="Update a note")
async def update_note(
    note_id: UUID,
    payload: NoteUpdate,
    user: User = Depends(any_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    note = await note_service.update_note(db, note_id, payload, user)
    return send_response(200, "Note updated successfully", note)


@router.delete("/{note_id}", response_model=ApiResponse, responses=_NOTE_ERRORS, summary="Delete a note")
async def delete_note(
    note_id: UUID,
    user: User = Depends(any_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    await note_service.delete_note(db, note_id, user)
    return send_response(200, "Note deleted successfully")
