"""
Care Guide Notes API — Posts Route Handlers
=============================================

What:  The community feed under /api/v1/posts.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from careguide.database import get_db_session, get_session_factory
from careguide.dependencies import any_user
from careguide.models.user import User
from careguide.schemas.common import ApiResponse, ErrorResponse, send_response
from careguide.schemas.note import PostCreate, PostUpdate
from careguide.services.post_service import post_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["Posts"])

_POST_ERRORS = {
    403: {"description": "Not the author of this post", "model": ErrorResponse},
    404: {"description": "Post not found", "model": ErrorResponse},
}


@router.post("", status_code=201, response_model=ApiResponse, summary="Create a post")
async def create_post(
    payload: PostCreate,
    user: User = Depends(any_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    post = await post_service.create_post(db, payload, user)
    return send_response(201, "Post created successfully", post)


@router.get("", response_model=ApiResponse, summary="List posts with their authors")
async def get_all_posts(
    request: Request,
    _: User = Depends(any_user),
    sessions: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ApiResponse:
    data, meta = await post_service.get_all_posts(sessions, dict(request.query_params))
    return send_response(200, "Posts retrieved successfully", data, meta)


@router.patch("/{post_id}", response_model=ApiResponse, responses=_POST_ERRORS, summary="Edit a post")
async def update_post(
    post_id: UUID,
    payload: PostUpdate,
    user: User = Depends(any_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    post = await post_service.update_post(db, post_id, payload, user)
    return send_response(200, "Post updated successfully", post)


@router.delete("/{post_id}", response_model=ApiResponse, responses=_POST_ERRORS, summary="Delete a post")
async def delete_post(
    post_id: UUID,
    user: User = Depends(any_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    await post_service.delete_post(db, post_id, user)
    return send_response(200, "Post deleted successfully")
