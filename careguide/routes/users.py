"""
Care Guide Notes API — User Route Handlers
============================================

What:  Registration, profile and admin endpoints under /api/v1/user.

Route Inventory:
    POST  /user/register                          public
    GET   /user/all-users                         ADMIN, SUPER_ADMIN
    GET   /user/me                                any role
    GET   /user/get-grouped-users-by-interests    ADMIN, SUPER_ADMIN
    GET   /user/get-user-posts/{id}               any role
    GET   /user/{id}                              ADMIN, SUPER_ADMIN
    PATCH /user/{id}                              any role (rules in UserService)

Fixed paths are declared before /{id} so they are never parsed as ids.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from careguide.database import get_db_session, get_session_factory
from careguide.dependencies import admin_only, any_user
from careguide.models.user import User
from careguide.schemas.common import ApiResponse, ErrorResponse, send_response
from careguide.schemas.user import UserCreate, UserUpdate
from careguide.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["Users"])


@router.post(
    "/register",
    status_code=201,
    response_model=ApiResponse,
    responses={409: {"description": "Email already registered", "model": ErrorResponse}},
    summary="Create an account",
)
async def register(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    user = await user_service.create_user(db, payload)
    return send_response(201, "User created successfully", user)


@router.get(
    "/all-users",
    response_model=ApiResponse,
    summary="List users (filter, search, sort, fields, page, limit)",
)
async def get_all_users(
    request: Request,
    _: User = Depends(admin_only),
    sessions: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ApiResponse:
    data, meta = await user_service.get_all_users(sessions, dict(request.query_params))
    return send_response(200, "All users retrieved successfully", data, meta)


@router.get("/me", response_model=ApiResponse, summary="Current user's profile")
async def get_me(
    user: User = Depends(any_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    return send_response(200, "Your profile retrieved successfully", await user_service.get_me(db, user))


@router.get(
    "/get-grouped-users-by-interests",
    response_model=ApiResponse,
    summary="Users grouped by interest",
)
async def get_grouped_users_by_interests(
    _: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    groups = await user_service.get_users_by_interests(db)
    return send_response(200, "Users grouped by interests retrieved successfully", groups)


@router.get(
    "/get-user-posts/{user_id}",
    response_model=ApiResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="A user with their posts",
)
async def get_user_posts(
    user_id: UUID,
    _: User = Depends(any_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    data = await user_service.get_user_posts(db, user_id)
    return send_response(200, "User posts retrieved successfully", data)


@router.get(
    "/{user_id}",
    response_model=ApiResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Single user",
)
async def get_user(
    user_id: UUID,
    _: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    return send_response(200, "User retrieved successfully", await user_service.get_user(db, user_id))


@router.patch(
    "/{user_id}",
    response_model=ApiResponse,
    responses={
        403: {"description": "Not allowed to make this change", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Update a user",
)
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    user: User = Depends(any_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    updated = await user_service.update_user(db, user_id, payload, user)
    return send_response(200, "User updated successfully", updated)
