"""
Care Guide Notes API — Auth Route Handlers
============================================

What:  POST /api/v1/auth/login, /logout and /change-password.
How:   Login returns the access token in the body and also sets it as the
       httponly `accessToken` cookie the browser client relies on.
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from careguide.config import settings
from careguide.database import get_db_session
from careguide.dependencies import ACCESS_TOKEN_COOKIE, any_user
from careguide.models.user import User
from careguide.schemas.common import ApiResponse, ErrorResponse, send_response
from careguide.schemas.user import ChangePasswordRequest, LoginRequest
from careguide.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=ApiResponse,
    responses={
        401: {"description": "Invalid email or password", "model": ErrorResponse},
        403: {"description": "Account blocked, inactive or deleted", "model": ErrorResponse},
    },
    summary="Log in with email and password",
)
async def login(
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    result = await auth_service.login(db, payload.email, payload.password)
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=result["access_token"],
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.jwt_access_expires_minutes * 60,
    )
    return send_response(200, "User logged in successfully", result)


@router.post("/logout", response_model=ApiResponse, summary="Clear the access-token cookie")
async def logout(response: Response) -> ApiResponse:
    response.delete_cookie(
        key=ACCESS_TOKEN_COOKIE,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    return send_response(200, "User logged out successfully")


@router.post(
    "/change-password",
    response_model=ApiResponse,
    responses={401: {"description": "Old password does not match", "model": ErrorResponse}},
    summary="Change the current user's password",
)
async def change_password(
    payload: ChangePasswordRequest,
    user: User = Depends(any_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    await auth_service.change_password(db, user, payload.old_password, payload.new_password)
    return send_response(200, "Password changed successfully")
