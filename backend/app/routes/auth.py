"""
JunkHub Backend — Auth Route Handlers
=======================================

What:  Registration, login and logout for the three account kinds, "who am
       I", and the forgot/reset password flow.
How:   Successful registration or login sets the token as an HTTP-only
       cookie *and* returns it in the body, so browser clients can rely on
       the cookie while other clients send `Authorization: Bearer`.
Who:   Called by the frontend login, signup and account-recovery pages.
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.credentials import TokenIdentity
from app.auth.dependencies import require_authenticated
from app.config import settings
from app.database import get_db_session
from app.models.enums import Role
from app.schemas.accounts import (
    AdminAuthResponse,
    AdminMe,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    MeResponse,
    OwnerAuthResponse,
    OwnerMe,
    OwnerRegisterResponse,
    RegisterOwnerRequest,
    RegisterUserRequest,
    ResetPasswordRequest,
    UserAuthResponse,
    UserMe,
)
from app.schemas.common import ErrorResponse, MessageResponse
from app.services.account_service import OWNER_PENDING_MESSAGE, account_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

_ME_MODELS = {
    Role.USER: UserMe,
    Role.OWNER: OwnerMe,
    Role.ADMIN: AdminMe,
}


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.token_max_age_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.auth_cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


# ══════════════════════════════════════════════════════════════════════════
# Registration
# ══════════════════════════════════════════════════════════════════════════

@router.post(
    "/register/user",
    response_model=UserAuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Invalid input or email taken", "model": ErrorResponse}},
    summary="Register a customer account",
)
async def register_user(
    body: RegisterUserRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> UserAuthResponse:
    user, token = await account_service.register_user(db, body)
    set_auth_cookie(response, token)
    return UserAuthResponse(user=user, token=token)


@router.post(
    "/register/owner",
    response_model=OwnerRegisterResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Invalid input or email taken", "model": ErrorResponse}},
    summary="Register a shop owner account (requires admin approval)",
)
async def register_owner(
    body: RegisterOwnerRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> OwnerRegisterResponse:
    """
    Creates the owner unapproved and notifies every admin. No token is
    issued until an admin approves the account.
    """
    owner, token = await account_service.register_owner(db, body)
    if token:
        set_auth_cookie(response, token)
    return OwnerRegisterResponse(message=OWNER_PENDING_MESSAGE, owner=owner, token=token)


# ══════════════════════════════════════════════════════════════════════════
# Login / Logout
# ══════════════════════════════════════════════════════════════════════════

_LOGIN_RESPONSES = {
    401: {"description": "Invalid email or password", "model": ErrorResponse},
}


@router.post(
    "/login/user",
    response_model=UserAuthResponse,
    responses=_LOGIN_RESPONSES,
    summary="Log in as a customer",
)
async def login_user(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> UserAuthResponse:
    user, token = await account_service.login(db, Role.USER, body.email, body.password)
    set_auth_cookie(response, token)
    return UserAuthResponse(user=user, token=token)


@router.post(
    "/login/owner",
    response_model=OwnerAuthResponse,
    responses={
        **_LOGIN_RESPONSES,
        403: {"description": "Account pending approval (code PENDING_APPROVAL)", "model": ErrorResponse},
    },
    summary="Log in as a shop owner",
)
async def login_owner(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> OwnerAuthResponse:
    owner, token = await account_service.login(db, Role.OWNER, body.email, body.password)
    set_auth_cookie(response, token)
    return OwnerAuthResponse(owner=owner, token=token)


@router.post(
    "/login/admin",
    response_model=AdminAuthResponse,
    responses=_LOGIN_RESPONSES,
    summary="Log in as an admin",
)
async def login_admin(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> AdminAuthResponse:
    admin, token = await account_service.login(db, Role.ADMIN, body.email, body.password)
    set_auth_cookie(response, token)
    return AdminAuthResponse(admin=admin, token=token)


@router.post("/logout", response_model=MessageResponse, summary="Clear the auth cookie")
async def logout(response: Response) -> MessageResponse:
    clear_auth_cookie(response)
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/me",
    response_model=MeResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        403: {"description": "Owner pending approval", "model": ErrorResponse},
        404: {"description": "Account no longer exists", "model": ErrorResponse},
    },
    summary="Current account for any role",
)
async def me(
    identity: TokenIdentity = Depends(require_authenticated),
    db: AsyncSession = Depends(get_db_session),
) -> MeResponse:
    account = await account_service.me(db, identity)
    return MeResponse(user=_ME_MODELS[identity.role].model_validate(account))


# ══════════════════════════════════════════════════════════════════════════
# Password Recovery
# ══════════════════════════════════════════════════════════════════════════

@router.post(
    "/forgot-password",
    response_model=ForgotPasswordResponse,
    responses={404: {"description": "No account matches email and phone", "model": ErrorResponse}},
    summary="Issue a short-lived password reset token",
)
async def forgot_password(
    body: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ForgotPasswordResponse:
    raw_token, expires_at = await account_service.request_password_reset(
        db, Role(body.role), body.email, body.phone
    )
    return ForgotPasswordResponse(
        message="Verification successful. Use the reset token to set a new password.",
        reset_token=raw_token,
        expires_at=expires_at,
    )


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={400: {"description": "Invalid or expired reset token", "model": ErrorResponse}},
    summary="Set a new password with a reset token",
)
async def reset_password(
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await account_service.reset_password(db, body.reset_token, body.new_password)
    return MessageResponse(message="Password reset successfully")
