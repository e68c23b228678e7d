"""
Authentication endpoints.

- Email/Password login against the identity provider
- Session management (refresh, logout, current identity)
- Password reset trigger and password strength check
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.security import APIKeyHeader
from pydantic import BaseModel, EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    CSRF_COOKIE,
    SESSION_COOKIE,
    extract_token,
    generate_csrf_token,
    get_acting_identity,
)
from app.core.config import get_settings
from app.core.database import get_session
from app.core.identity import AuthSession, LocalIdentityProvider
from app.core.permissions import ActingIdentity
from app.core.sanitize import validate_password_strength
from app.services import users as user_service
from points_ledger_shared.schemas.users import (
    CapabilitiesResponse,
    CurrentUserResponse,
    PasswordStrengthRequest,
    PasswordStrengthResponse,
    UserResponse,
)

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()

_authorization = APIKeyHeader(name="Authorization", auto_error=False)

# Cookie config
COOKIE_KWARGS = {
    "httponly": True,
    "secure": not settings.debug,  # allow non-HTTPS in dev
    "samesite": "lax",
    "path": "/",
    "max_age": settings.jwt_expire_minutes * 60,
}


def _set_session_cookies(response: Response, token: str, csrf: str) -> None:
    """Set the session JWT and CSRF cookies on a response."""
    response.set_cookie(key=SESSION_COOKIE, value=token, **COOKIE_KWARGS)
    response.set_cookie(
        key=CSRF_COOKIE,
        value=csrf,
        httponly=False,  # JS must read this
        secure=not settings.debug,
        samesite="lax",
        path="/",
        max_age=settings.jwt_expire_minutes * 60,
    )


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AuthResponse(BaseModel):
    user_id: str
    email: str
    access_token: str
    expires_at: str
    message: str


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str


def _auth_response(auth: AuthSession, message: str) -> AuthResponse:
    return AuthResponse(
        user_id=str(auth.account_id),
        email=auth.email,
        access_token=auth.access_token,
        expires_at=auth.expires_at.isoformat(),
        message=message,
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with email/password and receive a session."""
    auth = await LocalIdentityProvider(session).sign_in(body.email, body.password)
    _set_session_cookies(response, auth.access_token, generate_csrf_token())
    return _auth_response(auth, "Login successful")


@router.post("/refresh", response_model=AuthResponse)
async def refresh_session(
    request: Request,
    response: Response,
    authorization: Optional[str] = Depends(_authorization),
    session: AsyncSession = Depends(get_session),
):
    """Issue a new session token and revoke the current one."""
    token = extract_token(request, authorization)
    if not token:
        raise HTTPException(status_code=401, detail="No active session")
    auth = await LocalIdentityProvider(session).refresh(token)
    _set_session_cookies(response, auth.access_token, generate_csrf_token())
    return _auth_response(auth, "Session refreshed")


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    authorization: Optional[str] = Depends(_authorization),
    session: AsyncSession = Depends(get_session),
):
    """Invalidate the current session."""
    token = extract_token(request, authorization)
    if token:
        await LocalIdentityProvider(session).sign_out(token)

    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")
    return {"message": "Logged out"}


@router.get("/me", response_model=CurrentUserResponse)
async def current_user(
    identity: ActingIdentity = Depends(get_acting_identity),
    session: AsyncSession = Depends(get_session),
):
    """The signed-in identity, its profile (if provisioned) and capabilities."""
    profile = await user_service.get_current_app_user(session, identity)
    caps = identity.capabilities
    return CurrentUserResponse(
        user_id=identity.user_id,
        email=identity.email,
        profile=UserResponse.model_validate(profile) if profile else None,
        capabilities=CapabilitiesResponse(
            role=caps.role,
            can_edit=caps.can_edit,
            can_manage_users=caps.can_manage_users,
            is_super_admin=caps.is_super_admin,
            is_editor=caps.is_editor,
            is_viewer=caps.is_viewer,
        ),
    )


@router.post("/password-reset", status_code=202)
async def request_password_reset(
    body: PasswordResetRequest,
    session: AsyncSession = Depends(get_session),
):
    """Trigger a password reset. The response never reveals whether the email exists."""
    await LocalIdentityProvider(session).request_password_reset(body.email)
    return {"message": "If the account exists, a password reset has been sent"}


@router.post("/password-reset/confirm")
async def confirm_password_reset(
    body: PasswordResetConfirm,
    session: AsyncSession = Depends(get_session),
):
    await LocalIdentityProvider(session).reset_password(body.token, body.new_password)
    return {"message": "Password updated"}


@router.post("/password-strength", response_model=PasswordStrengthResponse)
async def password_strength(body: PasswordStrengthRequest):
    result = validate_password_strength(body.password)
    return PasswordStrengthResponse(
        is_valid=result.is_valid, errors=result.errors, strength=result.strength
    )
