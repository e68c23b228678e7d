"""
Authentication primitives and FastAPI dependencies.

- Password hashing (bcrypt)
- Signed session / password-reset tokens (PyJWT)
- Resolution of the request's ActingIdentity from a bearer token or cookie
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends, HTTPException, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session, set_rls_identity
from app.core.permissions import ActingIdentity, parse_role

log = structlog.get_logger()
settings = get_settings()

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)

SESSION_COOKIE = "pl_session"
CSRF_COOKIE = "pl_csrf"

PURPOSE_SESSION = "session"
PURPOSE_PASSWORD_RESET = "password_reset"

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with cost factor 12."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode(), hashed.encode())


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    subject: uuid.UUID,
    *,
    purpose: str = PURPOSE_SESSION,
    email: Optional[str] = None,
    expires_delta: timedelta | None = None,
) -> tuple[str, str, datetime]:
    """Create a signed JWT. Returns (token, jti, expires_at)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(subject),
        "purpose": purpose,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    if email:
        payload["email"] = email
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti, exp


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


def generate_csrf_token() -> str:
    """Generate a random CSRF token."""
    return secrets.token_urlsafe(32)


def extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    """Bearer header first (API clients), then the session cookie (browsers)."""
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return request.cookies.get(SESSION_COOKIE)


# ---------------------------------------------------------------------------
# Authentication dependency
# ---------------------------------------------------------------------------

async def get_acting_identity(
    request: Request,
    authorization: Optional[str] = Depends(authorization_header),
    session: AsyncSession = Depends(get_session),
) -> ActingIdentity:
    """Resolve the caller into an explicit ActingIdentity.

    A valid session without an application profile yields an identity with no
    role, which the permission gate denies everything but reads.
    """
    # Imported here: identity and users depend on this module's helpers.
    from app.core.identity import LocalIdentityProvider
    from app.services.users import get_app_user

    token = extract_token(request, authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")

    account = await LocalIdentityProvider(session).get_identity(token)
    if account is None:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    profile = await get_app_user(session, account.id)
    identity = ActingIdentity(
        user_id=account.id,
        role=parse_role(profile.role) if profile else None,
        username=profile.username if profile else None,
        email=account.email,
    )
    await set_rls_identity(
        session,
        str(identity.user_id),
        identity.role.value if identity.role else None,
    )
    request.state.identity = identity
    structlog.contextvars.bind_contextvars(user_id=str(identity.user_id))
    return identity
