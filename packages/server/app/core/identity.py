"""
Identity provider: credential sign-in, account provisioning, sessions.

``IdentityProvider`` is the interface the services consume.
``LocalIdentityProvider`` implements it over the ``identity_accounts`` table
with bcrypt hashes and signed session tokens.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

import jwt
import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import (
    PURPOSE_PASSWORD_RESET,
    PURPOSE_SESSION,
    create_jwt,
    decode_jwt,
    hash_password,
    verify_password,
)
from app.core.config import Settings, get_settings
from app.core.errors import DuplicateKey, InvalidCredentials, ValidationError
from app.core.sanitize import validate_password_strength
from app.models.identity_account import IdentityAccount, RevokedSession

log = structlog.get_logger()


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    jti: str
    expires_at: datetime
    account_id: uuid.UUID
    email: str


@dataclass(frozen=True)
class SignUpResult:
    account: IdentityAccount
    # None when provisioned in isolation: the caller's own session is untouched
    session: Optional[AuthSession] = None


class IdentityProvider(Protocol):
    async def sign_in(self, email: str, password: str) -> AuthSession: ...

    async def sign_up(
        self, email: str, password: str, *, isolated: bool = True
    ) -> SignUpResult: ...

    async def sign_out(self, token: str) -> None: ...

    async def get_identity(self, token: str) -> Optional[IdentityAccount]: ...

    async def request_password_reset(self, email: str) -> Optional[str]: ...


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class LocalIdentityProvider:
    """Identity provider backed by the application's own database."""

    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        self.session = session
        self.settings = settings or get_settings()

    async def find_account(self, email: str) -> Optional[IdentityAccount]:
        result = await self.session.execute(
            select(IdentityAccount).where(IdentityAccount.email == _normalize_email(email))
        )
        return result.scalar_one_or_none()

    def _issue_session(self, account: IdentityAccount) -> AuthSession:
        token, jti, expires_at = create_jwt(
            account.id, purpose=PURPOSE_SESSION, email=account.email
        )
        return AuthSession(
            access_token=token,
            jti=jti,
            expires_at=expires_at,
            account_id=account.id,
            email=account.email,
        )

    async def sign_in(self, email: str, password: str) -> AuthSession:
        account = await self.find_account(email)
        if account is None or not verify_password(password, account.password_hash):
            log.info("auth.sign_in_failed", email=_normalize_email(email))
            raise InvalidCredentials()
        log.info("auth.signed_in", account_id=str(account.id))
        return self._issue_session(account)

    async def sign_up(
        self, email: str, password: str, *, isolated: bool = True
    ) -> SignUpResult:
        """Provision a new account.

        With ``isolated`` (the default) no session is issued for the new
        account, so an administrator creating users keeps their own session.
        """
        if await self.find_account(email) is not None:
            raise DuplicateKey("User already registered")

        account = IdentityAccount(
            email=_normalize_email(email),
            password_hash=hash_password(password),
        )
        self.session.add(account)
        await self.session.flush()
        log.info("auth.account_provisioned", account_id=str(account.id), isolated=isolated)

        if isolated:
            return SignUpResult(account=account)
        return SignUpResult(account=account, session=self._issue_session(account))

    async def sign_out(self, token: str) -> None:
        """Revoke a session token. Unknown or expired tokens are ignored."""
        try:
            payload = decode_jwt(token)
        except jwt.PyJWTError:
            return
        jti = payload.get("jti")
        if not jti or await self.session.get(RevokedSession, jti) is not None:
            return
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        self.session.add(RevokedSession(jti=jti, expires_at=expires_at))
        await self.session.flush()
        log.info("auth.signed_out", account_id=payload.get("sub"))

    async def get_identity(self, token: str) -> Optional[IdentityAccount]:
        try:
            payload = decode_jwt(token)
        except jwt.PyJWTError:
            return None
        if payload.get("purpose") != PURPOSE_SESSION:
            return None
        jti = payload.get("jti")
        if jti and await self.session.get(RevokedSession, jti) is not None:
            return None
        try:
            account_id = uuid.UUID(payload["sub"])
        except (KeyError, ValueError):
            return None
        return await self.session.get(IdentityAccount, account_id)

    async def refresh(self, token: str) -> AuthSession:
        """Exchange a live session token for a new one, revoking the old."""
        account = await self.get_identity(token)
        if account is None:
            raise InvalidCredentials("Invalid or expired session")
        await self.sign_out(token)
        return self._issue_session(account)

    async def request_password_reset(self, email: str) -> Optional[str]:
        """Issue a short-lived reset token for a known email.

        Delivery is the mail transport's job; the token is returned to the
        caller and the request is logged either way.
        """
        account = await self.find_account(email)
        if account is None:
            log.info("auth.password_reset_unknown_email")
            return None
        token, _, _ = create_jwt(
            account.id,
            purpose=PURPOSE_PASSWORD_RESET,
            expires_delta=timedelta(minutes=self.settings.password_reset_expire_minutes),
        )
        log.info("auth.password_reset_requested", account_id=str(account.id))
        return token

    async def reset_password(self, reset_token: str, new_password: str) -> None:
        try:
            payload = decode_jwt(reset_token)
        except jwt.PyJWTError:
            raise InvalidCredentials("Invalid or expired reset token")
        if payload.get("purpose") != PURPOSE_PASSWORD_RESET:
            raise InvalidCredentials("Invalid or expired reset token")

        strength = validate_password_strength(new_password)
        if not strength.is_valid:
            raise ValidationError(
                "Password does not meet requirements: " + ", ".join(strength.errors),
                errors=strength.errors,
            )

        account = await self.session.get(IdentityAccount, uuid.UUID(payload["sub"]))
        if account is None:
            raise InvalidCredentials("Invalid or expired reset token")
        account.password_hash = hash_password(new_password)
        self.session.add(account)
        await self.session.flush()
        log.info("auth.password_reset", account_id=str(account.id))
