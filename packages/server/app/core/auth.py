"""
Authentication for the FitClub API.

Supports:
- Credentials login (email + bcrypt password)
- JWT sessions, carried by the ``fc_session`` cookie or a Bearer header
- Session revocation through a Redis deny-list
- Optional authentication for public endpoints

Authorization (who may do what once authenticated) lives in ``app.core.policy``.
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
from sqlmodel import select

from app.core.config import get_settings
from app.core.database import get_session
from app.core.redis import is_session_revoked
from app.models.user import User
from fitclub_shared.schemas.common import Role

log = structlog.get_logger()
settings = get_settings()

SESSION_COOKIE = "fc_session"
CSRF_COOKIE = "fc_csrf"

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)

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
    user_id: uuid.UUID,
    role: str,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str, datetime]:
    """Create a signed session JWT. Returns (token, jti, expires_at)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti, exp


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


def remaining_ttl(payload: dict) -> int:
    """Seconds until the token in ``payload`` expires."""
    exp = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    return int((exp - datetime.now(timezone.utc)).total_seconds())


def generate_csrf_token() -> str:
    """Generate a random CSRF token."""
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

class AuthenticatedUser:
    """Container for the authenticated user of a request."""

    def __init__(
        self,
        user: User,
        *,
        jti: str | None = None,
        expires_at: datetime | None = None,
    ):
        self.user = user
        self.user_id = user.id
        self.role = Role(user.role)
        self.jti = jti
        self.expires_at = expires_at


def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip()
    return request.cookies.get(SESSION_COOKIE)


async def _authenticate_token(token: str, session: AsyncSession) -> AuthenticatedUser:
    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    jti = payload.get("jti")
    if jti and await is_session_revoked(jti):
        raise HTTPException(status_code=401, detail="Session has been revoked")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    return AuthenticatedUser(
        user,
        jti=jti,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


async def get_authenticated_user(
    request: Request,
    authorization: Optional[str] = Depends(authorization_header),
    session: AsyncSession = Depends(get_session),
) -> AuthenticatedUser:
    """Main authentication dependency. Tries the Bearer header first, then the session cookie."""
    token = _extract_token(request, authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")

    auth = await _authenticate_token(token, session)
    request.state.auth = auth
    structlog.contextvars.bind_contextvars(user_id=str(auth.user_id))
    return auth


async def get_optional_user(
    request: Request,
    authorization: Optional[str] = Depends(authorization_header),
    session: AsyncSession = Depends(get_session),
) -> Optional[AuthenticatedUser]:
    """Authentication for public endpoints: a missing or bad session means anonymous."""
    token = _extract_token(request, authorization)
    if not token:
        return None
    try:
        return await _authenticate_token(token, session)
    except HTTPException as exc:
        log.debug("auth.optional_session_ignored", reason=exc.detail)
        return None
