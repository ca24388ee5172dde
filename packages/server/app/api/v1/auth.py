"""
Authentication endpoints.

- Email/Password registration & login
- JWT session management (refresh, logout, current session)
"""

from __future__ import annotations

from datetime import datetime, timezone

import jwt
import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    CSRF_COOKIE,
    SESSION_COOKIE,
    AuthenticatedUser,
    create_jwt,
    decode_jwt,
    generate_csrf_token,
    get_authenticated_user,
    remaining_ttl,
)
from app.core.config import get_settings
from app.core.database import get_session
from app.core.redis import is_session_revoked, revoke_session
from app.services import users as user_service
from fitclub_shared.schemas.users import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    SessionResponse,
)

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()

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


def _start_session(response: Response, user) -> None:
    token, _jti, _exp = create_jwt(user_id=user.id, role=user.role)
    _set_session_cookies(response, token, generate_csrf_token())


# ---------------------------------------------------------------------------
# Email/Password
# ---------------------------------------------------------------------------

@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Register a new member account and open a session for it."""
    user = await user_service.register_user(body, session)
    _start_session(response, user)
    return AuthResponse(
        user_id=str(user.id),
        email=user.email,
        message="Registration successful",
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with email/password and receive a JWT session."""
    user = await user_service.authenticate(body.email, body.password, session)
    if not user:
        log.warning("auth.login_failure", email=body.email)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    _start_session(response, user)
    log.info("auth.login_success", user_id=str(user.id))
    return AuthResponse(
        user_id=str(user.id),
        email=user.email,
        message="Login successful",
    )


# ---------------------------------------------------------------------------
# Session Management
# ---------------------------------------------------------------------------

@router.get("/session", response_model=SessionResponse)
async def current_session(auth: AuthenticatedUser = Depends(get_authenticated_user)):
    """The caller's session: who they are and when it expires."""
    return SessionResponse(
        user_id=auth.user_id,
        name=auth.user.name,
        email=auth.user.email,
        role=auth.role,
        expires_at=auth.expires_at,
    )


@router.post("/refresh")
async def refresh_session(
    response: Response,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
):
    """Issue a fresh JWT and revoke the current one."""
    if auth.jti:
        ttl = int((auth.expires_at - datetime.now(timezone.utc)).total_seconds())
        await revoke_session(auth.jti, ttl)

    _start_session(response, auth.user)
    log.info("auth.session_refreshed", user_id=str(auth.user_id))
    return {"message": "Session refreshed"}


@router.post("/logout")
async def logout(request: Request, response: Response):
    """Invalidate the current session."""
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        try:
            payload = decode_jwt(token)
        except jwt.PyJWTError:
            payload = None  # already invalid, just clear cookies
        if payload and payload.get("jti") and not await is_session_revoked(payload["jti"]):
            await revoke_session(payload["jti"], remaining_ttl(payload))
            log.info("auth.logout", user_id=payload.get("sub"))

    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")
    return {"message": "Logged out"}
