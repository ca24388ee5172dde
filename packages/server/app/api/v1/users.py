"""
User API endpoints.

GET    /api/v1/users/search?q=     — Search users by name or email
GET    /api/v1/users/{userId}      — User profile, or null
PATCH  /api/v1/users/{userId}      — Update profile (self or users:manage)
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_authenticated_user
from app.core.database import get_session
from app.services import users as user_service
from fitclub_shared.schemas.users import (
    UserResponse,
    UserSearchResponse,
    UserSummary,
    UserUpdateRequest,
)

router = APIRouter()


@router.get("/search", response_model=UserSearchResponse, tags=["Users"])
async def search_users(
    q: str = Query(min_length=1, max_length=100),
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Find users to add to a group."""
    total, users = await user_service.search_users(q, session)
    return UserSearchResponse(
        total=total,
        data=[UserSummary(id=u.id, name=u.name, email=u.email) for u in users],
    )


@router.get("/{userId}", response_model=Optional[UserResponse], tags=["Users"])
async def get_user(
    userId: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    user = await user_service.get_user_row(userId, session)
    return UserResponse(**user_service.user_info(user)) if user else None


@router.patch("/{userId}", response_model=UserResponse, tags=["Users"])
async def update_user(
    userId: uuid.UUID,
    body: UserUpdateRequest,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Update name and images (self or admin); role and pricing (admin)."""
    info = await user_service.update_user(auth, userId, body, session)
    return UserResponse(**info)
