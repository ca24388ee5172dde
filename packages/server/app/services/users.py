"""
User service — accounts, profile updates and member search.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, hash_password, verify_password
from app.core.policy import Permission, check_permission, ensure_self_or_permission
from app.models.document import UserDocument
from app.models.pricing import Pricing
from app.models.user import User
from fitclub_shared.schemas.common import Role
from fitclub_shared.schemas.users import RegisterRequest, UserUpdateRequest

log = structlog.get_logger()

SEARCH_LIMIT = 20


def user_info(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "image": user.image,
        "profile_image_id": user.profile_image_id,
        "pricing_id": user.pricing_id,
        "created_at": user.created_at,
    }


async def get_user_row(user_id: uuid.UUID, session: AsyncSession) -> Optional[User]:
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(email: str, session: AsyncSession) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def register_user(req: RegisterRequest, session: AsyncSession) -> User:
    """Create a MEMBER account. Raises 409 when the email is taken."""
    if await get_user_by_email(req.email, session):
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        email=req.email.lower(),
        name=req.name,
        password_hash=hash_password(req.password),
        role=Role.MEMBER.value,
    )
    session.add(user)
    await session.flush()

    log.info("user.registered", user_id=str(user.id))
    return user


async def authenticate(email: str, password: str, session: AsyncSession) -> Optional[User]:
    """Return the user when the credentials match, else None."""
    user = await get_user_by_email(email, session)
    if not user or not user.password_hash:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


async def update_user(
    auth: AuthenticatedUser,
    user_id: uuid.UUID,
    req: UserUpdateRequest,
    session: AsyncSession,
) -> dict:
    """Update a profile. Self or users:manage; role and pricing need users:manage."""
    ensure_self_or_permission(auth, user_id, Permission.USERS_MANAGE)

    user = await get_user_row(user_id, session)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    changes = req.model_dump(exclude_unset=True)

    if "role" in changes or "pricing_id" in changes:
        check_permission(auth, Permission.USERS_MANAGE)

    if changes.get("pricing_id") is not None:
        result = await session.execute(
            select(Pricing.id).where(Pricing.id == changes["pricing_id"])
        )
        if result.scalar_one_or_none() is None:
            raise HTTPException(status_code=404, detail="Pricing not found")

    if changes.get("profile_image_id") is not None:
        result = await session.execute(
            select(UserDocument.id).where(
                UserDocument.id == changes["profile_image_id"],
                UserDocument.user_id == user.id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise HTTPException(
                status_code=400, detail="Profile image must be one of the user's documents"
            )

    for key, value in changes.items():
        if key == "role":
            if value is None:
                continue
            value = Role(value).value
        setattr(user, key, value)

    session.add(user)
    await session.flush()

    log.info("user.updated", user_id=str(user.id), fields=sorted(changes))
    return user_info(user)


async def search_users(query: str, session: AsyncSession) -> tuple[int, list[User]]:
    """Case-insensitive search on name and email. Returns (total, first page)."""
    term = query.strip().lower()
    # wildcards in the query match literally
    term = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{term}%"
    condition = or_(
        func.lower(User.name).like(pattern, escape="\\"),
        func.lower(User.email).like(pattern, escape="\\"),
    )

    total = await session.scalar(select(func.count()).select_from(User).where(condition))
    result = await session.execute(
        select(User).where(condition).order_by(User.name).limit(SEARCH_LIMIT)
    )
    return total or 0, list(result.scalars().all())
