"""
Authorization policy.

Operations declare what they need instead of comparing roles inline:

    auth: AuthenticatedUser = Depends(require_permission(Permission.PRICING_MANAGE))

Ownership checks ("the caller is this user", "the caller owns this channel")
are expressed through ``ensure_self_or_permission`` and
``ensure_owner_or_permission`` so that the role that may override them is
declared here too.
"""

from __future__ import annotations

import uuid
from enum import Enum

from fastapi import Depends, HTTPException

from app.core.auth import AuthenticatedUser, get_authenticated_user
from fitclub_shared.schemas.common import Role


class Permission(str, Enum):
    PRICING_MANAGE = "pricing:manage"
    USERS_MANAGE = "users:manage"
    MESSAGES_MODERATE = "messages:moderate"
    NOTIFICATIONS_MODERATE = "notifications:moderate"


ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.MEMBER: frozenset(),
    Role.COACH: frozenset(),
    Role.MANAGER: frozenset(),
    Role.MANAGER_COACH: frozenset(),
    Role.ADMIN: frozenset(Permission),
}

DENIED_MESSAGES: dict[Permission, str] = {
    Permission.PRICING_MANAGE: "You are not authorized to manage pricing",
    Permission.USERS_MANAGE: "You are not authorized to manage users",
    Permission.MESSAGES_MODERATE: "You are not authorized to moderate channels",
    Permission.NOTIFICATIONS_MODERATE: "You are not authorized to act on these notifications",
}


def has_permission(role: Role, permission: Permission) -> bool:
    return permission in ROLE_PERMISSIONS.get(Role(role), frozenset())


def check_permission(auth: AuthenticatedUser, permission: Permission) -> None:
    """Raise 403 unless the caller's role grants ``permission``."""
    if not has_permission(auth.role, permission):
        raise HTTPException(status_code=403, detail=DENIED_MESSAGES[permission])


def require_permission(permission: Permission):
    """Dependency factory: authenticated caller holding ``permission``."""

    async def _dependency(
        auth: AuthenticatedUser = Depends(get_authenticated_user),
    ) -> AuthenticatedUser:
        check_permission(auth, permission)
        return auth

    _dependency.__name__ = f"require_{permission.name.lower()}"
    return _dependency


def ensure_self_or_permission(
    auth: AuthenticatedUser,
    user_id: uuid.UUID,
    permission: Permission,
) -> None:
    """The caller acts on their own data, or holds ``permission``."""
    if auth.user_id != user_id:
        check_permission(auth, permission)


def ensure_owner_or_permission(
    auth: AuthenticatedUser,
    owner_id: uuid.UUID,
    permission: Permission,
) -> None:
    """The caller owns the resource, or holds ``permission``."""
    if auth.user_id != owner_id:
        check_permission(auth, permission)
