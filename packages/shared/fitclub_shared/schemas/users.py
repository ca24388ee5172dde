"""User and session schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, EmailStr, Field, UUID4

from .common import Role


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: str = Field(min_length=1, max_length=200)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserUpdateRequest(BaseModel):
    """Update a user's profile. Role and pricing changes are admin only."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    image: Optional[str] = None
    profile_image_id: Optional[UUID4] = None
    role: Optional[Role] = None
    pricing_id: Optional[UUID4] = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class AuthResponse(BaseModel):
    user_id: str
    email: str
    message: str


class SessionResponse(BaseModel):
    user_id: UUID4
    name: Optional[str] = None
    email: Optional[str] = None
    role: Role
    expires_at: datetime


class UserResponse(BaseModel):
    id: UUID4
    name: Optional[str] = None
    email: Optional[str] = None
    role: Role
    image: Optional[str] = None
    profile_image_id: Optional[UUID4] = None
    pricing_id: Optional[UUID4] = None
    created_at: datetime


class UserSummary(BaseModel):
    """Minimal user card used in group membership lists."""
    id: UUID4
    name: Optional[str] = None
    email: Optional[str] = None


class UserSearchResponse(BaseModel):
    total: int
    data: List[UserSummary]
