"""User model."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class User(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "users"

    name: Optional[str] = Field(default=None, index=True)
    email: Optional[str] = Field(default=None, unique=True, index=True)
    password_hash: Optional[str] = Field(default=None)  # bcrypt, credentials login only
    role: str = Field(default="MEMBER", nullable=False)  # MEMBER | COACH | MANAGER | MANAGER_COACH | ADMIN
    image: Optional[str] = None  # image URL handed over by the auth provider
    # Not a foreign key: user_documents.user_id already points back at users.
    profile_image_id: Optional[uuid.UUID] = Field(default=None)
    pricing_id: Optional[uuid.UUID] = Field(default=None, foreign_key="pricings.id")
