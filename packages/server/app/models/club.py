"""Club and coach profiles, as far as messaging needs them."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Club(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "clubs"

    name: str = Field(nullable=False)
    manager_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    logo_id: Optional[uuid.UUID] = Field(default=None, foreign_key="user_documents.id")


class Coach(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "coaches"

    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, unique=True, index=True)
