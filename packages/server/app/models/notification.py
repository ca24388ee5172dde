"""Notification model: a directed edge between two users."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Notification(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "notifications"

    user_from_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    user_to_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    type: str = Field(nullable=False)
    message: str = Field(default="", nullable=False)
    data: Optional[str] = Field(default=None, sa_type=sa.Text)  # JSON, shape keyed by type
    view_date: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    answered: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    answer: Optional[str] = None
    linked_notification_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="notifications.id"
    )
