"""Message, reaction and per-user view models."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin, utcnow


class Message(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "messages"

    channel_id: uuid.UUID = Field(foreign_key="message_channels.id", nullable=False, index=True)
    sender_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    message: str = Field(nullable=False)
    message_ref_id: Optional[uuid.UUID] = Field(default=None, foreign_key="messages.id")


class MessageReaction(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "message_reactions"

    message_id: uuid.UUID = Field(foreign_key="messages.id", nullable=False, index=True)
    sender_id: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    reaction: str = Field(nullable=False)


class MessageView(SQLModel, table=True):
    __tablename__ = "message_views"

    channel_id: uuid.UUID = Field(foreign_key="message_channels.id", primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", primary_key=True)
    last_view: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
