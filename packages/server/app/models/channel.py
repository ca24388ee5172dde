"""Message channel model and its membership join table."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class MessageChannel(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "message_channels"

    name: str = Field(nullable=False)
    type: str = Field(nullable=False, index=True)  # CLUB | COACH | GROUP | PRIVATE
    owner_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    # Set for CLUB channels only.
    club_id: Optional[uuid.UUID] = Field(default=None, foreign_key="clubs.id", index=True)
    # Set for COACH channels only.
    coach_id: Optional[uuid.UUID] = Field(default=None, foreign_key="coaches.id", index=True)
    group_image_id: Optional[uuid.UUID] = Field(default=None, foreign_key="user_documents.id")


class ChannelMember(SQLModel, table=True):
    __tablename__ = "channel_members"

    channel_id: uuid.UUID = Field(foreign_key="message_channels.id", primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", primary_key=True, index=True)
