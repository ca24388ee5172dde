"""Messaging schemas: channels, groups, messages, reactions."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field, UUID4

from .common import ChannelType, MessageReactionType
from .users import UserSummary


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class MessageCreateRequest(BaseModel):
    message: str = Field(min_length=1, max_length=4000)
    message_ref_id: Optional[UUID4] = None


class ReactionCreateRequest(BaseModel):
    reaction: MessageReactionType


class GroupCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    image_id: Optional[UUID4] = None
    users: List[UUID4] = Field(default_factory=list)


class GroupUpdateRequest(BaseModel):
    """Rename a group, replace its image, or replace its member set."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    image_id: Optional[UUID4] = None
    users: Optional[List[UUID4]] = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class ChannelListItem(BaseModel):
    id: UUID4
    name: str
    image_url: str
    owner: bool
    type: ChannelType


class ReactionResponse(BaseModel):
    id: UUID4
    message_id: UUID4
    sender_id: UUID4
    reaction: MessageReactionType
    created_at: datetime


class MessageResponse(BaseModel):
    id: UUID4
    channel_id: UUID4
    sender_id: UUID4
    sender_name: Optional[str] = None
    message: str
    message_ref_id: Optional[UUID4] = None
    reactions: List[ReactionResponse] = Field(default_factory=list)
    created_at: datetime


class ChannelMessagesResponse(BaseModel):
    data: List[MessageResponse]
    last_view: datetime


class MessageViewResponse(BaseModel):
    channel_id: UUID4
    user_id: UUID4
    last_view: datetime


class GroupResponse(BaseModel):
    id: UUID4
    name: str
    owner_id: UUID4
    group_image_id: Optional[UUID4] = None
    users: List[UserSummary]
    created_at: datetime
