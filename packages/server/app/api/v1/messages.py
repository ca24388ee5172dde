"""
Messaging API endpoints.

GET    /api/v1/messages/users/{userId}/channels         — Channel list with display images
GET    /api/v1/messages/channels/{channelId}/messages   — Paged history and caller's last view
POST   /api/v1/messages/channels/{channelId}/messages   — Post a message (optionally a reply)
POST   /api/v1/messages/channels/{channelId}/views      — Mark the channel as viewed
GET    /api/v1/messages/{messageId}                     — Single message or null
POST   /api/v1/messages/{messageId}/reactions           — React to a message
POST   /api/v1/messages/groups                          — Create a group channel
GET    /api/v1/messages/groups/{groupId}                — Group with members (members or moderator), or null
PATCH  /api/v1/messages/groups/{groupId}                — Update a group (owner or moderator)
DELETE /api/v1/messages/groups/{groupId}                — Delete a group and its content
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_authenticated_user
from app.core.config import get_settings
from app.core.database import get_session
from app.core.documents import DocumentStorage, get_document_storage
from app.core.policy import Permission, ensure_self_or_permission
from app.services import channels as channel_service
from app.services import messages as message_service
from fitclub_shared.schemas.messages import (
    ChannelListItem,
    ChannelMessagesResponse,
    GroupCreateRequest,
    GroupResponse,
    GroupUpdateRequest,
    MessageCreateRequest,
    MessageResponse,
    MessageViewResponse,
    ReactionCreateRequest,
    ReactionResponse,
)

settings = get_settings()
router = APIRouter()


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------

@router.get("/users/{userId}/channels", response_model=List[ChannelListItem], tags=["Messages"])
async def get_channel_list(
    userId: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
    storage: DocumentStorage = Depends(get_document_storage),
):
    """Channels the user owns or belongs to, each with a resolved display image."""
    ensure_self_or_permission(auth, userId, Permission.MESSAGES_MODERATE)
    items = await channel_service.get_channel_list(
        userId, session, storage, settings.channel_fallback_image
    )
    return [ChannelListItem(**item) for item in items]


@router.get(
    "/channels/{channelId}/messages",
    response_model=ChannelMessagesResponse,
    tags=["Messages"],
)
async def get_channel_messages(
    channelId: uuid.UUID,
    page: int = Query(default=1, ge=1, le=100),
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Newest-first history, ``page`` pages deep."""
    channel = await channel_service.get_accessible_channel(channelId, auth, session)
    items, last_view = await message_service.get_messages_for_user(
        channel, auth.user_id, page, settings.messages_per_page, session
    )
    return ChannelMessagesResponse(
        data=[MessageResponse(**item) for item in items],
        last_view=last_view,
    )


@router.post(
    "/channels/{channelId}/messages",
    response_model=MessageResponse,
    status_code=201,
    tags=["Messages"],
)
async def create_message(
    channelId: uuid.UUID,
    body: MessageCreateRequest,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    channel = await channel_service.get_accessible_channel(channelId, auth, session)
    info = await message_service.create_message(channel, auth.user_id, body, session)
    return MessageResponse(**info)


@router.post(
    "/channels/{channelId}/views",
    response_model=MessageViewResponse,
    tags=["Messages"],
)
async def update_last_view(
    channelId: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Record that the caller has seen the channel up to now."""
    channel = await channel_service.get_accessible_channel(channelId, auth, session)
    view = await message_service.mark_channel_viewed(channel, auth.user_id, session)
    return MessageViewResponse(
        channel_id=view.channel_id,
        user_id=view.user_id,
        last_view=view.last_view,
    )


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------

@router.post("/groups", response_model=GroupResponse, status_code=201, tags=["Groups"])
async def create_group(
    body: GroupCreateRequest,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Create a group channel owned by the caller."""
    info = await channel_service.create_group(auth.user_id, body, session)
    return GroupResponse(**info)


@router.get("/groups/{groupId}", response_model=Optional[GroupResponse], tags=["Groups"])
async def get_group(
    groupId: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    info = await channel_service.get_group(auth, groupId, session)
    return GroupResponse(**info) if info else None


@router.patch("/groups/{groupId}", response_model=GroupResponse, tags=["Groups"])
async def update_group(
    groupId: uuid.UUID,
    body: GroupUpdateRequest,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
    storage: DocumentStorage = Depends(get_document_storage),
):
    """Rename, change image, or replace members (owner or moderator)."""
    info = await channel_service.update_group(auth, groupId, body, session, storage)
    return GroupResponse(**info)


@router.delete("/groups/{groupId}", status_code=204, tags=["Groups"])
async def delete_group(
    groupId: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
    storage: DocumentStorage = Depends(get_document_storage),
):
    """Delete a group with its messages, reactions, views, members and image (owner or moderator)."""
    await channel_service.delete_group(auth, groupId, session, storage)


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

@router.get("/{messageId}", response_model=Optional[MessageResponse], tags=["Messages"])
async def get_message(
    messageId: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """A single message, or null when it does not exist."""
    info = await message_service.get_message(messageId, session)
    if not info:
        return None
    await channel_service.get_accessible_channel(info["channel_id"], auth, session)
    return MessageResponse(**info)


@router.post(
    "/{messageId}/reactions",
    response_model=ReactionResponse,
    status_code=201,
    tags=["Messages"],
)
async def add_reaction(
    messageId: uuid.UUID,
    body: ReactionCreateRequest,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    message = await message_service.get_message_row(messageId, session)
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    await channel_service.get_accessible_channel(message.channel_id, auth, session)
    info = await message_service.add_reaction(message, auth.user_id, body.reaction, session)
    return ReactionResponse(**info)
