"""
Channel service — channel listing with display images, access checks, and
group channel lifecycle.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser
from app.core.documents import DocumentStorage
from app.core.policy import Permission, ensure_owner_or_permission, has_permission
from app.models.channel import ChannelMember, MessageChannel
from app.models.club import Club, Coach
from app.models.document import UserDocument
from app.models.message import Message, MessageReaction, MessageView
from app.models.user import User
from fitclub_shared.schemas.common import ChannelType
from fitclub_shared.schemas.messages import GroupCreateRequest, GroupUpdateRequest

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Channel list and image resolution
# ---------------------------------------------------------------------------

@dataclass
class ImageSources:
    """Rows a channel image can come from, loaded in batch for a channel list."""
    clubs: dict[uuid.UUID, Club] = field(default_factory=dict)
    coaches: dict[uuid.UUID, Coach] = field(default_factory=dict)
    users: dict[uuid.UUID, User] = field(default_factory=dict)
    documents: dict[uuid.UUID, UserDocument] = field(default_factory=dict)


async def list_user_channels(
    user_id: uuid.UUID, session: AsyncSession
) -> list[MessageChannel]:
    """Channels the user owns or is a member of, ordered by name."""
    member_of = select(ChannelMember.channel_id).where(ChannelMember.user_id == user_id)
    result = await session.execute(
        select(MessageChannel)
        .where(or_(MessageChannel.owner_id == user_id, MessageChannel.id.in_(member_of)))
        .order_by(MessageChannel.name, MessageChannel.created_at)
    )
    return list(result.scalars().all())


async def _load_image_sources(
    channels: list[MessageChannel], session: AsyncSession
) -> ImageSources:
    sources = ImageSources()

    club_ids = {c.club_id for c in channels if c.club_id}
    if club_ids:
        result = await session.execute(select(Club).where(Club.id.in_(club_ids)))
        sources.clubs = {club.id: club for club in result.scalars().all()}

    coach_ids = {c.coach_id for c in channels if c.coach_id}
    if coach_ids:
        result = await session.execute(select(Coach).where(Coach.id.in_(coach_ids)))
        sources.coaches = {coach.id: coach for coach in result.scalars().all()}

    user_ids = {c.owner_id for c in channels} | {co.user_id for co in sources.coaches.values()}
    if user_ids:
        result = await session.execute(select(User).where(User.id.in_(user_ids)))
        sources.users = {user.id: user for user in result.scalars().all()}

    document_ids = {c.group_image_id for c in channels if c.group_image_id}
    document_ids |= {club.logo_id for club in sources.clubs.values() if club.logo_id}
    if document_ids:
        result = await session.execute(
            select(UserDocument).where(UserDocument.id.in_(document_ids))
        )
        sources.documents = {doc.id: doc for doc in result.scalars().all()}

    return sources


async def _document_url(
    storage: DocumentStorage, document: Optional[UserDocument]
) -> Optional[str]:
    if document is None:
        return None
    return await storage.get_document_url(document.user_id, document.id)


async def _user_image(storage: DocumentStorage, user: Optional[User]) -> Optional[str]:
    """A user's profile document URL when they have one, else their provider image."""
    if user is None:
        return None
    if user.profile_image_id:
        return await storage.get_document_url(user.id, user.profile_image_id)
    return user.image


async def resolve_channel_image(
    channel: MessageChannel,
    sources: ImageSources,
    storage: DocumentStorage,
    fallback: str,
) -> str:
    """Best-effort display image of a channel; ``fallback`` when nothing resolves."""
    url: Optional[str] = None
    channel_type = ChannelType(channel.type)

    if channel_type is ChannelType.CLUB:
        club = sources.clubs.get(channel.club_id) if channel.club_id else None
        if club and club.logo_id:
            url = await _document_url(storage, sources.documents.get(club.logo_id))
    elif channel_type is ChannelType.COACH:
        coach = sources.coaches.get(channel.coach_id) if channel.coach_id else None
        if coach:
            url = await _user_image(storage, sources.users.get(coach.user_id))
    elif channel_type is ChannelType.GROUP:
        if channel.group_image_id:
            url = await _document_url(storage, sources.documents.get(channel.group_image_id))
    elif channel_type is ChannelType.PRIVATE:
        url = await _user_image(storage, sources.users.get(channel.owner_id))

    if not url:
        log.debug("channel.image_fallback", channel_id=str(channel.id), type=channel.type)
    return url or fallback


async def get_channel_list(
    user_id: uuid.UUID,
    session: AsyncSession,
    storage: DocumentStorage,
    fallback: str,
) -> list[dict]:
    """Channels of a user, each annotated with its display image."""
    channels = await list_user_channels(user_id, session)
    if not channels:
        return []

    sources = await _load_image_sources(channels, session)
    items = []
    for channel in channels:
        items.append({
            "id": channel.id,
            "name": channel.name,
            "image_url": await resolve_channel_image(channel, sources, storage, fallback),
            "owner": channel.owner_id == user_id,
            "type": channel.type,
        })
    return items


# ---------------------------------------------------------------------------
# Access
# ---------------------------------------------------------------------------

async def get_channel(channel_id: uuid.UUID, session: AsyncSession) -> Optional[MessageChannel]:
    result = await session.execute(select(MessageChannel).where(MessageChannel.id == channel_id))
    return result.scalar_one_or_none()


async def is_channel_member(
    channel: MessageChannel, user_id: uuid.UUID, session: AsyncSession
) -> bool:
    if channel.owner_id == user_id:
        return True
    result = await session.execute(
        select(ChannelMember).where(
            ChannelMember.channel_id == channel.id,
            ChannelMember.user_id == user_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def get_accessible_channel(
    channel_id: uuid.UUID, auth: AuthenticatedUser, session: AsyncSession
) -> MessageChannel:
    """Channel the caller may read and write; 404 if absent, 403 if not a member."""
    channel = await get_channel(channel_id, session)
    if not channel:
        raise HTTPException(status_code=404, detail="Channel not found")
    if has_permission(auth.role, Permission.MESSAGES_MODERATE):
        return channel
    if not await is_channel_member(channel, auth.user_id, session):
        raise HTTPException(status_code=403, detail="You are not a member of this channel")
    return channel


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------

async def _check_users_exist(user_ids: set[uuid.UUID], session: AsyncSession) -> None:
    if not user_ids:
        return
    result = await session.execute(
        select(func.count()).select_from(User).where(User.id.in_(user_ids))
    )
    if (result.scalar() or 0) != len(user_ids):
        raise HTTPException(status_code=404, detail="User not found")


async def _check_image(
    image_id: uuid.UUID, uploader_id: uuid.UUID, session: AsyncSession
) -> None:
    result = await session.execute(select(UserDocument).where(UserDocument.id == image_id))
    document = result.scalar_one_or_none()
    if not document or document.user_id != uploader_id:
        raise HTTPException(status_code=400, detail="Group image must be one of your documents")


async def _group_members(group_id: uuid.UUID, session: AsyncSession) -> list[User]:
    result = await session.execute(
        select(User)
        .join(ChannelMember, ChannelMember.user_id == User.id)
        .where(ChannelMember.channel_id == group_id)
        .order_by(User.name)
    )
    return list(result.scalars().all())


def _group_info(channel: MessageChannel, members: list[User]) -> dict:
    return {
        "id": channel.id,
        "name": channel.name,
        "owner_id": channel.owner_id,
        "group_image_id": channel.group_image_id,
        "users": [{"id": u.id, "name": u.name, "email": u.email} for u in members],
        "created_at": channel.created_at,
    }


async def _get_group_channel(
    group_id: uuid.UUID, session: AsyncSession
) -> Optional[MessageChannel]:
    result = await session.execute(
        select(MessageChannel).where(
            MessageChannel.id == group_id,
            MessageChannel.type == ChannelType.GROUP.value,
        )
    )
    return result.scalar_one_or_none()


async def create_group(
    owner_id: uuid.UUID, req: GroupCreateRequest, session: AsyncSession
) -> dict:
    """Create a GROUP channel owned by ``owner_id``."""
    member_ids = set(req.users) - {owner_id}
    await _check_users_exist(member_ids, session)
    if req.image_id:
        await _check_image(req.image_id, owner_id, session)

    channel = MessageChannel(
        name=req.name,
        type=ChannelType.GROUP.value,
        owner_id=owner_id,
        group_image_id=req.image_id,
    )
    session.add(channel)
    await session.flush()

    for member_id in member_ids:
        session.add(ChannelMember(channel_id=channel.id, user_id=member_id))
    await session.flush()

    log.info("group.created", channel_id=str(channel.id), owner=str(owner_id), members=len(member_ids))
    return _group_info(channel, await _group_members(channel.id, session))


async def get_group(
    auth: AuthenticatedUser, group_id: uuid.UUID, session: AsyncSession
) -> Optional[dict]:
    """Group with its members, or None. Readable by members, the owner and moderators."""
    channel = await _get_group_channel(group_id, session)
    if not channel:
        return None
    if not has_permission(auth.role, Permission.MESSAGES_MODERATE):
        if not await is_channel_member(channel, auth.user_id, session):
            raise HTTPException(status_code=403, detail="You are not a member of this group")
    return _group_info(channel, await _group_members(channel.id, session))


async def _document_in_use(document_id: uuid.UUID, session: AsyncSession) -> bool:
    """Whether a club logo, a profile image or a channel still points at the document."""
    references = (
        (Club, Club.logo_id),
        (User, User.profile_image_id),
        (MessageChannel, MessageChannel.group_image_id),
    )
    for model, column in references:
        found = await session.scalar(
            select(func.count()).select_from(model).where(column == document_id)
        )
        if found:
            return True
    return False


async def _release_group_image(
    document_id: uuid.UUID, session: AsyncSession, storage: DocumentStorage
) -> bool:
    """
    Delete a group image that nothing references any more.

    The stored object goes first; a storage failure propagates and the
    request rolls back. Returns whether the document was deleted.
    """
    if await _document_in_use(document_id, session):
        log.info("group.image_kept", document_id=str(document_id))
        return False
    result = await session.execute(select(UserDocument).where(UserDocument.id == document_id))
    document = result.scalar_one_or_none()
    if not document:
        return False
    await storage.delete_document(document.user_id, document.id)
    await session.delete(document)
    await session.flush()
    return True


async def update_group(
    auth: AuthenticatedUser,
    group_id: uuid.UUID,
    req: GroupUpdateRequest,
    session: AsyncSession,
    storage: DocumentStorage,
) -> dict:
    """
    Rename a group, swap its image, or replace its members (owner or moderator).

    A replaced image is deleted unless something else still uses it.
    """
    channel = await _get_group_channel(group_id, session)
    if not channel:
        raise HTTPException(status_code=404, detail="Group not found")
    ensure_owner_or_permission(auth, channel.owner_id, Permission.MESSAGES_MODERATE)

    replaced_image_id = None
    if req.name is not None:
        channel.name = req.name
    if req.image_id is not None and req.image_id != channel.group_image_id:
        await _check_image(req.image_id, auth.user_id, session)
        replaced_image_id = channel.group_image_id
        channel.group_image_id = req.image_id
    if req.users is not None:
        member_ids = set(req.users) - {channel.owner_id}
        await _check_users_exist(member_ids, session)
        await session.execute(delete(ChannelMember).where(ChannelMember.channel_id == channel.id))
        for member_id in member_ids:
            session.add(ChannelMember(channel_id=channel.id, user_id=member_id))

    session.add(channel)
    await session.flush()
    if replaced_image_id:
        await _release_group_image(replaced_image_id, session, storage)

    log.info("group.updated", channel_id=str(channel.id), by=str(auth.user_id))
    return _group_info(channel, await _group_members(channel.id, session))


async def delete_group(
    auth: AuthenticatedUser,
    group_id: uuid.UUID,
    session: AsyncSession,
    storage: DocumentStorage,
) -> None:
    """
    Delete a group channel and everything hanging off it.

    Only the owner or a moderator may delete. The stored group image goes
    with the channel unless a club logo, a profile or another channel still
    uses it; a storage failure aborts the whole deletion.
    """
    channel = await _get_group_channel(group_id, session)
    if not channel:
        raise HTTPException(status_code=404, detail="Group not found")
    ensure_owner_or_permission(auth, channel.owner_id, Permission.MESSAGES_MODERATE)

    message_ids = select(Message.id).where(Message.channel_id == channel.id)
    await session.execute(delete(MessageReaction).where(MessageReaction.message_id.in_(message_ids)))
    await session.execute(delete(Message).where(Message.channel_id == channel.id))
    await session.execute(delete(MessageView).where(MessageView.channel_id == channel.id))
    await session.execute(delete(ChannelMember).where(ChannelMember.channel_id == channel.id))

    image_id = channel.group_image_id
    await session.delete(channel)
    await session.flush()

    image_deleted = False
    if image_id:
        image_deleted = await _release_group_image(image_id, session, storage)

    log.info("group.deleted", channel_id=str(group_id), by=str(auth.user_id), image_deleted=image_deleted)
