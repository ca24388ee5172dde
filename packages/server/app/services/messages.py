"""
Message service — history, posting with reply checks, reactions, and
per-user read markers.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import utcnow
from app.models.channel import MessageChannel
from app.models.message import Message, MessageReaction, MessageView
from app.models.user import User
from fitclub_shared.schemas.common import MessageReactionType
from fitclub_shared.schemas.messages import MessageCreateRequest

log = structlog.get_logger()

NEVER_VIEWED = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _reaction_info(reaction: MessageReaction) -> dict:
    return {
        "id": reaction.id,
        "message_id": reaction.message_id,
        "sender_id": reaction.sender_id,
        "reaction": reaction.reaction,
        "created_at": reaction.created_at,
    }


async def _enrich_messages(messages: list[Message], session: AsyncSession) -> list[dict]:
    """Attach sender names and reactions, loading both in batch."""
    if not messages:
        return []

    sender_ids = {m.sender_id for m in messages}
    result = await session.execute(select(User.id, User.name).where(User.id.in_(sender_ids)))
    sender_names = {uid: name for uid, name in result.all()}

    message_ids = [m.id for m in messages]
    result = await session.execute(
        select(MessageReaction)
        .where(MessageReaction.message_id.in_(message_ids))
        .order_by(MessageReaction.created_at)
    )
    reactions: dict[uuid.UUID, list[dict]] = {}
    for reaction in result.scalars().all():
        reactions.setdefault(reaction.message_id, []).append(_reaction_info(reaction))

    return [
        {
            "id": m.id,
            "channel_id": m.channel_id,
            "sender_id": m.sender_id,
            "sender_name": sender_names.get(m.sender_id),
            "message": m.message,
            "message_ref_id": m.message_ref_id,
            "reactions": reactions.get(m.id, []),
            "created_at": m.created_at,
        }
        for m in messages
    ]


async def get_messages_for_user(
    channel: MessageChannel,
    user_id: uuid.UUID,
    page: int,
    per_page: int,
    session: AsyncSession,
) -> tuple[list[dict], datetime]:
    """
    Newest-first history of a channel, ``page * per_page`` messages deep,
    and the moment ``user_id`` last viewed the channel.
    """
    result = await session.execute(
        select(Message)
        .where(Message.channel_id == channel.id)
        .order_by(desc(Message.created_at))
        .limit(page * per_page)
    )
    messages = list(result.scalars().all())

    result = await session.execute(
        select(MessageView).where(
            MessageView.channel_id == channel.id,
            MessageView.user_id == user_id,
        )
    )
    view = result.scalar_one_or_none()
    last_view = view.last_view if view else NEVER_VIEWED

    return await _enrich_messages(messages, session), last_view


async def mark_channel_viewed(
    channel: MessageChannel, user_id: uuid.UUID, session: AsyncSession
) -> MessageView:
    result = await session.execute(
        select(MessageView).where(
            MessageView.channel_id == channel.id,
            MessageView.user_id == user_id,
        )
    )
    view = result.scalar_one_or_none()
    if view is None:
        view = MessageView(channel_id=channel.id, user_id=user_id)
    view.last_view = utcnow()
    session.add(view)
    await session.flush()
    return view


async def get_message_row(message_id: uuid.UUID, session: AsyncSession) -> Optional[Message]:
    result = await session.execute(select(Message).where(Message.id == message_id))
    return result.scalar_one_or_none()


async def get_message(message_id: uuid.UUID, session: AsyncSession) -> Optional[dict]:
    message = await get_message_row(message_id, session)
    if not message:
        return None
    enriched = await _enrich_messages([message], session)
    return enriched[0]


async def create_message(
    channel: MessageChannel,
    sender_id: uuid.UUID,
    req: MessageCreateRequest,
    session: AsyncSession,
) -> dict:
    """Post a message. A reply must point at a message of the same channel."""
    if req.message_ref_id is not None:
        ref = await get_message_row(req.message_ref_id, session)
        if ref is None or ref.channel_id != channel.id:
            raise HTTPException(
                status_code=400,
                detail="Reply must reference a message in the same channel",
            )

    message = Message(
        channel_id=channel.id,
        sender_id=sender_id,
        message=req.message,
        message_ref_id=req.message_ref_id,
    )
    session.add(message)
    await session.flush()

    log.info(
        "message.created",
        message_id=str(message.id),
        channel_id=str(channel.id),
        reply=req.message_ref_id is not None,
    )
    enriched = await _enrich_messages([message], session)
    return enriched[0]


async def add_reaction(
    message: Message,
    sender_id: uuid.UUID,
    reaction: MessageReactionType,
    session: AsyncSession,
) -> dict:
    row = MessageReaction(
        message_id=message.id,
        sender_id=sender_id,
        reaction=reaction.value,
    )
    session.add(row)
    await session.flush()
    log.info("message.reaction_added", message_id=str(message.id), reaction=reaction.value)
    return _reaction_info(row)
