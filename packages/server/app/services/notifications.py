"""
Notification service — directed user-to-user notifications and the
request/response exchange that links an answer back to its request.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import HTTPException
from pydantic import BaseModel, ValidationError
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser
from app.core.policy import (
    Permission,
    check_permission,
    ensure_self_or_permission,
)
from app.models.base import utcnow
from app.models.notification import Notification
from app.models.user import User
from fitclub_shared.schemas.notifications import (
    EmptyPayload,
    NotificationCreateRequest,
    NotificationType,
    NotificationUpdateRequest,
    SubscriptionPayload,
    dump_notification_data,
    parse_notification_data,
)

log = structlog.get_logger()

ANSWER_SUBSCRIPTION_REJECTED = "common:api.reject"
ANSWER_SEARCH_COACH_REFUSED = "common:api.refused"
QUOTE_LENGTH = 15


def notification_info(notification: Notification) -> dict:
    payload = parse_notification_data(notification.type, notification.data)
    return {
        "id": notification.id,
        "user_from_id": notification.user_from_id,
        "user_to_id": notification.user_to_id,
        "type": notification.type,
        "message": notification.message,
        "data": payload.model_dump(mode="json", by_alias=True) or None,
        "view_date": notification.view_date,
        "answered": notification.answered,
        "answer": notification.answer,
        "linked_notification_id": notification.linked_notification_id,
        "created_at": notification.created_at,
    }


async def get_notification_row(
    notification_id: uuid.UUID, session: AsyncSession
) -> Optional[Notification]:
    result = await session.execute(
        select(Notification).where(Notification.id == notification_id)
    )
    return result.scalar_one_or_none()


def _ensure_party(auth: AuthenticatedUser, notification: Notification) -> None:
    """Sender and recipient may see and edit a notification; moderators too."""
    if auth.user_id not in (notification.user_from_id, notification.user_to_id):
        check_permission(auth, Permission.NOTIFICATIONS_MODERATE)


async def _require_user(user_id: uuid.UUID, session: AsyncSession) -> None:
    result = await session.execute(select(User.id).where(User.id == user_id))
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=404, detail="User not found")


async def _require_linked(linked_id: uuid.UUID, session: AsyncSession) -> None:
    if await get_notification_row(linked_id, session) is None:
        raise HTTPException(status_code=404, detail="Linked notification not found")


async def create_notification(
    auth: AuthenticatedUser,
    req: NotificationCreateRequest,
    session: AsyncSession,
) -> Notification:
    """Create a notification sent by the caller (moderators may send on behalf of others)."""
    user_from_id = req.user_from_id or auth.user_id
    ensure_self_or_permission(auth, user_from_id, Permission.NOTIFICATIONS_MODERATE)
    await _require_user(req.user_to_id, session)
    if req.linked_notification_id:
        await _require_linked(req.linked_notification_id, session)

    notification = Notification(
        user_from_id=user_from_id,
        user_to_id=req.user_to_id,
        type=req.type.value,
        message=req.message,
        data=dump_notification_data(parse_notification_data(req.type, req.data)),
        linked_notification_id=req.linked_notification_id,
    )
    session.add(notification)
    await session.flush()

    log.info(
        "notification.created",
        notification_id=str(notification.id),
        type=notification.type,
        user_from=str(user_from_id),
        user_to=str(req.user_to_id),
    )
    return notification


async def get_notification(
    auth: AuthenticatedUser,
    notification_id: uuid.UUID,
    update_view_date: bool,
    session: AsyncSession,
) -> Optional[Notification]:
    notification = await get_notification_row(notification_id, session)
    if notification is None:
        return None
    _ensure_party(auth, notification)
    if update_view_date:
        notification.view_date = utcnow()
        session.add(notification)
        await session.flush()
    return notification


async def update_notification(
    auth: AuthenticatedUser,
    notification_id: uuid.UUID,
    req: NotificationUpdateRequest,
    session: AsyncSession,
) -> Notification:
    notification = await get_notification_row(notification_id, session)
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    _ensure_party(auth, notification)

    if req.answered is not None:
        notification.answered = req.answered
    if req.answer is not None:
        notification.answer = req.answer
    if req.linked_notification_id is not None:
        await _require_linked(req.linked_notification_id, session)
        notification.linked_notification_id = req.linked_notification_id

    session.add(notification)
    await session.flush()
    log.info("notification.updated", notification_id=str(notification.id))
    return notification


async def list_received(user_id: uuid.UUID, session: AsyncSession) -> list[Notification]:
    result = await session.execute(
        select(Notification)
        .where(Notification.user_to_id == user_id)
        .order_by(desc(Notification.created_at))
    )
    return list(result.scalars().all())


async def list_sent(user_id: uuid.UUID, session: AsyncSession) -> list[Notification]:
    result = await session.execute(
        select(Notification)
        .where(Notification.user_from_id == user_id)
        .order_by(desc(Notification.created_at))
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Request / response exchange
# ---------------------------------------------------------------------------

async def answer_notification(
    auth: AuthenticatedUser,
    original: Notification,
    *,
    reply_type: NotificationType,
    answer: str,
    message: str,
    payload: BaseModel,
    session: AsyncSession,
) -> tuple[Notification, Notification]:
    """
    Answer a request notification.

    The reply goes from the request's recipient back to its sender and
    links to the request; the request is then marked answered and linked
    to the reply. Returns (request, reply).
    """
    if auth.user_id != original.user_to_id:
        check_permission(auth, Permission.NOTIFICATIONS_MODERATE)
    if original.answered is not None:
        raise HTTPException(status_code=409, detail="Notification already answered")

    reply = Notification(
        user_from_id=original.user_to_id,
        user_to_id=original.user_from_id,
        type=reply_type.value,
        message=message,
        data=dump_notification_data(payload),
        linked_notification_id=original.id,
    )
    session.add(reply)
    await session.flush()

    original.answered = utcnow()
    original.answer = answer
    original.linked_notification_id = reply.id
    session.add(original)
    await session.flush()

    log.info(
        "notification.answered",
        request_id=str(original.id),
        reply_id=str(reply.id),
        reply_type=reply_type.value,
    )
    return original, reply


async def _get_original(notification_id: uuid.UUID, session: AsyncSession) -> Notification:
    original = await get_notification_row(notification_id, session)
    if original is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return original


async def reject_subscription(
    auth: AuthenticatedUser, notification_id: uuid.UUID, session: AsyncSession
) -> tuple[Notification, Notification]:
    """Reject the subscription a notification asks for; the reply carries the same subscription."""
    original = await _get_original(notification_id, session)
    try:
        payload = parse_notification_data(original.type, original.data)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Notification carries an invalid payload")
    if not isinstance(payload, SubscriptionPayload):
        raise HTTPException(status_code=400, detail="Notification is not a subscription request")

    return await answer_notification(
        auth,
        original,
        reply_type=NotificationType.SUBSCRIPTION_REJECTED,
        answer=ANSWER_SUBSCRIPTION_REJECTED,
        message="",
        payload=payload,
        session=session,
    )


async def refuse_search_coach(
    auth: AuthenticatedUser, notification_id: uuid.UUID, session: AsyncSession
) -> tuple[Notification, Notification]:
    """Refuse a coach search request; the reply quotes the start of the request."""
    original = await _get_original(notification_id, session)
    if original.type != NotificationType.SEARCH_COACH.value:
        raise HTTPException(status_code=400, detail="Notification is not a coach search request")

    return await answer_notification(
        auth,
        original,
        reply_type=NotificationType.COACH_REFUSE,
        answer=ANSWER_SEARCH_COACH_REFUSED,
        message=f">{original.message[:QUOTE_LENGTH]}...",
        payload=EmptyPayload(),
        session=session,
    )
