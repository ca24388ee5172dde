"""
Notification API endpoints.

POST   /api/v1/notifications                                   — Send a notification
GET    /api/v1/notifications/{notificationId}                  — Read one (optionally marking it viewed)
PATCH  /api/v1/notifications/{notificationId}                  — Update answer fields
GET    /api/v1/notifications/users/{userId}/received           — Inbox
GET    /api/v1/notifications/users/{userId}/sent               — Outbox
POST   /api/v1/notifications/{notificationId}/reject-subscription  — Answer a subscription request
POST   /api/v1/notifications/{notificationId}/refuse-search-coach  — Answer a coach search request
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_authenticated_user
from app.core.database import get_session
from app.core.policy import Permission, ensure_self_or_permission
from app.services import notifications as notification_service
from fitclub_shared.schemas.notifications import (
    NotificationCreateRequest,
    NotificationExchangeResponse,
    NotificationListResponse,
    NotificationResponse,
    NotificationUpdateRequest,
)

router = APIRouter()


def _response(notification) -> NotificationResponse:
    return NotificationResponse(**notification_service.notification_info(notification))


@router.post("", response_model=NotificationResponse, status_code=201, tags=["Notifications"])
async def create_notification(
    body: NotificationCreateRequest,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    notification = await notification_service.create_notification(auth, body, session)
    return _response(notification)


@router.get(
    "/users/{userId}/received",
    response_model=NotificationListResponse,
    tags=["Notifications"],
)
async def get_received_notifications(
    userId: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    ensure_self_or_permission(auth, userId, Permission.NOTIFICATIONS_MODERATE)
    items = await notification_service.list_received(userId, session)
    return NotificationListResponse(data=[_response(n) for n in items])


@router.get(
    "/users/{userId}/sent",
    response_model=NotificationListResponse,
    tags=["Notifications"],
)
async def get_sent_notifications(
    userId: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    ensure_self_or_permission(auth, userId, Permission.NOTIFICATIONS_MODERATE)
    items = await notification_service.list_sent(userId, session)
    return NotificationListResponse(data=[_response(n) for n in items])


@router.get(
    "/{notificationId}",
    response_model=Optional[NotificationResponse],
    tags=["Notifications"],
)
async def get_notification(
    notificationId: uuid.UUID,
    update_view_date: bool = Query(default=False),
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Sender, recipient or moderator. Null when the notification does not exist."""
    notification = await notification_service.get_notification(
        auth, notificationId, update_view_date, session
    )
    return _response(notification) if notification else None


@router.patch("/{notificationId}", response_model=NotificationResponse, tags=["Notifications"])
async def update_notification(
    notificationId: uuid.UUID,
    body: NotificationUpdateRequest,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    notification = await notification_service.update_notification(
        auth, notificationId, body, session
    )
    return _response(notification)


@router.post(
    "/{notificationId}/reject-subscription",
    response_model=NotificationExchangeResponse,
    tags=["Notifications"],
)
async def reject_subscription(
    notificationId: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Reject a subscription request. Returns the answered request and the reply sent back."""
    request, reply = await notification_service.reject_subscription(auth, notificationId, session)
    return NotificationExchangeResponse(request=_response(request), response=_response(reply))


@router.post(
    "/{notificationId}/refuse-search-coach",
    response_model=NotificationExchangeResponse,
    tags=["Notifications"],
)
async def refuse_search_coach(
    notificationId: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Refuse a coach search request. Returns the answered request and the reply sent back."""
    request, reply = await notification_service.refuse_search_coach(auth, notificationId, session)
    return NotificationExchangeResponse(request=_response(request), response=_response(reply))
