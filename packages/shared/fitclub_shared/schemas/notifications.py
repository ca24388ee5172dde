"""Notification schemas.

A notification's ``data`` is a tagged union keyed by its ``type``: every
type maps to exactly one payload schema in ``NOTIFICATION_PAYLOADS``.
The payload is stored as serialized JSON text and parsed back on read.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Optional, List

from pydantic import BaseModel, ConfigDict, Field, UUID4, ValidationError, model_validator


class NotificationType(str, Enum):
    SEARCH_COACH = "SEARCH_COACH"
    SEARCH_CLUB = "SEARCH_CLUB"
    COACH_ACCEPT = "COACH_ACCEPT"
    COACH_REFUSE = "COACH_REFUSE"
    NEW_SUBSCRIPTION = "NEW_SUBSCRIPTION"
    SUBSCRIPTION_VALIDATED = "SUBSCRIPTION_VALIDATED"
    SUBSCRIPTION_REJECTED = "SUBSCRIPTION_REJECTED"
    SUBSCRIPTION_CANCELLED = "SUBSCRIPTION_CANCELLED"


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------

class EmptyPayload(BaseModel):
    """Types that carry their whole meaning in ``type`` and ``message``."""
    model_config = ConfigDict(extra="forbid")


class SubscriptionPayload(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    subscription_id: uuid.UUID = Field(alias="subscriptionId")
    monthly: bool
    online: bool


NOTIFICATION_PAYLOADS: dict[NotificationType, type[BaseModel]] = {
    NotificationType.SEARCH_COACH: EmptyPayload,
    NotificationType.SEARCH_CLUB: EmptyPayload,
    NotificationType.COACH_ACCEPT: EmptyPayload,
    NotificationType.COACH_REFUSE: EmptyPayload,
    NotificationType.NEW_SUBSCRIPTION: SubscriptionPayload,
    NotificationType.SUBSCRIPTION_VALIDATED: SubscriptionPayload,
    NotificationType.SUBSCRIPTION_REJECTED: SubscriptionPayload,
    NotificationType.SUBSCRIPTION_CANCELLED: SubscriptionPayload,
}


def parse_notification_data(type_: NotificationType, data: Any) -> BaseModel:
    """Validate raw ``data`` (dict, JSON text or None) against the schema of ``type_``."""
    schema = NOTIFICATION_PAYLOADS[NotificationType(type_)]
    if data is None or data == "":
        data = {}
    if isinstance(data, (str, bytes)):
        return schema.model_validate_json(data)
    return schema.model_validate(data)


def dump_notification_data(payload: BaseModel) -> Optional[str]:
    """Serialize a payload for storage. Empty payloads are stored as NULL."""
    dumped = payload.model_dump(mode="json", by_alias=True)
    return json.dumps(dumped) if dumped else None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class NotificationCreateRequest(BaseModel):
    """Create a notification. ``user_from_id`` defaults to the caller."""
    user_from_id: Optional[UUID4] = None
    user_to_id: UUID4
    type: NotificationType
    message: str = Field(default="", max_length=2000)
    data: Optional[dict[str, Any]] = None
    linked_notification_id: Optional[UUID4] = None

    @model_validator(mode="after")
    def _validate_payload(self) -> "NotificationCreateRequest":
        try:
            payload = parse_notification_data(self.type, self.data)
        except ValidationError as exc:
            raise ValueError(f"Invalid data for {self.type.value}: {exc.errors()}") from exc
        self.data = payload.model_dump(mode="json", by_alias=True) or None
        return self


class NotificationUpdateRequest(BaseModel):
    answered: Optional[datetime] = None
    answer: Optional[str] = Field(default=None, max_length=200)
    linked_notification_id: Optional[UUID4] = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class NotificationResponse(BaseModel):
    id: UUID4
    user_from_id: UUID4
    user_to_id: UUID4
    type: NotificationType
    message: str
    data: Optional[dict[str, Any]] = None
    view_date: Optional[datetime] = None
    answered: Optional[datetime] = None
    answer: Optional[str] = None
    linked_notification_id: Optional[UUID4] = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    data: List[NotificationResponse]


class NotificationExchangeResponse(BaseModel):
    """Result of answering a request notification: both ends of the link."""
    request: NotificationResponse
    response: NotificationResponse
