"""Pricing tier models. Tiers are soft-deleted, never removed."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Pricing(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "pricings"

    role_target: str = Field(nullable=False, index=True)
    title: str = Field(nullable=False)
    description: str = Field(default="", nullable=False)
    free: bool = Field(default=False, nullable=False)
    highlighted: bool = Field(default=False, nullable=False)
    monthly: float = Field(default=0, nullable=False)
    yearly: float = Field(default=0, nullable=False)
    deleted: bool = Field(default=False, nullable=False)
    deletion_date: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))


class PricingOption(UUIDMixin, SQLModel, table=True):
    __tablename__ = "pricing_options"

    pricing_id: uuid.UUID = Field(foreign_key="pricings.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    weight: int = Field(default=0, nullable=False)


class PricingFeature(UUIDMixin, SQLModel, table=True):
    __tablename__ = "pricing_features"

    pricing_id: uuid.UUID = Field(foreign_key="pricings.id", nullable=False, index=True)
    feature: str = Field(nullable=False)
