"""Pricing tier schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field, UUID4

from .common import Feature, Role


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class PricingBase(BaseModel):
    role_target: Role
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    free: bool = False
    highlighted: bool = False
    monthly: float = Field(default=0, ge=0)
    yearly: float = Field(default=0, ge=0)


class PricingPatch(BaseModel):
    """Partial base fields for an update; unset fields keep their value."""
    role_target: Optional[Role] = None
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    free: Optional[bool] = None
    highlighted: Optional[bool] = None
    monthly: Optional[float] = Field(default=None, ge=0)
    yearly: Optional[float] = Field(default=None, ge=0)


class PricingCreateRequest(BaseModel):
    base: PricingBase
    options: List[str]
    features: List[Feature]


class PricingUpdateRequest(BaseModel):
    """Options and features are always supplied in full; they replace the stored sets."""
    base: PricingPatch = Field(default_factory=PricingPatch)
    options: List[str]
    features: List[Feature]


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class PricingOptionResponse(BaseModel):
    id: UUID4
    name: str
    weight: int


class PricingResponse(BaseModel):
    id: UUID4
    role_target: Role
    title: str
    description: str
    free: bool
    highlighted: bool
    monthly: float
    yearly: float
    deleted: bool
    deletion_date: Optional[datetime] = None
    options: List[PricingOptionResponse] = Field(default_factory=list)
    features: List[Feature] = Field(default_factory=list)
    created_at: datetime


class PricingListResponse(BaseModel):
    data: List[PricingResponse]


class PricingGroup(BaseModel):
    role: Role
    items: List[PricingResponse]


class PricingGroupedResponse(BaseModel):
    data: List[PricingGroup]


class OptionDeleteResponse(BaseModel):
    deleted: int
