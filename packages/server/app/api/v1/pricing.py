"""
Pricing API endpoints.

Public:
GET    /api/v1/pricing/{pricingId}          — One tier, or null
GET    /api/v1/pricing/roles/{role}         — Live tiers for a role, cheapest first

pricing:manage:
GET    /api/v1/pricing                      — Every tier, deleted included
GET    /api/v1/pricing/grouped              — Every tier grouped by target role
POST   /api/v1/pricing                      — Create a tier
PUT    /api/v1/pricing/{pricingId}          — Update a tier, replacing options and features
POST   /api/v1/pricing/{pricingId}/delete   — Soft delete
POST   /api/v1/pricing/{pricingId}/undelete — Restore
DELETE /api/v1/pricing/options/{name}       — Remove an option from every tier
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_optional_user
from app.core.database import get_session
from app.core.policy import Permission, has_permission, require_permission
from app.services import pricing as pricing_service
from fitclub_shared.schemas.common import Role
from fitclub_shared.schemas.pricing import (
    OptionDeleteResponse,
    PricingCreateRequest,
    PricingGroupedResponse,
    PricingListResponse,
    PricingResponse,
    PricingUpdateRequest,
)

router = APIRouter()

require_pricing_manager = require_permission(Permission.PRICING_MANAGE)


# ---------------------------------------------------------------------------
# Admin reads (declared before /{pricingId} so the static paths win)
# ---------------------------------------------------------------------------

@router.get("", response_model=PricingListResponse, tags=["Pricing"])
async def list_pricing(
    auth: AuthenticatedUser = Depends(require_pricing_manager),
    session: AsyncSession = Depends(get_session),
):
    items = await pricing_service.list_all_pricing(session)
    return PricingListResponse(data=[PricingResponse(**item) for item in items])


@router.get("/grouped", response_model=PricingGroupedResponse, tags=["Pricing"])
async def list_pricing_grouped(
    auth: AuthenticatedUser = Depends(require_pricing_manager),
    session: AsyncSession = Depends(get_session),
):
    items = await pricing_service.list_all_pricing(session)
    return PricingGroupedResponse(data=pricing_service.group_by_role(items))


# ---------------------------------------------------------------------------
# Public reads
# ---------------------------------------------------------------------------

@router.get("/roles/{role}", response_model=PricingListResponse, tags=["Pricing"])
async def get_pricing_for_role(
    role: Role,
    session: AsyncSession = Depends(get_session),
):
    items = await pricing_service.get_pricing_for_role(role, session)
    return PricingListResponse(data=[PricingResponse(**item) for item in items])


@router.get("/{pricingId}", response_model=Optional[PricingResponse], tags=["Pricing"])
async def get_pricing(
    pricingId: uuid.UUID,
    auth: Optional[AuthenticatedUser] = Depends(get_optional_user),
    session: AsyncSession = Depends(get_session),
):
    """A tier, or null. Deleted tiers are only visible to pricing managers."""
    include_deleted = auth is not None and has_permission(auth.role, Permission.PRICING_MANAGE)
    info = await pricing_service.get_pricing(pricingId, session, include_deleted=include_deleted)
    return PricingResponse(**info) if info else None


# ---------------------------------------------------------------------------
# Admin writes
# ---------------------------------------------------------------------------

@router.post("", response_model=PricingResponse, status_code=201, tags=["Pricing"])
async def create_pricing(
    body: PricingCreateRequest,
    auth: AuthenticatedUser = Depends(require_pricing_manager),
    session: AsyncSession = Depends(get_session),
):
    info = await pricing_service.create_pricing(body, session)
    return PricingResponse(**info)


@router.put("/{pricingId}", response_model=PricingResponse, tags=["Pricing"])
async def update_pricing(
    pricingId: uuid.UUID,
    body: PricingUpdateRequest,
    auth: AuthenticatedUser = Depends(require_pricing_manager),
    session: AsyncSession = Depends(get_session),
):
    """Patch the tier and replace its options and features with the given lists."""
    info = await pricing_service.update_pricing(pricingId, body, session)
    return PricingResponse(**info)


@router.post("/{pricingId}/delete", response_model=PricingResponse, tags=["Pricing"])
async def delete_pricing(
    pricingId: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_pricing_manager),
    session: AsyncSession = Depends(get_session),
):
    info = await pricing_service.delete_pricing(pricingId, session)
    return PricingResponse(**info)


@router.post("/{pricingId}/undelete", response_model=PricingResponse, tags=["Pricing"])
async def undelete_pricing(
    pricingId: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_pricing_manager),
    session: AsyncSession = Depends(get_session),
):
    info = await pricing_service.undelete_pricing(pricingId, session)
    return PricingResponse(**info)


@router.delete("/options/{name}", response_model=OptionDeleteResponse, tags=["Pricing"])
async def delete_pricing_option(
    name: str,
    auth: AuthenticatedUser = Depends(require_pricing_manager),
    session: AsyncSession = Depends(get_session),
):
    count = await pricing_service.delete_pricing_option(name, session)
    return OptionDeleteResponse(deleted=count)
