"""
Pricing service — role-targeted pricing tiers with ordered options and
feature flags.

Tiers are soft-deleted. Creating or updating a tier replaces its option
and feature sets wholesale; the replacement runs inside the caller's unit
of work with no intermediate commit, so it lands completely or not at all.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import utcnow
from app.models.pricing import Pricing, PricingFeature, PricingOption
from fitclub_shared.schemas.common import Feature, Role
from fitclub_shared.schemas.pricing import PricingCreateRequest, PricingUpdateRequest

log = structlog.get_logger()


async def _load_children(
    pricing_ids: list[uuid.UUID], session: AsyncSession
) -> tuple[dict[uuid.UUID, list[PricingOption]], dict[uuid.UUID, list[str]]]:
    options: dict[uuid.UUID, list[PricingOption]] = {pid: [] for pid in pricing_ids}
    features: dict[uuid.UUID, list[str]] = {pid: [] for pid in pricing_ids}
    if not pricing_ids:
        return options, features

    result = await session.execute(
        select(PricingOption)
        .where(PricingOption.pricing_id.in_(pricing_ids))
        .order_by(PricingOption.weight)
    )
    for option in result.scalars().all():
        options[option.pricing_id].append(option)

    result = await session.execute(
        select(PricingFeature).where(PricingFeature.pricing_id.in_(pricing_ids))
    )
    for feature in result.scalars().all():
        features[feature.pricing_id].append(feature.feature)

    return options, features


def _pricing_info(
    pricing: Pricing,
    options: list[PricingOption],
    features: list[str],
) -> dict:
    return {
        "id": pricing.id,
        "role_target": pricing.role_target,
        "title": pricing.title,
        "description": pricing.description,
        "free": pricing.free,
        "highlighted": pricing.highlighted,
        "monthly": pricing.monthly,
        "yearly": pricing.yearly,
        "deleted": pricing.deleted,
        "deletion_date": pricing.deletion_date,
        "options": [{"id": o.id, "name": o.name, "weight": o.weight} for o in options],
        "features": features,
        "created_at": pricing.created_at,
    }


async def _with_children(pricings: list[Pricing], session: AsyncSession) -> list[dict]:
    options, features = await _load_children([p.id for p in pricings], session)
    return [_pricing_info(p, options[p.id], features[p.id]) for p in pricings]


async def _get_row(pricing_id: uuid.UUID, session: AsyncSession) -> Optional[Pricing]:
    result = await session.execute(select(Pricing).where(Pricing.id == pricing_id))
    return result.scalar_one_or_none()


async def _require_row(pricing_id: uuid.UUID, session: AsyncSession) -> Pricing:
    pricing = await _get_row(pricing_id, session)
    if pricing is None:
        raise HTTPException(status_code=404, detail="Pricing not found")
    return pricing


def _add_children(
    pricing_id: uuid.UUID,
    options: list[str],
    features: list[Feature],
    session: AsyncSession,
) -> None:
    for weight, name in enumerate(options):
        session.add(PricingOption(pricing_id=pricing_id, name=name, weight=weight))
    for feature in dict.fromkeys(features):
        session.add(PricingFeature(pricing_id=pricing_id, feature=Feature(feature).value))


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_pricing(
    pricing_id: uuid.UUID, session: AsyncSession, *, include_deleted: bool = False
) -> Optional[dict]:
    pricing = await _get_row(pricing_id, session)
    if pricing is None or (pricing.deleted and not include_deleted):
        return None
    return (await _with_children([pricing], session))[0]


async def get_pricing_for_role(role: Role, session: AsyncSession) -> list[dict]:
    """Live tiers offered to ``role``, cheapest first."""
    result = await session.execute(
        select(Pricing)
        .where(Pricing.role_target == role.value, Pricing.deleted.is_(False))
        .order_by(Pricing.monthly)
    )
    return await _with_children(list(result.scalars().all()), session)


async def list_all_pricing(session: AsyncSession) -> list[dict]:
    """Every tier, deleted ones included, by target role then price."""
    result = await session.execute(
        select(Pricing).order_by(Pricing.role_target, Pricing.monthly)
    )
    return await _with_children(list(result.scalars().all()), session)


def group_by_role(items: list[dict]) -> list[dict]:
    """Group pricing rows by target role, keeping first-seen role order."""
    groups: dict[str, list[dict]] = {}
    for item in items:
        groups.setdefault(item["role_target"], []).append(item)
    return [{"role": role, "items": rows} for role, rows in groups.items()]


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_pricing(req: PricingCreateRequest, session: AsyncSession) -> dict:
    base = req.base.model_dump()
    base["role_target"] = req.base.role_target.value
    pricing = Pricing(**base)
    session.add(pricing)
    await session.flush()

    _add_children(pricing.id, req.options, req.features, session)
    await session.flush()

    log.info("pricing.created", pricing_id=str(pricing.id), role_target=pricing.role_target)
    return (await _with_children([pricing], session))[0]


async def update_pricing(
    pricing_id: uuid.UUID, req: PricingUpdateRequest, session: AsyncSession
) -> dict:
    """Patch base fields and replace options and features with the supplied lists."""
    pricing = await _require_row(pricing_id, session)

    await session.execute(delete(PricingOption).where(PricingOption.pricing_id == pricing.id))
    await session.execute(delete(PricingFeature).where(PricingFeature.pricing_id == pricing.id))

    for key, value in req.base.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(pricing, key, value.value if isinstance(value, Role) else value)
    pricing.updated_at = utcnow()
    session.add(pricing)

    _add_children(pricing.id, req.options, req.features, session)
    await session.flush()

    log.info(
        "pricing.updated",
        pricing_id=str(pricing.id),
        options=len(req.options),
        features=len(req.features),
    )
    return (await _with_children([pricing], session))[0]


async def _set_deleted(
    pricing_id: uuid.UUID, deleted: bool, when: Optional[datetime], session: AsyncSession
) -> dict:
    pricing = await _require_row(pricing_id, session)
    pricing.deleted = deleted
    pricing.deletion_date = when
    pricing.updated_at = utcnow()
    session.add(pricing)
    await session.flush()
    log.info("pricing.deleted" if deleted else "pricing.undeleted", pricing_id=str(pricing.id))
    return (await _with_children([pricing], session))[0]


async def delete_pricing(pricing_id: uuid.UUID, session: AsyncSession) -> dict:
    return await _set_deleted(pricing_id, True, utcnow(), session)


async def undelete_pricing(pricing_id: uuid.UUID, session: AsyncSession) -> dict:
    return await _set_deleted(pricing_id, False, None, session)


async def delete_pricing_option(name: str, session: AsyncSession) -> int:
    """Remove every option called ``name``, across all tiers. Returns the count removed."""
    result = await session.execute(delete(PricingOption).where(PricingOption.name == name))
    log.info("pricing.option_deleted", name=name, count=result.rowcount)
    return result.rowcount or 0
