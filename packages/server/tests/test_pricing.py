"""
Tests for pricing tiers.

Tests cover:
- Create with ordered options and features
- Update replacing options and features, and its all-or-nothing behaviour
- Soft delete / undelete and what public reads see
- Role listings ordered by monthly price
- Grouped admin listing
- Option removal across tiers
"""

from __future__ import annotations

import uuid
from unittest.mock import patch

import pytest
from sqlalchemy import func, select

from app.models.pricing import Pricing, PricingFeature, PricingOption
from fitclub_shared.schemas.common import Role


def _tier(title="Coach Pro", role="COACH", monthly=39, options=None, features=None):
    return {
        "base": {
            "role_target": role,
            "title": title,
            "description": "For busy coaches",
            "monthly": monthly,
            "yearly": monthly * 10,
            "highlighted": True,
        },
        "options": options if options is not None else ["Unlimited clients", "Badge"],
        "features": features if features is not None else ["COACH_OFFER", "COACH_PLAN"],
    }


@pytest.fixture
async def admin_headers(make_user, auth_headers):
    return auth_headers(await make_user(Role.ADMIN))


@pytest.fixture
async def create_tier(client, admin_headers):
    async def _create(**kwargs) -> dict:
        resp = await client.post("/api/v1/pricing", json=_tier(**kwargs), headers=admin_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_keeps_option_order(self, create_tier):
        data = await create_tier(options=["c", "a", "b"])
        assert [(o["name"], o["weight"]) for o in data["options"]] == [("c", 0), ("a", 1), ("b", 2)]
        assert sorted(data["features"]) == ["COACH_OFFER", "COACH_PLAN"]
        assert data["deleted"] is False
        assert data["deletion_date"] is None

    @pytest.mark.asyncio
    async def test_create_without_options(self, create_tier, session_factory):
        data = await create_tier(options=[], features=[])
        assert data["options"] == []
        async with session_factory() as s:
            count = await s.scalar(
                select(func.count()).select_from(PricingOption)
                .where(PricingOption.pricing_id == uuid.UUID(data["id"]))
            )
        assert count == 0

    @pytest.mark.asyncio
    async def test_unknown_feature_rejected(self, client, admin_headers):
        resp = await client.post(
            "/api/v1/pricing", json=_tier(features=["TELEPORT"]), headers=admin_headers
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_negative_price_rejected(self, client, admin_headers):
        resp = await client.post("/api/v1/pricing", json=_tier(monthly=-1), headers=admin_headers)
        assert resp.status_code == 422


class TestUpdate:
    @pytest.mark.asyncio
    async def test_update_replaces_options_and_features(self, client, admin_headers, create_tier):
        tier = await create_tier()
        resp = await client.put(
            f"/api/v1/pricing/{tier['id']}",
            json={
                "base": {"title": "Coach Max", "monthly": 49},
                "options": ["Everything"],
                "features": ["COACH_CERTIFICATION"],
            },
            headers=admin_headers,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["title"] == "Coach Max"
        assert data["monthly"] == 49
        assert data["description"] == "For busy coaches"
        assert [o["name"] for o in data["options"]] == ["Everything"]
        assert data["features"] == ["COACH_CERTIFICATION"]

    @pytest.mark.asyncio
    async def test_update_with_empty_lists_clears_children(self, client, admin_headers, create_tier):
        tier = await create_tier()
        resp = await client.put(
            f"/api/v1/pricing/{tier['id']}",
            json={"options": [], "features": []},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["options"] == []
        assert resp.json()["features"] == []

    @pytest.mark.asyncio
    async def test_update_missing_tier(self, client, admin_headers):
        resp = await client.put(
            f"/api/v1/pricing/{uuid.uuid4()}",
            json={"options": [], "features": []},
            headers=admin_headers,
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_failed_update_leaves_tier_untouched(
        self, client, admin_headers, create_tier, session_factory
    ):
        tier = await create_tier(options=["keep me"])

        with patch("app.services.pricing._add_children", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                await client.put(
                    f"/api/v1/pricing/{tier['id']}",
                    json={"base": {"title": "Broken"}, "options": ["new"], "features": []},
                    headers=admin_headers,
                )

        async with session_factory() as s:
            pricing = await s.get(Pricing, uuid.UUID(tier["id"]))
            options = (await s.execute(
                select(PricingOption.name).where(PricingOption.pricing_id == pricing.id)
            )).scalars().all()
            features = (await s.execute(
                select(PricingFeature.feature).where(PricingFeature.pricing_id == pricing.id)
            )).scalars().all()
        assert pricing.title == "Coach Pro"
        assert options == ["keep me"]
        assert sorted(features) == ["COACH_OFFER", "COACH_PLAN"]


class TestSoftDelete:
    @pytest.mark.asyncio
    async def test_delete_hides_from_public_reads(self, client, admin_headers, create_tier):
        tier = await create_tier()

        resp = await client.post(f"/api/v1/pricing/{tier['id']}/delete", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["deleted"] is True
        assert resp.json()["deletion_date"] is not None

        resp = await client.get("/api/v1/pricing/roles/COACH")
        assert resp.json()["data"] == []

        resp = await client.get(f"/api/v1/pricing/{tier['id']}")
        assert resp.status_code == 200
        assert resp.json() is None

        # Admins still see it
        resp = await client.get(f"/api/v1/pricing/{tier['id']}", headers=admin_headers)
        assert resp.json()["id"] == tier["id"]
        resp = await client.get("/api/v1/pricing", headers=admin_headers)
        assert [p["id"] for p in resp.json()["data"]] == [tier["id"]]

    @pytest.mark.asyncio
    async def test_undelete_restores(self, client, admin_headers, create_tier):
        tier = await create_tier()
        await client.post(f"/api/v1/pricing/{tier['id']}/delete", headers=admin_headers)

        resp = await client.post(f"/api/v1/pricing/{tier['id']}/undelete", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["deleted"] is False
        assert resp.json()["deletion_date"] is None

        resp = await client.get("/api/v1/pricing/roles/COACH")
        assert [p["id"] for p in resp.json()["data"]] == [tier["id"]]

    @pytest.mark.asyncio
    async def test_delete_missing(self, client, admin_headers):
        resp = await client.post(f"/api/v1/pricing/{uuid.uuid4()}/delete", headers=admin_headers)
        assert resp.status_code == 404


class TestReads:
    @pytest.mark.asyncio
    async def test_role_listing_ordered_by_monthly(self, client, create_tier):
        pro = await create_tier(title="Pro", monthly=39)
        starter = await create_tier(title="Starter", monthly=19)
        await create_tier(title="Club", role="MANAGER", monthly=79)

        resp = await client.get("/api/v1/pricing/roles/COACH")
        assert resp.status_code == 200
        assert [p["id"] for p in resp.json()["data"]] == [starter["id"], pro["id"]]

    @pytest.mark.asyncio
    async def test_unknown_role(self, client):
        resp = await client.get("/api/v1/pricing/roles/WIZARD")
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_grouped_by_role(self, client, admin_headers, create_tier):
        await create_tier(title="Pro", monthly=39)
        await create_tier(title="Club", role="MANAGER", monthly=79)
        await create_tier(title="Starter", monthly=19)

        resp = await client.get("/api/v1/pricing/grouped", headers=admin_headers)
        assert resp.status_code == 200
        groups = {g["role"]: [p["title"] for p in g["items"]] for g in resp.json()["data"]}
        assert groups == {"COACH": ["Starter", "Pro"], "MANAGER": ["Club"]}

    @pytest.mark.asyncio
    async def test_missing_tier_is_null(self, client):
        resp = await client.get(f"/api/v1/pricing/{uuid.uuid4()}")
        assert resp.status_code == 200
        assert resp.json() is None


class TestOptionRemoval:
    @pytest.mark.asyncio
    async def test_delete_option_everywhere(self, client, admin_headers, create_tier):
        a = await create_tier(options=["Sauna", "Pool"])
        await create_tier(title="Other", options=["Sauna"])

        resp = await client.delete("/api/v1/pricing/options/Sauna", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json() == {"deleted": 2}

        resp = await client.get(f"/api/v1/pricing/{a['id']}")
        assert [o["name"] for o in resp.json()["options"]] == ["Pool"]
