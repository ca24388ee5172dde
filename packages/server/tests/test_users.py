"""
Tests for user profiles and search.

Tests cover:
- Reading a profile (null when absent)
- Self updates and admin-only fields
- Profile image ownership
- Search by name or email, capped result page
"""

from __future__ import annotations

import uuid

import pytest

from app.models.document import UserDocument
from app.models.pricing import Pricing
from app.services.users import SEARCH_LIMIT
from fitclub_shared.schemas.common import Role


class TestProfile:
    @pytest.mark.asyncio
    async def test_get_user(self, client, make_user, auth_headers):
        viewer = await make_user()
        target = await make_user(name="Target", image="https://provider.test/t.png")
        resp = await client.get(f"/api/v1/users/{target.id}", headers=auth_headers(viewer))
        assert resp.status_code == 200
        data = resp.json()
        assert data["name"] == "Target"
        assert data["role"] == "MEMBER"
        assert "password_hash" not in data

    @pytest.mark.asyncio
    async def test_missing_user_is_null(self, client, make_user, auth_headers):
        viewer = await make_user()
        resp = await client.get(f"/api/v1/users/{uuid.uuid4()}", headers=auth_headers(viewer))
        assert resp.status_code == 200
        assert resp.json() is None

    @pytest.mark.asyncio
    async def test_requires_session(self, client):
        resp = await client.get(f"/api/v1/users/{uuid.uuid4()}")
        assert resp.status_code == 401


class TestUpdate:
    @pytest.mark.asyncio
    async def test_update_own_name(self, client, make_user, auth_headers):
        user = await make_user()
        resp = await client.patch(
            f"/api/v1/users/{user.id}", json={"name": "New Name"}, headers=auth_headers(user)
        )
        assert resp.status_code == 200
        assert resp.json()["name"] == "New Name"

    @pytest.mark.asyncio
    async def test_cannot_update_someone_else(self, client, make_user, auth_headers):
        user = await make_user()
        other = await make_user()
        resp = await client.patch(
            f"/api/v1/users/{other.id}", json={"name": "Hacked"}, headers=auth_headers(user)
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_cannot_promote_self(self, client, make_user, auth_headers):
        user = await make_user()
        resp = await client.patch(
            f"/api/v1/users/{user.id}", json={"role": "ADMIN"}, headers=auth_headers(user)
        )
        assert resp.status_code == 403
        assert resp.json()["detail"] == "You are not authorized to manage users"

    @pytest.mark.asyncio
    async def test_admin_sets_role_and_pricing(self, client, add, make_user, auth_headers):
        admin = await make_user(Role.ADMIN)
        user = await make_user()
        tier = await add(Pricing(role_target="COACH", title="Coach Pro"))

        resp = await client.patch(
            f"/api/v1/users/{user.id}",
            json={"role": "COACH", "pricing_id": str(tier.id)},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["role"] == "COACH"
        assert resp.json()["pricing_id"] == str(tier.id)

    @pytest.mark.asyncio
    async def test_admin_unknown_pricing(self, client, make_user, auth_headers):
        admin = await make_user(Role.ADMIN)
        user = await make_user()
        resp = await client.patch(
            f"/api/v1/users/{user.id}",
            json={"pricing_id": str(uuid.uuid4())},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_profile_image_must_be_own_document(self, client, add, make_user, auth_headers):
        user = await make_user()
        other = await make_user()
        own = await add(UserDocument(user_id=user.id, name="me.png"))
        foreign = await add(UserDocument(user_id=other.id, name="them.png"))

        resp = await client.patch(
            f"/api/v1/users/{user.id}",
            json={"profile_image_id": str(foreign.id)},
            headers=auth_headers(user),
        )
        assert resp.status_code == 400

        resp = await client.patch(
            f"/api/v1/users/{user.id}",
            json={"profile_image_id": str(own.id)},
            headers=auth_headers(user),
        )
        assert resp.status_code == 200
        assert resp.json()["profile_image_id"] == str(own.id)


class TestSearch:
    @pytest.mark.asyncio
    async def test_search_by_name_and_email(self, client, make_user, auth_headers):
        viewer = await make_user(name="Viewer", email="viewer@fitclub.test")
        await make_user(name="Alice Runner", email="alice@fitclub.test")
        await make_user(name="Bob", email="bob.runner@fitclub.test")
        await make_user(name="Carol", email="carol@fitclub.test")

        resp = await client.get("/api/v1/users/search?q=RUNNER", headers=auth_headers(viewer))
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 2
        assert [u["name"] for u in data["data"]] == ["Alice Runner", "Bob"]

    @pytest.mark.asyncio
    async def test_search_page_is_capped(self, client, make_user, auth_headers):
        viewer = await make_user(name="Viewer")
        for i in range(SEARCH_LIMIT + 3):
            await make_user(name=f"Swimmer {i:02d}")

        resp = await client.get("/api/v1/users/search?q=swimmer", headers=auth_headers(viewer))
        data = resp.json()
        assert data["total"] == SEARCH_LIMIT + 3
        assert len(data["data"]) == SEARCH_LIMIT

    @pytest.mark.asyncio
    async def test_empty_query_rejected(self, client, make_user, auth_headers):
        viewer = await make_user()
        resp = await client.get("/api/v1/users/search?q=", headers=auth_headers(viewer))
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_wildcards_match_literally(self, client, make_user, auth_headers):
        viewer = await make_user(name="Viewer")
        await make_user(name="Ann_Marie", email="ann_marie@fitclub.test")
        await make_user(name="Bob", email="bob@fitclub.test")

        resp = await client.get("/api/v1/users/search?q=_", headers=auth_headers(viewer))
        data = resp.json()
        assert data["total"] == 1
        assert [u["name"] for u in data["data"]] == ["Ann_Marie"]

        resp = await client.get("/api/v1/users/search", params={"q": "%"}, headers=auth_headers(viewer))
        assert resp.json()["total"] == 0
