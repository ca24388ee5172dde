"""
Tests for Authentication.

Covers:
- Password hashing
- JWT creation, decoding, expiry and tampering
- Session revocation (mocked Redis)
- CSRF middleware
- Security headers middleware
- /auth endpoints: register, login, session, refresh, logout
- Bearer and cookie sessions on protected endpoints
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import jwt as pyjwt
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.auth import (
    CSRF_COOKIE,
    SESSION_COOKIE,
    create_jwt,
    decode_jwt,
    generate_csrf_token,
    hash_password,
    remaining_ttl,
    verify_password,
)
from app.core.middleware import CSRFMiddleware, SecurityHeadersMiddleware, SECURITY_HEADERS
from fitclub_shared.schemas.common import Role


# ---------------------------------------------------------------------------
# Unit Tests: Password hashing
# ---------------------------------------------------------------------------

class TestPasswordHashing:
    def test_hash_and_verify(self):
        password = "MySecureP@ssw0rd!"
        hashed = hash_password(password)
        assert hashed != password
        assert verify_password(password, hashed)

    def test_wrong_password_fails(self):
        hashed = hash_password("correct-password")
        assert not verify_password("wrong-password", hashed)

    def test_different_hashes_for_same_password(self):
        """bcrypt uses random salt, so hashes differ."""
        h1 = hash_password("same")
        h2 = hash_password("same")
        assert h1 != h2
        assert verify_password("same", h1)
        assert verify_password("same", h2)


# ---------------------------------------------------------------------------
# Unit Tests: JWT
# ---------------------------------------------------------------------------

class TestJWT:
    def test_create_and_decode(self):
        uid = uuid.uuid4()
        token, jti, exp = create_jwt(user_id=uid, role="COACH")
        payload = decode_jwt(token)
        assert payload["sub"] == str(uid)
        assert payload["role"] == "COACH"
        assert payload["jti"] == jti
        assert payload["exp"] == int(exp.timestamp())

    def test_remaining_ttl(self):
        token, _, _ = create_jwt(user_id=uuid.uuid4(), role="MEMBER", expires_delta=timedelta(minutes=10))
        ttl = remaining_ttl(decode_jwt(token))
        assert 590 <= ttl <= 600

    def test_expired_jwt_raises(self):
        token, _, _ = create_jwt(
            user_id=uuid.uuid4(),
            role="MEMBER",
            expires_delta=timedelta(seconds=-1),
        )
        with pytest.raises(pyjwt.ExpiredSignatureError):
            decode_jwt(token)

    def test_tampered_jwt_raises(self):
        token, _, _ = create_jwt(user_id=uuid.uuid4(), role="MEMBER")
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, signature[::-1]])
        with pytest.raises(pyjwt.InvalidTokenError):
            decode_jwt(tampered)


# ---------------------------------------------------------------------------
# Unit Tests: CSRF Token
# ---------------------------------------------------------------------------

class TestCSRFToken:
    def test_generates_unique_tokens(self):
        t1 = generate_csrf_token()
        t2 = generate_csrf_token()
        assert t1 != t2
        assert len(t1) > 20


# ---------------------------------------------------------------------------
# Unit Tests: Session revocation (mocked Redis)
# ---------------------------------------------------------------------------

class TestSessionRevocation:
    @pytest.mark.asyncio
    async def test_revoke_and_check(self):
        mock_redis = AsyncMock()
        mock_redis.setex = AsyncMock()
        mock_redis.exists = AsyncMock(return_value=1)

        with patch("app.core.redis.get_redis", AsyncMock(return_value=mock_redis)):
            from app.core.redis import is_session_revoked, revoke_session

            await revoke_session("test-jti-123", 3600)
            mock_redis.setex.assert_called_once_with("fc:session:revoked:test-jti-123", 3600, "1")

            assert await is_session_revoked("test-jti-123") is True

    @pytest.mark.asyncio
    async def test_ttl_never_below_one_second(self):
        mock_redis = AsyncMock()
        with patch("app.core.redis.get_redis", AsyncMock(return_value=mock_redis)):
            from app.core.redis import revoke_session

            await revoke_session("expired", -30)
            mock_redis.setex.assert_called_once_with("fc:session:revoked:expired", 1, "1")

    @pytest.mark.asyncio
    async def test_non_revoked_session(self):
        mock_redis = AsyncMock()
        mock_redis.exists = AsyncMock(return_value=0)

        with patch("app.core.redis.get_redis", AsyncMock(return_value=mock_redis)):
            from app.core.redis import is_session_revoked
            assert await is_session_revoked("non-existent-jti") is False


# ---------------------------------------------------------------------------
# Integration Tests: Middleware
# ---------------------------------------------------------------------------

class TestSecurityHeadersMiddleware:
    def test_headers_present(self):
        app = FastAPI()
        app.add_middleware(SecurityHeadersMiddleware)

        @app.get("/test")
        async def test_endpoint():
            return {"ok": True}

        client = TestClient(app)
        resp = client.get("/test")
        assert resp.status_code == 200
        for header, value in SECURITY_HEADERS.items():
            assert resp.headers.get(header) == value

    def test_docs_skip_csp(self):
        app = FastAPI()
        app.add_middleware(SecurityHeadersMiddleware)

        client = TestClient(app)
        resp = client.get("/docs")
        assert resp.status_code == 200
        assert "Content-Security-Policy" not in resp.headers
        assert resp.headers["X-Frame-Options"] == "DENY"


class TestCSRFMiddleware:
    def _make_app(self) -> FastAPI:
        app = FastAPI()
        app.add_middleware(CSRFMiddleware)

        @app.get("/test")
        async def get_test():
            return {"ok": True}

        @app.post("/test")
        async def post_test():
            return {"ok": True}

        return app

    def test_get_passes_without_csrf(self):
        client = TestClient(self._make_app())
        resp = client.get("/test")
        assert resp.status_code == 200

    def test_post_with_bearer_skips_csrf(self):
        client = TestClient(self._make_app(), cookies={SESSION_COOKIE: "some-jwt"})
        resp = client.post("/test", headers={"Authorization": "Bearer xxx"})
        assert resp.status_code == 200

    def test_post_without_session_cookie_passes(self):
        """No session cookie = not a browser request, skip CSRF."""
        client = TestClient(self._make_app())
        resp = client.post("/test")
        assert resp.status_code == 200

    def test_post_with_session_but_no_csrf_fails(self):
        client = TestClient(self._make_app(), cookies={SESSION_COOKIE: "some-jwt"})
        resp = client.post("/test")
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "CSRF_VALIDATION_FAILED"

    def test_post_with_matching_csrf_passes(self):
        csrf_token = "test-csrf-token"
        client = TestClient(
            self._make_app(),
            cookies={SESSION_COOKIE: "some-jwt", CSRF_COOKIE: csrf_token},
        )
        resp = client.post("/test", headers={"X-CSRF-Token": csrf_token})
        assert resp.status_code == 200

    def test_post_with_mismatched_csrf_fails(self):
        client = TestClient(
            self._make_app(),
            cookies={SESSION_COOKIE: "some-jwt", CSRF_COOKIE: "token-a"},
        )
        resp = client.post("/test", headers={"X-CSRF-Token": "token-b"})
        assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Integration Tests: Auth Endpoints
# ---------------------------------------------------------------------------

class TestAuthEndpoints:
    @pytest.mark.asyncio
    async def test_register_creates_member_and_sets_cookies(self, client):
        resp = await client.post(
            "/auth/register",
            json={"email": "Anna@Example.com", "password": "long-enough", "name": "Anna"},
        )
        assert resp.status_code == 201
        assert resp.json()["email"] == "anna@example.com"
        assert SESSION_COOKIE in resp.cookies
        assert CSRF_COOKIE in resp.cookies

        payload = decode_jwt(resp.cookies[SESSION_COOKIE])
        assert payload["role"] == Role.MEMBER.value
        assert payload["sub"] == resp.json()["user_id"]

    @pytest.mark.asyncio
    async def test_register_short_password(self, client):
        resp = await client.post(
            "/auth/register",
            json={"email": "short@example.com", "password": "short", "name": "Short"},
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client, make_user):
        await make_user(email="taken@example.com")
        resp = await client.post(
            "/auth/register",
            json={"email": "taken@example.com", "password": "long-enough", "name": "Dup"},
        )
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_login_success(self, client, make_user):
        user = await make_user(email="login@example.com", password_hash=hash_password("secret-pass"))
        resp = await client.post(
            "/auth/login", json={"email": "login@example.com", "password": "secret-pass"}
        )
        assert resp.status_code == 200
        assert resp.json()["user_id"] == str(user.id)
        assert decode_jwt(resp.cookies[SESSION_COOKIE])["sub"] == str(user.id)

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client, make_user):
        await make_user(email="login2@example.com", password_hash=hash_password("secret-pass"))
        resp = await client.post(
            "/auth/login", json={"email": "login2@example.com", "password": "nope-nope"}
        )
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, client):
        resp = await client.post(
            "/auth/login", json={"email": "ghost@example.com", "password": "whatever1"}
        )
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_session_with_bearer(self, client, make_user, auth_headers):
        user = await make_user(Role.COACH, name="Chloe")
        resp = await client.get("/auth/session", headers=auth_headers(user))
        assert resp.status_code == 200
        data = resp.json()
        assert data["user_id"] == str(user.id)
        assert data["role"] == "COACH"
        assert data["name"] == "Chloe"

    @pytest.mark.asyncio
    async def test_session_with_cookie(self, client, make_user):
        user = await make_user()
        token, _, _ = create_jwt(user.id, user.role)
        client.cookies.set(SESSION_COOKIE, token)
        resp = await client.get("/auth/session")
        assert resp.status_code == 200
        assert resp.json()["user_id"] == str(user.id)

    @pytest.mark.asyncio
    async def test_session_missing(self, client):
        resp = await client.get("/auth/session")
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_session_garbage_token(self, client):
        resp = await client.get("/auth/session", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_session_for_deleted_user(self, client):
        token, _, _ = create_jwt(uuid.uuid4(), "MEMBER")
        resp = await client.get("/auth/session", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_revoked_session_rejected(self, client, make_user, auth_headers, no_revoked_sessions):
        user = await make_user()
        no_revoked_sessions.return_value = True
        resp = await client.get("/auth/session", headers=auth_headers(user))
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Session has been revoked"

    @pytest.mark.asyncio
    async def test_refresh_revokes_old_session(self, client, make_user, auth_headers):
        user = await make_user()
        headers = auth_headers(user)
        old_jti = decode_jwt(headers["Authorization"][7:])["jti"]

        with patch("app.api.v1.auth.revoke_session", AsyncMock()) as revoke:
            resp = await client.post("/auth/refresh", headers=headers)

        assert resp.status_code == 200
        revoke.assert_awaited_once()
        assert revoke.await_args.args[0] == old_jti
        assert decode_jwt(resp.cookies[SESSION_COOKIE])["jti"] != old_jti

    @pytest.mark.asyncio
    async def test_logout_revokes_and_clears_cookies(self, client, make_user):
        user = await make_user()
        token, jti, _ = create_jwt(user.id, user.role)
        client.cookies.set(SESSION_COOKIE, token)
        client.cookies.set(CSRF_COOKIE, "csrf-value")

        with patch("app.api.v1.auth.is_session_revoked", AsyncMock(return_value=False)), \
                patch("app.api.v1.auth.revoke_session", AsyncMock()) as revoke:
            resp = await client.post("/auth/logout", headers={"X-CSRF-Token": "csrf-value"})

        assert resp.status_code == 200
        assert resp.json()["message"] == "Logged out"
        revoke.assert_awaited_once()
        assert revoke.await_args.args[0] == jti

    @pytest.mark.asyncio
    async def test_logout_without_session(self, client):
        resp = await client.post("/auth/logout")
        assert resp.status_code == 200
