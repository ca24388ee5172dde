"""
Shared fixtures: an in-memory SQLite database per test, the FastAPI app
wired to it, a fake document storage, and helpers to create rows and
authenticate as a user.
"""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from app.core.auth import create_jwt
from app.core.database import build_engine, build_session_factory, get_session, init_db
from app.core.documents import get_document_storage
from app.main import app
from app.models.user import User
from fitclub_shared.schemas.common import Role


class FakeDocumentStorage:
    """In-memory stand-in for the S3 document storage."""

    def __init__(self):
        self.missing: set[uuid.UUID] = set()
        self.lookups: list[uuid.UUID] = []
        self.deleted: list[tuple[uuid.UUID, uuid.UUID]] = []
        self.fail_deletes = False

    @staticmethod
    def url_for(user_id: uuid.UUID, document_id: uuid.UUID) -> str:
        return f"https://cdn.test/{user_id}/{document_id}"

    async def get_document_url(self, user_id, document_id):
        self.lookups.append(document_id)
        if document_id in self.missing:
            return None
        return self.url_for(user_id, document_id)

    async def delete_document(self, user_id, document_id):
        if self.fail_deletes:
            raise RuntimeError("storage unavailable")
        self.deleted.append((user_id, document_id))


@pytest.fixture
async def engine():
    engine = build_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def storage():
    return FakeDocumentStorage()


@pytest.fixture(autouse=True)
def no_revoked_sessions():
    with patch("app.core.auth.is_session_revoked", AsyncMock(return_value=False)) as mock:
        yield mock


@pytest.fixture
async def client(session_factory, storage):
    async def override_session():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_document_storage] = lambda: storage
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def add(session_factory):
    """Persist rows in their own committed transaction and return them."""

    async def _add(*rows):
        async with session_factory() as s:
            s.add_all(rows)
            await s.commit()
        return rows[0] if len(rows) == 1 else rows

    return _add


@pytest.fixture
def make_user(add):
    async def _make(role: Role = Role.MEMBER, **kwargs) -> User:
        suffix = uuid.uuid4().hex[:8]
        kwargs.setdefault("name", f"User {suffix}")
        kwargs.setdefault("email", f"{suffix}@fitclub.test")
        return await add(User(role=role.value, **kwargs))

    return _make


@pytest.fixture
def auth_headers():
    """Bearer headers for a user, using a real signed session token."""

    def _headers(user: User) -> dict[str, str]:
        token, _jti, _exp = create_jwt(user.id, user.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers
