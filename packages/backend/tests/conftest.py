"""Test fixtures — isolated databases and a counting in-memory store.

Learn: Two kinds of tests live here:

1. Core tests (credential store, session resolver) run against
   InMemoryIdentityRepository. It keeps call counters, so a test can
   assert "exactly one lookup happened" without a database.
2. Repository, API, and CLI tests run against a real SQLAlchemy engine
   on in-memory SQLite (aiosqlite). Each test gets a fresh engine, so
   there is no cross-test pollution and nothing to roll back.

bcrypt is set to 4 rounds (its minimum) before the app is imported —
at the default 12 every register/verify would cost ~100ms.
"""

import os

os.environ.setdefault("DOORKEEPER_BCRYPT_ROUNDS", "4")
os.environ.setdefault("DOORKEEPER_DATABASE_URL", "sqlite+aiosqlite://")

import uuid
from collections import Counter
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from doorkeeper.auth.errors import ValidationCode, ValidationError
from doorkeeper.auth.session import SessionIdentityResolver, UnitOfWork
from doorkeeper.db.engine import get_db, init_models
from doorkeeper.db.models import Identity, utcnow
from doorkeeper.main import app
from doorkeeper.services.credential_store import CredentialStore

TEST_ROUNDS = 4


class InMemoryIdentityRepository:
    """Dict-backed stand-in for IdentityRepository that counts calls."""

    def __init__(self):
        self.rows: dict[uuid.UUID, Identity] = {}
        self.calls: Counter = Counter()

    async def create(self, identifier: str, password_digest: str) -> Identity:
        self.calls["create"] += 1
        if any(i.identifier == identifier for i in self.rows.values()):
            raise ValidationError(ValidationCode.DUPLICATE_IDENTIFIER)
        now = utcnow()
        identity = Identity(
            id=uuid.uuid4(),
            identifier=identifier,
            password_digest=password_digest,
            created_at=now,
            updated_at=now,
        )
        self.rows[identity.id] = identity
        return identity

    async def find_by_identifier(self, identifier: str) -> Optional[Identity]:
        self.calls["find_by_identifier"] += 1
        for identity in self.rows.values():
            if identity.identifier == identifier:
                return identity
        return None

    async def find_by_id(self, identity_id: uuid.UUID) -> Optional[Identity]:
        self.calls["find_by_id"] += 1
        return self.rows.get(identity_id)

    async def update(self, identity: Identity) -> Identity:
        self.calls["update"] += 1
        identity.updated_at = utcnow()
        self.rows[identity.id] = identity
        return identity

    async def delete(self, identity: Identity) -> None:
        self.calls["delete"] += 1
        self.rows.pop(identity.id, None)


@pytest.fixture()
def repository():
    return InMemoryIdentityRepository()


@pytest.fixture()
def store(repository):
    return CredentialStore(repository, rounds=TEST_ROUNDS)


@pytest.fixture()
def resolver(store):
    return SessionIdentityResolver(store)


@pytest.fixture()
def session():
    """A session container that outlives units of work, like a cookie."""
    return {}


@pytest.fixture()
def new_uow(session):
    """Factory for fresh units of work over the same session."""
    return lambda: UnitOfWork(session)


@pytest_asyncio.fixture()
async def db_engine():
    """Fresh in-memory SQLite database per test.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(db_engine):
    session = AsyncSession(bind=db_engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()


@pytest_asyncio.fixture()
async def client(db_session):
    """HTTP client with the app's get_db overridden to the test database.

    Learn: Auth is NOT mocked. Tests sign up and log in for real, and the
    client's cookie jar carries the session cookie between requests the
    same way a browser would.
    """

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
