"""Test fixtures — a fresh in-memory database and app per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own SQLite in-memory engine. StaticPool keeps the
   single connection alive, so every session sees the same database.
2. create_app() takes that engine and a test Settings object; nothing is
   patched, the app reads both from app.state like in production.
3. Two tenants are seeded (Acme with an admin and a user, Globex with an
   admin) and tokens are minted directly, so tests do not need to log in.
"""

from dataclasses import dataclass

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from tradeboard.auth.jwt import build_claims, issue_token
from tradeboard.config import Settings
from tradeboard.db.engine import build_engine
from tradeboard.db.models import Base, Company, Role, User
from tradeboard.main import create_app
from tradeboard.services import bootstrap

TEST_DB_URL = "sqlite+aiosqlite://"
PASSWORD = "password123"


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": TEST_DB_URL,
        "environment": "test",
        "jwt_secret": "test-secret",
        "bcrypt_rounds": 4,
        "log_format": "console",
    }
    values.update(overrides)
    return Settings(**values)


@dataclass
class Tenants:
    acme: Company
    acme_admin: User
    acme_user: User
    globex: Company
    globex_admin: User


@pytest_asyncio.fixture()
async def test_settings():
    return make_settings()


@pytest_asyncio.fixture()
async def engine():
    engine = build_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def app(engine, test_settings):
    return create_app(test_settings, engine=engine)


@pytest_asyncio.fixture()
async def make_app(engine):
    """Build another app on the same database with different settings."""

    def factory(**overrides):
        return create_app(make_settings(**overrides), engine=engine)

    return factory


@pytest_asyncio.fixture()
async def password():
    return PASSWORD


@pytest_asyncio.fixture()
async def db_session(app):
    """A session on the app's database, for setting up and checking rows."""
    async with app.state.session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def tenants(db_session):
    acme = await bootstrap.create_company(db_session, "Acme Builders")
    globex = await bootstrap.create_company(db_session, "Globex Renovations")

    async def account(email, company, role, name):
        return await bootstrap.create_account(
            db_session, email, PASSWORD, company.id,
            name=name, role=role, bcrypt_rounds=4,
        )

    return Tenants(
        acme=acme,
        acme_admin=await account("admin@acme.com", acme, Role.ADMIN, "Alice Admin"),
        acme_user=await account("user@acme.com", acme, Role.USER, "Bob Builder"),
        globex=globex,
        globex_admin=await account("admin@globex.com", globex, Role.ADMIN, "Gina Globex"),
    )


def auth_headers(user: User, settings: Settings) -> dict:
    token = issue_token(
        build_claims(user),
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture()
async def admin_headers(tenants, test_settings):
    return auth_headers(tenants.acme_admin, test_settings)


@pytest_asyncio.fixture()
async def user_headers(tenants, test_settings):
    return auth_headers(tenants.acme_user, test_settings)


@pytest_asyncio.fixture()
async def other_admin_headers(tenants, test_settings):
    return auth_headers(tenants.globex_admin, test_settings)


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client talking to the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
