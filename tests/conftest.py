import os

# the application engine is created at import time; keep it off Postgres in tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from gamestore.auth import get_current_user
from gamestore.database import get_session, init_db
from gamestore.main import app
from gamestore.models import User, UserRole
from gamestore.seed import seed_catalog


@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}", poolclass=NullPool)

    # SQLite only serialises writers cleanly when the write lock is taken at
    # BEGIN; otherwise two deferred transactions can deadlock on upgrade.
    @event.listens_for(eng.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        # enforce foreign keys the way Postgres does
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(eng.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    maker = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    async with maker() as session:
        await seed_catalog(session)
        session.add_all([
            User(id=1, email="buyer@example.com", full_name="Test Buyer",
                 password_hash="not-a-hash", role=UserRole.CUSTOMER.value),
            User(id=2, email="boss@example.com", full_name="Shop Admin",
                 password_hash="not-a-hash", role=UserRole.ADMIN.value),
        ])
        await session.commit()
    return maker


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest.fixture
def buyer():
    return User(id=1, email="buyer@example.com", full_name="Test Buyer", role=UserRole.CUSTOMER.value)


@pytest.fixture
def admin_user():
    return User(id=2, email="boss@example.com", full_name="Shop Admin", role=UserRole.ADMIN.value)


@pytest.fixture
def override_session(session_maker):
    async def _get_session():
        async with session_maker() as s:
            yield s

    app.dependency_overrides[get_session] = _get_session
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def login_as(override_session):
    """Make every request authenticate as the given user."""
    def _login(user):
        app.dependency_overrides[get_current_user] = lambda: user
    return _login


@pytest_asyncio.fixture
async def client(override_session):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
