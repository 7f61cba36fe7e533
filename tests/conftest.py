"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from vacation_scheduler.config import Settings
from vacation_scheduler.database import Base, get_db
from vacation_scheduler.main import create_app
from vacation_scheduler.org.models import OrganizationalUnit, User
from vacation_scheduler.vacations.schemas import PeriodCreate, VacationRequestCreate

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import vacation_scheduler.notifications.models  # noqa: F401
import vacation_scheduler.org.models  # noqa: F401
import vacation_scheduler.vacations.models  # noqa: F401

# ── SQLite compat: compile PG-specific types ────────────────────────

from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Settings ────────────────────────────────────────────────────────

TEST_SETTINGS = Settings(
    JWT_SECRET="test-secret-for-ci-do-not-use-in-production",
    ENVIRONMENT="test",
    LOG_LEVEL="warning",
)


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Register PG-compatible functions for SQLite
@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() and uuid_generate_v4() as SQLite custom functions."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )
    dbapi_conn.create_function(
        "uuid_generate_v4", 0, lambda: str(uuid.uuid4()),
    )


TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
def settings() -> Settings:
    return TEST_SETTINGS


@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app(TEST_SETTINGS)
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

async def make_unit(db: AsyncSession, *, name: str = "Engineering") -> OrganizationalUnit:
    unit = OrganizationalUnit(id=uuid.uuid4(), name=name, unit_type="DEPARTMENT")
    db.add(unit)
    await db.flush()
    return unit


async def make_user(
    db: AsyncSession,
    *,
    login: Optional[str] = None,
    full_name: str = "Test User",
    unit: Optional[OrganizationalUnit] = None,
    is_admin: bool = False,
    is_manager: bool = False,
    vacation_limit_default: Optional[int] = None,
) -> User:
    user = User(
        id=uuid.uuid4(),
        login=login or f"user-{uuid.uuid4().hex[:8]}",
        full_name=full_name,
        organizational_unit_id=unit.id if unit is not None else None,
        is_admin=is_admin,
        is_manager=is_manager,
        vacation_limit_default=vacation_limit_default,
    )
    db.add(user)
    await db.flush()
    return user


@pytest.fixture
async def unit(db) -> OrganizationalUnit:
    return await make_unit(db)


@pytest.fixture
async def other_unit(db) -> OrganizationalUnit:
    return await make_unit(db, name="Marketing")


@pytest.fixture
async def manager(db, unit) -> User:
    user = await make_user(db, login="manager", full_name="Maria Manager", unit=unit, is_manager=True)
    unit.manager_id = user.id
    await db.flush()
    return user


@pytest.fixture
async def employee(db, unit, manager) -> User:
    return await make_user(db, login="employee", full_name="Erik Employee", unit=unit)


@pytest.fixture
async def colleague(db, unit, manager) -> User:
    return await make_user(db, login="colleague", full_name="Clara Colleague", unit=unit)


@pytest.fixture
async def admin(db) -> User:
    return await make_user(db, login="admin", full_name="Ada Admin", is_admin=True)


@pytest.fixture
async def foreign_manager(db, other_unit) -> User:
    return await make_user(
        db, login="foreign", full_name="Fred Foreign", unit=other_unit, is_manager=True,
    )


# ── Vacation plans ──────────────────────────────────────────────────

YEAR = 2026


def plan(*ranges: tuple[date, date], year: int = YEAR) -> VacationRequestCreate:
    return VacationRequestCreate(
        year=year,
        periods=[PeriodCreate(start_date=s, end_date=e) for s, e in ranges],
    )


def plan_28_days(year: int = YEAR) -> VacationRequestCreate:
    """Two 14-day stretches: 28 days."""
    return plan(
        (date(year, 6, 1), date(year, 6, 14)),
        (date(year, 8, 1), date(year, 8, 14)),
        year=year,
    )


def plan_27_days(year: int = YEAR) -> VacationRequestCreate:
    """14 + 13 days."""
    return plan(
        (date(year, 6, 1), date(year, 6, 14)),
        (date(year, 8, 1), date(year, 8, 13)),
        year=year,
    )


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    *,
    expired: bool = False,
    token_type: str = "access",
    secret: Optional[str] = None,
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
    payload = {
        "sub": str(user_id),
        "type": token_type,
        "exp": exp,
    }
    return jwt.encode(
        payload,
        secret or TEST_SETTINGS.JWT_SECRET,
        algorithm=TEST_SETTINGS.JWT_ALGORITHM,
    )


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}
