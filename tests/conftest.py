import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("HRM_TIMEZONE", "Asia/Dhaka")
os.environ.setdefault("HRM_CRON_SECRET", "test-cron-secret")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import datetime, time
from types import SimpleNamespace
from typing import AsyncGenerator
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from hrm.core.auth import create_access_token
from hrm.database import Base, get_db
from hrm.main import app
from hrm.models.enums import Role
from hrm.services import criteria, directory, weeks
from hrm.services.scoring import RawScore
from hrm.utils import periods

DHAKA = ZoneInfo("Asia/Dhaka")

# 2025-06-13 is a Friday; the second Friday of June 2025
WEEK = "2025-06-13"
FRIDAY_NOON = datetime(2025, 6, 13, 12, 0, tzinfo=DHAKA)
NEXT_MONDAY = datetime(2025, 6, 16, 9, 0, tzinfo=DHAKA)


def friday_noon(week_key: str) -> datetime:
    return datetime.combine(periods.parse_week_key(week_key), time(12, 0), tzinfo=DHAKA)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'hrm_test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def frozen_now(monkeypatch):
    """Pin the local clock to Friday noon of WEEK."""
    monkeypatch.setattr(periods, "local_now", lambda: FRIDAY_NOON)
    return FRIDAY_NOON


@pytest_asyncio.fixture
async def org(db):
    """A super admin, two markers and one employee scored on a 40/30/30 set."""
    super_admin = await directory.upsert_person(db, "boss@example.com", "Boss", Role.SUPER_ADMIN.value)
    marker = await directory.upsert_person(db, "lead@example.com", "Team Lead", Role.ADMIN.value)
    marker2 = await directory.upsert_person(db, "hr@example.com", "HR Admin", Role.ADMIN.value)
    subject = await directory.upsert_person(db, "dev@example.com", "Developer", Role.EMPLOYEE.value)

    quality = await criteria.create_criterion(db, "quality", "Work quality", default_scale_max=10)
    delivery = await criteria.create_criterion(db, "delivery", "On-time delivery", default_scale_max=10)
    teamwork = await criteria.create_criterion(db, "teamwork", "Teamwork", default_scale_max=10)

    criteria_set = await criteria.replace_criteria_set(
        db,
        subject.id,
        [
            {"criterion_id": quality.id, "weight": 40},
            {"criterion_id": delivery.id, "weight": 30},
            {"criterion_id": teamwork.id, "weight": 30},
        ],
        created_by_id=super_admin.id,
    )
    await directory.create_assignments(db, marker.id, [subject.id], created_by_id=super_admin.id)
    await directory.create_assignments(db, marker2.id, [subject.id], created_by_id=super_admin.id)
    await weeks.ensure_week(db, WEEK)

    return SimpleNamespace(
        super_admin=super_admin,
        marker=marker,
        marker2=marker2,
        subject=subject,
        criteria=[quality, delivery, teamwork],
        criteria_set=criteria_set,
    )


def raw_scores(org, *values):
    return [RawScore(c.id, v) for c, v in zip(org.criteria, values)]


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth_headers(person) -> dict:
    return {"Authorization": f"Bearer {create_access_token(person.id)}"}
