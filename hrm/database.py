# hrm/database.py
from typing import AsyncGenerator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from hrm.config import settings

engine = create_async_engine(settings.effective_database_url, echo=settings.SQL_ECHO)

AsyncSessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
Base = declarative_base()

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


def is_unique_violation(exc: IntegrityError, *names: str) -> bool:
    """
    True when ``exc`` is a duplicate-key error on one of ``names``.

    PostgreSQL reports the constraint name, SQLite reports ``table.column``,
    so callers pass both. NOT NULL and foreign key failures never match.
    """
    msg = str(getattr(exc, "orig", exc))
    lowered = msg.lower()
    if "unique" not in lowered and "duplicate" not in lowered:
        return False
    return any(name in msg for name in names)
