# gamestore/database.py
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .config import DATABASE_URL, SQL_ECHO

# Create engine
engine = create_async_engine(DATABASE_URL, echo=SQL_ECHO, future=True)

# Create session factory
async_session_maker = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

# Base declarative
Base = declarative_base()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session


async def init_db(bind=None):
    """Create all tables on the given engine (defaults to the application engine)."""
    from . import models  # noqa: F401  register mappers on Base.metadata

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
