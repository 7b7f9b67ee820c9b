"""Database setup and session management."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for ``database_url``."""
    return create_async_engine(database_url, echo=echo, future=True)


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


async def init_db(bind: AsyncEngine) -> None:
    """Initialize database tables."""
    # Register the ORM tables on Base.metadata
    import aoimap.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
