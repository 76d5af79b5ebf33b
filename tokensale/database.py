"""
Database engine and session factory.

Creates the async engine and session maker used by the sale services.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from tokensale.models import Base


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create async engine.

    In-memory SQLite databases share one connection so every session
    sees the same data.

    Args:
        database_url: SQLAlchemy async URL
        echo: Log SQL statements

    Returns:
        Async engine
    """
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_async_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

    return create_async_engine(database_url, echo=echo, pool_pre_ping=True)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create session maker bound to engine.

    Sessions never autocommit; services commit or roll back explicitly.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create all database tables (checkfirst)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    logger.info("Database tables ensured")
