"""
Database Session Management
SQLAlchemy 2.0 Async Session Configuration
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)

from saleradar.core.config import settings


# Async Engine (created once on first use)
async_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def get_async_engine() -> AsyncEngine:
    """
    Get or create async database engine

    Returns:
        AsyncEngine instance
    """
    global async_engine

    if async_engine is None:
        async_engine = create_async_engine(
            settings.async_database_url,
            echo=settings.database_echo,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,  # Verify connections before using
        )

    return async_engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """
    Get or create the async session factory bound to the engine

    Returns:
        async_sessionmaker instance
    """
    global _session_maker

    if _session_maker is None:
        _session_maker = async_sessionmaker(
            bind=get_async_engine(),
            class_=AsyncSession,
            expire_on_commit=False,  # Prevent lazy-loading issues
            autoflush=False,
        )

    return _session_maker


async def close_db() -> None:
    """
    Close database connections
    Should be called on application shutdown
    """
    global async_engine, _session_maker

    if async_engine is not None:
        await async_engine.dispose()
        async_engine = None
        _session_maker = None
