"""
Database session configuration.

The engine and session factory live on an explicitly constructed Database
object. The application creates one in create_app(), keeps it on app.state,
and disposes it when the lifespan ends; request handlers receive sessions
through the get_db dependency.
"""

from typing import AsyncIterator, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

# Declarative base for models
Base = declarative_base()


class Database:
    """
    Owns one async engine and its session factory.

    Pool sizing only applies to server databases; SQLite engines are created
    with their default pool.
    """

    def __init__(
        self,
        url: str,
        echo: bool = False,
        pool_size: Optional[int] = None,
        max_overflow: Optional[int] = None,
        **engine_kwargs
    ):
        self.url = url
        if not url.startswith("sqlite"):
            if pool_size is not None:
                engine_kwargs.setdefault("pool_size", pool_size)
            if max_overflow is not None:
                engine_kwargs.setdefault("max_overflow", max_overflow)

        self.engine: AsyncEngine = create_async_engine(url, echo=echo, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(
            settings.database_url,
            echo=settings.db_echo,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )

    async def create_all(self) -> None:
        """Create every table registered on Base."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            try:
                yield session
            finally:
                await session.close()

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency for database sessions.

    Yields a session from the application's Database and ensures it's closed.
    """
    database: Database = request.app.state.database
    async for session in database.session():
        yield session
