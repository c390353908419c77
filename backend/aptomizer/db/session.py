"""Database engine and session utilities."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from aptomizer.config import get_settings


class Database:
    """Configure an async SQLAlchemy engine and session factory."""

    def __init__(self, url: str | None = None):
        self._url = url or get_settings().database_url
        self._engine: AsyncEngine = create_async_engine(self._url, future=True, echo=False)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False, class_=AsyncSession)

    @property
    def url(self) -> str:
        return self._url

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            yield session

    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """Yield an AsyncSession for FastAPI dependency usage."""

        async with self._session_factory() as session:
            yield session

    async def dispose(self) -> None:
        await self._engine.dispose()


__all__ = ["Database"]
