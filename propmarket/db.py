# propmarket/db.py
from __future__ import annotations

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from propmarket.config import settings


# === 1. Engine ===
# Example DSN: postgresql+asyncpg://app:app@db:5432/app
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.SQL_ECHO,
    pool_pre_ping=True,
)


# === 2. Sessions ===
SessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# === 3. FastAPI dependency ===
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """One AsyncSession per request."""
    async with SessionLocal() as session:
        yield session
