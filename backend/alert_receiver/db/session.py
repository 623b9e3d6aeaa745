"""Database session configuration with connection pooling."""

import os

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from alert_receiver.core.config import settings

# Pool sizing is tunable per deployment
pool_size = int(os.getenv("DATABASE_POOL_SIZE", "10"))
max_overflow = int(os.getenv("DATABASE_MAX_OVERFLOW", "20"))

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=pool_size,
    max_overflow=max_overflow,
    pool_timeout=30,
    pool_recycle=3600,
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
