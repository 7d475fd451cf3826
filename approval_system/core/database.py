# approval_system/core/database.py
from typing import AsyncIterator
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from approval_system.core.config import settings

database_url = settings.DATABASE_URL

if database_url.startswith("sqlite"):
    engine = create_async_engine(
        database_url,
        echo=settings.DATABASE_ECHO,
        future=True,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_async_engine(
        database_url,
        pool_size=20,
        max_overflow=30,
        pool_timeout=60,
        pool_recycle=3600,      # Recycle connections every hour
        echo=settings.DATABASE_ECHO,
        future=True,
        pool_pre_ping=True,
    )

async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

async def get_async_session() -> AsyncIterator[AsyncSession]:
    async with async_session_maker() as session:
        yield session
