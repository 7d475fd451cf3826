import logging
from sqlalchemy.ext.asyncio import AsyncEngine

from approval_system.core.database import engine, async_session_maker
from approval_system.db.seeds.initial_data import create_initial_data
from approval_system.models import *  # noqa: F401,F403  register every table
from approval_system.models.shared.enums import Base

logger = logging.getLogger(__name__)

async def create_tables(bind: AsyncEngine = engine):
    """Create all database tables"""
    try:
        async with bind.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")

    except Exception as e:
        logger.error(f"Error creating tables: {str(e)}")
        raise

async def init_db():
    """Initialize the database"""
    try:
        await create_tables()
        async with async_session_maker() as session:
            await create_initial_data(session)
        logger.info("Database initialized successfully")

    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise
