"""Database engine and async session factory."""

import logging

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from otp_auth.config import settings
from otp_auth.models.user import Base

logger = logging.getLogger(__name__)

engine = create_async_engine(settings.database_url, echo=settings.debug)

async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def init_db(db_engine: AsyncEngine = engine) -> list[str]:
    """Create the user directory tables that don't yet exist.

    Returns the names of the tables created by this call.
    """
    async with db_engine.begin() as conn:
        existing = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
        await conn.run_sync(Base.metadata.create_all)

    created = [t.name for t in Base.metadata.sorted_tables if t.name not in existing]
    if created:
        logger.info("Created tables: %s", ", ".join(created))
    else:
        logger.info("User directory schema already present")
    return created
