# geopulse/db/session.py
# -----------------------------------------------------------------------------
# Async engine for the upstream fetch audit log (fetch_logs only)
# - routers get a request-scoped session through Depends(get_session)
# - init_db() creates the audit table at startup
# -----------------------------------------------------------------------------
from collections.abc import AsyncGenerator

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from geopulse.core.config import settings

engine = create_async_engine(settings.DATABASE_URL, echo=False)
AuditSession = async_sessionmaker(engine, expire_on_commit=False)
Base = declarative_base()


async def init_db() -> None:
    from geopulse.db import models  # noqa: F401  (registers FetchLog on Base)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"[db] audit tables ready ({engine.url.drivername})")


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AuditSession() as session:
        yield session
