"""
StreetPaws Backend — Database Engine & Sessions
=================================================

What:  Async SQLAlchemy engine, session factory, declarative base and
       lifecycle helpers.
How:   Creates an async engine with connection pooling at import time.
       Sessions are opened per storage operation by DatabaseStorage.
Who:   Used by streetpaws.storage.sql, Alembic and the health check.

Connection Pooling Strategy:
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for traffic spikes
    pool_pre_ping:     Validates connections before use
    pool_recycle=3600: Recycles connections every hour
    SQLite URLs (tests, local demos) get SQLAlchemy's default pool instead.
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from streetpaws.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    Pool sizing only applies to server databases; the SQLite dialect picks
    its own pool class and rejects pool_size/max_overflow for in-memory URLs.
    """
    if database_url.startswith("sqlite"):
        return create_async_engine(
            database_url,
            echo=settings.log_level == "DEBUG",
        )
    return create_async_engine(
        database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        echo=settings.log_level == "DEBUG",
    )


engine = build_engine(settings.database_url)

# expire_on_commit=False: attributes stay readable after the transaction ends,
# which is when storage converts rows into response schemas
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Registers every model with a single metadata object, which Alembic and
    DatabaseStorage.initialize() use for schema management.
    """
    pass


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def create_schema(target: AsyncEngine) -> None:
    """
    Create all tables that do not exist yet, waiting for the database.

    Retries with exponential backoff and jitter because the API container
    usually starts before PostgreSQL accepts connections.
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
        ),
        retry=retry_if_exception_type((OSError, ConnectionError)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    ):
        with attempt:
            async with target.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")


async def ping(target: AsyncEngine) -> bool:
    """Lightweight connectivity probe used by the health endpoint."""
    try:
        async with target.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("Database ping failed: %s", str(e))
        return False


async def dispose_engine(target: AsyncEngine = engine) -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await target.dispose()
