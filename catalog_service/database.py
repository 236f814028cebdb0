from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from . import config
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()


def _masked(database_url: str) -> str:
    return make_url(database_url).render_as_string(hide_password=True)


def create_engine(database_url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    """Builds the async engine; callers own it and must dispose it."""
    url = database_url or config.DATABASE_URL
    echo = config.DATABASE_ECHO if echo is None else echo
    connect_args = {}
    if url.startswith("sqlite"):
        # Concurrent writers wait on the file lock instead of failing fast
        connect_args["timeout"] = 30
    try:
        logger.info(f"Attempting to create engine with URL: {_masked(url)}")
        engine = create_async_engine(url, echo=echo, pool_pre_ping=True, connect_args=connect_args)
        logger.info("Async database engine created successfully.")
    except Exception as e:
        logger.error(f"FATAL: Failed to create database engine: {e}")
        raise RuntimeError(f"Could not initialize database connection: {e}") from e
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Rows returned by the store stay readable after their transaction commits
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    # Use with caution in prod; a migration tool should own the schema there
    from . import models  # noqa: F401  registers the tables on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables check complete.")
